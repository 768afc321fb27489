import math
import re
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DayType = Literal["strength", "cardio", "rest", "recovery"]


class NutritionProfileInput(BaseModel):
    """Onboarding profile, as collected by the questionnaire"""
    model_config = ConfigDict(frozen=True)

    weight: float  # kg
    height: float  # cm
    age: int
    gender: str = "male"  # "male", "female" or "other"
    activity_level: str = "moderate"  # sedentary, light, moderate, active, very_active
    goal: str = "maintain"  # lose_weight, gain_muscle, maintain, gain_weight
    available_minutes: int = 45
    training_location: str = "gym"  # "gym" or "home"
    food_preferences: List[str] = Field(default_factory=list)
    foods_at_home: List[str] = Field(default_factory=list)
    experience_level: str = "intermediate"  # beginner, intermediate, advanced


# --- Workout plans ---
# Everything below is also used to validate model output, so every field has a default
# and a null or nonsense value falls back to it instead of failing the whole plan.

_DIGITS = re.compile(r"\d+")


def _text_or(value, default):
    if value is None or isinstance(value, (bool, list, dict)):
        return default
    if isinstance(value, (int, float)):
        return str(value)
    return value


def _int_or(value, default):
    """3 -> 3, 2.7 -> 2, "Week 2" -> 2, None / "abc" -> default."""
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else default
    if isinstance(value, str):
        match = _DIGITS.search(value)
        return int(match.group(0)) if match else default
    return default


def _objects(value) -> list:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, (dict, BaseModel))]


class ExercisePlan(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    exercise_id: str = "0001"
    name: str = "Exercise"
    sets: int = Field(default=3, ge=1)
    reps: str = "10-12"
    rest_seconds: int = Field(default=60, ge=1)
    instructions: Optional[str] = None
    duration_minutes: Optional[int] = None

    @field_validator("exercise_id", "name", "reps", "instructions", mode="before")
    @classmethod
    def _text(cls, value, info):
        return _text_or(value, cls.model_fields[info.field_name].default)

    @field_validator("sets", "rest_seconds", mode="before")
    @classmethod
    def _positive_int(cls, value, info):
        fallback = 3 if info.field_name == "sets" else 60
        try:
            value = int(float(value))
        except (TypeError, ValueError, OverflowError):
            return fallback
        return value if value >= 1 else fallback

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def _minutes(cls, value):
        return _int_or(value, None)


class WorkoutDay(BaseModel):
    model_config = ConfigDict(extra="ignore")

    day: int = 1
    name: str = ""
    type: DayType = "strength"
    exercises: List[ExercisePlan] = Field(default_factory=list)

    @field_validator("day", mode="before")
    @classmethod
    def _day(cls, value):
        return _int_or(value, 1)

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value):
        return _text_or(value, "")

    @field_validator("type", mode="before")
    @classmethod
    def _known_type(cls, value):
        # models like to invent "hiit", "mobility", ...
        if value in ("strength", "cardio", "rest", "recovery"):
            return value
        return "strength"

    @field_validator("exercises", mode="before")
    @classmethod
    def _exercises(cls, value):
        return _objects(value)


class WorkoutWeek(BaseModel):
    model_config = ConfigDict(extra="ignore")

    week: int = 1
    days: List[WorkoutDay] = Field(default_factory=list)

    @field_validator("week", mode="before")
    @classmethod
    def _week(cls, value):
        return _int_or(value, 1)

    @field_validator("days", mode="before")
    @classmethod
    def _days(cls, value):
        return _objects(value)


class WorkoutPlan(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = "Workout Plan"
    description: str = ""
    estimated_weeks: int = 4
    weeks: List[WorkoutWeek] = Field(default_factory=list)

    @field_validator("name", "description", mode="before")
    @classmethod
    def _text(cls, value, info):
        return _text_or(value, cls.model_fields[info.field_name].default)

    @field_validator("estimated_weeks", mode="before")
    @classmethod
    def _estimated_weeks(cls, value):
        return _int_or(value, 4)

    @field_validator("weeks", mode="before")
    @classmethod
    def _weeks(cls, value):
        return _objects(value)


# --- Nutrition ---

class Macros(BaseModel):
    protein: int = 0
    carbs: int = 0
    fat: int = 0


class DietMeal(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = "Meal"
    time: str = "12:00"
    calories: int = Field(default=0, ge=0)
    options: List[str] = Field(default_factory=list)


class DietPlan(BaseModel):
    model_config = ConfigDict(extra="ignore")

    daily_calories: int = Field(gt=0)
    macros: Macros = Field(default_factory=Macros)
    meals: List[DietMeal] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)

    @field_validator("meals", mode="before")
    @classmethod
    def _meal_objects(cls, value):
        return _objects(value)

    @field_validator("meals")
    @classmethod
    def _drop_empty_meals(cls, meals):
        return [meal for meal in meals if meal.options]


class FoodAnalysis(BaseModel):
    model_config = ConfigDict(extra="ignore")

    description: str = ""
    calories: int = Field(default=0, ge=0)
    protein: int = Field(default=0, ge=0)
    carbs: int = Field(default=0, ge=0)
    fat: int = Field(default=0, ge=0)
    unit_weight: Optional[float] = None


class CalorieTargets(BaseModel):
    bmr: float
    tdee: int
    daily_calories: int
    macros: Macros
    water_ml: int


# --- Request bodies ---

class WorkoutPlanRequest(BaseModel):
    profile: NutritionProfileInput
    active_days: List[str] = Field(default_factory=list)
    user_id: Optional[str] = None


class ManualWorkoutRequest(BaseModel):
    profile: NutritionProfileInput
    split_type: str = "Full Body"
    active_days: List[str]
    user_id: Optional[str] = None
    seed: Optional[int] = None


class SingleDayRequest(BaseModel):
    profile: NutritionProfileInput
    day_name: str
    available_minutes: int = 45
    location: str = "gym"
    avoid_exercises: List[str] = Field(default_factory=list)


class ManualCardioRequest(BaseModel):
    name: str  # cardio type ("corrida", "bike", ...) or modality name
    active_days: List[str]
    minutes: int = 30
    user_id: Optional[str] = None


class DietPlanRequest(BaseModel):
    profile: NutritionProfileInput
    user_id: Optional[str] = None


class FoodTextRequest(BaseModel):
    description: str


class ChatRequest(BaseModel):
    message: str
    context: str = ""


class SessionCompleteRequest(BaseModel):
    user_id: str
    kind: Literal["workout", "cardio"] = "workout"
    completed: bool = True  # every exercise of the day done
