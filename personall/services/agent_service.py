"""
Everything the app asks the models for.

Each operation builds its prompt, goes through the fallback orchestrator and
validates the answer into our own types. When every provider fails, or the
answer can't be turned into something usable, the operation returns its
hard-coded default instead: generating never leaves the user without a plan.
"""
from typing import Any, List, Optional, Sequence

from loguru import logger
from pydantic import ValidationError

from personall.core import prompts
from personall.core.errors import GenerationError
from personall.models.schemas import (
    DietPlan,
    ExercisePlan,
    FoodAnalysis,
    NutritionProfileInput,
    WorkoutDay,
    WorkoutPlan,
    WorkoutWeek,
)
from personall.models.user_logic import daily_calorie_goal
from personall.services.diet_generator import generate_diet_client_side
from personall.services.orchestrator import FallbackOrchestrator
from personall.services.providers import ImagePayload

WORKOUT_PLAN_MAX_TOKENS = 16384

DEFAULT_UNITS = ["unit", "grams", "portion"]
BODY_ANALYSIS_UNAVAILABLE = (
    "Body analysis is not available right now. Your plan was created from the information you provided."
)


def default_workout_plan() -> WorkoutPlan:
    """Starter plan shown when no model could produce one."""
    def full_body():
        # fresh instances per day, days must not share exercises
        return [
            ExercisePlan(exercise_id="0009", name="Push-up", sets=3, reps="10-15", rest_seconds=60,
                         instructions="Keep your body straight."),
            ExercisePlan(exercise_id="0685", name="Squat", sets=3, reps="15-20", rest_seconds=60,
                         instructions="Feet shoulder-width apart."),
        ]

    days = []
    for day in range(1, 8):
        if day in (2, 4, 6):
            days.append(WorkoutDay(day=day, name="Full Body Workout", type="strength", exercises=full_body()))
        else:
            days.append(WorkoutDay(day=day, name="Rest", type="rest", exercises=[]))

    return WorkoutPlan(
        name="Starter Plan - 4 weeks",
        description="A basic plan to start your fitness journey.",
        estimated_weeks=4,
        weeks=[WorkoutWeek(week=1, days=days)],
    )


def _as_list(data: Any, key: str) -> list:
    """Models answer either a bare array or {"<key>": [...]}; a single object becomes a one-item list."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        inner = data.get(key)
        if isinstance(inner, list):
            return inner
        if key not in data:
            return [data]
    return []


def _food_items(data: Any, default_description: str = "") -> List[FoodAnalysis]:
    items = []
    for item in _as_list(data, "items"):
        if not isinstance(item, dict):
            continue
        item.setdefault("description", default_description)
        try:
            items.append(FoodAnalysis.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping food item the model got wrong: {e.errors()[0]['msg']}")
    return items


async def generate_workout_plan(
    orchestrator: FallbackOrchestrator,
    profile: NutritionProfileInput,
    active_days: Sequence[str] = (),
) -> WorkoutPlan:
    prompt = prompts.workout_plan_prompt(profile, list(active_days))
    try:
        data = await orchestrator.generate(prompt, max_output_tokens=WORKOUT_PLAN_MAX_TOKENS)
        plan = WorkoutPlan.model_validate(data)
        if not plan.weeks:
            raise ValueError("model returned a plan without weeks")
        return plan
    except (GenerationError, ValueError) as e:
        logger.warning(f"⚠️ Workout plan generation failed, using the starter plan: {e}")
    return default_workout_plan()


async def generate_workout_single_day(
    orchestrator: FallbackOrchestrator,
    profile: NutritionProfileInput,
    day_name: str,
    available_minutes: int,
    location: str,
    avoid_exercises: Sequence[str] = (),
) -> Optional[WorkoutDay]:
    """A replacement for one training day, or None (the caller keeps the day it has)."""
    prompt = prompts.single_day_prompt(profile, day_name, available_minutes, location, list(avoid_exercises))
    try:
        data = await orchestrator.generate(prompt)
        day = WorkoutDay.model_validate(data)
    except (GenerationError, ValueError) as e:
        logger.warning(f"⚠️ Single day generation failed for {day_name}: {e}")
        return None

    if day.type != "rest" and not day.exercises:
        logger.warning(f"⚠️ Model returned a training day without exercises for {day_name}")
        return None
    return day


async def generate_diet_plan(orchestrator: FallbackOrchestrator, profile: NutritionProfileInput) -> DietPlan:
    calories = daily_calorie_goal(profile)
    prompt = prompts.diet_plan_prompt(profile, calories)
    try:
        data = await orchestrator.generate(prompt)
        if isinstance(data, dict) and not data.get("daily_calories"):
            data["daily_calories"] = calories
        plan = DietPlan.model_validate(data)
        if not plan.meals:
            raise ValueError("model returned a diet without meals")
        return plan
    except (GenerationError, ValueError) as e:
        logger.warning(f"⚠️ Diet plan generation failed, building it locally: {e}")
    return generate_diet_client_side(profile)


async def analyze_food_text(orchestrator: FallbackOrchestrator, description: str) -> List[FoodAnalysis]:
    try:
        data = await orchestrator.generate(prompts.food_text_prompt(description))
        items = _food_items(data, default_description=description)
        if items:
            return items
    except GenerationError as e:
        logger.warning(f"⚠️ Food text analysis failed: {e}")
    return [FoodAnalysis(description=description)]


async def analyze_food_photo(orchestrator: FallbackOrchestrator, image: ImagePayload) -> FoodAnalysis:
    try:
        data = await orchestrator.generate_from_image(prompts.FOOD_PHOTO_PROMPT, image)
        items = _food_items(data)
        if items:
            return items[0]
    except GenerationError as e:
        logger.warning(f"⚠️ Food photo analysis failed: {e}")
    return FoodAnalysis(description="Unidentified meal")


async def analyze_food_photo_items(orchestrator: FallbackOrchestrator, image: ImagePayload) -> List[FoodAnalysis]:
    try:
        data = await orchestrator.generate_from_image(prompts.FOOD_PHOTO_ITEMS_PROMPT, image)
        items = _food_items(data)
        if items:
            return items
    except GenerationError as e:
        logger.warning(f"⚠️ Multi-item food photo analysis failed: {e}")
    return [FoodAnalysis(description="Meal")]


async def analyze_body_photo(orchestrator: FallbackOrchestrator, image: ImagePayload) -> str:
    try:
        return await orchestrator.generate_from_image(prompts.BODY_PHOTO_PROMPT, image, json_mode=False)
    except GenerationError as e:
        logger.warning(f"⚠️ Body photo analysis failed: {e}")
    return BODY_ANALYSIS_UNAVAILABLE


async def suggest_units(orchestrator: FallbackOrchestrator, food: str) -> List[str]:
    try:
        data = await orchestrator.generate(prompts.suggest_units_prompt(food))
        units = [u for u in _as_list(data, "units") if isinstance(u, str) and u.strip()]
        if units:
            return units
    except GenerationError as e:
        logger.warning(f"⚠️ Unit suggestion failed for {food!r}: {e}")
    return list(DEFAULT_UNITS)


async def suggest_foods(orchestrator: FallbackOrchestrator, query: str) -> List[str]:
    try:
        data = await orchestrator.generate(prompts.suggest_foods_prompt(query))
        return [f for f in _as_list(data, "foods") if isinstance(f, str) and f.strip()]
    except GenerationError as e:
        logger.warning(f"⚠️ Food suggestion failed for {query!r}: {e}")
    return []


async def exercise_instructions(orchestrator: FallbackOrchestrator, exercise_name: str) -> str:
    try:
        text = await orchestrator.generate(prompts.exercise_instructions_prompt(exercise_name), json_mode=False)
        return text.strip()
    except GenerationError as e:
        logger.warning(f"⚠️ Instructions generation failed for {exercise_name!r}: {e}")
    return ""


async def assistant_response(orchestrator: FallbackOrchestrator, message: str, context: str = "") -> str:
    """Coach chat reply. There is no sensible canned answer, so AllProvidersExhausted propagates."""
    text = await orchestrator.generate(prompts.chat_prompt(message, context), json_mode=False)
    return text.strip()
