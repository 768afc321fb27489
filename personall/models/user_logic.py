"""
Energy expenditure and macro maths for a user profile.

All functions are pure and total: any profile, any goal, never raises.
Rounding is half-up (2878.5 -> 2879) rather than Python's banker's rounding,
because the rest of the product rounds that way.
"""
import math
from typing import Dict

from personall.models.schemas import CalorieTargets, Macros, NutritionProfileInput

ACTIVITY_MULTIPLIERS = {
    "sedentary": 1.2,
    "light": 1.375,
    "moderate": 1.55,
    "active": 1.725,
    "very_active": 1.9,
}
DEFAULT_ACTIVITY_MULTIPLIER = 1.55

MINIMUM_DAILY_CALORIES = 1200

MACRO_PRESETS = {
    "lose_weight": {"protein": 0.40, "carbs": 0.35, "fat": 0.25},
    "gain_muscle": {"protein": 0.30, "carbs": 0.45, "fat": 0.25},
    "gain_weight": {"protein": 0.25, "carbs": 0.50, "fat": 0.25},
    "maintain": {"protein": 0.30, "carbs": 0.40, "fat": 0.30},
}

KCAL_PER_GRAM = {"protein": 4, "carbs": 4, "fat": 9}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def basal_metabolic_rate(profile: NutritionProfileInput) -> float:
    """Mifflin-St Jeor. Anything that isn't "female" gets the male constant."""
    base = 10 * profile.weight + 6.25 * profile.height - 5 * profile.age
    return base - 161 if profile.gender == "female" else base + 5


def total_daily_energy_expenditure(profile: NutritionProfileInput) -> int:
    multiplier = ACTIVITY_MULTIPLIERS.get(profile.activity_level, DEFAULT_ACTIVITY_MULTIPLIER)
    return round_half_up(basal_metabolic_rate(profile) * multiplier)


def daily_calorie_goal(profile: NutritionProfileInput) -> int:
    """Calorie target based on the goal. Never below 1200 kcal, whatever the goal."""
    tdee = total_daily_energy_expenditure(profile)

    if profile.goal == "lose_weight":
        goal_calories = tdee - 500
    elif profile.goal == "gain_weight":
        goal_calories = tdee + 500
    elif profile.goal == "gain_muscle":
        goal_calories = tdee + 300
    else:
        goal_calories = tdee
    return max(MINIMUM_DAILY_CALORIES, goal_calories)


def macro_distribution(goal: str) -> Dict[str, float]:
    """Fraction of daily calories from protein, carbs and fat. Unknown goals get the maintenance split."""
    return dict(MACRO_PRESETS.get(goal, MACRO_PRESETS["maintain"]))


def macro_grams(calories: float, distribution: Dict[str, float]) -> Macros:
    # each macro rounded on its own, the kcal total may drift by a few calories
    return Macros(**{
        macro: round_half_up(calories * distribution[macro] / KCAL_PER_GRAM[macro])
        for macro in ("protein", "carbs", "fat")
    })


def activity_level_from_workouts(workouts_per_week: int) -> str:
    """Map workouts per week to activity level"""
    if workouts_per_week <= 0:
        return "sedentary"
    elif workouts_per_week <= 2:
        return "light"
    elif workouts_per_week <= 4:
        return "moderate"
    elif workouts_per_week <= 6:
        return "active"
    return "very_active"


def daily_water_ml(weight: float) -> int:
    return round_half_up(weight * 35)


def calorie_targets(profile: NutritionProfileInput) -> CalorieTargets:
    calories = daily_calorie_goal(profile)
    return CalorieTargets(
        bmr=basal_metabolic_rate(profile),
        tdee=total_daily_energy_expenditure(profile),
        daily_calories=calories,
        macros=macro_grams(calories, macro_distribution(profile.goal)),
        water_ml=daily_water_ml(profile.weight),
    )
