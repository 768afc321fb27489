from personall.models.schemas import DietMeal, DietPlan, NutritionProfileInput
from personall.models.user_logic import (
    daily_calorie_goal,
    daily_water_ml,
    macro_distribution,
    macro_grams,
    round_half_up,
)

# (type, time, share of daily calories)
MEAL_SCHEDULE = [
    ("Breakfast", "08:00", 0.25),
    ("Lunch", "13:00", 0.35),
    ("Snack", "16:00", 0.15),
    ("Dinner", "20:00", 0.25),
]

DEFAULT_FOODS = {
    "Breakfast": [
        "Scrambled eggs with wholegrain bread",
        "Oats with whey protein and banana",
        "Tapioca with white cheese",
        "Natural yoghurt with fruit and chia",
    ],
    "Lunch": [
        "Grilled chicken breast with rice and beans",
        "Lean ground beef with mashed potatoes",
        "Fish fillet with steamed vegetables",
        "Wholegrain pasta with tuna",
    ],
    "Snack": [
        "Whey protein with an apple",
        "Mixed nuts",
        "Protein bar",
        "Shredded chicken sandwich",
    ],
    "Dinner": [
        "Large salad with shredded chicken",
        "Egg white omelette with spinach",
        "Vegetable soup with lean meat",
        "Pork tenderloin with salad",
    ],
}

VEGETARIAN_FOODS = {
    "Breakfast": ["Oat pancake with peanut butter", "Scrambled tofu with bread"],
    "Lunch": ["Chickpeas with rice and salad", "Lentils with roasted vegetables"],
    "Snack": ["Fruit with seeds", "Plant protein shake"],
    "Dinner": ["Pea soup", "Warm salad with soy protein"],
}

VEGETARIAN_PREFERENCES = {"vegetarian", "vegan", "vegetariano", "vegano"}


def generate_diet_client_side(profile: NutritionProfileInput) -> DietPlan:
    """
    Daily diet plan from the profile alone, no model call.

    Calories come from the goal-adjusted TDEE, macros from the goal's split,
    and the day is divided into four meals (25% / 35% / 15% / 25%).
    """
    daily_calories = daily_calorie_goal(profile)
    macros = macro_grams(daily_calories, macro_distribution(profile.goal))

    preferences = [p.strip().lower() for p in profile.food_preferences if p.strip()]
    is_vegetarian = any(p in VEGETARIAN_PREFERENCES for p in preferences)
    foods = VEGETARIAN_FOODS if is_vegetarian else DEFAULT_FOODS

    meals = []
    for index, (meal_type, time, share) in enumerate(MEAL_SCHEDULE):
        options = list(foods[meal_type])
        if preferences:
            # one favourite per meal, round-robin so the plan is reproducible
            favourite = preferences[index % len(preferences)]
            suggestion = f"Include your preference: {favourite.capitalize()}"
            if suggestion not in options:
                options.append(suggestion)
        meals.append(DietMeal(
            type=meal_type,
            time=time,
            calories=round_half_up(daily_calories * share),
            options=options,
        ))

    tips = [
        f"Drink at least {daily_water_ml(profile.weight)}ml of water a day.",
        "Favour high-volume, low-calorie foods (vegetables)."
        if profile.goal == "lose_weight"
        else "Don't skip important meals if you want to hit your target.",
        "Proper rest is essential for your results.",
    ]

    return DietPlan(daily_calories=daily_calories, macros=macros, meals=meals, tips=tips)
