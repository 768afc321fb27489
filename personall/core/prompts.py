import json

GOAL_LABELS = {
    "lose_weight": "Weight Loss",
    "gain_muscle": "Muscle Hypertrophy",
    "maintain": "Maintenance",
    "gain_weight": "Weight Gain",
}

WORKOUT_JSON_FORMAT = """{
  "name": "...",
  "description": "...",
  "estimated_weeks": 4,
  "weeks": [
    {
      "week": 1,
      "days": [{ "day": 1, "name": "...", "type": "strength", "exercises": [{ "exercise_id": "0009", "name": "...", "sets": 3, "reps": "10-12", "rest_seconds": 60, "instructions": "..." }] }]
    }
  ]
}"""


def workout_plan_prompt(profile, active_days) -> str:
    location = "a gym (full equipment)" if profile.training_location == "gym" else "at home (no equipment or basic items)"

    if active_days:
        days_rule = (
            f"- IMPORTANT (WEEKDAYS): the user can only train on: {', '.join(active_days)}. "
            'Every other day MUST be a rest day (type: "rest") with no exercises.'
        )
    else:
        days_rule = "- Plan SUNDAY to SATURDAY with at least 1 or 2 rest days per week."

    return f"""Persona: Personal Trainer. Create a workout plan as JSON.
Profile: {GOAL_LABELS.get(profile.goal, profile.goal)}, training {location}, {profile.available_minutes} min/day, {profile.weight}kg, {profile.experience_level}.
Instructions: 4 weeks (7 days each). Exercise ids are 4-digit numeric ExerciseDB ids (e.g. "0009"). SHORT instructions.
{days_rule}
Day "type" is one of: strength, cardio, rest, recovery.

Format:
{WORKOUT_JSON_FORMAT}"""


def single_day_prompt(profile, day_name, available_minutes, location, avoid_exercises) -> str:
    location_label = "At home (no equipment)" if location == "home" else "Gym (full)"
    avoid = ", ".join(avoid_exercises) if avoid_exercises else "None"

    return f"""You are an expert personal trainer. Rebuild ONLY ONE training day as JSON.

USER PROFILE:
- Goal: {GOAL_LABELS.get(profile.goal, profile.goal)}
- Location: {location_label}
- Time available for THIS day: {available_minutes} minutes
- Activity level: {profile.activity_level}
- Weight: {profile.weight}kg | Height: {profile.height}cm | Age: {profile.age}
- Day: {day_name}

MANDATORY RULES:
- AVOID these exercises already done this week: {avoid}. Use variations or different exercises.
- "exercise_id" MUST be a 4-digit numeric ExerciseDB id (e.g. "0009", "0094", "1347"). NEVER a word.
- At home, prefer: "0009" (push-up), "0685" (squat), "0001" (crunch), "3214" (burpee), "1374" (plank).
- At most {max(1, available_minutes // 5)} exercises.
- Short sessions (e.g. 20 min) should be HIIT or a quick full body.

Return ONLY valid JSON in exactly this format (no Markdown):
{{
  "day": 1,
  "name": "...",
  "type": "strength",
  "exercises": [
    {{ "exercise_id": "0009", "name": "...", "sets": 3, "reps": "10-12", "rest_seconds": 60, "instructions": "..." }}
  ]
}}"""


def diet_plan_prompt(profile, calories) -> str:
    foods = ", ".join(profile.food_preferences) if profile.food_preferences else "varied"
    at_home = ", ".join(profile.foods_at_home) if profile.foods_at_home else "basic foods"

    return f"""You are a nutritionist. Create a personalised daily meal plan.

PROFILE:
- Goal: {profile.goal}
- Daily calorie target: {calories} kcal
- Favourite foods: {foods}
- Always at home: {at_home}
- Weight: {profile.weight}kg | Height: {profile.height}cm

Return ONLY valid JSON:
{{
  "daily_calories": {calories},
  "macros": {{ "protein": 0, "carbs": 0, "fat": 0 }},
  "meals": [
    {{ "type": "Breakfast", "time": "07:00", "calories": 0, "options": ["Option 1", "Option 2"] }},
    {{ "type": "Lunch", "time": "12:00", "calories": 0, "options": ["Option 1", "Option 2"] }},
    {{ "type": "Snack", "time": "15:30", "calories": 0, "options": ["Option 1", "Option 2"] }},
    {{ "type": "Dinner", "time": "19:00", "calories": 0, "options": ["Option 1", "Option 2"] }}
  ],
  "tips": ["Tip 1", "Tip 2", "Tip 3"]
}}"""


def food_text_prompt(description) -> str:
    return f"""You are an expert nutritionist. Analyse the text below and find whether it has one or more foods.
FOOD/MEAL: {json.dumps(description, ensure_ascii=False)}
RULES:
1. SPLIT: if the user lists several items, return one entry per item.
2. COMPOSED DISHES: a known dish (e.g. "stroganoff", "feijoada") is ONE item.
3. VALUES: estimate a typical portion. Be realistic and conservative. Whole numbers only.
4. "unit_weight": weight in grams of ONE unit (a biscuit = 12, an egg = 50, a plate = 300).

Return ONLY a JSON object:
{{ "items": [{{ "description": "Name", "calories": 100, "protein": 5, "carbs": 20, "fat": 2, "unit_weight": 100 }}] }}"""


FOOD_PHOTO_PROMPT = """Identify the food in this photo and estimate its nutritional values for a typical portion.

Return ONLY valid JSON:
{ "description": "Plain food name (e.g. Rice with chicken, Banana)", "calories": 0, "protein": 0, "carbs": 0, "fat": 0 }

"description" is ONLY the food name, no packaging, colours or presentation. Be conservative. Whole numbers."""

FOOD_PHOTO_ITEMS_PROMPT = """Identify EVERY food and item visible in this photo and estimate each one separately.

Return ONLY a JSON object:
{ "items": [{ "description": "Item name", "calories": 0, "protein": 0, "carbs": 0, "fat": 0 }] }

RULES:
- List EACH food individually (rice, beans, chicken, salad, juice)
- "description" is only the short food name
- Include visible drinks and sides
- Be conservative and realistic. Whole numbers only."""

BODY_PHOTO_PROMPT = """Analyse this body photo as a professional personal trainer. Describe:
1. Visual estimate of body fat %
2. Strengths
3. Areas with the most room for improvement
4. Recommended training focus
Be encouraging and constructive. At most 3 paragraphs, plain text (not JSON)."""


def suggest_units_prompt(food) -> str:
    return f"""For the food {json.dumps(food, ensure_ascii=False)}, list the 4 to 6 most common units of measure.
Examples: "milk": ["glass", "cup", "ml", "litre"], "banana": ["unit", "grams"].
Return ONLY a JSON object: {{ "units": ["...", "..."] }}"""


def suggest_foods_prompt(query) -> str:
    return f"""List 6 to 8 common variations of the food {json.dumps(query, ensure_ascii=False)} as they appear in diet apps.
Example for "bread": ["White bread", "Wholegrain bread", "Sliced bread", "Cheese bread"].
Return ONLY a JSON object: {{ "foods": ["...", "..."] }}"""


def exercise_instructions_prompt(exercise_name) -> str:
    return f"""Write execution instructions (2-3 sentences) for the exercise {json.dumps(exercise_name, ensure_ascii=False)}. Be technical and concise. Plain text."""


def chat_prompt(message, context) -> str:
    return f"""You are Pers, the personal trainer assistant of the Personall app.
You are motivating, direct and an expert in fitness and nutrition.

USER CONTEXT (last 15 days):
{context or "No recent activity."}

USER MESSAGE:
{message}

Answer in a useful, motivating and personal way based on the context above. At most 200 words."""
