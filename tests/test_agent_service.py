import json

import pytest

from personall.core.errors import AllProvidersExhausted
from personall.services import agent_service
from personall.services.diet_generator import generate_diet_client_side
from personall.services.providers import ImagePayload

IMAGE = ImagePayload(data=b"\xff\xd8\xff", mime_type="image/jpeg")


# ---------------------------------------------------------------------------
# Defaults when no provider answers
# ---------------------------------------------------------------------------

async def test_workout_plan_default_is_the_starter_plan(offline_orchestrator, profile):
    plan = await agent_service.generate_workout_plan(offline_orchestrator, profile, ["monday"])

    assert plan.name == "Starter Plan - 4 weeks"
    assert plan.estimated_weeks == 4
    ids = {e.exercise_id for day in plan.weeks[0].days for e in day.exercises}
    assert ids == {"0009", "0685"}


def test_starter_plan_days_do_not_share_exercises():
    plan = agent_service.default_workout_plan()
    tuesday, thursday = plan.weeks[0].days[1], plan.weeks[0].days[3]

    assert tuesday.exercises[0] is not thursday.exercises[0]
    tuesday.exercises[0].name = "Diamond push-up"
    assert thursday.exercises[0].name == "Push-up"
    assert agent_service.default_workout_plan().weeks[0].days[1].exercises[0].name == "Push-up"


async def test_single_day_default_is_none(offline_orchestrator, profile):
    assert await agent_service.generate_workout_single_day(offline_orchestrator, profile, "Monday", 30, "home") is None


async def test_diet_default_is_the_local_plan(offline_orchestrator, profile):
    plan = await agent_service.generate_diet_plan(offline_orchestrator, profile)
    assert plan == generate_diet_client_side(profile)
    assert len(plan.meals) == 4


async def test_food_defaults(offline_orchestrator):
    items = await agent_service.analyze_food_text(offline_orchestrator, "two eggs")
    assert [item.model_dump() for item in items] == [
        {"description": "two eggs", "calories": 0, "protein": 0, "carbs": 0, "fat": 0, "unit_weight": None}
    ]

    photo = await agent_service.analyze_food_photo(offline_orchestrator, IMAGE)
    assert photo.description == "Unidentified meal"
    assert photo.calories == 0

    photo_items = await agent_service.analyze_food_photo_items(offline_orchestrator, IMAGE)
    assert [item.description for item in photo_items] == ["Meal"]


async def test_text_defaults(offline_orchestrator):
    assert await agent_service.suggest_units(offline_orchestrator, "milk") == ["unit", "grams", "portion"]
    assert await agent_service.suggest_foods(offline_orchestrator, "bread") == []
    assert await agent_service.exercise_instructions(offline_orchestrator, "Squat") == ""
    assert await agent_service.analyze_body_photo(offline_orchestrator, IMAGE) == agent_service.BODY_ANALYSIS_UNAVAILABLE


async def test_chat_has_no_default(offline_orchestrator):
    with pytest.raises(AllProvidersExhausted):
        await agent_service.assistant_response(offline_orchestrator, "How do I lose weight?")


# ---------------------------------------------------------------------------
# Model answers
# ---------------------------------------------------------------------------

async def test_workout_plan_from_fenced_and_sloppy_json(make_orchestrator, profile):
    answer = {
        "name": "Hypertrophy Block",
        "estimated_weeks": 4,
        "weeks": [{"week": 1, "days": [
            {"day": 1, "name": "HIIT", "type": "hiit", "exercises": [{"exercise_id": 9, "name": "Burpee", "sets": "x"}]},
            {"day": 2, "name": "Rest", "type": "rest", "exercises": []},
        ]}],
    }
    orchestrator = make_orchestrator(gemini={"g1": "```json\n" + json.dumps(answer) + "\n```"})

    plan = await agent_service.generate_workout_plan(orchestrator, profile)

    assert plan.name == "Hypertrophy Block"
    day = plan.weeks[0].days[0]
    assert day.type == "strength"
    assert day.exercises[0].exercise_id == "9"
    assert day.exercises[0].sets == 3


async def test_workout_plan_without_weeks_uses_starter_plan(make_orchestrator, profile):
    orchestrator = make_orchestrator(gemini={"g1": '{"name": "Empty", "weeks": []}'})
    plan = await agent_service.generate_workout_plan(orchestrator, profile)
    assert plan.name == "Starter Plan - 4 weeks"


async def test_workout_plan_survives_null_fields(make_orchestrator, profile):
    answer = {
        "name": "Null Heavy Block",
        "description": None,
        "estimated_weeks": None,
        "weeks": [{"week": "Week 1", "days": [
            {"day": 1, "name": None, "type": "strength", "exercises": None},
            {"day": "Day 2", "name": "Legs", "type": "strength",
             "exercises": [{"exercise_id": "0043", "name": None, "reps": None, "instructions": None}]},
        ]}],
    }
    orchestrator = make_orchestrator(gemini={"g1": json.dumps(answer)})

    plan = await agent_service.generate_workout_plan(orchestrator, profile)

    assert plan.name == "Null Heavy Block"
    assert plan.description == ""
    assert plan.estimated_weeks == 4
    week = plan.weeks[0]
    assert week.week == 1
    assert week.days[0].name == ""
    assert week.days[0].exercises == []
    assert week.days[1].day == 2
    exercise = week.days[1].exercises[0]
    assert exercise.exercise_id == "0043"
    assert exercise.name == "Exercise"
    assert exercise.reps == "10-12"
    assert exercise.instructions is None


async def test_workout_plan_with_null_weeks_uses_starter_plan(make_orchestrator, profile):
    orchestrator = make_orchestrator(gemini={"g1": '{"name": "Nothing", "weeks": null}'})
    plan = await agent_service.generate_workout_plan(orchestrator, profile)
    assert plan.name == "Starter Plan - 4 weeks"


async def test_unparseable_answer_falls_back_to_default(make_orchestrator, profile):
    orchestrator = make_orchestrator(gemini={"g1": "I cannot do that"})
    plan = await agent_service.generate_workout_plan(orchestrator, profile)
    assert plan.name == "Starter Plan - 4 weeks"


async def test_single_day_regeneration(make_orchestrator, profile):
    answer = '{"day": 2, "name": "Quick HIIT", "type": "cardio", "exercises": [{"exercise_id": "3214", "name": "Burpee"}]}'
    orchestrator = make_orchestrator(gemini={"g1": answer})

    day = await agent_service.generate_workout_single_day(orchestrator, profile, "Monday", 20, "home", ["Squat"])

    assert day.name == "Quick HIIT"
    assert day.exercises[0].exercise_id == "3214"
    assert "Squat" in orchestrator.transports["gemini"].prompts[0]


async def test_single_day_without_exercises_is_none(make_orchestrator, profile):
    orchestrator = make_orchestrator(gemini={"g1": '{"day": 1, "name": "Legs", "type": "strength", "exercises": []}'})
    assert await agent_service.generate_workout_single_day(orchestrator, profile, "Monday", 45, "gym") is None


async def test_diet_plan_fills_missing_calories(make_orchestrator, profile):
    answer = {
        "macros": {"protein": "150g", "carbs": 250, "fat": 70},
        "meals": [
            {"type": "Breakfast", "time": "07:00", "calories": "500 kcal", "options": ["Eggs"]},
            {"type": "Lunch", "time": "12:00", "calories": 700, "options": []},
        ],
        "tips": ["Sleep well"],
    }
    orchestrator = make_orchestrator(gemini={"g1": json.dumps(answer)})

    plan = await agent_service.generate_diet_plan(orchestrator, profile)

    assert plan.daily_calories == 2759
    assert plan.macros.protein == 150
    # meals without options are dropped
    assert [(meal.type, meal.calories) for meal in plan.meals] == [("Breakfast", 500)]


async def test_food_text_accepts_wrapped_and_bare_arrays(make_orchestrator):
    wrapped = '{"items": [{"description": "Egg", "calories": "78kcal", "protein": 6, "carbs": 0, "fat": 5, "unit_weight": 50}]}'
    bare = '[{"description": "Rice", "calories": 200}, "junk", {"calories": 90}]'
    orchestrator = make_orchestrator(gemini={"g1": wrapped}, openai={"o1": bare})

    items = await agent_service.analyze_food_text(orchestrator, "one egg")
    assert items[0].description == "Egg"
    assert items[0].calories == 78
    assert items[0].unit_weight == 50

    orchestrator = make_orchestrator(openai={"o1": bare})
    items = await agent_service.analyze_food_text(orchestrator, "rice and beans")
    assert [(item.description, item.calories) for item in items] == [("Rice", 200), ("rice and beans", 90)]


async def test_food_photo_single_object(make_orchestrator):
    orchestrator = make_orchestrator(gemini={"g1": '{"description": "Banana", "calories": 105, "carbs": 27}'})

    result = await agent_service.analyze_food_photo(orchestrator, IMAGE)

    assert (result.description, result.calories, result.carbs) == ("Banana", 105, 27)
    assert orchestrator.transports["gemini"].images == [IMAGE]


async def test_units_and_foods_accept_both_shapes(make_orchestrator):
    orchestrator = make_orchestrator(gemini={"g1": '{"units": ["glass", "ml", 3]}'})
    assert await agent_service.suggest_units(orchestrator, "milk") == ["glass", "ml"]

    orchestrator = make_orchestrator(gemini={"g1": '["White bread", "Wholegrain bread"]'})
    assert await agent_service.suggest_foods(orchestrator, "bread") == ["White bread", "Wholegrain bread"]


async def test_text_answers_are_stripped(make_orchestrator):
    orchestrator = make_orchestrator(gemini={"g1": "  Keep your chest up.\n"})
    assert await agent_service.exercise_instructions(orchestrator, "Squat") == "Keep your chest up."

    orchestrator = make_orchestrator(gemini={"g1": "You got this!"})
    assert await agent_service.assistant_response(orchestrator, "motivate me", "3 workouts") == "You got this!"
