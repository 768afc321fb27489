"""
Workout plans built locally, without any model call.

Used for the "manual" plan flow and as the safety net when every AI
provider is down. The output has exactly the shape the AI path produces.
"""
import unicodedata
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from loguru import logger

from personall.models.schemas import (
    ExercisePlan,
    NutritionProfileInput,
    WorkoutDay,
    WorkoutPlan,
    WorkoutWeek,
)

PLAN_WEEKS = 4
EXERCISES_PER_TARGET = 2
PLACEHOLDER_EXERCISE_ID = "0001"

FULL_BODY = "Full Body"

# Muscle targets trained on each successive training day
SPLIT_PATTERNS = {
    FULL_BODY: [
        ["chest", "back", "legs", "shoulders", "arms"],
        ["chest", "back", "legs", "shoulders", "arms"],
        ["chest", "back", "legs", "shoulders", "arms"],
    ],
    "Push/Pull/Legs": [
        ["chest", "shoulders", "triceps"],
        ["back", "biceps"],
        ["legs", "core"],
    ],
    "Upper/Lower": [
        ["chest", "back", "shoulders", "arms"],
        ["legs", "core"],
    ],
    "Bro Split": [
        ["chest"],
        ["back"],
        ["legs"],
        ["shoulders"],
        ["arms", "core"],
    ],
}

# Calendar order of the 7 days in every week
WEEKDAYS = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

_WEEKDAY_ALIASES = {
    "sun": 0, "domingo": 0,
    "mon": 1, "segunda": 1, "segunda-feira": 1,
    "tue": 2, "terca": 2, "terca-feira": 2,
    "wed": 3, "quarta": 3, "quarta-feira": 3,
    "thu": 4, "quinta": 4, "quinta-feira": 4,
    "fri": 5, "sexta": 5, "sexta-feira": 5,
    "sat": 6, "sabado": 6,
}
_WEEKDAY_ALIASES.update({name: index for index, name in enumerate(WEEKDAYS)})

CARDIO_LABELS = {
    "corrida": "Running",
    "bike": "Cycling",
    "natacao": "Swimming",
    "jump": "Jump",
    "eliptico": "Elliptical",
    "caminhada": "Walking",
    "remo": "Rowing",
    "aerobica": "Aerobics",
    "outro": "Cardio",
}

POOL_COLUMNS = ("id", "name", "body_part", "target", "equipment")

ExercisePool = Union[pd.DataFrame, Iterable[dict]]


def weekday_index(name: str) -> Optional[int]:
    """0 for Sunday ... 6 for Saturday. English or Portuguese, any case, accents optional."""
    normalized = unicodedata.normalize("NFKD", name.strip().lower())
    normalized = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    return _WEEKDAY_ALIASES.get(normalized)


def active_weekdays(active_days: Sequence[str]) -> set:
    indices = set()
    for name in active_days:
        index = weekday_index(name)
        if index is None:
            logger.warning(f"Ignoring unknown weekday: {name!r}")
            continue
        indices.add(index)
    return indices


def sets_and_reps(experience: str) -> Tuple[int, str, int]:
    """(sets, reps, rest_seconds) applied to every exercise of the plan."""
    if experience == "beginner":
        return 3, "12-15", 90
    elif experience == "advanced":
        return 4, "8-12", 60
    return 3, "10-12", 60


def resolve_split(split_type: str, active_day_count: int) -> Tuple[str, List[List[str]]]:
    """
    Split name and target pattern actually used.

    Unknown splits fall back to Full Body. Two training days or fewer are not
    enough for anything finer than Full Body, so the split is swapped and the
    name says so.
    """
    if split_type not in SPLIT_PATTERNS:
        split_type = FULL_BODY
    if active_day_count <= 2 and split_type != FULL_BODY:
        return f"{FULL_BODY} (Adapted)", SPLIT_PATTERNS[FULL_BODY]
    return split_type, SPLIT_PATTERNS[split_type]


def exercise_pool_frame(pool: Optional[ExercisePool]) -> pd.DataFrame:
    """Normalise an exercise pool (Supabase rows or ExerciseDB items) into a string-typed DataFrame."""
    if pool is None:
        frame = pd.DataFrame()
    elif isinstance(pool, pd.DataFrame):
        frame = pool.copy()
    else:
        frame = pd.DataFrame(list(pool))

    # ExerciseDB spells it bodyPart; when both spellings exist, body_part wins and gaps come from bodyPart
    if "bodyPart" in frame.columns:
        if "body_part" in frame.columns:
            frame["body_part"] = frame["body_part"].fillna(frame["bodyPart"])
            frame = frame.drop(columns=["bodyPart"])
        else:
            frame = frame.rename(columns={"bodyPart": "body_part"})
    for column in POOL_COLUMNS:
        if column not in frame.columns:
            frame[column] = ""
    frame[list(POOL_COLUMNS)] = frame[list(POOL_COLUMNS)].fillna("").astype(str)
    return frame.reset_index(drop=True)


def matching_exercises(frame: pd.DataFrame, target: str, location: str) -> pd.DataFrame:
    """Exercises whose body part, target or name mentions the muscle group and that fit the location."""
    if frame.empty:
        return frame

    matches = (
        frame["body_part"].str.lower().str.contains(target, regex=False)
        | frame["target"].str.lower().str.contains(target, regex=False)
        | frame["name"].str.lower().str.contains(target, regex=False)
    )
    if location == "home":
        equipment = frame["equipment"].str.lower()
        matches &= (equipment == "body weight") | equipment.str.contains("band", regex=False)
    return frame[matches]


def _pick(candidates: pd.DataFrame, rng: Optional[np.random.Generator]) -> pd.DataFrame:
    # no seed: first matches in pool order, so the same pool always gives the same plan
    if rng is None:
        return candidates.head(EXERCISES_PER_TARGET)
    return candidates.sample(n=min(EXERCISES_PER_TARGET, len(candidates)), random_state=rng)


def _rest_day(day: int) -> WorkoutDay:
    return WorkoutDay(day=day, name="Rest", type="rest", exercises=[])


def _training_day(day, targets, frame, location, prescription, rng) -> WorkoutDay:
    sets, reps, rest = prescription
    exercises = []

    for target in targets:
        selected = _pick(matching_exercises(frame, target, location), rng)
        for row in selected.itertuples(index=False):
            exercises.append(ExercisePlan(
                exercise_id=row.id,
                name=row.name,
                sets=sets,
                reps=reps,
                rest_seconds=rest,
            ))

    targets_label = ", ".join(targets)
    if not exercises:
        # empty pool or nothing matched: an active day is never left empty
        exercises.append(ExercisePlan(
            exercise_id=PLACEHOLDER_EXERCISE_ID,
            name=f"{targets_label} (generic)",
            sets=sets,
            reps=reps,
            rest_seconds=rest,
        ))

    return WorkoutDay(day=day, name=f"Workout: {targets_label.upper()}", type="strength", exercises=exercises)


def generate_client_side(
    profile: NutritionProfileInput,
    split_type: str,
    active_days: Sequence[str],
    location: str,
    pool: Optional[ExercisePool] = None,
    *,
    seed: Optional[int] = None,
) -> WorkoutPlan:
    """
    Build a 4-week plan from a split, the training weekdays and an exercise pool.

    Args:
        profile: User profile; only experience_level is used.
        split_type: "Full Body", "Push/Pull/Legs", "Upper/Lower" or "Bro Split".
        active_days: Weekday names the user trains on.
        location: "home" restricts exercises to body weight / bands.
        pool: Candidate exercises with id, name, body_part (or bodyPart), target, equipment.
        seed: Pick matches at random, reproducibly. None takes the first matches.

    Returns:
        A WorkoutPlan with 4 weeks of 7 days each.
    """
    training_days = active_weekdays(active_days)
    split_name, pattern = resolve_split(split_type, len(training_days))
    prescription = sets_and_reps(profile.experience_level)
    frame = exercise_pool_frame(pool)
    rng = np.random.default_rng(seed) if seed is not None else None

    if frame.empty:
        logger.warning("Exercise pool is empty, every training day gets a generic exercise")

    weeks = []
    split_index = 0
    for week_number in range(1, PLAN_WEEKS + 1):
        days = []
        for weekday in range(len(WEEKDAYS)):
            day_number = weekday + 1
            if weekday not in training_days:
                days.append(_rest_day(day_number))
                continue

            targets = pattern[split_index % len(pattern)]
            days.append(_training_day(day_number, targets, frame, location, prescription, rng))
            split_index += 1
        weeks.append(WorkoutWeek(week=week_number, days=days))

    location_label = "Home" if location == "home" else "Gym"
    day_names = ", ".join(WEEKDAYS[index].capitalize() for index in sorted(training_days)) or "none"
    return WorkoutPlan(
        name=f"Plan {split_name} - {location_label}",
        description=f"{split_name} split, {len(training_days)} training day(s) per week: {day_names}.",
        estimated_weeks=PLAN_WEEKS,
        weeks=weeks,
    )


def _timed_plan(label: str, day_type: str, active_days: Sequence[str], minutes: int) -> List[WorkoutWeek]:
    training_days = active_weekdays(active_days)
    weeks = []
    for week_number in range(1, PLAN_WEEKS + 1):
        days = []
        for weekday in range(len(WEEKDAYS)):
            if weekday not in training_days:
                days.append(_rest_day(weekday + 1))
                continue
            days.append(WorkoutDay(
                day=weekday + 1,
                name=label,
                type=day_type,
                exercises=[ExercisePlan(
                    exercise_id=PLACEHOLDER_EXERCISE_ID,
                    name=label,
                    sets=1,
                    reps=f"{minutes} min",
                    duration_minutes=minutes,
                    instructions=f"Do {minutes} minutes of {label.lower()} at a moderate pace.",
                )],
            ))
        weeks.append(WorkoutWeek(week=week_number, days=days))
    return weeks


def build_cardio_plan(cardio_type: str, active_days: Sequence[str], minutes: int) -> WorkoutPlan:
    """Manual cardio plan: the same session on every training day for 4 weeks."""
    label = CARDIO_LABELS.get(cardio_type, cardio_type.strip().title() or "Cardio")
    return WorkoutPlan(
        name=f"{label} - Manual",
        description=f"{minutes} minutes of {label.lower()} per session.",
        estimated_weeks=PLAN_WEEKS,
        weeks=_timed_plan(label, "cardio", active_days, minutes),
    )


def build_modality_plan(modality_name: str, active_days: Sequence[str], minutes: int) -> WorkoutPlan:
    label = modality_name.strip() or "Training"
    return WorkoutPlan(
        name=f"{label} - Manual",
        description=f"{minutes} minutes of {label} per session.",
        estimated_weeks=PLAN_WEEKS,
        weeks=_timed_plan(label, "strength", active_days, minutes),
    )
