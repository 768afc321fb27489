from typing import List, Optional

from loguru import logger

from personall.core.errors import PersistenceError
from personall.models.schemas import DietPlan, WorkoutPlan
from personall.services.supabase_client import get_supabase


def _deactivate_then_insert(table: str, user_id: str, record: dict, category: Optional[str] = None) -> dict:
    """The user keeps a single active plan per table (and category): switch the old ones off, insert the new one."""
    supabase = get_supabase()
    try:
        query = supabase.table(table).update({"is_active": False}).eq("user_id", user_id).eq("is_active", True)
        if category is not None:
            query = query.eq("category", category)
        query.execute()

        response = supabase.table(table).insert(record).execute()
    except Exception as e:
        raise PersistenceError(f"Exception while saving to {table}: {e}") from e

    if not response.data:
        error_msg = getattr(response, "error", None) or "no row returned"
        raise PersistenceError(f"Database insert into {table} failed: {error_msg}")

    row = response.data[0]
    logger.info(f"✅ Saved {table} row {row.get('id')} for user {user_id}")
    return row


def save_workout_plan(
    user_id: str,
    plan: WorkoutPlan,
    category: str = "musculacao",
    plan_type: str = "ai",
    split_type: Optional[str] = None,
) -> dict:
    """
    Store a workout plan as the user's active plan for its category.

    Args:
        user_id: The UUID of the user
        plan: The plan to store; the whole structure goes into plan_data
        category: Plan category ("musculacao", "cardio", a modality...)
        plan_type: "ai" or "manual"
        split_type: Split the plan was built from, when manual

    Returns:
        The inserted row, including its id

    Raises:
        PersistenceError: the update or insert failed
    """
    record = {
        "user_id": user_id,
        "name": plan.name,
        "description": plan.description,
        "estimated_weeks": plan.estimated_weeks,
        "plan_data": plan.model_dump(mode="json"),
        "is_active": True,
        "category": category,
        "plan_type": plan_type,
        "split_type": split_type,
    }
    return _deactivate_then_insert("workout_plans", user_id, record, category=category)


def save_diet_plan(user_id: str, plan: DietPlan) -> dict:
    record = {
        "user_id": user_id,
        "daily_calories": plan.daily_calories,
        "plan_data": plan.model_dump(mode="json"),
        "is_active": True,
    }
    return _deactivate_then_insert("diet_plans", user_id, record)


def get_active_workout_plan(user_id: str, category: str = "musculacao") -> Optional[dict]:
    """Most recent active workout plan of the category, or None."""
    response = get_supabase().table("workout_plans")\
        .select("*")\
        .eq("user_id", user_id)\
        .eq("category", category)\
        .eq("is_active", True)\
        .order("created_at", desc=True)\
        .limit(1)\
        .execute()

    if response.data:
        return response.data[0]
    return None


def award_points(user_id: str, points: int) -> None:
    """Add gamification points. The add_points RPC is atomic; the table update is the fallback when it's missing."""
    supabase = get_supabase()
    try:
        supabase.rpc("add_points", {"p_user_id": user_id, "p_points": points}).execute()
        return
    except Exception as e:
        logger.warning(f"⚠️ add_points RPC failed ({e}), updating the gamification table directly")

    try:
        response = supabase.table("gamification").select("points").eq("user_id", user_id).execute()
        if response.data:
            current = response.data[0].get("points") or 0
            supabase.table("gamification").update({"points": current + points}).eq("user_id", user_id).execute()
        else:
            supabase.table("gamification").insert({"user_id": user_id, "points": points}).execute()
    except Exception as e:
        raise PersistenceError(f"Could not award points to {user_id}: {e}") from e


def load_exercise_pool(limit: int = 100) -> List[dict]:
    """Exercise rows for the manual plan builder. An unreachable database gives an empty pool."""
    try:
        response = get_supabase().table("exercises")\
            .select("*")\
            .limit(limit)\
            .execute()
        return response.data or []
    except Exception as e:
        logger.warning(f"⚠️ Could not load the exercise pool: {e}")
        return []
