from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from loguru import logger

from personall.models.schemas import (
    DietPlanRequest,
    ManualCardioRequest,
    ManualWorkoutRequest,
    SessionCompleteRequest,
    SingleDayRequest,
    WorkoutPlanRequest,
)
from personall.services import agent_service
from personall.services.diet_generator import generate_diet_client_side
from personall.services.orchestrator import FallbackOrchestrator, get_orchestrator
from personall.services.workout_generator import (
    build_cardio_plan,
    build_modality_plan,
    generate_client_side,
)
from personall.tools.database_tools import (
    award_points,
    get_active_workout_plan,
    load_exercise_pool,
    save_diet_plan,
    save_workout_plan,
)

router = APIRouter(
    prefix="/plans",
    tags=["Plans"]
)

# Gamification points per finished session
SESSION_POINTS = {
    ("workout", True): 150,
    ("workout", False): 75,
    ("cardio", True): 50,
    ("cardio", False): 50,
}


def _response(plan, saved: Optional[dict] = None) -> dict:
    return {
        "status": "success",
        "plan": plan.model_dump(mode="json"),
        "plan_id": saved.get("id") if saved else None,
    }


@router.post("/workout")
async def create_workout_plan(request: WorkoutPlanRequest, orchestrator: FallbackOrchestrator = Depends(get_orchestrator)):
    """AI workout plan; the starter plan when no model is available. Stored as active when user_id is given."""
    try:
        logger.info(f"📋 Generating workout plan ({request.profile.goal}, {len(request.active_days)} active days)")
        plan = await agent_service.generate_workout_plan(orchestrator, request.profile, request.active_days)

        saved = None
        if request.user_id:
            saved = await run_in_threadpool(save_workout_plan, request.user_id, plan)
        return _response(plan, saved)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Error generating workout plan: {e}")
        raise HTTPException(status_code=500, detail=f"Error generating workout plan: {str(e)}")


@router.post("/workout/manual")
def create_manual_workout_plan(request: ManualWorkoutRequest):
    try:
        pool = load_exercise_pool()
        plan = generate_client_side(
            request.profile,
            request.split_type,
            request.active_days,
            request.profile.training_location,
            pool,
            seed=request.seed,
        )

        saved = None
        if request.user_id:
            saved = save_workout_plan(request.user_id, plan, plan_type="manual", split_type=request.split_type)
        return _response(plan, saved)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Error building manual workout plan: {e}")
        raise HTTPException(status_code=500, detail=f"Error building manual workout plan: {str(e)}")


@router.post("/workout/day")
async def regenerate_workout_day(request: SingleDayRequest, orchestrator: FallbackOrchestrator = Depends(get_orchestrator)):
    day = await agent_service.generate_workout_single_day(
        orchestrator,
        request.profile,
        request.day_name,
        request.available_minutes,
        request.location,
        request.avoid_exercises,
    )
    if day is None:
        raise HTTPException(status_code=502, detail=f"Could not generate a new workout for {request.day_name}")
    return {"status": "success", "day": day.model_dump(mode="json")}


@router.post("/cardio/manual")
def create_cardio_plan(request: ManualCardioRequest):
    try:
        plan = build_cardio_plan(request.name, request.active_days, request.minutes)
        saved = None
        if request.user_id:
            saved = save_workout_plan(request.user_id, plan, category="cardio", plan_type="manual")
        return _response(plan, saved)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error building cardio plan: {str(e)}")


@router.post("/modality/manual")
def create_modality_plan(request: ManualCardioRequest):
    try:
        plan = build_modality_plan(request.name, request.active_days, request.minutes)
        saved = None
        if request.user_id:
            saved = save_workout_plan(request.user_id, plan, category=request.name.strip().lower(), plan_type="manual")
        return _response(plan, saved)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error building modality plan: {str(e)}")


@router.post("/diet")
async def create_diet_plan(request: DietPlanRequest, orchestrator: FallbackOrchestrator = Depends(get_orchestrator)):
    try:
        plan = await agent_service.generate_diet_plan(orchestrator, request.profile)
        saved = None
        if request.user_id:
            saved = await run_in_threadpool(save_diet_plan, request.user_id, plan)
        return _response(plan, saved)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Error generating diet plan: {e}")
        raise HTTPException(status_code=500, detail=f"Error generating diet plan: {str(e)}")


@router.post("/diet/manual")
def create_manual_diet_plan(request: DietPlanRequest):
    try:
        plan = generate_diet_client_side(request.profile)
        saved = None
        if request.user_id:
            saved = save_diet_plan(request.user_id, plan)
        return _response(plan, saved)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error building diet plan: {str(e)}")


@router.get("/current/{user_id}")
def read_current_workout_plan(user_id: str, category: str = "musculacao"):
    """Active workout plan of the category for the user."""
    try:
        row = get_active_workout_plan(user_id, category)
        if row is None:
            raise HTTPException(status_code=404, detail="No active workout plan found for this user.")
        return row

    except HTTPException as he:
        raise he
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"An error occurred while retrieving the workout plan: {str(e)}"
        )


@router.post("/sessions/complete")
def complete_session(request: SessionCompleteRequest):
    """Credit the points for a finished workout or cardio session."""
    points = SESSION_POINTS[(request.kind, request.completed)]
    try:
        award_points(request.user_id, points)
        logger.info(f"✅ {points} points for user {request.user_id} ({request.kind})")
        return {"status": "success", "points_earned": points}
    except Exception as e:
        logger.error(f"❌ Could not award points: {e}")
        raise HTTPException(status_code=500, detail=f"Could not award points: {str(e)}")
