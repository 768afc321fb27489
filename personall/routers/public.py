from fastapi import APIRouter, HTTPException

from personall.models.schemas import CalorieTargets, NutritionProfileInput
from personall.models.user_logic import calorie_targets

router = APIRouter(
    prefix="/public",
    tags=["public"]
)


@router.post("/calculate-targets", response_model=CalorieTargets)
def calculate_targets(profile: NutritionProfileInput):
    """BMR, TDEE, goal calories, macro grams and water for a profile. No login, no model call."""
    try:
        return calorie_targets(profile)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"An error occurred: {str(e)}")
