from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from personall.models.schemas import FoodTextRequest
from personall.services import agent_service
from personall.services.orchestrator import FallbackOrchestrator, get_orchestrator
from personall.services.providers import ImagePayload

router = APIRouter(
    prefix="/nutrition",
    tags=["Nutrition"]
)


async def read_image(file: UploadFile) -> ImagePayload:
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Empty image upload")
    return ImagePayload(data=data, mime_type=file.content_type or "image/jpeg")


@router.post("/analyze-text")
async def analyze_text(request: FoodTextRequest, orchestrator: FallbackOrchestrator = Depends(get_orchestrator)):
    if not request.description.strip():
        raise HTTPException(status_code=400, detail="Describe what you ate")
    items = await agent_service.analyze_food_text(orchestrator, request.description)
    return {"items": [item.model_dump() for item in items]}


@router.post("/analyze-photo")
async def analyze_photo(
    file: UploadFile = File(...),
    items: bool = Query(False, description="Analyse every item on the plate separately"),
    orchestrator: FallbackOrchestrator = Depends(get_orchestrator),
):
    image = await read_image(file)
    if items:
        results = await agent_service.analyze_food_photo_items(orchestrator, image)
        return {"items": [item.model_dump() for item in results]}
    result = await agent_service.analyze_food_photo(orchestrator, image)
    return result.model_dump()


@router.get("/units")
async def units(food: str, orchestrator: FallbackOrchestrator = Depends(get_orchestrator)):
    return {"units": await agent_service.suggest_units(orchestrator, food)}


@router.get("/foods")
async def foods(query: str, orchestrator: FallbackOrchestrator = Depends(get_orchestrator)):
    return {"foods": await agent_service.suggest_foods(orchestrator, query)}
