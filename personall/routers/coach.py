from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from loguru import logger

from personall.core.errors import AllProvidersExhausted
from personall.models.schemas import ChatRequest
from personall.routers.nutrition import read_image
from personall.services import agent_service
from personall.services.orchestrator import FallbackOrchestrator, get_orchestrator

router = APIRouter(
    prefix="/coach",
    tags=["Coach"]
)


@router.post("/chat")
async def chat(request: ChatRequest, orchestrator: FallbackOrchestrator = Depends(get_orchestrator)):
    try:
        reply = await agent_service.assistant_response(orchestrator, request.message, request.context)
        return {"reply": reply}
    except AllProvidersExhausted as e:
        logger.error(f"❌ Coach chat unavailable: {e}")
        raise HTTPException(status_code=503, detail="The assistant is unavailable right now, try again in a moment.")


@router.post("/body-analysis")
async def body_analysis(file: UploadFile = File(...), orchestrator: FallbackOrchestrator = Depends(get_orchestrator)):
    image = await read_image(file)
    return {"analysis": await agent_service.analyze_body_photo(orchestrator, image)}


@router.get("/instructions")
async def instructions(exercise: str, orchestrator: FallbackOrchestrator = Depends(get_orchestrator)):
    return {"exercise": exercise, "instructions": await agent_service.exercise_instructions(orchestrator, exercise)}
