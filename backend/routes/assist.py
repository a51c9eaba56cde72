"""
AI assist route - improves a single form field through the text agent.
"""

from fastapi import APIRouter, HTTPException
import logging

from config import AI_MODELS, MAX_CONTENT_CHARS
from agents.assistant import AssistantAgent
from models import AIAssistRequest, AIAssistResponse
from services.text_utils import validate_content_size

logger = logging.getLogger(__name__)
assist_router = APIRouter(prefix="/api", tags=["AI Assist"])


@assist_router.get("/ai-models")
async def list_ai_models():
    return [{"key": key, **{k: v for k, v in model.items() if k != "id"}} for key, model in AI_MODELS.items()]


@assist_router.post("/ai-assist", response_model=AIAssistResponse)
async def ai_assist(request: AIAssistRequest):
    """Return an improved value for one form field."""
    try:
        validate_content_size(request.current_value, MAX_CONTENT_CHARS)
    except ValueError as e:
        raise HTTPException(status_code=413, detail=str(e))

    if request.ai_model and request.ai_model not in AI_MODELS:
        raise HTTPException(status_code=400, detail=f"Unknown AI model: {request.ai_model}")

    agent = AssistantAgent(request.ai_model)
    improved = await agent.improve_field(request.field_name, request.current_value, request.context)
    logger.info(f"Improved field '{request.field_name}' with {request.ai_model or 'default model'}")
    return AIAssistResponse(success=True, improved_value=improved)
