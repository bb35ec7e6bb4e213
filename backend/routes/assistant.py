"""
Assistant Routes
Question answering over the stored QA data
"""
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
import logging

from query_client import DatabaseClient
from routes.dependencies import get_db
from routes.store import error_response
from services.assistant_service import AssistantService
from services.metrics_service import MetricsService
from services.parts_service import PartsService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/assistant", tags=["assistant"])


class ChatRequest(BaseModel):
    question: str = Field(..., min_length=1)


def get_assistant(request: Request) -> AssistantService:
    """One assistant per app; created on first use"""
    assistant = getattr(request.app.state, "assistant", None)
    if assistant is None:
        assistant = AssistantService()
        request.app.state.assistant = assistant
    return assistant


@router.post("/chat")
async def chat(
    body: ChatRequest,
    db: DatabaseClient = Depends(get_db),
    assistant: AssistantService = Depends(get_assistant),
):
    try:
        parts_service = PartsService(db)
        parts = await parts_service.fetch_grouped("open") + await parts_service.fetch_grouped("corrected")
        reports = await MetricsService(db).upload_history()

        answer = await assistant.answer(body.question, [part.to_dict() for part in parts], reports)
        return {"answer": answer}
    except Exception as e:
        logger.error(f"Assistant chat failed: {e}")
        return error_response(e)
