"""Chat streaming routes."""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from fastapi.security import HTTPAuthorizationCredentials

from content_hub.dependencies import get_chat_service, get_suggestion_service
from content_hub.models.schemas import ChatRequest
from content_hub.security import bearer_scheme
from content_hub.services.chat_service import ChatService
from content_hub.services.suggestion_service import SuggestionService

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable buffering in nginx
}


@router.post("/chat")
async def chat_stream(
    request: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
):
    """
    Chat endpoint with Server-Sent Events (SSE) streaming.

    Args:
        request: ChatRequest with user message and optional conversation_id
        chat_service: Chat service instance (dependency injection)
        credentials: Caller's bearer token, forwarded to the assistant endpoint

    Returns:
        StreamingResponse with SSE format
    """
    return StreamingResponse(
        chat_service.stream_chat_response(
            message=request.message,
            conversation_id=request.conversation_id,
            access_token=credentials.credentials if credentials else None,
        ),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("/chat/quick-actions")
async def quick_actions(
    suggestion_service: SuggestionService = Depends(get_suggestion_service),
):
    """Canned prompts for an empty chat."""
    return {"quick_actions": suggestion_service.get_quick_actions()}
