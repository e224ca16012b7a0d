"""Conversation management routes."""

from fastapi import APIRouter, Depends, Query

from content_hub.dependencies import get_conversation_service
from content_hub.models.database import Conversation
from content_hub.services.conversation_service import ConversationService

router = APIRouter()


@router.get("/conversations")
async def list_conversations(
    limit: int = Query(20, ge=1, le=100),
    conversation_service: ConversationService = Depends(get_conversation_service),
):
    """
    List recent conversations, most recently updated first.

    Args:
        limit: Maximum number of conversations
        conversation_service: Conversation service instance (dependency injection)

    Returns:
        Conversations without their transcripts
    """
    conversations = conversation_service.list_conversations(limit=limit)
    return {
        "conversations": [
            conversation.model_dump(mode="json", exclude={"messages"})
            for conversation in conversations
        ]
    }


@router.get("/conversations/{conversation_id}", response_model=Conversation)
async def get_conversation(
    conversation_id: str,
    conversation_service: ConversationService = Depends(get_conversation_service),
):
    """Get a conversation with its transcript."""
    return conversation_service.get_conversation(conversation_id)


@router.delete("/conversations/{conversation_id}")
async def delete_conversation(
    conversation_id: str,
    conversation_service: ConversationService = Depends(get_conversation_service),
):
    """
    Delete a conversation.

    Args:
        conversation_id: Conversation ID to delete
        conversation_service: Conversation service instance (dependency injection)

    Returns:
        Success status
    """
    conversation_service.delete_conversation(conversation_id)
    return {"success": True}
