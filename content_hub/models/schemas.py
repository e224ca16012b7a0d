"""Pydantic models for request/response schemas."""

from typing import Any

from pydantic import BaseModel, Field

from content_hub.models.plan import ContentPlan


class ChatTurn(BaseModel):
    """Chat message as exchanged with the assistant endpoint."""

    role: str = Field(..., description="Message role: 'user' or 'assistant'")
    content: str = Field(..., description="Message content")


class ChatRequest(BaseModel):
    """Chat request model."""

    message: str = Field(..., min_length=1, description="User message")
    conversation_id: str | None = Field(None, description="Optional conversation ID for context")


class AssistantRequest(BaseModel):
    """Body of the assistant endpoint."""

    messages: list[ChatTurn] = Field(..., description="Conversation so far, oldest first")
    siteContent: dict[str, Any] | None = Field(None, description="Current site summary")


class PlanRequest(BaseModel):
    """A plan sent back for review, saving or execution."""

    plan: ContentPlan = Field(..., description="Plan with any review edits applied")
    conversation_id: str | None = Field(None, description="Conversation that produced the plan")


class EditRequest(BaseModel):
    """Edit one payload field of one plan action."""

    plan: ContentPlan
    index: int = Field(..., ge=0, description="Position of the action in the plan")
    field: str = Field(..., min_length=1, description="Column to edit")
    value: str = Field(..., description="New value as typed")


class SavedPlanResponse(BaseModel):
    """Response for a plan saved for later."""

    plan_id: str = Field(..., description="ID of the saved plan record")


class RevertResponse(BaseModel):
    """Response for a plan revert."""

    plan_id: str
    reverted: int = Field(..., description="Number of changes undone")


class MediaUploadResponse(BaseModel):
    """Response for an uploaded media object."""

    bucket: str
    path: str
    url: str
