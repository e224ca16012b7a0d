"""Database models for conversations, plans and change history."""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from content_hub.models.plan import ContentPlan


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


class ChatMessage(BaseModel):
    """One message of a chat transcript."""

    role: Literal["user", "assistant"] = Field(..., description="Message role")
    content: str = Field("", description="Message content")
    timestamp: str = Field(default_factory=utc_now, description="ISO-8601 timestamp")
    plans: list[ContentPlan] | None = Field(None, description="Plans attached to the message")

    def to_record(self) -> dict[str, str]:
        """Transcript form stored on the conversation row (plans excluded)."""
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp}


class Conversation(BaseModel):
    """Conversation model."""

    id: str = Field(..., description="Conversation ID")
    title: str = Field("New Conversation", description="Title derived from the first message")
    messages: list[ChatMessage] = Field(default_factory=list)
    created_at: datetime | None = Field(None, description="Creation timestamp")
    updated_at: datetime | None = Field(None, description="Last update timestamp")


class PlanRecord(BaseModel):
    """Row of the ai_content_plans table."""

    id: str = Field(..., description="Plan ID")
    title: str = Field("", description="Plan title")
    description: str | None = Field(None, description="Plan summary")
    actions: list[dict[str, Any]] = Field(default_factory=list)
    conversation_id: str | None = Field(None, description="Originating conversation")
    status: str = Field(..., description="saved, executed, failed or reverted")
    executed_at: datetime | None = Field(None, description="Execution timestamp")
    created_at: datetime | None = Field(None, description="Creation timestamp")


class ChangeRecord(BaseModel):
    """Row of the ai_change_history table."""

    id: str = Field(..., description="Change ID")
    plan_id: str = Field(..., description="Plan that applied the change")
    action_type: Literal["create", "update", "delete"]
    table_name: str
    record_id: str | None = None
    previous_data: dict[str, Any] | None = None
    new_data: dict[str, Any] | None = None
    reverted: bool = False
    created_at: datetime | None = None
