"""Content plan and content action models."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from content_hub.models.tables import ContentTable, get_schema

ActionType = Literal["create", "update", "delete"]


class _ActionBase(BaseModel):
    """Fields shared by every action variant."""

    model_config = ConfigDict(extra="forbid")

    table: ContentTable = Field(..., description="Target content table")
    description: str = Field("", description="Human-readable description of this action")

    @model_validator(mode="before")
    @classmethod
    def _drop_placeholders(cls, values: Any) -> Any:
        # Models emit null or empty placeholders for fields that do not apply
        if isinstance(values, dict):
            return {key: value for key, value in values.items() if value not in (None, "", {})}
        return values

    @property
    def payload(self) -> dict[str, Any]:
        return getattr(self, "data", None) or {}

    @property
    def target_id(self) -> str | None:
        return getattr(self, "record_id", None)


class CreateAction(_ActionBase):
    """Insert a new row built from `data`."""

    type: Literal["create"] = "create"
    data: dict[str, Any] = Field(..., min_length=1, description="Fields of the new row")

    @model_validator(mode="after")
    def _check_payload(self) -> "CreateAction":
        get_schema(self.table).validate_payload(self.data, creating=True)
        return self


class UpdateAction(_ActionBase):
    """Apply `data` to the row with `record_id`."""

    type: Literal["update"] = "update"
    record_id: str = Field(..., min_length=1, description="ID of the row to update")
    data: dict[str, Any] = Field(..., min_length=1, description="Fields to change")

    @model_validator(mode="after")
    def _check_payload(self) -> "UpdateAction":
        get_schema(self.table).validate_payload(self.data)
        return self


class DeleteAction(_ActionBase):
    """Remove the row with `record_id`."""

    type: Literal["delete"] = "delete"
    record_id: str = Field(..., min_length=1, description="ID of the row to delete")


ContentAction = Annotated[
    CreateAction | UpdateAction | DeleteAction, Field(discriminator="type")
]

action_adapter: TypeAdapter[ContentAction] = TypeAdapter(ContentAction)


class RejectedAction(BaseModel):
    """A raw action from the model that failed validation."""

    raw: Any = Field(..., description="Action exactly as the model produced it")
    error: str = Field(..., description="Why the action was rejected")


class ContentPlan(BaseModel):
    """A titled, ordered list of content actions awaiting review or execution."""

    id: str | None = Field(None, description="Persisted plan ID, once saved")
    title: str = Field("", description="Short title for the plan")
    summary: str = Field("", description="What the plan will do")
    actions: list[ContentAction] = Field(default_factory=list)
    rejected_actions: list[RejectedAction] = Field(default_factory=list)
    status: str | None = Field(None, description="saved, executed, failed or reverted")
    conversation_id: str | None = Field(None, description="Conversation that produced the plan")

    def with_actions(self, actions: list[ContentAction]) -> "ContentPlan":
        """Return a copy of the plan with its action list replaced."""
        return self.model_copy(update={"actions": list(actions)})

    def dump_actions(self) -> list[dict[str, Any]]:
        """Serialize the actions for storage."""
        return [action.model_dump(mode="json") for action in self.actions]
