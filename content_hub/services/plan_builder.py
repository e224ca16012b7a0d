"""Build content plans from tool-call arguments and apply review edits."""

import json
from typing import Any

from pydantic import ValidationError

from content_hub.errors import PlanParseError
from content_hub.models.plan import ContentPlan, DeleteAction, RejectedAction, action_adapter
from content_hub.models.tables import ColumnKind, get_schema

# Column kinds where a blank edit clears the value
_CLEARABLE_KINDS = frozenset(
    {ColumnKind.INTEGER, ColumnKind.NUMERIC, ColumnKind.BOOLEAN, ColumnKind.UUID,
     ColumnKind.TIMESTAMP, ColumnKind.ENUM}
)


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


def materialize_plan(raw: dict[str, Any]) -> ContentPlan:
    """
    Turn a decoded `content_plan` payload into a ContentPlan.

    Title and summary are taken as given. Each action is validated against its
    table schema; invalid actions are kept aside in `rejected_actions` so they
    can be shown but never executed.

    Args:
        raw: Decoded tool-call arguments

    Returns:
        The content plan
    """
    raw_actions = raw.get("actions") or []
    actions = []
    rejected = []

    if not isinstance(raw_actions, list):
        rejected.append(RejectedAction(raw=raw_actions, error="actions must be a list"))
        raw_actions = []

    for item in raw_actions:
        try:
            actions.append(action_adapter.validate_python(item))
        except ValidationError as e:
            rejected.append(RejectedAction(raw=item, error=_describe(e)))

    return ContentPlan(
        title=str(raw.get("title") or ""),
        summary=str(raw.get("summary") or ""),
        actions=actions,
        rejected_actions=rejected,
    )


def parse_plan_arguments(arguments: str) -> ContentPlan:
    """
    Parse accumulated tool-call arguments into a plan.

    Raises:
        PlanParseError: If the arguments are not a JSON object
    """
    try:
        raw = json.loads(arguments)
    except ValueError as e:
        raise PlanParseError(f"Malformed content plan: {e!s}", raw=arguments) from e

    if not isinstance(raw, dict):
        raise PlanParseError("Content plan must be a JSON object", raw=arguments)
    return materialize_plan(raw)


def edit_action_field(plan: ContentPlan, index: int, field: str, value: str) -> ContentPlan:
    """
    Replace one payload field of one action with an edited string.

    The value is converted to the column kind first. A blank value clears a
    non-text column. The result is validated like any other action payload, so
    an edited plan saves, loads and executes exactly as shown.

    Args:
        plan: Plan under review
        index: Position of the action in the plan
        field: Column to edit
        value: New value as typed

    Returns:
        A new plan with the edited action; the input plan is unchanged

    Raises:
        ValueError: If the index is out of range, targets a delete action, or
            the value does not fit the column
    """
    if not 0 <= index < len(plan.actions):
        raise ValueError(f"No action at index {index}")

    action = plan.actions[index]
    if isinstance(action, DeleteAction):
        raise ValueError("Delete actions have no fields to edit")

    schema = get_schema(action.table)
    column = schema.columns.get(field)
    new_value: Any = value
    if column is not None:
        new_value = column.coerce(value)
        if column.kind in _CLEARABLE_KINDS and not value.strip():
            new_value = None
    schema.validate_payload({field: new_value})

    actions = list(plan.actions)
    actions[index] = action.model_copy(update={"data": {**action.data, field: new_value}})
    return plan.with_actions(actions)
