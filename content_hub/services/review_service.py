"""Before/after comparison of a content plan against the current rows."""

import json
from dataclasses import dataclass, field
from typing import Any, Literal

from content_hub.errors import StoreError
from content_hub.log import get_logger
from content_hub.models.plan import ContentAction, ContentPlan, CreateAction, DeleteAction

logger = get_logger(__name__)

EMPTY = "(empty)"
UNCHANGED = "(unchanged)"

FieldStatus = Literal["new", "changed", "unchanged", "removed"]


def display_value(value: Any) -> str:
    """Render a column value the way the review screen shows it."""
    if value is None or value == "":
        return EMPTY
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def values_equal(old: Any, new: Any) -> bool:
    """Compare two values by their JSON string form."""
    return json.dumps(old, default=str) == json.dumps(new, default=str)


@dataclass
class FieldDiff:
    """One field of an action, before and after."""

    field: str
    old: Any
    new: Any
    status: FieldStatus

    @property
    def changed(self) -> bool:
        return self.status != "unchanged"

    def render(self) -> str:
        if self.status == "unchanged":
            return f"{self.field}: {display_value(self.new)} {UNCHANGED}"
        if self.status == "new":
            return f"{self.field}: + {display_value(self.new)}"
        if self.status == "removed":
            return f"{self.field}: - {display_value(self.old)}"
        return f"{self.field}: ~~{display_value(self.old)}~~ -> {display_value(self.new)}"


@dataclass
class ActionDiff:
    """Diff of one plan action."""

    index: int
    type: str
    table: str
    record_id: str | None
    description: str
    found: bool | None
    fields: list[FieldDiff] = field(default_factory=list)


def diff_action(action: ContentAction, current: dict[str, Any] | None, index: int = 0) -> ActionDiff:
    """
    Compare an action's payload with the current row.

    Args:
        action: Plan action
        current: Current row for update/delete targets, None if not found
        index: Position of the action in its plan

    Returns:
        Per-field diff of the action
    """
    if isinstance(action, CreateAction):
        fields = [FieldDiff(name, None, value, "new") for name, value in action.data.items()]
        found = None
    elif isinstance(action, DeleteAction):
        fields = [FieldDiff(name, value, None, "removed") for name, value in (current or {}).items()]
        found = current is not None
    else:
        fields = []
        for name, value in action.data.items():
            old = current.get(name) if current else None
            status = "unchanged" if values_equal(old, value) else "changed"
            fields.append(FieldDiff(name, old, value, status))
        found = current is not None

    return ActionDiff(
        index=index,
        type=action.type,
        table=action.table.value,
        record_id=action.target_id,
        description=action.description,
        found=found,
        fields=fields,
    )


def render_diff(diff: ActionDiff) -> list[str]:
    """Text lines for one action diff."""
    target = f" {diff.record_id}" if diff.record_id else ""
    header = f"[{diff.type.upper()}] {diff.table}{target}"
    lines = [f"{header}: {diff.description}" if diff.description else header]
    if diff.found is False:
        lines.append(f"  record not found {EMPTY}")
    lines.extend(f"  {field_diff.render()}" for field_diff in diff.fields)
    return lines


class PlanReview:
    """Review state for one plan.

    Opening the review fetches the current row of every update/delete target,
    one lookup at a time. The fetched rows are cached for the life of the
    review, so closing and reopening does not query again.
    """

    def __init__(self, plan: ContentPlan, store):
        """
        Args:
            plan: Plan under review
            store: Data store exposing select_one(table, id)
        """
        self.plan = plan
        self.store = store
        self.is_open = False
        self._current: dict[int, dict[str, Any] | None] | None = None

    def open(self) -> list[ActionDiff]:
        self.is_open = True
        if self._current is None:
            self._current = self._fetch_current()
        return self.diffs()

    def close(self) -> None:
        self.is_open = False

    def toggle(self) -> list[ActionDiff] | None:
        """Flip the review open or closed; returns the diffs when opening."""
        if self.is_open:
            self.close()
            return None
        return self.open()

    def update_plan(self, plan: ContentPlan) -> None:
        """Swap in an edited version of the same plan, keeping fetched rows."""
        self.plan = plan

    def current_row(self, index: int) -> dict[str, Any] | None:
        return (self._current or {}).get(index)

    def diffs(self) -> list[ActionDiff]:
        return [
            diff_action(action, self.current_row(index), index)
            for index, action in enumerate(self.plan.actions)
        ]

    def _fetch_current(self) -> dict[int, dict[str, Any] | None]:
        current: dict[int, dict[str, Any] | None] = {}
        for index, action in enumerate(self.plan.actions):
            if action.target_id is None:
                continue
            try:
                current[index] = self.store.select_one(action.table.value, action.target_id)
            except StoreError as e:
                logger.warning(
                    "review_lookup_failed",
                    table=action.table.value,
                    record_id=action.target_id,
                    error=str(e),
                )
                current[index] = None
        return current
