"""Inverse operations for applied content changes."""

from typing import Any

from content_hub.errors import ContentHubError


def undo_change(
    store,
    action_type: str,
    table: str,
    record_id: str | None,
    previous_data: dict[str, Any] | None,
) -> None:
    """
    Undo one applied change.

    A create is undone by deleting the row, an update by writing back the
    previous row (minus its id), a delete by re-inserting the previous row.

    Args:
        store: Data store
        action_type: create, update or delete
        table: Table the change was applied to
        record_id: Affected row id
        previous_data: Row snapshot taken before the change

    Raises:
        ContentHubError: If the change cannot be undone
    """
    if action_type == "create":
        if not record_id:
            raise ContentHubError(f"Created row in {table} has no id to remove")
        store.delete(table, record_id)
    elif action_type == "update":
        if not previous_data or not record_id:
            raise ContentHubError(f"No snapshot to restore {table}/{record_id}")
        restored = {key: value for key, value in previous_data.items() if key != "id"}
        store.update(table, restored, record_id)
    elif action_type == "delete":
        if not previous_data:
            raise ContentHubError(f"No snapshot to re-insert {table}/{record_id}")
        store.insert(table, previous_data)
    else:
        raise ContentHubError(f"Unknown action type '{action_type}'")
