"""Service for saved plans, plan history and change history in Supabase."""

from typing import Any

from pydantic import ValidationError

from content_hub.errors import ChangeNotFoundError, PlanNotFoundError, StoreError, TableNotAllowedError
from content_hub.log import get_logger
from content_hub.models.database import ChangeRecord, PlanRecord
from content_hub.models.plan import ContentPlan, RejectedAction, action_adapter
from content_hub.models.tables import resolve_table
from content_hub.services import notifier as topics
from content_hub.services.compensation import undo_change
from content_hub.services.notifier import ChangeNotifier

logger = get_logger(__name__)

PLANS_TABLE = "ai_content_plans"
CHANGES_TABLE = "ai_change_history"

HISTORY_STATUSES = ["executed", "failed", "reverted"]


class PlanStore:
    """Persistence for content plans and the changes they applied."""

    def __init__(self, store, notifier: ChangeNotifier | None = None):
        """
        Initialize the plan store.

        Args:
            store: Data store (ContentStore or compatible)
            notifier: Invalidation topics to publish on
        """
        self.store = store
        self.notifier = notifier or ChangeNotifier()

    def save_plan(
        self,
        plan: ContentPlan,
        status: str = "saved",
        conversation_id: str | None = None,
        executed_at: str | None = None,
    ) -> str:
        """
        Insert a plan record.

        Args:
            plan: Plan to persist (actions as currently edited)
            status: Record status
            conversation_id: Conversation that produced the plan
            executed_at: Execution timestamp, for executed plans

        Returns:
            Plan ID
        """
        row: dict[str, Any] = {
            "title": plan.title,
            "description": plan.summary,
            "actions": plan.dump_actions(),
            "status": status,
            "conversation_id": conversation_id or plan.conversation_id,
        }
        if executed_at:
            row["executed_at"] = executed_at
        created = self.store.insert(PLANS_TABLE, row)
        return str(created["id"])

    def save_for_later(self, plan: ContentPlan, conversation_id: str | None = None) -> str:
        """Persist a plan for later execution without running any action."""
        plan_id = self.save_plan(plan, status="saved", conversation_id=conversation_id)
        logger.info("plan_saved", plan_id=plan_id, actions=len(plan.actions))
        self.notifier.publish(topics.SAVED_PLANS)
        return plan_id

    def get_plan(self, plan_id: str) -> PlanRecord:
        row = self.store.select_one(PLANS_TABLE, plan_id)
        if row is None:
            raise PlanNotFoundError(f"Plan {plan_id} not found")
        return PlanRecord(**row)

    def load_plan(self, plan_id: str) -> ContentPlan:
        """
        Rebuild a ContentPlan from its stored record.

        Stored actions that no longer validate (for example after a free-text
        edit) are returned as rejected actions.

        Args:
            plan_id: Plan ID

        Returns:
            The plan, with the stored action order
        """
        record = self.get_plan(plan_id)
        actions = []
        rejected = []
        for raw in record.actions:
            try:
                actions.append(action_adapter.validate_python(raw))
            except ValidationError as e:
                rejected.append(RejectedAction(raw=raw, error=str(e)))

        return ContentPlan(
            id=record.id,
            title=record.title,
            summary=record.description or "",
            actions=actions,
            rejected_actions=rejected,
            status=record.status,
            conversation_id=record.conversation_id,
        )

    def list_saved_plans(self, limit: int = 50) -> list[PlanRecord]:
        rows = self.store.select_many(
            PLANS_TABLE, {"status": "saved"}, order=("created_at", True), limit=limit
        )
        return [PlanRecord(**row) for row in rows]

    def delete_saved_plan(self, plan_id: str) -> bool:
        """
        Delete a saved plan record.

        Only the plan record is removed; conversations and other plans are
        untouched.

        Returns:
            True if successful
        """
        self.get_plan(plan_id)
        self.store.delete(PLANS_TABLE, plan_id)
        self.notifier.publish(topics.SAVED_PLANS)
        return True

    def retire_saved_plan(self, plan_id: str) -> bool:
        """Remove a saved plan once it has been executed; other statuses are kept."""
        row = self.store.select_one(PLANS_TABLE, plan_id)
        if row is None or row.get("status") != "saved":
            return False
        self.store.delete(PLANS_TABLE, plan_id)
        logger.info("saved_plan_retired", plan_id=plan_id)
        self.notifier.publish(topics.SAVED_PLANS)
        return True

    def set_status(self, plan_id: str, status: str) -> None:
        self.store.update(PLANS_TABLE, {"status": status}, plan_id)

    def list_plan_history(self, limit: int = 20) -> list[PlanRecord]:
        rows = self.store.select_many(
            PLANS_TABLE, {"status": HISTORY_STATUSES}, order=("created_at", True), limit=limit
        )
        return [PlanRecord(**row) for row in rows]

    def record_change(
        self,
        plan_id: str,
        action_type: str,
        table: str,
        record_id: str | None,
        previous_data: dict[str, Any] | None = None,
        new_data: dict[str, Any] | None = None,
    ) -> str:
        """Insert a change history row and return its ID."""
        created = self.store.insert(
            CHANGES_TABLE,
            {
                "plan_id": plan_id,
                "action_type": action_type,
                "table_name": table,
                "record_id": record_id,
                "previous_data": previous_data,
                "new_data": new_data,
                "reverted": False,
            },
        )
        return str(created["id"])

    def mark_change_reverted(self, change_id: str) -> None:
        self.store.update(CHANGES_TABLE, {"reverted": True}, change_id)

    def list_changes(self, plan_id: str | None = None, limit: int = 50) -> list[ChangeRecord]:
        filters = {"plan_id": plan_id} if plan_id else None
        rows = self.store.select_many(
            CHANGES_TABLE, filters, order=("created_at", True), limit=limit
        )
        return [ChangeRecord(**row) for row in rows]

    def revert_plan(self, plan_id: str) -> int:
        """
        Undo every unreverted change of a plan, newest first.

        Changes against tables outside the allow-list are skipped; a change
        that fails to revert is logged and left unreverted.

        Args:
            plan_id: Plan ID

        Returns:
            Number of changes reverted
        """
        self.get_plan(plan_id)
        rows = self.store.select_many(
            CHANGES_TABLE,
            {"plan_id": plan_id, "reverted": False},
            order=("created_at", True),
        )
        if not rows:
            return 0

        reverted = 0
        for change in (ChangeRecord(**row) for row in rows):
            if resolve_table(change.table_name) is None:
                logger.warning("revert_skipped", change_id=change.id, table=change.table_name)
                continue
            try:
                undo_change(
                    self.store,
                    change.action_type,
                    change.table_name,
                    change.record_id,
                    change.previous_data,
                )
                self.mark_change_reverted(change.id)
                reverted += 1
            except Exception as e:
                logger.error("revert_failed", change_id=change.id, error=str(e))

        self.set_status(plan_id, "reverted")
        logger.info("plan_reverted", plan_id=plan_id, changes=reverted)
        self.notifier.publish(topics.PLAN_HISTORY, topics.CHANGE_HISTORY)
        return reverted

    def revert_change(self, change_id: str) -> ChangeRecord:
        """
        Undo a single change.

        Raises:
            ChangeNotFoundError: If the change does not exist
            TableNotAllowedError: If the change targets a table outside the allow-list
            StoreError: If the inverse operation fails
        """
        row = self.store.select_one(CHANGES_TABLE, change_id)
        if row is None:
            raise ChangeNotFoundError(f"Change {change_id} not found")
        change = ChangeRecord(**row)
        if resolve_table(change.table_name) is None:
            raise TableNotAllowedError(change.table_name)
        if change.reverted:
            return change

        try:
            undo_change(
                self.store, change.action_type, change.table_name, change.record_id, change.previous_data
            )
        except StoreError:
            logger.error("revert_failed", change_id=change_id)
            raise

        self.mark_change_reverted(change_id)
        self.notifier.publish(topics.PLAN_HISTORY, topics.CHANGE_HISTORY)
        return change.model_copy(update={"reverted": True})
