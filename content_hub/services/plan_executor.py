"""Execution of content plans against the data store."""

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, Field

from content_hub.log import get_logger
from content_hub.models.database import utc_now
from content_hub.models.plan import ActionType, ContentAction, ContentPlan, CreateAction, UpdateAction
from content_hub.models.tables import get_schema
from content_hub.services import notifier as topics
from content_hub.services.compensation import undo_change
from content_hub.services.plan_store import PlanStore

logger = get_logger(__name__)

OutcomeStatus = Literal["succeeded", "failed", "skipped", "rolled_back"]


class ActionOutcome(BaseModel):
    """Result of one plan action."""

    index: int
    type: ActionType
    table: str
    status: OutcomeStatus
    record_id: str | None = None
    error: str | None = None


class EditorLink(BaseModel):
    """Deep link into the admin editor for a touched record."""

    table: str
    id: str
    type: ActionType
    url: str


class ExecutionProgress(BaseModel):
    """Emitted after each action completes."""

    completed: int
    total: int
    percent: int
    outcome: ActionOutcome


class ExecutionResult(BaseModel):
    """Outcome of a whole plan execution."""

    success: bool
    plan_id: str | None = None
    outcomes: list[ActionOutcome] = Field(default_factory=list)
    editor_links: list[EditorLink] = Field(default_factory=list)
    rolled_back: bool = False
    error: str | None = None

    @property
    def failed(self) -> list[ActionOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == "failed"]


@dataclass
class _AppliedChange:
    index: int
    action_type: str
    table: str
    record_id: str | None
    previous: dict[str, Any] | None
    change_id: str | None


class PlanExecutor:
    """Run plan actions one at a time, in order.

    Every applied action is recorded in the change history. When an action
    fails and rollback is enabled, the remaining actions are skipped and the
    applied ones are undone newest first; otherwise execution continues and
    the result reports partial success.
    """

    def __init__(self, store, plan_store: PlanStore, rollback_on_failure: bool = True):
        """
        Initialize the executor.

        Args:
            store: Data store the actions are applied to
            plan_store: Plan and change history persistence
            rollback_on_failure: Undo applied actions when one fails
        """
        self.store = store
        self.plan_store = plan_store
        self.rollback_on_failure = rollback_on_failure

    def execute(
        self,
        plan: ContentPlan,
        conversation_id: str | None = None,
        on_progress: Callable[[ExecutionProgress], None] | None = None,
    ) -> ExecutionResult:
        """
        Execute a plan and return its result.

        Args:
            plan: Plan to execute, with any review edits applied
            conversation_id: Conversation the plan came from
            on_progress: Called after each action

        Returns:
            Execution result with one outcome per action
        """
        result = None
        for item in self.iter_execute(plan, conversation_id):
            if isinstance(item, ExecutionProgress):
                if on_progress:
                    on_progress(item)
            else:
                result = item
        return result

    def iter_execute(
        self, plan: ContentPlan, conversation_id: str | None = None
    ) -> Iterator[ExecutionProgress | ExecutionResult]:
        """Execute a plan, yielding progress after each action and the result last."""
        if not plan.actions:
            yield ExecutionResult(success=False, error="No actions to execute")
            return

        try:
            plan_id = self.plan_store.save_plan(
                plan,
                status="executed",
                conversation_id=conversation_id,
                executed_at=utc_now(),
            )
        except Exception as e:
            logger.error("plan_record_failed", title=plan.title, error=str(e))
            yield ExecutionResult(success=False, error="Failed to save plan")
            return

        log = logger.bind(plan_id=plan_id)
        total = len(plan.actions)
        outcomes: list[ActionOutcome] = []
        applied: list[_AppliedChange] = []
        failed = False

        for index, action in enumerate(plan.actions):
            if failed and self.rollback_on_failure:
                outcome = ActionOutcome(
                    index=index, type=action.type, table=action.table.value, status="skipped"
                )
            else:
                outcome, change = self._run_action(plan_id, index, action)
                if change:
                    applied.append(change)
                if outcome.status == "failed":
                    failed = True
                    log.warning("action_failed", index=index, error=outcome.error)

            outcomes.append(outcome)
            completed = index + 1
            yield ExecutionProgress(
                completed=completed,
                total=total,
                percent=round(completed * 100 / total),
                outcome=outcome,
            )

        rolled_back = False
        if failed and self.rollback_on_failure and applied:
            rolled_back = self._roll_back(applied, outcomes)

        if failed:
            try:
                self.plan_store.set_status(plan_id, "failed")
            except Exception as e:
                log.error("plan_status_update_failed", error=str(e))

        if plan.id and any(outcome.status == "succeeded" for outcome in outcomes):
            try:
                self.plan_store.retire_saved_plan(plan.id)
            except Exception as e:
                log.warning("saved_plan_retire_failed", saved_plan_id=plan.id, error=str(e))

        links = []
        for outcome, action in zip(outcomes, plan.actions):
            if outcome.status == "succeeded" and action.type != "delete" and outcome.record_id:
                url = get_schema(action.table).editor_url(outcome.record_id)
                links.append(
                    EditorLink(table=outcome.table, id=outcome.record_id, type=action.type, url=url)
                )

        log.info(
            "plan_executed",
            success=not failed,
            actions=total,
            failed=sum(1 for outcome in outcomes if outcome.status == "failed"),
            rolled_back=rolled_back,
        )
        self.plan_store.notifier.publish(
            topics.PLAN_HISTORY, topics.CHANGE_HISTORY, topics.CONTENT_SUGGESTIONS
        )
        yield ExecutionResult(
            success=not failed,
            plan_id=plan_id,
            outcomes=outcomes,
            editor_links=links,
            rolled_back=rolled_back,
        )

    def _run_action(
        self, plan_id: str, index: int, action: ContentAction
    ) -> tuple[ActionOutcome, _AppliedChange | None]:
        table = action.table.value
        try:
            # Allow-list check at dispatch time
            get_schema(table)

            if isinstance(action, CreateAction):
                previous = None
                row = self.store.insert(table, action.data)
                record_id = str(row["id"])
                new_data = row
            elif isinstance(action, UpdateAction):
                record_id = action.record_id
                previous = self.store.select_one(table, record_id)
                new_data = self.store.update(table, action.data, record_id)
            else:
                record_id = action.record_id
                previous = self.store.select_one(table, record_id)
                if previous is None:
                    raise LookupError(f"No row {record_id} in {table}")
                self.store.delete(table, record_id)
                new_data = {"deleted": True}
        except Exception as e:
            outcome = ActionOutcome(
                index=index, type=action.type, table=table, status="failed",
                record_id=action.target_id, error=str(e),
            )
            return outcome, None

        change_id = None
        try:
            change_id = self.plan_store.record_change(
                plan_id, action.type, table, record_id, previous, new_data
            )
        except Exception as e:
            logger.warning("change_record_failed", plan_id=plan_id, index=index, error=str(e))

        outcome = ActionOutcome(
            index=index, type=action.type, table=table, status="succeeded", record_id=record_id
        )
        return outcome, _AppliedChange(index, action.type, table, record_id, previous, change_id)

    def _roll_back(self, applied: list[_AppliedChange], outcomes: list[ActionOutcome]) -> bool:
        """Undo applied changes newest first; True only if every undo succeeded."""
        complete = True
        for change in reversed(applied):
            try:
                undo_change(
                    self.store, change.action_type, change.table, change.record_id, change.previous
                )
            except Exception as e:
                logger.error(
                    "rollback_failed", table=change.table, record_id=change.record_id, error=str(e)
                )
                outcomes[change.index] = outcomes[change.index].model_copy(
                    update={"error": f"Rollback failed: {e!s}"}
                )
                complete = False
                continue

            if change.change_id:
                try:
                    self.plan_store.mark_change_reverted(change.change_id)
                except Exception as e:
                    logger.warning("change_mark_failed", change_id=change.change_id, error=str(e))
            outcomes[change.index] = outcomes[change.index].model_copy(
                update={"status": "rolled_back"}
            )
        return complete
