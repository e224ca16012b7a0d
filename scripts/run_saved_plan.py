"""Review a saved content plan from the command line and optionally execute it."""

import argparse
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from content_hub.config import get_settings
from content_hub.db.content_store import ContentStore, create_supabase_client
from content_hub.errors import PlanNotFoundError
from content_hub.log import setup_logging
from content_hub.models.plan import ContentPlan
from content_hub.services.plan_builder import edit_action_field
from content_hub.services.plan_executor import ExecutionProgress, PlanExecutor
from content_hub.services.plan_store import PlanStore
from content_hub.services.review_service import ActionDiff, PlanReview, render_diff


def print_progress(progress: ExecutionProgress) -> None:
    outcome = progress.outcome
    mark = "✓" if outcome.status == "succeeded" else "✗"
    detail = f" ({outcome.error})" if outcome.error else ""
    print(
        f"[{progress.completed}/{progress.total} {progress.percent:3d}%] {mark} "
        f"{outcome.type} {outcome.table} {outcome.record_id or ''}: {outcome.status}{detail}"
    )


def apply_edits(review: PlanReview, edits: list[list[str]]) -> ContentPlan:
    """Apply INDEX FIELD VALUE edits to the plan under review, keeping fetched rows."""
    plan = review.plan
    for index, field, value in edits:
        plan = edit_action_field(plan, int(index), field, value)
        review.update_plan(plan)
    return plan


def print_diffs(diffs: list[ActionDiff]) -> None:
    for diff in diffs:
        print()
        print("\n".join(render_diff(diff)))


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Review and execute a saved content plan")
    parser.add_argument("plan_id", help="ID of the saved plan")
    parser.add_argument(
        "--execute",
        action="store_true",
        help="Execute the plan after showing the review",
    )
    parser.add_argument(
        "--no-rollback",
        action="store_true",
        help="Continue past failed actions instead of rolling back",
    )
    parser.add_argument(
        "--set",
        nargs=3,
        action="append",
        default=[],
        metavar=("INDEX", "FIELD", "VALUE"),
        help="Edit one field of an action before executing (repeatable)",
    )
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.log_level)
    store = ContentStore(create_supabase_client(settings))
    plan_store = PlanStore(store)

    try:
        plan = plan_store.load_plan(args.plan_id)
    except PlanNotFoundError as e:
        print(f"Error: {e}")
        return 1

    print(f"{'=' * 80}")
    print(f"{plan.title} [{plan.status}]")
    if plan.summary:
        print(plan.summary)
    print(f"{'=' * 80}")

    review = PlanReview(plan, store)
    print_diffs(review.toggle())

    if args.set:
        review.toggle()
        try:
            plan = apply_edits(review, args.set)
        except ValueError as e:
            print(f"Error: {e}")
            return 1
        print(f"\n{'=' * 80}")
        print(f"After {len(args.set)} edit(s)")
        print_diffs(review.toggle())

    for rejected in plan.rejected_actions:
        print(f"\n✗ Rejected action: {rejected.error}")

    if not args.execute:
        return 0

    print(f"\nExecuting {len(plan.actions)} action(s)...")
    executor = PlanExecutor(
        store, plan_store, rollback_on_failure=settings.rollback_on_failure and not args.no_rollback
    )
    result = executor.execute(plan, conversation_id=plan.conversation_id, on_progress=print_progress)

    print(f"\n{'─' * 80}")
    if result.success:
        print(f"✓ Plan executed (record {result.plan_id})")
    else:
        print(f"✗ Plan failed: {result.error or f'{len(result.failed)} action(s) failed'}")
        if result.rolled_back:
            print("  Applied actions were rolled back")
    for link in result.editor_links:
        print(f"  {link.table}: {link.url}")
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
