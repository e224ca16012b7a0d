"""Content plan review, editing, execution, saved plans and history routes."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from content_hub.dependencies import get_plan_executor, get_plan_store, get_store
from content_hub.models.database import ChangeRecord, PlanRecord
from content_hub.models.plan import ContentPlan
from content_hub.models.schemas import EditRequest, PlanRequest, RevertResponse, SavedPlanResponse
from content_hub.routes.chat import SSE_HEADERS
from content_hub.services.plan_builder import edit_action_field
from content_hub.services.plan_executor import ExecutionProgress, ExecutionResult, PlanExecutor
from content_hub.services.plan_store import PlanStore
from content_hub.services.review_service import PlanReview, render_diff
from content_hub.utils.message_formatter import format_sse

router = APIRouter(prefix="/plans")


@router.post("/review")
async def review_plan(request: PlanRequest, store=Depends(get_store)):
    """
    Compare every action of a plan with the current rows.

    Each call is a one-shot review that fetches the rows again. Clients keep
    the returned diffs while the review is toggled closed and reopened.

    Returns:
        Structured diffs plus their rendered text lines
    """
    diffs = PlanReview(request.plan, store).open()
    return {
        "diffs": [asdict(diff) for diff in diffs],
        "rendered": [render_diff(diff) for diff in diffs],
    }


@router.post("/edit", response_model=ContentPlan)
async def edit_plan(request: EditRequest):
    """Edit one field of one action and return the updated plan."""
    try:
        return edit_action_field(request.plan, request.index, request.field, request.value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.post("/execute", response_model=ExecutionResult)
async def execute_plan(
    request: PlanRequest, executor: PlanExecutor = Depends(get_plan_executor)
):
    """
    Execute a plan's actions in order.

    Args:
        request: Plan with review edits applied
        executor: Plan executor (dependency injection)

    Returns:
        Execution result with one outcome per action
    """
    return executor.execute(request.plan, conversation_id=request.conversation_id)


@router.post("/execute/stream")
async def execute_plan_stream(
    request: PlanRequest, executor: PlanExecutor = Depends(get_plan_executor)
):
    """Execute a plan, streaming a `progress` frame per action and the `result`."""

    def generate():
        for item in executor.iter_execute(request.plan, request.conversation_id):
            if isinstance(item, ExecutionProgress):
                yield format_sse({"type": "progress", **item.model_dump(mode="json")})
            else:
                yield format_sse({"type": "result", "result": item.model_dump(mode="json")})
        yield format_sse({"type": "done"})

    return StreamingResponse(generate(), media_type="text/event-stream", headers=SSE_HEADERS)


@router.post("/saved", response_model=SavedPlanResponse)
async def save_plan(request: PlanRequest, plan_store: PlanStore = Depends(get_plan_store)):
    """Save a plan for later without executing it."""
    plan_id = plan_store.save_for_later(request.plan, conversation_id=request.conversation_id)
    return SavedPlanResponse(plan_id=plan_id)


@router.get("/saved", response_model=list[PlanRecord])
async def list_saved_plans(
    limit: int = Query(50, ge=1, le=200), plan_store: PlanStore = Depends(get_plan_store)
):
    return plan_store.list_saved_plans(limit=limit)


@router.get("/saved/{plan_id}", response_model=ContentPlan)
async def get_saved_plan(plan_id: str, plan_store: PlanStore = Depends(get_plan_store)):
    """Load a saved plan so it can be reviewed and executed."""
    return plan_store.load_plan(plan_id)


@router.delete("/saved/{plan_id}")
async def delete_saved_plan(plan_id: str, plan_store: PlanStore = Depends(get_plan_store)):
    plan_store.delete_saved_plan(plan_id)
    return {"success": True}


@router.get("/history", response_model=list[PlanRecord])
async def plan_history(
    limit: int = Query(20, ge=1, le=100), plan_store: PlanStore = Depends(get_plan_store)
):
    """Executed, failed and reverted plans, newest first."""
    return plan_store.list_plan_history(limit=limit)


@router.get("/changes", response_model=list[ChangeRecord])
async def change_history(
    plan_id: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    plan_store: PlanStore = Depends(get_plan_store),
):
    """Recent change history rows, optionally for a single plan."""
    return plan_store.list_changes(plan_id=plan_id, limit=limit)


@router.post("/changes/{change_id}/revert", response_model=ChangeRecord)
async def revert_change(change_id: str, plan_store: PlanStore = Depends(get_plan_store)):
    return plan_store.revert_change(change_id)


@router.post("/{plan_id}/revert", response_model=RevertResponse)
async def revert_plan(plan_id: str, plan_store: PlanStore = Depends(get_plan_store)):
    """Undo every change a plan applied, newest first."""
    reverted = plan_store.revert_plan(plan_id)
    return RevertResponse(plan_id=plan_id, reverted=reverted)
