"""Content suggestion and site summary routes."""

from fastapi import APIRouter, Depends

from content_hub.dependencies import get_store, get_suggestion_service
from content_hub.services.site_context import fetch_site_context
from content_hub.services.suggestion_service import SuggestionService

router = APIRouter()


@router.get("/suggestions")
async def get_suggestions(
    suggestion_service: SuggestionService = Depends(get_suggestion_service),
):
    """
    Scan site content for issues worth fixing.

    Args:
        suggestion_service: Suggestion service instance (dependency injection)

    Returns:
        Suggestions ordered by severity, each with a prompt for the assistant
    """
    suggestions = suggestion_service.generate_suggestions()
    return {"suggestions": [suggestion.model_dump() for suggestion in suggestions]}


@router.get("/site-context")
async def site_context(store=Depends(get_store)):
    """Per-table record count and most recent rows."""
    return fetch_site_context(store)
