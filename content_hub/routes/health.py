"""Health check, root and cache-version routes."""

from fastapi import APIRouter, Depends

from content_hub.dependencies import ServiceRegistry, get_registry

router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Content Hub API",
        "version": "1.0.0",
        "endpoints": {
            "chat": "/chat (POST) - Stream chat turns via SSE",
            "plans": "/plans/* - Review, edit, save, execute and revert content plans",
            "assistant": "/functions/ai-content-hub (POST) - Assistant completion stream",
        },
    }


@router.get("/health")
async def health_check(registry: ServiceRegistry = Depends(get_registry)):
    """
    Health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "store_initialized": registry.store is not None,
        "assistant_initialized": registry.llm is not None,
        "chat_endpoint_configured": bool(registry.settings.assistant_endpoint),
    }


@router.get("/cache-versions")
async def cache_versions(registry: ServiceRegistry = Depends(get_registry)):
    """Version counter per invalidation topic; a bump means cached views are stale."""
    return {"versions": registry.notifier.snapshot()}
