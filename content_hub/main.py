"""FastAPI application with SSE support for chat and plan execution streaming."""

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from content_hub.config import get_settings
from content_hub.dependencies import build_services, set_registry
from content_hub.errors import (
    ChangeNotFoundError,
    ContentHubError,
    ConversationNotFoundError,
    PlanNotFoundError,
    StoreError,
)
from content_hub.log import get_logger, setup_logging
from content_hub.routes import chat, conversations, functions, health, media, plans, suggestions
from content_hub.security import require_admin

logger = get_logger(__name__)

app = FastAPI(
    title="Content Hub API",
    description="AI content plans for the portfolio admin: chat, review, execute and revert",
    version="1.0.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

admin = [Depends(require_admin)]

app.include_router(health.router, tags=["health"])
app.include_router(chat.router, tags=["chat"], dependencies=admin)
app.include_router(functions.router, tags=["assistant"], dependencies=admin)
app.include_router(conversations.router, tags=["conversations"], dependencies=admin)
app.include_router(plans.router, tags=["plans"], dependencies=admin)
app.include_router(suggestions.router, tags=["suggestions"], dependencies=admin)
app.include_router(media.router, tags=["media"], dependencies=admin)

_NOT_FOUND = (PlanNotFoundError, ChangeNotFoundError, ConversationNotFoundError)


@app.exception_handler(ContentHubError)
async def content_hub_error_handler(request: Request, exc: ContentHubError):
    """Translate domain errors to HTTP responses."""
    if isinstance(exc, _NOT_FOUND):
        status = 404
    elif isinstance(exc, StoreError):
        status = 503
        logger.error("store_error", path=request.url.path, error=str(exc))
    else:
        status = 400
    return JSONResponse({"detail": str(exc)}, status_code=status)


@app.on_event("startup")
async def startup_event():
    """Initialize services on application startup."""
    settings = get_settings()
    setup_logging(settings.log_level)
    try:
        set_registry(build_services(settings))
        logger.info("services_initialized")
    except Exception as e:
        # Routes answer 503 until the configuration is fixed
        logger.error("service_init_failed", error=str(e))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("content_hub.main:app", host="0.0.0.0", port=8000, reload=True)
