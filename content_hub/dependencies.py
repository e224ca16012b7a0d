"""Service wiring and FastAPI dependencies."""

from dataclasses import dataclass, field

import httpx
from fastapi import Depends, HTTPException
from langchain_openai import ChatOpenAI
from supabase import Client

from content_hub.assistant import create_assistant_llm
from content_hub.config import Settings
from content_hub.db.content_store import ContentStore, create_supabase_client
from content_hub.db.media_storage import MediaStorage
from content_hub.log import get_logger
from content_hub.services.chat_service import ChatService
from content_hub.services.conversation_service import ConversationService
from content_hub.services.notifier import ChangeNotifier
from content_hub.services.plan_executor import PlanExecutor
from content_hub.services.plan_store import PlanStore
from content_hub.services.suggestion_service import SuggestionService

logger = get_logger(__name__)


@dataclass
class ServiceRegistry:
    """Every service the routes depend on; unset services answer 503."""

    settings: Settings = field(default_factory=Settings)
    notifier: ChangeNotifier = field(default_factory=ChangeNotifier)
    supabase: Client | None = None
    store: ContentStore | None = None
    media: MediaStorage | None = None
    conversations: ConversationService | None = None
    plans: PlanStore | None = None
    executor: PlanExecutor | None = None
    chat: ChatService | None = None
    suggestions: SuggestionService | None = None
    llm: ChatOpenAI | None = None

    @classmethod
    def from_store(
        cls,
        store,
        settings: Settings,
        media: MediaStorage | None = None,
        supabase: Client | None = None,
        llm: ChatOpenAI | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ServiceRegistry":
        """
        Wire every service around one data store.

        Args:
            store: Data store (ContentStore or compatible)
            settings: Service settings
            media: Media storage, if available
            supabase: Supabase client, used for auth checks
            llm: Chat model for the assistant endpoint
            transport: httpx transport for the chat service

        Returns:
            Populated registry
        """
        notifier = ChangeNotifier()
        conversations = ConversationService(store, notifier)
        plans = PlanStore(store, notifier)
        return cls(
            settings=settings,
            notifier=notifier,
            supabase=supabase,
            store=store,
            media=media,
            conversations=conversations,
            plans=plans,
            executor=PlanExecutor(store, plans, settings.rollback_on_failure),
            chat=ChatService(
                conversations,
                store,
                endpoint=settings.assistant_endpoint,
                api_key=settings.assistant_key,
                timeout=settings.stream_timeout,
                transport=transport,
            ),
            suggestions=SuggestionService(store),
            llm=llm,
        )


def build_services(settings: Settings) -> ServiceRegistry:
    """
    Create the Supabase-backed services.

    Raises:
        ValueError: If the Supabase credentials are missing
    """
    supabase = create_supabase_client(settings)
    llm = None
    if settings.ai_api_key:
        llm = create_assistant_llm(settings)
    else:
        logger.warning("assistant_disabled", reason="AI_API_KEY not set")
    return ServiceRegistry.from_store(
        ContentStore(supabase),
        settings,
        media=MediaStorage(supabase),
        supabase=supabase,
        llm=llm,
    )


_registry = ServiceRegistry()


def set_registry(registry: ServiceRegistry) -> None:
    global _registry
    _registry = registry


def get_registry() -> ServiceRegistry:
    """Dependency to get the service registry."""
    return _registry


def _require(service, name: str):
    if service is None:
        raise HTTPException(
            status_code=503, detail=f"{name} not initialized. Please check server logs."
        )
    return service


def get_store(registry: ServiceRegistry = Depends(get_registry)) -> ContentStore:
    return _require(registry.store, "Content store")


def get_media_storage(registry: ServiceRegistry = Depends(get_registry)) -> MediaStorage:
    return _require(registry.media, "Media storage")


def get_conversation_service(
    registry: ServiceRegistry = Depends(get_registry),
) -> ConversationService:
    return _require(registry.conversations, "Conversation service")


def get_plan_store(registry: ServiceRegistry = Depends(get_registry)) -> PlanStore:
    return _require(registry.plans, "Plan store")


def get_plan_executor(registry: ServiceRegistry = Depends(get_registry)) -> PlanExecutor:
    return _require(registry.executor, "Plan executor")


def get_chat_service(registry: ServiceRegistry = Depends(get_registry)) -> ChatService:
    return _require(registry.chat, "Chat service")


def get_suggestion_service(
    registry: ServiceRegistry = Depends(get_registry),
) -> SuggestionService:
    return _require(registry.suggestions, "Suggestion service")


def get_llm(registry: ServiceRegistry = Depends(get_registry)) -> ChatOpenAI:
    return _require(registry.llm, "Assistant model")
