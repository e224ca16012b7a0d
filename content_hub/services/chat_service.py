"""Service for streaming chat turns from the assistant endpoint."""

from collections.abc import AsyncIterator

import httpx

from content_hub.errors import AssistantStreamError, ConversationNotFoundError, PlanParseError, StoreError
from content_hub.log import get_logger
from content_hub.models.database import ChatMessage
from content_hub.models.plan import ContentPlan
from content_hub.services.conversation_service import ConversationService
from content_hub.services.site_context import fetch_site_context
from content_hub.services.stream_parser import (
    StreamError,
    StreamEvent,
    StreamParser,
    TextDelta,
    TurnAccumulator,
)
from content_hub.utils.message_formatter import format_sse

logger = get_logger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Best description of an error response: JSON `error`, then body text, then status."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    text = response.text.strip()
    return text or f"HTTP {response.status_code}"


class ChatService:
    """Service for chat streaming operations."""

    def __init__(
        self,
        conversation_service: ConversationService,
        store,
        endpoint: str | None,
        api_key: str | None,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the chat service.

        Args:
            conversation_service: Conversation persistence
            store: Data store used for the site summary
            endpoint: URL of the streaming assistant endpoint
            api_key: Bearer key for the endpoint
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.conversation_service = conversation_service
        self.store = store
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _load_history(self, conversation_id: str | None) -> tuple[list[ChatMessage], str | None]:
        if not conversation_id:
            return [], None
        try:
            conversation = self.conversation_service.get_conversation(conversation_id)
        except ConversationNotFoundError:
            logger.warning("conversation_missing", conversation_id=conversation_id)
            return [], None
        return list(conversation.messages), conversation_id

    async def stream_chat_response(
        self,
        message: str,
        conversation_id: str | None = None,
        history: list[ChatMessage] | None = None,
        access_token: str | None = None,
    ) -> AsyncIterator[str]:
        """
        Stream one chat turn as SSE frames.

        Frames: `content_delta` for assistant text, `plan` for each completed
        content plan, `plan_error` for tool output that could not be parsed,
        then `content`, `conversation_id` and `done` once the turn is saved.
        A transport failure or an error frame from the endpoint yields an
        `error` frame; the turn is aborted and nothing is saved.

        Args:
            message: User message
            conversation_id: Active conversation, if any
            history: Prior transcript; loaded from the conversation when omitted
            access_token: Caller's session token, sent instead of the configured key

        Yields:
            SSE formatted strings
        """
        if history is None:
            history, conversation_id = self._load_history(conversation_id)

        transcript = [*history, ChatMessage(role="user", content=message)]
        log = logger.bind(conversation_id=conversation_id)

        if not self.endpoint:
            yield format_sse({"type": "error", "message": "Assistant endpoint not configured"})
            return

        payload = {
            "messages": [{"role": turn.role, "content": turn.content} for turn in transcript],
            "siteContent": fetch_site_context(self.store),
        }
        bearer = access_token or self.api_key
        headers = {"Authorization": f"Bearer {bearer}"} if bearer else {}

        parser = StreamParser()
        turn = TurnAccumulator()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                async with client.stream(
                    "POST", self.endpoint, headers=headers, json=payload
                ) as response:
                    if response.is_error:
                        await response.aread()
                        raise AssistantStreamError(_error_message(response), response.status_code)

                    async for chunk in response.aiter_bytes():
                        for event in parser.feed(chunk):
                            if isinstance(event, StreamError):
                                raise AssistantStreamError(event.message)
                            for frame in self._route(turn, event):
                                yield frame
                        if parser.done:
                            break
        except (httpx.HTTPError, AssistantStreamError) as e:
            log.error("assistant_stream_failed", error=str(e))
            yield format_sse({"type": "error", "message": str(e)})
            return

        for event in parser.close():
            if isinstance(event, StreamError):
                log.error("assistant_stream_failed", error=event.message)
                yield format_sse({"type": "error", "message": event.message})
                return
            for frame in self._route(turn, event):
                yield frame
        for produced in turn.finish():
            yield self._result_frame(produced)

        transcript.append(
            ChatMessage(role="assistant", content=turn.text, plans=turn.plans or None)
        )
        try:
            conversation_id = self.conversation_service.save_conversation(
                transcript, conversation_id
            )
        except StoreError as e:
            log.error("conversation_save_failed", error=str(e))
            yield format_sse({"type": "error", "message": "Failed to save conversation"})

        log.info("chat_turn_completed", plans=len(turn.plans), plan_errors=len(turn.errors))
        yield format_sse({"type": "content", "content": turn.text})
        if conversation_id:
            yield format_sse({"type": "conversation_id", "conversation_id": conversation_id})
        yield format_sse({"type": "done"})

    def _route(self, turn: TurnAccumulator, event: StreamEvent) -> list[str]:
        frames = []
        if isinstance(event, TextDelta):
            frames.append(format_sse({"type": "content_delta", "content": event.content}))
        frames.extend(self._result_frame(produced) for produced in turn.apply(event))
        return frames

    @staticmethod
    def _result_frame(produced: ContentPlan | PlanParseError) -> str:
        if isinstance(produced, PlanParseError):
            return format_sse({"type": "plan_error", "message": str(produced), "raw": produced.raw})
        return format_sse({"type": "plan", "plan": produced.model_dump(mode="json")})
