"""Service for managing chat conversations in Supabase."""

from content_hub.errors import ConversationNotFoundError
from content_hub.log import get_logger
from content_hub.models.database import ChatMessage, Conversation, utc_now
from content_hub.services import notifier as topics
from content_hub.services.notifier import ChangeNotifier

logger = get_logger(__name__)

CONVERSATIONS_TABLE = "ai_conversations"
TITLE_LENGTH = 60
DEFAULT_TITLE = "New Conversation"


def derive_title(messages: list[ChatMessage]) -> str:
    """Title a conversation after the start of its first user message."""
    for message in messages:
        if message.role == "user" and message.content.strip():
            return message.content.strip()[:TITLE_LENGTH]
    return DEFAULT_TITLE


class ConversationService:
    """Service for conversation history operations."""

    def __init__(self, store, notifier: ChangeNotifier | None = None):
        """
        Initialize the conversation service.

        Args:
            store: Data store (ContentStore or compatible)
            notifier: Invalidation topics to publish on
        """
        self.store = store
        self.notifier = notifier or ChangeNotifier()

    def save_conversation(
        self, messages: list[ChatMessage], conversation_id: str | None = None
    ) -> str:
        """
        Upsert the whole transcript of a conversation.

        Without an ID a new conversation row is inserted; with one, its message
        list and timestamp are overwritten. Only role, content and timestamp of
        each message are stored.

        Args:
            messages: Full ordered transcript
            conversation_id: Active conversation ID, if any

        Returns:
            Conversation ID
        """
        records = [message.to_record() for message in messages]

        if conversation_id:
            self.store.update(
                CONVERSATIONS_TABLE,
                {"messages": records, "updated_at": utc_now()},
                conversation_id,
            )
        else:
            created = self.store.insert(
                CONVERSATIONS_TABLE,
                {"title": derive_title(messages), "messages": records},
            )
            conversation_id = str(created["id"])
            logger.info("conversation_created", conversation_id=conversation_id)

        self.notifier.publish(topics.CONVERSATIONS)
        return conversation_id

    def get_conversation(self, conversation_id: str) -> Conversation:
        """
        Get a conversation with its transcript.

        Raises:
            ConversationNotFoundError: If no such conversation exists
        """
        row = self.store.select_one(CONVERSATIONS_TABLE, conversation_id)
        if row is None:
            raise ConversationNotFoundError(f"Conversation {conversation_id} not found")
        return _to_conversation(row)

    def list_conversations(self, limit: int = 20) -> list[Conversation]:
        """
        List recent conversations, most recently updated first.

        Args:
            limit: Maximum number of conversations to return

        Returns:
            Conversations
        """
        rows = self.store.select_many(
            CONVERSATIONS_TABLE, order=("updated_at", True), limit=limit
        )
        return [_to_conversation(row) for row in rows]

    def delete_conversation(self, conversation_id: str) -> bool:
        """
        Delete a conversation.

        Saved plans keep their conversation_id but are otherwise untouched.

        Returns:
            True if successful
        """
        self.get_conversation(conversation_id)
        self.store.delete(CONVERSATIONS_TABLE, conversation_id)
        self.notifier.publish(topics.CONVERSATIONS)
        return True


def _to_conversation(row: dict) -> Conversation:
    return Conversation(
        id=str(row["id"]),
        title=row.get("title") or DEFAULT_TITLE,
        messages=[ChatMessage(**message) for message in row.get("messages") or []],
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )
