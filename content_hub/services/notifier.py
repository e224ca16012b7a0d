"""In-process invalidation topics for cached history and list views."""

from collections import defaultdict
from collections.abc import Callable

from content_hub.log import get_logger

logger = get_logger(__name__)

PLAN_HISTORY = "ai-content-plans-history"
CHANGE_HISTORY = "ai-change-history"
SAVED_PLANS = "ai-saved-plans"
CONVERSATIONS = "ai-conversations"
CONTENT_SUGGESTIONS = "content-suggestions"


class ChangeNotifier:
    """Per-topic version counters plus listener callbacks.

    Clients compare versions to decide whether a cached view is stale.
    """

    def __init__(self):
        self.versions: dict[str, int] = defaultdict(int)
        self._listeners: dict[str, list[Callable[[str], None]]] = defaultdict(list)

    def subscribe(self, topic: str, callback: Callable[[str], None]) -> None:
        self._listeners[topic].append(callback)

    def publish(self, *topics: str) -> None:
        for topic in topics:
            self.versions[topic] += 1
            for callback in self._listeners[topic]:
                try:
                    callback(topic)
                except Exception:
                    logger.exception("listener_failed", topic=topic)

    def snapshot(self) -> dict[str, int]:
        return dict(self.versions)
