"""Domain errors raised by the content hub services."""


class ContentHubError(Exception):
    """Base class for content hub errors."""


class TableNotAllowedError(ContentHubError):
    """Raised when an operation names a table outside the content allow-list."""

    def __init__(self, table: str):
        super().__init__(f"Table '{table}' is not an allowed content table")
        self.table = table


class PlanParseError(ContentHubError):
    """Raised when tool-call arguments cannot be turned into a content plan."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class PlanNotFoundError(ContentHubError):
    """Raised when a plan record does not exist."""


class ChangeNotFoundError(ContentHubError):
    """Raised when a change history record does not exist."""


class ConversationNotFoundError(ContentHubError):
    """Raised when a conversation record does not exist."""


class StoreError(ContentHubError):
    """Raised when the backing data store rejects an operation."""


class AssistantStreamError(ContentHubError):
    """Raised when the assistant endpoint cannot be reached or answers with an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
