"""Service for quick-action prompts and content health suggestions."""

from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from content_hub.errors import StoreError
from content_hub.log import get_logger
from content_hub.models.tables import CONTENT_FIELDS, PUBLISHABLE_TABLES, ContentTable

logger = get_logger(__name__)

# Prompts offered when a conversation is empty
QUICK_ACTIONS = [
    {
        "label": "Audit all content",
        "prompt": "Audit all site content and suggest improvements for missing fields, SEO gaps, and stale records.",
    },
    {
        "label": "Find missing fields",
        "prompt": "Identify all records across every content type that have missing descriptions, excerpts, images, or tags.",
    },
    {
        "label": "Generate descriptions",
        "prompt": "Find all records missing descriptions and generate appropriate descriptions for them.",
    },
    {
        "label": "Content report",
        "prompt": "Give me a comprehensive content report: total counts per type, published vs draft, and any issues found.",
    },
    {
        "label": "Publish ready content",
        "prompt": "Find content that's in approved review status or looks ready to publish. Suggest a plan to publish them.",
    },
]

_SEVERITY_ORDER = {"high": 0, "medium": 1, "low": 2}
_TIMESTAMP = TypeAdapter(datetime)


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse a stored timestamp; naive values are taken as UTC, unreadable ones as None."""
    try:
        parsed = _TIMESTAMP.validate_python(value)
    except ValidationError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Suggestion(BaseModel):
    """A content issue with a prompt that asks the assistant to fix it."""

    id: str
    type: Literal["missing_content", "unpublished", "stale", "empty_table"]
    severity: Literal["high", "medium", "low"]
    title: str
    description: str
    table: str
    records: list[dict[str, Any]] = Field(default_factory=list)
    fix_prompt: str


def _label(row: dict[str, Any]) -> str:
    return str(row.get("title") or row.get("name") or row.get("slug") or row.get("id"))


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list):
        return not value
    return False


class SuggestionService:
    """Service for generating content suggestions."""

    def __init__(self, store, stale_days: int = 90, sample_size: int = 5):
        """
        Initialize the suggestion service.

        Args:
            store: Data store
            stale_days: Age after which a record counts as stale
            sample_size: Number of example records per suggestion
        """
        self.store = store
        self.stale_days = stale_days
        self.sample_size = sample_size

    def get_quick_actions(self) -> list[dict[str, str]]:
        return [dict(action) for action in QUICK_ACTIONS]

    def generate_suggestions(self, now: datetime | None = None) -> list[Suggestion]:
        """
        Scan content tables for empty sections, drafts, missing fields and stale rows.

        Args:
            now: Reference time for staleness (defaults to the current time)

        Returns:
            Suggestions ordered by severity
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=self.stale_days)
        if cutoff.tzinfo is None:
            cutoff = cutoff.replace(tzinfo=timezone.utc)
        results: list[Suggestion] = []

        for table in CONTENT_FIELDS:
            try:
                rows = self.store.select_many(table.value)
            except StoreError as e:
                logger.warning("suggestion_scan_failed", table=table.value, error=str(e))
                continue
            results.extend(self._scan_table(table, rows, cutoff))

        results.sort(key=lambda suggestion: _SEVERITY_ORDER[suggestion.severity])
        return results

    def _scan_table(self, table: ContentTable, rows: list[dict[str, Any]], cutoff: datetime) -> list[Suggestion]:
        name = table.value.replace("_", " ")
        if not rows:
            return [
                Suggestion(
                    id=f"empty-{table.value}",
                    type="empty_table",
                    severity="low",
                    title=f"No {name} yet",
                    description=f"The {name} section is empty.",
                    table=table.value,
                    fix_prompt=f"Create some initial {name} content for my portfolio site.",
                )
            ]

        found = []
        if table in PUBLISHABLE_TABLES:
            unpublished = [row for row in rows if row.get("published") is False]
            if unpublished:
                sample = unpublished[: self.sample_size]
                found.append(
                    Suggestion(
                        id=f"unpub-{table.value}",
                        type="unpublished",
                        severity="medium",
                        title=f"{len(unpublished)} unpublished {name}",
                        description="These items are in draft and may be ready to publish.",
                        table=table.value,
                        records=[{"id": row.get("id"), "title": _label(row)} for row in sample],
                        fix_prompt=(
                            f"Review these unpublished {name} and suggest which ones are ready "
                            f"to publish: {', '.join(_label(row) for row in sample)}"
                        ),
                    )
                )

        for column in CONTENT_FIELDS[table]:
            missing = [row for row in rows if column in row and _is_blank(row[column])]
            if not missing:
                continue
            sample = missing[: self.sample_size]
            column_name = column.replace("_", " ")
            found.append(
                Suggestion(
                    id=f"missing-{table.value}-{column}",
                    type="missing_content",
                    severity="high" if column in ("description", "content") else "medium",
                    title=f"{len(missing)} {name} missing {column_name}",
                    description=f"These records have no {column_name} set.",
                    table=table.value,
                    records=[{"id": row.get("id"), "title": _label(row)} for row in sample],
                    fix_prompt=f"Generate {column_name} for these {name}: "
                    + ", ".join(f'"{_label(row)}" (id: {row.get("id")})' for row in sample),
                )
            )

        stale = []
        for row in rows:
            if not row.get("updated_at"):
                continue
            updated = _parse_timestamp(row["updated_at"])
            if updated is None:
                logger.warning("unreadable_timestamp", table=table.value, record_id=row.get("id"))
            elif updated < cutoff:
                stale.append(row)
        if stale:
            sample = stale[: self.sample_size]
            found.append(
                Suggestion(
                    id=f"stale-{table.value}",
                    type="stale",
                    severity="low",
                    title=f"{len(stale)} stale {name}",
                    description=f"Not updated in over {self.stale_days} days.",
                    table=table.value,
                    records=[{"id": row.get("id"), "title": _label(row)} for row in sample],
                    fix_prompt=f"Review and suggest updates for these stale {name}: "
                    + ", ".join(_label(row) for row in sample),
                )
            )
        return found
