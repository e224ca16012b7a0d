"""Compact summary of current site content, sent along with every chat turn."""

from typing import Any

from content_hub.errors import StoreError
from content_hub.log import get_logger
from content_hub.models.tables import ContentTable

logger = get_logger(__name__)

SITE_CONTEXT_TABLES = (
    ContentTable.ARTICLES,
    ContentTable.UPDATES,
    ContentTable.PROJECTS,
    ContentTable.ARTWORK,
    ContentTable.EXPERIMENTS,
    ContentTable.FAVORITES,
    ContentTable.INSPIRATIONS,
    ContentTable.EXPERIENCES,
    ContentTable.CERTIFICATIONS,
    ContentTable.CLIENT_PROJECTS,
    ContentTable.SKILLS,
    ContentTable.PRODUCTS,
)

_SUMMARY_FIELDS = ("title", "name", "slug", "status", "category")


def summarize_row(row: dict[str, Any]) -> dict[str, Any]:
    summary: dict[str, Any] = {"id": row.get("id")}
    for name in _SUMMARY_FIELDS:
        if row.get(name):
            summary[name] = row[name]
    if row.get("published") is not None:
        summary["published"] = row["published"]
    if row.get("description"):
        summary["description"] = str(row["description"])[:100]
    return summary


def fetch_site_context(
    store, tables: tuple[ContentTable, ...] = SITE_CONTEXT_TABLES, recent: int = 5
) -> dict[str, dict[str, Any]]:
    """
    Summarize each content table: its row count and most recent rows.

    Tables that fail to load are reported as empty.

    Args:
        store: Data store
        tables: Tables to summarize
        recent: Number of recent rows per table

    Returns:
        Table name -> {"count": int, "recent": [row summaries]}
    """
    context: dict[str, dict[str, Any]] = {}
    for table in tables:
        try:
            rows = store.select_many(table.value, order=("created_at", True), limit=recent)
            count = store.count(table.value)
        except StoreError as e:
            logger.warning("site_context_failed", table=table.value, error=str(e))
            context[table.value] = {"count": 0, "recent": []}
            continue
        context[table.value] = {
            "count": count or len(rows),
            "recent": [summarize_row(row) for row in rows],
        }
    return context
