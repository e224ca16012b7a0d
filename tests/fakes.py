"""In-memory stand-ins for the Supabase-backed store and media storage."""

import copy
import itertools
import json
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any

from content_hub.errors import StoreError


ARTICLE = {
    "id": "article-1",
    "title": "On Attention",
    "slug": "on-attention",
    "category": "philosophy",
    "excerpt": "Old excerpt",
    "tags": ["focus"],
    "published": False,
    "created_at": "2023-05-01T00:00:00+00:00",
    "updated_at": "2023-05-01T00:00:00+00:00",
}

PROJECT = {
    "id": "project-1",
    "title": "Portfolio",
    "slug": "portfolio",
    "description": "The site itself",
    "status": "live",
    "published": True,
    "created_at": "2023-06-01T00:00:00+00:00",
    "updated_at": "2023-06-01T00:00:00+00:00",
}


class InMemoryStore:
    """Dict-of-lists store with the ContentStore interface.

    Every call is recorded as (operation, table, record_id). Generated IDs are
    `<table>-<n>` and created_at timestamps increase by one second per insert.
    """

    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None):
        self.tables: dict[str, list[dict[str, Any]]] = defaultdict(list)
        for table, rows in (tables or {}).items():
            self.tables[table] = [dict(row) for row in rows]
        self.calls: list[tuple[str, str, str | None]] = []
        self._failures: dict[tuple[str, str], str] = {}
        self._ids = itertools.count(1)
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def fail(self, operation: str, table: str, message: str = "simulated failure") -> None:
        """Make every future `operation` on `table` raise StoreError."""
        self._failures[(operation, table)] = message

    def heal(self, operation: str, table: str) -> None:
        self._failures.pop((operation, table), None)

    def content_calls(self, *ignored: str) -> list[tuple[str, str, str | None]]:
        """Calls against tables other than the bookkeeping ones."""
        skip = {"ai_content_plans", "ai_change_history", "ai_conversations", *ignored}
        return [call for call in self.calls if call[1] not in skip]

    def _record(self, operation: str, table: str, record_id: str | None = None) -> None:
        self.calls.append((operation, table, record_id))
        message = self._failures.get((operation, table))
        if message:
            raise StoreError(message)

    def _tick(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def _find(self, table: str, record_id: str) -> dict[str, Any] | None:
        for row in self.tables[table]:
            if str(row.get("id")) == str(record_id):
                return row
        return None

    def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        self._record("insert", table, row.get("id"))
        stored = copy.deepcopy(row)
        stored.setdefault("id", f"{table}-{next(self._ids)}")
        now = self._tick()
        stored.setdefault("created_at", now)
        stored.setdefault("updated_at", now)
        self.tables[table].append(stored)
        return copy.deepcopy(stored)

    def update(self, table: str, patch: dict[str, Any], match_id: str) -> dict[str, Any]:
        self._record("update", table, match_id)
        row = self._find(table, match_id)
        if row is None:
            raise StoreError(f"No row {match_id} in {table}")
        row.update(copy.deepcopy(patch))
        return copy.deepcopy(row)

    def delete(self, table: str, match_id: str) -> None:
        self._record("delete", table, match_id)
        self.tables[table] = [
            row for row in self.tables[table] if str(row.get("id")) != str(match_id)
        ]

    def select_one(self, table: str, record_id: str) -> dict[str, Any] | None:
        self._record("select_one", table, record_id)
        row = self._find(table, record_id)
        return copy.deepcopy(row) if row else None

    def select_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order: tuple[str, bool] | None = None,
        limit: int | None = None,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        self._record("select_many", table)
        rows = list(self.tables[table])
        for column, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set)):
                rows = [row for row in rows if row.get(column) in value]
            else:
                rows = [row for row in rows if row.get(column) == value]
        if order:
            column, descending = order
            rows.sort(key=lambda row: str(row.get(column) or ""), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    def count(self, table: str) -> int:
        self._record("count", table)
        return len(self.tables[table])


class FakeMediaStorage:
    """MediaStorage stand-in keeping objects in a dict."""

    def __init__(self):
        self.objects: dict[tuple[str, str], tuple[bytes, str]] = {}

    def upload(self, bucket: str, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        self.objects[(bucket, path)] = (data, content_type)
        return path

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"https://cdn.test/storage/v1/object/public/{bucket}/{path}"

    def list(self, bucket: str, prefix: str = "") -> list[dict[str, Any]]:
        base = f"{prefix.rstrip('/')}/" if prefix else ""
        return [
            {"name": path[len(base):]}
            for (stored_bucket, path) in sorted(self.objects)
            if stored_bucket == bucket and path.startswith(base) and "/" not in path[len(base):]
        ]


def completion_frame(delta: dict[str, Any] | None = None, finish_reason: str | None = None) -> str:
    """One `data: ` line in the OpenAI chunk shape."""
    choice = {"index": 0, "delta": delta or {}, "finish_reason": finish_reason}
    return f"data: {json.dumps({'choices': [choice]}, ensure_ascii=False)}\n"


def text_frame(content: str) -> str:
    return completion_frame({"content": content})


def tool_frame(arguments: str, name: str | None = None, index: int = 0) -> str:
    function: dict[str, Any] = {"arguments": arguments}
    if name:
        function["name"] = name
    return completion_frame({"tool_calls": [{"index": index, "function": function}]})


def plan_stream(
    text: str, plan: dict[str, Any], pieces: int = 3, done: bool = True
) -> bytes:
    """A complete assistant turn: text frames, the plan in fragments, finish and [DONE]."""
    arguments = json.dumps(plan, ensure_ascii=False)
    size = max(1, len(arguments) // pieces + 1)
    fragments = [arguments[start:start + size] for start in range(0, len(arguments), size)]

    lines = [text_frame(text)] if text else []
    lines.append(tool_frame(fragments[0], name="content_plan"))
    lines.extend(tool_frame(fragment) for fragment in fragments[1:])
    lines.append(completion_frame(finish_reason="tool_calls"))
    if done:
        lines.append("data: [DONE]\n")
    return "".join(lines).encode("utf-8")


class FakeChatModel:
    """Chat model double that replays fixed chunks, or raises `error` on the first read."""

    def __init__(self, chunks=(), error: Exception | None = None):
        self.chunks = list(chunks)
        self.error = error
        self.tools = None
        self.received = None

    def bind_tools(self, tools):
        self.tools = tools
        return self

    async def astream(self, messages):
        self.received = messages
        if self.error:
            raise self.error
        for chunk in self.chunks:
            yield chunk
