"""LangChain assistant backend that streams content plans as chat-completion frames."""

import json
from collections.abc import AsyncIterator
from typing import Any

from langchain_core.messages import AIMessageChunk
from langchain_openai import ChatOpenAI

from content_hub.config import Settings
from content_hub.log import get_logger
from content_hub.models.tables import PUBLISHABLE_TABLES, READ_ONLY_COLUMNS, TABLE_SCHEMAS, ContentTable
from content_hub.services.stream_parser import CONTENT_PLAN_TOOL as CONTENT_PLAN_TOOL_NAME
from content_hub.services.stream_parser import DATA_PREFIX, DONE_SENTINEL
from content_hub.utils.message_formatter import format_history_for_llm, format_sse

logger = get_logger(__name__)

_RULE = "=" * 51

_INTRO = """You are an AI content management assistant for a personal portfolio/creative website. You help the admin manage ALL site content across every table in the database.

You have access to the current site content provided in each message, including record counts and the most recent records of each table. When asked to make changes, you MUST use the content_plan tool to return structured action plans."""

_DISAMBIGUATION = """- "life periods" / "timeline" / "life chapter" -> life_periods table (NEVER experiences)
- "supplies" / "equipment" / "materials needed" -> supplies_needed table (NOT "supplies")
- "client work" / "client projects" -> client_projects table
- "store products" / "shop items" -> products table
- "product reviews" / "reviews" -> product_reviews table
- "learning goals" -> learning_goals table
- "funding" / "campaigns" -> funding_campaigns table
- "sales" / "revenue figures" -> sales_data table
- "leads" / "prospects" -> leads table"""

_BEHAVIOR = """- Always reference existing content by its real UUID when updating or deleting
- When creating new content, generate appropriate slugs from titles (lowercase, hyphenated)
- Never modify content that wasn't explicitly discussed
- Each action in a plan must specify the exact table, fields, and values
- For updates, only include the fields that are changing
- Never set id or created_at; they are managed by the database
- When the user pastes content, analyze it and suggest the best content type and fields
- Be specific about what will change - show field names and values
- Pay attention to the published/draft status and review_status of content

When analyzing pasted content, suggest:
1. Which content type it fits best (using the exact table name)
2. Suggested field values (title, description, tags, category, etc.)
3. A structured plan to create it

When asked for content reports or audits, provide:
1. Summary of content counts and status
2. Issues found (missing fields, stale content, SEO gaps)
3. Actionable plans to fix issues

Always provide clear summaries of what each plan will do."""

CONTENT_PLAN_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": CONTENT_PLAN_TOOL_NAME,
        "description": (
            "Create a structured plan to modify site content. Use this whenever the user "
            "asks to create, update, or delete any content."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Short title for this plan"},
                "summary": {
                    "type": "string",
                    "description": "Human-readable summary of what this plan will do",
                },
                "actions": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "type": {"type": "string", "enum": ["create", "update", "delete"]},
                            "table": {
                                "type": "string",
                                "enum": [table.value for table in ContentTable],
                                "description": "Database table name",
                            },
                            "record_id": {
                                "type": "string",
                                "description": "UUID of existing record (for update/delete)",
                            },
                            "data": {"type": "object", "description": "Fields and values to set"},
                            "description": {
                                "type": "string",
                                "description": "Human-readable description of this action",
                            },
                        },
                        "required": ["type", "table", "description"],
                        "additionalProperties": False,
                    },
                },
            },
            "required": ["title", "summary", "actions"],
            "additionalProperties": False,
        },
    },
}


def _section(title: str, body: str) -> str:
    return f"{_RULE}\n{title}\n{_RULE}\n{body}"


def render_schema() -> str:
    """Describe every allow-listed table and its writable columns."""
    blocks = []
    for schema in TABLE_SCHEMAS.values():
        lines = [f"TABLE: {schema.table.value}", "  - id: uuid (auto)"]
        for column in schema.columns.values():
            if column.name in READ_ONLY_COLUMNS or column.name == "updated_at":
                continue
            suffix = " (REQUIRED)" if column.required else ""
            lines.append(f"  - {column.name}: {column.describe()}{suffix}")
        auto = "created_at, updated_at" if schema.has_updated_at else "created_at"
        lines.append(f"  - {auto}: timestamptz (auto)")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def render_routes() -> str:
    return "\n".join(
        f"- {schema.table.value} -> {schema.manager_path}" for schema in TABLE_SCHEMAS.values()
    )


def build_system_prompt(site_content: dict[str, Any] | None = None) -> str:
    """
    Build the assistant system prompt.

    Args:
        site_content: Per-table summary of the current site, if available

    Returns:
        Prompt text with the table schema, admin routes and site summary
    """
    publishable = ", ".join(sorted(table.value for table in PUBLISHABLE_TABLES))
    sections = [
        _INTRO,
        _section("IMPORTANT DISAMBIGUATION RULES", _DISAMBIGUATION),
        _section("COMPLETE DATABASE SCHEMA - ALL CONTENT TABLES", render_schema()),
        _section("TABLE-TO-ADMIN-ROUTE MAPPING", render_routes()),
        _section("CONTENT STATUS FIELDS", f"- published (boolean): {publishable}"),
        _section("BEHAVIORAL RULES", _BEHAVIOR),
    ]
    prompt = "\n\n".join(sections)
    if site_content:
        prompt += f"\n\nCURRENT SITE CONTENT SUMMARY:\n{json.dumps(site_content, indent=2, default=str)}"
    return prompt


def create_assistant_llm(settings: Settings) -> ChatOpenAI:
    """
    Create the chat model behind the assistant endpoint.

    Args:
        settings: Service settings

    Returns:
        Streaming ChatOpenAI instance
    """
    return ChatOpenAI(
        model=settings.ai_model,
        temperature=settings.ai_temperature,
        streaming=True,
        api_key=settings.ai_api_key,
        base_url=settings.ai_base_url,
    )


def chunk_to_frame(chunk: AIMessageChunk) -> dict[str, Any] | None:
    """
    Convert a streamed LangChain chunk to an OpenAI-style completion chunk.

    Returns:
        Frame dict, or None when the chunk carries nothing
    """
    delta: dict[str, Any] = {}
    if isinstance(chunk.content, str) and chunk.content:
        delta["content"] = chunk.content

    tool_calls = []
    for position, call in enumerate(chunk.tool_call_chunks):
        index = call.get("index")
        tool_calls.append(
            {
                "index": index if index is not None else position,
                "id": call.get("id"),
                "type": "function",
                "function": {"name": call.get("name"), "arguments": call.get("args") or ""},
            }
        )
    if tool_calls:
        delta["tool_calls"] = tool_calls

    finish_reason = chunk.response_metadata.get("finish_reason")
    if not delta and not finish_reason:
        return None
    return {"choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}]}


def describe_gateway_error(error: Exception) -> tuple[int, str]:
    """Map a model provider error to an HTTP status and client message."""
    status = getattr(error, "status_code", None)
    if status == 429:
        return 429, "Rate limit exceeded, please try again later."
    if status == 402:
        return 402, "Payment required, please add credits."
    return 500, "AI gateway error"


async def stream_completion(
    llm: ChatOpenAI,
    messages: list[dict[str, Any]],
    site_content: dict[str, Any] | None = None,
) -> AsyncIterator[str]:
    """
    Stream one assistant turn as `data: ...` frames ending with `data: [DONE]`.

    Args:
        llm: Chat model
        messages: Conversation turns as role/content dicts
        site_content: Current site summary

    Yields:
        SSE formatted strings
    """
    model = llm.bind_tools([CONTENT_PLAN_TOOL])
    history = format_history_for_llm(messages, build_system_prompt(site_content))

    async for chunk in model.astream(history):
        frame = chunk_to_frame(chunk)
        if frame is not None:
            yield format_sse(frame)

    logger.debug("assistant_turn_streamed", messages=len(messages))
    yield f"{DATA_PREFIX}{DONE_SENTINEL}\n\n"
