"""Utility functions for formatting messages for LangChain and SSE clients."""

import json
from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage


def format_sse(data: dict[str, Any]) -> str:
    """Encode one Server-Sent Events frame."""
    return f"data: {json.dumps(data, default=str)}\n\n"


def format_history_for_llm(
    turns: list[dict[str, Any]], system_prompt: str | None = None
) -> list[BaseMessage]:
    """
    Format chat turns into LangChain messages.

    Args:
        turns: Messages as {"role": ..., "content": ...} dicts
        system_prompt: Optional system prompt placed first

    Returns:
        List of LangChain messages; turns with other roles are skipped
    """
    messages: list[BaseMessage] = []
    if system_prompt:
        messages.append(SystemMessage(content=system_prompt))
    for turn in turns:
        role = turn.get("role")
        content = turn.get("content") or ""
        if role == "user":
            messages.append(HumanMessage(content=content))
        elif role == "assistant":
            messages.append(AIMessage(content=content))
    return messages
