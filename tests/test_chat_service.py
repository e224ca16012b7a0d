import json

import httpx
import pytest

from content_hub.models.database import ChatMessage
from content_hub.services.chat_service import ChatService
from content_hub.services.conversation_service import CONVERSATIONS_TABLE, ConversationService
from fakes import completion_frame, plan_stream, text_frame, tool_frame

pytestmark = pytest.mark.asyncio

ENDPOINT = "https://hub.test/functions/v1/ai-content-hub"

PLAN = {
    "title": "Publish article",
    "summary": "Publish On Attention",
    "actions": [
        {
            "type": "update",
            "table": "articles",
            "record_id": "article-1",
            "data": {"published": True},
            "description": "Publish",
        }
    ],
}


def _streaming_transport(body: bytes, captured: list, chunk_size: int = 5) -> httpx.MockTransport:
    async def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)

        async def stream():
            for start in range(0, len(body), chunk_size):
                yield body[start:start + chunk_size]

        return httpx.Response(200, content=stream(), headers={"content-type": "text/event-stream"})

    return httpx.MockTransport(handler)


def _service(store, transport, endpoint=ENDPOINT) -> ChatService:
    return ChatService(
        ConversationService(store), store, endpoint=endpoint, api_key="secret", transport=transport
    )


async def _frames(service: ChatService, message: str, **kwargs) -> list[dict]:
    frames = [frame async for frame in service.stream_chat_response(message, **kwargs)]
    assert all(frame.startswith("data: ") and frame.endswith("\n\n") for frame in frames)
    return [json.loads(frame[len("data: "):]) for frame in frames]


async def test_turn_streams_text_and_plan_then_saves(store):
    captured = []
    service = _service(store, _streaming_transport(plan_stream("I'll publish it. ", PLAN), captured))

    frames = await _frames(service, "Publish my article")

    assert [frame["type"] for frame in frames] == [
        "content_delta",
        "plan",
        "content",
        "conversation_id",
        "done",
    ]
    assert frames[1]["plan"]["title"] == "Publish article"
    assert frames[1]["plan"]["actions"][0]["record_id"] == "article-1"
    assert frames[2]["content"] == "I'll publish it. "

    rows = store.tables[CONVERSATIONS_TABLE]
    assert len(rows) == 1
    assert frames[3]["conversation_id"] == rows[0]["id"]
    assert [(m["role"], m["content"]) for m in rows[0]["messages"]] == [
        ("user", "Publish my article"),
        ("assistant", "I'll publish it. "),
    ]


async def test_request_carries_key_history_and_site_summary(store):
    captured = []
    service = _service(store, _streaming_transport(plan_stream("ok", PLAN), captured))

    await _frames(service, "Publish my article")

    request = captured[0]
    payload = json.loads(request.content)
    assert request.url == ENDPOINT
    assert request.headers["Authorization"] == "Bearer secret"
    assert payload["messages"] == [{"role": "user", "content": "Publish my article"}]
    assert payload["siteContent"]["articles"]["count"] == 1
    assert payload["siteContent"]["articles"]["recent"][0]["title"] == "On Attention"


async def test_caller_token_replaces_configured_key(store):
    captured = []
    service = _service(store, _streaming_transport(plan_stream("ok", PLAN), captured))

    await _frames(service, "Publish my article", access_token="user-session")

    assert captured[0].headers["Authorization"] == "Bearer user-session"


async def test_follow_up_turn_updates_same_conversation(store):
    captured = []
    service = _service(store, _streaming_transport(text_frame("Sure.").encode(), captured))

    first = await _frames(service, "Hello")
    conversation_id = first[-2]["conversation_id"]
    second = await _frames(service, "Thanks", conversation_id=conversation_id)

    assert second[-2]["conversation_id"] == conversation_id
    assert len(store.tables[CONVERSATIONS_TABLE]) == 1
    assert [m["content"] for m in store.tables[CONVERSATIONS_TABLE][0]["messages"]] == [
        "Hello",
        "Sure.",
        "Thanks",
        "Sure.",
    ]
    assert [m["role"] for m in json.loads(captured[1].content)["messages"]] == [
        "user",
        "assistant",
        "user",
    ]


async def test_unknown_conversation_starts_a_new_one(store):
    service = _service(store, _streaming_transport(text_frame("Hi").encode(), []))

    frames = await _frames(service, "Hello", conversation_id="gone")

    assert frames[-2]["conversation_id"] != "gone"
    assert len(store.tables[CONVERSATIONS_TABLE]) == 1


async def test_explicit_history_is_sent_as_given(store):
    captured = []
    service = _service(store, _streaming_transport(text_frame("Yes").encode(), captured))
    history = [ChatMessage(role="user", content="Earlier"), ChatMessage(role="assistant", content="Reply")]

    await _frames(service, "Now", history=history)

    assert [m["content"] for m in json.loads(captured[0].content)["messages"]] == [
        "Earlier",
        "Reply",
        "Now",
    ]


async def test_plan_without_finish_or_done_is_flushed(store):
    body = (text_frame("Plan:") + tool_frame(json.dumps(PLAN), name="content_plan")).encode()
    service = _service(store, _streaming_transport(body, []))

    frames = await _frames(service, "Publish")

    assert [frame["type"] for frame in frames][:2] == ["content_delta", "plan"]


async def test_malformed_plan_is_reported(store):
    body = (
        tool_frame('{"title": "Broken', name="content_plan")
        + completion_frame(finish_reason="tool_calls")
        + "data: [DONE]\n"
    ).encode()
    service = _service(store, _streaming_transport(body, []))

    frames = await _frames(service, "Publish")

    assert frames[0]["type"] == "plan_error"
    assert frames[0]["raw"] == '{"title": "Broken'
    assert [frame["type"] for frame in frames[1:]] == ["content", "conversation_id", "done"]


@pytest.mark.parametrize(
    "response,message",
    [
        (httpx.Response(429, json={"error": "Rate limit exceeded, please try again later."}),
         "Rate limit exceeded, please try again later."),
        (httpx.Response(500, content=b"upstream exploded"), "upstream exploded"),
        (httpx.Response(502, content=b""), "HTTP 502"),
    ],
)
async def test_error_status_aborts_turn_without_saving(store, response, message):
    service = _service(store, httpx.MockTransport(lambda request: response))

    frames = await _frames(service, "Hello")

    assert frames == [{"type": "error", "message": message}]
    assert store.tables[CONVERSATIONS_TABLE] == []


async def test_transport_error_aborts_turn(store):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    service = _service(store, httpx.MockTransport(handler))

    frames = await _frames(service, "Hello")

    assert frames == [{"type": "error", "message": "connection refused"}]
    assert store.tables[CONVERSATIONS_TABLE] == []


async def test_missing_endpoint(store):
    service = _service(store, None, endpoint=None)

    frames = await _frames(service, "Hello")

    assert frames == [{"type": "error", "message": "Assistant endpoint not configured"}]


@pytest.mark.parametrize("terminator", ["\n", ""])
async def test_error_frame_after_streaming_started_aborts_turn(store, terminator):
    body = (text_frame("Partial") + 'data: {"error": "AI gateway error"}' + terminator).encode()
    service = _service(store, _streaming_transport(body, []))

    frames = await _frames(service, "Hello")

    assert frames == [
        {"type": "content_delta", "content": "Partial"},
        {"type": "error", "message": "AI gateway error"},
    ]
    assert store.tables[CONVERSATIONS_TABLE] == []
