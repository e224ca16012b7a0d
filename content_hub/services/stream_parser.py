"""Incremental parsing of streamed chat-completion frames into assistant turns.

The assistant endpoint answers with newline-delimited `data: {...}` frames in
the OpenAI chunk shape, optionally terminated by `data: [DONE]`. Bytes arrive
in arbitrary chunks, so decoding and line splitting are both incremental.
"""

import codecs
import json
from dataclasses import dataclass, field
from typing import Any

from content_hub.errors import PlanParseError
from content_hub.log import get_logger
from content_hub.models.plan import ContentPlan
from content_hub.services.plan_builder import parse_plan_arguments

logger = get_logger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"
CONTENT_PLAN_TOOL = "content_plan"


@dataclass(frozen=True)
class TextDelta:
    """A piece of assistant text."""

    content: str


@dataclass(frozen=True)
class ToolCallFragment:
    """A piece of a tool call's JSON arguments."""

    arguments: str
    name: str | None = None
    index: int = 0


@dataclass(frozen=True)
class Finish:
    """The model's finish signal for the current choice."""

    reason: str


@dataclass(frozen=True)
class StreamError:
    """An error frame sent by the assistant endpoint after streaming started."""

    message: str


StreamEvent = TextDelta | ToolCallFragment | Finish | StreamError


class StreamParser:
    """Turn raw response bytes into stream events.

    Complete lines are parsed as frames; anything after the last newline waits
    for the next chunk. A frame whose JSON does not parse is held back and
    retried together with the following line, and processing of the current
    chunk stops until more bytes arrive. If the following line opens a new
    frame instead, the held line is discarded.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._held: str | None = None
        self.done = False

    def feed(self, chunk: bytes) -> list[StreamEvent]:
        """
        Consume a chunk of the response body.

        Args:
            chunk: Raw bytes, possibly ending mid-character or mid-line

        Returns:
            Events from every frame completed by this chunk
        """
        if self.done:
            return []
        self._buffer += self._decoder.decode(chunk)
        return self._drain(final=False)

    def close(self) -> list[StreamEvent]:
        """Flush the decoder and process whatever is left at end of stream."""
        if self.done:
            return []
        self._buffer += self._decoder.decode(b"", final=True)
        events = self._drain(final=True)
        if self._buffer and not self.done:
            rest, self._buffer = self._buffer, ""
            events.extend(self._take_line(rest.removesuffix("\r"), final=True))
        if self._held is not None:
            logger.warning("stream_frame_dropped", frame=self._held[:200])
            self._held = None
        return events

    def _drain(self, final: bool) -> list[StreamEvent]:
        events: list[StreamEvent] = []
        while not self.done:
            newline = self._buffer.find("\n")
            if newline == -1:
                break
            line = self._buffer[:newline].removesuffix("\r")
            self._buffer = self._buffer[newline + 1 :]

            parsed = self._take_line(line, final)
            if parsed is None:
                break
            events.extend(parsed)
        return events

    def _take_line(self, line: str, final: bool) -> list[StreamEvent] | None:
        """Process one line; None means it was held back."""
        if self._held is not None:
            if line.startswith(DATA_PREFIX) or not line:
                logger.warning("stream_frame_dropped", frame=self._held[:200])
                self._held = None
            else:
                line = f"{self._held}\n{line}"
                self._held = None

        if not line.startswith(DATA_PREFIX):
            return []

        payload = line[len(DATA_PREFIX) :].strip()
        if payload == DONE_SENTINEL:
            self.done = True
            return []

        try:
            frame = json.loads(payload)
        except ValueError:
            self._held = line
            if final:
                return []
            return None

        return _frame_events(frame)


def _frame_events(frame: Any) -> list[StreamEvent]:
    if not isinstance(frame, dict):
        return []
    if "error" in frame:
        error = frame["error"]
        if isinstance(error, dict):
            error = error.get("message") or json.dumps(error)
        logger.warning("stream_error_frame", error=error)
        return [StreamError(str(error))]

    choices = frame.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return []
    choice = choices[0]
    delta = choice.get("delta")
    if not isinstance(delta, dict):
        delta = {}

    events: list[StreamEvent] = []
    content = delta.get("content")
    if isinstance(content, str) and content:
        events.append(TextDelta(content))

    for position, tool_call in enumerate(delta.get("tool_calls") or []):
        if not isinstance(tool_call, dict):
            continue
        function = tool_call.get("function") or {}
        index = tool_call.get("index")
        events.append(
            ToolCallFragment(
                arguments=function.get("arguments") or "",
                name=function.get("name"),
                index=index if isinstance(index, int) else position,
            )
        )

    reason = choice.get("finish_reason")
    if reason:
        events.append(Finish(reason))
    return events


@dataclass
class _PendingCall:
    name: str | None = None
    arguments: str = ""


@dataclass
class TurnAccumulator:
    """Accumulate one assistant turn: its text and the plans it produced."""

    text: str = ""
    plans: list[ContentPlan] = field(default_factory=list)
    errors: list[PlanParseError] = field(default_factory=list)
    _calls: dict[int, _PendingCall] = field(default_factory=dict)

    @property
    def in_tool_call(self) -> bool:
        return bool(self._calls)

    def apply(self, event: StreamEvent) -> list[ContentPlan | PlanParseError]:
        """
        Fold an event into the turn.

        Args:
            event: Event from the stream parser

        Returns:
            Plans (or plan errors) completed by this event
        """
        if isinstance(event, TextDelta):
            self.text += event.content
        elif isinstance(event, ToolCallFragment):
            call = self._calls.setdefault(event.index, _PendingCall())
            if event.name:
                call.name = event.name
            call.arguments += event.arguments
        elif isinstance(event, Finish) and event.reason == "tool_calls":
            return self._materialize()
        return []

    def finish(self) -> list[ContentPlan | PlanParseError]:
        """Flush tool arguments still pending at end of stream."""
        return self._materialize()

    def _materialize(self) -> list[ContentPlan | PlanParseError]:
        calls, self._calls = self._calls, {}
        produced: list[ContentPlan | PlanParseError] = []
        for index in sorted(calls):
            call = calls[index]
            if not call.arguments:
                continue
            if call.name not in (None, CONTENT_PLAN_TOOL):
                logger.warning("unknown_tool_call", tool=call.name)
                continue
            try:
                plan = parse_plan_arguments(call.arguments)
            except PlanParseError as e:
                logger.warning("plan_parse_failed", error=str(e), length=len(call.arguments))
                self.errors.append(e)
                produced.append(e)
                continue

            self.plans.append(plan)
            if not self.text:
                self.text = plan.summary
            produced.append(plan)
        return produced
