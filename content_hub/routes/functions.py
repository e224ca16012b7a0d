"""Assistant completion endpoint consumed by the chat service."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse
from langchain_openai import ChatOpenAI

from content_hub.assistant import describe_gateway_error, stream_completion
from content_hub.dependencies import get_llm
from content_hub.log import get_logger
from content_hub.models.schemas import AssistantRequest
from content_hub.routes.chat import SSE_HEADERS
from content_hub.utils.message_formatter import format_sse

logger = get_logger(__name__)

router = APIRouter()


@router.post("/functions/ai-content-hub")
async def assistant_completion(request: AssistantRequest, llm: ChatOpenAI = Depends(get_llm)):
    """
    Stream one assistant turn as OpenAI-style chunk frames.

    Provider errors raised before the first frame become JSON error
    responses; errors after streaming started become an error frame.
    """
    turns = [turn.model_dump() for turn in request.messages]
    stream = stream_completion(llm, turns, request.siteContent)

    try:
        first = await anext(stream)
    except StopAsyncIteration:
        first = None
    except Exception as e:
        status, message = describe_gateway_error(e)
        logger.error("assistant_request_failed", status=status, error=str(e))
        return JSONResponse({"error": message}, status_code=status)

    async def relay():
        if first is not None:
            yield first
        try:
            async for frame in stream:
                yield frame
        except Exception as e:
            _, message = describe_gateway_error(e)
            logger.error("assistant_stream_failed", error=str(e))
            yield format_sse({"error": message})

    return StreamingResponse(relay(), media_type="text/event-stream", headers=SSE_HEADERS)
