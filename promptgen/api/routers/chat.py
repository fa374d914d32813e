import logging
from typing import AsyncIterator
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from promptgen.agents.chat import ChatInput
from promptgen.api.deps import get_chat_generator
from promptgen.core import config
from promptgen.core.errors import ErrorKind, PromptGenError, error_kind
from promptgen.providers.base import ProviderError
from promptgen.schemas.chat import ChatRequest, ChatResponse, ErrorResponse
from promptgen.services.generator import Generator

router = APIRouter(tags=["chat"])
logger = logging.getLogger(__name__)

_STATUS = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.INVALID_RESPONSE: 502,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.CANCELED: 499,
    ErrorKind.RATE_LIMIT: 429,
    ErrorKind.CONTEXT_LENGTH: 413,
    ErrorKind.CONFIGURATION: 503,
    ErrorKind.NO_PROVIDER: 503,
}


def _http_error(e: Exception) -> HTTPException:
    kind = error_kind(e)
    status = _STATUS.get(kind, 502) if kind else 502
    if isinstance(e, PromptGenError):
        body = ErrorResponse(**e.to_dict())
    else:
        body = ErrorResponse(error="provider_error", message=str(e))
    detail = body.model_dump()
    return HTTPException(status_code=status, detail=detail)


@router.post("/chat", response_model=ChatResponse)
async def chat(req: ChatRequest, request: Request, generator: Generator[ChatInput, str] = Depends(get_chat_generator)):
    value = ChatInput(message=req.message, context=req.context)
    provider_name = config.PROVIDER if generator.provider is None else type(generator.provider).__name__

    # Non-stream path
    if not req.stream or not config.ENABLE_STREAMING:
        try:
            reply = await generator.run(value, timeout=req.timeout)
        except (PromptGenError, ProviderError) as e:
            raise _http_error(e)
        return ChatResponse(reply=reply, provider=provider_name)

    # Stream path
    try:
        stream = await generator.stream(value, timeout=req.timeout)
    except (PromptGenError, ProviderError) as e:
        raise _http_error(e)

    async def streamer() -> AsyncIterator[bytes]:
        try:
            async for chunk in stream:
                if await request.is_disconnected():
                    logger.info("client disconnected, stopping stream")
                    return
                yield chunk.encode("utf-8")
            # content can end before the background task has settled its terminal signal
            try:
                await stream.wait()
            except Exception as e:
                logger.exception("streaming error occurred: %s", e)
        finally:
            await stream.aclose()

    return StreamingResponse(streamer(), media_type="text/plain; charset=utf-8")
