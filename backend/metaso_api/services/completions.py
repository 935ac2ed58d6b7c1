"""
Chat completion service.

Turns an OpenAI-style request into one metaso search and returns either the
aggregated completion or a chunk stream.
"""

import asyncio
import logging
from contextlib import AsyncExitStack
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, TypeVar

from metaso_api.config import settings
from metaso_api.models.response import ChatCompletion
from metaso_api.services.metaso import MetasoClient
from metaso_api.streaming import TransStream, aiter_events, receive_stream
from metaso_api.utils.exceptions import UpstreamError
from metaso_api.utils.messages import messages_prepare
from metaso_api.utils.time import timestamp_ms

logger = logging.getLogger(__name__)

# Search modes exposed as model names
MODELS = ("concise", "detail", "research")
DEFAULT_MODEL = "concise"

T = TypeVar("T")


def normalize_model(model: Optional[str]) -> str:
    """Map an unknown model name to the default search mode."""
    if model in MODELS:
        return model
    if settings.default_model in MODELS:
        return settings.default_model
    return DEFAULT_MODEL


async def _with_retry(operation: Callable[[], Awaitable[T]]) -> T:
    """Run `operation`, retrying upstream failures `settings.max_retry_count` times."""
    retry_count = 0
    while True:
        try:
            return await operation()
        except UpstreamError as e:
            if retry_count >= settings.max_retry_count:
                raise
            retry_count += 1
            logger.error(f"Stream response error: {e}")
            logger.warning(
                f"Try again after {settings.retry_delay}s "
                f"(attempt {retry_count}/{settings.max_retry_count})..."
            )
            await asyncio.sleep(settings.retry_delay)


async def create_completion(
    client: MetasoClient,
    model: Optional[str],
    messages: List[Dict[str, Any]],
    token: str,
) -> ChatCompletion:
    """Run one search and return the whole answer."""
    model = normalize_model(model)
    logger.info(f"Completion request: model={model}, messages={len(messages)}")

    async def attempt() -> ChatCompletion:
        session = await client.acquire(token)
        question = messages_prepare(messages)
        async with client.stream_search(session, model, question, token) as chunks:
            started = timestamp_ms()
            answer = await receive_stream(model, session.conv_id, aiter_events(chunks))
            logger.info(f"Stream has completed transfer {timestamp_ms() - started}ms")
            return answer

    return await _with_retry(attempt)


async def create_completion_stream(
    client: MetasoClient,
    model: Optional[str],
    messages: List[Dict[str, Any]],
    token: str,
) -> AsyncIterator[str]:
    """
    Run one search and return its chunk stream.

    Bootstrap and stream-open failures raise here, before anything has been
    sent to the caller. Failures after that end the returned stream early.
    """
    model = normalize_model(model)
    logger.info(f"Streaming completion request: model={model}, messages={len(messages)}")

    async def attempt():
        session = await client.acquire(token)
        question = messages_prepare(messages)
        stack = AsyncExitStack()
        chunks = await stack.enter_async_context(
            client.stream_search(session, model, question, token)
        )
        return session, chunks, stack

    session, chunks, stack = await _with_retry(attempt)

    started = timestamp_ms()
    stream = TransStream(
        model,
        session.conv_id,
        aiter_events(chunks),
        on_end=lambda: logger.info(
            f"Stream has completed transfer {timestamp_ms() - started}ms"
        ),
    )
    return _relay(stream, stack)


async def _relay(stream: TransStream, stack: AsyncExitStack) -> AsyncIterator[str]:
    """Yield the transcoded frames, closing the upstream response afterwards."""
    async with stack:
        async for frame in stream:
            yield frame
