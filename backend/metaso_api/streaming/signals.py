"""
Interpretation of metaso search events.

metaso sends JSON objects in SSE data fields, discriminated by "type", and
ends with the literal "[DONE]".
"""

import logging
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Optional, Union

import orjson

from metaso_api.streaming.parser import EVENT_KIND, RawEvent

logger = logging.getLogger(__name__)

# Constants
DONE_SENTINEL = "[DONE]"
APPEND_TEXT_TYPE = "append-text"


@dataclass(frozen=True)
class AppendText:
    text: str


@dataclass(frozen=True)
class StreamEnd:
    pass


@dataclass(frozen=True)
class Malformed:
    raw: str


UpstreamSignal = Union[AppendText, StreamEnd, Malformed]


def interpret_event(event: RawEvent) -> Optional[UpstreamSignal]:
    """Map a raw event to a signal, or None when the event carries nothing for us."""
    if event.kind != EVENT_KIND:
        return None
    if event.data == DONE_SENTINEL:
        return StreamEnd()

    try:
        payload = orjson.loads(event.data)
    except orjson.JSONDecodeError:
        return Malformed(raw=event.data)
    if not isinstance(payload, dict):
        return Malformed(raw=event.data)

    if payload.get("type") == APPEND_TEXT_TYPE:
        text = payload.get("text")
        if text is None:
            text = ""
        return AppendText(text=text if isinstance(text, str) else str(text))

    # Other event types (references, progress) are skipped
    logger.debug(f"Skipping metaso event type: {payload.get('type')!r}")
    return None


async def aiter_signals(events: AsyncIterable[RawEvent]) -> AsyncIterator[UpstreamSignal]:
    """Interpret an event stream, dropping events that produce no signal."""
    async for event in events:
        signal = interpret_event(event)
        if signal is not None:
            yield signal
