"""
Incremental transcoding of metaso search events into chat.completion.chunk frames.

Frame order on a clean stream:
    priming chunk (role delta) -> text delta chunks -> terminal chunk (finish_reason "stop",
    usage) -> "data: [DONE]"

When the upstream sends an undecodable payload or the transport fails, the
terminal chunk is skipped and only "data: [DONE]" is sent, since the chunk
format has no mid-stream error frame.
"""

import logging
from contextlib import aclosing
from enum import Enum
from typing import AsyncIterable, AsyncIterator, Callable, List, Optional

from metaso_api.models.response import ChatCompletionChunk, ChunkChoice, Usage
from metaso_api.streaming.parser import RawEvent
from metaso_api.streaming.signals import (
    AppendText,
    Malformed,
    StreamEnd,
    UpstreamSignal,
    aiter_signals,
)
from metaso_api.utils.exceptions import TransportError
from metaso_api.utils.sse import SSE_DONE_FRAME, format_sse_data
from metaso_api.utils.time import unix_timestamp

logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    PRIMING = "priming"
    STREAMING = "streaming"
    TERMINATED = "terminated"


class TransStream:
    """
    State machine producing the chunk stream for one completion.

    The frame-producing methods (open, feed, close, fail) return the frames to
    write, and return nothing once the stream is terminated. Iterating the
    object drives them from the event source.
    """

    def __init__(
        self,
        model: str,
        conv_id: str,
        events: AsyncIterable[RawEvent],
        on_end: Optional[Callable[[], None]] = None,
    ):
        self.model = model
        self.conv_id = conv_id
        self.created = unix_timestamp()
        self.state = StreamState.PRIMING
        self._events = events
        self._on_end = on_end

    @property
    def closed(self) -> bool:
        return self.state is StreamState.TERMINATED

    def open(self) -> List[str]:
        """Emit the role-priming chunk, once."""
        if self.state is not StreamState.PRIMING:
            return []
        self.state = StreamState.STREAMING
        return [self._chunk({"role": "assistant", "content": ""})]

    def feed(self, signal: UpstreamSignal) -> List[str]:
        frames = self.open()
        if self.closed:
            return frames

        if isinstance(signal, AppendText):
            frames.append(self._chunk({"content": signal.text}))
        elif isinstance(signal, StreamEnd):
            frames.extend(self._finish())
        elif isinstance(signal, Malformed):
            logger.error(f"Stream response invalid: {signal.raw}")
            frames.extend(self._abort())
        return frames

    def close(self) -> List[str]:
        """Upstream ended normally."""
        frames = self.open()
        frames.extend(self._finish())
        return frames

    def fail(self, error: Exception) -> List[str]:
        """Upstream transport failed."""
        frames = self.open()
        if not self.closed:
            logger.error(f"Stream transport error for {self.conv_id}: {error}")
        frames.extend(self._abort())
        return frames

    async def __aiter__(self) -> AsyncIterator[str]:
        for frame in self.open():
            yield frame

        try:
            async with aclosing(aiter_signals(self._events)) as signals:
                async for signal in signals:
                    for frame in self.feed(signal):
                        yield frame
                    if self.closed:
                        break
        except TransportError as e:
            for frame in self.fail(e):
                yield frame
            return

        for frame in self.close():
            yield frame

    def _finish(self) -> List[str]:
        if self.closed:
            return []
        self.state = StreamState.TERMINATED
        frames = [
            self._chunk({}, finish_reason="stop", usage=Usage()),
            SSE_DONE_FRAME,
        ]
        if self._on_end:
            self._on_end()
        return frames

    def _abort(self) -> List[str]:
        if self.closed:
            return []
        self.state = StreamState.TERMINATED
        return [SSE_DONE_FRAME]

    def _chunk(
        self, delta: dict, finish_reason: Optional[str] = None, usage: Optional[Usage] = None
    ) -> str:
        chunk = ChatCompletionChunk(
            id=self.conv_id,
            model=self.model,
            choices=[ChunkChoice(delta=delta, finish_reason=finish_reason)],
            created=self.created,
            usage=usage,
        )
        return format_sse_data(chunk.to_payload())
