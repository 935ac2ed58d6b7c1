"""
Incremental SSE parser.

Feeds decoded text chunks, in arrival order, and emits one RawEvent per
complete record. Chunk boundaries may fall anywhere: inside a line or between
the CR and LF of a line terminator.
"""

import re
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, List, Optional

# Event kinds
EVENT_KIND = "event"
RECONNECT_INTERVAL_KIND = "reconnect-interval"

DEFAULT_EVENT_NAME = "message"

_LINE_END = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class RawEvent:
    """A single parsed SSE record"""

    kind: str  # EVENT_KIND for data records, RECONNECT_INTERVAL_KIND for retry-only records
    data: str
    event: str = DEFAULT_EVENT_NAME
    id: Optional[str] = None
    retry: Optional[int] = None


class SSEParser:
    """Stateful line-level SSE parser. One instance per stream, not restartable."""

    def __init__(self):
        self._buffer = ""
        self._data: List[str] = []
        self._event_name: Optional[str] = None
        self._retry: Optional[int] = None
        # Last event id persists across records
        self._last_id: Optional[str] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def feed(self, chunk: str) -> List[RawEvent]:
        """Add a chunk and return every event it completed."""
        if self._closed:
            raise RuntimeError("SSE parser is closed")
        self._buffer += chunk
        return self._drain_lines(final=False)

    def close(self) -> List[RawEvent]:
        """Flush the trailing line and any record left without a blank line."""
        if self._closed:
            return []
        events = self._drain_lines(final=True)
        if self._buffer:
            event = self._process_line(self._buffer)
            self._buffer = ""
            if event:
                events.append(event)
        event = self._dispatch()
        if event:
            events.append(event)
        self._closed = True
        return events

    def _drain_lines(self, final: bool) -> List[RawEvent]:
        events = []
        buffer = self._buffer
        start = 0
        for match in _LINE_END.finditer(buffer):
            # A lone CR at the end may be the first half of a CRLF
            if match.group() == "\r" and match.end() == len(buffer) and not final:
                break
            event = self._process_line(buffer[start:match.start()])
            start = match.end()
            if event:
                events.append(event)
        self._buffer = buffer[start:]
        return events

    def _process_line(self, line: str) -> Optional[RawEvent]:
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if field == "data":
            self._data.append(value)
        elif field == "event":
            self._event_name = value
        elif field == "id":
            if "\0" not in value:
                self._last_id = value
        elif field == "retry":
            if value.isascii() and value.isdigit():
                self._retry = int(value)
        return None

    def _dispatch(self) -> Optional[RawEvent]:
        data, event_name, retry = self._data, self._event_name, self._retry
        self._data = []
        self._event_name = None
        self._retry = None

        if data:
            return RawEvent(
                kind=EVENT_KIND,
                data="\n".join(data),
                event=event_name or DEFAULT_EVENT_NAME,
                id=self._last_id,
                retry=retry,
            )
        if retry is not None:
            return RawEvent(kind=RECONNECT_INTERVAL_KIND, data="", id=self._last_id, retry=retry)
        return None


async def aiter_events(
    chunks: AsyncIterable[str],
) -> AsyncIterator[RawEvent]:
    """Run one parser over an async chunk source, yielding events as they complete."""
    parser = SSEParser()
    async for chunk in chunks:
        for event in parser.feed(chunk):
            yield event
    for event in parser.close():
        yield event
