"""Tests for the aggregating collector (non-streaming completions)."""

import pytest

from metaso_api.streaming.collector import receive_stream
from metaso_api.streaming.parser import EVENT_KIND, RawEvent
from metaso_api.utils.exceptions import TransportError, UpstreamProtocolError


def append(text: str) -> RawEvent:
    return RawEvent(kind=EVENT_KIND, data=f'{{"type":"append-text","text":"{text}"}}')


DONE = RawEvent(kind=EVENT_KIND, data="[DONE]")


async def events(*items, error: Exception = None):
    for item in items:
        yield item
    if error:
        raise error


@pytest.mark.asyncio
async def test_hello_scenario():
    result = await receive_stream("concise", "conv-1", events(append("Hel"), append("lo"), DONE))

    assert result.content == "Hello"
    payload = result.model_dump()
    assert payload["id"] == "conv-1"
    assert payload["model"] == "concise"
    assert payload["object"] == "chat.completion"
    assert payload["choices"] == [
        {"index": 0, "message": {"role": "assistant", "content": "Hello"}, "finish_reason": "stop"}
    ]
    assert payload["usage"] == {"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2}
    assert isinstance(payload["created"], int)


@pytest.mark.asyncio
async def test_close_without_done_resolves_with_content_so_far():
    result = await receive_stream("detail", "conv-2", events(append("partial")))
    assert result.content == "partial"


@pytest.mark.asyncio
async def test_empty_stream_resolves_with_empty_content():
    result = await receive_stream("concise", "conv-3", events())
    assert result.content == ""


@pytest.mark.asyncio
async def test_content_is_concatenated_in_arrival_order():
    texts = ["秘塔", " ", "", "AI", "搜索"]
    result = await receive_stream("concise", "c", events(*(append(t) for t in texts)))
    assert result.content == "".join(texts)


@pytest.mark.asyncio
async def test_signals_after_done_are_ignored():
    result = await receive_stream("concise", "c", events(append("a"), DONE, append("b")))
    assert result.content == "a"


@pytest.mark.asyncio
async def test_malformed_payload_rejects():
    bad = RawEvent(kind=EVENT_KIND, data="<html>oops")
    with pytest.raises(UpstreamProtocolError) as exc_info:
        await receive_stream("concise", "c", events(append("a"), bad, DONE))
    assert exc_info.value.raw == "<html>oops"


@pytest.mark.asyncio
async def test_transport_error_rejects():
    with pytest.raises(TransportError):
        await receive_stream("concise", "c", events(append("Hel"), error=TransportError("reset")))
