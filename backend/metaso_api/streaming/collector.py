import logging
from contextlib import aclosing
from typing import AsyncIterable

from metaso_api.models.response import ChatCompletion
from metaso_api.streaming.parser import RawEvent
from metaso_api.streaming.signals import AppendText, Malformed, StreamEnd, aiter_signals
from metaso_api.utils.exceptions import UpstreamProtocolError

logger = logging.getLogger(__name__)


async def receive_stream(
    model: str, conv_id: str, events: AsyncIterable[RawEvent]
) -> ChatCompletion:
    """
    Collect a whole search stream into one completion.

    Text is concatenated in arrival order. The result is returned on "[DONE]"
    or when the stream ends without it.

    Raises:
        UpstreamProtocolError: an event payload was not valid JSON
        TransportError: propagated from the event source
    """
    result = ChatCompletion(id=conv_id, model=model)

    async with aclosing(aiter_signals(events)) as signals:
        async for signal in signals:
            if isinstance(signal, AppendText):
                result.append(signal.text)
            elif isinstance(signal, StreamEnd):
                break
            elif isinstance(signal, Malformed):
                error = UpstreamProtocolError(signal.raw)
                logger.error(str(error))
                raise error

    return result
