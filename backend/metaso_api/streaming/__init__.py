from metaso_api.streaming.collector import receive_stream
from metaso_api.streaming.parser import RawEvent, SSEParser, aiter_events
from metaso_api.streaming.signals import AppendText, Malformed, StreamEnd, interpret_event
from metaso_api.streaming.transcoder import StreamState, TransStream

__all__ = [
    "AppendText",
    "Malformed",
    "RawEvent",
    "SSEParser",
    "StreamEnd",
    "StreamState",
    "TransStream",
    "aiter_events",
    "interpret_event",
    "receive_stream",
]
