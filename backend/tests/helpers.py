"""Fake metaso upstream served through httpx.MockTransport."""

from typing import List, Optional

import httpx
import orjson

BASE_URL = "https://metaso.test"
META_TOKEN = "abc+/="
HOME_PAGE = f'<html><head><meta id="meta-token" content="{META_TOKEN}"></head></html>'

HELLO_STREAM = (
    b'data: {"type":"append-text","text":"Hel"}\n\n'
    b'data: {"type":"append-text","text":"lo"}\n\n'
    b"data: [DONE]\n\n"
)


class FailingStream(httpx.AsyncByteStream):
    """Response body that breaks after sending some bytes."""

    def __init__(self, body: bytes):
        self.body = body

    async def __aiter__(self):
        yield self.body
        raise httpx.ReadError("connection reset")


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in the given network chunks."""

    def __init__(self, *chunks: bytes):
        self.chunks = chunks

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk


class FakeMetaso:
    """Programmable metaso endpoints; records every request it receives."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.home_status = 200
        self.home_content_type = "text/html; charset=utf-8"
        self.home_page = HOME_PAGE
        self.session_json: dict = {"errCode": 0, "data": {"id": "conv-1"}}
        self.session_failures = 0
        self.search_status = 200
        self.search_body = HELLO_STREAM
        self.search_headers: dict = {}
        self.search_stream: Optional[httpx.AsyncByteStream] = None

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/":
            return httpx.Response(
                self.home_status,
                headers={"content-type": self.home_content_type},
                text=self.home_page,
            )
        if path == "/api/session":
            if self.session_failures:
                self.session_failures -= 1
                return httpx.Response(200, json={"errCode": 500, "errMsg": "busy"})
            return httpx.Response(200, content=orjson.dumps(self.session_json))
        if path == "/api/searchV2":
            headers = {"content-type": "text/event-stream", **self.search_headers}
            if self.search_stream is not None:
                return httpx.Response(self.search_status, headers=headers, stream=self.search_stream)
            return httpx.Response(self.search_status, headers=headers, content=self.search_body)
        return httpx.Response(404)

    def requests_to(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

