"""
metaso.cn session bootstrap and search stream client.

A request needs three upstream calls:
1. GET / with the uid/sid cookie, scraping the meta-token from the page
2. POST /api/session to create a conversation id
3. GET /api/searchV2 for the conversation, answered as an SSE stream
"""

import logging
import math
import re
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional
from urllib.parse import quote

import httpx
import orjson
from fastapi import Request

from metaso_api.config import settings
from metaso_api.utils.auth import generate_cookie
from metaso_api.utils.exceptions import TransportError, UpstreamAuthFailure

logger = logging.getLogger(__name__)

# Browser-like headers expected by metaso
FAKE_HEADERS = {
    "Accept": "*/*",
    "Accept-Encoding": "gzip, deflate",
    "Accept-Language": "zh-CN,zh;q=0.9",
    "Origin": "https://metaso.cn",
    "Sec-Ch-Ua": '"Chromium";v="122", "Not(A:Brand";v="24", "Google Chrome";v="122"',
    "Sec-Ch-Ua-Mobile": "?0",
    "Sec-Ch-Ua-Platform": '"Windows"',
    "Sec-Fetch-Dest": "empty",
    "Sec-Fetch-Mode": "cors",
    "Sec-Fetch-Site": "same-origin",
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
    ),
}
DOCUMENT_HEADERS = {
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
}
META_TOKEN_PATTERN = re.compile(r'<meta id="meta-token" content="([^"]*)"')
# Sessions are always created in concise mode, which is not rate limited
SESSION_MODE = "concise"
DEFAULT_CONVERSATION_NAME = "新会话"


@dataclass
class Session:
    """Credentials for one search stream"""

    meta_token: str
    conv_id: str


def encode_meta_token(meta_token: str) -> str:
    """Percent-encode like JavaScript's encodeURIComponent."""
    return quote(meta_token, safe="-_.!~*'()")


def check_result(response: httpx.Response) -> Optional[dict]:
    """
    Decode a metaso JSON response, raising on a non-zero errCode.

    Returns None for an empty body.
    """
    if not response.content:
        return None
    try:
        data = orjson.loads(response.content)
    except orjson.JSONDecodeError:
        raise UpstreamAuthFailure(
            f"[请求metaso失败]: status={response.status_code}, invalid JSON body"
        )
    if not isinstance(data, dict):
        return None

    err_code = data.get("errCode")
    is_number = isinstance(err_code, (int, float)) and not isinstance(err_code, bool)
    if not is_number or not math.isfinite(err_code) or err_code == 0:
        return data
    raise UpstreamAuthFailure(f"[请求metaso失败]: {data.get('errMsg')}")


class MetasoClient:
    """HTTP client for metaso. One instance is shared by the application."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.upstream_base_url).rstrip("/")
        self.stream_timeout = settings.stream_timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=FAKE_HEADERS,
            timeout=settings.request_timeout,
            transport=transport,
        )

    async def cleanup(self):
        """Cleanup HTTP client resources."""
        await self._client.aclose()

    async def acquire_meta_token(self, token: str) -> str:
        """Scrape the meta-token from the metaso home page."""
        try:
            response = await self._client.get(
                "/",
                headers={**DOCUMENT_HEADERS, "Cookie": generate_cookie(token)},
            )
        except httpx.HTTPError as e:
            raise UpstreamAuthFailure(f"meta-token request failed: {e}") from e

        content_type = response.headers.get("content-type", "")
        if response.status_code != 200 or "text/html" not in content_type:
            raise UpstreamAuthFailure(
                f"meta-token request rejected: status={response.status_code}, "
                f"content-type={content_type!r}"
            )

        match = META_TOKEN_PATTERN.search(response.text)
        if not match or not match.group(1):
            raise UpstreamAuthFailure("meta-token not found")
        return match.group(1)

    async def create_conversation(
        self, name: str, token: str, meta_token: Optional[str] = None
    ) -> str:
        """Create a temporary conversation and return its id."""
        if meta_token is None:
            meta_token = await self.acquire_meta_token(token)

        try:
            response = await self._client.post(
                "/api/session",
                json={
                    "question": name,
                    "mode": SESSION_MODE,
                    "engineType": "",
                    "scholarSearchDomain": "all",
                },
                headers={
                    "Cookie": generate_cookie(token),
                    "Token": encode_meta_token(meta_token),
                    "Is-Mini-Webview": "0",
                },
            )
        except httpx.HTTPError as e:
            raise UpstreamAuthFailure(f"session request failed: {e}") from e

        data = check_result(response) or {}
        conv_id = (data.get("data") or {}).get("id")
        if not conv_id:
            raise UpstreamAuthFailure(
                f"session response has no conversation id: status={response.status_code}"
            )
        return str(conv_id)

    async def acquire(self, token: str, name: str = DEFAULT_CONVERSATION_NAME) -> Session:
        """Get a meta-token and a fresh conversation id for one request."""
        meta_token = await self.acquire_meta_token(token)
        conv_id = await self.create_conversation(name, token, meta_token)
        return Session(meta_token=meta_token, conv_id=conv_id)

    @asynccontextmanager
    async def stream_search(
        self, session: Session, model: str, question: str, token: str
    ) -> AsyncIterator[AsyncIterator[str]]:
        """
        Open the search stream and yield its decoded text chunks.

        Raises UpstreamAuthFailure if the stream request is rejected, and
        TransportError on network failure or once the stream outlives
        `settings.stream_timeout`.
        """
        request = self._client.build_request(
            "GET",
            "/api/searchV2",
            params={
                "sessionId": session.conv_id,
                "question": question,
                "lang": settings.lang,
                "mode": model,
                "is-mini-webview": "0",
                "token": session.meta_token,
            },
            headers={
                "Cookie": generate_cookie(token),
                "Accept": "text/event-stream",
            },
            timeout=httpx.Timeout(self.stream_timeout, connect=settings.request_timeout),
        )
        try:
            response = await self._client.send(request, stream=True)
        except httpx.RequestError as e:
            raise TransportError(f"search stream request failed: {e}") from e

        try:
            if response.status_code != 200:
                error_body = await response.aread()
                logger.error(
                    f"metaso search error for session '{session.conv_id}': "
                    f"status={response.status_code}, "
                    f"body={error_body.decode('utf-8', errors='replace')[:500]}"
                )
                raise UpstreamAuthFailure(
                    f"search stream rejected: status={response.status_code}"
                )
            yield self._iter_text(response)
        finally:
            await response.aclose()

    async def _iter_text(self, response: httpx.Response) -> AsyncIterator[str]:
        started = time.monotonic()
        try:
            async for chunk in response.aiter_text():
                if time.monotonic() - started > self.stream_timeout:
                    raise TransportError(f"Stream exceeded {self.stream_timeout}s")
                yield chunk
        except httpx.RequestError as e:
            # Network failures and undecodable bodies both end the stream
            raise TransportError(str(e) or e.__class__.__name__) from e

    async def check_token_live(self, token: str) -> bool:
        """Whether metaso still accepts the token."""
        try:
            await self.acquire_meta_token(token)
        except UpstreamAuthFailure as e:
            logger.info(f"Token check failed: {e}")
            return False
        return True


def get_metaso_client(request: Request) -> MetasoClient:
    """FastAPI dependency returning the application's shared client."""
    return request.app.state.metaso_client
