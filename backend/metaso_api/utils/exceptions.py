"""
Upstream error types and HTTP exception helpers.

Usage:
    from metaso_api.utils.exceptions import UpstreamAuthFailure, raise_unauthorized

    raise UpstreamAuthFailure("meta-token not found")
    raise_unauthorized("Invalid token")
"""

from typing import NoReturn

from fastapi import HTTPException, status


class UpstreamError(Exception):
    """Base class for failures talking to metaso."""


class UpstreamAuthFailure(UpstreamError):
    """Session bootstrap failed (meta-token, conversation or stream request rejected)."""


class UpstreamProtocolError(UpstreamError):
    """The upstream sent an event payload that could not be decoded."""

    def __init__(self, raw: str):
        super().__init__(f"Stream response invalid: {raw}")
        self.raw = raw


class TransportError(UpstreamError):
    """Network-level failure while the search stream was being read."""


def raise_unauthorized(detail: str = "Unauthorized") -> NoReturn:
    """Raise HTTP 401 Unauthorized with WWW-Authenticate header."""
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def raise_bad_request(detail: str) -> NoReturn:
    """Raise HTTP 400 Bad Request."""
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail,
    )


def raise_bad_gateway(detail: str) -> NoReturn:
    """Raise HTTP 502 Bad Gateway."""
    raise HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=detail,
    )
