"""
Bearer token helpers for metaso credentials.

A metaso token is "<uid>-<sid>"; several may be passed comma-separated in one
Authorization header and one is picked per request.
"""

import random
from typing import List, Optional

from fastapi import Request


def get_token_from_request(request: Request) -> Optional[str]:
    """Extract the bearer token from the Authorization header."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]
    return None


def token_split(authorization: str) -> List[str]:
    """Split an Authorization value into individual tokens."""
    return [t.strip() for t in authorization.replace("Bearer ", "").split(",") if t.strip()]


def pick_token(authorization: str) -> Optional[str]:
    """Pick one token at random, or None if the header held none."""
    tokens = token_split(authorization)
    if not tokens:
        return None
    return random.choice(tokens)


def generate_cookie(token: str) -> str:
    """Build the uid/sid cookie header from a "<uid>-<sid>" token."""
    uid, _, sid = token.partition("-")
    return f"uid={uid}; sid={sid}"
