from __future__ import annotations

from fastapi import Header

from destination_effects.core.config import API_TOKEN
from destination_effects.core.exceptions import AuthError


def verify_bearer_token(authorization: str | None = Header(default=None)) -> None:
    token = _bearer_token(authorization)
    if not token or token != API_TOKEN:
        raise AuthError()


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization.split("Bearer ", 1)[1].strip()
