from __future__ import annotations

import hmac
from typing import Optional

from fastapi import Header, Request

from clarifia.core.errors import Unauthorized
from clarifia.core.settings import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def key_matches(expected: Optional[str], provided: Optional[str]) -> bool:
    """An unset secret never matches, not even an empty header."""
    if not expected or provided is None:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))


def require_app_key(
    request: Request,
    x_app_key: Optional[str] = Header(default=None, alias="X-APP-KEY"),
) -> None:
    if not key_matches(get_settings(request).clarifia_app_key, x_app_key):
        raise Unauthorized()
