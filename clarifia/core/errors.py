from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

TEXT_REQUIRED = "Le champ 'text' est requis."
TEXT_TOO_LONG = "Texte trop long (max ~{limit} caractères pour le MVP)."
MISSING_OPENAI_KEY = "Server misconfigured (missing OPENAI_API_KEY)"
UPSTREAM_FAILED = "OpenAI request failed"
INVALID_AI_JSON = "AI did not return valid JSON. Adjust prompt."
INVALID_AI_SCHEMA = "AI returned JSON that does not match the expected schema."
RAW_PREVIEW_CHARS = 2000


class ClarifiaError(Exception):
    """Base for every failure that is rendered as a JSON error body."""

    status_code = 500
    default_message = "Server error"
    headers: dict[str, str] | None = None

    def __init__(self, message: str | None = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = {k: v for k, v in extra.items() if v is not None}
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        return {"error": self.message, **self.extra}


class Unauthorized(ClarifiaError):
    status_code = 401
    default_message = "Unauthorized"


class BadRequest(ClarifiaError):
    status_code = 400
    default_message = TEXT_REQUIRED


class ServerMisconfigured(ClarifiaError):
    status_code = 500
    default_message = MISSING_OPENAI_KEY


class BadGateway(ClarifiaError):
    status_code = 502
    default_message = UPSTREAM_FAILED


class AIOutputInvalid(ClarifiaError):
    status_code = 500
    default_message = INVALID_AI_JSON

    def __init__(self, raw: str, message: str | None = None, **extra: Any):
        super().__init__(message, **extra)
        # always present, even when empty
        self.extra["raw"] = (raw or "")[:RAW_PREVIEW_CHARS]


class ServerError(ClarifiaError):
    status_code = 500
    default_message = "Server error"


class PayloadTooLarge(ClarifiaError):
    status_code = 413
    default_message = "Payload too large"


class RateLimited(ClarifiaError):
    status_code = 429
    default_message = "Rate limit exceeded"

    def __init__(self, limit: str, retry_after: int):
        super().__init__(f"Rate limit exceeded: {limit}")
        self.headers = {"Retry-After": str(retry_after)}


def _clarifia_error_handler(request: Request, exc: ClarifiaError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=exc.headers)


def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _clarifia_error_handler(request, ServerError(details=str(exc)))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ClarifiaError, _clarifia_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
