from __future__ import annotations

import json
import logging
from typing import Any, Optional

from pydantic import ValidationError

from clarifia.core.errors import (
    INVALID_AI_SCHEMA,
    TEXT_REQUIRED,
    TEXT_TOO_LONG,
    AIOutputInvalid,
    BadGateway,
    BadRequest,
    ClarifiaError,
    ServerError,
    ServerMisconfigured,
)
from clarifia.core.prompts import ANALYZE_INSTRUCTIONS
from clarifia.schemas.analysis import AnalysisResult
from clarifia.schemas.upstream import extract_raw_text, parse_upstream_response
from clarifia.services.llm_client import OpenAIResponsesClient, UpstreamError, UpstreamUnavailable

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def parse_ai_json(raw: str) -> Any:
    """Strict JSON parse of the model's raw text; raises ValueError on failure."""
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except RecursionError as e:
        raise ValueError("JSON nested too deeply") from e


# Whitespace and line terminators stripped by JavaScript's String.prototype.trim.
JS_WHITESPACE = (
    "\t\n\v\f\r \u00a0\u1680\u2000\u2001\u2002\u2003\u2004\u2005\u2006"
    "\u2007\u2008\u2009\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"
)


def format_char_limit(limit: int) -> str:
    # 12000 -> "12 000"
    return f"{limit:,}".replace(",", " ")


class DocumentAnalyzer:
    def __init__(
        self,
        llm: OpenAIResponsesClient,
        max_text_chars: int = 12_000,
        strict_output_schema: bool = False,
        instructions: str = ANALYZE_INSTRUCTIONS,
    ):
        self.llm = llm
        self.max_text_chars = max_text_chars
        self.strict_output_schema = strict_output_schema
        self.instructions = instructions

    def validate_text(self, text: Optional[str]) -> str:
        cleaned = (text or "").strip(JS_WHITESPACE)
        if not cleaned:
            raise BadRequest(TEXT_REQUIRED)
        if len(cleaned) > self.max_text_chars:
            raise BadRequest(TEXT_TOO_LONG.format(limit=format_char_limit(self.max_text_chars)))
        return cleaned

    def analyze(self, text: Optional[str]) -> Any:
        cleaned = self.validate_text(text)
        if not self.llm.is_configured:
            raise ServerMisconfigured()

        try:
            return self._run(cleaned)
        except ClarifiaError:
            raise
        except Exception as e:
            logger.exception("Unexpected failure while analysing document")
            raise ServerError(details=str(e))

    def _run(self, text: str) -> Any:
        try:
            data = self.llm.create_response(self.instructions, text)
        except UpstreamError as e:
            raise BadGateway(details=e.body)
        except UpstreamUnavailable as e:
            logger.error("OpenAI unreachable: %s", e)
            raise BadGateway(details=str(e))

        raw = extract_raw_text(parse_upstream_response(data))

        try:
            parsed = parse_ai_json(raw)
        except ValueError:
            logger.warning("Model output is not valid JSON (%d chars)", len(raw))
            raise AIOutputInvalid(raw)

        if self.strict_output_schema:
            self._check_schema(parsed, raw)
        return parsed

    def _check_schema(self, parsed: Any, raw: str) -> None:
        try:
            AnalysisResult.model_validate(parsed)
        except ValidationError as e:
            logger.warning("Model output does not match the result schema: %d errors", e.error_count())
            raise AIOutputInvalid(raw, INVALID_AI_SCHEMA, details=str(e))
