"""Tests for DocumentAnalyzer: validation, upstream failures, output parsing."""

import json

import pytest

from conftest import VALID_RESULT, FakeLLM
from clarifia.core.errors import (
    AIOutputInvalid,
    BadGateway,
    BadRequest,
    ServerError,
    ServerMisconfigured,
)
from clarifia.core.prompts import ANALYZE_INSTRUCTIONS
from clarifia.services.analyzer import DocumentAnalyzer, format_char_limit, parse_ai_json
from clarifia.services.llm_client import UpstreamError, UpstreamUnavailable


def _analyzer(llm=None, **kwargs):
    return DocumentAnalyzer(llm or FakeLLM(), **kwargs)


class TestValidation:
    @pytest.mark.parametrize("text", [None, "", "   ", "\n\t "])
    def test_empty_text(self, text):
        with pytest.raises(BadRequest) as exc_info:
            _analyzer().analyze(text)
        assert exc_info.value.to_body() == {"error": "Le champ 'text' est requis."}

    @pytest.mark.parametrize("text", ["\ufeff", " \ufeff\u3000 ", "\u2028\u00a0"])
    def test_javascript_whitespace_only_is_empty(self, text):
        llm = FakeLLM()
        with pytest.raises(BadRequest):
            _analyzer(llm).analyze(text)
        assert llm.calls == []

    def test_byte_order_mark_is_trimmed(self):
        llm = FakeLLM(response={"output_text": "{}"})
        _analyzer(llm).analyze("\ufeff Courrier CAF \ufeff")
        assert llm.calls[0][1] == "Courrier CAF"

    def test_text_is_trimmed_before_forwarding(self):
        llm = FakeLLM(response={"output_text": json.dumps(VALID_RESULT)})
        _analyzer(llm).analyze("  Avis d'imposition  \n")
        assert llm.calls == [(ANALYZE_INSTRUCTIONS, "Avis d'imposition")]

    def test_exact_limit_passes(self):
        llm = FakeLLM(response={"output_text": "{}"})
        assert _analyzer(llm).analyze("a" * 12_000) == {}

    def test_over_limit(self):
        llm = FakeLLM()
        with pytest.raises(BadRequest) as exc_info:
            _analyzer(llm).analyze("a" * 12_001)
        assert "12 000" in exc_info.value.message
        assert llm.calls == []

    def test_limit_is_measured_after_trimming(self):
        llm = FakeLLM(response={"output_text": "{}"})
        assert _analyzer(llm).analyze("  " + "a" * 12_000 + "  ") == {}

    def test_missing_openai_key(self):
        llm = FakeLLM(api_key=None)
        with pytest.raises(ServerMisconfigured) as exc_info:
            _analyzer(llm).analyze("texte")
        assert exc_info.value.status_code == 500
        assert "OPENAI_API_KEY" in exc_info.value.message
        assert llm.calls == []

    def test_bad_request_wins_over_missing_key(self):
        with pytest.raises(BadRequest):
            _analyzer(FakeLLM(api_key=None)).analyze("   ")


class TestUpstreamFailures:
    def test_non_success_status(self):
        llm = FakeLLM(error=UpstreamError(429, "Too Many Requests"))
        with pytest.raises(BadGateway) as exc_info:
            _analyzer(llm).analyze("texte")
        assert exc_info.value.status_code == 502
        assert exc_info.value.to_body() == {
            "error": "OpenAI request failed",
            "details": "Too Many Requests",
        }

    def test_unreachable(self):
        llm = FakeLLM(error=UpstreamUnavailable("Upstream request timed out after 60s"))
        with pytest.raises(BadGateway) as exc_info:
            _analyzer(llm).analyze("texte")
        assert "timed out" in exc_info.value.to_body()["details"]

    def test_unexpected_error_becomes_server_error(self):
        llm = FakeLLM(error=RuntimeError("boom"))
        with pytest.raises(ServerError) as exc_info:
            _analyzer(llm).analyze("texte")
        assert exc_info.value.to_body() == {"error": "Server error", "details": "boom"}


class TestOutputParsing:
    def test_valid_json_is_returned_unchanged(self):
        llm = FakeLLM(response={"output_text": json.dumps(VALID_RESULT)})
        assert _analyzer(llm).analyze("texte") == VALID_RESULT

    def test_block_list_output(self):
        llm = FakeLLM(
            response={
                "output": [
                    {"content": [{"type": "output_text", "text": '{"summary": "ok",'}]},
                    {"content": [{"type": "output_text", "text": '"risks": []}'}]},
                ]
            }
        )
        assert _analyzer(llm).analyze("texte") == {"summary": "ok", "risks": []}

    def test_not_json(self):
        llm = FakeLLM(response={"output_text": "not json"})
        with pytest.raises(AIOutputInvalid) as exc_info:
            _analyzer(llm).analyze("texte")
        assert exc_info.value.to_body() == {
            "error": "AI did not return valid JSON. Adjust prompt.",
            "raw": "not json",
        }

    def test_raw_preview_is_truncated(self):
        llm = FakeLLM(response={"output_text": "x" * 5000})
        with pytest.raises(AIOutputInvalid) as exc_info:
            _analyzer(llm).analyze("texte")
        assert exc_info.value.to_body()["raw"] == "x" * 2000

    def test_empty_upstream_output(self):
        llm = FakeLLM(response={"output": []})
        with pytest.raises(AIOutputInvalid) as exc_info:
            _analyzer(llm).analyze("texte")
        assert exc_info.value.to_body()["raw"] == ""

    def test_non_list_content_is_invalid_output_not_server_error(self):
        llm = FakeLLM(response={"output": [{"content": 5}]})
        with pytest.raises(AIOutputInvalid) as exc_info:
            _analyzer(llm).analyze("texte")
        assert exc_info.value.to_body()["raw"] == ""

    def test_deeply_nested_output_is_invalid(self):
        raw = "[" * 100_000 + "]" * 100_000
        llm = FakeLLM(response={"output_text": raw})
        with pytest.raises(AIOutputInvalid) as exc_info:
            _analyzer(llm).analyze("texte")
        assert exc_info.value.to_body()["raw"] == "[" * 2000

    def test_schema_mismatch_passes_when_not_strict(self):
        llm = FakeLLM(response={"output_text": '{"unexpected": true}'})
        assert _analyzer(llm).analyze("texte") == {"unexpected": True}

    def test_schema_mismatch_rejected_when_strict(self):
        llm = FakeLLM(response={"output_text": '{"unexpected": true}'})
        with pytest.raises(AIOutputInvalid) as exc_info:
            _analyzer(llm, strict_output_schema=True).analyze("texte")
        body = exc_info.value.to_body()
        assert body["error"] == "AI returned JSON that does not match the expected schema."
        assert "summary" in body["details"]
        assert body["raw"] == '{"unexpected": true}'

    def test_strict_accepts_valid_result(self):
        result = dict(VALID_RESULT, deadlines=[{"label": "Paiement", "date": None, "notes": "date illisible"}])
        llm = FakeLLM(response={"output_text": json.dumps(result)})
        assert _analyzer(llm, strict_output_schema=True).analyze("texte") == result


class TestHelpers:
    def test_parse_ai_json_rejects_non_standard_constants(self):
        with pytest.raises(ValueError):
            parse_ai_json('{"score": NaN}')

    def test_parse_ai_json_reports_deep_nesting_as_value_error(self):
        with pytest.raises(ValueError, match="nested too deeply"):
            parse_ai_json("[" * 100_000 + "]" * 100_000)

    def test_parse_ai_json_accepts_scalars(self):
        assert parse_ai_json("42") == 42

    def test_format_char_limit(self):
        assert format_char_limit(12_000) == "12 000"
        assert format_char_limit(500) == "500"
