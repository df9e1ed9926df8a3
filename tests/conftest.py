"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from clarifia.core.settings import Settings  # noqa: E402

APP_KEY = "test-app-key"
OPENAI_KEY = "sk-test"

VALID_RESULT = {
    "summary": "ok",
    "what_it_means": "x",
    "deadlines": [],
    "steps": [],
    "missing_info": [],
    "risks": [],
    "official_sites": [],
}


class FakeLLM:
    """Stands in for OpenAIResponsesClient; returns canned upstream payloads."""

    def __init__(self, response=None, error=None, api_key=OPENAI_KEY):
        self.response = response if response is not None else {"output_text": ""}
        self.error = error
        self.api_key = api_key
        self.calls = []

    @property
    def is_configured(self):
        return bool(self.api_key)

    def create_response(self, instructions, user_input):
        self.calls.append((instructions, user_input))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def make_settings():
    def _make(**overrides):
        values = {
            "openai_api_key": OPENAI_KEY,
            "clarifia_app_key": APP_KEY,
            "rate_limit_enabled": False,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def fake_llm():
    return FakeLLM()
