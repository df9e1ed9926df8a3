from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """The completion API answered with a non-success status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Upstream returned HTTP {status_code}")


class UpstreamUnavailable(Exception):
    """The completion API could not be reached or did not answer in time."""


@dataclass
class LLMConfig:
    provider: str
    model: str
    max_output_tokens: int = 900
    timeout_seconds: float = 60.0
    base_url: str = "https://api.openai.com/v1"
    openai_api_key: Optional[str] = None


class OpenAIResponsesClient:
    def __init__(self, api_key: Optional[str], model: str, max_output_tokens: int, base_url: str, timeout_seconds: float):
        self.api_key = api_key
        self.model = model
        self.max_output_tokens = max_output_tokens
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def build_payload(self, instructions: str, user_input: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "instructions": instructions,
            "input": user_input,
            "max_output_tokens": self.max_output_tokens,
        }

    def create_response(self, instructions: str, user_input: str) -> Any:
        """
        POST to /responses and return the decoded JSON body.

        Raises UpstreamError on a non-2xx answer (carrying the raw body text)
        and UpstreamUnavailable on connection failures or timeouts.
        A 2xx body that is not JSON propagates as ValueError.
        """
        try:
            r = requests.post(
                f"{self.base_url}/responses",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=self.build_payload(instructions, user_input),
                timeout=self.timeout_seconds,
            )
        except requests.Timeout as e:
            raise UpstreamUnavailable(f"Upstream request timed out after {self.timeout_seconds:g}s") from e
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"{type(e).__name__}: {e}") from e

        if not r.ok:
            logger.warning("OpenAI responded %s", r.status_code)
            raise UpstreamError(r.status_code, r.text)

        return r.json()


def build_llm(cfg: LLMConfig) -> OpenAIResponsesClient:
    provider = (cfg.provider or "").lower().strip()

    if provider == "openai":
        # A missing key is reported per request, not at construction.
        return OpenAIResponsesClient(
            api_key=cfg.openai_api_key,
            model=cfg.model,
            max_output_tokens=cfg.max_output_tokens,
            base_url=cfg.base_url,
            timeout_seconds=cfg.timeout_seconds,
        )

    raise ValueError(f"Unsupported llm provider: {cfg.provider}. Use provider: openai")
