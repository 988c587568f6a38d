"""Wrapper around the Anthropic Claude SDK."""

from __future__ import annotations

import logging

from anthropic import Anthropic, APIError, APIStatusError, AuthenticationError
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from trygo.config import Settings
from trygo.errors import UpstreamError

logger = logging.getLogger(__name__)


def _is_retryable(exc: BaseException) -> bool:
    """Return True only for transient API errors (rate-limits, server errors).

    Authentication errors (401) and bad-request errors (400) should NOT be
    retried — they will never succeed without a config change.
    """
    if isinstance(exc, AuthenticationError):
        return False
    if isinstance(exc, APIStatusError) and exc.status_code < 500:
        # 4xx errors other than 429 (rate limit) are not retryable
        return exc.status_code == 429
    return True


class ClaudeClient:
    """Thin wrapper providing a bounded retry budget and token tracking.

    SDK failures leave this class as UpstreamError carrying the SDK message.
    """

    def __init__(self, settings: Settings) -> None:
        self._client = Anthropic(api_key=settings.anthropic_api_key)
        self._model = settings.model
        self._max_tokens = settings.max_tokens
        self._temperature = settings.temperature
        self._retrying = Retrying(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(max(1, settings.llm_max_attempts)),
            wait=wait_exponential(multiplier=1, min=2, max=30),
            reraise=True,
        )
        self._total_input_tokens = 0
        self._total_output_tokens = 0

    def _create(self, system: str, messages: list[dict], max_tokens: int, temperature: float):
        return self._client.messages.create(
            model=self._model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system,
            messages=messages,
        )

    def generate(
        self,
        system: str,
        messages: list[dict],
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Send a message to Claude and return the text response."""
        try:
            response = self._retrying(
                self._create,
                system,
                messages,
                max_tokens or self._max_tokens,
                temperature if temperature is not None else self._temperature,
            )
        except APIError as exc:
            logger.error("Claude request failed: %s", exc)
            raise UpstreamError("llm", str(exc)) from exc

        self._total_input_tokens += response.usage.input_tokens
        self._total_output_tokens += response.usage.output_tokens

        if not response.content or not response.content[0].text:
            raise UpstreamError("llm", "LLM returned an empty response")
        return response.content[0].text

    @property
    def usage_summary(self) -> dict:
        return {
            "total_input_tokens": self._total_input_tokens,
            "total_output_tokens": self._total_output_tokens,
        }
