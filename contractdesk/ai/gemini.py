"""
Gemini REST client.

Posts prompts to `{base_url}/models/{model}:generateContent` and returns the
first candidate's text. Rate-limit (429) and overload (503) answers and
transport errors are retried with exponential backoff; any other failure is
raised at once as `LLMError`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

import httpx
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from contractdesk.config import LLMConfig
from contractdesk.errors import LLMError, TransientLLMError
from contractdesk.utils.logging import get_logger

log = get_logger(__name__)

TRANSIENT_STATUS_CODES = frozenset({429, 503})

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


class GeminiClient:
    """
    Minimal synchronous client for the Gemini `generateContent` endpoint.

    Parameters
    ----------
    config : LLMConfig
        API key, model and generation parameters.
    client : httpx.Client, optional
        Pre-built HTTP client (tests inject one with a mock transport).
    sleep : callable, optional
        Sleep function used between retries.
    """

    def __init__(
        self,
        config: LLMConfig,
        client: Optional[httpx.Client] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        if not config.api_key:
            raise LLMError("Gemini API key is not configured")
        self.config = config
        self._client = client or httpx.Client(timeout=config.timeout_seconds)
        self._sleep = sleep

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "GeminiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/models/{self.config.model}:generateContent"

    def _payload(
        self, prompt: str, temperature: Optional[float], max_output_tokens: Optional[int]
    ) -> Dict[str, Any]:
        cfg = self.config
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": cfg.temperature if temperature is None else temperature,
                "topK": cfg.top_k,
                "topP": cfg.top_p,
                "maxOutputTokens": max_output_tokens or cfg.max_output_tokens,
            },
            "safetySettings": [
                {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
                for category in SAFETY_CATEGORIES
            ],
        }

    def _post_once(self, payload: Dict[str, Any]) -> str:
        try:
            resp = self._client.post(
                self.endpoint, params={"key": self.config.api_key}, json=payload
            )
        except httpx.TransportError as exc:
            raise TransientLLMError(f"Network error calling Gemini: {exc}") from exc

        if resp.status_code in TRANSIENT_STATUS_CODES:
            raise TransientLLMError(
                f"Gemini temporarily unavailable: {resp.status_code}", status_code=resp.status_code
            )
        if resp.is_error:
            raise LLMError(
                f"Gemini API error: {resp.status_code} {resp.reason_phrase}. {resp.text[:500]}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise LLMError("Invalid response from Gemini API: no candidate text") from exc
        if not isinstance(text, str):
            raise LLMError("Invalid response from Gemini API: candidate text is not a string")
        return text

    def generate_content(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> str:
        """
        Send `prompt` and return the model's text.

        Raises
        ------
        TransientLLMError
            When every retry hit a rate limit, overload or network error.
        LLMError
            On any other API error or a malformed response.
        """
        payload = self._payload(prompt, temperature, max_output_tokens)
        retry_kwargs: Dict[str, Any] = {
            "stop": stop_after_attempt(self.config.max_retries + 1),
            "wait": wait_exponential(multiplier=self.config.base_delay_seconds, max=60),
            "retry": retry_if_exception_type(TransientLLMError),
            "before_sleep": before_sleep_log(log, logging.WARNING),
            "reraise": True,
        }
        if self._sleep is not None:
            retry_kwargs["sleep"] = self._sleep

        log.debug("Calling Gemini", extra={"model": self.config.model, "prompt_chars": len(prompt)})
        for attempt in Retrying(**retry_kwargs):
            with attempt:
                text = self._post_once(payload)
        log.info("Gemini response received", extra={"model": self.config.model, "chars": len(text)})
        return text


__all__ = ["GeminiClient", "TRANSIENT_STATUS_CODES"]
