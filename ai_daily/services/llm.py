"""
LLM Service Module.

This module provides the LLMService class, a thin client for OpenAI-compatible
chat-completion endpoints (OpenRouter by default). Callers send a list of
role/content messages and get back the assistant text, or parsed JSON for
structured prompts.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Raised when a completion request fails or returns unusable content."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def parse_json_response(text: str) -> Any:
    """Safely parses JSON from LLM output, handling markdown blocks."""
    cleaned = text.strip()
    # Strip Markdown code blocks
    if cleaned.startswith("```"):
        # Remove opening ```json or ```
        cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
        # Remove closing ```
        if cleaned.rstrip().endswith("```"):
            cleaned = cleaned.rstrip()[:-3]
        cleaned = cleaned.strip()

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        # Models sometimes wrap the payload in prose; try the outermost object/array
        for opener, closer in (("{", "}"), ("[", "]")):
            start, end = cleaned.find(opener), cleaned.rfind(closer)
            if start != -1 and end > start:
                try:
                    return json.loads(cleaned[start : end + 1])
                except json.JSONDecodeError:
                    continue
        raise


class LLMService:
    """
    Client for a chat-completion API.

    One instance is shared by the translator, the analyzer and the report
    generator. Requests are never retried; failures surface as ``LLMError``.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://openrouter.ai/api/v1",
        model: str = "deepseek/deepseek-r1-0528:free",
        timeout: float = 60,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        if not api_key:
            logger.warning("OPENROUTER_API_KEY not set. AI features disabled.")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def chat(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 500,
        temperature: float = 0.3,
        model: Optional[str] = None,
    ) -> str:
        """Sends one completion request and returns the assistant message text."""
        if not self.configured:
            raise LLMError("LLM API key not configured")

        payload = {
            "model": model or self.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        try:
            resp = requests.post(
                f"{self.base_url}/chat/completions",
                headers=self._headers(),
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as req_err:
            raise LLMError(f"Request failed: {req_err}") from req_err

        if not 200 <= resp.status_code < 300:
            raise LLMError(
                f"LLM API error: {resp.status_code}", status_code=resp.status_code
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError(f"Invalid JSON in LLM response: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise LLMError("No content in LLM response") from e
        if not content or not str(content).strip():
            raise LLMError("No content in LLM response")
        return str(content).strip()

    def chat_json(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 500,
        temperature: float = 0.3,
        model: Optional[str] = None,
    ) -> Any:
        """Like ``chat`` but parses the reply as JSON."""
        text = self.chat(messages, max_tokens, temperature, model)
        try:
            return parse_json_response(text)
        except (json.JSONDecodeError, ValueError) as e:
            raise LLMError(f"Failed to parse LLM response as JSON: {e}") from e
