"""
OpenAI-compatible chat completions REST client.
"""
import logging
from typing import Optional, Dict, Any, List

import requests

from ...config import CHAT_COMPLETIONS_URL, LLM_TIMEOUT, TEMPERATURE, TURN_MAX_TOKENS
from ...errors import MissingCredential, ServiceError

logger = logging.getLogger("llm_client")

Message = Dict[str, str]


class ChatCompletionsClient:
    """REST-based client for chat completion models."""

    def __init__(self,
                 api_key: str,
                 url: str = CHAT_COMPLETIONS_URL,
                 timeout: int = LLM_TIMEOUT,
                 session: Optional[requests.Session] = None):
        if not api_key:
            raise MissingCredential("API key is missing. Set OPENAI_API_KEY in the environment.")
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self._http = session or requests

    def complete(
        self,
        model: str,
        messages: List[Message],
        max_tokens: int = TURN_MAX_TOKENS,
        temperature: float = TEMPERATURE,
    ) -> Optional[str]:
        """
        Request exactly one completion.

        Returns the trimmed reply text, or None when the service answered
        successfully but produced no choices.

        Raises:
            ServiceError: On network failure or a non-success status
        """
        body: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": int(max_tokens),
            "n": 1,
            "stop": None,
            "temperature": float(temperature),
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        logger.debug("POST %s model=%s messages=%d max_tokens=%d",
                     self.url, model, len(messages), max_tokens)
        try:
            resp = self._http.post(self.url, headers=headers, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Chat completion request failed: %s", e)
            raise ServiceError(str(e)) from e

        if not resp.ok:
            description = resp.reason or f"HTTP {resp.status_code}"
            logger.error("Chat completion error %s: %s", resp.status_code, resp.text)
            raise ServiceError(description, status=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise ServiceError(f"Malformed response body: {e}", status=resp.status_code) from e

        return self._parse_response_text(data)

    def _parse_response_text(self, resp_json: Dict[str, Any]) -> Optional[str]:
        """Read choices[0].message.content."""
        choices = resp_json.get("choices") or []
        if not choices:
            logger.warning("Chat completion returned no choices")
            return None
        message = choices[0].get("message") or {}
        content = message.get("content")
        if not isinstance(content, str):
            logger.warning("Chat completion choice carried no text content")
            return None
        return content.strip()
