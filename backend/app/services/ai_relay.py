"""
AI Relay Service

Sends a chat-completion request to OpenRouter and returns the raw text of the
first choice. Interpreting that text (fences, JSON) is the caller's job.
"""
import logging
from typing import List, Dict, Optional

import httpx

from ..config import Settings, settings as default_settings
from ..core.errors import UpstreamError, MalformedUpstreamResponse

logger = logging.getLogger("uvicorn.error")


class OpenRouterRelay:
    """OpenRouter chat-completions client"""

    name = "OpenRouter"

    def __init__(self, config: Optional[Settings] = None):
        config = config or default_settings
        self.api_key = config.openrouter_api_key
        self.api_url = config.openrouter_api_url
        self.model = config.openrouter_model
        self.max_tokens = config.relay_max_tokens
        self.timeout = config.relay_timeout_seconds
        self.referer = config.relay_referer
        self.title = config.relay_title

    def is_available(self) -> bool:
        """Check if API key is configured"""
        return bool(self.api_key)

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        """
        Run one chat completion.

        Parameters:
            messages: OpenAI-style [{"role": ..., "content": ...}] list

        Returns:
            Content of the first choice, stripped

        Raises:
            UpstreamError: unreachable, timed out, or non-2xx (carries the upstream message when present)
            MalformedUpstreamResponse: 2xx without a usable choice
        """
        if not self.is_available():
            raise UpstreamError("AI relay is not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.referer,
            "X-Title": self.title,
        }
        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": messages,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(self.api_url, headers=headers, json=payload)
        except httpx.TimeoutException as e:
            logger.error("[relay] %s timed out after %ss", self.name, self.timeout)
            raise UpstreamError("AI API timed out") from e
        except httpx.HTTPError as e:
            logger.error("[relay] %s unreachable: %s", self.name, e)
            raise UpstreamError() from e

        if not resp.is_success:
            message = self._error_message(resp)
            logger.error("[relay] %s returned %s: %s", self.name, resp.status_code, message)
            raise UpstreamError(message)

        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise MalformedUpstreamResponse("AI API returned no completion") from e
        if not isinstance(content, str):
            raise MalformedUpstreamResponse("AI API returned no completion")
        return content.strip()

    @staticmethod
    def _error_message(resp) -> Optional[str]:
        """Best-effort extraction of ``{"error": {"message": ...}}``; None if absent."""
        try:
            body = resp.json()
        except ValueError:
            return None
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return None
