"""Chat-completion client with retry and timeout support."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, Optional

import httpx

from .config import LLMSettings
from .logging_config import get_logger
from .models import LLMNotConfiguredError

logger = get_logger("llm_client")

EMPTY_RESPONSE_TEXT = "No response generated"


class LLMClient:
    """OpenAI-compatible chat-completion client with exponential backoff."""

    def __init__(self, settings: Optional[LLMSettings] = None) -> None:
        self.settings = settings or LLMSettings()
        self.timeout = httpx.Timeout(
            connect=10.0,
            read=self.settings.timeout_seconds,
            write=10.0,
            pool=5.0,
        )

    @property
    def endpoint(self) -> str:
        return self.settings.base_url.rstrip("/") + "/chat/completions"

    def _headers(self) -> Dict[str, str]:
        if not self.settings.api_key:
            raise LLMNotConfiguredError("OpenAI API key is not configured")
        return {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
            "User-Agent": "SocialInsights/1.0",
        }

    def _payload(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        return {
            "model": self.settings.model,
            "messages": messages,
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_tokens,
        }

    @staticmethod
    def extract_text(body: Dict[str, Any]) -> str:
        """Pull the assistant text out of a chat-completion response body."""
        try:
            content = body["choices"][0]["message"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError):
            content = None
        return content or EMPTY_RESPONSE_TEXT

    def complete(self, messages: List[Dict[str, str]]) -> str:
        """Send a chat-completion request and return the response text."""
        response = self._post_sync(self._payload(messages))
        return self.extract_text(response.json())

    async def complete_async(self, messages: List[Dict[str, str]]) -> str:
        response = await self._post_async(self._payload(messages))
        return self.extract_text(response.json())

    def _post_sync(self, payload: Dict[str, Any]) -> httpx.Response:
        headers = self._headers()
        url = self.endpoint

        with httpx.Client(timeout=self.timeout) as client:
            for attempt in range(self.settings.max_retries + 1):
                try:
                    response = client.post(url, headers=headers, json=payload)
                    response.raise_for_status()
                    return response

                except httpx.HTTPStatusError as exc:
                    status_code = exc.response.status_code
                    if self._should_retry_status(status_code) and attempt < self.settings.max_retries:
                        delay = self._calculate_retry_delay(attempt + 1)
                        logger.warning(
                            "Chat completion failed with status %s. Retrying in %.2fs (attempt %s/%s)",
                            status_code,
                            delay,
                            attempt + 1,
                            self.settings.max_retries,
                        )
                        time.sleep(delay)
                        continue

                    logger.error("Chat completion failed with status %s: %s", status_code, exc)
                    raise

                except (httpx.RequestError, httpx.TimeoutException) as exc:
                    if attempt < self.settings.max_retries:
                        delay = self._calculate_retry_delay(attempt + 1)
                        logger.warning(
                            "Chat completion failed (%s). Retrying in %.2fs (attempt %s/%s)",
                            exc,
                            delay,
                            attempt + 1,
                            self.settings.max_retries,
                        )
                        time.sleep(delay)
                        continue

                    logger.error("Chat completion failed after %s attempts: %s", attempt + 1, exc)
                    raise

        raise RuntimeError(f"Chat completion request to {url} failed after retries")

    async def _post_async(self, payload: Dict[str, Any]) -> httpx.Response:
        headers = self._headers()
        url = self.endpoint

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for attempt in range(self.settings.max_retries + 1):
                try:
                    response = await client.post(url, headers=headers, json=payload)
                    response.raise_for_status()
                    return response

                except httpx.HTTPStatusError as exc:
                    status_code = exc.response.status_code
                    if self._should_retry_status(status_code) and attempt < self.settings.max_retries:
                        delay = self._calculate_retry_delay(attempt + 1)
                        logger.warning(
                            "Chat completion failed with status %s. Retrying in %.2fs (attempt %s/%s)",
                            status_code,
                            delay,
                            attempt + 1,
                            self.settings.max_retries,
                        )
                        await asyncio.sleep(delay)
                        continue

                    logger.error("Chat completion failed with status %s: %s", status_code, exc)
                    raise

                except (httpx.RequestError, httpx.TimeoutException) as exc:
                    if attempt < self.settings.max_retries:
                        delay = self._calculate_retry_delay(attempt + 1)
                        logger.warning(
                            "Chat completion failed (%s). Retrying in %.2fs (attempt %s/%s)",
                            exc,
                            delay,
                            attempt + 1,
                            self.settings.max_retries,
                        )
                        await asyncio.sleep(delay)
                        continue

                    logger.error("Chat completion failed after %s attempts: %s", attempt + 1, exc)
                    raise

        raise RuntimeError(f"Chat completion request to {url} failed after retries")

    def _should_retry_status(self, status_code: int) -> bool:
        if status_code >= 500:
            return True
        return status_code in {408, 409, 425, 429}

    def _calculate_retry_delay(self, retry_number: int) -> float:
        delay = self.settings.retry_base_delay * (
            self.settings.retry_exponential_base ** (retry_number - 1)
        )
        return min(delay, self.settings.retry_max_delay)
