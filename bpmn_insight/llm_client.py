"""Async client for an OpenAI-compatible chat-completion API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from .config import LLMConfig

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Raised when the model API is unavailable or answers unusably."""


@dataclass
class ChatCompletion:
    """Assistant reply plus token accounting."""

    content: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)

    @property
    def total_tokens(self) -> int:
        return int(self.usage.get('total_tokens', 0))


class LLMClient:
    """Single-shot chat-completion calls; no retry."""

    def __init__(self, config: LLMConfig, timeout: float | None = None) -> None:
        self._config = config
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def model(self) -> str:
        return self._config.model

    @property
    def structured_output(self) -> bool:
        return self._config.structured_output

    def estimate_cost(self, usage: dict[str, int]) -> float:
        return int(usage.get('total_tokens', 0)) * self._config.cost_per_token

    async def chat(
        self,
        messages: list[dict[str, str]],
        temperature: float | None = None,
        max_tokens: int | None = None,
        response_format: dict | None = None,
    ) -> ChatCompletion:
        """Send one chat-completion request and return the first choice."""
        if not self._config.api_key:
            raise LLMError('Model API key is not configured')

        body: dict[str, Any] = {
            'model': self._config.model,
            'messages': messages,
            'temperature': self._config.temperature if temperature is None else temperature,
            'max_tokens': max_tokens or self._config.max_tokens,
            'stream': False,
        }
        if response_format:
            body['response_format'] = response_format

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    f'{self._config.base_url}/chat/completions',
                    headers={
                        'Authorization': f'Bearer {self._config.api_key}',
                        'Content-Type': 'application/json',
                    },
                    json=body,
                )
        except httpx.HTTPError as exc:
            raise LLMError(f'Model API request failed: {exc}') from exc

        if resp.status_code >= 400:
            logger.error('Model API error %d: %s', resp.status_code, resp.text[:500])
            raise LLMError(f'Model API error: {resp.status_code}')

        try:
            data = resp.json()
            content = data['choices'][0]['message']['content'] or ''
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise LLMError(f'Malformed model API response: {exc}') from exc

        usage = data.get('usage') or {}
        logger.info(
            'Model reply received (%d chars, %s tokens)',
            len(content), usage.get('total_tokens', '?'),
        )
        return ChatCompletion(
            content=content,
            model=data.get('model', self._config.model),
            usage=usage,
        )
