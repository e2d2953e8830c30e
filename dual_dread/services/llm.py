"""
LLM Provider layer for Dual Dread.

Provides BYOK (Bring Your Own Key) LLM access via OpenRouter or any other
OpenAI-compatible API, plus a scripted mock provider for tests and
offline play.
"""

from __future__ import annotations

import json
import logging
import os
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Protocol

from openai import AsyncOpenAI, OpenAIError

from dual_dread.engine.models import ServiceError

logger = logging.getLogger(__name__)


class LLMProvider(Protocol):
    """
    Interface for LLM providers.

    Supports any OpenAI-compatible API (OpenRouter, OpenAI, Ollama, etc.)
    """

    async def complete(
        self,
        messages: list[dict[str, str]],
        max_tokens: int = 512,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        """
        Generate a completion from messages.

        Args:
            messages: List of {"role": "user"|"assistant"|"system", "content": str}
            max_tokens: Maximum tokens in response
            temperature: Randomness (0.0 = deterministic, 1.0 = creative)
            json_mode: Ask the backend for a JSON object response

        Returns:
            Generated text response

        Raises:
            ServiceError: If the call fails or returns nothing
        """
        ...

    @property
    def model_name(self) -> str:
        """The model being used."""
        ...

    @property
    def is_available(self) -> bool:
        """Whether the provider is configured and ready."""
        ...


@dataclass
class OpenRouterProvider:
    """
    OpenRouter LLM provider using OpenAI-compatible API.

    Configuration via environment variables:
        OPENROUTER_API_KEY: Your OpenRouter API key (required)
        OPENROUTER_MODEL: Model to use (default: google/gemini-2.0-flash-001)
        LLM_BASE_URL: Custom base URL (default: OpenRouter)
        LLM_TIMEOUT: Request timeout in seconds (default: 60)
        OPENROUTER_SITE_URL: Your site URL for rankings (optional)
        OPENROUTER_SITE_NAME: Your site name (optional)

    There is no automatic retry: a failed call surfaces as a ServiceError
    and the player retries by resubmitting.
    """

    api_key: str | None = None
    model: str = "google/gemini-2.0-flash-001"
    base_url: str = "https://openrouter.ai/api/v1"
    timeout: float = 60.0
    site_url: str | None = None
    site_name: str = "Dual Dread"

    _client: AsyncOpenAI | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        """Initialize from environment if not provided."""
        if self.api_key is None:
            self.api_key = os.getenv("OPENROUTER_API_KEY")

        if os.getenv("OPENROUTER_MODEL"):
            self.model = os.getenv("OPENROUTER_MODEL", self.model)

        if os.getenv("LLM_BASE_URL"):
            self.base_url = os.getenv("LLM_BASE_URL", self.base_url)

        if os.getenv("LLM_TIMEOUT"):
            try:
                self.timeout = float(os.getenv("LLM_TIMEOUT", self.timeout))
            except ValueError:
                logger.warning("Ignoring non-numeric LLM_TIMEOUT %r", os.getenv("LLM_TIMEOUT"))

        if os.getenv("OPENROUTER_SITE_URL"):
            self.site_url = os.getenv("OPENROUTER_SITE_URL")

        if os.getenv("OPENROUTER_SITE_NAME"):
            self.site_name = os.getenv("OPENROUTER_SITE_NAME", self.site_name)

        if self.api_key:
            headers = {"X-Title": self.site_name}
            if self.site_url:
                headers["HTTP-Referer"] = self.site_url

            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
                default_headers=headers,
            )

    @property
    def model_name(self) -> str:
        """The model being used."""
        return self.model

    @property
    def is_available(self) -> bool:
        """Whether the provider is configured and ready."""
        return self._client is not None

    async def complete(
        self,
        messages: list[dict[str, str]],
        max_tokens: int = 512,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        """
        Generate a completion from messages.

        Raises:
            ServiceError: If the provider is not configured, the call fails
                (including timeouts), or the model returns empty content
        """
        if self._client is None:
            raise ServiceError(
                "OpenRouter provider not configured. Set OPENROUTER_API_KEY environment variable."
            )

        extra: dict[str, Any] = {}
        if json_mode:
            extra["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                max_tokens=max_tokens,
                temperature=temperature,
                **extra,
            )
        except OpenAIError as e:
            raise ServiceError(f"LLM request failed: {e}") from e

        if not response.choices:
            raise ServiceError("LLM returned no choices")
        content = response.choices[0].message.content or ""
        if not content.strip():
            raise ServiceError("LLM returned an empty response")
        return content


@dataclass
class MockLLMProvider:
    """
    Mock LLM provider for testing and offline play.

    Responses are served in this order:
    1. Queued responses (``queue_response``); an Exception in the queue
       is raised instead of returned
    2. Custom responses keyed on the last user message
    3. The default response
    """

    model: str = "mock"
    responses: dict[str, str] = field(default_factory=dict)
    default_response: str = "[Mock LLM response]"

    _queue: deque[str | Exception] = field(init=False, default_factory=deque)
    calls: list[list[dict[str, str]]] = field(init=False, default_factory=list)

    @property
    def model_name(self) -> str:
        """The model being used."""
        return self.model

    @property
    def is_available(self) -> bool:
        """Mock provider is always available."""
        return True

    async def complete(
        self,
        messages: list[dict[str, str]],
        max_tokens: int = 512,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        """Return a mock response."""
        self.calls.append(messages)

        if self._queue:
            item = self._queue.popleft()
            if isinstance(item, Exception):
                raise item
            return item

        if messages:
            last_user_msg = next(
                (m["content"] for m in reversed(messages) if m["role"] == "user"),
                "",
            )
            if last_user_msg in self.responses:
                return self.responses[last_user_msg]

        return self.default_response

    def set_response(self, trigger: str, response: str) -> None:
        """Set a custom response for a specific input."""
        self.responses[trigger] = response

    def queue_response(self, response: str | dict | Exception) -> None:
        """Queue the next response. Dicts are sent as JSON."""
        if isinstance(response, dict):
            response = json.dumps(response)
        self._queue.append(response)


def extract_json_object(response: str) -> dict[str, Any]:
    """
    Pull a JSON object out of an LLM response.

    Handles clean JSON, JSON wrapped in markdown code blocks, and JSON
    surrounded by chatter.

    Raises:
        ValueError: If no JSON object can be parsed
    """
    cleaned = response.strip()
    if cleaned.startswith("```"):
        lines = [line for line in cleaned.split("\n") if not line.startswith("```")]
        cleaned = "\n".join(lines).strip()

    if not cleaned.startswith("{"):
        start = cleaned.find("{")
        end = cleaned.rfind("}") + 1
        if start != -1 and end > start:
            cleaned = cleaned[start:end]

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def create_llm_provider(provider_type: str = "openrouter", **kwargs) -> LLMProvider:
    """
    Factory function to create an LLM provider.

    Args:
        provider_type: Type of provider ("openrouter", "mock")
        **kwargs: Provider-specific configuration

    Example:
        # Auto-configure from environment
        provider = create_llm_provider()

        # Mock for testing
        provider = create_llm_provider(provider_type="mock")
    """
    if provider_type == "mock":
        return MockLLMProvider(**kwargs)
    if provider_type == "openrouter":
        return OpenRouterProvider(**kwargs)
    raise ValueError(f"Unknown provider type: {provider_type}")
