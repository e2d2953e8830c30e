"""
Tests for the LLM provider layer.
"""

from __future__ import annotations

import os
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from openai import OpenAIError

from dual_dread.engine import ServiceError
from dual_dread.services.llm import (
    MockLLMProvider,
    OpenRouterProvider,
    create_llm_provider,
    extract_json_object,
)


def _fake_client(create: AsyncMock) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def _completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


# =============================================================================
# Mock Provider Tests
# =============================================================================


class TestMockLLMProvider:
    """Tests for MockLLMProvider."""

    @pytest.mark.asyncio
    async def test_complete_basic(self) -> None:
        """Test basic completion returns mock response."""
        provider = MockLLMProvider()
        response = await provider.complete([{"role": "user", "content": "Hello"}])
        assert response == "[Mock LLM response]"

    @pytest.mark.asyncio
    async def test_complete_with_custom_response(self) -> None:
        """Test custom response for specific input."""
        provider = MockLLMProvider()
        provider.set_response("Hello", "Hi there!")
        response = await provider.complete([{"role": "user", "content": "Hello"}])
        assert response == "Hi there!"

    @pytest.mark.asyncio
    async def test_queued_responses_served_in_order(self) -> None:
        """Test queued responses take priority and are consumed."""
        provider = MockLLMProvider()
        provider.queue_response("first")
        provider.queue_response({"chosenOption": "Run"})

        messages = [{"role": "user", "content": "Hello"}]
        assert await provider.complete(messages) == "first"
        assert await provider.complete(messages) == '{"chosenOption": "Run"}'
        assert await provider.complete(messages) == "[Mock LLM response]"
        assert len(provider.calls) == 3

    @pytest.mark.asyncio
    async def test_queued_exception_raised(self) -> None:
        """Test a queued exception is raised instead of returned."""
        provider = MockLLMProvider()
        provider.queue_response(ServiceError("down"))
        with pytest.raises(ServiceError, match="down"):
            await provider.complete([{"role": "user", "content": "Hello"}])

    def test_is_available(self) -> None:
        """Test mock provider is always available."""
        assert MockLLMProvider().is_available is True

    def test_model_name(self) -> None:
        """Test model name property."""
        assert MockLLMProvider().model_name == "mock"


# =============================================================================
# OpenRouter Provider Tests
# =============================================================================


class TestOpenRouterProvider:
    """Tests for OpenRouterProvider."""

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_api_key(self) -> None:
        """Test provider is not available without API key."""
        provider = OpenRouterProvider(api_key=None)
        assert provider.is_available is False

    @patch.dict(os.environ, {}, clear=True)
    def test_with_api_key(self) -> None:
        """Test provider is available with API key."""
        provider = OpenRouterProvider(api_key="test-key")
        assert provider.is_available is True
        assert provider.model_name == "google/gemini-2.0-flash-001"

    @patch.dict(
        os.environ,
        {"OPENROUTER_MODEL": "openai/gpt-4o-mini", "LLM_TIMEOUT": "12.5"},
        clear=True,
    )
    def test_environment_overrides(self) -> None:
        """Test model and timeout come from the environment."""
        provider = OpenRouterProvider(api_key="test-key")
        assert provider.model_name == "openai/gpt-4o-mini"
        assert provider.timeout == 12.5

    @patch.dict(os.environ, {"LLM_TIMEOUT": "soon"}, clear=True)
    def test_bad_timeout_ignored(self) -> None:
        """Test a non-numeric timeout keeps the default."""
        provider = OpenRouterProvider(api_key="test-key")
        assert provider.timeout == 60.0

    @pytest.mark.asyncio
    async def test_complete_without_client_raises(self) -> None:
        """Test that complete raises without client configured."""
        provider = OpenRouterProvider(api_key="test-key")
        provider._client = None
        with pytest.raises(ServiceError, match="not configured"):
            await provider.complete([{"role": "user", "content": "Hello"}])

    @pytest.mark.asyncio
    async def test_complete_returns_content(self) -> None:
        """Test a successful call returns the message content."""
        provider = OpenRouterProvider(api_key="test-key")
        create = AsyncMock(return_value=_completion('{"ok": true}'))
        provider._client = _fake_client(create)  # type: ignore[assignment]

        result = await provider.complete([{"role": "user", "content": "Hi"}], json_mode=True)
        assert result == '{"ok": true}'
        assert create.await_args.kwargs["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_api_error_becomes_service_error(self) -> None:
        """Test API failures surface as ServiceError without retrying."""
        provider = OpenRouterProvider(api_key="test-key")
        create = AsyncMock(side_effect=OpenAIError("rate limited"))
        provider._client = _fake_client(create)  # type: ignore[assignment]

        with pytest.raises(ServiceError, match="rate limited"):
            await provider.complete([{"role": "user", "content": "Hi"}])
        assert create.await_count == 1

    @pytest.mark.asyncio
    async def test_empty_content_is_an_error(self) -> None:
        """Test an empty completion is treated as a failure."""
        provider = OpenRouterProvider(api_key="test-key")
        provider._client = _fake_client(AsyncMock(return_value=_completion("   ")))  # type: ignore[assignment]

        with pytest.raises(ServiceError, match="empty"):
            await provider.complete([{"role": "user", "content": "Hi"}])


# =============================================================================
# JSON Extraction Tests
# =============================================================================


class TestExtractJsonObject:
    """Tests for pulling JSON out of LLM responses."""

    def test_clean_json(self) -> None:
        assert extract_json_object('{"a": 1}') == {"a": 1}

    def test_markdown_fenced(self) -> None:
        assert extract_json_object('```json\n{"a": 1}\n```') == {"a": 1}

    def test_surrounding_chatter(self) -> None:
        assert extract_json_object('Sure! Here you go: {"a": 1} Enjoy.') == {"a": 1}

    def test_not_json(self) -> None:
        with pytest.raises(ValueError, match="Failed to parse JSON"):
            extract_json_object("The story fades to black...")

    def test_array_rejected(self) -> None:
        with pytest.raises(ValueError, match="Expected a JSON object"):
            extract_json_object("[1, 2, 3]")


# =============================================================================
# Factory Function Tests
# =============================================================================


class TestCreateLLMProvider:
    """Tests for create_llm_provider factory."""

    def test_create_mock_provider(self) -> None:
        provider = create_llm_provider(provider_type="mock")
        assert provider.is_available is True
        assert provider.model_name == "mock"

    @patch.dict(os.environ, {}, clear=True)
    def test_create_openrouter_without_key(self) -> None:
        provider = create_llm_provider(provider_type="openrouter", api_key=None)
        assert provider.is_available is False

    def test_unknown_provider_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown provider type"):
            create_llm_provider(provider_type="unknown")
