"""
Service layer for Dual Dread.

Services wrap the external LLM backend behind the engine's collaborator
interfaces.
"""

from __future__ import annotations

from dual_dread.services.companion import LLMCompanionService
from dual_dread.services.imagery import OpenAIImageService
from dual_dread.services.llm import (
    LLMProvider,
    MockLLMProvider,
    OpenRouterProvider,
    create_llm_provider,
)
from dual_dread.services.narrator import LLMNarrativeEngine

__all__ = [
    "LLMCompanionService",
    "LLMNarrativeEngine",
    "LLMProvider",
    "MockLLMProvider",
    "OpenAIImageService",
    "OpenRouterProvider",
    "create_llm_provider",
]
