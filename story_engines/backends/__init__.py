"""
Story Engines Backends Module
Text-generation clients consumed by the engine executor.
"""

from .base import (
    ClaudeClient,
    GeminiClient,
    LLMClient,
    OpenAIClient,
    create_llm_client,
    create_mode_backends,
)

__all__ = [
    "LLMClient",
    "OpenAIClient",
    "ClaudeClient",
    "GeminiClient",
    "create_llm_client",
    "create_mode_backends",
]
