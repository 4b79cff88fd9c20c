"""
Story Engines Configuration Module
LLM provider configuration and run settings.
"""

from .engine_settings import EngineSettings
from .llm_providers import (
    CLAUDE_MODELS,
    DEEPSEEK_MODELS,
    GEMINI_MODELS,
    # Model Definitions
    OPENAI_MODELS,
    OPENROUTER_MODELS,
    ClaudeConfig,
    DeepSeekConfig,
    EngineModelConfig,
    GeminiConfig,
    LLMConfiguration,
    # Enums
    LLMProvider,
    OpenAIConfig,
    OpenRouterConfig,
    # Configuration Models
    ProviderConfig,
    create_default_config_from_env,
    # Helper Functions
    get_all_models,
    get_models_for_mode,
)

__all__ = [
    "LLMProvider",
    "OPENAI_MODELS",
    "OPENROUTER_MODELS",
    "GEMINI_MODELS",
    "CLAUDE_MODELS",
    "DEEPSEEK_MODELS",
    "ProviderConfig",
    "OpenAIConfig",
    "OpenRouterConfig",
    "GeminiConfig",
    "ClaudeConfig",
    "DeepSeekConfig",
    "EngineModelConfig",
    "LLMConfiguration",
    "EngineSettings",
    "get_all_models",
    "get_models_for_mode",
    "create_default_config_from_env",
]
