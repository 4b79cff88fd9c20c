"""
LLM Provider Configuration - BYOK (Bring Your Own Key) Support
Supports OpenAI, OpenRouter, Google Gemini, Anthropic Claude and DeepSeek
as generation backends for the story engines.
"""

import os
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, SecretStr

from ..models import RunMode


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    OPENROUTER = "openrouter"
    GEMINI = "gemini"
    CLAUDE = "claude"
    DEEPSEEK = "deepseek"


# ============================================================================
# Model Definitions by Provider
# ============================================================================

OPENAI_MODELS: Dict[str, Dict[str, Any]] = {
    "gpt-4o": {
        "name": "GPT-4o",
        "description": "Most capable GPT-4 model, multimodal",
        "context_window": 128000,
        "max_output": 16384,
        "recommended_for": ["beast"]
    },
    "gpt-4o-mini": {
        "name": "GPT-4o Mini",
        "description": "Smaller, faster, cheaper GPT-4o variant",
        "context_window": 128000,
        "max_output": 16384,
        "recommended_for": ["stable"]
    },
    "o3-mini": {
        "name": "O3 Mini",
        "description": "Smaller O3 reasoning model",
        "context_window": 200000,
        "max_output": 65536,
        "recommended_for": ["beast"]
    },
}

OPENROUTER_MODELS: Dict[str, Dict[str, Any]] = {
    "anthropic/claude-3.5-sonnet": {
        "name": "Claude 3.5 Sonnet (via OpenRouter)",
        "description": "Anthropic Claude 3.5 Sonnet through OpenRouter",
        "context_window": 200000,
        "max_output": 8192,
        "recommended_for": ["beast"]
    },
    "google/gemini-2.0-flash-exp": {
        "name": "Gemini 2.0 Flash (via OpenRouter)",
        "description": "Google Gemini 2.0 Flash with grounding",
        "context_window": 1000000,
        "max_output": 8192,
        "recommended_for": ["stable"]
    },
    "meta-llama/llama-3.3-70b-instruct": {
        "name": "Llama 3.3 70B (via OpenRouter)",
        "description": "Meta Llama 3.3 70B Instruct",
        "context_window": 131072,
        "max_output": 4096,
        "recommended_for": ["stable"]
    },
}

GEMINI_MODELS: Dict[str, Dict[str, Any]] = {
    # Large context window; the engines send the full story bible uncut
    "gemini-2.5-pro": {
        "name": "Gemini 2.5 Pro",
        "description": "Long-context reasoning model, suited to full story bibles",
        "context_window": 2000000,
        "max_output": 65536,
        "recommended_for": ["beast"]
    },
    "gemini-1.5-pro": {
        "name": "Gemini 1.5 Pro",
        "description": "Gemini 1.5 Pro with 2M context",
        "context_window": 2000000,
        "max_output": 8192,
        "recommended_for": ["beast"]
    },
    "gemini-1.5-flash": {
        "name": "Gemini 1.5 Flash",
        "description": "Fast and efficient Gemini model",
        "context_window": 1000000,
        "max_output": 8192,
        "recommended_for": ["stable"]
    },
}

CLAUDE_MODELS: Dict[str, Dict[str, Any]] = {
    "claude-sonnet-4-20250514": {
        "name": "Claude Sonnet 4",
        "description": "Strong prose and long-context analysis",
        "context_window": 200000,
        "max_output": 8192,
        "recommended_for": ["beast"]
    },
    "claude-3-5-haiku-20241022": {
        "name": "Claude 3.5 Haiku",
        "description": "Fast and cost-effective Claude model",
        "context_window": 200000,
        "max_output": 8192,
        "recommended_for": ["stable"]
    },
}

DEEPSEEK_MODELS: Dict[str, Dict[str, Any]] = {
    "deepseek-chat": {
        "name": "DeepSeek V3",
        "description": "DeepSeek's most capable chat model",
        "context_window": 64000,
        "max_output": 8192,
        "recommended_for": ["stable"]
    },
    "deepseek-reasoner": {
        "name": "DeepSeek R1",
        "description": "DeepSeek reasoning model with chain-of-thought",
        "context_window": 64000,
        "max_output": 8192,
        "recommended_for": ["beast"]
    },
}


# ============================================================================
# Provider Configuration Models
# ============================================================================

class ProviderConfig(BaseModel):
    """Base configuration for an LLM provider."""
    provider: LLMProvider
    api_key: SecretStr
    base_url: Optional[str] = None
    default_model: str
    enabled: bool = True


class OpenAIConfig(ProviderConfig):
    """OpenAI-specific configuration."""
    provider: LLMProvider = LLMProvider.OPENAI
    base_url: str = "https://api.openai.com/v1"
    default_model: str = "gpt-4o"

    @property
    def available_models(self) -> Dict[str, Dict[str, Any]]:
        return OPENAI_MODELS


class OpenRouterConfig(ProviderConfig):
    """OpenRouter-specific configuration."""
    provider: LLMProvider = LLMProvider.OPENROUTER
    base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "anthropic/claude-3.5-sonnet"

    @property
    def available_models(self) -> Dict[str, Dict[str, Any]]:
        return OPENROUTER_MODELS


class GeminiConfig(ProviderConfig):
    """Google Gemini-specific configuration."""
    provider: LLMProvider = LLMProvider.GEMINI
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    default_model: str = "gemini-2.5-pro"

    @property
    def available_models(self) -> Dict[str, Dict[str, Any]]:
        return GEMINI_MODELS


class ClaudeConfig(ProviderConfig):
    """Anthropic Claude-specific configuration."""
    provider: LLMProvider = LLMProvider.CLAUDE
    base_url: str = "https://api.anthropic.com/v1"
    default_model: str = "claude-sonnet-4-20250514"

    @property
    def available_models(self) -> Dict[str, Dict[str, Any]]:
        return CLAUDE_MODELS


class DeepSeekConfig(ProviderConfig):
    """DeepSeek-specific configuration (OpenAI-compatible API)."""
    provider: LLMProvider = LLMProvider.DEEPSEEK
    base_url: str = "https://api.deepseek.com"
    default_model: str = "deepseek-chat"

    @property
    def available_models(self) -> Dict[str, Dict[str, Any]]:
        return DEEPSEEK_MODELS


# ============================================================================
# Run Mode Model Assignment
# ============================================================================

class EngineModelConfig(BaseModel):
    """Which provider and model serve each run mode."""
    beast_provider: LLMProvider = LLMProvider.GEMINI
    beast_model: str = "gemini-2.5-pro"

    stable_provider: LLMProvider = LLMProvider.OPENAI
    stable_model: str = "gpt-4o-mini"

    def for_mode(self, mode: RunMode) -> tuple[LLMProvider, str]:
        if mode == RunMode.STABLE:
            return self.stable_provider, self.stable_model
        return self.beast_provider, self.beast_model


# ============================================================================
# Master Configuration
# ============================================================================

class LLMConfiguration(BaseModel):
    """Master LLM configuration with all providers."""

    # Provider configurations (user provides their own keys)
    openai: Optional[OpenAIConfig] = None
    openrouter: Optional[OpenRouterConfig] = None
    gemini: Optional[GeminiConfig] = None
    claude: Optional[ClaudeConfig] = None
    deepseek: Optional[DeepSeekConfig] = None

    # Mode-specific model assignments
    engine_models: EngineModelConfig = Field(default_factory=EngineModelConfig)

    def get_provider_config(self, provider: LLMProvider) -> Optional[ProviderConfig]:
        """Get configuration for a specific provider."""
        provider_map = {
            LLMProvider.OPENAI: self.openai,
            LLMProvider.OPENROUTER: self.openrouter,
            LLMProvider.GEMINI: self.gemini,
            LLMProvider.CLAUDE: self.claude,
            LLMProvider.DEEPSEEK: self.deepseek,
        }
        return provider_map.get(provider)

    def get_enabled_providers(self) -> List[LLMProvider]:
        """Get list of enabled providers."""
        return [
            provider
            for provider in LLMProvider
            if (config := self.get_provider_config(provider)) is not None and config.enabled
        ]

    def validate_engine_models(self) -> List[str]:
        """Validate that every run mode points at an enabled provider and known model."""
        errors = []
        for mode in RunMode:
            provider, model = self.engine_models.for_mode(mode)
            provider_config = self.get_provider_config(provider)
            if not provider_config:
                errors.append(f"{mode.value}: Provider {provider.value} is not configured")
            elif not provider_config.enabled:
                errors.append(f"{mode.value}: Provider {provider.value} is disabled")
            elif model not in provider_config.available_models:
                errors.append(f"{mode.value}: Model {model} not available for {provider.value}")

        return errors


# ============================================================================
# Helper Functions
# ============================================================================

def get_all_models() -> Dict[str, Dict[str, Dict[str, Any]]]:
    """Get all available models grouped by provider."""
    return {
        "openai": OPENAI_MODELS,
        "openrouter": OPENROUTER_MODELS,
        "gemini": GEMINI_MODELS,
        "claude": CLAUDE_MODELS,
        "deepseek": DEEPSEEK_MODELS,
    }


def get_models_for_mode(mode: RunMode) -> Dict[str, List[str]]:
    """Get recommended models for a run mode."""
    recommended = {}

    for provider, models in get_all_models().items():
        provider_recommended = [
            model_id
            for model_id, model_info in models.items()
            if mode.value in model_info.get("recommended_for", [])
        ]
        if provider_recommended:
            recommended[provider] = provider_recommended

    return recommended


def create_default_config_from_env() -> LLMConfiguration:
    """Create configuration from environment variables."""
    config = LLMConfiguration()

    if os.getenv("OPENAI_API_KEY"):
        config.openai = OpenAIConfig(
            api_key=SecretStr(os.getenv("OPENAI_API_KEY")),
        )

    if os.getenv("OPENROUTER_API_KEY"):
        config.openrouter = OpenRouterConfig(
            api_key=SecretStr(os.getenv("OPENROUTER_API_KEY")),
        )

    if os.getenv("GEMINI_API_KEY"):
        config.gemini = GeminiConfig(
            api_key=SecretStr(os.getenv("GEMINI_API_KEY")),
        )

    if os.getenv("ANTHROPIC_API_KEY"):
        config.claude = ClaudeConfig(
            api_key=SecretStr(os.getenv("ANTHROPIC_API_KEY")),
        )

    if os.getenv("DEEPSEEK_API_KEY"):
        config.deepseek = DeepSeekConfig(
            api_key=SecretStr(os.getenv("DEEPSEEK_API_KEY")),
        )

    # Mode assignments can be pointed at any configured provider
    beast_provider = os.getenv("STORY_ENGINES_BEAST_PROVIDER")
    if beast_provider:
        config.engine_models.beast_provider = LLMProvider(beast_provider)
    beast_model = os.getenv("STORY_ENGINES_BEAST_MODEL")
    if beast_model:
        config.engine_models.beast_model = beast_model

    stable_provider = os.getenv("STORY_ENGINES_STABLE_PROVIDER")
    if stable_provider:
        config.engine_models.stable_provider = LLMProvider(stable_provider)
    stable_model = os.getenv("STORY_ENGINES_STABLE_MODEL")
    if stable_model:
        config.engine_models.stable_model = stable_model

    return config
