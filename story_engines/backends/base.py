"""
Generation Backends for the story engines.
Thin async clients over the provider SDKs; each one turns a system
instruction plus a prompt into plain text.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..config import LLMConfiguration, LLMProvider
from ..models import RunMode

logger = logging.getLogger("story_engines")


class LLMClient(ABC):
    """Abstract base class for LLM clients."""

    @abstractmethod
    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> str:
        """Generate a response from the LLM. `model` overrides the client default."""
        pass


class OpenAIClient(LLMClient):
    """OpenAI API client implementation (also serves OpenAI-compatible APIs)."""

    def __init__(self, api_key: str, model: str, base_url: str = "https://api.openai.com/v1"):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self._client = None

    async def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> str:
        client = await self._get_client()
        response = await client.chat.completions.create(
            model=model or self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content or ""


class ClaudeClient(LLMClient):
    """Anthropic Claude API client implementation."""

    def __init__(self, api_key: str, model: str):
        self.api_key = api_key
        self.model = model
        self._client = None

    async def _get_client(self):
        if self._client is None:
            from anthropic import AsyncAnthropic
            self._client = AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> str:
        client = await self._get_client()
        response = await client.messages.create(
            model=model or self.model,
            max_tokens=max_tokens or 4096,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=temperature,
        )
        return "".join(block.text for block in response.content if getattr(block, "type", "") == "text")


class GeminiClient(LLMClient):
    """Google Gemini API client implementation."""

    def __init__(self, api_key: str, model: str):
        self.api_key = api_key
        self.model = model
        self._configured = False

    def _get_model(self, model: str):
        import google.generativeai as genai
        if not self._configured:
            genai.configure(api_key=self.api_key)
            self._configured = True
        return genai.GenerativeModel(model)

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> str:
        client = self._get_model(model or self.model)
        full_prompt = f"{system_prompt}\n\n---\n\n{user_prompt}"
        response = await client.generate_content_async(
            full_prompt,
            generation_config={"temperature": temperature, "max_output_tokens": max_tokens},
        )
        return response.text


def create_llm_client(
    provider: LLMProvider,
    config: LLMConfiguration,
    model: str,
) -> LLMClient:
    """Factory function to create appropriate LLM client."""

    if provider == LLMProvider.OPENAI:
        if not config.openai:
            raise ValueError("OpenAI configuration not provided")
        return OpenAIClient(
            api_key=config.openai.api_key.get_secret_value(),
            model=model,
            base_url=config.openai.base_url,
        )

    elif provider == LLMProvider.OPENROUTER:
        if not config.openrouter:
            raise ValueError("OpenRouter configuration not provided")
        return OpenAIClient(  # OpenRouter uses OpenAI-compatible API
            api_key=config.openrouter.api_key.get_secret_value(),
            model=model,
            base_url=config.openrouter.base_url,
        )

    elif provider == LLMProvider.DEEPSEEK:
        if not config.deepseek:
            raise ValueError("DeepSeek configuration not provided")
        return OpenAIClient(
            api_key=config.deepseek.api_key.get_secret_value(),
            model=model,
            base_url=config.deepseek.base_url,
        )

    elif provider == LLMProvider.CLAUDE:
        if not config.claude:
            raise ValueError("Claude configuration not provided")
        return ClaudeClient(
            api_key=config.claude.api_key.get_secret_value(),
            model=model,
        )

    elif provider == LLMProvider.GEMINI:
        if not config.gemini:
            raise ValueError("Gemini configuration not provided")
        return GeminiClient(
            api_key=config.gemini.api_key.get_secret_value(),
            model=model,
        )

    else:
        raise ValueError(f"Unsupported provider: {provider}")


def create_mode_backends(config: LLMConfiguration) -> Dict[RunMode, LLMClient]:
    """
    Build one client per run mode from the configuration.
    Modes whose provider has no key are left out; runs in those modes
    degrade to fallback content.
    """
    backends: Dict[RunMode, LLMClient] = {}
    for mode in RunMode:
        provider, model = config.engine_models.for_mode(mode)
        try:
            backends[mode] = create_llm_client(provider, config, model)
        except ValueError as e:
            logger.warning(f"[create_mode_backends] No backend for mode '{mode.value}': {e}")
            continue
        logger.info(f"[create_mode_backends] Mode '{mode.value}' -> {provider.value}/{model}")
    return backends
