"""
LLM Client Abstraction

Provides unified interface for OpenAI-compatible endpoints and Anthropic Claude.
Handles provider switching and fallback.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging

from chartdesk.services.base import LLMUnavailableError

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


@dataclass
class LLMConfig:
    """Configuration for LLM client."""

    provider: LLMProvider
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-3-5-haiku-latest"
    max_tokens: int = 4096
    temperature: float = 0.3


@dataclass
class LLMResponse:
    """Response from LLM."""

    content: str
    model: str
    provider: LLMProvider
    usage: dict


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients."""

    provider: LLMProvider

    @abstractmethod
    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """Generate a response from the LLM."""


class OpenAIClient(BaseLLMClient):
    """
    OpenAI chat-completions client.

    ``openai_base_url`` points it at any OpenAI-compatible gateway
    (OpenRouter, DeepSeek, a local server).
    """

    provider = LLMProvider.OPENAI

    def __init__(self, config: LLMConfig):
        self.config = config
        self._client = None

    def _get_client(self):
        """Lazy initialization of OpenAI client."""
        if self._client is None:
            try:
                import openai
            except ImportError as e:
                raise LLMUnavailableError(
                    "openai package not installed. Run: pip install openai"
                ) from e
            self._client = openai.AsyncOpenAI(
                api_key=self.config.openai_api_key,
                base_url=self.config.openai_base_url,
            )
        return self._client

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """Generate response using a chat-completions endpoint."""
        client = self._get_client()
        model = self.config.openai_model

        temp = temperature if temperature is not None else self.config.temperature
        tokens = max_tokens if max_tokens is not None else self.config.max_tokens

        try:
            response = await client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temp,
                max_tokens=tokens,
            )
        except Exception as e:
            logger.error(f"OpenAI API error: {e}")
            raise

        usage = {}
        if response.usage is not None:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=model,
            provider=LLMProvider.OPENAI,
            usage=usage,
        )


class AnthropicClient(BaseLLMClient):
    """Anthropic Claude client implementation."""

    provider = LLMProvider.ANTHROPIC

    def __init__(self, config: LLMConfig):
        self.config = config
        self._client = None

    def _get_client(self):
        """Lazy initialization of Anthropic client."""
        if self._client is None:
            try:
                import anthropic
            except ImportError as e:
                raise LLMUnavailableError(
                    "anthropic package not installed. Run: pip install anthropic"
                ) from e
            self._client = anthropic.AsyncAnthropic(api_key=self.config.anthropic_api_key)
        return self._client

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """Generate response using Claude."""
        client = self._get_client()
        model = self.config.anthropic_model

        temp = temperature if temperature is not None else self.config.temperature
        tokens = max_tokens if max_tokens is not None else self.config.max_tokens

        try:
            response = await client.messages.create(
                model=model,
                max_tokens=tokens,
                temperature=temp,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
        except Exception as e:
            logger.error(f"Anthropic API error: {e}")
            raise

        return LLMResponse(
            content=response.content[0].text,
            model=model,
            provider=LLMProvider.ANTHROPIC,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            },
        )


class LLMClient:
    """
    Unified LLM client with provider switching and fallback.

    Primary provider is tried first.
    Falls back to secondary provider on failure.
    """

    def __init__(
        self,
        config: LLMConfig,
        primary: Optional[BaseLLMClient] = None,
        fallback: Optional[BaseLLMClient] = None,
    ):
        self.config = config
        self._primary = primary
        self._fallback = fallback
        if primary is None and fallback is None:
            self._setup_clients()

    def _setup_clients(self):
        """Setup primary and fallback clients based on config."""
        openai_client = OpenAIClient(self.config) if self.config.openai_api_key else None
        anthropic_client = (
            AnthropicClient(self.config) if self.config.anthropic_api_key else None
        )

        if self.config.provider == LLMProvider.ANTHROPIC:
            self._primary, self._fallback = anthropic_client, openai_client
        else:
            self._primary, self._fallback = openai_client, anthropic_client

        if self._primary is None and self._fallback is None:
            logger.warning("No LLM API keys configured. Analysis reports disabled.")

    @property
    def is_configured(self) -> bool:
        return self._primary is not None or self._fallback is not None

    def get_active_provider(self) -> Optional[LLMProvider]:
        """Provider that will be tried first."""
        client = self._primary or self._fallback
        return client.provider if client else None

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """
        Generate LLM response with automatic fallback.

        Tries primary provider first, falls back to secondary on failure.
        """
        if not self.is_configured:
            raise LLMUnavailableError("No LLM providers configured")

        if self._primary:
            try:
                return await self._primary.generate(
                    system_prompt=system_prompt,
                    user_prompt=user_prompt,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
            except Exception as e:
                if self._fallback is None:
                    raise LLMUnavailableError(f"LLM request failed: {e}") from e
                logger.warning(f"Primary LLM failed: {e}, trying fallback...")

        try:
            return await self._fallback.generate(
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as e:
            raise LLMUnavailableError(f"All LLM providers failed: {e}") from e


# Singleton instance management
_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get or create LLM client singleton."""
    global _llm_client
    if _llm_client is None:
        from chartdesk.core.config import settings

        config = LLMConfig(
            provider=LLMProvider(settings.llm_primary_provider),
            openai_api_key=settings.openai_api_key,
            openai_base_url=settings.openai_base_url,
            openai_model=settings.openai_model,
            anthropic_api_key=settings.anthropic_api_key,
            anthropic_model=settings.anthropic_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        )
        _llm_client = LLMClient(config)
    return _llm_client
