"""Text-generation clients used by the model-backed extractor.

Each client sends one prompt and returns the raw text content of the
reply. SDK failures are translated into ``UpstreamError``; retries are
disabled so that a failure surfaces once, to the caller.
"""

from __future__ import annotations

import logging
from typing import Protocol

import anthropic
import openai
from anthropic import AsyncAnthropic
from anthropic.types import TextBlock
from openai import AsyncOpenAI

from src.extraction.errors import ConfigurationError, UpstreamError
from src.extraction_config import ExtractionConfig, LLMProvider

logger = logging.getLogger(__name__)


class TextGenerationClient(Protocol):
    """Anything that can turn a prompt into a text completion."""

    async def generate(self, prompt: str, *, temperature: float, max_tokens: int) -> str: ...


class OpenAIGenerationClient:
    """Chat Completions client (``AsyncOpenAI``)."""

    def __init__(self, api_key: str, model: str, timeout: float = 30.0) -> None:
        self.model = model
        self._client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    async def generate(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APIStatusError as exc:
            logger.warning("OpenAI returned status %s", exc.status_code)
            raise UpstreamError(
                f"OpenAI error: {exc.status_code}",
                status_code=exc.status_code,
                body=exc.response.text,
            ) from exc
        except openai.APIConnectionError as exc:
            # Also covers APITimeoutError
            logger.warning("OpenAI request failed: %s", type(exc).__name__)
            raise UpstreamError(f"OpenAI unreachable: {exc}") from exc

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class AnthropicGenerationClient:
    """Messages API client (``AsyncAnthropic``)."""

    def __init__(self, api_key: str, model: str, timeout: float = 30.0) -> None:
        self.model = model
        self._client = AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)

    async def generate(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIStatusError as exc:
            logger.warning("Anthropic returned status %s", exc.status_code)
            raise UpstreamError(
                f"Anthropic error: {exc.status_code}",
                status_code=exc.status_code,
                body=exc.response.text,
            ) from exc
        except anthropic.APIConnectionError as exc:
            logger.warning("Anthropic request failed: %s", type(exc).__name__)
            raise UpstreamError(f"Anthropic unreachable: {exc}") from exc

        # We send a plain text prompt, so only TextBlocks carry the answer.
        return "".join(block.text for block in response.content if isinstance(block, TextBlock))


def build_generation_client(config: ExtractionConfig) -> TextGenerationClient:
    """Create the client for ``config.provider``.

    Raises:
        ConfigurationError: If the provider's API key is not configured.
    """
    if not config.has_credentials:
        raise ConfigurationError(
            f"LLM extraction requires an API key for provider '{config.provider}'"
        )

    if config.provider is LLMProvider.ANTHROPIC:
        return AnthropicGenerationClient(config.api_key, config.model, config.timeout_seconds)
    return OpenAIGenerationClient(config.api_key, config.model, config.timeout_seconds)
