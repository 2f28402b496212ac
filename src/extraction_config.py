"""Extraction configuration: strategy enums and ExtractionConfig dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from src.config import Settings


class ExtractionStrategy(StrEnum):
    """Available extraction strategies."""

    HEURISTIC = "heuristic"
    MODEL = "model"


class LLMProvider(StrEnum):
    """Text-generation services the model strategy can call."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


@dataclass(frozen=True)
class ExtractionConfig:
    """Immutable configuration for the extraction service.

    Built once from ``Settings`` when the service is constructed so that a
    single call never sees the flag or credential change underneath it.
    """

    use_llm: bool = False
    provider: LLMProvider = LLMProvider.OPENAI
    api_key: str = field(default="", repr=False)
    model: str = "gpt-4o-mini"
    temperature: float = 0.0
    max_tokens: int = 600
    timeout_seconds: float = 30.0

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key)

    @property
    def strategy(self) -> ExtractionStrategy:
        """Model strategy whenever the flag is on.

        A missing credential is reported by the model extractor as a
        ConfigurationError rather than masked by switching strategies.
        """
        if self.use_llm:
            return ExtractionStrategy.MODEL
        return ExtractionStrategy.HEURISTIC

    @classmethod
    def from_settings(cls, settings: Settings) -> ExtractionConfig:
        """Resolve the provider-specific credential and model from settings."""
        provider = LLMProvider(settings.llm_provider.lower())
        if provider is LLMProvider.ANTHROPIC:
            api_key, model = settings.anthropic_api_key, settings.llm_model
        else:
            api_key, model = settings.openai_api_key, settings.openai_model

        return cls(
            use_llm=settings.use_llm_extraction,
            provider=provider,
            api_key=api_key,
            model=model,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            timeout_seconds=settings.llm_timeout_seconds,
        )
