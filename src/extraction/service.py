"""Single entry point for extraction: strategy selection and result normalization."""

from __future__ import annotations

import logging
from dataclasses import replace

from src.extraction.base import Extractor
from src.extraction.cleaner import tidy
from src.extraction.errors import ValidationError
from src.extraction.heuristic import HeuristicExtractor, compose_follow_up
from src.extraction.llm import ModelExtractor
from src.extraction.models import ExtractionResult, Task, fallback_task
from src.extraction_config import ExtractionConfig, ExtractionStrategy

logger = logging.getLogger(__name__)


def select_extractor(config: ExtractionConfig) -> Extractor:
    """Pick the extractor for ``config``.

    The feature flag alone decides. With the flag on and no credential the
    model extractor still gets selected and fails on its first call.
    """
    if config.use_llm and not config.has_credentials:
        logger.warning(
            "LLM extraction is enabled but no API key is set for provider '%s'; "
            "extraction requests will fail",
            config.provider,
        )

    if config.strategy is ExtractionStrategy.MODEL:
        return ModelExtractor(config)
    return HeuristicExtractor()


def _optional_text(value: object) -> str | None:
    """Model output may put numbers or nulls in optional fields."""
    if value is None or value == "":
        return None
    return value if isinstance(value, str) else str(value)


def normalize_result(result: ExtractionResult) -> ExtractionResult:
    """Enforce the output contract on any extractor's result.

    Drops tasks without a usable title, substitutes the fallback task when
    none remain, and makes sure the follow-up is non-empty and tidied.
    """
    tasks: list[Task] = []
    for task in result.tasks:
        if not isinstance(task.title, str) or not task.title.strip():
            logger.warning("Dropping extracted task without a title: %r", task)
            continue
        tasks.append(
            replace(
                task,
                assignee=_optional_text(task.assignee),
                due=_optional_text(task.due),
                priority=_optional_text(task.priority),
            )
        )

    if not tasks:
        tasks.append(fallback_task())

    follow_up = tidy(result.follow_up) or compose_follow_up(tasks)
    return ExtractionResult(tasks=tuple(tasks), follow_up=follow_up)


class ExtractionService:
    """Validate input, run the configured extractor, normalize its output.

    A failing extractor is never replaced by another one mid-call: model
    errors propagate to the caller.
    """

    def __init__(self, config: ExtractionConfig, extractor: Extractor | None = None) -> None:
        self.config = config
        self.extractor = extractor if extractor is not None else select_extractor(config)
        logger.info("Extraction strategy: %s", self.extractor.strategy)

    @property
    def strategy(self) -> ExtractionStrategy:
        return self.extractor.strategy

    async def extract(self, text: str | None) -> ExtractionResult:
        """Extract tasks and a follow-up message.

        Args:
            text: Meeting notes or email body.

        Raises:
            ValidationError: If ``text`` is missing or blank.
            ConfigurationError: Model strategy without a credential.
            UpstreamError: Model strategy failed upstream.
        """
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("text is required")

        result = normalize_result(await self.extractor.extract(text))
        logger.debug("Extracted %d tasks via %s", len(result.tasks), self.strategy)
        return result
