"""LLM-backed extraction: ask a generation service for strict JSON and parse it."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from src.extraction.base import Extractor
from src.extraction.cleaner import tidy
from src.extraction.clients import TextGenerationClient, build_generation_client
from src.extraction.errors import ConfigurationError, UpstreamError
from src.extraction.models import ExtractionResult, Task
from src.extraction_config import ExtractionConfig, ExtractionStrategy

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """\
You are a JSON extractor. Given meeting notes, return ONLY valid JSON with this shape:
{{"tasks":[{{"title":"...","assignee":"...","due":"...","priority":"..."}}],"followUp":"..."}}
Extract tasks (short title), suggest a likely assignee if present, suggest a due date \
if present or plausible, and write a concise follow-up (1-2 sentences). Return only valid JSON.

Notes:
{text}
"""

# Greedy: first "{" through last "}"
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def build_prompt(text: str) -> str:
    """Embed the notes in the extraction instructions."""
    return EXTRACTION_PROMPT.format(text=text)


def _load_object(raw: str) -> dict[str, Any] | None:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def parse_model_output(content: str) -> dict[str, Any]:
    """Parse the model reply, falling back to the embedded ``{...}`` substring.

    Raises:
        UpstreamError: If neither the whole reply nor the embedded object parses.
    """
    data = _load_object(content)
    if data is not None:
        return data

    match = _JSON_OBJECT.search(content)
    if match:
        data = _load_object(match.group(0))
        if data is not None:
            return data

    raise UpstreamError("LLM response could not be parsed as JSON", body=content)


def _to_task(entry: Any) -> Task:
    """Map one model task entry onto Task without validating its fields."""
    if isinstance(entry, dict):
        return Task(
            title=entry.get("title"),  # type: ignore[arg-type]
            assignee=entry.get("assignee"),
            due=entry.get("due"),
            priority=entry.get("priority"),
        )
    return Task(title=entry)


def to_result(data: dict[str, Any]) -> ExtractionResult:
    """Build an ExtractionResult from parsed model JSON."""
    tasks = data.get("tasks") or []
    if not isinstance(tasks, list):
        tasks = [tasks]
    follow_up = data.get("followUp") or ""
    return ExtractionResult(
        tasks=tuple(_to_task(entry) for entry in tasks),
        follow_up=tidy(str(follow_up)),
    )


class ModelExtractor(Extractor):
    """Extractor that delegates to an external text-generation service.

    Output is best-effort deterministic only: temperature is kept near zero
    but the service makes no guarantee.
    """

    strategy = ExtractionStrategy.MODEL

    def __init__(
        self,
        config: ExtractionConfig,
        client: TextGenerationClient | None = None,
    ) -> None:
        self._config = config
        if client is None and config.has_credentials:
            client = build_generation_client(config)
        self._client = client

    async def extract(self, text: str) -> ExtractionResult:
        """Extract tasks via the generation service.

        Raises:
            ConfigurationError: If no API key is configured.
            UpstreamError: If the service fails or its reply is not usable JSON.
        """
        if not self._config.has_credentials or self._client is None:
            raise ConfigurationError(
                f"LLM extraction requires an API key for provider '{self._config.provider}'"
            )

        content = await self._client.generate(
            build_prompt(text),
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
        )
        result = to_result(parse_model_output(content))
        logger.debug("Model extraction returned %d tasks", len(result.tasks))
        return result
