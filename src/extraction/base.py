"""Common interface shared by every extraction strategy."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.extraction.models import ExtractionResult
from src.extraction_config import ExtractionStrategy


class Extractor(ABC):
    """Turns raw notes into an ExtractionResult.

    Implementations must not keep per-call state on the instance: one
    extractor serves many concurrent requests.
    """

    strategy: ExtractionStrategy

    @abstractmethod
    async def extract(self, text: str) -> ExtractionResult:
        """Extract tasks and a follow-up message from ``text``."""
