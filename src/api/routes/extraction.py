"""Extraction endpoint: turn pasted notes into tasks and a follow-up message."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from src.api.models import ExtractRequest, ExtractResponse
from src.config import settings
from src.extraction.errors import ConfigurationError, UpstreamError, ValidationError
from src.extraction.service import ExtractionService
from src.extraction_config import ExtractionConfig

router = APIRouter()


@lru_cache(maxsize=1)
def get_extraction_service() -> ExtractionService:
    """Build the service once per process from the loaded settings."""
    return ExtractionService(ExtractionConfig.from_settings(settings))


@router.post(
    "/api/extract",
    response_model=ExtractResponse,
    response_model_exclude_none=True,
)
async def extract(
    request: ExtractRequest,
    service: Annotated[ExtractionService, Depends(get_extraction_service)],
) -> ExtractResponse:
    """Extract tasks (title, assignee, due) and a follow-up from free text.

    Blank text is a client error (400). A missing LLM credential returns 501
    and an LLM failure returns 502, so the browser still gets a JSON body.
    """
    try:
        result = await service.extract(request.text)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ConfigurationError as exc:
        raise HTTPException(status_code=501, detail=f"LLM not configured: {exc}") from exc
    except UpstreamError as exc:
        raise HTTPException(status_code=502, detail=f"LLM unavailable: {exc}") from exc

    return ExtractResponse.from_result(result)
