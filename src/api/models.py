"""Pydantic request/response schemas for the Action Extractor API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from src.extraction.models import ExtractionResult


class ExtractRequest(BaseModel):
    """Request body for the /api/extract endpoint."""

    text: str


class TaskResponse(BaseModel):
    """A single extracted task in API responses."""

    title: str
    assignee: str | None = None
    due: str | None = None
    priority: str | None = None


class ExtractResponse(BaseModel):
    """Response body for the /api/extract endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    tasks: list[TaskResponse]
    follow_up: str = Field(alias="followUp")

    @classmethod
    def from_result(cls, result: ExtractionResult) -> ExtractResponse:
        return cls(
            tasks=[
                TaskResponse(
                    title=t.title,
                    assignee=t.assignee,
                    due=t.due,
                    priority=t.priority,
                )
                for t in result.tasks
            ],
            follow_up=result.follow_up,
        )


class HealthResponse(BaseModel):
    """Response body for the /health endpoint."""

    status: str
    strategy: str
