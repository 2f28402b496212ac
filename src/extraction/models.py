"""Data models for structured extraction results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

FALLBACK_TASK_TITLE = "Review meeting notes and propose next steps"


@dataclass(frozen=True)
class Task:
    """A single extracted action item."""

    title: str
    assignee: str | None = None
    due: str | None = None
    priority: str | None = None  # never set by the heuristic path

    def to_dict(self) -> dict[str, Any]:
        """Return the wire shape, omitting fields that are not set."""
        data: dict[str, Any] = {"title": self.title}
        for key in ("assignee", "due", "priority"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class ExtractionResult:
    """Tasks in source order plus a follow-up message ready for display."""

    tasks: tuple[Task, ...] = field(default_factory=tuple)
    follow_up: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasks": [task.to_dict() for task in self.tasks],
            "followUp": self.follow_up,
        }


def fallback_task() -> Task:
    """The task substituted when no action line is found."""
    return Task(title=FALLBACK_TASK_TITLE)
