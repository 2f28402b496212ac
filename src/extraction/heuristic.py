"""Deterministic, rule-based extraction of tasks from meeting notes.

Works offline and never fails on string input. Each line is handled on its
own: there is no state carried between lines.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence

from src.extraction.base import Extractor
from src.extraction.cleaner import tidy
from src.extraction.models import ExtractionResult, Task, fallback_task
from src.extraction_config import ExtractionStrategy

MAX_TITLE_LENGTH = 250
ELLIPSIS = "..."

_BULLET = re.compile(r"^[-*]\s*")

# Words whose presence marks a line as action-like
TRIGGER_KEYWORDS: tuple[str, ...] = (
    "action",
    "please",
    "will",
    "assign",
    "assigned",
    "due",
    "deliver",
    "todo",
)
_TRIGGER = re.compile(r"\b(?:" + "|".join(TRIGGER_KEYWORDS) + r")\b", re.IGNORECASE)

# Connector is case-insensitive, the name itself must be capitalized
_EXPLICIT_ASSIGNMENT = re.compile(r"\b(?i:assigned to|assign to)\s+([A-Z][a-zA-Z]+)")
_BY_NAME = re.compile(r"\b(?i:by)\s+([A-Z][a-zA-Z]+)")
_CAPITALIZED_WORD = re.compile(r"\b([A-Z][a-z]{2,})\b")

_DUE_PHRASE = re.compile(r"\b(?:by|before|on|due)\s+([A-Za-z0-9 ,.-]+)", re.IGNORECASE)

Matcher = Callable[[str], str | None]


def _first_group(pattern: re.Pattern[str], line: str) -> str | None:
    match = pattern.search(line)
    return match.group(1) if match else None


# ---------------------------------------------------------------------------
# Line classification
# ---------------------------------------------------------------------------


def is_action_line(line: str) -> bool:
    """Return True if the line starts with a bullet or contains a trigger keyword."""
    return bool(_BULLET.match(line) or _TRIGGER.search(line))


def strip_bullet(line: str) -> str:
    """Remove a single leading ``-`` or ``*`` marker and the whitespace after it."""
    return _BULLET.sub("", line, count=1)


# ---------------------------------------------------------------------------
# Assignee matchers, tried in order; first match wins
# ---------------------------------------------------------------------------


def match_explicit_assignment(line: str) -> str | None:
    """``assigned to NAME`` / ``assign to NAME``."""
    return _first_group(_EXPLICIT_ASSIGNMENT, line)


def match_by_name(line: str) -> str | None:
    """``by NAME`` where NAME is capitalized."""
    return _first_group(_BY_NAME, line)


def match_capitalized_word(line: str) -> str | None:
    """First standalone capitalized word of three or more letters."""
    return _first_group(_CAPITALIZED_WORD, line)


ASSIGNEE_MATCHERS: tuple[Matcher, ...] = (
    match_explicit_assignment,
    match_by_name,
    match_capitalized_word,
)


def infer_assignee(line: str, matchers: Sequence[Matcher] = ASSIGNEE_MATCHERS) -> str | None:
    """Run the assignee matchers in priority order and return the first hit."""
    for matcher in matchers:
        name = matcher(line)
        if name:
            return name
    return None


# ---------------------------------------------------------------------------
# Due phrase
# ---------------------------------------------------------------------------


def infer_due(line: str) -> str | None:
    """Capture the text after the first ``by``/``before``/``on``/``due`` connector.

    This is a naive phrase capture, not a date parser: the phrase runs until
    the first character outside letters, digits, spaces, commas, periods and
    hyphens, so it can swallow a following clause.
    """
    return _first_group(_DUE_PHRASE, line)


def truncate_title(text: str, limit: int = MAX_TITLE_LENGTH) -> str:
    """Shorten text longer than ``limit`` to exactly ``limit`` chars ending in an ellipsis."""
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def parse_line(line: str) -> Task:
    """Build a Task from a single action line."""
    cleaned = strip_bullet(line)
    return Task(
        title=truncate_title(cleaned),
        assignee=infer_assignee(cleaned),
        due=infer_due(cleaned),
    )


def compose_follow_up(tasks: Sequence[Task]) -> str:
    """Render the follow-up message listing every task title."""
    titles = "; ".join(task.title for task in tasks)
    return tidy(
        f"Thanks everyone for the meeting. Next actions: {titles}. "
        "Please confirm owners and timelines."
    )


def extract_tasks(text: str) -> ExtractionResult:
    """Extract tasks and a follow-up message from free-text notes.

    Args:
        text: Raw meeting notes or email body.

    Returns:
        An ExtractionResult with at least one task.
    """
    tasks: list[Task] = []
    for line in (raw.strip() for raw in text.splitlines()):
        if not line or not is_action_line(line):
            continue
        task = parse_line(line)
        # A bare bullet ("-") leaves nothing to use as a title
        if task.title:
            tasks.append(task)

    if not tasks:
        tasks.append(fallback_task())

    return ExtractionResult(tasks=tuple(tasks), follow_up=compose_follow_up(tasks))


class HeuristicExtractor(Extractor):
    """Extractor backed by :func:`extract_tasks`; never suspends."""

    strategy = ExtractionStrategy.HEURISTIC

    async def extract(self, text: str) -> ExtractionResult:
        return extract_tasks(text)
