"""
Engine Error Taxonomy

Every failure surfaced by the topic index is a subclass of
``TopicIndexError``. Errors are always raised to the caller; the engine
performs no retries and never swallows a validation failure.

Hierarchy
---------
- ValidationError        malformed record, nothing applied
- NotFoundError          unknown topic id
- InvalidQueryError      malformed pagination parameters
- InternalError          unexpected fault during a build or mutation
- RebuildCancelledError  rebuild aborted, live index untouched
- SourceError            unreadable record source
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple


@dataclass(frozen=True)
class Violation:
    """A single violated validation rule, addressed by dotted field path."""

    path: str
    rule: str
    message: str

    def as_dict(self) -> dict:
        return {"path": self.path, "rule": self.rule, "message": self.message}

    def __str__(self) -> str:
        return f"{self.path}: {self.message} [{self.rule}]"


class TopicIndexError(RuntimeError):
    """Base error for all topic index failures."""


class ValidationError(TopicIndexError):
    """
    Raised when a raw topic record violates the schema.

    Carries every violation found in the first failing rule category.
    """

    def __init__(self, violations: Iterable[Violation]) -> None:
        self.violations: Tuple[Violation, ...] = tuple(violations)
        summary = "; ".join(str(v) for v in self.violations[:5])
        if len(self.violations) > 5:
            summary += f"; ... ({len(self.violations) - 5} more)"
        super().__init__(
            f"Invalid topic record ({len(self.violations)} violation(s)): {summary}"
        )

    @property
    def category(self) -> str:
        return self.violations[0].rule.split(".", 1)[0] if self.violations else ""

    def as_list(self) -> List[dict]:
        return [v.as_dict() for v in self.violations]


class NotFoundError(TopicIndexError, LookupError):
    """Raised when an operation targets a topic id that is not indexed."""

    def __init__(self, topic_id: str) -> None:
        self.topic_id = topic_id
        super().__init__(f"Topic not found: {topic_id!r}")


class InvalidQueryError(TopicIndexError, ValueError):
    """Raised for malformed query parameters (pagination)."""


class InternalError(TopicIndexError):
    """Raised when a build or mutation fails unexpectedly."""


class RebuildCancelledError(TopicIndexError):
    """Raised when a rebuild observes its cancellation signal."""


class SourceError(TopicIndexError):
    """Raised when a record source cannot be read or decoded."""
