"""
Index Builder / Updater

Orchestrates validation -> tokenization -> index mutation. The builder
never touches a published snapshot: a full rebuild fills a fresh shadow
snapshot, and single-topic updates work on a fork of the live one. The
caller publishes the returned snapshot.

Any unexpected failure while building is wrapped in ``InternalError`` and
the partially built snapshot is simply dropped.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .exceptions import (
    InternalError,
    NotFoundError,
    RebuildCancelledError,
    TopicIndexError,
    ValidationError,
    Violation,
)
from .index.snapshot import IndexSnapshot
from .models import ValidatedTopic
from .tokenizer import Tokenizer
from .validation import prefix_violations, validate

logger = logging.getLogger("topic_index.builder")


@contextmanager
def _guard(operation: str) -> Iterator[None]:
    try:
        yield
    except TopicIndexError:
        raise
    except Exception as exc:
        logger.error(
            "%s failed unexpectedly (%s): %s",
            operation,
            type(exc).__name__,
            exc,
        )
        raise InternalError(
            f"{operation} failed: {type(exc).__name__}"
        ) from exc


def _check_cancel(cancel: Optional[threading.Event], stage: str) -> None:
    if cancel is not None and cancel.is_set():
        raise RebuildCancelledError(f"Rebuild cancelled during {stage}")


class IndexBuilder:
    """Produces snapshots; holds no mutable state of its own."""

    def __init__(
        self,
        tokenizer: Tokenizer,
        field_weights: Optional[Mapping[str, float]] = None,
    ) -> None:
        self.tokenizer = tokenizer
        self.field_weights = dict(field_weights or {})

    def empty(self) -> IndexSnapshot:
        return IndexSnapshot(self.tokenizer, self.field_weights)

    # ------------------------------------------------------------------
    # Full rebuild
    # ------------------------------------------------------------------

    def validate_all(
        self,
        records: Iterable[Any],
        cancel: Optional[threading.Event] = None,
    ) -> List[ValidatedTopic]:
        """
        Validate a batch of records.

        Returns the topics in first-seen id order; a later record with the
        same id replaces the earlier one.

        Raises
        ------
        ValidationError
            With the violations of every invalid record, addressed as
            ``[i].<path>``.
        """
        topics: Dict[str, ValidatedTopic] = {}
        violations: List[Violation] = []

        for i, record in enumerate(records):
            _check_cancel(cancel, "validation")
            try:
                topic = validate(record)
            except ValidationError as exc:
                violations.extend(prefix_violations(f"[{i}]", exc.violations))
                continue
            topics[topic.id] = topic

        if violations:
            raise ValidationError(violations)

        return list(topics.values())

    def build(
        self,
        records: Iterable[Any],
        cancel: Optional[threading.Event] = None,
    ) -> IndexSnapshot:
        """
        Build a shadow snapshot holding exactly ``records``.

        Raises
        ------
        ValidationError
            If any record is invalid; nothing is built.
        RebuildCancelledError
            If ``cancel`` is set before the build completes.
        InternalError
            On any unexpected failure.
        """
        with _guard("Rebuild"):
            topics = self.validate_all(records, cancel)

            shadow = self.empty()
            for topic in topics:
                _check_cancel(cancel, "indexing")
                shadow.put(topic)

            _check_cancel(cancel, "indexing")
            return shadow

    # ------------------------------------------------------------------
    # Incremental updates
    # ------------------------------------------------------------------

    def upsert(
        self,
        live: IndexSnapshot,
        record: Any,
        update_only: bool = False,
    ) -> Tuple[IndexSnapshot, ValidatedTopic]:
        """
        Return a fork of ``live`` with ``record`` (re)indexed.

        Raises
        ------
        ValidationError
            If the record is invalid.
        NotFoundError
            If ``update_only`` is set and the id is not indexed.
        """
        topic = validate(record)

        if update_only and topic.id not in live:
            raise NotFoundError(topic.id)

        with _guard(f"Upsert of {topic.id!r}"):
            working = live.fork()
            working.put(topic)
            return working, topic

    def delete(self, live: IndexSnapshot, topic_id: str) -> IndexSnapshot:
        """
        Return a fork of ``live`` without ``topic_id``.

        Raises
        ------
        NotFoundError
            If the topic is not indexed.
        """
        if topic_id not in live:
            raise NotFoundError(topic_id)

        with _guard(f"Delete of {topic_id!r}"):
            working = live.fork()
            working.remove(topic_id)
            return working
