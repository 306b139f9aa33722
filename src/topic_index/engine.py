"""
Topic Index Engine

Public, synchronous facade over the topic knowledge index.

Concurrency Model
-----------------
- Exactly one snapshot is published at any time. Its topics, postings
  and facets never change after publication; forking it only resets the
  writer-side ownership set of its inverted index, which readers never read
- Queries read the published reference once and never take a lock, so
  reads never block on reads or on writers
- ``ingest``, ``delete`` and ``rebuild`` are serialized through a single
  writer lock; each prepares a private snapshot and publishes it with one
  reference assignment
- ``rebuild`` builds its shadow snapshot while readers keep using the old
  one; a cancelled or failed rebuild leaves the live snapshot untouched
- ``submit_search`` runs queries on a shared worker pool
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from threading import RLock
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .builder import IndexBuilder
from .config import settings
from .exceptions import NotFoundError, RebuildCancelledError
from .index.snapshot import IndexSnapshot
from .models import IndexStats, SearchPage, ValidatedTopic
from .query import FacetFilters, SearchQuery, execute
from .tokenizer import Tokenizer

logger = logging.getLogger("topic_index.engine")


class TopicIndex:
    """
    In-memory topic knowledge index with faceted full-text search.

    This class is thread-safe: any number of threads may query while one
    writer at a time mutates.
    """

    def __init__(
        self,
        tokenizer: Optional[Tokenizer] = None,
        field_weights: Optional[Mapping[str, float]] = None,
        query_workers: Optional[int] = None,
    ) -> None:
        """
        Initialize an empty index.

        Parameters
        ----------
        tokenizer : Optional[Tokenizer]
            Tokenizer shared by indexing and querying.
            Defaults to ``Tokenizer.from_settings()``.

        field_weights : Optional[Mapping[str, float]]
            Ranking weight per indexed field. Defaults to
            settings.field_weights.

        query_workers : Optional[int]
            Size of the pool behind ``submit_search``. Defaults to
            settings.query_workers.
        """
        self._builder = IndexBuilder(
            tokenizer or Tokenizer.from_settings(),
            field_weights if field_weights is not None else settings.field_weights,
        )
        self._snapshot: IndexSnapshot = self._builder.empty()
        self._write_lock = RLock()

        self._query_workers = query_workers or settings.query_workers
        self._pool: Optional[ThreadPoolExecutor] = None
        self._pool_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    def _publish(self, snapshot: IndexSnapshot, operation: str) -> None:
        snapshot.version = self._snapshot.version
        snapshot.seal()
        self._snapshot = snapshot
        logger.info(
            "Published index version %d after %s (%d topics)",
            snapshot.version,
            operation,
            len(snapshot),
        )

    def _executor(self) -> ThreadPoolExecutor:
        with self._pool_lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(
                    max_workers=self._query_workers,
                    thread_name_prefix="topic-query",
                )
            return self._pool

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def ingest(self, record: Any, update_only: bool = False) -> str:
        """
        Validate and (re)index one topic record.

        Re-ingesting an existing id replaces that topic entirely.

        Parameters
        ----------
        record : Any
            Raw topic record.

        update_only : bool
            If True, refuse to create a topic that is not already indexed.

        Returns
        -------
        str
            The committed topic id.

        Raises
        ------
        ValidationError
            If the record is malformed; the index is unchanged.
        NotFoundError
            If ``update_only`` is set and the id is unknown.
        InternalError
            On an unexpected indexing failure; the index is unchanged.
        """
        with self._write_lock:
            snapshot, topic = self._builder.upsert(self._snapshot, record, update_only)
            self._publish(snapshot, f"ingest of {topic.id!r}")
            return topic.id

    def delete(self, topic_id: str) -> None:
        """
        Remove a topic with all of its code examples, resources and Q&As.

        Raises
        ------
        NotFoundError
            If the topic is not indexed.
        """
        with self._write_lock:
            snapshot = self._builder.delete(self._snapshot, topic_id)
            self._publish(snapshot, f"delete of {topic_id!r}")

    def rebuild(
        self,
        records: Iterable[Any],
        cancel: Optional[threading.Event] = None,
    ) -> int:
        """
        Replace the whole index with ``records``.

        The new index is built in a shadow snapshot and published in one
        step; queries running meanwhile see the previous index.

        Parameters
        ----------
        records : Iterable[Any]
            The complete, authoritative record set.

        cancel : Optional[threading.Event]
            When set during the build, the shadow snapshot is discarded.

        Returns
        -------
        int
            Number of topics in the published index.

        Raises
        ------
        ValidationError
            If any record is invalid; the live index is unchanged.
        RebuildCancelledError
            If cancelled; the live index is unchanged.
        InternalError
            On an unexpected failure; the live index is unchanged.
        """
        with self._write_lock:
            try:
                shadow = self._builder.build(records, cancel)
            except RebuildCancelledError:
                logger.warning(
                    "Rebuild cancelled; keeping index version %d",
                    self._snapshot.version,
                )
                raise

            self._publish(shadow, "rebuild")
            return len(shadow)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> IndexSnapshot:
        """The currently published snapshot (read-only)."""
        return self._snapshot

    @property
    def version(self) -> int:
        return self._snapshot.version

    def search(
        self,
        free_text: Optional[str] = "",
        facets: Optional[FacetFilters] = None,
        page: int = 0,
        page_size: Optional[int] = None,
    ) -> SearchPage:
        """
        Run a ranked, faceted, paginated query.

        Parameters
        ----------
        free_text : Optional[str]
            Query text. Blank text means facets-only, ordered by topic id.
            Double-quoted segments must match as phrases.

        facets : Optional[Mapping[str, Iterable[str]]]
            ``{key: [values]}``; values of one key are OR-ed, keys are
            AND-ed. Unknown keys match nothing.

        page, page_size : int
            Zero-based offset pagination. ``page_size`` defaults to
            settings.default_page_size.

        Raises
        ------
        InvalidQueryError
            If ``page < 0`` or ``page_size <= 0``.
        """
        if page_size is None:
            page_size = settings.default_page_size
        query = SearchQuery.build(free_text, facets, page, page_size)
        return execute(self._snapshot, query)

    def submit_search(
        self,
        free_text: Optional[str] = "",
        facets: Optional[FacetFilters] = None,
        page: int = 0,
        page_size: Optional[int] = None,
    ) -> "Future[SearchPage]":
        """Schedule ``search`` on the query worker pool."""
        return self._executor().submit(self.search, free_text, facets, page, page_size)

    def get_topic(self, topic_id: str) -> ValidatedTopic:
        topic = self._snapshot.topics.get(topic_id)
        if topic is None:
            raise NotFoundError(topic_id)
        return topic

    def topic_ids(self) -> List[str]:
        return sorted(self._snapshot.topics)

    def facet_counts(self, key: str) -> Dict[str, int]:
        return self._snapshot.facets.counts(key.strip().lower())

    def stats(self) -> IndexStats:
        """
        Return index statistics for diagnostics.
        """
        snapshot = self._snapshot
        text_stats = snapshot.text.stats()
        return IndexStats(
            total_topics=len(snapshot),
            total_terms=text_stats["total_terms"],
            total_postings=text_stats["total_postings"],
            facet_keys=snapshot.facets.keys(),
            version=snapshot.version,
            categories=snapshot.facets.counts("category"),
            last_published=(
                snapshot.published_at.isoformat() if snapshot.published_at else None
            ),
        )

    def __len__(self) -> int:
        return len(self._snapshot)

    def __contains__(self, topic_id: object) -> bool:
        return topic_id in self._snapshot

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Shut down the query worker pool, waiting for running queries."""
        with self._pool_lock:
            if self._pool is not None:
                self._pool.shutdown(wait=True)
                self._pool = None

    def __enter__(self) -> "TopicIndex":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
