"""
Index Snapshot

A snapshot bundles the committed topics with their inverted and facet
indexes. It is the unit the engine publishes: readers hold one snapshot
reference for the whole of a query, writers fork the live snapshot, mutate
the fork privately, and publish it by swapping the reference.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Mapping, Optional

from ..models import ValidatedTopic
from ..tokenizer import Tokenizer
from .facets import FacetIndex
from .inverted import InvertedIndex


class IndexSnapshot:
    def __init__(
        self,
        tokenizer: Tokenizer,
        field_weights: Optional[Mapping[str, float]] = None,
    ) -> None:
        self.tokenizer = tokenizer
        self.topics: Dict[str, ValidatedTopic] = {}
        self.text = InvertedIndex(field_weights)
        self.facets = FacetIndex()
        self.version = 0
        self.published_at: Optional[datetime] = None

    def fork(self) -> "IndexSnapshot":
        clone = IndexSnapshot.__new__(IndexSnapshot)
        clone.tokenizer = self.tokenizer
        clone.topics = dict(self.topics)
        clone.text = self.text.fork()
        clone.facets = self.facets.fork()
        clone.version = self.version
        clone.published_at = None
        return clone

    def put(self, topic: ValidatedTopic) -> None:
        """Index ``topic``, replacing any prior version with the same id."""
        self.remove(topic.id)

        for field, segments in topic.text_fields().items():
            tokens = self.tokenizer.tokenize_segments(segments, keep_all=field == "title")
            self.text.index(topic.id, field, tokens)

        self.facets.add_all(topic.id, topic.facets())
        self.topics[topic.id] = topic

    def remove(self, topic_id: str) -> bool:
        existed = self.topics.pop(topic_id, None) is not None
        self.text.remove(topic_id)
        self.facets.remove_all(topic_id)
        return existed

    def seal(self) -> "IndexSnapshot":
        """Stamp the snapshot as the next published version."""
        self.version += 1
        self.published_at = datetime.now(timezone.utc)
        return self

    def __contains__(self, topic_id: object) -> bool:
        return topic_id in self.topics

    def __len__(self) -> int:
        return len(self.topics)
