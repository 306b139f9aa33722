"""
Inverted Text Index

Maps normalized tokens to postings of ``(topic_id, field, position)`` and
ranks topics for a bag of query tokens.

Key Properties
--------------
- Postings are grouped token -> topic -> field -> positions
- ``remove`` drops every posting of a topic through a per-topic term set
- Ranking is TF-IDF style: monotonic in term frequency, decreasing in
  document frequency, weighted by field importance
- Multi-term queries are OR with boosted AND: more distinct matched terms
  always outrank fewer
- ``fork`` returns a copy-on-write clone; the forked instance copies only
  the token entries it mutates, so the source can keep serving readers
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import (
    AbstractSet,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Set,
    Tuple,
)


Positions = Tuple[int, ...]
TopicPostings = Dict[str, Dict[str, Positions]]  # topic_id -> field -> positions


@dataclass(frozen=True)
class ScoredTopic:
    topic_id: str
    score: float
    matched_terms: int
    matched_fields: Tuple[str, ...]


class InvertedIndex:
    """
    Token postings with field-weighted TF-IDF ranking.

    Instances are not internally locked: the engine mutates only private
    forks and publishes them whole, so a published instance is never
    written again.
    """

    def __init__(self, field_weights: Optional[Mapping[str, float]] = None) -> None:
        self._weights: Dict[str, float] = dict(field_weights or {})
        self._postings: Dict[str, TopicPostings] = {}
        self._topic_terms: Dict[str, FrozenSet[str]] = {}
        self._owned: Set[str] = set()

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    def _own(self, token: str) -> TopicPostings:
        """Return a postings map for ``token`` that is private to this instance."""
        if token not in self._owned:
            self._postings[token] = dict(self._postings.get(token, {}))
            self._owned.add(token)
        return self._postings[token]

    def _weight(self, field: str) -> float:
        return self._weights.get(field, 1.0)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def index(self, topic_id: str, field: str, tokens: Iterable[Tuple[str, int]]) -> int:
        """
        Append postings for each ``(token, position)`` of one topic field.

        Returns the number of postings added.
        """
        grouped: Dict[str, List[int]] = defaultdict(list)
        for token, position in tokens:
            grouped[token].append(position)

        for token, positions in grouped.items():
            postings = self._own(token)
            fields = dict(postings.get(topic_id, {}))
            fields[field] = fields.get(field, ()) + tuple(positions)
            postings[topic_id] = fields

        previous = self._topic_terms.get(topic_id, frozenset())
        self._topic_terms[topic_id] = previous | frozenset(grouped)

        return sum(len(p) for p in grouped.values())

    def remove(self, topic_id: str) -> bool:
        """
        Delete all postings of ``topic_id`` across every field.

        Returns False if the topic had never been indexed.
        """
        terms = self._topic_terms.pop(topic_id, None)
        if terms is None:
            return False

        for token in terms:
            postings = self._own(token)
            postings.pop(topic_id, None)
            if not postings:
                del self._postings[token]
                self._owned.discard(token)

        return True

    def fork(self) -> "InvertedIndex":
        """
        Return a copy-on-write clone.

        Both instances share every postings map after the fork. The clone
        starts with an empty ownership set, and so does the source, since a
        map it owned is now visible to the clone. The ownership set is writer
        bookkeeping only; queries never consult it, so resetting it leaves a
        published source unchanged for readers.
        """
        clone = InvertedIndex(self._weights)
        clone._postings = dict(self._postings)
        clone._topic_terms = dict(self._topic_terms)
        # maps owned until now are shared with the clone
        self._owned = set()
        return clone

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def rank(
        self,
        query_tokens: Sequence[str],
        candidates: Optional[AbstractSet[str]] = None,
    ) -> List[ScoredTopic]:
        """
        Rank topics matching at least one query token.

        Parameters
        ----------
        query_tokens : Sequence[str]
            Normalized query tokens. Duplicates are counted once.

        candidates : Optional[AbstractSet[str]]
            If given, topics outside this set are never scored.

        Returns
        -------
        List[ScoredTopic]
            Ordered by matched term count (desc), score (desc), topic id.
        """
        terms = list(dict.fromkeys(query_tokens))
        if not terms:
            return []

        total_docs = len(self._topic_terms)
        matched: Dict[str, int] = defaultdict(int)
        scores: Dict[str, float] = defaultdict(float)
        fields_hit: Dict[str, Set[str]] = defaultdict(set)

        for term in terms:
            postings = self._postings.get(term)
            if not postings:
                continue

            idf = math.log(1.0 + total_docs / len(postings))

            for topic_id, fields in postings.items():
                if candidates is not None and topic_id not in candidates:
                    continue

                tf_score = sum(
                    self._weight(field) * (1.0 + math.log(len(positions)))
                    for field, positions in fields.items()
                )
                matched[topic_id] += 1
                scores[topic_id] += tf_score * idf
                fields_hit[topic_id].update(fields)

        ranked = [
            ScoredTopic(
                topic_id=topic_id,
                score=scores[topic_id],
                matched_terms=count,
                matched_fields=tuple(sorted(fields_hit[topic_id])),
            )
            for topic_id, count in matched.items()
        ]
        ranked.sort(key=lambda r: (-r.matched_terms, -r.score, r.topic_id))
        return ranked

    def search(self, query_tokens: Sequence[str]) -> List[Tuple[str, float]]:
        """Return ranked ``(topic_id, score)`` pairs; empty query -> empty list."""
        return [(r.topic_id, r.score) for r in self.rank(query_tokens)]

    def phrase_match(
        self,
        phrase: Sequence[str],
        candidates: Optional[AbstractSet[str]] = None,
    ) -> Set[str]:
        """
        Return topics where ``phrase`` occurs at consecutive positions of a
        single field.
        """
        if not phrase:
            return set()

        token_postings = [self._postings.get(token) for token in phrase]
        if any(not p for p in token_postings):
            return set()

        topics = set(token_postings[0])
        for postings in token_postings[1:]:
            topics.intersection_update(postings)
        if candidates is not None:
            topics.intersection_update(candidates)

        found: Set[str] = set()
        for topic_id in topics:
            first = token_postings[0][topic_id]
            for field, starts in first.items():
                following = []
                for postings in token_postings[1:]:
                    following.append(set(postings[topic_id].get(field, ())))
                if any(
                    all(start + offset + 1 in positions
                        for offset, positions in enumerate(following))
                    for start in starts
                ):
                    found.add(topic_id)
                    break

        return found

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def postings(self, topic_id: str) -> List[Tuple[str, str, int]]:
        """Return the sorted ``(token, field, position)`` postings of a topic."""
        entries: List[Tuple[str, str, int]] = []
        for token in self._topic_terms.get(topic_id, ()):
            for field, positions in self._postings[token][topic_id].items():
                entries.extend((token, field, p) for p in positions)
        return sorted(entries)

    def document_frequency(self, token: str) -> int:
        return len(self._postings.get(token, {}))

    def topic_ids(self) -> Set[str]:
        return set(self._topic_terms)

    def __contains__(self, topic_id: object) -> bool:
        return topic_id in self._topic_terms

    def __len__(self) -> int:
        return len(self._topic_terms)

    def stats(self) -> dict:
        return {
            "total_terms": len(self._postings),
            "total_postings": sum(
                len(positions)
                for postings in self._postings.values()
                for fields in postings.values()
                for positions in fields.values()
            ),
        }
