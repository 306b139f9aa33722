"""
Facet Index

Exact-match index of discrete topic attributes (category, tags, code
example language, resource type) to sets of topic ids.

Filtering semantics: values of one key are OR-ed, distinct keys are
AND-ed. An unknown key or value matches nothing.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Mapping, Set, Tuple


class FacetIndex:
    """
    Facet key -> value -> topic ids, with a reverse map for removal.

    Like ``InvertedIndex``, a published instance is read-only; writers work
    on a ``fork``.
    """

    def __init__(self) -> None:
        self._facets: Dict[str, Dict[str, FrozenSet[str]]] = {}
        self._by_topic: Dict[str, FrozenSet[Tuple[str, str]]] = {}

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_facet(self, topic_id: str, key: str, value: str) -> bool:
        """
        Record that ``topic_id`` carries ``key=value``.

        Keys and values must already be normalized. Empty values are
        dropped and reported as not added.
        """
        if not key or not value:
            return False

        values = dict(self._facets.get(key, {}))
        values[value] = values.get(value, frozenset()) | {topic_id}
        self._facets[key] = values

        pairs = self._by_topic.get(topic_id, frozenset())
        self._by_topic[topic_id] = pairs | {(key, value)}
        return True

    def add_all(self, topic_id: str, facets: Mapping[str, Iterable[str]]) -> int:
        added = 0
        for key, values in facets.items():
            for value in values:
                added += self.add_facet(topic_id, key, value)
        return added

    def remove_all(self, topic_id: str) -> int:
        """Remove every facet of ``topic_id``; returns the number removed."""
        pairs = self._by_topic.pop(topic_id, frozenset())

        for key, value in pairs:
            values = dict(self._facets.get(key, {}))
            remaining = values.get(value, frozenset()) - {topic_id}
            if remaining:
                values[value] = remaining
            else:
                values.pop(value, None)

            if values:
                self._facets[key] = values
            else:
                self._facets.pop(key, None)

        return len(pairs)

    def fork(self) -> "FacetIndex":
        clone = FacetIndex()
        clone._facets = dict(self._facets)
        clone._by_topic = dict(self._by_topic)
        return clone

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def filter(self, key: str, value: str) -> Set[str]:
        return set(self._facets.get(key, {}).get(value, ()))

    def filter_many(self, filters: Mapping[str, Iterable[str]]) -> Set[str]:
        """
        Intersect across keys, union within the values of one key.

        Keys whose value list is empty impose no constraint. If every key is
        unconstrained the result is empty; callers decide what "no filter"
        means.
        """
        result: Set[str] = set()
        first = True

        for key, values in filters.items():
            values = list(values)
            if not values:
                continue

            matched: Set[str] = set()
            for value in values:
                matched |= self.filter(key, value)

            if first:
                result, first = matched, False
            else:
                result &= matched

            if not result:
                break

        return result

    def counts(self, key: str) -> Dict[str, int]:
        """Return ``{value: topic count}`` for one key, sorted by value."""
        values = self._facets.get(key, {})
        return {value: len(values[value]) for value in sorted(values)}

    def facets_of(self, topic_id: str) -> List[Tuple[str, str]]:
        return sorted(self._by_topic.get(topic_id, ()))

    def keys(self) -> List[str]:
        return sorted(self._facets)
