"""
Query Planner / Executor

Combines facet filtering with full-text ranking over a single published
snapshot and returns one page of results.

Plan
----
1. Validate pagination (``page >= 0``, ``page_size > 0``)
2. Normalize facet filters; candidates are the facet intersection, or the
   whole topic universe when no facet constrains the query
3. Blank free text: order candidates by topic id
4. Otherwise rank candidates through the inverted index; quoted phrases
   must also occur verbatim
5. Slice the requested page; pages past the end are empty
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Set, Union

from .exceptions import InvalidQueryError
from .index.snapshot import IndexSnapshot
from .models import SearchHit, SearchPage
from .validation import normalize_facet


FacetFilters = Mapping[str, Union[str, Iterable[str]]]


@dataclass(frozen=True)
class SearchQuery:
    free_text: str = ""
    facets: Dict[str, List[str]] = field(default_factory=dict)
    page: int = 0
    page_size: int = 10

    @classmethod
    def build(
        cls,
        free_text: Optional[str] = "",
        facets: Optional[FacetFilters] = None,
        page: int = 0,
        page_size: int = 10,
    ) -> "SearchQuery":
        """
        Validate pagination and normalize facet filters.

        Raises
        ------
        InvalidQueryError
            If ``page`` is negative or ``page_size`` is not positive.
        """
        for name, value in (("page", page), ("page_size", page_size)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidQueryError(f"{name} must be an integer, got {value!r}")
        if page < 0:
            raise InvalidQueryError(f"page must be >= 0, got {page}")
        if page_size <= 0:
            raise InvalidQueryError(f"page_size must be > 0, got {page_size}")

        return cls(
            free_text=free_text or "",
            facets=normalize_filters(facets or {}),
            page=page,
            page_size=page_size,
        )

    @property
    def constrained(self) -> bool:
        return any(self.facets.values())


def normalize_filters(facets: FacetFilters) -> Dict[str, List[str]]:
    """
    Normalize keys and values the same way ingestion normalizes facets.

    A bare string is treated as a single value. Empty values are dropped.
    """
    normalized: Dict[str, List[str]] = {}
    for key, values in facets.items():
        if isinstance(values, str):
            values = [values]
        cleaned = [normalize_facet(v) for v in values]
        normalized[key.strip().lower()] = list(dict.fromkeys(v for v in cleaned if v))
    return normalized


def execute(snapshot: IndexSnapshot, query: SearchQuery) -> SearchPage:
    """Run ``query`` against one snapshot; never touches any other state."""
    candidates: Optional[Set[str]] = None
    if query.constrained:
        candidates = snapshot.facets.filter_many(query.facets)

    if not query.free_text.strip():
        universe = snapshot.topics.keys() if candidates is None else candidates
        ordered = sorted(universe)
        return _page(
            query,
            len(ordered),
            [SearchHit(topic_id=topic_id, score=0.0) for topic_id in _slice(ordered, query)],
        )

    parsed = snapshot.tokenizer.parse_query(query.free_text)
    ranked = snapshot.text.rank(parsed.terms, candidates)

    if parsed.phrases and ranked:
        allowed = {r.topic_id for r in ranked}
        for phrase in parsed.phrases:
            allowed &= snapshot.text.phrase_match(phrase, allowed)
        ranked = [r for r in ranked if r.topic_id in allowed]

    return _page(
        query,
        len(ranked),
        [
            SearchHit(
                topic_id=r.topic_id,
                score=r.score,
                matched_fields=r.matched_fields,
            )
            for r in _slice(ranked, query)
        ],
    )


def _slice(items: List, query: SearchQuery) -> List:
    start = query.page * query.page_size
    return items[start : start + query.page_size]


def _page(query: SearchQuery, total: int, hits: List[SearchHit]) -> SearchPage:
    return SearchPage(
        hits=tuple(hits),
        total=total,
        page=query.page,
        page_size=query.page_size,
    )
