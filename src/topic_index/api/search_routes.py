"""
Search Routes

Faceted full-text search over the published topic index. Handlers are
synchronous so FastAPI runs them on its worker threadpool; concurrent
searches never block each other or wait on index mutations.
"""

from typing import Annotated, Dict

from fastapi import APIRouter, Depends, status

from ..engine import TopicIndex
from ..query import SearchQuery, execute
from .dependencies import get_topic_index
from .models import SearchRequest, SearchResponse, SearchResult

router = APIRouter(tags=["search"])


@router.post(
    "/search",
    response_model=SearchResponse,
    summary="Ranked, faceted topic search",
    status_code=status.HTTP_200_OK,
)
def search(
    req: SearchRequest,
    index: Annotated[TopicIndex, Depends(get_topic_index)],
) -> SearchResponse:
    """
    Search topics by free text and facet filters.

    Parameters
    ----------
    req : SearchRequest
        Contains:
        - query: free text; blank means facets only, ordered by id
        - facets: {key: [values]}; OR within a key, AND across keys
        - page / page_size: zero-based offset pagination

    Returns
    -------
    SearchResponse
        One page of results and the total match count.
    """
    # Results and their topic metadata must come from the same snapshot.
    snapshot = index.snapshot
    page = execute(
        snapshot,
        SearchQuery.build(req.query, req.facets, req.page, req.page_size),
    )

    results = []
    for hit in page.hits:
        topic = snapshot.topics[hit.topic_id]
        results.append(
            SearchResult(
                id=topic.id,
                title=topic.title,
                subtitle=topic.subtitle,
                category=topic.category,
                score=hit.score,
                matched_fields=list(hit.matched_fields),
            )
        )

    return SearchResponse(
        results=results,
        total=page.total,
        page=page.page,
        page_size=page.page_size,
    )


@router.get(
    "/facets/{key}",
    response_model=Dict[str, int],
    summary="Topic counts per facet value",
)
def facet_counts(
    key: str,
    index: Annotated[TopicIndex, Depends(get_topic_index)],
) -> Dict[str, int]:
    return index.facet_counts(key)
