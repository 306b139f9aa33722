"""
Topic Routes

Lookup of single topics plus the admin-only mutation endpoints (ingest,
delete, full rebuild). Engine errors propagate to the global handlers,
which map them onto 4xx/5xx responses.
"""

from typing import Annotated, Any, Dict, List

from fastapi import APIRouter, Body, Depends, status

from ..engine import TopicIndex
from .dependencies import get_topic_index, verify_admin
from .models import OperationResult, RebuildRequest

router = APIRouter(prefix="/topics", tags=["topics"])


@router.get("", response_model=List[str], summary="List indexed topic ids")
def list_topics(
    index: Annotated[TopicIndex, Depends(get_topic_index)],
) -> List[str]:
    return index.topic_ids()


@router.get("/{topic_id}", summary="Fetch a full topic record")
def get_topic(
    topic_id: str,
    index: Annotated[TopicIndex, Depends(get_topic_index)],
) -> Dict[str, Any]:
    return index.get_topic(topic_id).to_record()


@router.put(
    "",
    response_model=OperationResult,
    dependencies=[Depends(verify_admin)],
    summary="Create or replace a topic",
)
def put_topic(
    index: Annotated[TopicIndex, Depends(get_topic_index)],
    record: Dict[str, Any] = Body(...),
    update_only: bool = False,
) -> OperationResult:
    topic_id = index.ingest(record, update_only=update_only)
    return OperationResult(status="updated", topic_id=topic_id, version=index.version)


@router.delete(
    "/{topic_id}",
    response_model=OperationResult,
    dependencies=[Depends(verify_admin)],
    summary="Delete a topic and everything it owns",
)
def delete_topic(
    topic_id: str,
    index: Annotated[TopicIndex, Depends(get_topic_index)],
) -> OperationResult:
    index.delete(topic_id)
    return OperationResult(status="deleted", topic_id=topic_id, version=index.version)


@router.post(
    "/rebuild",
    response_model=OperationResult,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(verify_admin)],
    summary="Replace the whole index",
)
def rebuild(
    req: RebuildRequest,
    index: Annotated[TopicIndex, Depends(get_topic_index)],
) -> OperationResult:
    count = index.rebuild(req.records)
    return OperationResult(status="rebuilt", count=count, version=index.version)
