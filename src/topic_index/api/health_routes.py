from typing import Annotated

from fastapi import APIRouter, Depends

from ..engine import TopicIndex
from .dependencies import get_topic_index
from .models import HealthResponse

router = APIRouter(tags=["health"])

@router.get("/health", response_model=HealthResponse)
def health(index: Annotated[TopicIndex, Depends(get_topic_index)]):
    return {"status": "ok", "topics": len(index), "version": index.version}
