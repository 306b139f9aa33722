"""
API Models

Pydantic request/response models for the HTTP surface of the topic index.

Design Goals
------------
- Strong typing
- Safe defaults (no shared mutable state)
- Clear schema documentation for OpenAPI generation
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config import settings


# ---------------------------------------------------------------------
# Search Models
# ---------------------------------------------------------------------

class SearchRequest(BaseModel):
    """
    Faceted full-text search request.

    Pagination bounds below zero are rejected by the engine, not by the
    schema, so clients get the engine's ``invalid_query`` error.
    """
    query: str = ""
    facets: Dict[str, List[str]] = Field(default_factory=dict)
    page: int = 0
    page_size: int = Field(default=settings.default_page_size, le=settings.max_page_size)

    model_config = ConfigDict(extra="forbid")


class SearchResult(BaseModel):
    """
    Individual search match.
    """
    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    subtitle: str = ""
    category: str = ""
    score: float = Field(..., ge=0.0)
    matched_fields: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class SearchResponse(BaseModel):
    results: List[SearchResult]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=0)
    page_size: int = Field(..., ge=1)

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Mutation Models
# ---------------------------------------------------------------------

class OperationResult(BaseModel):
    """
    Standardized mutation operation result.
    Used for ingest/delete/rebuild endpoints.
    """
    status: Literal["updated", "deleted", "rebuilt"]
    topic_id: Optional[str] = None
    count: Optional[int] = Field(default=None, ge=0)
    version: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid")


class RebuildRequest(BaseModel):
    """
    Complete record set replacing the index. Records stay raw so the
    engine's validator reports violations with record positions.
    """
    records: List[Dict[str, Any]]

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: Literal["ok"]
    topics: int = Field(..., ge=0)
    version: int = Field(..., ge=0)
