"""
Topic Data Models

This module defines the canonical, validated representation of a topic
record and the result types returned by queries.

Each ``ValidatedTopic`` is produced only by the record validator and is the
authoritative schema for:
- Index construction (tokenized prose fields and derived facets)
- Topic lookup through the engine and the HTTP surface
- Serialization back to the corpus's camelCase record shape
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------
# Owned Children
# ---------------------------------------------------------------------

class _Record(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class CodeExample(_Record):
    """
    A code sample owned by exactly one topic.

    ``code`` is opaque: it is checked for presence but never tokenized.
    """

    id: str = ""
    title: str = ""
    description: str = ""
    language: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)


class Resource(_Record):
    """An external learning resource or community discussion link."""

    id: str = ""
    title: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    description: str = ""
    type: str = ""


class QuestionAnswer(_Record):
    id: str = ""
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)


class PracticeProblem(_Record):
    """An external exercise, e.g. a LeetCode problem, linked from a topic."""

    name: str = Field(..., min_length=1)
    link: str = Field(..., min_length=1)
    difficulty: str = ""
    platform: str = ""
    description: str = ""


class PracticeGroup(_Record):
    title: str = ""
    problems: Tuple[PracticeProblem, ...] = ()


# ---------------------------------------------------------------------
# Topic
# ---------------------------------------------------------------------

class ValidatedTopic(_Record):
    """
    A fully validated and normalized topic.

    Optional text fields are always present as ``""`` and collections as
    empty tuples. Facet values (``category``, ``tags``, code languages,
    resource types, practice difficulty and platform) are already
    lower-cased and trimmed.
    """

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    subtitle: str = ""
    summary: str = ""
    analogy: str = ""
    explanation: str = ""
    visual_concept: str = ""
    real_world_use: str = ""
    diagram: str = ""

    key_points: Tuple[str, ...] = ()
    code_examples: Tuple[CodeExample, ...] = ()
    resources: Tuple[Resource, ...] = ()
    questions: Tuple[QuestionAnswer, ...] = ()
    behavioral_questions: Tuple[QuestionAnswer, ...] = ()
    discussions: Tuple[Resource, ...] = ()
    practice_problems: Tuple[PracticeGroup, ...] = ()

    category: str = ""
    tags: Tuple[str, ...] = ()

    def facets(self) -> Dict[str, Tuple[str, ...]]:
        """
        Return the discrete filterable attributes of this topic.

        Values are de-duplicated in first-seen order; empty values are never
        emitted.
        """
        languages = _unique(ex.language for ex in self.code_examples)
        resource_types = _unique(r.type for r in self.resources)
        problems = [p for g in self.practice_problems for p in g.problems]

        return {
            "category": (self.category,) if self.category else (),
            "tags": _unique(self.tags),
            "language": languages,
            "resource_type": resource_types,
            "difficulty": _unique(p.difficulty for p in problems),
            "platform": _unique(p.platform for p in problems),
        }

    def text_fields(self) -> Dict[str, List[str]]:
        """
        Return the prose to index, grouped by ranking field.

        Each field maps to a list of text segments. Segments of one field
        share a position stream, with a gap at every segment boundary.
        """
        questions: List[str] = []
        for qa in self.questions + self.behavioral_questions:
            questions.extend((qa.question, qa.answer))

        examples: List[str] = []
        for ex in self.code_examples:
            examples.extend((ex.title, ex.description))

        resources: List[str] = []
        for res in self.resources + self.discussions:
            resources.extend((res.title, res.description))

        practice: List[str] = []
        for group in self.practice_problems:
            practice.append(group.title)
            practice.extend(f"{p.name} {p.description}" for p in group.problems)

        return {
            "title": [self.title],
            "subtitle": [self.subtitle],
            "summary": [self.summary],
            "key_points": list(self.key_points),
            "explanation": [self.explanation],
            "analogy": [self.analogy],
            "visual_concept": [self.visual_concept],
            "real_world_use": [self.real_world_use],
            "questions": questions,
            "code_examples": examples,
            "resources": resources,
            "practice_problems": practice,
        }

    def to_record(self) -> dict:
        """Serialize back to the camelCase record shape accepted by ingest."""
        return self.model_dump(by_alias=True, mode="json")


def _unique(values) -> Tuple[str, ...]:
    seen: Dict[str, None] = {}
    for v in values:
        if v:
            seen.setdefault(v, None)
    return tuple(seen)


# ---------------------------------------------------------------------
# Query Results
# ---------------------------------------------------------------------

class SearchHit(BaseModel):
    """
    Individual ranked match.

    ``score`` is 0.0 for facet-only queries, which are ordered by id.
    """

    topic_id: str = Field(..., min_length=1)
    score: float = Field(..., ge=0.0)
    matched_fields: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)


class SearchPage(BaseModel):
    """One page of query results plus the total number of matches."""

    hits: Tuple[SearchHit, ...] = ()
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=0)
    page_size: int = Field(..., ge=1)

    model_config = ConfigDict(frozen=True)

    @property
    def topic_ids(self) -> List[str]:
        return [h.topic_id for h in self.hits]

    @property
    def has_more(self) -> bool:
        return (self.page + 1) * self.page_size < self.total


class IndexStats(BaseModel):
    """Index statistics for diagnostics."""

    total_topics: int = Field(..., ge=0)
    total_terms: int = Field(..., ge=0)
    total_postings: int = Field(..., ge=0)
    facet_keys: List[str] = Field(default_factory=list)
    version: int = Field(..., ge=0)
    categories: Dict[str, int] = Field(default_factory=dict)
    last_published: Optional[str] = None
