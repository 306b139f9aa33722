"""
Topic Knowledge Index

Validates educational topic records and serves faceted, ranked full-text
retrieval over them.
"""

from .engine import TopicIndex
from .exceptions import (
    InternalError,
    InvalidQueryError,
    NotFoundError,
    RebuildCancelledError,
    SourceError,
    TopicIndexError,
    ValidationError,
    Violation,
)
from .models import (
    CodeExample,
    IndexStats,
    PracticeGroup,
    PracticeProblem,
    QuestionAnswer,
    Resource,
    SearchHit,
    SearchPage,
    ValidatedTopic,
)
from .sources import load_records
from .tokenizer import Tokenizer, tokenize
from .validation import check, validate

__version__ = "1.0.0"

__all__ = [
    "TopicIndex",
    "TopicIndexError",
    "ValidationError",
    "Violation",
    "NotFoundError",
    "InvalidQueryError",
    "InternalError",
    "RebuildCancelledError",
    "SourceError",
    "ValidatedTopic",
    "CodeExample",
    "Resource",
    "QuestionAnswer",
    "PracticeGroup",
    "PracticeProblem",
    "SearchHit",
    "SearchPage",
    "IndexStats",
    "Tokenizer",
    "tokenize",
    "validate",
    "check",
    "load_records",
]
