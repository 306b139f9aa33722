"""
Index Package

In-memory text and facet indexes and the snapshot that publishes them as
one consistent unit.
"""

from .facets import FacetIndex
from .inverted import InvertedIndex, ScoredTopic
from .snapshot import IndexSnapshot

__all__ = [
    "FacetIndex",
    "InvertedIndex",
    "ScoredTopic",
    "IndexSnapshot",
]
