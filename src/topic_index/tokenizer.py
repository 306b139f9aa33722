"""
Tokenizer / Normalizer

Turns free text into a deterministic stream of ``(token, position)`` pairs
used both for indexing topic fields and for parsing query text.

Rules
-----
- Lower-case, Unicode-aware
- Any non-alphanumeric character (punctuation, underscore, whitespace) is a
  boundary; runs of boundaries collapse
- Tokens shorter than ``min_length`` are dropped unless allow-listed
- Stopword removal is opt-in, so short technical phrases ("is a") survive
- Position is the ordinal index of the token among the emitted tokens of
  the text, never a byte offset
- Titles keep every token, so a title made only of short words is still
  searchable
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Tuple

from .config import settings


_WORD_RE = re.compile(r"[^\W_]+", flags=re.UNICODE)
_PHRASE_RE = re.compile(r'"([^"]*)"')

Token = Tuple[str, int]

# unused positions between the segments of one field
SEGMENT_GAP = 1

DEFAULT_STOPWORDS: FrozenSet[str] = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
        "has", "in", "is", "it", "its", "of", "on", "or", "that", "the",
        "this", "to", "was", "were", "will", "with",
    }
)


@dataclass(frozen=True)
class ParsedQuery:
    """
    Free text split into loose terms and quoted phrases.

    ``terms`` holds every distinct token of the query (phrase tokens
    included) in first-seen order; ``phrases`` holds the token sequence of
    each quoted phrase with two or more tokens.
    """

    terms: Tuple[str, ...] = ()
    phrases: Tuple[Tuple[str, ...], ...] = ()

    def __bool__(self) -> bool:
        return bool(self.terms)


@dataclass(frozen=True)
class Tokenizer:
    min_length: int = 2
    allow_list: FrozenSet[str] = frozenset({"os", "io"})
    stopwords: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_settings(cls, remove_stopwords: Optional[bool] = None) -> "Tokenizer":
        """Build a tokenizer from the process-wide configuration."""
        if remove_stopwords is None:
            remove_stopwords = settings.remove_stopwords
        return cls(
            min_length=settings.min_token_length,
            allow_list=frozenset(t.lower() for t in settings.token_allow_list),
            stopwords=DEFAULT_STOPWORDS if remove_stopwords else frozenset(),
        )

    def _keep(self, word: str, keep_all: bool = False) -> bool:
        if keep_all:
            return True
        if word in self.stopwords:
            return False
        return len(word) >= self.min_length or word in self.allow_list

    def words(self, text: Optional[str], keep_all: bool = False) -> List[str]:
        """
        Return the normalized tokens of ``text`` without positions.

        ``keep_all`` skips the length and stopword filters; titles are
        indexed this way so even a one-letter title stays searchable.
        """
        if not text:
            return []
        return [
            w for w in (m.lower() for m in _WORD_RE.findall(text)) if self._keep(w, keep_all)
        ]

    def tokenize(self, text: Optional[str], keep_all: bool = False) -> List[Token]:
        return [(word, pos) for pos, word in enumerate(self.words(text, keep_all))]

    def tokenize_segments(
        self, segments: Iterable[str], keep_all: bool = False
    ) -> List[Token]:
        """
        Tokenize several segments of one field as a single stream.

        Every token of the field gets a distinct ordinal. Consecutive
        segments are separated by one unused position, so a phrase never
        matches across a segment boundary.
        """
        tokens: List[Token] = []
        offset = 0
        for segment in segments:
            words = self.words(segment, keep_all)
            if not words:
                continue
            tokens.extend((word, offset + i) for i, word in enumerate(words))
            offset += len(words) + SEGMENT_GAP
        return tokens

    def parse_query(self, text: Optional[str]) -> ParsedQuery:
        """
        Split ``text`` into terms and quoted phrases.

        When the length and stopword filters leave nothing, the query is
        parsed again unfiltered so it can still hit titles such as "C".
        """
        if not text:
            return ParsedQuery()

        parsed = self._parse(text, keep_all=False)
        if parsed:
            return parsed
        return self._parse(text, keep_all=True)

    def _parse(self, text: str, keep_all: bool) -> ParsedQuery:
        phrases: List[Tuple[str, ...]] = []
        for raw in _PHRASE_RE.findall(text):
            words = tuple(self.words(raw, keep_all))
            if len(words) > 1:
                phrases.append(words)

        terms = tuple(dict.fromkeys(self.words(text.replace('"', " "), keep_all)))
        return ParsedQuery(terms=terms, phrases=tuple(phrases))


_default: Optional[Tokenizer] = None


def default_tokenizer() -> Tokenizer:
    global _default
    if _default is None:
        _default = Tokenizer.from_settings()
    return _default


def tokenize(text: Optional[str]) -> List[Token]:
    """Tokenize ``text`` with the configured default tokenizer."""
    return default_tokenizer().tokenize(text)
