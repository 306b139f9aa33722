"""
Inverted Text Index Tests

Covers postings maintenance, TF-IDF style ranking properties, boosted-AND
ordering, phrase matching and copy-on-write forking.
"""

import pytest

from topic_index.config import DEFAULT_FIELD_WEIGHTS
from topic_index.index.inverted import InvertedIndex
from topic_index.tokenizer import Tokenizer


_tokenizer = Tokenizer()


def add(idx, topic_id, field, text):
    idx.index(topic_id, field, _tokenizer.tokenize(text))


@pytest.fixture
def text_index():
    return InvertedIndex(DEFAULT_FIELD_WEIGHTS)


class TestPostings:

    def test_index_and_remove(self, text_index):
        add(text_index, "a", "title", "hash index")
        add(text_index, "a", "summary", "hash buckets")

        assert text_index.postings("a") == [
            ("buckets", "summary", 1),
            ("hash", "summary", 0),
            ("hash", "title", 0),
            ("index", "title", 1),
        ]

        assert text_index.remove("a") is True
        assert text_index.postings("a") == []
        assert text_index.document_frequency("hash") == 0
        assert "a" not in text_index

    def test_remove_unknown_topic(self, text_index):
        assert text_index.remove("missing") is False

    def test_remove_then_index_is_idempotent(self, text_index):
        add(text_index, "a", "title", "hash index")
        before = text_index.postings("a")

        text_index.remove("a")
        add(text_index, "a", "title", "hash index")

        assert text_index.postings("a") == before

    def test_remove_leaves_other_topics(self, text_index):
        add(text_index, "a", "title", "hash index")
        add(text_index, "b", "title", "hash join")

        text_index.remove("a")

        assert [t for t, _ in text_index.search(["hash"])] == ["b"]
        assert text_index.document_frequency("hash") == 1

    def test_topic_without_tokens_counts_as_document(self, text_index):
        add(text_index, "empty", "title", "!")

        assert "empty" in text_index
        assert len(text_index) == 1


class TestRanking:

    def test_empty_query_returns_nothing(self, text_index):
        add(text_index, "a", "title", "hash index")

        assert text_index.search([]) == []

    def test_no_match_excluded(self, text_index):
        add(text_index, "a", "title", "hash index")

        assert text_index.search(["btree"]) == []

    def test_monotonic_in_term_frequency(self, text_index):
        add(text_index, "once", "explanation", "cache miss")
        add(text_index, "thrice", "explanation", "cache cache cache miss")

        ranked = dict(text_index.search(["cache"]))

        assert ranked["thrice"] > ranked["once"]

    def test_rarer_terms_weigh_more(self, text_index):
        add(text_index, "a", "explanation", "common rare")
        add(text_index, "b", "explanation", "common")
        add(text_index, "c", "explanation", "common")

        scores = {r.topic_id: r.score for r in text_index.rank(["common", "rare"])}
        common_only = dict(text_index.search(["common"]))

        # "rare" (df=1) adds more to a than "common" (df=3) gives anyone
        assert scores["a"] - common_only["a"] > common_only["b"]

    def test_title_outranks_explanation(self, text_index):
        add(text_index, "in-title", "title", "semaphore")
        add(text_index, "in-body", "explanation", "semaphore")

        assert [t for t, _ in text_index.search(["semaphore"])] == ["in-title", "in-body"]

    def test_summary_outranks_questions(self, text_index):
        add(text_index, "in-summary", "summary", "paging")
        add(text_index, "in-questions", "questions", "paging")

        assert text_index.search(["paging"])[0][0] == "in-summary"

    def test_all_terms_rank_above_subset(self, text_index):
        # strong partial match: one term repeated in the title
        add(text_index, "partial", "title", "mutex mutex mutex mutex")
        add(text_index, "full", "explanation", "mutex semaphore")

        ranked = text_index.rank(["mutex", "semaphore"])

        assert [r.topic_id for r in ranked] == ["full", "partial"]
        assert ranked[0].matched_terms == 2
        assert ranked[1].matched_terms == 1
        assert ranked[1].score > ranked[0].score

    def test_duplicate_query_terms_count_once(self, text_index):
        add(text_index, "a", "title", "mutex")

        assert text_index.search(["mutex", "mutex"]) == text_index.search(["mutex"])

    def test_ties_broken_by_topic_id(self, text_index):
        add(text_index, "b", "title", "tlb")
        add(text_index, "a", "title", "tlb")

        assert [t for t, _ in text_index.search(["tlb"])] == ["a", "b"]

    def test_candidates_restrict_scoring(self, text_index):
        add(text_index, "a", "title", "tlb")
        add(text_index, "b", "title", "tlb")

        ranked = text_index.rank(["tlb"], candidates={"b"})

        assert [r.topic_id for r in ranked] == ["b"]

    def test_matched_fields_reported(self, text_index):
        add(text_index, "a", "title", "deadlock")
        add(text_index, "a", "questions", "what causes a deadlock")

        assert text_index.rank(["deadlock"])[0].matched_fields == ("questions", "title")


class TestPhrases:

    def test_consecutive_positions_in_one_field(self, text_index):
        add(text_index, "a", "summary", "a hash index speeds lookups")
        add(text_index, "b", "summary", "index hash tables")
        add(text_index, "c", "title", "hash")
        add(text_index, "c", "summary", "index")

        assert text_index.phrase_match(["hash", "index"]) == {"a"}

    def test_phrase_with_unknown_token(self, text_index):
        add(text_index, "a", "summary", "hash index")

        assert text_index.phrase_match(["hash", "missing"]) == set()
        assert text_index.phrase_match([]) == set()


class TestFork:

    def test_fork_isolates_mutations(self, text_index):
        add(text_index, "a", "title", "hash index")

        fork = text_index.fork()
        add(fork, "b", "title", "hash")
        fork.remove("a")

        assert text_index.postings("a") == [("hash", "title", 0), ("index", "title", 1)]
        assert text_index.document_frequency("hash") == 1
        assert "b" not in text_index

        assert fork.postings("a") == []
        assert fork.postings("b") == [("hash", "title", 0)]

    def test_source_writes_after_fork_do_not_leak(self, text_index):
        add(text_index, "a", "title", "hash")
        fork = text_index.fork()

        add(text_index, "z", "title", "hash")

        assert fork.document_frequency("hash") == 1
        assert text_index.document_frequency("hash") == 2

    def test_fork_leaves_source_reads_unchanged(self, text_index):
        add(text_index, "a", "title", "hash index")
        add(text_index, "b", "summary", "hash")
        postings = {t: text_index.postings(t) for t in ("a", "b")}
        ranked = text_index.rank(["hash", "index"])

        fork = text_index.fork()
        fork.remove("a")
        add(fork, "c", "title", "index")

        assert {t: text_index.postings(t) for t in ("a", "b")} == postings
        assert text_index.rank(["hash", "index"]) == ranked


def test_stats(text_index):
    add(text_index, "a", "title", "hash hash index")

    assert text_index.stats() == {"total_terms": 2, "total_postings": 3}
