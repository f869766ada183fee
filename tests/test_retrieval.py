"""Tests for multi-query retrieval and chunk deduplication."""

from fakes import FakeEmbedder, FakeSearch, make_row
from veritas.models import RetrievedChunk
from veritas.rag.retrieval import RetrievalAggregator, deduplicate_chunks, parse_rows


def test_first_sighting_wins_and_results_sorted():
    search = FakeSearch(
        responses=[
            [make_row("a", similarity=0.4), make_row("b", similarity=0.9)],
            [make_row("a", similarity=0.99)],
        ]
    )
    aggregator = RetrievalAggregator(FakeEmbedder(), search)

    outcome = aggregator.retrieve(["question", "variant"])

    assert [c.chunk_id for c in outcome.chunks] == ["b", "a"]
    assert outcome.chunks[1].similarity == 0.4


def test_uses_fixed_threshold_and_limit_per_variant():
    search = FakeSearch()
    aggregator = RetrievalAggregator(FakeEmbedder(), search, threshold=0.30, limit=12)

    aggregator.retrieve(["one", "two", "three"])

    assert search.search_calls == [(0.30, 12)] * 3


def test_failed_variant_is_skipped():
    search = FakeSearch(
        responses=[[make_row("a")], [], [make_row("c", similarity=0.8)]],
        fail_calls={1},
    )
    aggregator = RetrievalAggregator(FakeEmbedder(tokens_per_call=4), search)

    outcome = aggregator.retrieve(["one", "two", "three"])

    assert [c.chunk_id for c in outcome.chunks] == ["c", "a"]
    assert outcome.failed_variants == 1
    assert outcome.embedding_tokens == 12


def test_failed_embedding_is_skipped_without_tokens():
    embedder = FakeEmbedder(tokens_per_call=3, fail_on={"two"})
    search = FakeSearch(responses=[[make_row("a")], [make_row("b")]])

    outcome = RetrievalAggregator(embedder, search).retrieve(["one", "two", "three"])

    assert outcome.failed_variants == 1
    assert outcome.embedding_tokens == 6
    assert len(search.search_calls) == 2


def test_embedding_tokens_summed_across_variants():
    outcome = RetrievalAggregator(FakeEmbedder(tokens_per_call=7), FakeSearch()).retrieve(
        ["a", "b", "c", "d"]
    )

    assert outcome.embedding_tokens == 28
    assert outcome.chunks == []


def test_missing_similarity_sorts_last_and_ties_keep_order():
    chunks = [
        RetrievedChunk(chunk_id="x", document_id="d", content="x"),
        RetrievedChunk(chunk_id="y", document_id="d", content="y", similarity=0.5),
        RetrievedChunk(chunk_id="z", document_id="d", content="z", similarity=0.5),
    ]

    assert [c.chunk_id for c in deduplicate_chunks(chunks)] == ["y", "z", "x"]


def test_malformed_rows_are_dropped():
    rows = [
        make_row("a"),
        {"id": "broken", "document_id": "doc-1"},
        make_row("b", similarity=1.7),
    ]

    assert [c.chunk_id for c in parse_rows(rows)] == ["a"]


def test_row_aliases_map_to_model_fields():
    chunk = RetrievedChunk.from_row(make_row("a", metadata=None, page_number=3))

    assert chunk.chunk_id == "a"
    assert chunk.provider_name == "Supreme Court"
    assert chunk.metadata == {}
    assert chunk.page_number == 3
