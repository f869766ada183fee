"""End-to-end tests for QueryPipeline.ask_question with in-memory collaborators."""

import pytest

from fakes import (
    FakeCompletion,
    FakeDocumentStore,
    FakeEmbedder,
    FakeSearch,
    FakeSink,
    FakeStorage,
    DEFAULT_DOCUMENTS,
    build_pipeline,
    make_row,
)
from veritas.errors import ScopedEmptyResult, UnscopedEmptyResult
from veritas.models import AskOptions, Completion
from veritas.rag.validation import TOO_LONG_MESSAGE, TOO_SHORT_MESSAGE

QUESTION = "What does Article 21 of the Constitution protect?"
ANSWER = (
    "Article 21 protects life and personal liberty."
    "---SECTION_SEPARATOR---"
    "Article 21 guarantees that no person shall be deprived of life or personal "
    "liberty except according to procedure established by law [Source 1]."
)


def default_search():
    return FakeSearch(
        responses=[
            [make_row("c1", "doc-1", 0.82), make_row("c2", "doc-2", 0.64)],
            [make_row("c2", "doc-2", 0.71), make_row("c3", "doc-3", 0.55)],
        ]
    )


class TestValidation:
    @pytest.mark.parametrize(
        "question, message",
        [("abc", TOO_SHORT_MESSAGE), ("   ", TOO_SHORT_MESSAGE), ("a" * 5001, TOO_LONG_MESSAGE)],
    )
    def test_rejected_before_any_service_call(self, question, message):
        embedder = FakeEmbedder()
        completion = FakeCompletion({})
        sink = FakeSink()
        pipeline = build_pipeline(embedder=embedder, completion=completion, sink=sink)

        result = pipeline.ask_question(question)

        assert result.success is False
        assert result.message == message
        assert embedder.calls == []
        assert completion.calls == []
        assert sink.entries == []


class TestSuccess:
    def test_answer_summary_and_citations(self):
        search = default_search()
        completion = FakeCompletion({"model-a": ANSWER})
        pipeline = build_pipeline(search=search, completion=completion)

        result = pipeline.ask_question(QUESTION, AskOptions(requester_id="user-7"))

        assert result.success is True
        assert result.summary == "Article 21 protects life and personal liberty."
        assert result.answer.startswith("Article 21 guarantees")
        assert result.model_used == "model-a"
        assert [c.chunk_id for c in result.citations] == ["c1", "c2", "c3"]
        assert result.citations[1].similarity == 0.64
        assert result.reading_time.summary == "< 1 min read"
        assert result.raw_response == ANSWER
        assert result.metadata.chunk_count == 3

    def test_citation_order_matches_prompt_sources(self):
        completion = FakeCompletion({"model-a": ANSWER})
        pipeline = build_pipeline(search=default_search(), completion=completion)

        result = pipeline.ask_question(QUESTION)

        system_prompt = result.debug_prompts.system_prompt
        for number, citation in enumerate(result.citations, start=1):
            block = system_prompt.split(f"[Source {number}]", 1)[1]
            assert f'From "{citation.document_title}"' in block.splitlines()[0]

    def test_citations_carry_signed_urls_and_file_types(self):
        storage = FakeStorage()
        pipeline = build_pipeline(
            search=default_search(),
            completion=FakeCompletion({"model-a": ANSWER}),
            storage=storage,
        )

        result = pipeline.ask_question(QUESTION)

        by_doc = {c.document_id: c for c in result.citations}
        assert by_doc["doc-1"].file_type == "application/pdf"
        assert by_doc["doc-1"].file_url.startswith("https://signed.example/docs/doc-1/")
        assert by_doc["doc-2"].file_type == "text/plain"
        assert by_doc["doc-3"].file_url is None
        assert by_doc["doc-3"].file_type == "text"

    def test_usage_entry_recorded(self):
        sink = FakeSink()
        completion = FakeCompletion(
            {
                "model-a": Completion(
                    content=ANSWER, prompt_tokens=800, completion_tokens=60, total_tokens=860
                )
            }
        )
        pipeline = build_pipeline(
            search=default_search(),
            completion=completion,
            sink=sink,
            embedder=FakeEmbedder(tokens_per_call=7),
        )

        result = pipeline.ask_question(QUESTION, AskOptions(requester_id="user-7"))

        assert result.token_usage.embedding_tokens == 14
        assert result.token_usage.grand_total == 874
        assert result.estimated_cost == pytest.approx(874 / 1_000_000 * 2.0)

        entry = sink.entries[0]
        assert entry.requester_id == "user-7"
        assert entry.model == "model-a"
        assert entry.prompt_tokens == 14
        assert entry.completion_tokens == 60
        assert entry.total_tokens == 74
        assert entry.estimated_cost == pytest.approx(74 / 1_000_000 * 2.0)
        assert entry.metadata["query_text"] == QUESTION
        assert entry.metadata["documents_used"] == [
            "Title of doc-1",
            "Title of doc-2",
            "Title of doc-3",
        ]


class TestFallbackChain:
    def test_third_model_answers_after_two_failures(self):
        completion = FakeCompletion(
            {
                "model-a": RuntimeError("rate limited"),
                "model-b": TimeoutError("timed out"),
                "model-c": ANSWER,
            }
        )
        pipeline = build_pipeline(search=default_search(), completion=completion)

        result = pipeline.ask_question(QUESTION)

        assert result.success is True
        assert result.model_used == "model-c"
        outcomes = [(a.model_id, a.outcome) for a in result.metadata.attempts]
        assert outcomes == [
            ("model-a", "failure"),
            ("model-b", "failure"),
            ("model-c", "success"),
        ]

    def test_all_models_fail(self):
        completion = FakeCompletion(
            {
                "model-a": RuntimeError("rate limited"),
                "model-b": RuntimeError("bad gateway"),
                "model-c": RuntimeError("model overloaded"),
            }
        )
        sink = FakeSink()
        pipeline = build_pipeline(search=default_search(), completion=completion, sink=sink)

        result = pipeline.ask_question(QUESTION)

        assert result.success is False
        assert result.message == "All models failed. Last error: model overloaded"
        assert sink.entries == []

    def test_zero_cost_model(self):
        completion = FakeCompletion({"model-a": RuntimeError("quota"), "model-b": ANSWER})
        pipeline = build_pipeline(search=default_search(), completion=completion)

        result = pipeline.ask_question(QUESTION)

        assert result.model_used == "model-b"
        assert result.estimated_cost == 0


class TestScope:
    def test_selected_documents_with_no_match(self):
        search = default_search()
        completion = FakeCompletion({"model-a": ANSWER})
        pipeline = build_pipeline(search=search, completion=completion)

        result = pipeline.ask_question(
            QUESTION, AskOptions(selected_document_ids=["doc-9"])
        )

        assert result.success is False
        assert result.message == ScopedEmptyResult.DOCUMENTS_MESSAGE
        assert search.recent_calls == []
        assert completion.calls == []

    def test_selected_documents(self):
        pipeline = build_pipeline(
            search=default_search(), completion=FakeCompletion({"model-a": ANSWER})
        )

        result = pipeline.ask_question(
            QUESTION, AskOptions(selected_document_ids=["doc-2"])
        )

        assert result.success is True
        assert [c.chunk_id for c in result.citations] == ["c2"]

    def test_selected_categories(self):
        documents = FakeDocumentStore(
            DEFAULT_DOCUMENTS, categories={"Constitutional Law": ["doc-1", "doc-3"]}
        )
        pipeline = build_pipeline(
            search=default_search(),
            completion=FakeCompletion({"model-a": ANSWER}),
            documents=documents,
        )

        result = pipeline.ask_question(
            QUESTION, AskOptions(selected_categories=["Constitutional Law"])
        )

        assert [c.chunk_id for c in result.citations] == ["c1", "c3"]
        assert documents.category_lookups == [["Constitutional Law"]]

    def test_selected_categories_with_no_match(self):
        documents = FakeDocumentStore(DEFAULT_DOCUMENTS, categories={"Tax": ["doc-8"]})
        search = default_search()
        pipeline = build_pipeline(search=search, documents=documents)

        result = pipeline.ask_question(QUESTION, AskOptions(selected_categories=["Tax"]))

        assert result.success is False
        assert result.message == ScopedEmptyResult.CATEGORIES_MESSAGE
        assert search.recent_calls == []


class TestUnscopedFallback:
    def test_recent_chunks_used_when_retrieval_is_empty(self):
        search = FakeSearch(
            recent=[make_row(f"r{i}", "doc-1", None) for i in range(1, 6)]
        )
        completion = FakeCompletion({"model-a": ANSWER})
        pipeline = build_pipeline(search=search, completion=completion)

        result = pipeline.ask_question(QUESTION)

        assert result.success is True
        assert search.recent_calls == [3]
        assert [c.chunk_id for c in result.citations] == ["r1", "r2", "r3"]

    def test_nothing_available(self):
        pipeline = build_pipeline(search=FakeSearch())

        result = pipeline.ask_question(QUESTION)

        assert result.success is False
        assert result.message == UnscopedEmptyResult.MESSAGE


class TestErrorHandling:
    def test_usage_sink_failure_does_not_fail_query(self):
        pipeline = build_pipeline(
            search=default_search(),
            completion=FakeCompletion({"model-a": ANSWER}),
            sink=FakeSink(fail=True),
        )

        result = pipeline.ask_question(QUESTION)

        assert result.success is True
        assert pipeline.accountant.failed_writes == 1

    def test_unexpected_error_is_reported(self):
        class BrokenStore(FakeDocumentStore):
            def get_documents(self, document_ids):
                raise ConnectionError("metadata store unreachable")

        pipeline = build_pipeline(search=default_search(), documents=BrokenStore())

        result = pipeline.ask_question(QUESTION)

        assert result.success is False
        assert result.message == "An error occurred: metadata store unreachable"

    def test_failed_variants_do_not_fail_query(self):
        search = FakeSearch(
            responses=[[], [make_row("c1", "doc-1", 0.6)]], fail_calls={0}
        )
        pipeline = build_pipeline(
            search=search, completion=FakeCompletion({"model-a": ANSWER})
        )

        result = pipeline.ask_question(QUESTION)

        assert result.success is True
        assert [c.chunk_id for c in result.citations] == ["c1"]


class TestCitationMetadata:
    def test_numeric_chapter_does_not_fail_answer(self, make_pipeline, sink):
        search = FakeSearch(
            responses=[[make_row("c1", "doc-1", 0.8, metadata={"chapter": 3})]]
        )
        pipeline = make_pipeline(search=search, completion=FakeCompletion({"model-a": ANSWER}))

        result = pipeline.ask_question(QUESTION)

        assert result.success is True
        assert result.citations[0].chapter == "3"
        assert len(sink.entries) == 1
