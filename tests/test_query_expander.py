"""Tests for deterministic query expansion."""

from veritas.rag.query_expander import QueryExpander, extract_topic


def test_original_question_is_first_variant():
    expander = QueryExpander("Indian law")
    variants = expander.expand("Define adverse possession")

    assert variants[0] == "Define adverse possession"
    assert variants == [
        "Define adverse possession",
        "Define adverse possession in Indian law context",
    ]


def test_what_is_reformulations():
    variants = QueryExpander("Indian law").expand("What is res judicata?")

    assert variants == [
        "What is res judicata?",
        "What is res judicata? in Indian law context",
        "meaning of res judicata?",
        "introduction to res judicata?",
    ]


def test_how_to_and_why_reformulations():
    variants = QueryExpander("Indian law").expand(
        "Why does a plaintiff need to know how to file a caveat"
    )

    assert "reason for does a plaintiff need to know how to file a caveat" in variants
    assert "purpose of does a plaintiff need to know how to file a caveat" in variants
    assert "Why does a plaintiff need to know practice of file a caveat" in variants
    assert "Why does a plaintiff need to know method for file a caveat" in variants


def test_simple_request_adds_topic_variants():
    variants = QueryExpander("Indian law").expand(
        "Explain the doctrine of basic structure in simple words"
    )

    assert variants[1:6] == [
        "introduction to doctrine of basic structure",
        "doctrine of basic structure basics",
        "what is doctrine of basic structure",
        "doctrine of basic structure for beginners",
        "doctrine of basic structure overview",
    ]
    assert variants[6] == (
        "Explain the doctrine of basic structure in simple words in Indian law context"
    )
    assert len(variants) == 7


def test_topic_variants_skipped_when_topic_empty():
    variants = QueryExpander("Indian law").expand("Explain in simple words")

    assert variants == [
        "Explain in simple words",
        "Explain in simple words in Indian law context",
    ]


def test_extract_topic_keeps_words_containing_connectors():
    assert extract_topic("explain the insolvency code") == "insolvency code"


def test_expansion_is_deterministic():
    expander = QueryExpander("Indian law")
    question = "What is the basic overview of why bail is granted?"

    assert expander.expand(question) == expander.expand(question)

