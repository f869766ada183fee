"""Shared pytest fixtures built on the in-memory fakes in ``fakes.py``."""

import pytest

from fakes import (
    DEFAULT_DOCUMENTS,
    FakeDocumentStore,
    FakeEmbedder,
    FakeSearch,
    FakeSink,
    FakeStorage,
    build_pipeline,
    make_settings,
)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def document_store():
    return FakeDocumentStore(DEFAULT_DOCUMENTS)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def make_pipeline(settings, embedder, document_store, storage, sink):
    """Factory building a pipeline from the default fakes plus overrides."""

    def _make(search=None, completion=None, **overrides):
        collaborators = dict(
            settings=settings,
            embedder=embedder,
            documents=document_store,
            storage=storage,
            sink=sink,
        )
        collaborators.update(overrides)
        return build_pipeline(search=search or FakeSearch(), completion=completion, **collaborators)

    return _make
