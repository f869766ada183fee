"""Collaborator interfaces consumed by the query pipeline.

Concrete adapters (watsonx.ai, Milvus, MongoDB, Cloud Object Storage)
implement these; tests substitute in-memory versions.
"""

from abc import ABC, abstractmethod

from veritas.models import Completion, DocumentRecord, EmbeddingResult, UsageEntry


class EmbeddingProvider(ABC):
    @abstractmethod
    def embed(self, text: str) -> EmbeddingResult:
        """Embed a single query string."""


class SimilaritySearchService(ABC):
    @abstractmethod
    def search(
        self, query_vector: list[float], threshold: float, limit: int
    ) -> list[dict]:
        """Return chunk rows at or above ``threshold``, best match first."""

    @abstractmethod
    def recent_chunks(self, limit: int) -> list[dict]:
        """Return the most recently ingested chunk rows, unfiltered."""


class DocumentMetadataStore(ABC):
    @abstractmethod
    def get_documents(self, document_ids: list[str]) -> list[DocumentRecord]:
        """Look up document metadata by id."""

    @abstractmethod
    def document_ids_for_categories(self, category_names: list[str]) -> set[str]:
        """Resolve category names to the ids of their member documents."""


class StorageService(ABC):
    @abstractmethod
    def sign(self, file_path: str, ttl_seconds: int) -> str:
        """Return a time-limited URL for a stored file."""


class CompletionService(ABC):
    @abstractmethod
    def complete(
        self,
        model_id: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        """Run one chat completion; raise on any failure."""


class UsageSink(ABC):
    @abstractmethod
    def record(self, entry: UsageEntry) -> bool:
        """Persist a usage entry; return False or raise on failure."""
