"""Joining chunks with document metadata, with a last-resort fallback."""

import logging

from veritas.errors import ScopedEmptyResult, UnscopedEmptyResult
from veritas.models import EnrichedChunk, RetrievedChunk
from veritas.rag.interfaces import DocumentMetadataStore, SimilaritySearchService
from veritas.rag.retrieval import parse_rows
from veritas.rag.scope import ScopedChunks

logger = logging.getLogger(__name__)


class ContextAssembler:
    """Turns scoped chunks into enriched prompt passages."""

    def __init__(
        self,
        documents: DocumentMetadataStore,
        search_service: SimilaritySearchService,
        fallback_count: int = 3,
    ) -> None:
        self.documents = documents
        self.search_service = search_service
        self.fallback_count = fallback_count

    def enrich(self, chunks: list[RetrievedChunk]) -> list[EnrichedChunk]:
        """Attach file path, file type and missing titles from document metadata."""
        if not chunks:
            return []
        document_ids = list(dict.fromkeys(c.document_id for c in chunks))
        records = {d.id: d for d in self.documents.get_documents(document_ids)}

        enriched = []
        for chunk in chunks:
            data = chunk.model_dump()
            record = records.get(chunk.document_id)
            if record is not None:
                data["file_path"] = record.file_path
                data["file_type"] = record.file_type
                if not data["document_title"]:
                    data["document_title"] = record.title
            enriched.append(EnrichedChunk(**data))
        return enriched

    def assemble(self, scoped: ScopedChunks) -> list[EnrichedChunk]:
        """Build the passage list used for the prompt.

        When nothing survives and the caller requested a scope, the query
        fails rather than answering from unrelated documents. Without a
        scope, a few recent chunks are used instead.

        Args:
            scoped: Output of the scope filter.

        Returns:
            Non-empty list of enriched chunks.

        Raises:
            ScopedEmptyResult: Scope requested and no chunks survived.
            UnscopedEmptyResult: No scope, no chunks, and no fallback chunks.
        """
        enriched = self.enrich(scoped.chunks)
        if enriched:
            return enriched

        if scoped.scope is not None:
            raise ScopedEmptyResult(scoped.scope)

        logger.info(f"No chunks retrieved, loading {self.fallback_count} recent chunks")
        fallback = parse_rows(self.search_service.recent_chunks(self.fallback_count))
        enriched = self.enrich(fallback[: self.fallback_count])
        if not enriched:
            raise UnscopedEmptyResult()
        return enriched
