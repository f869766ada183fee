"""Narrowing retrieved chunks to caller-selected documents and categories."""

import logging
from dataclasses import dataclass

from veritas.models import AskOptions, RetrievedChunk
from veritas.rag.interfaces import DocumentMetadataStore

logger = logging.getLogger(__name__)


@dataclass
class ScopedChunks:
    """Chunks that survived scope filtering.

    Attributes:
        chunks: Surviving chunks in ranked order.
        scope: "documents" or "categories" when the caller restricted
            scope, otherwise None.
    """

    chunks: list[RetrievedChunk]
    scope: str | None = None

    @property
    def scoped_empty(self) -> bool:
        return self.scope is not None and not self.chunks


class ScopeFilter:
    def __init__(self, documents: DocumentMetadataStore) -> None:
        self.documents = documents

    def apply(self, chunks: list[RetrievedChunk], options: AskOptions) -> ScopedChunks:
        """Apply the document allow-list, then the category allow-list.

        Args:
            chunks: Ranked chunks from retrieval.
            options: Caller options holding the allow-lists.

        Returns:
            ScopedChunks recording which scope, if any, was requested.
        """
        scope = None

        if options.selected_document_ids:
            scope = "documents"
            allowed = set(options.selected_document_ids)
            chunks = [c for c in chunks if c.document_id in allowed]
            logger.info(f"Filtered to {len(chunks)} chunks from selected documents")

        if options.selected_categories:
            scope = scope or "categories"
            if chunks:
                allowed = self.documents.document_ids_for_categories(
                    options.selected_categories
                )
                chunks = [c for c in chunks if c.document_id in allowed]
                logger.info(
                    f"Filtered to {len(chunks)} chunks from selected categories"
                )

        return ScopedChunks(chunks=chunks, scope=scope)
