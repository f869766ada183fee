"""Citation records for the passages an answer was grounded on."""

import logging

from veritas.models import Citation, EnrichedChunk
from veritas.rag.interfaces import StorageService

logger = logging.getLogger(__name__)

QUOTE_LENGTH = 200
PDF_MIME_TYPE = "application/pdf"


def make_quote(content: str) -> str:
    if len(content) > QUOTE_LENGTH:
        return content[:QUOTE_LENGTH] + "..."
    return content


def normalize_file_type(file_type: str | None, file_path: str | None) -> str:
    """Return ``application/pdf`` for PDFs, else the declared type or ``text``."""
    declared = file_type or "text"
    is_pdf = declared.lower() in {"pdf", PDF_MIME_TYPE} or (
        bool(file_path) and file_path.lower().endswith(".pdf")
    )
    return PDF_MIME_TYPE if is_pdf else declared


def _chapter(metadata: dict) -> str | None:
    chapter = metadata.get("chapter")
    return str(chapter) if chapter is not None else None


class CitationEnricher:
    def __init__(self, storage: StorageService | None, url_ttl: int = 3600) -> None:
        self.storage = storage
        self.url_ttl = url_ttl

    def _signed_url(self, file_path: str | None) -> str | None:
        if not file_path or self.storage is None:
            return None
        try:
            return self.storage.sign(file_path, self.url_ttl) or None
        except Exception as e:
            logger.warning(f"Failed to sign URL for {file_path}: {e}")
            return None

    def enrich(self, chunks: list[EnrichedChunk]) -> list[Citation]:
        """Build one citation per prompt passage, in prompt order.

        Citation ``i`` corresponds to ``[Source i+1]`` in the prompt. A
        passage whose URL cannot be signed is still cited, without a URL.
        """
        citations = []
        for index, chunk in enumerate(chunks):
            citations.append(
                Citation(
                    document_id=chunk.document_id,
                    document_title=chunk.document_title,
                    provider_name=chunk.provider_name,
                    page_number=chunk.page_number,
                    chunk_id=chunk.chunk_id,
                    quote=make_quote(chunk.content),
                    full_content=chunk.content,
                    similarity=chunk.similarity,
                    position_in_document=(
                        chunk.position if chunk.position is not None else index
                    ),
                    chapter=_chapter(chunk.metadata),
                    media_reference=chunk.media_reference,
                    start_timestamp=chunk.start_timestamp,
                    end_timestamp=chunk.end_timestamp,
                    file_url=self._signed_url(chunk.file_path),
                    file_type=normalize_file_type(chunk.file_type, chunk.file_path),
                    file_path=chunk.file_path,
                )
            )
        return citations
