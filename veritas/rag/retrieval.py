"""Multi-query retrieval with chunk-level deduplication."""

import logging
from dataclasses import dataclass, field

from pydantic import ValidationError

from veritas.models import RetrievedChunk
from veritas.rag.interfaces import EmbeddingProvider, SimilaritySearchService

logger = logging.getLogger(__name__)


@dataclass
class RetrievalOutcome:
    """Ranked chunks plus the embedding tokens spent finding them."""

    chunks: list[RetrievedChunk] = field(default_factory=list)
    embedding_tokens: int = 0
    failed_variants: int = 0


def parse_rows(rows: list[dict]) -> list[RetrievedChunk]:
    """Validate raw search rows, dropping malformed ones."""
    chunks = []
    for row in rows or []:
        try:
            chunks.append(RetrievedChunk.from_row(row))
        except ValidationError as e:
            logger.warning(f"Skipping malformed chunk row: {e}")
    return chunks


def deduplicate_chunks(chunks: list[RetrievedChunk]) -> list[RetrievedChunk]:
    """Keep the first sighting of each chunk id, then rank by similarity.

    The sort is stable, so equally similar chunks keep pool order. Chunks
    without a similarity rank as 0.
    """
    seen: set[str] = set()
    unique = []
    for chunk in chunks:
        if chunk.chunk_id in seen:
            continue
        seen.add(chunk.chunk_id)
        unique.append(chunk)
    return sorted(unique, key=lambda c: c.similarity or 0.0, reverse=True)


class RetrievalAggregator:
    """Runs one similarity search per query variant and merges the results."""

    def __init__(
        self,
        embedder: EmbeddingProvider,
        search_service: SimilaritySearchService,
        threshold: float = 0.30,
        limit: int = 12,
    ) -> None:
        self.embedder = embedder
        self.search_service = search_service
        self.threshold = threshold
        self.limit = limit

    def retrieve(self, variants: list[str]) -> RetrievalOutcome:
        """Search every variant and return deduplicated, ranked chunks.

        A variant whose embedding or search fails is logged and skipped.

        Args:
            variants: Query variants, original question first.

        Returns:
            RetrievalOutcome with chunks sorted by descending similarity.
        """
        outcome = RetrievalOutcome()
        pooled: list[RetrievedChunk] = []

        for variant in variants:
            try:
                embedding = self.embedder.embed(variant)
                outcome.embedding_tokens += embedding.token_count
                rows = self.search_service.search(
                    embedding.vector, threshold=self.threshold, limit=self.limit
                )
            except Exception as e:
                outcome.failed_variants += 1
                logger.warning(f'Search failed for variant "{variant[:50]}": {e}')
                continue

            chunks = parse_rows(rows)
            if chunks:
                logger.info(f'Query "{variant[:50]}..." found {len(chunks)} chunks')
            else:
                logger.warning(f'Query "{variant[:50]}..." found 0 chunks')
            pooled.extend(chunks)

        outcome.chunks = deduplicate_chunks(pooled)
        logger.info(
            f"Found {len(outcome.chunks)} unique chunks across {len(variants)} variants"
        )
        return outcome
