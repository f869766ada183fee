"""RAG query pipeline.

This module provides the QueryPipeline class that answers a question
from the document corpus: query expansion, multi-query retrieval, scope
filtering, grounded generation with model fallback, and citation and
usage accounting.
"""

import logging
import time

from dotenv import load_dotenv

from veritas.config import ModelCatalog, Settings
from veritas.errors import InputValidationError, VeritasError
from veritas.models import (
    AskOptions,
    DebugPrompts,
    EnrichedChunk,
    RAGResult,
    ResultMetadata,
)
from veritas.rag.citations import CitationEnricher
from veritas.rag.context import ContextAssembler
from veritas.rag.fallback import GenerationFallbackChain, GenerationOutcome
from veritas.rag.interfaces import (
    CompletionService,
    DocumentMetadataStore,
    EmbeddingProvider,
    SimilaritySearchService,
    StorageService,
    UsageSink,
)
from veritas.rag.query_expander import QueryExpander
from veritas.rag.retrieval import RetrievalAggregator
from veritas.rag.scope import ScopeFilter
from veritas.rag.usage import UsageAccountant
from veritas.rag.validation import validate_question

logger = logging.getLogger(__name__)


class QueryPipeline:
    """Pipeline for answering questions from the document corpus.

    Every collaborator is injected, so one pipeline instance can serve
    many independent requests; nothing is cached between calls.
    """

    def __init__(
        self,
        settings: Settings,
        catalog: ModelCatalog,
        embedder: EmbeddingProvider,
        search_service: SimilaritySearchService,
        documents: DocumentMetadataStore,
        completion: CompletionService,
        storage: StorageService | None = None,
        usage_sink: UsageSink | None = None,
    ) -> None:
        """Initialize query pipeline.

        Args:
            settings: Application settings (thresholds, limits, domain).
            catalog: Generation model priority and cost table.
            embedder: Embedding provider for query variants.
            search_service: Similarity search over document chunks.
            documents: Document and category metadata store.
            completion: Chat completion service.
            storage: Storage service for signed document URLs.
            usage_sink: Destination for usage records.
        """
        self.settings = settings
        self.catalog = catalog
        self.expander = QueryExpander(settings.domain)
        self.retriever = RetrievalAggregator(
            embedder,
            search_service,
            threshold=settings.match_threshold,
            limit=settings.match_count,
        )
        self.scope_filter = ScopeFilter(documents)
        self.assembler = ContextAssembler(
            documents, search_service, fallback_count=settings.fallback_chunk_count
        )
        self.chain = GenerationFallbackChain(
            completion,
            catalog.priority,
            domain=settings.domain,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        )
        self.citations = CitationEnricher(storage, url_ttl=settings.signed_url_ttl)
        self.accountant = UsageAccountant(catalog, usage_sink)

    @classmethod
    def from_env(cls) -> "QueryPipeline":
        """Build a pipeline wired to watsonx.ai, Milvus, MongoDB and COS."""
        from veritas.rag.cos_client import COSClient
        from veritas.rag.embeddings import EmbeddingClient
        from veritas.rag.generator import GeneratorClient
        from veritas.rag.mongo_store import (
            MongoDocumentStore,
            MongoUsageSink,
            create_mongodb_client,
        )
        from veritas.rag.vectorstore import MilvusStore

        load_dotenv()
        settings = Settings.from_env()
        mongo = create_mongodb_client(settings)
        try:
            storage = COSClient(settings)
        except ValueError as e:
            logger.warning(f"Signed document URLs disabled: {e}")
            storage = None

        return cls(
            settings=settings,
            catalog=ModelCatalog.from_settings(settings),
            embedder=EmbeddingClient(settings),
            search_service=MilvusStore(settings),
            documents=MongoDocumentStore(settings, client=mongo),
            completion=GeneratorClient(settings),
            storage=storage,
            usage_sink=MongoUsageSink(settings, client=mongo),
        )

    def ask_question(
        self, question: str, options: AskOptions | None = None
    ) -> RAGResult:
        """Answer a question, restricted to an optional document scope.

        Never raises: every failure becomes a RAGResult with
        ``success=False`` and a user-facing message.

        Args:
            question: Raw user question.
            options: Requester id and optional document/category allow-lists.

        Returns:
            RAGResult.
        """
        options = options or AskOptions()
        start_time = time.monotonic()
        logger.info(f"User ID: {options.requester_id}")

        try:
            question = validate_question(question)
            variants = self.expander.expand(question)
            logger.info(f"Searching with {len(variants)} query variations...")

            retrieval = self.retriever.retrieve(variants)
            scoped = self.scope_filter.apply(retrieval.chunks, options)
            chunks = self.assembler.assemble(scoped)

            outcome = self.chain.run(question, chunks)
            result = self._build_result(outcome, chunks, retrieval.embedding_tokens)
        except InputValidationError as e:
            logger.info(f"Question rejected: {e}")
            return RAGResult.failure(str(e))
        except VeritasError as e:
            logger.error(f"RAG query failed: {e}")
            return RAGResult.failure(str(e))
        except Exception as e:
            logger.exception(f"RAG query error: {e}")
            return RAGResult.failure(f"An error occurred: {e}")

        self._log_usage(options, question, outcome.model_id, chunks, result)

        duration_ms = (time.monotonic() - start_time) * 1000
        logger.info(f"RAG query completed in {duration_ms:.0f}ms")
        return result

    def _build_result(
        self,
        outcome: GenerationOutcome,
        chunks: list[EnrichedChunk],
        embedding_tokens: int,
    ) -> RAGResult:
        usage = self.accountant.account(
            embedding_tokens,
            outcome.completion,
            system_prompt=outcome.system_prompt,
            user_prompt=outcome.user_prompt,
        )
        return RAGResult(
            success=True,
            answer=outcome.parsed.answer,
            summary=outcome.parsed.summary,
            citations=self.citations.enrich(chunks),
            reading_time=outcome.parsed.reading_time,
            model_used=outcome.model_id,
            token_usage=usage,
            estimated_cost=self.accountant.estimate_cost(
                outcome.model_id, usage.grand_total
            ),
            debug_prompts=DebugPrompts(
                system_prompt=outcome.system_prompt,
                user_prompt=outcome.user_prompt,
            ),
            raw_response=outcome.completion.content,
            metadata=ResultMetadata(
                model=outcome.model_id,
                chunk_count=len(chunks),
                embedding_model=self.catalog.embedding_model,
                total_tokens=usage.total_tokens,
                attempts=outcome.attempts,
            ),
        )

    def _log_usage(
        self,
        options: AskOptions,
        question: str,
        model_id: str,
        chunks: list[EnrichedChunk],
        result: RAGResult,
    ) -> None:
        documents_used = list(dict.fromkeys(c.document_title for c in chunks))
        self.accountant.log_query(
            options.requester_id,
            question,
            model_id,
            result.token_usage,
            result.answer or "",
            documents_used,
        )
