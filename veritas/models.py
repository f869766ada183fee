"""Data models for the RAG query pipeline.

This module defines Pydantic models for retrieved chunks, generation
attempts, citations, usage accounting and the final query result.
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class RetrievedChunk(BaseModel):
    """Passage returned by the similarity search service.

    Attributes:
        chunk_id: Unique chunk identifier.
        document_id: Document identifier this chunk belongs to.
        document_title: Title of the source document.
        provider_name: Author or category label of the source document.
        content: Chunk text content.
        similarity: Similarity to the query variant that retrieved it.
        page_number: Page number in the source document.
        position: Order of the chunk within its document.
        metadata: Free-form chunk metadata (chapter and similar).
        media_reference: Video or media identifier for transcript chunks.
        start_timestamp: Media start offset in seconds.
        end_timestamp: Media end offset in seconds.
    """

    chunk_id: str
    document_id: str
    document_title: str = ""
    provider_name: str = ""
    content: str
    similarity: float | None = Field(default=None, ge=0.0, le=1.0)
    page_number: int | None = None
    position: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    media_reference: str | None = None
    start_timestamp: float | None = None
    end_timestamp: float | None = None

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata_or_empty(cls, value: Any) -> Any:
        return value if value is not None else {}

    @classmethod
    def from_row(cls, row: dict) -> "RetrievedChunk":
        """Validate a raw search row.

        Accepts the column names used by the search service (``id``,
        ``master_name``) as well as the model field names.

        Args:
            row: Row mapping returned by the search service.

        Returns:
            Validated chunk.

        Raises:
            pydantic.ValidationError: If required fields are missing.
        """
        data = dict(row)
        if "chunk_id" not in data and "id" in data:
            data["chunk_id"] = data.pop("id")
        if "provider_name" not in data and "master_name" in data:
            data["provider_name"] = data.pop("master_name")
        return cls.model_validate(data)


class EnrichedChunk(RetrievedChunk):
    """Retrieved chunk joined with its document's storage metadata."""

    file_path: str | None = None
    file_type: str | None = None


class DocumentRecord(BaseModel):
    """Document-level metadata from the metadata store."""

    id: str
    title: str = ""
    file_path: str | None = None
    file_type: str | None = None


class EmbeddingResult(BaseModel):
    vector: list[float]
    token_count: int = 0


class Completion(BaseModel):
    """Completion service response.

    Token counts are None when the service did not report them.
    """

    content: str
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None


class ModelAttempt(BaseModel):
    """One entry in the generation fallback chain's attempt log."""

    model_id: str
    outcome: Literal["success", "failure"]
    error: str | None = None


class ReadingTime(BaseModel):
    summary: str
    detail: str


class ParsedResponse(BaseModel):
    summary: str
    answer: str
    reading_time: ReadingTime


class TokenUsage(BaseModel):
    """Token accounting for a single query.

    Attributes:
        embedding_tokens: Tokens consumed embedding every query variant.
        prompt_tokens: Completion prompt tokens.
        completion_tokens: Completion output tokens.
        total_tokens: Completion prompt plus output tokens.
        grand_total: Embedding plus completion tokens.
    """

    embedding_tokens: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    grand_total: int = 0


class Citation(BaseModel):
    """User-facing source reference for one prompt passage."""

    document_id: str
    document_title: str
    provider_name: str
    page_number: int | None = None
    chunk_id: str
    quote: str
    full_content: str
    similarity: float | None = None
    position_in_document: int
    chapter: str | None = None
    media_reference: str | None = None
    start_timestamp: float | None = None
    end_timestamp: float | None = None
    file_url: str | None = None
    file_type: str | None = None
    file_path: str | None = None


class UsageEntry(BaseModel):
    """Usage record handed to the logging sink."""

    requester_id: str | None = None
    model: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    estimated_cost: float
    operation_type: str = "rag_query"
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AskOptions(BaseModel):
    """Caller options for a single question.

    Attributes:
        requester_id: Identifier recorded in the usage log.
        selected_document_ids: Restrict answers to these documents.
        selected_categories: Restrict answers to documents in these categories.
    """

    requester_id: str | None = None
    selected_document_ids: list[str] = Field(default_factory=list)
    selected_categories: list[str] = Field(default_factory=list)

    @property
    def has_scope(self) -> bool:
        return bool(self.selected_document_ids or self.selected_categories)


class DebugPrompts(BaseModel):
    system_prompt: str
    user_prompt: str


class ResultMetadata(BaseModel):
    model: str
    chunk_count: int
    embedding_model: str
    total_tokens: int
    attempts: list[ModelAttempt] = Field(default_factory=list)


class RAGResult(BaseModel):
    """Terminal value of the query pipeline.

    A failed result carries only ``message``; a successful one carries the
    answer, summary, citations and accounting fields.
    """

    success: bool
    message: str | None = None
    answer: str | None = None
    summary: str | None = None
    citations: list[Citation] = Field(default_factory=list)
    reading_time: ReadingTime | None = None
    model_used: str | None = None
    token_usage: TokenUsage | None = None
    estimated_cost: float | None = None
    debug_prompts: DebugPrompts | None = None
    raw_response: str | None = None
    metadata: ResultMetadata | None = None

    @classmethod
    def failure(cls, message: str) -> "RAGResult":
        return cls(success=False, message=message)
