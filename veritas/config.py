"""Application configuration settings.

This module defines the Settings dataclass that loads configuration
from environment variables, and the ModelCatalog value that carries the
generation model priority and cost table into the query pipeline.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping
import os

DEFAULT_GEN_MODELS = (
    "ibm/granite-3-3-8b-instruct",
    "meta-llama/llama-3-3-70b-instruct",
    "mistralai/mistral-large",
    "ibm/granite-3-2b-instruct",
)

# USD per 1M tokens
DEFAULT_COST_PER_MILLION = {
    "ibm/granite-3-3-8b-instruct": 0.2,
    "meta-llama/llama-3-3-70b-instruct": 0.71,
    "mistralai/mistral-large": 2.0,
    "ibm/granite-3-2b-instruct": 0.0,
    "meta-llama/llama-3-2-1b-instruct": 0.0,
}

DEFAULT_COST_RATE = 1.0


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        ibm_cloud_api_key: IBM Cloud API key for authentication.
        watsonx_region: Watsonx.ai service region.
        watsonx_project_id: Watsonx.ai project ID.
        watsonx_embed_model: Embedding model ID.
        watsonx_gen_models: Generation model IDs in priority order.
        cos_endpoint: Cloud Object Storage endpoint.
        cos_bucket: Cloud Object Storage bucket holding source documents.
        cos_hmac_access_key_id: HMAC access key ID.
        cos_hmac_secret_access_key: HMAC secret access key.
        milvus_host: Milvus database host.
        milvus_port: Milvus database port.
        milvus_db: Milvus database name (optional).
        milvus_tls: Whether to use TLS for Milvus.
        milvus_collection: Milvus collection holding document chunks.
        embedding_dim: Embedding dimension of the chunk vectors.
        mongodb_uri: MongoDB connection string for metadata and usage logs.
        mongodb_database: MongoDB database name.
        match_threshold: Minimum similarity for a retrieved chunk.
        match_count: Maximum chunks returned per query variant.
        fallback_chunk_count: Chunks used when retrieval finds nothing.
        temperature: Generation temperature.
        max_tokens: Generation token cap.
        signed_url_ttl: Lifetime of signed document URLs, in seconds.
        domain: Subject domain appended to the expanded search query.
    """

    ibm_cloud_api_key: str
    watsonx_region: str
    watsonx_project_id: str
    watsonx_embed_model: str
    watsonx_gen_models: tuple[str, ...]

    cos_endpoint: str
    cos_bucket: str
    cos_hmac_access_key_id: str
    cos_hmac_secret_access_key: str

    milvus_host: str
    milvus_port: int
    milvus_db: str | None
    milvus_tls: bool
    milvus_collection: str
    embedding_dim: int

    mongodb_uri: str
    mongodb_database: str

    match_threshold: float = 0.30
    match_count: int = 12
    fallback_chunk_count: int = 3
    temperature: float = 0.7
    max_tokens: int = 2000
    signed_url_ttl: int = 3600
    domain: str = "Indian law"

    @staticmethod
    def _get_bool(value: str | None, default: bool = False) -> bool:
        """Convert string value to boolean.

        Args:
            value: String value to convert.
            default: Default value if value is None.

        Returns:
            Boolean value.
        """
        if value is None:
            return default
        return value.lower() in {"1", "true", "t", "yes", "y"}

    @staticmethod
    def _get_list(value: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            return default
        items = tuple(item.strip() for item in value.split(",") if item.strip())
        return items or default

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings instance from environment variables.

        Returns:
            Settings instance with values loaded from environment.
        """
        return cls(
            ibm_cloud_api_key=os.getenv("IBM_CLOUD_API_KEY", ""),
            watsonx_region=os.getenv("WATSONX_REGION", "us-south"),
            watsonx_project_id=os.getenv("WATSONX_PROJECT_ID", ""),
            watsonx_embed_model=os.getenv(
                "WATSONX_EMBED_MODEL",
                "ibm/granite-embedding-278m-multilingual",
            ),
            watsonx_gen_models=cls._get_list(
                os.getenv("WATSONX_GEN_MODELS"), DEFAULT_GEN_MODELS
            ),
            cos_endpoint=os.getenv("COS_ENDPOINT", ""),
            cos_bucket=os.getenv("COS_BUCKET", ""),
            cos_hmac_access_key_id=os.getenv("COS_HMAC_ACCESS_KEY_ID", ""),
            cos_hmac_secret_access_key=os.getenv("COS_HMAC_SECRET_ACCESS_KEY", ""),
            milvus_host=os.getenv("MILVUS_HOST", "localhost"),
            milvus_port=int(os.getenv("MILVUS_PORT", "19530")),
            milvus_db=os.getenv("MILVUS_DB"),
            milvus_tls=cls._get_bool(os.getenv("MILVUS_TLS"), False),
            milvus_collection=os.getenv("MILVUS_COLLECTION", "document_chunks"),
            embedding_dim=int(os.getenv("EMBEDDING_DIM", "768")),
            mongodb_uri=os.getenv("MONGODB_URI", "mongodb://localhost:27017"),
            mongodb_database=os.getenv("MONGODB_DATABASE", "veritas"),
            match_threshold=float(os.getenv("MATCH_THRESHOLD", "0.30")),
            match_count=int(os.getenv("MATCH_COUNT", "12")),
            fallback_chunk_count=int(os.getenv("FALLBACK_CHUNK_COUNT", "3")),
            temperature=float(os.getenv("TEMPERATURE", "0.7")),
            max_tokens=int(os.getenv("MAX_TOKENS", "2000")),
            signed_url_ttl=int(os.getenv("SIGNED_URL_TTL", "3600")),
            domain=os.getenv("RAG_DOMAIN", "Indian law"),
        )


@dataclass(frozen=True)
class ModelCatalog:
    """Immutable generation model configuration.

    Attributes:
        priority: Model IDs tried in order by the fallback chain.
        cost_per_million: USD cost per one million tokens, keyed by model ID.
        default_rate: Rate used for models missing from the cost table.
        embedding_model: Embedding model ID reported in result metadata.
    """

    priority: tuple[str, ...]
    cost_per_million: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_COST_PER_MILLION))
    )
    default_rate: float = DEFAULT_COST_RATE
    embedding_model: str = ""

    def __post_init__(self) -> None:
        if not self.priority:
            raise ValueError("ModelCatalog requires at least one generation model.")
        object.__setattr__(self, "priority", tuple(self.priority))
        object.__setattr__(
            self, "cost_per_million", MappingProxyType(dict(self.cost_per_million))
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ModelCatalog":
        return cls(
            priority=settings.watsonx_gen_models,
            embedding_model=settings.watsonx_embed_model,
        )

    def rate_for(self, model_id: str) -> float:
        return self.cost_per_million.get(model_id, self.default_rate)
