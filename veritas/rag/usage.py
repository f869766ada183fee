"""Token and cost accounting with best-effort usage logging."""

import logging
import math

from veritas.config import ModelCatalog
from veritas.models import Completion, TokenUsage, UsageEntry
from veritas.rag.interfaces import UsageSink

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4
RESPONSE_PREVIEW_CHARS = 500


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / CHARS_PER_TOKEN) if text else 0


class UsageAccountant:
    """Computes token usage and cost, and forwards usage records.

    Writes to the sink never raise; failed writes are counted in
    ``failed_writes``.
    """

    def __init__(self, catalog: ModelCatalog, sink: UsageSink | None = None) -> None:
        self.catalog = catalog
        self.sink = sink
        self.failed_writes = 0

    def estimate_cost(self, model_id: str, tokens: int) -> float:
        return (tokens / 1_000_000) * self.catalog.rate_for(model_id)

    def account(
        self,
        embedding_tokens: int,
        completion: Completion,
        system_prompt: str = "",
        user_prompt: str = "",
    ) -> TokenUsage:
        """Combine embedding and completion token counts.

        Counts reported by the completion service are used when present;
        missing ones are estimated from text length.
        """
        prompt_tokens = completion.prompt_tokens
        if prompt_tokens is None:
            prompt_tokens = estimate_tokens(system_prompt) + estimate_tokens(user_prompt)
        completion_tokens = completion.completion_tokens
        if completion_tokens is None:
            completion_tokens = estimate_tokens(completion.content)
        total_tokens = completion.total_tokens
        if total_tokens is None:
            total_tokens = prompt_tokens + completion_tokens

        return TokenUsage(
            embedding_tokens=embedding_tokens,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
            grand_total=embedding_tokens + total_tokens,
        )

    def build_entry(
        self,
        requester_id: str | None,
        question: str,
        model_id: str,
        usage: TokenUsage,
        response: str,
        documents_used: list[str],
    ) -> UsageEntry:
        """Build the usage log record for one answered question.

        The record counts the query-side embedding tokens as its prompt
        tokens; completion-prompt tokens appear only in the result's
        TokenUsage.
        """
        prompt_tokens = usage.embedding_tokens
        total_tokens = prompt_tokens + usage.completion_tokens
        return UsageEntry(
            requester_id=requester_id,
            model=model_id,
            prompt_tokens=prompt_tokens,
            completion_tokens=usage.completion_tokens,
            total_tokens=total_tokens,
            estimated_cost=self.estimate_cost(model_id, total_tokens),
            metadata={
                "query_text": question,
                "documents_used": documents_used,
                "response_preview": response[:RESPONSE_PREVIEW_CHARS] if response else None,
            },
        )

    def record(self, entry: UsageEntry) -> bool:
        """Send a usage entry to the sink; return whether it was stored."""
        if self.sink is None:
            return False
        try:
            stored = self.sink.record(entry)
        except Exception as e:
            self.failed_writes += 1
            logger.warning(f"Failed to log AI usage: {e}")
            return False
        if stored is False:
            self.failed_writes += 1
            logger.warning("Usage sink rejected AI usage entry")
            return False
        return True

    def log_query(
        self,
        requester_id: str | None,
        question: str,
        model_id: str,
        usage: TokenUsage,
        response: str,
        documents_used: list[str],
    ) -> bool:
        """Build and record the usage entry for one answered question."""
        try:
            entry = self.build_entry(
                requester_id, question, model_id, usage, response, documents_used
            )
        except Exception as e:
            self.failed_writes += 1
            logger.warning(f"Failed to build AI usage entry: {e}")
            return False
        return self.record(entry)
