"""Terminal failures raised by query pipeline stages.

Each exception carries the user-facing message returned in the failed
RAGResult; the pipeline converts them at its boundary.
"""


class VeritasError(Exception):
    """Base class for failures that end a query with a user-facing message."""


class InputValidationError(VeritasError):
    """Question rejected before retrieval (length, content or topic)."""


class ScopedEmptyResult(VeritasError):
    """An explicit document or category scope matched no passages."""

    DOCUMENTS_MESSAGE = (
        "I could not find relevant information in the selected legal documents "
        "to answer your question. Please try:\n"
        "- Asking a different legal question\n"
        "- Selecting additional documents\n"
        "- Rephrasing your question with different legal keywords"
    )
    CATEGORIES_MESSAGE = (
        "I could not find relevant information from the selected legal category "
        "to answer your question. Please try:\n"
        "- Asking a different legal question\n"
        "- Selecting additional legal categories\n"
        "- Rephrasing your question with different legal keywords"
    )

    def __init__(self, scope: str):
        self.scope = scope
        message = (
            self.DOCUMENTS_MESSAGE if scope == "documents" else self.CATEGORIES_MESSAGE
        )
        super().__init__(message)


class UnscopedEmptyResult(VeritasError):
    """Neither retrieval nor the recent-chunk fallback produced passages."""

    MESSAGE = (
        "I apologize, but I could not find relevant information in the available "
        "legal documents to answer your question. Please try rephrasing your "
        "question or ask about topics related to Indian law, case law, statutes, "
        "and judicial precedents available in the system."
    )

    def __init__(self):
        super().__init__(self.MESSAGE)


class ChainExhaustedError(VeritasError):
    """Every model in the generation fallback chain failed."""

    def __init__(self, attempts: list, last_error: str | None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"All models failed. Last error: {last_error}")
