"""Question validation run before any retrieval call."""

import re

from veritas.errors import InputValidationError

MIN_QUESTION_LENGTH = 5
MAX_QUESTION_LENGTH = 5000

INAPPROPRIATE_PATTERNS = [
    re.compile(r"\b(hack|crack|exploit|attack|malware|virus)\b", re.IGNORECASE),
    re.compile(r"\b(porn|xxx|sex)\b", re.IGNORECASE),
    re.compile(r"\b(kill|murder|death|suicide)\b", re.IGNORECASE),
]

OFF_TOPIC_KEYWORDS = ["sports", "politics", "movie", "game", "recipe", "weather"]

TOO_SHORT_MESSAGE = "Please ask a more detailed question."
TOO_LONG_MESSAGE = (
    f"Your question is too long. Please keep it under {MAX_QUESTION_LENGTH} characters."
)
INAPPROPRIATE_MESSAGE = (
    "Please ask questions related to legal research, case law, statutes, "
    "and judicial precedents."
)
OFF_TOPIC_MESSAGE = (
    "I am here to help with legal research questions about Indian law. Please ask "
    "questions related to legal topics, case law, statutes, and judicial precedents."
)


def validate_question(question: str) -> str:
    """Check a question and return its trimmed form.

    Args:
        question: Raw question text.

    Returns:
        The trimmed question.

    Raises:
        InputValidationError: If the question is too short, too long,
            matches a disallowed-content pattern or an off-topic keyword.
    """
    trimmed = (question or "").strip()
    if len(trimmed) < MIN_QUESTION_LENGTH:
        raise InputValidationError(TOO_SHORT_MESSAGE)
    if len(trimmed) > MAX_QUESTION_LENGTH:
        raise InputValidationError(TOO_LONG_MESSAGE)

    for pattern in INAPPROPRIATE_PATTERNS:
        if pattern.search(trimmed):
            raise InputValidationError(INAPPROPRIATE_MESSAGE)

    lowered = trimmed.lower()
    if any(keyword in lowered for keyword in OFF_TOPIC_KEYWORDS):
        raise InputValidationError(OFF_TOPIC_MESSAGE)

    return trimmed
