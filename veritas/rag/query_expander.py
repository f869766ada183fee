"""Deterministic query expansion.

Derives alternate search phrasings from a question so retrieval can
reach passages the literal wording would miss.
"""

import re

SIMPLE_REQUEST = re.compile(
    r"explain|simple|basic|beginner|introduction|overview", re.IGNORECASE
)
CONNECTOR_WORDS = re.compile(
    r"\b(?:explain|in|very|simple|words|about|the)\b", re.IGNORECASE
)

REFORMULATIONS = [
    (re.compile(r"what is", re.IGNORECASE), ("meaning of", "introduction to")),
    (re.compile(r"how to", re.IGNORECASE), ("practice of", "method for")),
    (re.compile(r"why", re.IGNORECASE), ("reason for", "purpose of")),
]


def extract_topic(question: str) -> str:
    """Strip connector words, leaving the bare topic of a question."""
    stripped = CONNECTOR_WORDS.sub(" ", question)
    return " ".join(stripped.split()).strip(" ?.!")


class QueryExpander:
    """Expands one question into an ordered list of search variants."""

    def __init__(self, domain: str):
        self.domain = domain

    def expand(self, question: str) -> list[str]:
        """Build search variants for a question.

        The question itself is always the first variant. Variants are not
        deduplicated; duplicate chunks are removed after retrieval.

        Args:
            question: Trimmed user question.

        Returns:
            Non-empty list of search strings.
        """
        variants = [question]

        if SIMPLE_REQUEST.search(question):
            topic = extract_topic(question)
            if topic:
                variants.extend(
                    [
                        f"introduction to {topic}",
                        f"{topic} basics",
                        f"what is {topic}",
                        f"{topic} for beginners",
                        f"{topic} overview",
                    ]
                )

        variants.append(f"{question} in {self.domain} context")

        for pattern, replacements in REFORMULATIONS:
            if pattern.search(question):
                for replacement in replacements:
                    variants.append(pattern.sub(replacement, question, count=1))

        return variants
