"""Parsing the two-part summary/answer model response."""

import math
import re

from veritas.models import ParsedResponse, ReadingTime

SECTION_SEPARATOR = "---SECTION_SEPARATOR---"
WORDS_PER_MINUTE = 200
MAX_PSEUDO_SUMMARY_CHARS = 500
PLACEHOLDER_SUMMARY = "Please refer to the detailed answer below."

# Echoed section labels: "**PART 1: ...**" or a bare "PART 1: ..." heading line
_PART_LABEL = (
    r"\A\s*(?:#+\s*)?(?:(?i:\*\*PART\s*{n}\s*:.*?\*\*)|PART\s*{n}\s*:[^\n]*$)"
)
PART_1_LABEL = re.compile(_PART_LABEL.format(n=1), re.MULTILINE)
PART_2_LABEL = re.compile(_PART_LABEL.format(n=2), re.MULTILINE)


def calculate_reading_time(text: str) -> str:
    minutes = len(text.split()) / WORDS_PER_MINUTE
    if minutes < 1:
        return "< 1 min read"
    return f"{math.ceil(minutes)} min read"


def parse_response(raw_text: str) -> ParsedResponse:
    """Split a model response into summary and detailed answer.

    Malformed output never raises: without the separator the whole text
    becomes the answer and the first paragraph, if short, the summary.

    Args:
        raw_text: Unprocessed completion content.

    Returns:
        ParsedResponse with reading times for both parts.
    """
    raw_text = raw_text or ""
    parts = raw_text.split(SECTION_SEPARATOR)

    if len(parts) >= 2:
        summary = PART_1_LABEL.sub("", parts[0].strip(), count=1).strip()
        answer = PART_2_LABEL.sub("", parts[1].strip(), count=1).strip()
    else:
        answer = raw_text.strip()
        first_paragraph = answer.split("\n\n", 1)[0]
        if len(first_paragraph) < MAX_PSEUDO_SUMMARY_CHARS:
            summary = first_paragraph.strip()
        else:
            summary = PLACEHOLDER_SUMMARY

    return ParsedResponse(
        summary=summary,
        answer=answer,
        reading_time=ReadingTime(
            summary=calculate_reading_time(summary),
            detail=calculate_reading_time(answer),
        ),
    )
