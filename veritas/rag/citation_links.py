"""Helpers for checking and looking up legal citations.

Public helpers for UI callers that render citations; the query pipeline
itself does not use them.

Links are search URLs rather than direct case links: the reporter
citation is enough to search, while direct links need database ids.
"""

import re
from dataclasses import dataclass
from urllib.parse import quote

from veritas.models import Citation

VALID_CITATION_PATTERNS = [
    re.compile(r"\(\d{4}\)\s*\d+\s*(SCC|SCR|AIR|Bom|Del|Mad|Cal|Kar|All)", re.I),
    re.compile(r"AIR\s*\d{4}\s*(SC|Bom|Del|Mad|Cal|Kar|All)", re.I),
    re.compile(r"\d{4}\s*(SCC|SCR)\s*\d+", re.I),
    re.compile(r"\[\d{4}\]\s*\d+\s*(SCR|SCC)", re.I),
    re.compile(r"W\.?P\.?\s*\(C\)?\s*No\.?\s*\d+", re.I),
    re.compile(r"CRL\.?A\.?\s*No\.?\s*\d+", re.I),
    re.compile(r"SLP\s*\(C\)?\s*No\.?\s*\d+", re.I),
]


@dataclass(frozen=True)
class LegalDatabaseLink:
    name: str
    url: str
    is_free: bool
    description: str


def clean_citation(citation: str) -> str:
    """Drop parentheses and collapse whitespace for search queries."""
    return " ".join(citation.replace("(", "").replace(")", "").split())


def _encode(text: str) -> str:
    return quote(text.strip(), safe="")


def is_valid_citation_format(citation: str | None) -> bool:
    """Return True when a citation matches a known Indian reporter format."""
    if not citation or not isinstance(citation, str):
        return False
    return any(pattern.search(citation) for pattern in VALID_CITATION_PATTERNS)


def generate_legal_database_links(
    citation: str, case_name: str | None = None
) -> list[LegalDatabaseLink]:
    cleaned = clean_citation(citation)
    search_query = f"{case_name} {cleaned}" if case_name else cleaned
    encoded_query = _encode(search_query)
    encoded_citation = _encode(cleaned)

    links = [
        LegalDatabaseLink(
            name="Indian Kanoon",
            url=f"https://indiankanoon.org/search/?formInput={encoded_query}",
            is_free=True,
            description="Free comprehensive Indian legal database",
        )
    ]
    if "sc" in citation.lower():
        links.append(
            LegalDatabaseLink(
                name="Supreme Court of India",
                url="https://main.sci.gov.in/judgments",
                is_free=True,
                description="Official Supreme Court judgments portal",
            )
        )
    links.extend(
        [
            LegalDatabaseLink(
                name="Google Scholar",
                url=f"https://scholar.google.com/scholar?q={encoded_query}+india+court",
                is_free=True,
                description="Academic and legal document search",
            ),
            LegalDatabaseLink(
                name="SCC Online",
                url=(
                    "https://www.scconline.com/Members/SearchResult.aspx"
                    f"?search={encoded_citation}"
                ),
                is_free=False,
                description="Premium legal database (subscription required)",
            ),
            LegalDatabaseLink(
                name="Manupatra",
                url=(
                    "https://www.manupatrafast.com/Search/SearchResult.aspx"
                    f"?searchText={encoded_citation}"
                ),
                is_free=False,
                description="Premium legal database (subscription required)",
            ),
            LegalDatabaseLink(
                name="eCourts India",
                url="https://ecourts.gov.in/ecourts_home/",
                is_free=True,
                description="Official government case status portal",
            ),
        ]
    )
    return links


def get_best_free_link(citation: str, case_name: str | None = None) -> LegalDatabaseLink:
    links = generate_legal_database_links(citation, case_name)
    return next((link for link in links if link.is_free), links[0])


def citation_disclaimer(ai_generated: bool = False) -> str:
    if ai_generated:
        return (
            "This citation was AI-generated and may need verification. Please search "
            "the official databases to confirm accuracy."
        )
    return (
        "Please verify this citation from official legal databases before relying "
        "on it in court."
    )


def group_citations_by_document(
    citations: list[Citation],
) -> list[tuple[Citation, list[tuple[int, Citation]]]]:
    """Group citations by document, keeping first-seen document order.

    Returns:
        One ``(first_citation, [(source_number, citation), ...])`` pair per
        document, where ``source_number`` is the 1-based ``[Source N]`` index.
    """
    groups: dict[str, list[tuple[int, Citation]]] = {}
    for number, citation in enumerate(citations, start=1):
        groups.setdefault(citation.document_id, []).append((number, citation))
    return [(entries[0][1], entries) for entries in groups.values()]
