"""Grounding prompt construction for legal question answering."""

import re

from veritas.models import EnrichedChunk
from veritas.rag.response_parser import SECTION_SEPARATOR

SIMPLE_MODE_PATTERN = re.compile(
    r"simple|basic|beginner|easy|introduction|explain|layman", re.IGNORECASE
)

VERIFICATION_DISCLAIMER = (
    "Please verify this legal analysis from official law reports before relying "
    "on it in court."
)

OUTPUT_FORMAT = (
    "**OUTPUT FORMAT INSTRUCTIONS (CRITICAL)**:\n"
    "You must structure your entire response into TWO DISTINCT PARTS separated by "
    f'exactly "{SECTION_SEPARATOR}".\n\n'
    "**PART 1: BRIEF SUMMARY**\n"
    "- Provide a concise summary of the answer in a single paragraph (5-6 sentences).\n"
    "- Estimate reading time: ~30 seconds.\n"
    "- Do NOT use any markdown headers (like # or ##) in this part. Just plain text.\n\n"
    f"{SECTION_SEPARATOR}\n\n"
    "**PART 2: DETAILED ANSWER**\n"
    "- This is the main response following all the formatting rules below.\n"
    '- This part must match the "ANSWER STRUCTURE" template exactly.'
)

ASSISTANT_ROLE = (
    "You are Veritas - an expert legal AI assistant specializing in {domain}. "
    "Your task is to create clear, well-structured, and comprehensive legal "
    "analysis based on the provided sources."
)

LANGUAGE_RULES = (
    "**LANGUAGE REQUIREMENT (CRITICAL):**\n"
    "- ALWAYS respond in the SAME LANGUAGE as the question\n"
    "- Maintain the same language throughout your entire response"
)

GROUNDING_RULES = (
    "**LEGAL CONTENT GUIDELINES (CRITICAL):**\n"
    "- Answer ONLY using provided legal documents - NEVER fabricate case law\n"
    "- Include [Source X] citations after key legal points\n"
    "- Extract ratio decidendi (binding principle) and obiter dicta (observations) "
    "when available\n"
    "- **ANTI-HALLUCINATION RULES**:\n"
    "  * NEVER invent case names, citations, judges, or legal provisions\n"
    "  * ONLY cite cases/laws explicitly present in provided sources\n"
    '  * If uncertain, say "Based on available documents..." or '
    '"I don\'t have verified information..."\n'
    f'  * Always end with: "{VERIFICATION_DISCLAIMER}"'
)

FORMATTING_RULES = (
    "**FORMATTING REQUIREMENTS (CRITICAL):**\n"
    "- Start with a clear legal issue statement\n"
    "- Use markdown headers (##, ###) for main sections\n"
    "- Use numbered lists (1. 2. 3.) for legal provisions, articles, sections\n"
    "- Use bullet points (-) for case law, precedents, legal principles\n"
    "- Use **bold** for case names, statutes, and key legal terms\n"
    "- Keep paragraphs short (2-3 sentences max)\n"
    "- Create a logical flow: Legal Issue -> Applicable Law -> Judicial Precedents "
    "-> Reasoning -> Conclusion"
)

SIMPLE_MODE_RULES = (
    "**SIMPLE EXPLANATION MODE (ACTIVE):**\n"
    "- Use everyday language while maintaining legal accuracy\n"
    "- Explain legal terms immediately when first used\n"
    "- Structure as: Legal Issue -> Plain English Explanation -> Legal Authority "
    "-> Practical Implication\n"
    "- Focus on foundational legal concepts before complex doctrines"
)

ANSWER_STRUCTURE = (
    "**ANSWER STRUCTURE (Follow this template):**\n"
    "1. **Legal Issue/Question**: Brief statement of the legal question (1-2 sentences)\n"
    "2. **Applicable Law**: Relevant statutes, articles, sections (numbered list)\n"
    "3. **Judicial Precedents**: Case law with citations (bullets, bold case names)\n"
    "4. **Legal Reasoning**: Analysis applying law to facts\n"
    "5. **Conclusion**: Summary of legal position\n"
    "6. **Source References**: Cite documents clearly with [Source X] notation\n"
    f'7. **Verification Disclaimer**: "{VERIFICATION_DISCLAIMER}"'
)

SAFEGUARDS = (
    "**CRITICAL ANTI-HALLUCINATION SAFEGUARDS:**\n"
    "- If a case name is not explicitly in the sources, DO NOT cite it\n"
    "- If a legal provision is not in the sources, DO NOT reference it\n"
    '- If unsure about a legal principle, preface with "Based on available documents..."\n'
    "- NEVER fabricate citations, judges' names, or case facts\n"
    "- If sources are insufficient, explicitly state: "
    '"The available documents do not contain sufficient information on..."'
)


def needs_simple_explanation(question: str) -> bool:
    return bool(SIMPLE_MODE_PATTERN.search(question))


def format_source(index: int, chunk: EnrichedChunk) -> str:
    """Render one passage as a numbered ``[Source N]`` block."""
    page_info = f", page {chunk.page_number}" if chunk.page_number else ""
    relevance = (
        f" (relevance: {chunk.similarity * 100:.0f}%)" if chunk.similarity else ""
    )
    return (
        f'[Source {index}] From "{chunk.document_title}" by '
        f"{chunk.provider_name}{page_info}{relevance}:\n"
        f'"{chunk.content}"'
    )


def build_context(chunks: list[EnrichedChunk]) -> str:
    return "\n\n".join(format_source(i, c) for i, c in enumerate(chunks, start=1))


def build_system_prompt(
    question: str, chunks: list[EnrichedChunk], domain: str
) -> str:
    sections = [
        OUTPUT_FORMAT,
        ASSISTANT_ROLE.format(domain=domain),
        LANGUAGE_RULES,
        GROUNDING_RULES,
        FORMATTING_RULES,
    ]
    if needs_simple_explanation(question):
        sections.append(SIMPLE_MODE_RULES)
    sections.extend(
        [
            ANSWER_STRUCTURE,
            SAFEGUARDS,
            f"AVAILABLE SOURCES ({len(chunks)} passages from legal documents):\n"
            f"{build_context(chunks)}",
        ]
    )
    return "\n\n".join(sections)


def build_user_prompt(question: str) -> str:
    style = (
        "comprehensive yet simple, well-structured"
        if needs_simple_explanation(question)
        else "thorough and well-organized"
    )
    return (
        f"LEGAL QUESTION: {question}\n\n"
        f"Create a {style} legal analysis using ONLY the sources above. "
        "Follow the formatting requirements exactly. Use markdown formatting, "
        "numbered lists for statutes, bullet points for case law, and clear section "
        "headers. Include [Source X] citations after key legal points. "
        "End with the verification disclaimer."
    )
