"""
Prompt templates for the four source research stages:
search -> vet -> format (APA) -> verify.

Source lists are embedded as compact JSON so the model sees the exact URLs.
"""

import json
from typing import List

from jinja2 import BaseLoader, Environment

from copysmith.models import ReferenceType, Source

_env = Environment(loader=BaseLoader(), autoescape=False, trim_blocks=True, lstrip_blocks=True)

VETTING_REQUIREMENTS = {
    ReferenceType.PROFESSIONAL: (
        "The user specifically requested professional and academic sources. This is a strict "
        "requirement. Prioritize peer-reviewed journal articles, published scholarly books, official "
        "reports from government or major research institutions (e.g., NGOs, think tanks), and papers "
        "from top-tier academic conferences. Be very critical and reject sources that are blogs, news "
        "articles (unless from a highly reputable scientific journal source), or general informational "
        "websites."
    ),
    ReferenceType.ANY: (
        "The user requested any high-quality sources. Prioritize authoritative and well-researched "
        "articles. You should still reject sources that are low-quality, such as personal blogs, forums, "
        "or content farms. Reputable news organizations, established industry websites, and educational "
        "institutions are good candidates."
    ),
}


def sources_json(sources: List[Source]) -> str:
    return json.dumps([s.model_dump() for s in sources], ensure_ascii=False)


_VETTING_TEMPLATE = _env.from_string("""\
# MISSION
You are an expert academic researcher with extremely high standards. Your mission is to evaluate a list of web sources for an article on the topic of "{{ topic }}". You must select only sources that are **DIRECTLY AND SUBSTANTIALLY** about this specific topic.

# USER REQUIREMENT
{{ requirement }}

# EVALUATION CRITERIA
- **Primary Criterion: Direct Relevance**: The source MUST be about "{{ topic }}". General or foundational texts on a broader subject are NOT acceptable. The content must focus on the user's specific topic. If a source is only tangentially related, it must be rejected.
- **Authority & Trustworthiness**: Is the source from a reputable author or organization?
- **Quality**: Is the information well-researched and factual?
- **Recency**: Is the source up-to-date?

# LIST OF CANDIDATE SOURCES
{{ candidates }}

# YOUR TASK
Based on the strict criteria above, select the BEST {{ target }} sources.
**CRITICAL RULE:** If, after your review, you determine that NONE of the candidate sources are directly and substantially about "{{ topic }}", you MUST return an empty JSON array `[]`. Do not include tangentially related sources just to provide a result.

Return your selection as a JSON array of objects. Your output MUST be only the JSON array.
""")

_NOTE_TEMPLATE = _env.from_string("""\
# MISSION
You are a helpful research assistant. A search for high-quality, specific web sources for the topic "{{ topic }}" yielded no direct results. Your task is to provide a brief, helpful note explaining why this might be the case and what the AI will do instead.

# REASONING
Consider the topic "{{ topic }}". Common reasons for a lack of specific academic or professional sources include:
- The topic is very new or nascent.
- The topic is highly niche or specialized.
- The topic combines two disparate fields (e.g., technology and spirituality).
- The topic is more speculative or theoretical than heavily researched.

# YOUR TASK
1.  Based on your reasoning, write a 1-2 sentence note for the user.
2.  Start the note with "(Note: ".
3.  Conclude the note by stating that because no specific sources were found, the model will rely on its general knowledge.
4.  Do NOT invent or suggest any sources.
5.  Your output should be ONLY the note.

# EXAMPLE
- **Topic:** "The impact of quantum computing on ancient poetry interpretation"
- **Your Output:** (Note: High-quality academic sources specifically addressing the impact of quantum computing on ancient poetry are not yet available as this is a highly speculative and interdisciplinary field. The model will rely on its general knowledge to address the topic.)
""")

_FORMATTING_TEMPLATE = _env.from_string("""\
# MISSION
You are a meticulous and accurate academic librarian. Your mission is to convert a list of web sources into a reference list in APA 7th edition style. Your top priority is accuracy. **You must not invent information.**

# GUIDING PRINCIPLES
1.  **NEVER ALTER THE URL:** You will be given a title and a URL. This URL is the ground truth. You MUST use the **exact, complete, and original URL** provided in the final citation. Do not shorten, clean, or create a new URL. This is the most important rule.
2.  **DO NOT INVENT AUTHORS OR DATES:**
    - Use the provided title for the work. Per APA 7 style for web pages, use sentence case for the title.
    - Try to determine the author and date from the title and URL.
    - If a specific author is not clear, use the organization/site name as the author (e.g., "Forbes" from a forbes.com URL).
    - If a specific date is not clear, you MUST use "(n.d.)".
    - It is better to have less information that is true than more information that is false.

# VETTED SOURCES
{{ vetted }}

# YOUR TASK
For each source, create a reference entry following APA 7th edition style for a webpage.
- **Example with Author:** Smith, J. (2023, January 15). The future of AI in marketing. Tech Insights. https://www.example.com/long-and-complex-url-path/to-article-123
- **Example with Organization:** World Health Organization. (2022). Global report on infectious diseases. https://www.who.int/news-room/fact-sheets/detail/ebola-virus-disease
- **Example with No Date:** HubSpot. (n.d.). The ultimate guide to content marketing. https://blog.hubspot.com/marketing/content-marketing

Your output must ONLY be the formatted reference list. Each entry must start on a new line. Do not use bullets or numbers.
""")

_VERIFICATION_TEMPLATE = _env.from_string("""\
# MISSION
You are a hyper-vigilant fact-checker and citation corrector. Your sole purpose is to ensure the accuracy of a generated reference list against a ground-truth list of sources. Your two main priorities are correcting URLs and removing markdown formatting.

# GROUND TRUTH SOURCES
This is the list of original, correct sources. The URLs here are 100% correct.
{{ vetted }}

# FORMATTED REFERENCE LIST (Needs Verification)
This is the list generated by another AI. It may contain incorrect URLs or unwanted markdown formatting (like asterisks for italics).
---
{{ formatted }}
---

# YOUR TASK
1.  **VERIFY AND CORRECT URLs:** Go through the "FORMATTED REFERENCE LIST" entry by entry. For each entry, find the corresponding entry in the "GROUND TRUTH SOURCES" (match them by title). The URL in the formatted entry MUST BE **EXACTLY IDENTICAL** to the URL in the ground truth list. If it is different in any way (shortened, altered, contains extra path elements), you MUST replace it with the correct URL from the ground truth list.
2.  **REMOVE MARKDOWN:** The final output must be plain text. Remove any markdown formatting, specifically asterisks (`*`) or underscores (`_`) around titles that were used for italics.
3.  **PRESERVE EVERYTHING ELSE:** Do not change author names, dates, or titles unless they are egregiously wrong based on the ground truth source title. The primary focus is URL and markdown correction.

# EXAMPLE
- **Ground Truth:** { "title": "AI in Sports", "url": "https://www.example.com/real-article-path-123" }
- **Incorrect Formatted Entry:** Marr, B. (2023). *AI in Sports*. Forbes. https://www.forbes.com/marr2023
- **YOUR CORRECTED OUTPUT:** Marr, B. (2023). AI in Sports. Forbes. https://www.example.com/real-article-path-123

Output ONLY the corrected, final reference list. Each entry must be on a new line.
""")


def build_search_prompt(topic: str, count: int) -> str:
    return (
        f'Find up to {count} relevant and high-quality web sources for an article about "{topic}". '
        "Prioritize authoritative domains."
    )


def build_vetting_prompt(topic: str, reference_type: ReferenceType,
                         candidates: List[Source], target: int) -> str:
    requirement = VETTING_REQUIREMENTS.get(ReferenceType(reference_type), VETTING_REQUIREMENTS[ReferenceType.ANY])
    return _VETTING_TEMPLATE.render(
        topic=topic,
        requirement=requirement,
        candidates=sources_json(candidates),
        target=target,
    )


def build_no_sources_note_prompt(topic: str) -> str:
    return _NOTE_TEMPLATE.render(topic=topic)


def build_formatting_prompt(vetted: List[Source]) -> str:
    return _FORMATTING_TEMPLATE.render(vetted=sources_json(vetted))


def build_verification_prompt(vetted: List[Source], formatted: str) -> str:
    return _VERIFICATION_TEMPLATE.render(vetted=sources_json(vetted), formatted=formatted)
