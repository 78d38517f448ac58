"""
Source Researcher - finds citable web sources for a content request.

Four sequential model calls, no retries:

1. Broad search: a search-grounded call gathers candidate sources
2. Vetting: a structured-output call keeps only the best few
3. Formatting: vetted sources become an APA-style reference list
4. Verification: the list is cross-checked against the vetted URLs

Soft outcomes (nothing found, nothing survived vetting, empty formatting or
verification output) degrade to a textual fallback. Any raised error becomes
a SourceResearchError.
"""

import re
from typing import Any, List

from copysmith.agents.gemini_client import SOURCE_LIST_SCHEMA
from copysmith.config import config
from copysmith.exceptions import SourceResearchError
from copysmith.models import ContentPreferences, Source
from copysmith.prompts.source_prompts import (
    build_formatting_prompt,
    build_no_sources_note_prompt,
    build_search_prompt,
    build_verification_prompt,
    build_vetting_prompt,
)
from copysmith.utils.logging import get_logger

logger = get_logger("copysmith.sources")

NO_CANDIDATES_NOTE = (
    "(Note: An initial web search did not find any citable sources for this topic. "
    "The model will rely on its general knowledge.)"
)

SOURCE_RESEARCH_FAILED = (
    "Failed to find and verify reliable sources. Please try adjusting your topic or try again later."
)

_EMPHASIS_RE = re.compile(r"[*_]")


class SourceResearcher:
    """
    Runs the search -> vet -> format -> verify pipeline.

    The gateway is anything with the GeminiClient call surface
    (search_sources, generate_json, generate_text).
    """

    def __init__(self, gateway):
        self.gateway = gateway

    def _is_citable(self, source: Source) -> bool:
        url = source.url
        if not url.startswith(("http://", "https://")):
            return False
        return config.sources.INTERNAL_URL_MARKER not in url

    async def find_sources(self, preferences: ContentPreferences) -> str:
        """
        Find, vet, format and verify sources for the request's topic.

        Returns:
            "" when references are off, an APA reference list, a plain
            title/url list, or a note beginning "(Note: ".

        Raises:
            SourceResearchError: any model call failed
        """
        if not preferences.wants_references:
            return ""

        try:
            return await self._run(preferences)
        except Exception as e:
            logger.error("source_research_failed", topic=preferences.topic, error=str(e))
            raise SourceResearchError(SOURCE_RESEARCH_FAILED) from e

    async def _run(self, preferences: ContentPreferences) -> str:
        topic = preferences.topic
        target = config.sources.target_count(preferences.target_words)
        search_count = config.sources.search_count(preferences.target_words)

        # Step 1: broad search
        found = await self.gateway.search_sources(build_search_prompt(topic, search_count))
        candidates = [s for s in found if self._is_citable(s)]
        logger.info("source_search", requested=search_count, returned=len(found),
                    candidates=len(candidates))
        if not candidates:
            return NO_CANDIDATES_NOTE

        # Step 2: vetting
        raw = await self.gateway.generate_json(
            build_vetting_prompt(topic, preferences.reference_type, candidates, target),
            SOURCE_LIST_SCHEMA,
            model=config.models.VETTING_MODEL,
            label="vetting",
        )
        vetted = self._restrict_to_candidates(raw, candidates)
        logger.info("source_vetting", target=target, selected=len(vetted))
        if not vetted:
            note = await self.gateway.generate_text(
                build_no_sources_note_prompt(topic),
                model=config.models.VETTING_MODEL,
                label="no_sources_note",
            )
            return note.strip()

        # Step 3: APA formatting
        formatted = (await self.gateway.generate_text(
            build_formatting_prompt(vetted),
            model=config.models.VETTING_MODEL,
            label="formatting",
        )).strip()
        if not formatted:
            logger.warning("source_formatting_empty", vetted=len(vetted))
            return "\n\n".join(f"{s.title}\n{s.url}" for s in vetted)

        # Step 4: verification
        verified = (await self.gateway.generate_text(
            build_verification_prompt(vetted, formatted),
            model=config.models.VETTING_MODEL,
            label="verification",
        )).strip()
        if not verified:
            logger.warning("source_verification_empty", vetted=len(vetted))
            return _EMPHASIS_RE.sub("", formatted)

        return verified

    def _restrict_to_candidates(self, raw: Any, candidates: List[Source]) -> List[Source]:
        """Keep only vetted entries whose URL was among the candidates."""
        if not isinstance(raw, list):
            raise ValueError(f"vetting returned {type(raw).__name__}, expected a list")
        by_url = {c.url: c for c in candidates}
        vetted: List[Source] = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            url = str(item.get("url", "")).strip()
            if url not in by_url:
                logger.debug("vetting_dropped_unknown_url", url=url)
                continue
            if any(v.url == url for v in vetted):
                continue
            title = str(item.get("title") or by_url[url].title)
            vetted.append(Source(title=title, url=url))
        return vetted
