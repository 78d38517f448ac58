"""
Gemini client - the single boundary between Copysmith and the model API.

Wraps google-genai's async surface with the four call shapes the app needs:

1. Plain text generation
2. Search-grounded generation, returning the grounding chunks as sources
3. Structured JSON generation against a declared response schema
4. Chat sessions (system instruction + history) with send and stream

SDK failures are raised as ProviderError; nothing here retries. Timeouts are
the SDK's defaults.
"""

from typing import Any, AsyncIterator, List, Optional

from google import genai
from google.genai import types

from copysmith.config import config
from copysmith.models import Source
from copysmith.utils.json_parser import extract_json_from_llm
from copysmith.utils.logging import get_logger

logger = get_logger("copysmith.gemini")


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------

class LLMError(Exception):
    """Base exception for LLM call failures."""
    pass


class ProviderError(LLMError):
    """The provider call failed or returned something unusable."""
    def __init__(self, provider: str, message: str, original_error: Exception = None):
        self.provider = provider
        self.original_error = original_error
        super().__init__(f"{provider}: {message}")


class LLMNotConfiguredError(LLMError):
    """Raised when no API key is configured."""
    pass


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

SOURCE_LIST_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "title": types.Schema(type=types.Type.STRING),
            "url": types.Schema(type=types.Type.STRING),
        },
        required=["title", "url"],
    ),
)

TOPIC_IDEA_LIST_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "headline": types.Schema(
                type=types.Type.STRING,
                description="The compelling, click-worthy headline for the content idea.",
            ),
            "description": types.Schema(
                type=types.Type.STRING,
                description="A brief, 1-2 sentence summary of what the content would be about.",
            ),
        },
        required=["headline", "description"],
    ),
)


def _response_text(response) -> str:
    return (getattr(response, "text", None) or "").strip()


def _grounding_sources(response) -> List[Source]:
    """Pull {title, url} pairs out of the first candidate's grounding metadata."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []
    sources = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        if web is None:
            continue
        sources.append(Source(
            title=getattr(web, "title", None) or "Untitled",
            url=getattr(web, "uri", None) or "",
        ))
    return sources


class ChatSession:
    """A live multi-turn conversation with the model.

    Owned by the orchestrator for the duration of a content generation and
    reused for refinement turns.
    """

    def __init__(self, chat, model: str):
        self._chat = chat
        self.model = model

    async def send(self, message: str) -> str:
        """Send one turn and wait for the complete reply."""
        logger.debug("chat_send", model=self.model, chars=len(message))
        try:
            response = await self._chat.send_message(message)
        except Exception as e:
            raise ProviderError("Gemini", str(e), original_error=e) from e
        return getattr(response, "text", None) or ""

    async def stream(self, message: str) -> AsyncIterator[str]:
        """Send one turn and yield the reply as text deltas."""
        logger.debug("chat_stream", model=self.model, chars=len(message))
        try:
            chunks = await self._chat.send_message_stream(message)
            async for chunk in chunks:
                text = getattr(chunk, "text", None)
                if text:
                    yield text
        except LLMError:
            raise
        except Exception as e:
            raise ProviderError("Gemini", str(e), original_error=e) from e


class GeminiClient:
    """Async Gemini access for content, topic and source calls."""

    def __init__(self, api_key: str = None, client: "genai.Client" = None):
        """
        Args:
            api_key: Gemini API key. Defaults to GOOGLE_API_KEY / GEMINI_API_KEY.
            client: Pre-built genai.Client (mainly for tests).
        """
        if client is None:
            api_key = api_key or config.api.resolve_key()
            if not api_key:
                raise LLMNotConfiguredError(
                    "GOOGLE_API_KEY or GEMINI_API_KEY environment variable required"
                )
            client = genai.Client(api_key=api_key)
        self.client = client

        # Configure grounding tool
        self.grounding_tool = types.Tool(google_search=types.GoogleSearch())

    async def _generate(self, model: str, prompt: str,
                        gen_config: Optional[types.GenerateContentConfig], label: str):
        logger.debug("generate_content", model=model, label=label)
        try:
            return await self.client.aio.models.generate_content(
                model=model,
                contents=prompt,
                config=gen_config,
            )
        except Exception as e:
            raise ProviderError("Gemini", f"{label} failed: {e}", original_error=e) from e

    async def generate_text(self, prompt: str, *, model: str = None,
                            label: str = "generate") -> str:
        """Plain generation. Returns stripped text (may be empty)."""
        response = await self._generate(model or config.models.CONTENT_MODEL, prompt, None, label)
        return _response_text(response)

    async def search_sources(self, prompt: str, *, model: str = None) -> List[Source]:
        """Search-grounded generation; returns the grounding chunks as sources."""
        response = await self._generate(
            model or config.models.SEARCH_MODEL,
            prompt,
            types.GenerateContentConfig(tools=[self.grounding_tool]),
            "search",
        )
        return _grounding_sources(response)

    async def generate_json(self, prompt: str, schema: types.Schema, *,
                            model: str = None, label: str = "json") -> Any:
        """Structured-output generation. Returns the decoded JSON value."""
        response = await self._generate(
            model or config.models.VETTING_MODEL,
            prompt,
            types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=schema,
            ),
            label,
        )
        text = _response_text(response)
        expect = list if schema.type == types.Type.ARRAY else dict
        result = extract_json_from_llm(text, expect=expect)
        if result is None:
            raise ProviderError("Gemini", f"{label} returned no parseable JSON")
        return result

    def start_chat(self, system_instruction: str, *, model: str = None) -> ChatSession:
        """Open a new chat session with the given system instruction."""
        model = model or config.models.CONTENT_MODEL
        chat = self.client.aio.chats.create(
            model=model,
            config=types.GenerateContentConfig(system_instruction=system_instruction),
        )
        return ChatSession(chat, model)
