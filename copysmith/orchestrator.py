"""
Generation Orchestrator - drives one content, refinement or topic request
from the usage check to the final parsed message.

Flow for content:
    usage check -> user brief + placeholder -> chat session -> sources
    (optional) -> composed prompt -> streamed reply, or the bounded
    long-form loop -> commit usage

The orchestrator owns the conversation, the topic ideas and the live chat
session. UIs read its attributes and re-render from the on_update callback.

Usage:
    orchestrator = GenerationOrchestrator(GeminiClient(), on_update=render)
    await orchestrator.generate_content(preferences)
    await orchestrator.refine_content("Make it shorter")
"""

from enum import Enum
from typing import Callable, List, Optional

from copysmith.agents.gemini_client import TOPIC_IDEA_LIST_SCHEMA, ChatSession, LLMError
from copysmith.agents.source_researcher import SourceResearcher
from copysmith.config import config
from copysmith.exceptions import GenerationError, InputValidationError, QuotaExceededError
from copysmith.models import (
    ChatMessage,
    ContentPreferences,
    GenerationKind,
    ParsedResponse,
    TopicIdea,
    TopicPreferences,
)
from copysmith.prompts.content_prompts import (
    build_content_prompt,
    build_length_correction_prompt,
    build_refinement_prompt,
    build_regeneration_suffix,
    build_system_instruction,
    build_topic_context_notes,
    build_topic_idea_prompt,
    build_user_brief,
)
from copysmith.response_parser import count_words, parse_response
from copysmith.usage_gate import UsageDecision, UsageGate
from copysmith.utils.logging import get_logger

logger = get_logger("copysmith.orchestrator")

GENERIC_FAILURE_MESSAGE = "There was a problem on our end. Please try again later."
EMPTY_TOPIC_MESSAGE = "Please enter a topic to generate content."
EMPTY_INDUSTRY_MESSAGE = "Please enter an industry or niche."
EMPTY_REFINEMENT_MESSAGE = "Please describe how the content should change."
NOTHING_TO_REFINE_MESSAGE = "There is no content to refine yet. Generate content first."


class GenerationPhase(str, Enum):
    IDLE = "idle"
    COMPOSING = "composing"
    SOURCES_PENDING = "sources_pending"
    AWAITING_MODEL = "awaiting_model"
    STREAMING = "streaming"
    RETRYING_LENGTH = "retrying_length"
    DONE = "done"
    FAILED = "failed"


class GenerationOrchestrator:
    """Owns conversation state and runs generation requests against a gateway."""

    def __init__(
        self,
        gateway,
        usage_gate: Optional[UsageGate] = None,
        researcher: Optional[SourceResearcher] = None,
        on_update: Optional[Callable[["GenerationOrchestrator"], None]] = None,
    ):
        """
        Args:
            gateway: Model access with the GeminiClient call surface
            usage_gate: Daily quota service (default: file-backed UsageGate)
            researcher: Source pipeline (default: SourceResearcher on the same gateway)
            on_update: Called after every visible state change
        """
        self.gateway = gateway
        self.usage = usage_gate or UsageGate()
        self.researcher = researcher or SourceResearcher(gateway)
        self.on_update = on_update

        self.messages: List[ChatMessage] = []
        self.topic_ideas: List[TopicIdea] = []
        self.phase = GenerationPhase.IDLE
        self.error: Optional[str] = None
        self.last_exception: Optional[Exception] = None
        self.is_loading = False
        self.is_streaming = False
        self._session: Optional[ChatSession] = None

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    @property
    def has_session(self) -> bool:
        return self._session is not None

    @property
    def has_content(self) -> bool:
        """True once a finished model message is on screen, live session or not."""
        return any(m.role == "model" and not m.is_placeholder for m in self.messages)

    def remaining(self, kind: GenerationKind) -> int:
        return self.usage.peek(kind).count

    def restore(self, messages: List[ChatMessage], topic_ideas: List[TopicIdea]) -> None:
        """Load autosaved conversation state. No chat session is restored."""
        self.messages = list(messages)
        self.topic_ideas = list(topic_ideas)
        self._session = None
        self.phase = GenerationPhase.IDLE

    def _notify(self) -> None:
        if self.on_update is not None:
            self.on_update(self)

    def _set_phase(self, phase: GenerationPhase) -> None:
        self.phase = phase
        logger.debug("phase_changed", phase=phase.value)

    def _admit(self, kind: GenerationKind, text: str, empty_message: str) -> UsageDecision:
        """Quota first, then required input. Raises before any model call."""
        decision = self.usage.check_and_consume(kind)
        if not decision.allowed:
            raise QuotaExceededError(decision.message)
        if not text or not text.strip():
            raise InputValidationError(empty_message)
        return decision

    def _reject(self, error: InputValidationError) -> None:
        logger.info("request_rejected", reason=str(error))
        self.error = str(error)
        self.last_exception = error
        self.phase = GenerationPhase.FAILED
        self._notify()

    def _begin(self) -> None:
        self.error = None
        self.last_exception = None
        self.is_loading = True
        self.is_streaming = False

    def _finish(self) -> None:
        self.is_loading = False
        self.is_streaming = False
        self._notify()

    def _fail(self, error: Exception, rollback: Callable[[List[ChatMessage]], List[ChatMessage]]) -> None:
        logger.error(
            "generation_failed",
            phase=self.phase.value,
            error_type=type(error).__name__,
            error=str(error),
            cause=str(error.__cause__) if error.__cause__ else None,
        )
        self.messages = rollback(self.messages)
        self.error = GENERIC_FAILURE_MESSAGE
        self.last_exception = error
        self._session = None
        self.phase = GenerationPhase.FAILED

    def _replace_last(self, parsed: ParsedResponse) -> None:
        if self.messages and self.messages[-1].role == "model":
            self.messages[-1] = parsed.to_message()
        self._notify()

    # ------------------------------------------------------------------
    # Model turns
    # ------------------------------------------------------------------

    async def _stream_into_last(self, message: str) -> None:
        """Stream one turn, re-parsing the whole buffer after every delta."""
        buffer = ""
        try:
            async for delta in self._session.stream(message):
                if not self.is_streaming:
                    self.is_streaming = True
                    self._set_phase(GenerationPhase.STREAMING)
                buffer += delta
                self._replace_last(parse_response(buffer, partial=True))
        except LLMError as e:
            raise GenerationError(f"Streaming failed: {e}") from e
        self._replace_last(parse_response(buffer))
        logger.info("stream_complete", chars=len(buffer))

    async def _send(self, message: str) -> str:
        try:
            return await self._session.send(message)
        except LLMError as e:
            raise GenerationError(f"Model call failed: {e}") from e

    async def _run_long_form(self, prompt: str) -> None:
        """Up to LONG_FORM_MAX_ATTEMPTS non-streamed turns, stopping once in band.

        The last attempt is displayed even when it is still out of band.
        """
        band = config.generation.long_form_band()
        max_attempts = config.generation.LONG_FORM_MAX_ATTEMPTS
        message = prompt
        parsed = ParsedResponse()
        words = 0

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                self._set_phase(GenerationPhase.RETRYING_LENGTH)
                message = build_length_correction_prompt(words, band)
            parsed = parse_response(await self._send(message))
            words = count_words(parsed.content)
            in_band = band.contains(words)
            logger.info("long_form_attempt", attempt=attempt, words=words, in_band=in_band)
            if in_band:
                break

        self._replace_last(parsed)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def generate_content(self, preferences: ContentPreferences, regenerate: bool = False) -> bool:
        """Generate a fresh piece of content. Returns True on success."""
        try:
            decision = self._admit(GenerationKind.CONTENT, preferences.topic, EMPTY_TOPIC_MESSAGE)
        except InputValidationError as e:
            self._reject(e)
            return False

        self._begin()
        self.messages = []
        self.topic_ideas = []
        self._session = None
        self._set_phase(GenerationPhase.COMPOSING)
        logger.info(
            "content_generation_started",
            platform=preferences.platform,
            word_count=preferences.word_count,
            reference_type=preferences.reference_type.value,
            regenerate=regenerate,
        )

        try:
            self.messages = [
                ChatMessage(role="user", content=build_user_brief(preferences)),
                ChatMessage(role="model"),
            ]
            self._notify()

            self._session = self.gateway.start_chat(
                build_system_instruction(preferences.writer_persona),
                model=config.models.CONTENT_MODEL,
            )

            sources = None
            if preferences.wants_references:
                self._set_phase(GenerationPhase.SOURCES_PENDING)
                sources = await self.researcher.find_sources(preferences)

            prompt = build_content_prompt(preferences, sources)
            if regenerate:
                prompt += build_regeneration_suffix()

            self._set_phase(GenerationPhase.AWAITING_MODEL)
            if preferences.word_count == config.generation.LONG_FORM_WORD_COUNT:
                await self._run_long_form(prompt)
            else:
                await self._stream_into_last(prompt)

            decision.commit()
            self._set_phase(GenerationPhase.DONE)
            return True
        except Exception as e:
            self._fail(e, rollback=lambda msgs: [m for m in msgs if m.role == "user"])
            return False
        finally:
            self._finish()

    async def regenerate_content(self, preferences: ContentPreferences) -> bool:
        return await self.generate_content(preferences, regenerate=True)

    async def refine_content(self, instruction: str) -> bool:
        """Edit the last generated content in place on the same chat session."""
        try:
            decision = self._admit(GenerationKind.CONTENT, instruction, EMPTY_REFINEMENT_MESSAGE)
            last_model = next(
                (m for m in reversed(self.messages) if m.role == "model" and m.content), None
            )
            if self._session is None or last_model is None:
                raise InputValidationError(NOTHING_TO_REFINE_MESSAGE)
        except InputValidationError as e:
            self._reject(e)
            return False

        self._begin()
        prompt = build_refinement_prompt(last_model, instruction)
        self.messages = self.messages + [
            ChatMessage(role="user", content=instruction),
            ChatMessage(role="model"),
        ]
        self._set_phase(GenerationPhase.AWAITING_MODEL)
        self._notify()
        logger.info("refinement_started", instruction_chars=len(instruction))

        try:
            await self._stream_into_last(prompt)
            decision.commit()
            self._set_phase(GenerationPhase.DONE)
            return True
        except Exception as e:
            self._fail(e, rollback=lambda msgs: msgs[:-2])
            return False
        finally:
            self._finish()

    async def generate_topics(self, topic_preferences: TopicPreferences) -> List[TopicIdea]:
        """One structured call for a batch of topic ideas. Empty list on failure."""
        try:
            decision = self._admit(GenerationKind.TOPIC, topic_preferences.industry, EMPTY_INDUSTRY_MESSAGE)
        except InputValidationError as e:
            self._reject(e)
            return []

        self._begin()
        self.topic_ideas = []
        self.messages = []
        self._session = None
        self._set_phase(GenerationPhase.AWAITING_MODEL)
        self._notify()

        try:
            try:
                raw = await self.gateway.generate_json(
                    build_topic_idea_prompt(topic_preferences),
                    TOPIC_IDEA_LIST_SCHEMA,
                    model=config.models.TOPIC_MODEL,
                    label="topic_ideas",
                )
            except LLMError as e:
                raise GenerationError(f"Topic generation failed: {e}") from e
            if not isinstance(raw, list):
                raise GenerationError(f"Topic generation returned {type(raw).__name__}, expected a list")

            self.topic_ideas = [TopicIdea.model_validate(item) for item in raw]
            decision.commit()
            logger.info("topics_generated", count=len(self.topic_ideas))
            self._set_phase(GenerationPhase.DONE)
            return self.topic_ideas
        except Exception as e:
            self._fail(e, rollback=lambda msgs: msgs)
            self.topic_ideas = []
            return []
        finally:
            self._finish()

    def select_topic(
        self,
        headline: str,
        topic_preferences: TopicPreferences,
        content_preferences: ContentPreferences,
    ) -> ContentPreferences:
        """Seed content preferences from a chosen topic idea."""
        notes = build_topic_context_notes(topic_preferences)
        custom_notes = (
            f"{content_preferences.custom_notes}\n\n{notes}" if content_preferences.custom_notes else notes
        )
        updated = content_preferences.model_copy(update={"topic": headline, "custom_notes": custom_notes})

        self.topic_ideas = []
        self.messages = []
        self._session = None
        self.error = None
        self.phase = GenerationPhase.IDLE
        self._notify()
        return updated
