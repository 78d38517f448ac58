"""End-to-end tests for content, refinement and topic flows against a fake gateway."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from copysmith.agents.gemini_client import ProviderError
from copysmith.exceptions import GenerationError, QuotaExceededError, SourceResearchError
from copysmith.models import ChatMessage, ContentPreferences, GenerationKind, ReferenceType, TopicPreferences
from copysmith.orchestrator import (
    EMPTY_INDUSTRY_MESSAGE,
    EMPTY_REFINEMENT_MESSAGE,
    EMPTY_TOPIC_MESSAGE,
    GENERIC_FAILURE_MESSAGE,
    NOTHING_TO_REFINE_MESSAGE,
    GenerationOrchestrator,
    GenerationPhase,
)
from copysmith.usage_gate import UsageGate

SAAS_STREAM = [
    "Pricing is ",
    "strategy, not arithmetic.\n\n---HASH",
    "TAGS---\n#SaaS #Pricing #Growth\n\n**Word Count (est",
    "imated): 4**",
]

APA_SOURCES = "Smith, J. (2023). Value metrics. Pricing Weekly. https://example.org/value"


def saas_prefs(**overrides) -> ContentPreferences:
    base = dict(
        topic="SaaS pricing",
        platform="LinkedIn Article",
        word_count="500",
        reference_type=ReferenceType.NONE,
        generate_hashtags=True,
    )
    base.update(overrides)
    return ContentPreferences(**base)


def words(n: int) -> str:
    return " ".join(["word"] * n)


class TestStandardStreaming:
    @pytest.mark.asyncio
    async def test_saas_pricing_end_to_end(self, orchestrator, gateway):
        """LinkedIn 500-word piece with hashtags and no references."""
        gateway.streams.append(SAAS_STREAM)

        ok = await orchestrator.generate_content(saas_prefs())

        assert ok is True
        assert gateway.model_calls == 1
        assert len(gateway.sessions[0].streamed) == 1
        assert gateway.sessions[0].sent == []
        gateway.search_sources.assert_not_called()

        user, model = orchestrator.messages
        assert user.role == "user"
        assert '**"SaaS pricing"**' in user.content
        assert model.content == "Pricing is strategy, not arithmetic."
        assert model.hashtags == "#SaaS #Pricing #Growth"
        assert model.references == ""
        assert model.word_count == 4

        assert orchestrator.phase == GenerationPhase.DONE
        assert orchestrator.error is None
        assert orchestrator.is_loading is False
        assert orchestrator.is_streaming is False
        assert orchestrator.remaining(GenerationKind.CONTENT) == 9

    @pytest.mark.asyncio
    async def test_session_uses_persona_system_instruction(self, orchestrator, gateway):
        gateway.streams.append(["Body"])
        await orchestrator.generate_content(saas_prefs(writer_persona="Storyteller"))
        assert "persona of a Storyteller" in gateway.sessions[0].system_instruction

    @pytest.mark.asyncio
    async def test_updates_during_stream(self, gateway, usage_gate):
        snapshots = []
        orchestrator = GenerationOrchestrator(
            gateway, usage_gate=usage_gate,
            on_update=lambda o: snapshots.append(
                (o.is_loading, o.is_streaming, o.messages[-1].content if o.messages else None)),
        )
        gateway.streams.append(["Hello ", "world"])

        await orchestrator.generate_content(saas_prefs())

        # Placeholder first, then one update per chunk, then the final one
        assert snapshots[0] == (True, False, "")
        assert (True, True, "Hello") in snapshots
        assert (True, True, "Hello world") in snapshots
        assert snapshots[-1] == (False, False, "Hello world")

    @pytest.mark.asyncio
    async def test_final_line_resembling_marker_is_kept(self, orchestrator, gateway):
        gateway.streams.append(["Three habits every writer should keep.\n", "Wo", "rd"])
        snapshots = []
        orchestrator.on_update = lambda o: snapshots.append(o.messages[-1].content)

        await orchestrator.generate_content(saas_prefs())

        assert "Three habits every writer should keep." in snapshots
        assert orchestrator.messages[-1].content == "Three habits every writer should keep.\nWord"

    @pytest.mark.asyncio
    async def test_clears_previous_topic_ideas(self, orchestrator, gateway):
        gateway.generate_json.return_value = [{"headline": "H", "description": "D"}]
        await orchestrator.generate_topics(TopicPreferences(industry="SaaS"))
        assert orchestrator.topic_ideas

        gateway.streams.append(["Body"])
        await orchestrator.generate_content(saas_prefs())
        assert orchestrator.topic_ideas == []


class TestLongForm:
    """word_count "2500" sends whole turns and corrects length up to 3 times."""

    @pytest.mark.asyncio
    async def test_in_band_first_attempt_is_one_call(self, orchestrator, gateway):
        gateway.replies.append(words(2500) + "\n\n**Word Count: 2500**")

        assert await orchestrator.generate_content(saas_prefs(word_count="2500")) is True
        assert gateway.model_calls == 1
        assert gateway.sessions[0].streamed == []
        assert orchestrator.messages[-1].word_count == 2500

    @pytest.mark.asyncio
    async def test_too_short_then_in_band(self, orchestrator, gateway):
        gateway.replies.extend([words(1500), words(2400)])

        await orchestrator.generate_content(saas_prefs(word_count="2500"))

        session = gateway.sessions[0]
        assert len(session.sent) == 2
        assert "too short at 1500 words" in session.sent[1]
        assert "between 2200 and 2800 words" in session.sent[1]
        assert len(orchestrator.messages[-1].content.split()) == 2400
        assert orchestrator.phase == GenerationPhase.DONE

    @pytest.mark.asyncio
    async def test_never_in_band_shows_last_attempt(self, orchestrator, gateway):
        gateway.replies.extend([words(3200), words(3100), words(2000)])

        ok = await orchestrator.generate_content(saas_prefs(word_count="2500"))

        session = gateway.sessions[0]
        assert ok is True
        assert len(session.sent) == 3
        assert "too long at 3200 words" in session.sent[1]
        assert "too long at 3100 words" in session.sent[2]
        assert len(orchestrator.messages[-1].content.split()) == 2000
        assert orchestrator.remaining(GenerationKind.CONTENT) == 9

    @pytest.mark.asyncio
    async def test_band_counts_content_only(self, orchestrator, gateway):
        """Hashtags and references do not count toward the band."""
        reply = words(2100) + "\n\n---HASHTAGS---\n" + " ".join(["#tag"] * 200)
        gateway.replies.extend([reply, words(2300)])

        await orchestrator.generate_content(saas_prefs(word_count="2500"))
        assert len(gateway.sessions[0].sent) == 2

    @pytest.mark.asyncio
    async def test_first_attempt_carries_regeneration_suffix(self, orchestrator, gateway):
        gateway.replies.append(words(2500))
        await orchestrator.regenerate_content(saas_prefs(word_count="2500"))
        assert "Generate a new version of this content" in gateway.sessions[0].sent[0]

    @pytest.mark.asyncio
    async def test_error_mid_loop_aborts(self, orchestrator, gateway):
        gateway.chat_error = ProviderError("Gemini", "429 quota")
        ok = await orchestrator.generate_content(saas_prefs(word_count="2500"))
        assert ok is False
        assert gateway.model_calls == 1
        assert isinstance(orchestrator.last_exception, GenerationError)


class TestSources:
    @pytest.mark.asyncio
    async def test_sources_feed_the_prompt(self, orchestrator, gateway):
        orchestrator.researcher = MagicMock(find_sources=AsyncMock(return_value=APA_SOURCES))
        gateway.streams.append(["Body\n---References---\n" + APA_SOURCES])

        await orchestrator.generate_content(saas_prefs(reference_type=ReferenceType.ANY))

        prompt = gateway.sessions[0].streamed[0]
        assert "# MANDATORY SOURCES" in prompt
        assert APA_SOURCES in prompt
        assert orchestrator.messages[-1].references == APA_SOURCES

    @pytest.mark.asyncio
    async def test_note_feeds_fallback_block(self, orchestrator, gateway):
        note = "(Note: An initial web search did not find any citable sources for this topic. The model will rely on its general knowledge.)"
        gateway.search_sources.return_value = []
        gateway.streams.append(["Body"])

        await orchestrator.generate_content(saas_prefs(reference_type=ReferenceType.ANY))

        prompt = gateway.sessions[0].streamed[0]
        assert "# REFERENCES" in prompt
        assert note in prompt

    @pytest.mark.asyncio
    async def test_source_failure_is_generation_failure(self, orchestrator, gateway):
        gateway.search_sources.side_effect = ProviderError("Gemini", "timeout")

        ok = await orchestrator.generate_content(saas_prefs(reference_type=ReferenceType.PROFESSIONAL))

        assert ok is False
        assert isinstance(orchestrator.last_exception, SourceResearchError)
        assert orchestrator.error == GENERIC_FAILURE_MESSAGE
        assert gateway.model_calls == 0
        assert orchestrator.remaining(GenerationKind.CONTENT) == 10


class TestEntryGuard:
    @pytest.mark.asyncio
    async def test_empty_topic_rejected_without_calls(self, orchestrator, gateway):
        gateway.streams.append(["Body"])
        await orchestrator.generate_content(saas_prefs())
        before = list(orchestrator.messages)

        ok = await orchestrator.generate_content(saas_prefs(topic="   "))

        assert ok is False
        assert orchestrator.error == EMPTY_TOPIC_MESSAGE
        assert orchestrator.phase == GenerationPhase.FAILED
        assert len(gateway.sessions) == 1
        assert orchestrator.messages == before

    @pytest.mark.asyncio
    async def test_quota_exhausted(self, gateway, day_store):
        orchestrator = GenerationOrchestrator(gateway, usage_gate=UsageGate(day_store, limit=1))
        gateway.streams.extend([["One"], ["Two"]])

        assert await orchestrator.generate_content(saas_prefs()) is True
        assert await orchestrator.generate_content(saas_prefs()) is False

        assert orchestrator.error == "You have reached your daily limit of 1 content generations."
        assert isinstance(orchestrator.last_exception, QuotaExceededError)
        assert gateway.model_calls == 1


class TestFailureRollback:
    @pytest.mark.asyncio
    async def test_stream_error_keeps_only_user_turns(self, orchestrator, gateway):
        gateway.chat_error = ProviderError("Gemini", "500 Internal")

        ok = await orchestrator.generate_content(saas_prefs())

        assert ok is False
        assert [m.role for m in orchestrator.messages] == ["user"]
        assert orchestrator.error == GENERIC_FAILURE_MESSAGE
        assert orchestrator.phase == GenerationPhase.FAILED
        assert orchestrator.has_session is False
        assert orchestrator.is_loading is False
        assert isinstance(orchestrator.last_exception, GenerationError)
        assert isinstance(orchestrator.last_exception.__cause__, ProviderError)
        assert orchestrator.remaining(GenerationKind.CONTENT) == 10


class TestRegenerate:
    @pytest.mark.asyncio
    async def test_regenerate_opens_new_session_with_suffix(self, orchestrator, gateway):
        gateway.streams.extend([["First"], ["Second"]])

        await orchestrator.generate_content(saas_prefs())
        await orchestrator.regenerate_content(saas_prefs())

        assert len(gateway.sessions) == 2
        assert "Generate a new version" not in gateway.sessions[0].streamed[0]
        assert gateway.sessions[1].streamed[0].endswith(
            "Use a different hook, structure, or perspective from any previous attempts.")
        assert len(orchestrator.messages) == 2
        assert orchestrator.messages[-1].content == "Second"
        assert orchestrator.remaining(GenerationKind.CONTENT) == 8

    @pytest.mark.asyncio
    async def test_regenerate_after_restore(self, orchestrator, gateway):
        """Autosaved conversations have no live session but can still be regenerated."""
        orchestrator.restore(
            [ChatMessage(role="user", content="brief"), ChatMessage(role="model", content="Saved body")], [])
        assert orchestrator.has_content is True
        assert orchestrator.has_session is False
        gateway.streams.append(["Fresh body"])

        assert await orchestrator.regenerate_content(saas_prefs()) is True
        assert orchestrator.messages[-1].content == "Fresh body"
        assert orchestrator.has_session is True

    @pytest.mark.asyncio
    async def test_regenerate_after_failed_refine(self, orchestrator, gateway):
        gateway.streams.append(SAAS_STREAM)
        await orchestrator.generate_content(saas_prefs())
        gateway.sessions[0].error = ProviderError("Gemini", "stream reset")
        await orchestrator.refine_content("Shorter")
        assert orchestrator.has_session is False
        assert orchestrator.has_content is True
        gateway.streams.append(["Second take"])

        assert await orchestrator.regenerate_content(saas_prefs()) is True
        assert len(gateway.sessions) == 2
        assert orchestrator.messages[-1].content == "Second take"

    def test_placeholder_is_not_content(self, orchestrator):
        orchestrator.restore([ChatMessage(role="user", content="brief"), ChatMessage(role="model")], [])
        assert orchestrator.has_content is False


class TestRefine:
    @pytest.mark.asyncio
    async def test_refine_continues_same_session(self, orchestrator, gateway):
        gateway.streams.extend([SAAS_STREAM, ["Pricing is strategy!\n\n---HASHTAGS---\n#SaaS"]])
        await orchestrator.generate_content(saas_prefs())

        ok = await orchestrator.refine_content("Make it punchier")

        assert ok is True
        assert len(gateway.sessions) == 1
        session = gateway.sessions[0]
        assert len(session.streamed) == 2
        assert "Pricing is strategy, not arithmetic." in session.streamed[1]
        assert '"Make it punchier"' in session.streamed[1]
        assert [m.role for m in orchestrator.messages] == ["user", "model", "user", "model"]
        assert orchestrator.messages[2].content == "Make it punchier"
        assert orchestrator.messages[3].content == "Pricing is strategy!"
        assert orchestrator.remaining(GenerationKind.CONTENT) == 8

    @pytest.mark.asyncio
    async def test_refine_failure_drops_last_two(self, orchestrator, gateway):
        gateway.streams.append(SAAS_STREAM)
        await orchestrator.generate_content(saas_prefs())
        gateway.sessions[0].error = ProviderError("Gemini", "stream reset")

        ok = await orchestrator.refine_content("Shorter")

        assert ok is False
        assert len(orchestrator.messages) == 2
        assert orchestrator.messages[-1].content == "Pricing is strategy, not arithmetic."
        assert orchestrator.error == GENERIC_FAILURE_MESSAGE
        assert orchestrator.has_session is False
        assert orchestrator.remaining(GenerationKind.CONTENT) == 9

    @pytest.mark.asyncio
    async def test_refine_without_session(self, orchestrator, gateway):
        ok = await orchestrator.refine_content("Shorter")
        assert ok is False
        assert orchestrator.error == NOTHING_TO_REFINE_MESSAGE
        assert gateway.model_calls == 0

    @pytest.mark.asyncio
    async def test_refine_empty_instruction(self, orchestrator, gateway):
        gateway.streams.append(["Body"])
        await orchestrator.generate_content(saas_prefs())

        assert await orchestrator.refine_content("  ") is False
        assert orchestrator.error == EMPTY_REFINEMENT_MESSAGE
        assert len(orchestrator.messages) == 2


class TestTopics:
    @pytest.mark.asyncio
    async def test_generate_topics(self, orchestrator, gateway):
        gateway.generate_json.return_value = [
            {"headline": "Why SaaS pricing pages lie", "description": "A look at anchoring."},
            {"headline": "Usage-based pricing 101", "description": "How metering works."},
        ]

        ideas = await orchestrator.generate_topics(TopicPreferences(industry="B2B SaaS", num_ideas="5"))

        assert [i.headline for i in ideas] == ["Why SaaS pricing pages lie", "Usage-based pricing 101"]
        assert orchestrator.topic_ideas == ideas
        assert orchestrator.remaining(GenerationKind.TOPIC) == 9
        assert orchestrator.remaining(GenerationKind.CONTENT) == 10
        prompt = gateway.generate_json.call_args.args[0]
        assert "generate 5 content topic ideas" in prompt

    @pytest.mark.asyncio
    async def test_topics_clear_conversation(self, orchestrator, gateway):
        gateway.streams.append(["Body"])
        await orchestrator.generate_content(saas_prefs())
        gateway.generate_json.return_value = [{"headline": "H", "description": "D"}]

        await orchestrator.generate_topics(TopicPreferences(industry="SaaS"))
        assert orchestrator.messages == []
        assert orchestrator.has_session is False

    @pytest.mark.asyncio
    async def test_empty_industry_rejected(self, orchestrator, gateway):
        assert await orchestrator.generate_topics(TopicPreferences(industry="")) == []
        assert orchestrator.error == EMPTY_INDUSTRY_MESSAGE
        gateway.generate_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_topic_failure(self, orchestrator, gateway):
        gateway.generate_json.side_effect = ProviderError("Gemini", "bad gateway")

        assert await orchestrator.generate_topics(TopicPreferences(industry="SaaS")) == []
        assert orchestrator.error == GENERIC_FAILURE_MESSAGE
        assert isinstance(orchestrator.last_exception, GenerationError)
        assert orchestrator.remaining(GenerationKind.TOPIC) == 10

    @pytest.mark.asyncio
    async def test_malformed_topic_items_fail(self, orchestrator, gateway):
        gateway.generate_json.return_value = [{"headline": "No description"}]
        assert await orchestrator.generate_topics(TopicPreferences(industry="SaaS")) == []
        assert orchestrator.phase == GenerationPhase.FAILED


class TestSelectTopic:
    def test_select_topic_seeds_content_preferences(self, orchestrator):
        topic_prefs = TopicPreferences(industry="Fintech", audience="Students",
                                       angle="How-to Guide", hook="Question-Based")
        content = ContentPreferences(topic="old", custom_notes="Keep it light")

        updated = orchestrator.select_topic("Budgeting apps compared", topic_prefs, content)

        assert updated.topic == "Budgeting apps compared"
        assert updated.custom_notes.startswith("Keep it light\n\nContext from Topic Idea Generation:\n")
        assert "- Industry/Niche: Fintech" in updated.custom_notes
        assert content.topic == "old"

    def test_select_topic_without_existing_notes(self, orchestrator):
        updated = orchestrator.select_topic("H", TopicPreferences(industry="X"), ContentPreferences())
        assert updated.custom_notes.startswith("Context from Topic Idea Generation:")

    def test_select_topic_clears_state(self, orchestrator):
        orchestrator.topic_ideas = [MagicMock()]
        orchestrator.select_topic("H", TopicPreferences(industry="X"), ContentPreferences())
        assert orchestrator.topic_ideas == []
        assert orchestrator.messages == []
        assert orchestrator.phase == GenerationPhase.IDLE
