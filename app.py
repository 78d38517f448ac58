"""
Copysmith - AI content and topic-idea generator
Two tabs: Topic Idea Generator and Content Generator.

Run with: streamlit run app.py
"""

import asyncio
import html

import streamlit as st
from dotenv import load_dotenv
from pydantic import ValidationError

# Load environment variables
load_dotenv()

from copysmith.agents.gemini_client import GeminiClient, LLMNotConfiguredError
from copysmith.config import config
from copysmith.models import (
    ChatMessage,
    ContentPreferences,
    GenerationKind,
    ReferenceType,
    TopicIdea,
    TopicPreferences,
    default_content_preferences,
    default_topic_preferences,
)
from copysmith.options import (
    AUDIENCE_OPTIONS,
    CONTENT_ANGLE_OPTIONS,
    HOOK_STYLE_OPTIONS,
    NUM_IDEAS_OPTIONS,
    PERSONA_OPTIONS,
    PLATFORM_OPTIONS,
    PROMOTION_LEVEL_OPTIONS,
    REFERENCE_TYPE_OPTIONS,
    TONE_OPTIONS,
    WORD_COUNT_OPTIONS,
    label_for,
    values,
)
from copysmith.orchestrator import GenerationOrchestrator, GenerationPhase
from copysmith.storage import KeyValueStore
from copysmith.utils.logging import configure_logging, get_logger

configure_logging(log_dir=str(config.paths.LOGS_DIR), level=config.LOG_LEVEL)
logger = get_logger("copysmith.app")

st.set_page_config(
    page_title="Copysmith",
    page_icon=None,
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown("""
<style>
    .main-header { font-size: 2.2rem; font-weight: 700; margin-bottom: 0; }
    .sub-header { color: #a1a1aa; margin-top: 0; }
    .topic-card { border: 1px solid #3f3f46; border-radius: 10px; padding: 1rem; margin-bottom: 0.5rem; }
    .topic-card-title { font-weight: 600; margin-bottom: 0.25rem; }
    .topic-card-desc { color: #a1a1aa; font-size: 0.9rem; }
</style>
""", unsafe_allow_html=True)

TABS = {"topic": "Topic Idea Generator", "content": "Content Generator"}

# Autosave keys
TAB_KEY = "autosave_activeTab"
CONTENT_PREFS_KEY = "autosave_contentPreferences"
TOPIC_PREFS_KEY = "autosave_topicPreferences"
CHAT_KEY = "autosave_chatHistory"
IDEAS_KEY = "autosave_topicIdeas"


def safe_html(text: str) -> str:
    """Escape HTML entities in dynamic text before injection into unsafe_allow_html."""
    return html.escape(str(text)) if text else ""


def get_store() -> KeyValueStore:
    if "store" not in st.session_state:
        st.session_state.store = KeyValueStore()
    return st.session_state.store


def _load_model(store: KeyValueStore, key: str, model, default):
    raw = store.get(key)
    if raw is None:
        return default
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        logger.warning("autosave_unreadable", key=key, error=str(e))
        return default


def _load_list(store: KeyValueStore, key: str, model) -> list:
    try:
        return [model.model_validate(item) for item in store.get(key) or []]
    except (ValidationError, TypeError) as e:
        logger.warning("autosave_unreadable", key=key, error=str(e))
        return []


def init_session_state():
    """Initialize session state from the autosaved UI state."""
    if "initialized" in st.session_state:
        return
    store = get_store()
    tab = store.get(TAB_KEY, "content")
    st.session_state.active_tab = tab if tab in TABS else "content"
    st.session_state.content_prefs = _load_model(
        store, CONTENT_PREFS_KEY, ContentPreferences, default_content_preferences())
    st.session_state.topic_prefs = _load_model(
        store, TOPIC_PREFS_KEY, TopicPreferences, default_topic_preferences())
    st.session_state.saved_messages = _load_list(store, CHAT_KEY, ChatMessage)
    st.session_state.saved_ideas = _load_list(store, IDEAS_KEY, TopicIdea)
    # Bumped to re-seed form widgets from content_prefs
    st.session_state.form_version = 0
    st.session_state.initialized = True


def get_orchestrator() -> GenerationOrchestrator:
    if "orchestrator" not in st.session_state:
        try:
            client = GeminiClient()
        except LLMNotConfiguredError as e:
            st.error(str(e))
            st.stop()
        orchestrator = GenerationOrchestrator(client)
        orchestrator.restore(st.session_state.saved_messages, st.session_state.saved_ideas)
        st.session_state.orchestrator = orchestrator
    return st.session_state.orchestrator


def autosave():
    store = get_store()
    orchestrator = st.session_state.get("orchestrator")
    store.set(TAB_KEY, st.session_state.active_tab)
    store.set(CONTENT_PREFS_KEY, st.session_state.content_prefs.model_dump(mode="json"))
    store.set(TOPIC_PREFS_KEY, st.session_state.topic_prefs.model_dump(mode="json"))
    if orchestrator is not None:
        # Placeholders are never persisted
        messages = [m for m in orchestrator.messages if not m.is_placeholder]
        store.set(CHAT_KEY, [m.model_dump(mode="json") for m in messages])
        store.set(IDEAS_KEY, [i.model_dump(mode="json") for i in orchestrator.topic_ideas])


def option_select(label: str, options, current: str, key: str) -> str:
    vals = values(options)
    index = vals.index(current) if current in vals else 0
    return st.selectbox(label, vals, index=index, format_func=lambda v: label_for(options, v), key=key)


def run_action(action, placeholder):
    """Run one orchestrator coroutine, re-rendering the conversation as it changes."""
    orchestrator = get_orchestrator()
    orchestrator.on_update = lambda o: render_conversation(o, placeholder)
    try:
        asyncio.run(action(orchestrator))
    finally:
        orchestrator.on_update = None
    autosave()
    st.rerun()


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def busy_label(orchestrator: GenerationOrchestrator) -> str:
    if orchestrator.phase == GenerationPhase.SOURCES_PENDING:
        return "Researching sources..."
    if orchestrator.phase == GenerationPhase.RETRYING_LENGTH:
        return "Adjusting length..."
    return "Writing..."


def render_message(message: ChatMessage, orchestrator: GenerationOrchestrator):
    with st.chat_message("user" if message.role == "user" else "assistant"):
        if message.is_placeholder:
            if orchestrator.is_loading and not orchestrator.is_streaming:
                st.caption(busy_label(orchestrator))
            return
        st.markdown(message.content)
        if message.references:
            st.markdown("**References**")
            st.text(message.references)
        if message.hashtags:
            st.markdown("**Hashtags**")
            st.code(message.hashtags, language=None)
        if message.word_count is not None:
            st.caption(f"Word count (estimated): {message.word_count}")


def render_conversation(orchestrator: GenerationOrchestrator, placeholder):
    with placeholder.container():
        for message in orchestrator.messages:
            render_message(message, orchestrator)


def usage_caption(orchestrator: GenerationOrchestrator, kind: GenerationKind, limit: int):
    remaining = orchestrator.remaining(kind)
    st.caption(f"{remaining} of {limit} generations left today")
    return remaining


# ---------------------------------------------------------------------------
# Tabs
# ---------------------------------------------------------------------------

def content_tab(orchestrator: GenerationOrchestrator):
    prefs: ContentPreferences = st.session_state.content_prefs
    v = st.session_state.form_version

    left, right = st.columns([4, 8])
    with left:
        topic = st.text_area("Topic", value=prefs.topic, key=f"topic_{v}",
                             placeholder="e.g. SaaS pricing strategies")
        platform = option_select("Platform", PLATFORM_OPTIONS, prefs.platform, f"platform_{v}")
        tone = option_select("Tone", TONE_OPTIONS, prefs.tone, f"tone_{v}")
        word_count = option_select("Length", WORD_COUNT_OPTIONS, prefs.word_count, f"word_count_{v}")
        persona = option_select("Writer Persona", PERSONA_OPTIONS, prefs.writer_persona, f"persona_{v}")
        reference_type = option_select("References", REFERENCE_TYPE_OPTIONS,
                                       prefs.reference_type.value, f"reference_type_{v}")
        hashtags = st.checkbox("Generate hashtags", value=prefs.generate_hashtags, key=f"hashtags_{v}")
        creator_name = st.text_input("Creator / Brand Name", value=prefs.creator_name, key=f"creator_{v}")
        promotion = option_select("Self-Promotion", PROMOTION_LEVEL_OPTIONS,
                                  prefs.promotion_level, f"promotion_{v}")
        custom_notes = st.text_area("Additional Notes", value=prefs.custom_notes, key=f"notes_{v}")

        updated = ContentPreferences(
            topic=topic,
            platform=platform,
            tone=tone,
            word_count=word_count,
            generate_hashtags=hashtags,
            reference_type=ReferenceType(reference_type),
            writer_persona=persona,
            promotion_level=promotion,
            creator_name=creator_name,
            custom_notes=custom_notes,
        )
        if updated != prefs:
            st.session_state.content_prefs = updated
            autosave()

        remaining = usage_caption(orchestrator, GenerationKind.CONTENT,
                                  config.usage.CONTENT_GENERATION_LIMIT)
        generate = st.button(
            "Generate Content",
            type="primary",
            use_container_width=True,
            disabled=not topic.strip() or remaining <= 0 or orchestrator.is_loading,
        )

    with right:
        if orchestrator.error:
            st.error(orchestrator.error)
        placeholder = st.empty()
        render_conversation(orchestrator, placeholder)

        if generate:
            run_action(lambda o: o.generate_content(updated), placeholder)

        if orchestrator.has_content:
            if st.button("Regenerate", disabled=remaining <= 0 or not topic.strip(), key="regenerate_btn"):
                run_action(lambda o: o.regenerate_content(updated), placeholder)
        # Refinement continues the live chat; a reload or a failed refinement ends it
        if orchestrator.has_session and orchestrator.has_content:
            with st.form("refine_form", clear_on_submit=True):
                instruction = st.text_input("Refine this content",
                                            placeholder="e.g. Make the intro punchier")
                if st.form_submit_button("Refine", disabled=remaining <= 0) and instruction.strip():
                    run_action(lambda o: o.refine_content(instruction), placeholder)


def topic_tab(orchestrator: GenerationOrchestrator):
    prefs: TopicPreferences = st.session_state.topic_prefs

    left, right = st.columns([4, 8])
    with left:
        industry = st.text_input("Industry / Niche", value=prefs.industry,
                                 placeholder="e.g. B2B SaaS", key="industry")
        audience = option_select("Target Audience", AUDIENCE_OPTIONS, prefs.audience, "audience")
        angle = option_select("Content Angle", CONTENT_ANGLE_OPTIONS, prefs.angle, "angle")
        hook = option_select("Engagement Hook", HOOK_STYLE_OPTIONS, prefs.hook, "hook")
        num_ideas = option_select("Number of Ideas", NUM_IDEAS_OPTIONS, prefs.num_ideas, "num_ideas")

        updated = TopicPreferences(industry=industry, audience=audience, angle=angle,
                                   hook=hook, num_ideas=num_ideas)
        if updated != prefs:
            st.session_state.topic_prefs = updated
            autosave()

        remaining = usage_caption(orchestrator, GenerationKind.TOPIC,
                                  config.usage.TOPIC_GENERATION_LIMIT)
        generate = st.button(
            "Generate Ideas",
            type="primary",
            use_container_width=True,
            disabled=not industry.strip() or remaining <= 0 or orchestrator.is_loading,
        )

    with right:
        if orchestrator.error:
            st.error(orchestrator.error)
        if generate:
            with st.spinner("Brainstorming topic ideas..."):
                run_action(lambda o: o.generate_topics(updated), st.empty())

        for i, idea in enumerate(orchestrator.topic_ideas):
            st.markdown(f'''
            <div class="topic-card">
                <div class="topic-card-title">{safe_html(idea.headline)}</div>
                <div class="topic-card-desc">{safe_html(idea.description)}</div>
            </div>
            ''', unsafe_allow_html=True)
            if st.button("Use this topic", key=f"use_topic_{i}"):
                st.session_state.content_prefs = orchestrator.select_topic(
                    idea.headline, updated, st.session_state.content_prefs)
                st.session_state.form_version += 1
                st.session_state.active_tab = "content"
                autosave()
                st.rerun()


def main():
    init_session_state()
    orchestrator = get_orchestrator()

    st.markdown('<p class="main-header">Copysmith</p>', unsafe_allow_html=True)
    st.markdown('<p class="sub-header">Platform-ready content and topic ideas, grounded in real sources</p>',
                unsafe_allow_html=True)

    with st.sidebar:
        with st.expander("Settings", expanded=False):
            st.caption(f"Gemini: {'OK' if config.api.resolve_key() else 'Missing'}")
            st.caption(f"Model: {config.models.CONTENT_MODEL}")
            st.caption(f"Daily limit: {config.usage.DAILY_GENERATION_LIMIT} per kind")

    keys = list(TABS)
    tab = st.radio(
        "Mode",
        keys,
        index=keys.index(st.session_state.active_tab),
        format_func=lambda k: TABS[k],
        horizontal=True,
        label_visibility="collapsed",
    )
    if tab != st.session_state.active_tab:
        st.session_state.active_tab = tab
        autosave()

    if tab == "content":
        content_tab(orchestrator)
    else:
        topic_tab(orchestrator)


if __name__ == "__main__":
    main()
