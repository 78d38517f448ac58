"""
Data models for Copysmith - Pydantic models for preferences, conversation
messages, topic ideas, usage records and sources.

Usage:
    from copysmith.models import ContentPreferences, ChatMessage
"""

from enum import Enum
from typing import Any, Literal, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from copysmith.options import (
    AUDIENCE_OPTIONS,
    CONTENT_ANGLE_OPTIONS,
    HOOK_STYLE_OPTIONS,
    NUM_IDEAS_OPTIONS,
    PERSONA_OPTIONS,
    PLATFORM_OPTIONS,
    PROMOTION_LEVEL_OPTIONS,
    TONE_OPTIONS,
    WORD_COUNT_OPTIONS,
    values,
)


class ReferenceType(str, Enum):
    """How strict the cited sources must be."""
    NONE = "none"                  # No references, pipeline skipped
    ANY = "any"                    # Reputable general sources
    PROFESSIONAL = "professional"  # Peer-reviewed / official sources only


class GenerationKind(str, Enum):
    """The two independently metered generation modes."""
    CONTENT = "content"
    TOPIC = "topic"


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------

class ContentPreferences(BaseModel):
    """User-chosen parameters for one piece of content."""
    model_config = ConfigDict(validate_assignment=True)

    topic: str = ""
    platform: str = PLATFORM_OPTIONS[0].value
    tone: str = TONE_OPTIONS[0].value
    word_count: str = WORD_COUNT_OPTIONS[0].value
    generate_hashtags: bool = False
    reference_type: ReferenceType = ReferenceType.NONE
    writer_persona: str = PERSONA_OPTIONS[0].value
    promotion_level: str = PROMOTION_LEVEL_OPTIONS[0].value
    creator_name: str = ""
    custom_notes: str = ""

    @model_validator(mode="before")
    @classmethod
    def _migrate_legacy_fields(cls, data: Any) -> Any:
        """Older saved preferences carried a boolean instead of reference_type."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for legacy in ("generateReferences", "generate_references"):
            if legacy in data:
                flag = data.pop(legacy)
                data.setdefault("reference_type", ReferenceType.ANY if flag else ReferenceType.NONE)
        if not data.get("reference_type"):
            data["reference_type"] = ReferenceType.NONE
        return data

    @field_validator("word_count")
    @classmethod
    def _known_word_count(cls, v: str) -> str:
        v = str(v).strip()
        if v not in values(WORD_COUNT_OPTIONS):
            raise ValueError(
                f"word_count must be one of {', '.join(values(WORD_COUNT_OPTIONS))}, got {v!r}"
            )
        return v

    @field_validator("promotion_level")
    @classmethod
    def _known_promotion_level(cls, v: str) -> str:
        v = str(v).strip()
        if v not in values(PROMOTION_LEVEL_OPTIONS):
            raise ValueError(f"promotion_level must be one of {values(PROMOTION_LEVEL_OPTIONS)}")
        return v

    @property
    def target_words(self) -> int:
        """Numeric word-count target."""
        return int(self.word_count)

    @property
    def wants_references(self) -> bool:
        return self.reference_type != ReferenceType.NONE


class TopicPreferences(BaseModel):
    """Parameters for a batch of topic ideas."""
    model_config = ConfigDict(validate_assignment=True)

    industry: str = ""
    audience: str = AUDIENCE_OPTIONS[0].value
    angle: str = CONTENT_ANGLE_OPTIONS[0].value
    hook: str = HOOK_STYLE_OPTIONS[0].value
    num_ideas: str = NUM_IDEAS_OPTIONS[0].value

    @field_validator("num_ideas")
    @classmethod
    def _known_num_ideas(cls, v: str) -> str:
        v = str(v).strip()
        if v not in values(NUM_IDEAS_OPTIONS):
            raise ValueError(f"num_ideas must be one of {values(NUM_IDEAS_OPTIONS)}")
        return v


def default_content_preferences() -> ContentPreferences:
    return ContentPreferences()


def default_topic_preferences() -> TopicPreferences:
    return TopicPreferences()


# ---------------------------------------------------------------------------
# Conversation and results
# ---------------------------------------------------------------------------

class ChatMessage(BaseModel):
    """One turn in the content conversation.

    A model message with empty content is the in-flight placeholder.
    """
    role: Literal["user", "model"]
    content: str = ""
    hashtags: str = ""
    references: str = ""
    word_count: Optional[int] = None

    @property
    def is_placeholder(self) -> bool:
        return self.role == "model" and not self.content


class TopicIdea(BaseModel):
    """A headline + description pair from the topic generator."""
    headline: str
    description: str


class Source(BaseModel):
    """A citable web source: search candidate or vetted pick. Never persisted."""
    model_config = ConfigDict(frozen=True)

    title: str = "Untitled"
    url: str


class DailyUsage(BaseModel):
    """Remaining generations for one kind on one local calendar day."""
    count: int
    date: str


class ParsedResponse(BaseModel):
    """A raw model response split into its display parts."""
    content: str = ""
    hashtags: str = ""
    references: str = ""
    word_count: Optional[int] = None

    def to_message(self) -> ChatMessage:
        return ChatMessage(role="model", **self.model_dump())


class WordBand(NamedTuple):
    """Acceptable word-count range around a target."""
    minimum: int
    maximum: int
    target: int

    def contains(self, count: int) -> bool:
        return self.minimum <= count <= self.maximum
