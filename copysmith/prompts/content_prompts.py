"""
Content prompt templates.

The main content prompt is assembled from named slots (mission, sources,
preferences, output structure, example). Which optional slots are enabled is
described once by a PromptLayout; step numbers and the example's shape are
derived from that layout so they can never disagree with each other.

Use build_content_prompt(preferences, sources) for the first turn of a chat
session and the build_* helpers below for follow-up turns.
"""

import math
from dataclasses import dataclass
from typing import List, Optional

from jinja2 import BaseLoader, Environment

from copysmith.models import ChatMessage, ContentPreferences, ReferenceType, TopicPreferences, WordBand
from copysmith.response_parser import HASHTAG_SEPARATOR, REFERENCE_SEPARATOR, join_sections

# Plain-text prompts, nothing to escape
_env = Environment(loader=BaseLoader(), autoescape=False, trim_blocks=True, lstrip_blocks=True)

NOTE_PREFIX = "(Note:"
ERROR_PREFIX = "There was an error"
NO_REFERENCES_FOUND = "No high-quality references matching the topic were found."

REGENERATION_INSTRUCTION = (
    "**Instruction:** Generate a new version of this content. Use a different hook, "
    "structure, or perspective from any previous attempts."
)

WORD_COUNT_EXAMPLE = 48


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PromptStep:
    title: str
    body: str


MAIN_CONTENT_STEP = PromptStep(
    "Main Content",
    "- Write the full piece of content here, adhering to all the user preferences above.",
)

REFERENCE_STEPS = (
    PromptStep(
        "Separator (References)",
        "- After the main content, you MUST place this exact separator on a new line:\n"
        f"{REFERENCE_SEPARATOR}",
    ),
    PromptStep(
        "References List",
        "- Following the separator, list all the sources you used.\n"
        "- **If you have a list of sources, format citations in APA style, and you MUST write down the full URL.**\n"
        "- **If you have a note about sources, reproduce that note here.**",
    ),
)

HASHTAG_STEPS = (
    PromptStep(
        "Separator (Hashtags)",
        "- After the content (and references, if any), you MUST place this exact separator on a new line:\n"
        f"{HASHTAG_SEPARATOR}",
    ),
    PromptStep(
        "Hashtags List",
        "- Following the separator, provide 10-15 relevant, high-traffic hashtags.\n"
        "- They should be separated by spaces, like this: #hashtag1 #hashtag2 #hashtag3",
    ),
)

EXAMPLE_BODY = (
    "Rise and shine! Starting your day with a simple morning walk can be a total game-changer "
    "for your physical and mental well-being. It's not about intense exercise; it's about gentle "
    "movement and fresh air. Recent studies show that just 20-30 minutes can boost your energy "
    "levels more than a cup of coffee and improve your mood."
)
EXAMPLE_REFERENCE = (
    "Walker, J. (2023). The Art of the Morning Stroll. Wellness Publications. "
    "https://example.com/study-on-walking"
)
EXAMPLE_HASHTAGS = (
    "#MorningWalk #SunriseStroll #GetMoving #MentalHealthMatters "
    "#WellnessJourney #HealthyHabits #DailyRoutine"
)


@dataclass(frozen=True)
class PromptLayout:
    """Which optional sections of the content prompt are enabled.

    sources_mode is "mandatory" when a real source list is available,
    "fallback" when references were requested but only a note (or nothing)
    came back, and None when references are off.
    """
    include_references: bool
    include_hashtags: bool
    sources_mode: Optional[str] = None
    source_note: str = ""

    @classmethod
    def for_request(cls, prefs: ContentPreferences, sources: Optional[str]) -> "PromptLayout":
        if not prefs.wants_references:
            return cls(include_references=False, include_hashtags=prefs.generate_hashtags)

        has_sources = bool(sources) and not sources.startswith(ERROR_PREFIX)
        is_note = has_sources and sources.startswith(NOTE_PREFIX)
        if has_sources and not is_note:
            return cls(True, prefs.generate_hashtags, "mandatory")
        return cls(True, prefs.generate_hashtags, "fallback", sources if is_note else NO_REFERENCES_FOUND)

    @property
    def steps(self) -> List[PromptStep]:
        steps = [MAIN_CONTENT_STEP]
        if self.include_references:
            steps.extend(REFERENCE_STEPS)
        if self.include_hashtags:
            steps.extend(HASHTAG_STEPS)
        return steps

    @property
    def example_preferences(self) -> List[str]:
        return [
            '- Topic: "Benefits of morning walks"',
            '- Platform: "Blog Post"',
            f'- References: "{"Yes" if self.include_references else "No"}"',
            f'- Hashtags: "{"Yes" if self.include_hashtags else "No"}"',
        ]

    @property
    def example_output(self) -> str:
        output = join_sections(
            EXAMPLE_BODY,
            hashtags=EXAMPLE_HASHTAGS if self.include_hashtags else "",
            references=EXAMPLE_REFERENCE if self.include_references else "",
        )
        return f"{output}\n\n**Word Count (estimated): {WORD_COUNT_EXAMPLE}**"


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

_CONTENT_TEMPLATE = _env.from_string("""\
# MISSION
Your mission is to act as an expert-level {{ p.writer_persona }} and generate a high-quality piece of content based on the user's detailed specifications. You must follow all instructions precisely, especially the output format and the word count.
{% if layout.sources_mode == "mandatory" %}

# MANDATORY SOURCES
- You MUST synthesize information *from the provided sources* to construct your response.
- Do NOT include information that cannot be directly backed up by these sources.
- Weave the information from the sources together into a coherent, original piece of content. Do not simply copy-paste sections.
- After writing the main content, you MUST reproduce the exact list of sources provided below under the "{{ reference_separator }}" separator.

**Sources List:**
{{ sources }}
{% elif layout.sources_mode == "fallback" %}

# REFERENCES
- An automated search for sources was conducted.
- {{ layout.source_note }}
- You must rely on your general knowledge. When you do, please state that external sources could not be verified for this topic.
{% endif %}

# USER PREFERENCES
- **Content Topic:** "{{ p.topic }}"
- **Target Platform:** {{ p.platform }} (Adapt the style, length, and formatting to be optimal for this platform.)
- **Desired Tone of Voice:** {{ p.tone }}. The content should feel authentic and engaging for the target audience.
- **Word Count Target:** Approximately {{ p.word_count }} words.
   - The acceptable range is **{{ low }} - {{ high }} words**.
   - Do not exceed this range under any circumstance.
   - Plan your content before writing:
       - Introduction: ~{{ intro }} words
       - Body (split into 3-5 sections): ~{{ body }} words total
       - Conclusion: ~{{ conclusion }} words
   - End the text immediately once you reach the target range. Do NOT continue adding content or extra sections.
   - After finishing, provide an **estimated Word Count** in this format on the last line:
     **Word Count (estimated): [number]**
   - If the estimated count is outside the allowed range, rewrite and adjust until it fits.
- **Creator/Brand Name:** {{ p.creator_name or "Not provided" }}.
- **Self-Promotion Level:** {{ p.promotion_level }}% of the content should be dedicated to promoting the creator/brand. If 0%, do not mention them at all. If greater than 0%, seamlessly integrate the promotion within the content, making it feel natural and not like a jarring advertisement.
- **Include Hashtags:** {{ "Yes." if p.generate_hashtags else "No." }}
- **Include References:** {% if layout.include_references %}Yes. You must list sources in APA style with URLs. The user specifically requested {{ strictness }} sources.{% else %}No.{% endif %}

- **Additional Instructions:** {{ p.custom_notes or "None" }}

# OUTPUT STRUCTURE
You MUST follow this structure precisely. Do not add any commentary, introductions, or pleasantries before or after the content.
{% for step in layout.steps %}

## {{ loop.index }}. {{ step.title }}:
{{ step.body }}
{% endfor %}

---

# EXAMPLE SCENARIO
**User Preferences:**
{{ layout.example_preferences | join("\n") }}

**YOUR REQUIRED OUTPUT FORMAT:**
{{ layout.example_output }}
---

Now, based on all of the above, generate the content for the user's request.
""")

_TOPIC_TEMPLATE = _env.from_string("""\
You are a creative content strategist and marketing expert. Your task is to generate {{ t.num_ideas }} content topic ideas for a specific niche. For each idea, provide a compelling, click-worthy headline and a short 1-2 sentence description explaining the topic.

**Instructions:**
- **Industry/Niche:** {{ t.industry }}
- **Target Audience:** {{ t.audience }}
- **Content Angle:** {{ t.angle }}
- **Engagement Hook:** {{ t.hook }}
- **Output Format:** You must provide your response as a JSON array, where each object has two keys: "headline" and "description". Do not include any other text or markdown formatting.
""")

_REFINEMENT_TEMPLATE = _env.from_string("""\
# MISSION
You are an expert content editor. Your task is to refine and rewrite a piece of content based on a user's specific instruction. You must adhere to the new instruction while preserving the original intent and any formatting elements (like separators for references or hashtags) unless explicitly told to change them.

**This is a refinement, not a complete regeneration.** Maintain the core ideas, structure, and tone of the original piece unless the user's instruction explicitly asks to change them. For example, if the user says "make it funnier," you should edit the existing text to add humor, not write a completely new article on the same topic.

# ORIGINAL CONTENT
Here is the content you need to refine:
---
{{ original }}
---

# USER'S REFINEMENT INSTRUCTION
"{{ instruction }}"

# YOUR TASK
1.  Carefully analyze the **ORIGINAL CONTENT** and the **USER'S REFINEMENT INSTRUCTION**.
2.  Rewrite the content to seamlessly integrate the user's feedback. Do not just add or append text. The changes should feel natural.
3.  Preserve the output structure. If the original content had "{{ reference_separator }}" or "{{ hashtag_separator }}" sections, you MUST include them in your new response, even if the content of those sections changes.
4.  After rewriting, you MUST provide an estimated word count for the main content part in this format on the very last line:
    **Word Count (estimated): [number]**
5.  Output ONLY the rewritten content, references, and hashtags in the correct format. Do not add any of your own commentary, introductions, sign-offs, or other conversational text.""")


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def build_content_prompt(preferences: ContentPreferences, sources: Optional[str] = None) -> str:
    """Compose the first-turn content prompt. Pure: same input, same text."""
    target = preferences.target_words
    layout = PromptLayout.for_request(preferences, sources)
    strictness = "professional/academic" if preferences.reference_type == ReferenceType.PROFESSIONAL else "any"
    return _CONTENT_TEMPLATE.render(
        p=preferences,
        layout=layout,
        sources=sources,
        strictness=strictness,
        reference_separator=REFERENCE_SEPARATOR,
        low=round_half_up(target * 0.9),
        high=round_half_up(target * 1.1),
        intro=round_half_up(target * 0.1),
        body=round_half_up(target * 0.7),
        conclusion=round_half_up(target * 0.2),
    )


def build_topic_idea_prompt(topic_preferences: TopicPreferences) -> str:
    return _TOPIC_TEMPLATE.render(t=topic_preferences)


def build_system_instruction(persona: str) -> str:
    return (
        "You are an expert content creator and social media strategist. Your task is to generate "
        "a piece of content based on the user's specifications. You will adopt the persona of a "
        f"{persona}. Provide only the content itself (and hashtags if requested), without any of "
        "your own commentary, introduction, or sign-off. Follow formatting instructions from the "
        "main prompt precisely."
    )


def build_regeneration_suffix() -> str:
    return f"\n\n---\n\n{REGENERATION_INSTRUCTION}"


def build_length_correction_prompt(previous_count: int, band: WordBand) -> str:
    """Corrective follow-up for a long-form attempt that missed the band."""
    if previous_count < band.minimum:
        problem = f"too short at {previous_count} words. Please expand and rewrite"
        advice = ("Add more depth, details, and examples where needed, while keeping the "
                  "content coherent and on-topic.")
    else:
        problem = f"too long at {previous_count} words. Please condense and rewrite"
        advice = "Focus on the most impactful points, remove redundancy, and shorten sentences."
    return (
        f"The previous response was {problem} the content so that the total length is between "
        f"{band.minimum} and {band.maximum} words (target ~{band.target} words). {advice} "
        "At the end, state the final word count as: Word Count: [number]."
    )


def build_refinement_prompt(last_model_message: ChatMessage, instruction: str) -> str:
    original = join_sections(
        last_model_message.content,
        hashtags=last_model_message.hashtags,
        references=last_model_message.references,
    )
    return _REFINEMENT_TEMPLATE.render(
        original=original.strip(),
        instruction=instruction,
        reference_separator=REFERENCE_SEPARATOR,
        hashtag_separator=HASHTAG_SEPARATOR,
    )


def build_user_brief(preferences: ContentPreferences) -> str:
    """The user-side message shown in the conversation for a new request."""
    p = preferences
    lines = [
        f'Alright, let\'s craft a **{p.platform}** piece about **"{p.topic}"**. Here\'s the brief:',
        "",
        "**Writing Style:**",
        f"   - **Tone:** I'll write in a {p.tone} voice.",
        f"   - **Persona:** I will act as a {p.writer_persona}.",
        f"   - **Length:** It will be around {p.word_count} words.",
    ]

    goals = []
    if p.creator_name.strip() and int(p.promotion_level) > 0:
        goals.append(f"   - **Promotion:** Weave in a {p.promotion_level}% promotion for **{p.creator_name}**.")
    if p.generate_hashtags:
        goals.append("   - **Hashtags:** Include a list of relevant hashtags.")
    if p.wants_references:
        goals.append("   - **References:** Research and cite sources.")
    if p.custom_notes.strip():
        goals.append(f'   - **Special Notes:** "{p.custom_notes}"')

    if goals:
        lines += ["", "**Content Goals:**", *goals]
    return "\n".join(lines).strip()


def build_topic_context_notes(topic_preferences: TopicPreferences) -> str:
    t = topic_preferences
    return (
        "Context from Topic Idea Generation:\n"
        f"- Industry/Niche: {t.industry}\n"
        f"- Target Audience: {t.audience}\n"
        f"- Content Angle: {t.angle}\n"
        f"- Engagement Hook Style: {t.hook}"
    )
