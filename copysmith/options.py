"""
Option catalogues for the content and topic forms.

Each catalogue is an ordered list of (value, label) pairs; the value is what
goes into prompts and persisted preferences, the label is what the form
shows. The first entry of each list is the form default.
"""

from typing import List, NamedTuple


class Option(NamedTuple):
    value: str
    label: str


PLATFORM_OPTIONS: List[Option] = [
    Option("Website Blog Post", "Website Blog Post"),
    Option("LinkedIn Article", "LinkedIn Article"),
    Option("Instagram Caption", "Instagram Caption"),
    Option("TikTok Script", "TikTok Script"),
    Option("Facebook Post", "Facebook Post"),
    Option("eCommerce Product Description", "eCommerce Product Description"),
    Option("Twitter or X Post", "Twitter / X Post"),
    Option("Pinterest Pin Description", "Pinterest Pin Description"),
    Option("YouTube Video Script", "YouTube Video Script"),
    Option("Email Newsletter", "Email Newsletter"),
    Option("Reddit Post", "Reddit Post"),
    Option("Quora Answer", "Quora Answer"),
    Option("Medium Story", "Medium Story"),
    Option("Press Release", "Press Release"),
    Option("Ad Copy (Google or Facebook)", "Ad Copy (Google/Facebook)"),
    Option("Podcast Script", "Podcast Script"),
]

TONE_OPTIONS: List[Option] = [
    Option("Professional", "Professional"),
    Option("Formal and Academic", "Formal & Academic"),
    Option("Authoritative and Confident", "Authoritative & Confident"),
    Option("Conversational", "Conversational"),
    Option("Casual and Friendly", "Casual & Friendly"),
    Option("Empathetic and Supportive", "Empathetic & Supportive"),
    Option("Inspirational and Motivational", "Inspirational & Motivational"),
    Option("Storytelling", "Storytelling"),
    Option("Nostalgic", "Nostalgic"),
    Option("Witty and Humorous", "Witty & Humorous"),
    Option("Playful and Creative", "Playful & Creative"),
    Option("Sarcastic and Ironic", "Sarcastic & Ironic"),
    Option("Persuasive and Compelling", "Persuasive & Compelling"),
    Option("Urgent and Direct", "Urgent & Direct"),
    Option("Minimalist and To-the-point", "Minimalist & To-the-point"),
]

WORD_COUNT_OPTIONS: List[Option] = [
    Option("50", "Under 50 words (Tweet)"),
    Option("150", "Under 150 words (Short Post)"),
    Option("300", "Around 300 words (Quick Update)"),
    Option("500", "Around 500 words (Standard Post)"),
    Option("1000", "Around 1000 words (Article)"),
    Option("1500", "Around 1500 words (Long Article)"),
    Option("2000", "Around 2000 words (Deep Dive)"),
    Option("2500", "Around 2500 words (Guide)"),
]

PERSONA_OPTIONS: List[Option] = [
    Option("Thought Leader", "Thought Leader"),
    Option("Industry Expert", "Industry Expert"),
    Option("Founder or CEO", "Founder / CEO"),
    Option("Comedian or Entertainer", "Comedian / Entertainer"),
    Option("Journalist or Reporter", "Journalist / Reporter"),
    Option("Storyteller", "Storyteller"),
    Option("Educator or Teacher", "Educator / Teacher"),
    Option("Coach or Mentor", "Coach / Mentor"),
    Option("Enthusiast or Hobbyist", "Enthusiast / Hobbyist"),
    Option("Skeptic or Critic", "Skeptic / Critic"),
    Option("Friendly Peer", "Friendly Peer"),
    Option("Inspirational Figure", "Inspirational Figure"),
]

PROMOTION_LEVEL_OPTIONS: List[Option] = [
    Option("0", "0% - No Promotion"),
    Option("10", "10% - Subtle Mention"),
    Option("25", "25% - Balanced Promotion"),
    Option("50", "50% - Clearly Promotional"),
    Option("75", "75% - Heavily Promotional"),
]

REFERENCE_TYPE_OPTIONS: List[Option] = [
    Option("none", "No References"),
    Option("any", "Any Reputable Sources"),
    Option("professional", "Professional / Academic Sources"),
]

# Topic idea generator
AUDIENCE_OPTIONS: List[Option] = [
    Option("General Public", "General Public"),
    Option("Beginners or Newcomers", "Beginners / Newcomers"),
    Option("Intermediate Users", "Intermediate Users"),
    Option("Industry Experts or Professionals", "Industry Experts / Professionals"),
    Option("Executives or C-Suite", "Executives / C-Suite"),
    Option("Small Business Owners", "Small Business Owners"),
    Option("Marketing Managers", "Marketing Managers"),
    Option("Developers or Engineers", "Developers / Engineers"),
    Option("Students", "Students"),
    Option("Parents", "Parents"),
    Option("Hobbyists or Enthusiasts", "Hobbyists / Enthusiasts"),
    Option("Investors or Shareholders", "Investors / Shareholders"),
]

CONTENT_ANGLE_OPTIONS: List[Option] = [
    Option("How-to Guide", "How-to Guide"),
    Option("Listicle", 'Listicle (e.g., "Top 10...")'),
    Option("Common Mistakes to Avoid", "Common Mistakes to Avoid"),
    Option("Myth-Busting or Debunking", "Myth-Busting / Debunking"),
    Option("Case Study or Success Story", "Case Study / Success Story"),
    Option("Trend Analysis or Predictions", "Trend Analysis / Predictions"),
    Option("Comparison", "Comparison (X vs. Y)"),
    Option("Beginners Guide", "Beginner's Guide (101)"),
    Option("Ultimate Guide (Deep Dive)", "Ultimate Guide (Deep Dive)"),
    Option("Contrarian Take or Unpopular Opinion", "Contrarian Take / Unpopular Opinion"),
    Option("Review or Analysis", "Review / Analysis"),
    Option("Behind the Scenes", "Behind the Scenes"),
]

HOOK_STYLE_OPTIONS: List[Option] = [
    Option("Question-Based", "Ask a Question"),
    Option("Data-Driven", "Use a Surprising Stat"),
    Option("Emotional Storytelling", "Tell an Emotional Story"),
    Option("Bold Statement or Contrarian", "Make a Bold Statement"),
    Option("Problem-Solution", "Focus on a Problem/Solution"),
    Option("Historical Context", "Provide Historical Context"),
    Option("Future-Looking or Predictive", "Look to the Future"),
    Option("Humorous or Witty", "Use Humor"),
    Option("Relatable Scenario", "Describe a Relatable Scenario"),
]

NUM_IDEAS_OPTIONS: List[Option] = [
    Option("5", "5 Ideas"),
    Option("10", "10 Ideas"),
    Option("15", "15 Ideas"),
]


def values(options: List[Option]) -> List[str]:
    """Just the values of a catalogue, in order."""
    return [opt.value for opt in options]


def label_for(options: List[Option], value: str) -> str:
    """Display label for a value; falls back to the value itself."""
    for opt in options:
        if opt.value == value:
            return opt.label
    return value
