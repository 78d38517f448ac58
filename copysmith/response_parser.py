"""
Response Parser - splits a raw model response into display parts.

The model is asked to end its output with a word-count marker and to place
hashtags and references after fixed separators. The parser is applied to the
full accumulated buffer on every streamed chunk with partial=True, so it
must give a sensible answer for any prefix of the final text. The finished
response is parsed once more without partial.

Usage:
    from copysmith.response_parser import parse_response

    parsed = parse_response(buffer, partial=True)   # while streaming
    parsed = parse_response(buffer)                 # final
    parsed.content, parsed.hashtags, parsed.references, parsed.word_count
"""

import re
from typing import Optional, Tuple

from copysmith.models import ParsedResponse

HASHTAG_SEPARATOR = "---HASHTAGS---"
REFERENCE_SEPARATOR = "---References---"

# Optional newline, optional bold, "Word Count", optional "(estimated)", integer, end of text
_WORD_COUNT_RE = re.compile(
    r"(?:\r\n|\n|\r)?\s*(?:\*\*)?Word Count(?: \(estimated\))?:\s*(\d+)(?:\*\*)?\s*$"
)

_MARKER_FORMS = ("Word Count (estimated):", "Word Count:")
_PARTIAL_VALUE_RE = re.compile(r"^Word Count(?: \(estimated\))?:\s*\d*\**$")


def _extract_word_count(text: str) -> Tuple[str, Optional[int]]:
    match = _WORD_COUNT_RE.search(text)
    if not match:
        return text, None
    return text[: match.start()].rstrip(), int(match.group(1))


def _is_marker_prefix(tail: str) -> bool:
    return any(form.startswith(tail) for form in _MARKER_FORMS) or bool(_PARTIAL_VALUE_RE.match(tail))


def _strip_partial_marker(text: str) -> str:
    """Drop a word-count marker that is still arriving at the end of the buffer.

    The marker may start its own line or trail the last sentence. Single
    letters only count when bold, so "...a W" is left alone.
    """
    start = text.rfind("\n") + 1
    line = text[start:].rstrip()
    if line.strip() in ("*", "**"):
        return text[:start].rstrip()

    idx = line.rfind("W")
    while idx != -1:
        cut = idx
        while cut > 0 and line[cut - 1] == "*":
            cut -= 1
        at_boundary = cut == 0 or line[cut - 1].isspace()
        tail = line[idx:]
        bold = idx - cut >= 2
        if at_boundary and (len(tail) >= 2 or bold) and _is_marker_prefix(tail):
            return text[:start + cut].rstrip()
        idx = line.rfind("W", 0, idx)
    return text


def _split_sections(text: str) -> Tuple[str, str, str]:
    """Return (content, hashtags, references) by separator tag, not position."""
    hashtag_idx = text.find(HASHTAG_SEPARATOR)
    reference_idx = text.find(REFERENCE_SEPARATOR)

    content, hashtags, references = text, "", ""

    if hashtag_idx != -1 and reference_idx != -1:
        if reference_idx < hashtag_idx:
            content = text[:reference_idx]
            references = text[reference_idx + len(REFERENCE_SEPARATOR):hashtag_idx]
            hashtags = text[hashtag_idx + len(HASHTAG_SEPARATOR):]
        else:
            content = text[:hashtag_idx]
            hashtags = text[hashtag_idx + len(HASHTAG_SEPARATOR):reference_idx]
            references = text[reference_idx + len(REFERENCE_SEPARATOR):]
    elif reference_idx != -1:
        content = text[:reference_idx]
        references = text[reference_idx + len(REFERENCE_SEPARATOR):]
    elif hashtag_idx != -1:
        content = text[:hashtag_idx]
        hashtags = text[hashtag_idx + len(HASHTAG_SEPARATOR):]

    return content.strip(), hashtags.strip(), references.strip()


def parse_response(raw_text: str, partial: bool = False) -> ParsedResponse:
    """Split a model response into content/hashtags/references/word count.

    Pass partial=True for a buffer that is still streaming; an incomplete
    word-count marker at its end is then hidden. Finished responses keep
    every line.
    """
    text, word_count = _extract_word_count(raw_text or "")
    if partial and word_count is None:
        text = _strip_partial_marker(text)
    content, hashtags, references = _split_sections(text)
    return ParsedResponse(
        content=content,
        hashtags=hashtags,
        references=references,
        word_count=word_count,
    )


def count_words(text: str) -> int:
    """Whitespace-token word count, as used for the long-form band check."""
    return len(text.split())


def join_sections(content: str, hashtags: str = "", references: str = "") -> str:
    """Rebuild the separator layout of a parsed response (references first)."""
    full = content
    if references:
        full += f"\n\n{REFERENCE_SEPARATOR}\n{references}"
    if hashtags:
        full += f"\n\n{HASHTAG_SEPARATOR}\n{hashtags}"
    return full
