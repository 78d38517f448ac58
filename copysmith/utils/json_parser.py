"""JSON extraction from model output.

JSON mode usually returns a bare document, but vetting and topic replies
occasionally arrive fenced or with a sentence of preamble.
"""
import json
import re
from typing import Any, Iterator, Optional, Tuple, Type

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


def _candidates(text: str) -> Iterator[Any]:
    """Yield every JSON value found in text, most likely first."""
    try:
        yield json.loads(text)
    except json.JSONDecodeError:
        pass

    for match in _FENCE_RE.finditer(text):
        body = match.group(1).strip()
        if not body:
            continue
        try:
            yield json.loads(body)
        except json.JSONDecodeError:
            continue

    # raw_decode copes with brackets inside string values
    decoder = json.JSONDecoder()
    for i, ch in enumerate(text):
        if ch in "[{":
            try:
                obj, _ = decoder.raw_decode(text, i)
            except json.JSONDecodeError:
                continue
            yield obj


def extract_json_from_llm(response: str, default: Any = None,
                          expect: Optional[Tuple[Type, ...]] = None) -> Any:
    """Return the first JSON value in a model response.

    Args:
        response: Raw model text
        default: Returned when nothing parses
        expect: Optional type or tuple of types; values of other types are skipped

    Returns:
        Parsed value, or default
    """
    if not response or not isinstance(response, str):
        return default

    for value in _candidates(response.strip()):
        if expect is None or isinstance(value, expect):
            return value
    return default
