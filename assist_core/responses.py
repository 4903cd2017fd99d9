"""
Response Parser
===============

Turns raw completion text into 1..3 suggestion strings.

1. JSON: the first bracketed list in the text holding a non-empty string.
2. Lines: numbered/bulleted/quoted lines within a length window.
3. A single sentinel string, which callers treat as a soft failure.
"""

from __future__ import annotations

import json
import re
from enum import Enum
from typing import List, Tuple

MAX_SUGGESTIONS = 3
UNABLE_TO_GENERATE = "Unable to generate suggestions. Please try again."

_ORDINAL = re.compile(r"^\d+[.)]\s*")
_QUOTES = re.compile(r"^[\"']|[\"']$")
_BULLET = re.compile(r"^-\s*")


class SuggestionFamily(str, Enum):
    """Which length window the line fallback applies."""
    MESSAGE = "message"
    COMMENT = "comment"


# Exclusive (min, max) character bounds
LENGTH_WINDOWS = {
    SuggestionFamily.MESSAGE: (10, 500),
    SuggestionFamily.COMMENT: (5, 300),
}


_DECODER = json.JSONDecoder()


def _from_json(raw: str) -> List[str]:
    start = raw.find("[")
    while start != -1:
        # One decode per "[", the decoder finds the matching end itself
        try:
            decoded, _ = _DECODER.raw_decode(raw, start)
        except (ValueError, RecursionError):
            decoded = None
        if isinstance(decoded, list):
            items = [item.strip() for item in decoded if isinstance(item, str) and item.strip()]
            if items:
                return items[:MAX_SUGGESTIONS]
        start = raw.find("[", start + 1)
    return []


def _from_lines(raw: str, window: Tuple[int, int]) -> List[str]:
    low, high = window
    results = []
    for line in raw.split("\n"):
        line = _BULLET.sub("", _QUOTES.sub("", _ORDINAL.sub("", line.strip()))).strip()
        if low < len(line) < high:
            results.append(line)
        if len(results) == MAX_SUGGESTIONS:
            break
    return results


def parse_suggestions(raw: str, family: SuggestionFamily = SuggestionFamily.MESSAGE) -> List[str]:
    """
    Parse completion text into suggestions.

    Args:
        raw: Completion text
        family: MESSAGE for replies and outreach, COMMENT for comments

    Returns:
        1 to 3 strings; [UNABLE_TO_GENERATE] when nothing usable was found
    """
    raw = raw or ""
    suggestions = _from_json(raw)
    if suggestions:
        return suggestions

    suggestions = _from_lines(raw, LENGTH_WINDOWS[family])
    if suggestions:
        return suggestions

    return [UNABLE_TO_GENERATE]


def is_sentinel(suggestions: List[str]) -> bool:
    return suggestions == [UNABLE_TO_GENERATE]
