"""Shared parsing utilities for model responses."""

import json
import re

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)
_STRAY_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$")


def strip_fences(text: str) -> str:
    """Strip markdown code fences from model output if present.

    Handles a complete fenced block as well as an unterminated one (the
    response was cut off after the opening fence).
    """
    if not isinstance(text, str):
        return ""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return _STRAY_FENCE_RE.sub("", text).strip()


def _outermost_object(text: str) -> str | None:
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        return None
    return text[start:end + 1]


def extract_json(text: str):
    """Parse the structured payload out of a model response.

    Tries the fence-stripped text first, then the outermost ``{...}`` span
    (models like to wrap JSON in prose). Returns None if neither parses.
    """
    cleaned = strip_fences(text)
    if not cleaned:
        return None

    for candidate in (cleaned, _outermost_object(cleaned)):
        if candidate is None:
            continue
        try:
            return json.loads(candidate)
        # Over-long integers raise ValueError, deep nesting RecursionError.
        except (ValueError, RecursionError):
            continue
    return None
