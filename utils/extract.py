"""Recover a JSON payload from free-form model text."""

import json
import re

from core.errors import NoPayloadFoundError

_FENCED_JSON_RE = re.compile(r"```json\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
_VALID_ESCAPES = set('"\\/bfnrtu')


def extract_json(raw_text):
    """Return the JSON text embedded in raw_text.

    Preference order:
        1. the interior of a ```json fenced block
        2. the span from the first "{" to the last "}"
    The first candidate that parses as-is wins. Otherwise candidates are
    normalized (see normalize_json) and the first that then parses wins; if
    none does, the normalized preferred candidate is returned and the caller's
    json.loads reports the error.

    Raises NoPayloadFoundError when the text holds no "{...}" region.
    """
    text = raw_text or ""
    candidates = []

    # A fenced block can be cut short by a ``` inside a string value, so the
    # brace span stays in play as a second candidate.
    match = _FENCED_JSON_RE.search(text)
    if match and "{" in match.group(1):
        candidates.append(match.group(1))

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    if not candidates:
        raise NoPayloadFoundError("Cannot find a JSON object in the model response")

    for candidate in candidates:
        if _parses(candidate):
            return candidate
    normalized = [normalize_json(c) for c in candidates]
    for candidate in normalized:
        if _parses(candidate):
            return candidate
    return normalized[0]


def normalize_json(text):
    """Repair the common ways models break JSON string values.

    Raw newlines, carriage returns and tabs become spaces, whitespace runs
    collapse to one space, and backslash escapes JSON does not define
    (e.g. "\\_" or "\\'") lose their backslash. Valid escapes, including
    escaped backslashes and quotes, pass through untouched.
    """
    text = re.sub(r"[\n\r\t]", " ", text)
    text = re.sub(r"\s+", " ", text)
    return _ESCAPE_RE.sub(_unescape, text)


def _unescape(match):
    char = match.group(1)
    if char in _VALID_ESCAPES:
        return match.group(0)
    return char


def _parses(text):
    try:
        json.loads(text)
    except ValueError:
        return False
    return True
