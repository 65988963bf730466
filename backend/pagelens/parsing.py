"""
Oracle reply parsing.

The oracle answers in free-form text that usually, but not always, embeds a
JSON object or array: bare, inside a markdown fence, or wrapped in prose.
`parse()` tries a few strategies and returns either the decoded value or a
`ParseFailure`. Callers treat the failure as a normal outcome and fall back
to defaults.
"""

import json
import re
from dataclasses import dataclass
from typing import Optional


_FENCE_RE = re.compile(r"```[a-zA-Z0-9_-]*\s*\n?(.*?)```", re.DOTALL)
_decoder = json.JSONDecoder()


@dataclass(frozen=True)
class ParseFailure:
    reason: str
    raw: str = ""


def strip_code_fences(text: str) -> str:
    """Remove a markdown code fence wrapping the whole reply."""
    text = text.strip()
    if text.startswith("```"):
        # Remove first line (```json etc.)
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def _matches(value, expect: Optional[type]) -> bool:
    if expect is None:
        return isinstance(value, (dict, list))
    return isinstance(value, expect)


def _scan(text: str, expect: Optional[type]):
    """Decode the first JSON value of the expected type embedded in text."""
    openers = {list: "[", dict: "{"}.get(expect, "[{")
    for i, ch in enumerate(text):
        if ch not in openers:
            continue
        try:
            value, _ = _decoder.raw_decode(text, i)
        except ValueError:
            continue
        if _matches(value, expect):
            return value
    return None


def parse(text, expect: Optional[type] = None):
    """
    Extract an embedded JSON value from an oracle reply.

    Args:
        text: raw reply text.
        expect: `list`, `dict`, or None for either.

    Returns:
        The decoded value, or ParseFailure.
    """
    if not isinstance(text, str) or not text.strip():
        return ParseFailure("empty reply")

    raw = text.strip()

    # Strategy 1: direct parse
    try:
        value = json.loads(raw)
        if _matches(value, expect):
            return value
    except ValueError:
        pass

    # Strategy 2: whole reply fenced
    cleaned = strip_code_fences(raw)
    try:
        value = json.loads(cleaned)
        if _matches(value, expect):
            return value
    except ValueError:
        pass

    # Strategy 3: fenced block somewhere in the prose
    for block in _FENCE_RE.findall(raw):
        value = _scan(block, expect)
        if value is not None:
            return value

    # Strategy 4: first decodable value of the right shape anywhere
    value = _scan(raw, expect)
    if value is not None:
        return value

    wanted = {list: "array", dict: "object"}.get(expect, "JSON value")
    return ParseFailure(f"no embedded {wanted} found", raw=raw[:500])
