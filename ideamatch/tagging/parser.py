"""Parse tag lists out of free-text model responses.

Models are asked for a bare JSON array but often wrap it in prose or
code fences. The first bracketed span is tried first, then the whole text.
"""

import json
import re
from typing import Any

from ideamatch.exceptions import TagParseError

MAX_TAGS = 5

# Greedy: from the first "[" to the last "]", across newlines.
_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")


def _load_array(raw_text: str) -> list[Any]:
    """Find and decode a JSON array in ``raw_text``.

    Raises:
        TagParseError: If no JSON array can be decoded.
    """
    attempts: list[str] = []
    match = _ARRAY_PATTERN.search(raw_text)
    if match:
        attempts.append(match.group(0))
    attempts.append(raw_text.strip())

    last_error: Exception | None = None
    for candidate in attempts:
        try:
            value = json.loads(candidate)
        except ValueError as e:
            last_error = e
            continue
        if isinstance(value, list):
            return value
        last_error = TypeError(f"expected a JSON array, got {type(value).__name__}")

    raise TagParseError(
        f"Failed to parse tags from model output: {last_error}",
        raw_text=raw_text,
    )


def parse_tags_from_model_output(raw_text: str, max_tags: int = MAX_TAGS) -> list[str]:
    """Extract a clean tag list from model output.

    Args:
        raw_text: Model response, expected to contain a JSON array of strings.
        max_tags: Maximum number of tags to keep.

    Returns:
        Stripped, non-empty, de-duplicated tags in model order, at most
        ``max_tags`` of them. A valid empty array yields ``[]``.

    Raises:
        TagParseError: If no JSON array can be found in ``raw_text``.
    """
    if not raw_text or not raw_text.strip():
        raise TagParseError("Model output is empty", raw_text=raw_text or "")

    tags: list[str] = []
    seen: set[str] = set()
    for item in _load_array(raw_text):
        if len(tags) >= max_tags:
            break
        if not isinstance(item, str):
            continue
        tag = item.strip()
        if not tag or tag in seen:
            continue
        seen.add(tag)
        tags.append(tag)

    return tags
