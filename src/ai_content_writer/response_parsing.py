"""
Defensive extraction of structured payloads from free-text completions.

Completion backends are asked for JSON but may wrap it in prose or code
fences. These helpers slice the outermost bracket span and attempt a strict
parse of only that span. They never raise on bad input.
"""

import json
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


def _outer_span(text: str, open_char: str, close_char: str) -> Optional[str]:
    """Return the text from the first ``open_char`` to the last ``close_char``."""
    if not text:
        return None
    start = text.find(open_char)
    end = text.rfind(close_char)
    if start == -1 or end == -1 or end < start:
        return None
    return text[start:end + 1]


def extract_json_object(text: str) -> Optional[dict[str, Any]]:
    """
    Extract a JSON object from completion text.

    Args:
        text: Raw completion text.

    Returns:
        The parsed object, or None when no parsable object span exists.
    """
    span = _outer_span(text, "{", "}")
    if span is None:
        return None
    try:
        parsed = json.loads(span)
    except json.JSONDecodeError as e:
        logger.debug(f"JSON object span did not parse: {e}")
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_id_list(text: str) -> list[int]:
    """
    Extract an ordered list of integer ids from completion text.

    Integer elements and digit-only strings are kept; anything else in the
    array is skipped. Duplicates keep their first position.

    Examples:
        >>> extract_id_list("Here are matches: [12, 7, 99] enjoy!")
        [12, 7, 99]
        >>> extract_id_list("no products match your query")
        []
    """
    span = _outer_span(text, "[", "]")
    if span is None:
        return []
    try:
        parsed = json.loads(span)
    except json.JSONDecodeError as e:
        logger.debug(f"Id list span did not parse: {e}")
        return []
    if not isinstance(parsed, list):
        return []

    ids: list[int] = []
    for item in parsed:
        if isinstance(item, bool):
            continue
        if isinstance(item, int):
            value = item
        elif isinstance(item, str) and item.strip().isdigit():
            value = int(item.strip())
        else:
            continue
        if value not in ids:
            ids.append(value)
    return ids
