"""Parsing utilities for uploaded post exports."""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone, tzinfo
from typing import Any, Optional, Sequence, Union

from dateutil import parser as date_parser
from dateutil import tz

from .logging_config import get_logger

logger = get_logger("parser_utils")

# Priority order matters: several exports emit strings that more than one
# pattern (or the generic parser) would accept.
DATE_FORMATS: Sequence[str] = (
    "%m/%d/%Y %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
)

BYTE_ORDER_MARK = "\ufeff"

_RETWEET_PATTERN = re.compile(r"^\s*RT @\S+: ")
_URL_PATTERN = re.compile(r"https?://\S+")
_ENTITY_PATTERN = re.compile(r"&(amp|lt|gt);")
_ENTITIES = {"amp": "&", "lt": "<", "gt": ">"}
_WHITESPACE_PATTERN = re.compile(r"\s+")
_COUNT_PATTERN = re.compile(r"^(\d+)(?:\.\d*)?$")


def sanitize_message(text: Optional[str]) -> str:
    """Clean a post message for display and prompting.

    Removes a leading retweet marker, every http(s) URL, decodes the
    ``&amp;``/``&lt;``/``&gt;`` entities and collapses whitespace. The
    passes run in that order.
    """
    if not text:
        return ""
    cleaned = _RETWEET_PATTERN.sub("", text, count=1)
    cleaned = _URL_PATTERN.sub("", cleaned)
    cleaned = _ENTITY_PATTERN.sub(lambda match: _ENTITIES[match.group(1)], cleaned)
    cleaned = _WHITESPACE_PATTERN.sub(" ", cleaned)
    return cleaned.strip()


def _resolve_timezone(value: Union[str, tzinfo, None]) -> tzinfo:
    if isinstance(value, tzinfo):
        return value
    if isinstance(value, str):
        resolved = tz.gettz(value)
        if resolved is not None:
            return resolved
    return timezone.utc


def resolve_date(
    value: Optional[str],
    *,
    default_timezone: Union[str, tzinfo, None] = "UTC",
) -> Optional[datetime]:
    """Resolve a raw date string to a timezone-aware datetime.

    Each entry of ``DATE_FORMATS`` is tried in order and the first match
    wins. When none match, a single free-form parse is attempted. Returns
    ``None`` when the string cannot be resolved.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    parsed: Optional[datetime] = None
    for fmt in DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
            break
        except ValueError:
            continue

    if parsed is None:
        try:
            parsed = date_parser.parse(text)
        except (ValueError, OverflowError) as exc:
            logger.debug("Unable to resolve date %r: %s", text, exc)
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=_resolve_timezone(default_timezone))

    # offsets of a day or more only fail once the instant is computed
    try:
        parsed.timestamp()
    except (ValueError, OverflowError) as exc:
        logger.debug("Date %r has no valid instant: %s", text, exc)
        return None
    return parsed


def _ordinal_suffix(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def format_long_date(value: datetime) -> str:
    """Render a datetime as e.g. ``April 5th, 2024``."""
    return f"{value.strftime('%B')} {value.day}{_ordinal_suffix(value.day)}, {value.year}"


def coerce_count(value: Any) -> int:
    """Coerce a follower/engagement count to an integer.

    Integers pass through unchanged. Text is read as a whole token: it
    must be unsigned digits, optionally followed by a decimal fraction
    that is dropped. Anything else yields 0, so thousands separators
    ("12,000"), signs ("-5"), suffixes ("1.5K") and trailing text
    ("123abc") all count as 0 rather than a partial prefix.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0

    text = str(value).strip()
    match = _COUNT_PATTERN.match(text)
    if not match:
        if text:
            logger.debug("Count %r is not numeric, defaulting to 0", text)
        return 0
    return int(match.group(1))


def clean_header(header: Optional[str]) -> str:
    """Strip whitespace and a leading byte-order mark from a header cell."""
    if header is None:
        return ""
    text = str(header).strip()
    if text.startswith(BYTE_ORDER_MARK):
        text = text[len(BYTE_ORDER_MARK):]
    return text.strip()


def is_blank(value: Any) -> bool:
    """Return True for missing, empty or whitespace-only raw values."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False
