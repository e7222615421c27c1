"""Normalization of individual raw post records."""

from __future__ import annotations

from datetime import tzinfo
from typing import Any, Mapping, Optional, Union

from .logging_config import get_logger
from .models import (
    DISCARD_MISSING_FIELD,
    DISCARD_UNPARSABLE_DATE,
    Discard,
    NormalizedRecord,
)
from .parser_utils import (
    coerce_count,
    format_long_date,
    is_blank,
    resolve_date,
    sanitize_message,
)

logger = get_logger("normalizer")

IDENTITY_FIELDS = ("message_url", "date", "message")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class RecordNormalizer:
    """Turns one raw record into a NormalizedRecord or a Discard.

    The raw record is a mapping keyed by canonical field keys (see
    ``headers.REQUIRED_KEYS``). Normalization never raises for bad data;
    rows that cannot be used come back as a ``Discard`` with a reason.
    """

    def __init__(self, default_timezone: Union[str, tzinfo, None] = "UTC") -> None:
        self.default_timezone = default_timezone

    def normalize(
        self,
        raw: Mapping[str, Any],
        *,
        row_number: Optional[int] = None,
    ) -> Union[NormalizedRecord, Discard]:
        for key in IDENTITY_FIELDS:
            if is_blank(raw.get(key)):
                return self._discard(DISCARD_MISSING_FIELD, row_number, f"{key} is empty")

        raw_date = _text(raw.get("date"))
        occurred_at = resolve_date(raw_date, default_timezone=self.default_timezone)
        if occurred_at is None:
            return self._discard(DISCARD_UNPARSABLE_DATE, row_number, f"unparsable date {raw_date!r}")

        return NormalizedRecord(
            network=_text(raw.get("network")),
            message_url=_text(raw.get("message_url")),
            date=raw_date,
            occurred_at=occurred_at,
            message=sanitize_message(str(raw.get("message"))),
            type=_text(raw.get("type")),
            content_type=_text(raw.get("content_type")),
            profile=_text(raw.get("profile")),
            followers=coerce_count(raw.get("followers")),
            engagements=coerce_count(raw.get("engagements")),
            formatted_date=format_long_date(occurred_at),
        )

    @staticmethod
    def _discard(reason: str, row_number: Optional[int], detail: str) -> Discard:
        logger.debug("Discarding row %s (%s): %s", row_number, reason, detail)
        return Discard(reason=reason, row_number=row_number, detail=detail)
