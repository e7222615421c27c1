"""Header reconciliation for uploaded post exports.

Export tools disagree on how they spell column names: some use spaces
("Message URL"), others underscores ("Message_URL"), and spreadsheet
software likes to prepend a byte-order mark to the first cell. The
reconciler maps whatever spelling was used onto the canonical field keys
used by the rest of the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .logging_config import get_logger
from .models import MissingColumnsError
from .parser_utils import clean_header

logger = get_logger("headers")


@dataclass(frozen=True)
class CanonicalField:
    """A required column: internal key plus its display spelling."""

    key: str
    label: str

    @property
    def spellings(self) -> Tuple[str, ...]:
        underscored = self.label.replace(" ", "_")
        if underscored == self.label:
            return (self.label,)
        return (self.label, underscored)


REQUIRED_FIELDS: Tuple[CanonicalField, ...] = (
    CanonicalField("network", "Network"),
    CanonicalField("message_url", "Message URL"),
    CanonicalField("date", "Date"),
    CanonicalField("message", "Message"),
    CanonicalField("type", "Type"),
    CanonicalField("content_type", "Content Type"),
    CanonicalField("profile", "Profile"),
    CanonicalField("followers", "Followers"),
    CanonicalField("engagements", "Engagements"),
)

REQUIRED_KEYS: Tuple[str, ...] = tuple(field.key for field in REQUIRED_FIELDS)


@dataclass(frozen=True)
class HeaderMapping:
    """Successful reconciliation: canonical key -> column index."""

    columns: Dict[str, int]

    def index_of(self, key: str) -> int:
        return self.columns[key]

    def extract(self, row: Sequence[object]) -> Dict[str, object]:
        """Build a raw record from a tokenized row.

        Columns beyond the end of a short row come back as ``None``.
        """
        record: Dict[str, object] = {}
        for key, index in self.columns.items():
            record[key] = row[index] if index < len(row) else None
        return record


class HeaderReconciler:
    """Maps raw header cells onto the required canonical fields."""

    def __init__(self, fields: Sequence[CanonicalField] = REQUIRED_FIELDS) -> None:
        self.fields = tuple(fields)
        self._lookup = self._build_lookup()

    def _build_lookup(self) -> Dict[str, str]:
        lookup: Dict[str, str] = {}
        for canonical in self.fields:
            for spelling in canonical.spellings:
                lookup[spelling] = canonical.key
        return lookup

    def reconcile(self, headers: Sequence[str]) -> HeaderMapping:
        """Reconcile a header row.

        Raises:
            MissingColumnsError: listing every required field without a
                matching header. No partial mapping is ever returned.
        """
        columns: Dict[str, int] = {}
        for index, raw in enumerate(headers):
            key = self._lookup.get(clean_header(raw))
            if key is None:
                continue
            # first matching column wins
            columns.setdefault(key, index)

        missing: List[str] = [field.label for field in self.fields if field.key not in columns]
        if missing:
            logger.warning(f"Upload rejected, missing columns: {', '.join(missing)}")
            raise MissingColumnsError(missing)

        return HeaderMapping(columns=columns)
