"""Data models for the social insights pipeline."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple


DISCARD_MISSING_FIELD = "missing-field"
DISCARD_UNPARSABLE_DATE = "unparsable-date"
DISCARD_DUPLICATE_URL = "duplicate-url"


class SocialInsightsError(Exception):
    """Base error for the social insights package."""


class IngestionError(SocialInsightsError):
    """An upload was rejected as a whole; the active dataset is unchanged."""


class TokenizationError(IngestionError):
    """The uploaded file could not be read as CSV."""


class MissingColumnsError(IngestionError):
    """One or more required columns have no matching header."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing required columns: {', '.join(self.missing)}")


class NoValidDataError(IngestionError):
    """Every row of an upload was discarded."""

    def __init__(self, rows_read: int = 0) -> None:
        self.rows_read = rows_read
        super().__init__("No valid data found in CSV file")


class LLMNotConfiguredError(SocialInsightsError):
    """The language model API key is missing."""


class UploadLockedError(SocialInsightsError):
    """The upload password did not match."""


@dataclass(frozen=True)
class NormalizedRecord:
    """A validated, typed and sanitized social media post."""

    network: str
    message_url: str
    date: str
    occurred_at: datetime
    message: str
    type: str
    content_type: str
    profile: str
    followers: int
    engagements: int
    formatted_date: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "network": self.network,
            "message_url": self.message_url,
            "date": self.date,
            "occurred_at": self.occurred_at.isoformat(),
            "message": self.message,
            "type": self.type,
            "content_type": self.content_type,
            "profile": self.profile,
            "followers": self.followers,
            "engagements": self.engagements,
            "formatted_date": self.formatted_date,
        }


@dataclass(frozen=True)
class Dataset:
    """Immutable, most-recent-first collection of normalized records."""

    records: Tuple[NormalizedRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[NormalizedRecord]:
        return iter(self.records)

    def __getitem__(self, index):
        return self.records[index]

    def __bool__(self) -> bool:
        return bool(self.records)

    def find(self, message_url: str) -> Optional[NormalizedRecord]:
        """Return the record with the given message URL, if any."""
        for record in self.records:
            if record.message_url == message_url:
                return record
        return None

    def head(self, count: int) -> List[NormalizedRecord]:
        return list(self.records[: max(count, 0)])


@dataclass(frozen=True)
class Discard:
    """A row dropped during ingestion and why."""

    reason: str
    row_number: Optional[int] = None
    detail: str = ""


@dataclass
class IngestionReport:
    """Outcome of one successful pipeline run.

    Discards are kept for logging and tests; callers only surface the
    aggregate counts.
    """

    dataset: Dataset
    rows_read: int = 0
    discards: List[Discard] = field(default_factory=list)

    @property
    def accepted(self) -> int:
        return len(self.dataset)

    @property
    def discarded(self) -> int:
        return len(self.discards)

    def discard_counts(self) -> Dict[str, int]:
        return dict(Counter(discard.reason for discard in self.discards))


@dataclass(frozen=True)
class ProfileEngagement:
    """Summed engagements for one profile."""

    profile: str
    engagements: int


@dataclass(frozen=True)
class AnalyticsSummary:
    """Summary statistics derived from a dataset."""

    total_records: int = 0
    total_engagements: int = 0
    posts_per_network: Dict[str, int] = field(default_factory=dict)
    top_profiles: List[ProfileEngagement] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_records": self.total_records,
            "total_engagements": self.total_engagements,
            "posts_per_network": dict(self.posts_per_network),
            "top_profiles": [
                {"profile": entry.profile, "engagements": entry.engagements}
                for entry in self.top_profiles
            ],
        }


@dataclass
class ConversationMessage:
    """One entry of the persisted chat transcript."""

    id: int
    role: str
    content: str
    created_at: str
    edited: bool = False

    def to_chat_message(self) -> Dict[str, str]:
        """Return the message in chat-completion wire format."""
        return {"role": self.role, "content": self.content}
