"""Tests for record normalization."""

from datetime import date

import pytest

from src.social_insights.models import (
    DISCARD_MISSING_FIELD,
    DISCARD_UNPARSABLE_DATE,
    Discard,
    NormalizedRecord,
)
from src.social_insights.normalizer import RecordNormalizer


@pytest.fixture
def normalizer():
    return RecordNormalizer()


@pytest.fixture
def raw_record():
    return {
        "network": " Twitter ",
        "message_url": "https://twitter.com/acme/status/1",
        "date": "2024-04-05 10:30:00",
        "message": "RT @alice: Check this out! https://example.com/x &amp; more",
        "type": "Post",
        "content_type": "Text",
        "profile": "Acme",
        "followers": "1500",
        "engagements": "37",
    }


def test_normalize_valid_record(normalizer, raw_record):
    record = normalizer.normalize(raw_record)

    assert isinstance(record, NormalizedRecord)
    assert record.network == "Twitter"
    assert record.message_url == "https://twitter.com/acme/status/1"
    assert record.date == "2024-04-05 10:30:00"
    assert record.occurred_at.date() == date(2024, 4, 5)
    assert record.message == "Check this out! & more"
    assert record.followers == 1500
    assert record.engagements == 37
    assert record.formatted_date == "April 5th, 2024"


def test_normalize_is_idempotent(normalizer, raw_record):
    assert normalizer.normalize(raw_record) == normalizer.normalize(raw_record)


@pytest.mark.parametrize("field", ["message_url", "date", "message"])
def test_normalize_discards_missing_identity_fields(normalizer, raw_record, field):
    raw_record[field] = ""
    result = normalizer.normalize(raw_record, row_number=4)

    assert isinstance(result, Discard)
    assert result.reason == DISCARD_MISSING_FIELD
    assert result.row_number == 4


def test_normalize_discards_unparsable_date(normalizer, raw_record):
    raw_record["date"] = "garbage"
    result = normalizer.normalize(raw_record)

    assert isinstance(result, Discard)
    assert result.reason == DISCARD_UNPARSABLE_DATE


def test_normalize_degrades_bad_counts_to_zero(normalizer, raw_record):
    raw_record["followers"] = "12,000"
    raw_record["engagements"] = "n/a"
    record = normalizer.normalize(raw_record)

    assert isinstance(record, NormalizedRecord)
    assert record.followers == 0
    assert record.engagements == 0


def test_normalize_passes_numeric_counts_through(normalizer, raw_record):
    raw_record["followers"] = 2500
    raw_record["engagements"] = -4
    record = normalizer.normalize(raw_record)

    assert record.followers == 2500
    assert record.engagements == -4


def test_normalize_uses_configured_timezone(raw_record):
    record = RecordNormalizer(default_timezone="Europe/Berlin").normalize(raw_record)
    assert record.occurred_at.utcoffset().total_seconds() == 2 * 3600
