"""Tests for header reconciliation."""

import pytest

from src.social_insights.headers import REQUIRED_KEYS, HeaderReconciler
from src.social_insights.models import MissingColumnsError

CANONICAL_HEADERS = [
    "Network",
    "Message URL",
    "Date",
    "Message",
    "Type",
    "Content Type",
    "Profile",
    "Followers",
    "Engagements",
]


@pytest.fixture
def reconciler():
    return HeaderReconciler()


def test_reconcile_canonical_headers(reconciler):
    mapping = reconciler.reconcile(CANONICAL_HEADERS)
    assert mapping.columns == {key: index for index, key in enumerate(REQUIRED_KEYS)}


def test_reconcile_accepts_underscore_spelling(reconciler):
    headers = [header.replace(" ", "_") for header in CANONICAL_HEADERS]
    mapping = reconciler.reconcile(headers)
    assert mapping.index_of("message_url") == 1
    assert mapping.index_of("content_type") == 5


def test_reconcile_accepts_mixed_spellings_and_extra_columns(reconciler):
    headers = ["Id", "Engagements", "Message_URL", "Content Type", "Network", "Date",
               "Message", "Type", "Profile", "Followers", "Notes"]
    mapping = reconciler.reconcile(headers)
    assert mapping.index_of("engagements") == 1
    assert mapping.index_of("message_url") == 2
    assert mapping.index_of("followers") == 9


def test_reconcile_strips_bom_and_whitespace(reconciler):
    headers = ["\ufeffNetwork"] + [f" {header} " for header in CANONICAL_HEADERS[1:]]
    mapping = reconciler.reconcile(headers)
    assert mapping.index_of("network") == 0
    assert mapping.index_of("engagements") == 8


def test_reconcile_rejects_unseparated_spelling(reconciler):
    headers = list(CANONICAL_HEADERS)
    headers[1] = "MessageURL"
    with pytest.raises(MissingColumnsError) as exc_info:
        reconciler.reconcile(headers)
    assert exc_info.value.missing == ["Message URL"]
    assert "Message URL" in str(exc_info.value)


def test_reconcile_reports_every_missing_column_at_once(reconciler):
    with pytest.raises(MissingColumnsError) as exc_info:
        reconciler.reconcile(["Network", "Date"])
    assert exc_info.value.missing == [
        "Message URL",
        "Message",
        "Type",
        "Content Type",
        "Profile",
        "Followers",
        "Engagements",
    ]


def test_reconcile_is_case_sensitive(reconciler):
    headers = list(CANONICAL_HEADERS)
    headers[0] = "network"
    with pytest.raises(MissingColumnsError) as exc_info:
        reconciler.reconcile(headers)
    assert exc_info.value.missing == ["Network"]


def test_reconcile_first_duplicate_column_wins(reconciler):
    headers = CANONICAL_HEADERS + ["Message_URL"]
    mapping = reconciler.reconcile(headers)
    assert mapping.index_of("message_url") == 1


def test_extract_short_row_yields_none(reconciler):
    mapping = reconciler.reconcile(CANONICAL_HEADERS)
    raw = mapping.extract(["Twitter", "https://example.com/1", "2024-04-05 10:30:00"])
    assert raw["network"] == "Twitter"
    assert raw["date"] == "2024-04-05 10:30:00"
    assert raw["message"] is None
    assert raw["engagements"] is None
