"""Tests for the social insights database layer."""

from datetime import datetime, timedelta, timezone

import pytest

from src.social_insights.database import SocialInsightsDatabase
from src.social_insights.models import Dataset, Discard, IngestionReport, NormalizedRecord


@pytest.fixture
def temp_db(tmp_path):
    """Create a temporary database for testing."""
    db_path = tmp_path / "test_social_insights.db"
    return SocialInsightsDatabase(db_path=db_path)


def make_dataset(count, prefix="post"):
    start = datetime(2024, 4, 5, 10, 30, tzinfo=timezone(timedelta(hours=2)))
    return Dataset(
        records=tuple(
            NormalizedRecord(
                network="Facebook" if index % 2 else "Twitter",
                message_url=f"https://example.com/{prefix}/{index}",
                date="2024-04-05T10:30:00+02:00",
                occurred_at=start - timedelta(minutes=index),
                message=f"{prefix} message {index}",
                type="Post",
                content_type="Video",
                profile=f"profile-{index}",
                followers=1000 + index,
                engagements=index * 2,
                formatted_date="April 5th, 2024",
            )
            for index in range(count)
        )
    )


def test_database_initialization(temp_db):
    """Test that database initializes with the expected tables."""
    assert temp_db.db_path.exists()

    with temp_db._connect() as conn:
        tables = {
            row[0]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        }

    assert {"posts", "chat_history", "upload_runs"} <= tables


def test_replace_posts_round_trip_preserves_order(temp_db):
    dataset = make_dataset(4)

    stored = temp_db.replace_posts(dataset)
    loaded = temp_db.load_dataset()

    assert stored == 4
    assert loaded == dataset
    assert loaded[0].occurred_at.utcoffset() == timedelta(hours=2)


def test_replace_posts_discards_previous_dataset(temp_db):
    temp_db.replace_posts(make_dataset(5, prefix="old"))
    temp_db.replace_posts(make_dataset(2, prefix="new"))

    loaded = temp_db.load_dataset()
    assert temp_db.count_posts() == 2
    assert all("/new/" in record.message_url for record in loaded)


def test_load_dataset_when_empty(temp_db):
    assert len(temp_db.load_dataset()) == 0


def test_chat_history_append_and_window(temp_db):
    for index in range(3):
        temp_db.append_message("user", f"question {index}")
        temp_db.append_message("assistant", f"answer {index}")

    history = temp_db.get_history()
    assert len(history) == 6
    assert history[0].content == "question 0"

    window = temp_db.get_history(limit=3)
    assert [message.content for message in window] == ["answer 1", "question 2", "answer 2"]


def test_append_message_rejects_unknown_role(temp_db):
    with pytest.raises(ValueError):
        temp_db.append_message("system", "not stored")


def test_edit_and_delete_messages(temp_db):
    question = temp_db.append_message("user", "original")
    answer = temp_db.append_message("assistant", "reply")

    assert temp_db.edit_message(question.id, "rewritten")
    assert temp_db.delete_message(answer.id)
    assert not temp_db.edit_message(9999, "nothing")
    assert not temp_db.delete_message(9999)

    history = temp_db.get_history()
    assert len(history) == 1
    assert history[0].content == "rewritten"
    assert history[0].edited is True


def test_clear_history(temp_db):
    temp_db.append_message("user", "one")
    temp_db.append_message("assistant", "two")

    assert temp_db.clear_history() == 2
    assert temp_db.get_history() == []


def test_upload_run_tracking(temp_db):
    run_id = temp_db.start_upload_run(filename="export.csv")
    report = IngestionReport(
        dataset=make_dataset(3),
        rows_read=5,
        discards=[
            Discard(reason="missing-field", row_number=2),
            Discard(reason="duplicate-url", row_number=4),
        ],
    )
    temp_db.complete_upload_run(run_id, report=report)

    runs = temp_db.get_upload_runs()
    assert len(runs) == 1
    run = runs[0]
    assert run["filename"] == "export.csv"
    assert run["status"] == "completed"
    assert run["rows_read"] == 5
    assert run["accepted"] == 3
    assert run["discarded"] == 2
    assert run["metadata"]["discard_counts"] == {"missing-field": 1, "duplicate-url": 1}
    assert run["completed_at"] is not None


def test_rejected_upload_run(temp_db):
    run_id = temp_db.start_upload_run(filename="broken.csv")
    temp_db.complete_upload_run(run_id, status="rejected", metadata={"error": "No valid data found in CSV file"})

    run = temp_db.get_upload_runs()[0]
    assert run["status"] == "rejected"
    assert run["accepted"] == 0
    assert run["metadata"] == {"error": "No valid data found in CSV file"}
