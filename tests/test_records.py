from datetime import datetime, timedelta, timezone

import pytest

from conftest import NOW
from todo_api.errors import ValidationError
from todo_api.models import TodoStatus
from todo_api.records import merge_update, new_record, validate_new
from todo_api.schemas import TodoCreate


def stored(**overrides):
    record = {
        "id": 7,
        "title": "Original",
        "description": "keep me",
        "status": TodoStatus.PENDING,
        "deadline": datetime(2025, 7, 1, tzinfo=timezone.utc),
        "created_at": NOW,
        "updated_at": NOW,
    }
    record.update(overrides)
    return record


class TestNewRecord:
    def test_defaults_and_timestamps(self):
        record = new_record({"title": "  Plan trip "}, NOW)
        assert record == {
            "title": "Plan trip",
            "description": None,
            "status": TodoStatus.PENDING,
            "deadline": None,
            "created_at": NOW,
            "updated_at": NOW,
        }

    def test_accepts_validated_model(self):
        record = new_record(TodoCreate(title="Model", status="completed"), NOW)
        assert record["status"] is TodoStatus.COMPLETED

    def test_deadline_forms(self):
        assert new_record({"title": "a", "deadline": "2025-08-01"}, NOW)["deadline"] == datetime(
            2025, 8, 1, tzinfo=timezone.utc
        )
        assert new_record({"title": "a", "deadline": "2025-08-01T10:30:00+02:00"}, NOW)["deadline"] == datetime(
            2025, 8, 1, 8, 30, tzinfo=timezone.utc
        )
        assert new_record({"title": "a", "deadline": "2025-08-01T10:30:00Z"}, NOW)["deadline"] == datetime(
            2025, 8, 1, 10, 30, tzinfo=timezone.utc
        )

    def test_every_violation_is_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_new({"title": "   ", "status": "someday", "deadline": "tomorrow-ish"})
        fields = sorted(v.split(":")[0] for v in exc_info.value.violations)
        assert fields == ["deadline", "status", "title"]
        assert str(exc_info.value).startswith("Validation failed: ")

    def test_missing_title(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_new({})
        assert exc_info.value.violations == ["title: Field required"]

    def test_overlong_title(self):
        with pytest.raises(ValidationError):
            validate_new({"title": "x" * 201})


class TestMergeUpdate:
    def test_partial_merge(self):
        later = NOW + timedelta(minutes=5)
        merged = merge_update(stored(), {"status": "completed"}, later)
        assert merged["status"] is TodoStatus.COMPLETED
        assert merged["title"] == "Original"
        assert merged["description"] == "keep me"
        assert merged["deadline"] == datetime(2025, 7, 1, tzinfo=timezone.utc)
        assert merged["id"] == 7
        assert merged["created_at"] == NOW
        assert merged["updated_at"] == later

    def test_explicit_null_clears_deadline(self):
        merged = merge_update(stored(), {"deadline": None}, NOW)
        assert merged["deadline"] is None

    def test_explicit_null_title_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            merge_update(stored(), {"title": None}, NOW)
        assert exc_info.value.violations[0].startswith("title")

    def test_invalid_status_is_rejected(self):
        with pytest.raises(ValidationError):
            merge_update(stored(), {"status": "paused"}, NOW)

    def test_server_fields_cannot_be_overwritten(self):
        merged = merge_update(stored(), {"id": 99, "created_at": NOW - timedelta(days=9)}, NOW)
        assert merged["id"] == 7
        assert merged["created_at"] == NOW

    def test_updated_at_never_precedes_created_at(self):
        merged = merge_update(stored(), {"title": "Clock skew"}, NOW - timedelta(hours=1))
        assert merged["updated_at"] == NOW
