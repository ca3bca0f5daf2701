"""Tests for the data models."""

from datetime import datetime, timedelta, timezone

import pytest

from task_board.models import TaskStatus, TaskTiming


class TestTaskStatus:
    @pytest.mark.parametrize("value,expected", [
        ("done", TaskStatus.COMPLETED),
        ("x", TaskStatus.COMPLETED),
        ("In-Progress", TaskStatus.IN_PROGRESS),
        ("in_progress", TaskStatus.IN_PROGRESS),
        ("/", TaskStatus.IN_PROGRESS),
        ("todo", TaskStatus.PENDING),
        (" ", TaskStatus.PENDING),
        ("Blocked", TaskStatus.BLOCKED),
    ])
    def test_aliases(self, value, expected):
        assert TaskStatus.from_name(value) == expected

    @pytest.mark.parametrize("value", ["-", "_", "", "finished", "- -"])
    def test_unknown_raises(self, value):
        with pytest.raises(ValueError, match="Unknown task status"):
            TaskStatus.from_name(value)

    def test_tags(self):
        assert TaskStatus.PENDING.tag == " "
        assert TaskStatus.COMPLETED.tag == "x"


class TestTaskTiming:
    def test_duration_in_dict(self):
        start = datetime(2026, 2, 8, 12, 0, tzinfo=timezone.utc)
        timing = TaskTiming(started_at=start, completed_at=start + timedelta(minutes=4))
        assert timing.duration() == timedelta(minutes=4)
        assert timing.to_dict()["duration_seconds"] == 240.0

    def test_open_timing_has_no_duration(self):
        timing = TaskTiming(started_at=datetime(2026, 2, 8, tzinfo=timezone.utc))
        assert timing.duration() is None
        assert timing.to_dict()["duration_seconds"] is None
