"""Tests for hook event log parsing."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from task_board.integrations.hooks import (
    parse_hook_events,
    parse_hook_file,
    parse_hook_line,
    parse_timestamp,
)
from task_board.models import EventKind

FIXTURES = Path(__file__).parent / "fixtures"


def _line(**fields) -> str:
    data = {"event_type": "agent_start", "timestamp": "2026-02-08T12:00:00Z", "agent_id": "a1"}
    data.update(fields)
    return json.dumps(data)


class TestTimestamps:
    def test_zulu(self):
        assert parse_timestamp("2026-02-08T12:00:00Z") == datetime(
            2026, 2, 8, 12, 0, tzinfo=timezone.utc
        )

    def test_naive_is_utc(self):
        assert parse_timestamp("2026-02-08T12:00:00").tzinfo == timezone.utc

    def test_offset_kept(self):
        ts = parse_timestamp("2026-02-08T14:00:00+02:00")
        assert ts == datetime(2026, 2, 8, 12, 0, tzinfo=timezone.utc)

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")


class TestParseLine:
    def test_full_event(self):
        event = parse_hook_line(_line(
            event_type="tool_start", task_id="T1", session_id="s1", tool_name="Bash",
        ))
        assert event.kind == EventKind.TOOL_START
        assert event.agent_id == "a1"
        assert event.task_id == "T1"
        assert event.session_id == "s1"
        assert event.tool_name == "Bash"
        assert event.error_message is None

    def test_missing_task_id_is_empty(self):
        assert parse_hook_line(_line()).task_id == ""

    @pytest.mark.parametrize("key", ["event_type", "timestamp", "agent_id"])
    def test_missing_required_field(self, key):
        data = json.loads(_line())
        del data[key]
        with pytest.raises(ValueError, match=key):
            parse_hook_line(json.dumps(data))

    def test_unknown_event_type(self):
        with pytest.raises(ValueError, match="unknown event_type"):
            parse_hook_line(_line(event_type="heartbeat"))

    def test_not_an_object(self):
        with pytest.raises(ValueError):
            parse_hook_line("[1, 2, 3]")

    def test_invalid_json(self):
        with pytest.raises(ValueError, match="invalid JSON"):
            parse_hook_line("{not json")


class TestParseEvents:
    def test_bad_lines_are_reported_not_raised(self):
        text = "\n".join([_line(), "garbage", "", _line(event_type="agent_end")])
        result = parse_hook_events(text)
        assert [e.kind for e in result.events] == [EventKind.AGENT_START, EventKind.AGENT_END]
        assert len(result.errors) == 1
        assert result.errors[0].line_number == 2

    def test_fixture_file(self):
        result = parse_hook_file(FIXTURES / "sample_hooks" / "error_events.jsonl")
        assert len(result.events) == 3
        assert len(result.errors) == 1
        assert result.events[1].error_message == "Connection refused: localhost:5432"

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            parse_hook_file(tmp_path / "missing.jsonl")
