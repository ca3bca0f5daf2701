"""Hook event log parsing (JSON Lines).

Each line of a hook log is one JSON object::

    {"event_type": "agent_start", "timestamp": "2026-02-08T12:00:00Z",
     "agent_id": "backend", "task_id": "P1-T1", "session_id": "s1"}

Optional keys are ``tool_name`` (tool events) and ``error_message`` (error
events). Lines that cannot be decoded are reported, not raised.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from task_board.models import ActivityEvent, EventKind

HOOK_FILE_SUFFIX = ".jsonl"


@dataclass(frozen=True)
class HookParseError:
    line_number: int
    message: str


@dataclass
class HookParseResult:
    events: list[ActivityEvent] = field(default_factory=list)
    errors: list[HookParseError] = field(default_factory=list)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp; 'Z' and naive values are taken as UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _optional_str(data: dict, key: str) -> str | None:
    value = data.get(key)
    return str(value) if value is not None else None


def parse_hook_line(line: str) -> ActivityEvent:
    """Parse one log line. Raises ValueError if it is not a valid event."""
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid JSON: {e.msg}") from e
    if not isinstance(data, dict):
        raise ValueError("event is not a JSON object")

    for key in ("event_type", "timestamp", "agent_id"):
        if not data.get(key):
            raise ValueError(f"missing field: {key}")

    try:
        kind = EventKind(data["event_type"])
    except ValueError:
        raise ValueError(f"unknown event_type: {data['event_type']!r}") from None

    try:
        timestamp = parse_timestamp(str(data["timestamp"]))
    except ValueError:
        raise ValueError(f"invalid timestamp: {data['timestamp']!r}") from None

    return ActivityEvent(
        kind=kind,
        agent_id=str(data["agent_id"]),
        task_id=str(data.get("task_id") or ""),
        timestamp=timestamp,
        session_id=_optional_str(data, "session_id"),
        tool_name=_optional_str(data, "tool_name"),
        error_message=_optional_str(data, "error_message"),
    )


def parse_hook_events(text: str) -> HookParseResult:
    """Parse a whole hook log. Blank lines are skipped."""
    result = HookParseResult()
    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            result.events.append(parse_hook_line(line))
        except ValueError as e:
            result.errors.append(HookParseError(line_number, str(e)))
    return result


def parse_hook_file(path: Path) -> HookParseResult:
    """Read and parse a hook log file. Raises OSError if it cannot be read."""
    return parse_hook_events(Path(path).read_text(encoding="utf-8"))
