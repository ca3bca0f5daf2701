"""Data models for the task board."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path


class TaskStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    FAILED = "Failed"
    BLOCKED = "Blocked"

    @property
    def tag(self) -> str:
        """The text written between the brackets of a task header."""
        return _STATUS_TAGS[self]

    @classmethod
    def from_name(cls, value: str) -> "TaskStatus":
        """Resolve user input such as 'failed', 'x' or 'in-progress'."""
        if value and not value.strip():
            return cls.PENDING
        key = value.strip().lower().replace("-", "").replace("_", "").replace(" ", "")
        status = _STATUS_ALIASES.get(key)
        if status is None:
            raise ValueError(f"Unknown task status: {value!r}")
        return status


_STATUS_TAGS = {
    TaskStatus.PENDING: " ",
    TaskStatus.IN_PROGRESS: "InProgress",
    TaskStatus.COMPLETED: "x",
    TaskStatus.FAILED: "Failed",
    TaskStatus.BLOCKED: "Blocked",
}

_STATUS_ALIASES = {
    "pending": TaskStatus.PENDING,
    "todo": TaskStatus.PENDING,
    "inprogress": TaskStatus.IN_PROGRESS,
    "/": TaskStatus.IN_PROGRESS,
    "completed": TaskStatus.COMPLETED,
    "done": TaskStatus.COMPLETED,
    "x": TaskStatus.COMPLETED,
    "failed": TaskStatus.FAILED,
    "blocked": TaskStatus.BLOCKED,
}


@dataclass(frozen=True)
class Task:
    id: str
    name: str
    status: TaskStatus = TaskStatus.PENDING
    agent: str | None = None
    blocked_by: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "agent": self.agent,
            "blocked_by": list(self.blocked_by),
        }


@dataclass(frozen=True)
class Phase:
    id: str
    name: str
    tasks: tuple[Task, ...] = ()

    def completed_count(self) -> int:
        return sum(1 for t in self.tasks if t.status == TaskStatus.COMPLETED)

    def progress(self) -> float:
        """Fraction of completed tasks, 0.0 for a phase without tasks."""
        if not self.tasks:
            return 0.0
        return self.completed_count() / len(self.tasks)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "progress": self.progress(),
            "tasks": [t.to_dict() for t in self.tasks],
        }


@dataclass
class TaskTiming:
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def duration(self) -> timedelta | None:
        if self.started_at is None or self.completed_at is None:
            return None
        return self.completed_at - self.started_at

    def to_dict(self) -> dict:
        duration = self.duration()
        return {
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": duration.total_seconds() if duration is not None else None,
        }


class AgentStatus(str, Enum):
    IDLE = "Idle"
    RUNNING = "Running"
    ERROR = "Error"


@dataclass
class AgentState:
    agent_id: str
    status: AgentStatus = AgentStatus.IDLE
    current_task: str | None = None
    current_tool: str | None = None
    event_count: int = 0
    error_count: int = 0

    def to_dict(self) -> dict:
        return {
            "agent_id": self.agent_id,
            "status": self.status.value,
            "current_task": self.current_task,
            "current_tool": self.current_tool,
            "event_count": self.event_count,
            "error_count": self.error_count,
        }


@dataclass(frozen=True)
class ErrorClassification:
    category: str
    retryable: bool
    suggestion: str


@dataclass
class ErrorRecord:
    agent_id: str
    task_id: str
    message: str
    category: str
    retryable: bool
    suggestion: str
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "agent_id": self.agent_id,
            "task_id": self.task_id,
            "message": self.message,
            "category": self.category,
            "retryable": self.retryable,
            "suggestion": self.suggestion,
            "timestamp": self.timestamp.isoformat(),
        }


class EventKind(str, Enum):
    AGENT_START = "agent_start"
    AGENT_END = "agent_end"
    TOOL_START = "tool_start"
    TOOL_END = "tool_end"
    ERROR = "error"


@dataclass(frozen=True)
class ActivityEvent:
    kind: EventKind
    agent_id: str
    task_id: str
    timestamp: datetime
    session_id: str | None = None
    tool_name: str | None = None
    error_message: str | None = None


class ChangeKind(str, Enum):
    LEDGER_MODIFIED = "LedgerModified"
    EVENT_FILE_CREATED = "EventFileCreated"
    EVENT_FILE_MODIFIED = "EventFileModified"


@dataclass(frozen=True)
class ChangeSignal:
    kind: ChangeKind
    path: Path

    @property
    def is_event_file(self) -> bool:
        return self.kind in (ChangeKind.EVENT_FILE_CREATED, ChangeKind.EVENT_FILE_MODIFIED)


@dataclass(frozen=True)
class LoadFailure:
    path: Path
    reason: str


@dataclass(frozen=True)
class RetryTarget:
    task_id: str
    task_name: str
    retryable: bool
