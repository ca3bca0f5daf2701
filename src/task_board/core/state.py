"""Dashboard state: parsed ledger phases merged with agent activity.

Two independent update paths feed the state:

- ``replace_from_ledger`` swaps in a new phase tree and recomputes the task
  counters. Agent, timing and error data are left alone.
- ``apply_activity_events`` folds hook events into the agent map, the task
  timing map and the error log. The phase tree is left alone.

Events are applied in the order given, without reordering or deduplication:
applying the same sequence twice to one state counts it twice. Callers that
need idempotence rebuild from whole files into a fresh state.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from task_board.core.ledger import parse_ledger, read_ledger
from task_board.integrations.errors import classify_error
from task_board.integrations.hooks import HOOK_FILE_SUFFIX, HookParseResult, parse_hook_file
from task_board.models import (
    ActivityEvent,
    AgentState,
    AgentStatus,
    ErrorClassification,
    ErrorRecord,
    EventKind,
    LoadFailure,
    Phase,
    Task,
    TaskStatus,
    TaskTiming,
)

logger = logging.getLogger(__name__)

ErrorClassifier = Callable[[str], ErrorClassification]
EventFileParser = Callable[[Path], HookParseResult]

_AGENT_ORDER = {AgentStatus.RUNNING: 0, AgentStatus.ERROR: 1, AgentStatus.IDLE: 2}


@dataclass
class DashboardState:
    phases: list[Phase] = field(default_factory=list)
    agents: dict[str, AgentState] = field(default_factory=dict)
    task_times: dict[str, TaskTiming] = field(default_factory=dict)
    recent_errors: list[ErrorRecord] = field(default_factory=list)
    total_tasks: int = 0
    completed_tasks: int = 0
    failed_tasks: int = 0
    overall_progress: float = 0.0
    classifier: ErrorClassifier = field(default=classify_error, repr=False, compare=False)

    # ── Construction ──────────────────────────────────────────────────────

    @classmethod
    def from_ledger_text(cls, text: str, **kwargs) -> "DashboardState":
        state = cls(**kwargs)
        state.replace_from_ledger(parse_ledger(text))
        return state

    @classmethod
    def from_ledger_file(cls, path: Path, **kwargs) -> "DashboardState":
        """Build state from a ledger file.

        Raises OSError if unreadable and UnicodeDecodeError if not UTF-8.
        """
        state = cls(**kwargs)
        state.replace_from_ledger(read_ledger(path))
        return state

    # ── Ledger path ───────────────────────────────────────────────────────

    def replace_from_ledger(self, phases: Iterable[Phase]):
        """Replace the phase tree and recompute the task counters."""
        phases = list(phases)
        total = completed = failed = 0
        for phase in phases:
            for task in phase.tasks:
                total += 1
                if task.status == TaskStatus.COMPLETED:
                    completed += 1
                elif task.status == TaskStatus.FAILED:
                    failed += 1

        self.phases = phases
        self.total_tasks = total
        self.completed_tasks = completed
        self.failed_tasks = failed
        self.overall_progress = completed / total if total > 0 else 0.0

    def reload_ledger(self, text: str):
        self.replace_from_ledger(parse_ledger(text))

    # ── Activity path ─────────────────────────────────────────────────────

    def _agent(self, agent_id: str) -> AgentState:
        agent = self.agents.get(agent_id)
        if agent is None:
            agent = self.agents[agent_id] = AgentState(agent_id=agent_id)
        return agent

    def _timing(self, task_id: str) -> TaskTiming:
        timing = self.task_times.get(task_id)
        if timing is None:
            timing = self.task_times[task_id] = TaskTiming()
        return timing

    def apply_activity_events(self, events: Iterable[ActivityEvent]):
        """Fold events into agent, timing and error aggregates, in order."""
        for event in events:
            agent = self._agent(event.agent_id)
            agent.event_count += 1

            if event.kind == EventKind.AGENT_START:
                agent.status = AgentStatus.RUNNING
                agent.current_task = event.task_id
                timing = self._timing(event.task_id)
                if timing.started_at is None:
                    timing.started_at = event.timestamp

            elif event.kind == EventKind.AGENT_END:
                agent.status = AgentStatus.IDLE
                if agent.current_task is not None:
                    self._timing(agent.current_task).completed_at = event.timestamp
                agent.current_task = None
                agent.current_tool = None

            elif event.kind == EventKind.TOOL_START:
                agent.current_tool = event.tool_name

            elif event.kind == EventKind.TOOL_END:
                agent.current_tool = None

            elif event.kind == EventKind.ERROR:
                agent.status = AgentStatus.ERROR
                agent.error_count += 1
                message = event.error_message or ""
                analysis = self.classifier(message)
                self.recent_errors.append(ErrorRecord(
                    agent_id=event.agent_id,
                    task_id=event.task_id,
                    message=message,
                    category=analysis.category,
                    retryable=analysis.retryable,
                    suggestion=analysis.suggestion,
                    timestamp=event.timestamp,
                ))

    def load_from_directory(
        self,
        directory: Path,
        parser: EventFileParser = parse_hook_file,
    ) -> list[LoadFailure]:
        """Apply every hook log in a directory (non-recursive, name order).

        A file that cannot be read or decoded is logged, skipped and returned
        as a LoadFailure; the remaining files are still applied. Raises
        OSError if the directory itself cannot be listed.
        """
        directory = Path(directory)
        paths = sorted(
            p for p in directory.iterdir()
            if p.suffix == HOOK_FILE_SUFFIX and p.is_file()
        )

        failures = []
        for path in paths:
            try:
                result = parser(path)
            except (OSError, ValueError) as e:
                logger.warning("Failed to load hook events from %s: %s", path, e)
                failures.append(LoadFailure(path=path, reason=str(e)))
                continue
            if result.errors:
                logger.debug("%s: skipped %d malformed lines", path, len(result.errors))
            self.apply_activity_events(result.events)
        return failures

    # ── Queries ───────────────────────────────────────────────────────────

    def errors_for_task(self, task_id: str) -> list[ErrorRecord]:
        """Errors recorded against a task, most recent first."""
        return [e for e in reversed(self.recent_errors) if e.task_id == task_id]

    def errors_for_agent(self, agent_id: str) -> list[ErrorRecord]:
        """Errors recorded by an agent, most recent first."""
        return [e for e in reversed(self.recent_errors) if e.agent_id == agent_id]

    def task_at(self, phase_index: int, task_index: int) -> Task:
        return self.phases[phase_index].tasks[task_index]

    def find_task(self, task_id: str) -> tuple[int, int] | None:
        """Position of the first task with this id, as (phase, task) indices."""
        for pi, phase in enumerate(self.phases):
            for ti, task in enumerate(phase.tasks):
                if task.id == task_id:
                    return pi, ti
        return None

    def timing_for(self, task_id: str) -> TaskTiming | None:
        return self.task_times.get(task_id)

    def agents_by_status(self) -> list[AgentState]:
        """Agents ordered Running, Error, Idle, then by id."""
        return sorted(
            self.agents.values(),
            key=lambda a: (_AGENT_ORDER[a.status], a.agent_id),
        )

    def to_dict(self) -> dict:
        return {
            "phases": [p.to_dict() for p in self.phases],
            "agents": [a.to_dict() for a in self.agents_by_status()],
            "task_times": {k: v.to_dict() for k, v in self.task_times.items()},
            "recent_errors": [e.to_dict() for e in reversed(self.recent_errors)],
            "total_tasks": self.total_tasks,
            "completed_tasks": self.completed_tasks,
            "failed_tasks": self.failed_tasks,
            "overall_progress": self.overall_progress,
        }
