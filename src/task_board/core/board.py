"""The board: owns the dashboard state and reacts to file changes.

All state mutation happens on the thread that calls ``poll``. The watcher
thread only produces signals.
"""

import logging
from pathlib import Path

from task_board.core.ledger import read_ledger
from task_board.core.state import DashboardState
from task_board.core.watcher import Dispatcher, WatchConfig
from task_board.core.writeback import set_task_status
from task_board.integrations.hooks import HOOK_FILE_SUFFIX
from task_board.models import ChangeKind, ChangeSignal, LoadFailure, RetryTarget, TaskStatus

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = (TaskStatus.FAILED, TaskStatus.BLOCKED)


class Board:
    def __init__(
        self,
        ledger_path: Path,
        hooks_dir: Path,
        events_dir: Path | None = None,
        state: DashboardState | None = None,
    ):
        self.ledger_path = Path(ledger_path)
        self.hooks_dir = Path(hooks_dir)
        self.events_dir = Path(events_dir) if events_dir else None
        self.state = state or DashboardState()
        self.dispatcher: Dispatcher | None = None

    @classmethod
    def open(
        cls,
        ledger_path: Path,
        hooks_dir: Path,
        events_dir: Path | None = None,
    ) -> "Board":
        """Create a board and load the ledger and existing hook logs.

        A missing ledger leaves the board empty rather than failing; the
        watcher setup is what insists on the ledger existing.
        """
        board = cls(ledger_path, hooks_dir, events_dir)
        board.reload_ledger()
        board.reload_events()
        return board

    @classmethod
    def from_config(cls, config) -> "Board":
        return cls.open(config.tasks_path, config.hooks_dir, config.events_dir)

    def event_dirs(self) -> list[Path]:
        dirs = [self.hooks_dir]
        if self.events_dir is not None and self.events_dir != self.hooks_dir:
            dirs.append(self.events_dir)
        return dirs

    # ── Reloading ─────────────────────────────────────────────────────────

    def reload_ledger(self) -> bool:
        """Re-read the ledger. On failure the previous phases are kept."""
        try:
            phases = read_ledger(self.ledger_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read ledger %s: %s", self.ledger_path, e)
            return False
        self.state.replace_from_ledger(phases)
        return True

    def reload_events(self) -> list[LoadFailure]:
        """Rebuild agent, timing and error data from all hook logs.

        Rebuilding from whole files keeps repeated notifications for the same
        file from counting its events twice.
        """
        fresh = DashboardState(classifier=self.state.classifier)
        failures = []
        for directory in self.event_dirs():
            if not directory.is_dir():
                continue
            try:
                failures.extend(fresh.load_from_directory(directory))
            except OSError as e:
                logger.warning("Could not list hook directory %s: %s", directory, e)
                failures.append(LoadFailure(path=directory, reason=str(e)))

        self.state.agents = fresh.agents
        self.state.task_times = fresh.task_times
        self.state.recent_errors = fresh.recent_errors
        return failures

    def handle_change(self, signal: ChangeSignal) -> bool:
        """React to one signal. Returns True if the state was refreshed."""
        if signal.kind == ChangeKind.LEDGER_MODIFIED:
            return self.reload_ledger()
        if signal.path.suffix != HOOK_FILE_SUFFIX:
            return False
        self.reload_events()
        return True

    # ── Watching ──────────────────────────────────────────────────────────

    def watch_config(self) -> WatchConfig:
        config = WatchConfig(self.ledger_path, self.hooks_dir)
        if self.events_dir is not None and self.events_dir.is_dir():
            config = config.with_secondary(self.events_dir)
        return config

    def start_watching(self, poll_interval: float | None = None):
        """Start the background watcher. Raises WatcherError on bad paths."""
        if self.dispatcher is not None and self.dispatcher.running:
            return
        dispatcher = Dispatcher(self.watch_config(), poll_interval=poll_interval)
        dispatcher.start()
        self.dispatcher = dispatcher

    def stop(self):
        if self.dispatcher is not None:
            self.dispatcher.stop()
            self.dispatcher = None

    def poll(self, timeout: float | None = None) -> list[ChangeSignal]:
        """Drain pending signals and apply them. Returns the signals handled.

        Duplicates are collapsed, and the ledger and hook logs are each
        reloaded at most once per call.
        """
        if self.dispatcher is None:
            return []
        pending = self.dispatcher.drain(timeout=timeout)

        handled = []
        ledger_done = events_done = False
        for signal in dict.fromkeys(pending):
            if signal.kind == ChangeKind.LEDGER_MODIFIED:
                if ledger_done:
                    continue
                ledger_done = True
            elif signal.path.suffix == HOOK_FILE_SUFFIX:
                if events_done:
                    continue
                events_done = True
            try:
                if self.handle_change(signal):
                    handled.append(signal)
            except Exception:
                logger.exception("Error handling change %s", signal)
        return handled

    # ── Status changes ────────────────────────────────────────────────────

    def set_status(self, task_id: str, status: TaskStatus | str) -> bool:
        """Write a new status to the ledger and reload it.

        Returns False if no header for task_id exists. I/O errors propagate.
        """
        if not set_task_status(self.ledger_path, task_id, status):
            return False
        self.reload_ledger()
        return True

    def retry_target(self, task_id: str) -> RetryTarget | None:
        """Describe a retry of task_id, or None if it is not Failed/Blocked.

        Retryability comes from the most recent error recorded for the task;
        a task with no recorded error is retryable.
        """
        position = self.state.find_task(task_id)
        if position is None:
            return None
        task = self.state.task_at(*position)
        if task.status not in RETRYABLE_STATUSES:
            return None

        errors = self.state.errors_for_task(task.id)
        retryable = errors[0].retryable if errors else True
        return RetryTarget(task_id=task.id, task_name=task.name, retryable=retryable)

    def confirm_retry(self, task_id: str) -> bool:
        """Mark a retryable Failed/Blocked task InProgress in the ledger."""
        target = self.retry_target(task_id)
        if target is None or not target.retryable:
            return False
        return self.set_status(target.task_id, TaskStatus.IN_PROGRESS)
