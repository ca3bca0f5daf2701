"""File watching: classify filesystem notifications into change signals.

The watchdog observer thread only classifies notifications and puts the
resulting ChangeSignals on an unbounded queue. It never touches dashboard
state; the owner of the state drains the queue on its own thread.
"""

import logging
import os
import queue
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from task_board.models import ChangeKind, ChangeSignal

logger = logging.getLogger(__name__)


class WatcherError(Exception):
    """Raised when the watch cannot be set up."""


@dataclass(frozen=True)
class WatchConfig:
    ledger_path: Path
    events_dir: Path
    secondary_events_dir: Path | None = None

    def __post_init__(self):
        object.__setattr__(self, "ledger_path", Path(self.ledger_path))
        object.__setattr__(self, "events_dir", Path(self.events_dir))
        if self.secondary_events_dir is not None:
            object.__setattr__(self, "secondary_events_dir", Path(self.secondary_events_dir))

    def with_secondary(self, directory: Path) -> "WatchConfig":
        return WatchConfig(self.ledger_path, self.events_dir, Path(directory))

    def validate(self):
        """Fail if a required path is missing. The secondary dir is optional."""
        if not Path(self.ledger_path).exists():
            raise WatcherError(f"Path does not exist: {self.ledger_path}")
        if not Path(self.events_dir).exists():
            raise WatcherError(f"Path does not exist: {self.events_dir}")


# ── Classification ──────────────────────────────────────────────────────────


class RawKind(str, Enum):
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    MOVED = "moved"
    OTHER = "other"


_WATCHDOG_KINDS = {
    "created": RawKind.CREATED,
    "modified": RawKind.MODIFIED,
    "deleted": RawKind.DELETED,
    "moved": RawKind.MOVED,
}


@dataclass(frozen=True)
class RawChange:
    """A filesystem notification, independent of the watching library."""

    kind: RawKind
    paths: tuple[Path, ...]

    @classmethod
    def from_fs_event(cls, event: FileSystemEvent) -> "RawChange":
        paths = [Path(os.fsdecode(event.src_path))]
        dest = getattr(event, "dest_path", None)
        if dest:
            paths.append(Path(os.fsdecode(dest)))
        # Directory events only say that an entry changed; the file events
        # for that entry arrive separately. Close and open events follow a
        # modification already reported, so they map to OTHER.
        if event.is_directory:
            kind = RawKind.OTHER
        else:
            kind = _WATCHDOG_KINDS.get(event.event_type, RawKind.OTHER)
        return cls(kind=kind, paths=tuple(paths))


def paths_match(a: Path, b: Path) -> bool:
    """True if a and b name the same file, resolving symlinks on mismatch."""
    if a == b:
        return True
    try:
        return Path(a).resolve() == Path(b).resolve()
    except (OSError, RuntimeError):
        return False


def is_under_dir(child: Path, parent: Path) -> bool:
    """True if child lies under parent, resolving symlinks on mismatch."""
    if Path(child).is_relative_to(parent):
        return True
    try:
        return Path(child).resolve().is_relative_to(Path(parent).resolve())
    except (OSError, RuntimeError):
        return False


def classify(raw: RawChange, config: WatchConfig) -> ChangeSignal | None:
    """Turn one notification into a ChangeSignal, or None if irrelevant.

    Only creations and modifications count; deletions, renames and metadata
    changes never produce a signal.
    """
    if raw.kind not in (RawKind.CREATED, RawKind.MODIFIED):
        return None

    event_kind = (
        ChangeKind.EVENT_FILE_CREATED if raw.kind == RawKind.CREATED
        else ChangeKind.EVENT_FILE_MODIFIED
    )
    for path in raw.paths:
        if paths_match(path, config.ledger_path):
            return ChangeSignal(ChangeKind.LEDGER_MODIFIED, path)
        if is_under_dir(path, config.events_dir):
            return ChangeSignal(event_kind, path)
        if config.secondary_events_dir is not None and is_under_dir(
            path, config.secondary_events_dir
        ):
            return ChangeSignal(event_kind, path)
    return None


# ── Dispatcher ──────────────────────────────────────────────────────────────


_CLOSED = object()


class _SignalHandler(FileSystemEventHandler):
    def __init__(self, config: WatchConfig, signals: queue.Queue):
        super().__init__()
        self.config = config
        self.signals = signals

    def on_any_event(self, event: FileSystemEvent):
        signal = classify(RawChange.from_fs_event(event), self.config)
        if signal is not None:
            logger.debug("Change signal: %s %s", signal.kind.value, signal.path)
            self.signals.put(signal)


class Dispatcher:
    """Watches the ledger and event directories on a background thread.

    With poll_interval set, a polling observer checks every poll_interval
    seconds instead of using native OS notifications.
    """

    def __init__(self, config: WatchConfig, poll_interval: float | None = None):
        self.config = config
        self.poll_interval = poll_interval
        self._signals: queue.Queue = queue.Queue()
        self._observer = None
        self._closed = False

    @property
    def running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self):
        """Validate the config and start watching. Raises WatcherError."""
        if self.running:
            return
        self.config.validate()
        # A fresh queue so a close sentinel from an earlier run is not seen.
        self._signals = queue.Queue()

        if self.poll_interval is not None:
            observer = PollingObserver(timeout=self.poll_interval)
        else:
            observer = Observer()
        handler = _SignalHandler(self.config, self._signals)

        ledger_parent = Path(self.config.ledger_path).parent
        try:
            observer.schedule(handler, str(ledger_parent), recursive=False)
            observer.schedule(handler, str(self.config.events_dir), recursive=True)
            secondary = self.config.secondary_events_dir
            if secondary is not None and Path(secondary).is_dir():
                observer.schedule(handler, str(secondary), recursive=True)
            observer.start()
        except OSError as e:
            raise WatcherError(f"Failed to start watching: {e}") from e

        self._observer = observer
        self._closed = False
        logger.info(
            "Watching %s and %s", self.config.ledger_path, self.config.events_dir
        )

    def stop(self):
        """Stop the observer; the queue reports closed once drained."""
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=10)
        self._observer = None
        self._signals.put(_CLOSED)
        logger.info("Watcher stopped")

    def drain(self, timeout: float | None = None) -> list[ChangeSignal]:
        """Return all queued signals.

        Without a timeout this never blocks. With one, it waits up to timeout
        seconds for the first signal, then takes whatever else is queued.
        """
        if self._closed:
            return []
        signals = []
        block = timeout is not None
        while True:
            try:
                item = self._signals.get(block=block, timeout=timeout)
            except queue.Empty:
                break
            block = False
            if item is _CLOSED:
                self._closed = True
                break
            signals.append(item)
        return signals

    def __enter__(self) -> "Dispatcher":
        self.start()
        return self

    def __exit__(self, *exc):
        self.stop()
