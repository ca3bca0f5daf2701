"""Ledger parsing: TASKS.md text into phases and tasks.

The ledger is a loosely formatted markdown document::

    # Phase 0: Setup

    ### [x] P0-T1: Init project
    - **owner**: @backend-specialist
    - **blocked_by**: P0-T0, P0-T0.5

Parsing is a single forward pass over the lines with two accumulators (the
open phase and the pending task). It never fails: a line that matches no rule
is skipped, a task header with an unknown status tag is dropped, and a task
that appears before any phase heading is discarded. Whatever was recognized
is returned.
"""

from pathlib import Path

from task_board.models import Phase, Task, TaskStatus

_STATUS_TAGS = {
    "x": TaskStatus.COMPLETED,
    "InProgress": TaskStatus.IN_PROGRESS,
    "Failed": TaskStatus.FAILED,
    "Blocked": TaskStatus.BLOCKED,
    "/": TaskStatus.IN_PROGRESS,
}

DEFAULT_LEDGER = "TASKS.md"
FALLBACK_LEDGER = "docs/planning/06-tasks.md"


def parse_status_tag(tag: str) -> TaskStatus | None:
    """Map the text between the brackets to a status; None if unrecognized."""
    if tag in _STATUS_TAGS:
        return _STATUS_TAGS[tag]
    if tag.strip() == "":
        return TaskStatus.PENDING
    return None


def parse_phase_header(header: str) -> Phase | None:
    """Parse heading text like 'Phase 0: Setup' into an empty Phase."""
    header = header.strip()
    if not header.startswith("Phase"):
        return None
    id_part, colon, name_part = header.partition(":")
    if not colon:
        return None
    number = id_part[len("Phase"):].strip()
    return Phase(id=f"P{number}", name=name_part.strip())


def _parse_task_header(rest: str) -> tuple[str, str, TaskStatus] | None:
    """Parse '[tag] ID: Name' (the text after '### ')."""
    if not rest.startswith("["):
        return None
    close = rest.find("]", 1)
    if close == -1:
        return None
    status = parse_status_tag(rest[1:close])
    if status is None:
        return None

    remaining = rest[close + 1:].strip()
    task_id, colon, name = remaining.partition(":")
    if colon:
        return task_id.strip(), name.strip(), status
    return remaining, remaining, status


def extract_agent(body: str) -> str | None:
    """Return the first @mention in the body, without the '@'."""
    for line in body.splitlines():
        line = line.strip()
        pos = line.find("@")
        if pos == -1:
            continue
        agent = []
        for ch in line[pos + 1:]:
            if ch.isspace() or ch == ",":
                break
            agent.append(ch)
        if agent:
            return "".join(agent)
    return None


def extract_blocked_by(body: str) -> list[str]:
    """Collect ids from every 'blocked_by:' line (bold markup allowed)."""
    blocked = []
    for line in body.splitlines():
        stripped = line.strip().replace("**", "")
        pos = stripped.find("blocked_by:")
        if pos == -1:
            continue
        rest = stripped[pos + len("blocked_by:"):]
        for part in rest.split(","):
            dep = part.strip()
            if dep:
                blocked.append(dep)
    return blocked


def _phase_heading_text(line: str) -> str | None:
    if line.startswith("# "):
        return line[2:]
    if line.startswith("## "):
        return line[3:]
    return None


def _is_heading(line: str) -> bool:
    hashes = len(line) - len(line.lstrip("#"))
    return 1 <= hashes <= 6 and (len(line) == hashes or line[hashes] in " \t")


class _LedgerBuilder:
    """Accumulates the open phase and pending task during a parse."""

    def __init__(self):
        self.phases: list[Phase] = []
        self.phase: Phase | None = None
        self.phase_tasks: list[Task] = []
        self.pending: tuple[str, str, TaskStatus] | None = None
        self.body: list[str] = []

    def flush_task(self):
        if self.pending is None:
            return
        task_id, name, status = self.pending
        if self.phase is not None:
            body = "\n".join(self.body)
            self.phase_tasks.append(Task(
                id=task_id,
                name=name,
                status=status,
                agent=extract_agent(body),
                blocked_by=tuple(extract_blocked_by(body)),
            ))
        self.pending = None
        self.body = []

    def flush_phase(self):
        if self.phase is None:
            return
        self.phases.append(Phase(
            id=self.phase.id,
            name=self.phase.name,
            tasks=tuple(self.phase_tasks),
        ))
        self.phase = None
        self.phase_tasks = []

    def open_phase(self, phase: Phase):
        self.flush_task()
        self.flush_phase()
        self.phase = phase


def parse_ledger(text: str) -> list[Phase]:
    """Parse ledger text into an ordered list of phases.

    Total function: any input yields a (possibly empty) list. Calling it twice
    on the same text yields equal results.
    """
    builder = _LedgerBuilder()

    for line in text.splitlines():
        trimmed = line.strip()

        heading = _phase_heading_text(trimmed)
        if heading is not None:
            phase = parse_phase_header(heading)
            if phase is not None:
                builder.open_phase(phase)
                continue

        if trimmed.startswith("### "):
            builder.flush_task()
            builder.pending = _parse_task_header(trimmed[4:])
            continue

        if _is_heading(trimmed):
            # Any other heading ends the current task body.
            builder.flush_task()
            continue

        if builder.pending is not None:
            builder.body.append(line)

    builder.flush_task()
    builder.flush_phase()
    return builder.phases


def read_ledger(path: Path) -> list[Phase]:
    """Read and parse a ledger file. Raises OSError if it cannot be read."""
    return parse_ledger(Path(path).read_text(encoding="utf-8"))


def resolve_ledger_path(explicit: str | Path | None = None, cwd: Path | None = None) -> Path:
    """Pick the ledger file: explicit path, ./TASKS.md, docs/planning fallback."""
    if explicit:
        return Path(explicit)
    base = cwd or Path.cwd()
    primary = base / DEFAULT_LEDGER
    if primary.exists():
        return primary
    fallback = base / FALLBACK_LEDGER
    if fallback.exists():
        return fallback
    return primary
