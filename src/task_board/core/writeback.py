"""Ledger write-back: rewrite one task's status tag in place."""

from pathlib import Path

from task_board.models import TaskStatus


def _starts_with_id(rest: str, task_id: str) -> bool:
    # 'T10: ...' must not match a search for 'T1'.
    if not rest.startswith(task_id):
        return False
    tail = rest[len(task_id):]
    return not tail or tail[0] == ":" or tail[0].isspace()


def rewrite_status(text: str, task_id: str, new_status: TaskStatus | str) -> tuple[str, bool]:
    """Return (new_text, found) with the first matching header rewritten.

    A line matches when, trimmed, it starts with '### [' and the text right
    after the first '] ' begins with task_id. Only that line changes: leading
    text up to '[' and everything from the id onward are preserved, as are
    line endings and the presence or absence of a final newline.
    """
    if not task_id:
        return text, False
    tag = new_status.tag if isinstance(new_status, TaskStatus) else new_status
    lines = text.split("\n")

    for i, line in enumerate(lines):
        trimmed = line.strip()
        if not trimmed.startswith("### [") or task_id not in trimmed:
            continue
        bracket_end = line.find("] ")
        if bracket_end == -1 or not _starts_with_id(line[bracket_end + 2:], task_id):
            continue
        prefix = line[:line.find("[")]
        lines[i] = f"{prefix}[{tag}] {line[bracket_end + 2:]}"
        return "\n".join(lines), True

    return text, False


def set_task_status(path: Path, task_id: str, new_status: TaskStatus | str) -> bool:
    """Set a task's status tag in the ledger file.

    Returns True if a header line for task_id was found and rewritten. The
    file is only written when a match occurred. I/O errors propagate.
    """
    path = Path(path)
    with open(path, encoding="utf-8", newline="") as f:
        content = f.read()

    updated, found = rewrite_status(content, task_id, new_status)
    if found:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(updated)
    return found
