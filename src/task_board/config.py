"""Configuration loading from environment variables."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from task_board.core.ledger import resolve_ledger_path


def default_hooks_dir() -> Path:
    """./.claude/hooks if present, else ~/.claude/hooks if present."""
    local = Path(".claude") / "hooks"
    if local.is_dir():
        return local
    home = Path.home() / ".claude" / "hooks"
    if home.is_dir():
        return home
    return local


@dataclass
class Config:
    tasks_path: Path = field(default_factory=resolve_ledger_path)
    hooks_dir: Path = field(default_factory=default_hooks_dir)
    events_dir: Path | None = field(default_factory=lambda: Path.home() / ".claude" / "dashboard")
    poll_interval: float | None = None
    log_level: str = "WARNING"
    host: str = "127.0.0.1"
    port: int = 8788

    @classmethod
    def from_env(cls) -> "Config":
        config = cls()

        if tasks := os.environ.get("TB_TASKS_PATH"):
            config.tasks_path = Path(tasks)

        if hooks := os.environ.get("TB_HOOKS_DIR"):
            config.hooks_dir = Path(hooks)

        if events := os.environ.get("TB_EVENTS_DIR"):
            config.events_dir = Path(events)

        if interval := os.environ.get("TB_POLL_INTERVAL"):
            config.poll_interval = float(interval)

        if level := os.environ.get("TB_LOG_LEVEL"):
            config.log_level = level.upper()

        if host := os.environ.get("TB_HOST"):
            config.host = host

        if port := os.environ.get("TB_PORT"):
            config.port = int(port)

        return config


def get_config() -> Config:
    return Config.from_env()
