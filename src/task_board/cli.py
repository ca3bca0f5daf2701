"""CLI entry point for the task board."""

import json
import logging
import sys
import time
from datetime import timedelta
from pathlib import Path

import click

from task_board.config import get_config
from task_board.core.board import Board
from task_board.core.watcher import WatcherError
from task_board.models import AgentStatus, TaskStatus


def _board(ctx: click.Context) -> Board:
    config = ctx.obj
    return Board.from_config(config)


@click.group()
@click.option("--tasks", default=None, help="Path to TASKS.md")
@click.option("--hooks", default=None, help="Hook events directory")
@click.option("--events", default=None, help="Secondary events directory")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def main(ctx, tasks, hooks, events, verbose):
    """tb - Task Board CLI"""
    config = get_config()
    if tasks:
        config.tasks_path = Path(tasks)
    if hooks:
        config.hooks_dir = Path(hooks)
    if events:
        config.events_dir = Path(events)
    if verbose:
        config.log_level = "DEBUG"

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = config


# ── Status Commands ───────────────────────────────────────────────────────────


STATUS_ICONS = {
    TaskStatus.PENDING: "[ ]",
    TaskStatus.IN_PROGRESS: "[/]",
    TaskStatus.COMPLETED: "[x]",
    TaskStatus.FAILED: "[!]",
    TaskStatus.BLOCKED: "[-]",
}

AGENT_ICONS = {
    AgentStatus.RUNNING: ">>",
    AgentStatus.ERROR: "!!",
    AgentStatus.IDLE: "--",
}


def format_duration(delta: timedelta) -> str:
    seconds = int(delta.total_seconds())
    if seconds < 60:
        return f"{seconds}s"
    minutes, seconds = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {seconds}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m"


@main.command("status")
@click.option("--json-output", "--json", is_flag=True, help="Output as JSON")
@click.pass_context
def status_cmd(ctx, json_output):
    """Show phases, tasks and agent activity."""
    board = _board(ctx)
    state = board.state

    if json_output:
        click.echo(json.dumps(state.to_dict(), indent=2))
        return

    if not state.phases:
        click.echo(f"No phases found in {board.ledger_path}")
        return

    for phase in state.phases:
        click.echo(
            f"{phase.id}: {phase.name} "
            f"({phase.completed_count()}/{len(phase.tasks)}, {phase.progress():.0%})"
        )
        for task in phase.tasks:
            icon = STATUS_ICONS[task.status]
            agent = f" @{task.agent}" if task.agent else ""
            deps = f" [blocked by: {', '.join(task.blocked_by)}]" if task.blocked_by else ""
            timing = state.timing_for(task.id)
            took = timing.duration() if timing else None
            ran = f" ({format_duration(took)})" if took is not None else ""
            click.echo(f"  {icon} {task.id}: {task.name}{agent}{deps}{ran}")

    click.echo(
        f"\nProgress: {state.completed_tasks}/{state.total_tasks} done, "
        f"{state.failed_tasks} failed ({state.overall_progress:.0%})"
    )

    agents = state.agents_by_status()
    if agents:
        click.echo("Agents:")
        for agent in agents:
            task = f" task={agent.current_task}" if agent.current_task else ""
            tool = f" tool={agent.current_tool}" if agent.current_tool else ""
            click.echo(
                f"  {AGENT_ICONS[agent.status]} {agent.agent_id}{task}{tool} "
                f"(events: {agent.event_count}, errors: {agent.error_count})"
            )


@main.command("set-status")
@click.argument("task_id")
@click.argument("status")
@click.pass_context
def set_status_cmd(ctx, task_id, status):
    """Rewrite a task's status tag in the ledger."""
    try:
        new_status = TaskStatus.from_name(status)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    board = _board(ctx)
    try:
        found = board.set_status(task_id, new_status)
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if not found:
        click.echo(f"Task not found: {task_id}", err=True)
        sys.exit(1)
    click.echo(f"Updated {task_id} to {new_status.value}")


@main.command("retry")
@click.argument("task_id")
@click.pass_context
def retry_cmd(ctx, task_id):
    """Mark a Failed or Blocked task InProgress again."""
    board = _board(ctx)
    target = board.retry_target(task_id)
    if target is None:
        click.echo(f"Task not found or not Failed/Blocked: {task_id}", err=True)
        sys.exit(1)
    if not target.retryable:
        errors = board.state.errors_for_task(task_id)
        hint = f" ({errors[0].suggestion})" if errors else ""
        click.echo(f"Last error for {task_id} is not retryable{hint}", err=True)
        sys.exit(1)
    try:
        board.confirm_retry(task_id)
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Retrying {task_id}: {target.task_name}")


@main.command("errors")
@click.option("--task", "task_id", default=None, help="Filter by task ID")
@click.option("--agent", "agent_id", default=None, help="Filter by agent ID")
@click.pass_context
def errors_cmd(ctx, task_id, agent_id):
    """List recorded errors, most recent first."""
    state = _board(ctx).state
    if task_id:
        errors = state.errors_for_task(task_id)
    elif agent_id:
        errors = state.errors_for_agent(agent_id)
    else:
        errors = list(reversed(state.recent_errors))
    if agent_id and task_id:
        errors = [e for e in errors if e.agent_id == agent_id]

    if not errors:
        click.echo("No errors recorded.")
        return
    for e in errors:
        retry = "retryable" if e.retryable else "no retry"
        click.echo(f"  [{e.timestamp.isoformat()}] {e.agent_id} {e.task_id}: {e.message}")
        click.echo(f"    {e.category} ({retry}): {e.suggestion}")


# ── Watch Commands ────────────────────────────────────────────────────────────


@main.command("watch")
@click.option("--poll-interval", type=float, default=None,
              help="Poll the filesystem every N seconds instead of native notifications")
@click.pass_context
def watch_cmd(ctx, poll_interval):
    """Watch the ledger and hook logs, printing each change."""
    config = ctx.obj
    board = Board.from_config(config)
    interval = poll_interval if poll_interval is not None else config.poll_interval
    try:
        board.start_watching(poll_interval=interval)
    except WatcherError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Watching {board.ledger_path} and {board.hooks_dir} (Ctrl-C to stop)")
    _echo_summary(board)
    try:
        while True:
            for signal in board.poll(timeout=1.0):
                click.echo(f"{time.strftime('%H:%M:%S')} {signal.kind.value}: {signal.path}")
                _echo_summary(board)
            if board.dispatcher is None or board.dispatcher.closed:
                break
    except KeyboardInterrupt:
        pass
    finally:
        board.stop()


def _echo_summary(board: Board):
    state = board.state
    running = sum(1 for a in state.agents.values() if a.status == AgentStatus.RUNNING)
    click.echo(
        f"  {state.completed_tasks}/{state.total_tasks} done, {state.failed_tasks} failed, "
        f"{running} agents running, {len(state.recent_errors)} errors"
    )


# ── Dashboard Command ────────────────────────────────────────────────────────


@main.command("ui")
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to listen on")
@click.option("--open/--no-open", default=True, help="Open browser automatically")
@click.pass_context
def ui_command(ctx, host, port, open):
    """Launch the web dashboard."""
    import webbrowser

    from task_board.web.app import run_server

    config = ctx.obj
    host = host or config.host
    port = port or config.port
    board = Board.from_config(config)

    url = f"http://{host}:{port}"
    click.echo(f"Starting dashboard at {url}")
    if open:
        webbrowser.open(url)
    try:
        run_server(board, host=host, port=port, poll_interval=config.poll_interval)
    except WatcherError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
