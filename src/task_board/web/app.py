"""Web dashboard API over a live board."""

import contextlib
import json

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse
from starlette.routing import Route

from task_board.core.board import Board
from task_board.models import TaskStatus
from task_board.web.dashboard import get_dashboard_html


def _board(request: Request) -> Board:
    board = request.app.state.board
    # Apply pending file changes before answering.
    board.poll()
    return board


# ── Handlers ──────────────────────────────────────────────────────────────────


async def index(request: Request):
    return HTMLResponse(get_dashboard_html())


async def api_state(request: Request):
    board = _board(request)
    data = board.state.to_dict()
    data["ledger_path"] = str(board.ledger_path)
    return JSONResponse(data)


async def api_phases(request: Request):
    state = _board(request).state
    return JSONResponse([p.to_dict() for p in state.phases])


async def api_get_task(request: Request):
    task_id = request.path_params["task_id"]
    state = _board(request).state
    position = state.find_task(task_id)
    if position is None:
        return JSONResponse({"error": "Task not found"}, status_code=404)

    phase = state.phases[position[0]]
    task = state.task_at(*position)
    td = task.to_dict()
    td["phase_id"] = phase.id
    td["phase_name"] = phase.name
    timing = state.timing_for(task_id)
    td["timing"] = timing.to_dict() if timing else None
    td["errors"] = [e.to_dict() for e in state.errors_for_task(task_id)]
    return JSONResponse(td)


async def api_agents(request: Request):
    state = _board(request).state
    return JSONResponse([a.to_dict() for a in state.agents_by_status()])


async def api_errors(request: Request):
    state = _board(request).state
    task_id = request.query_params.get("task")
    agent_id = request.query_params.get("agent")
    if task_id:
        errors = state.errors_for_task(task_id)
    elif agent_id:
        errors = state.errors_for_agent(agent_id)
    else:
        errors = list(reversed(state.recent_errors))
    if task_id and agent_id:
        errors = [e for e in errors if e.agent_id == agent_id]
    return JSONResponse([e.to_dict() for e in errors])


async def api_set_status(request: Request):
    task_id = request.path_params["task_id"]
    try:
        body = await request.json()
    except json.JSONDecodeError:
        return JSONResponse({"error": "Invalid JSON body"}, status_code=400)
    if not isinstance(body, dict) or "status" not in body:
        return JSONResponse({"error": "Missing 'status'"}, status_code=400)
    try:
        status = TaskStatus.from_name(str(body["status"]))
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)

    board = _board(request)
    try:
        found = board.set_status(task_id, status)
    except OSError as e:
        return JSONResponse({"error": str(e)}, status_code=500)
    if not found:
        return JSONResponse({"error": "Task not found"}, status_code=404)
    return JSONResponse({"task_id": task_id, "status": status.value})


async def api_retry(request: Request):
    task_id = request.path_params["task_id"]
    board = _board(request)
    target = board.retry_target(task_id)
    if target is None:
        return JSONResponse({"error": "Task not found or not Failed/Blocked"}, status_code=404)
    if not target.retryable:
        return JSONResponse(
            {"error": "Last error is not retryable", "task_id": task_id}, status_code=400
        )
    try:
        board.confirm_retry(task_id)
    except OSError as e:
        return JSONResponse({"error": str(e)}, status_code=500)
    return JSONResponse({"task_id": task_id, "status": TaskStatus.IN_PROGRESS.value})


# ── App ───────────────────────────────────────────────────────────────────────


def create_app(board: Board, poll_interval: float | None = None, watch: bool = False) -> Starlette:
    """Build the app. With watch=True the board watches files while serving."""

    @contextlib.asynccontextmanager
    async def lifespan(app):
        if watch:
            board.start_watching(poll_interval=poll_interval)
        try:
            yield
        finally:
            board.stop()

    routes = [
        Route("/", index),
        Route("/api/state", api_state),
        Route("/api/phases", api_phases),
        Route("/api/tasks/{task_id}", api_get_task),
        Route("/api/tasks/{task_id}/status", api_set_status, methods=["POST"]),
        Route("/api/tasks/{task_id}/retry", api_retry, methods=["POST"]),
        Route("/api/agents", api_agents),
        Route("/api/errors", api_errors),
    ]
    app = Starlette(routes=routes, lifespan=lifespan)
    app.state.board = board
    return app


def run_server(
    board: Board,
    host: str = "127.0.0.1",
    port: int = 8788,
    poll_interval: float | None = None,
):
    # Validate before the server starts so bad paths fail fast.
    board.watch_config().validate()
    app = create_app(board, poll_interval=poll_interval, watch=True)
    uvicorn.run(app, host=host, port=port)
