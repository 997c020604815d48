"""Command line entry point.

Usage:
    taskboard serve                 # run the Task Store API
    taskboard list                  # show tasks, incomplete first
    taskboard add "Buy milk"
    taskboard done 1 / undo 1
    taskboard edit 1 "Buy oat milk"
    taskboard rm 1
    taskboard openapi               # write interfaces/openapi.json
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, Tuple

import click
from rich.console import Console

from .client.api import TaskApi
from .client.app import TaskClient
from .client.state import TaskListState
from .client.view import render
from .settings import get_settings

console = Console()

ApiFactory = Callable[[str], TaskApi]
Action = Callable[[TaskClient], Awaitable[bool]]


async def _session(api_factory: ApiFactory, url: str, action: Optional[Action]) -> Tuple[TaskListState, bool]:
    async with api_factory(url) as api:
        client = TaskClient(api)
        if not await client.fetch_all():
            return client.state, False
        changed = True if action is None else await action(client)
        return client.state, changed


def _run(ctx: click.Context, action: Optional[Action] = None) -> None:
    state, changed = asyncio.run(_session(ctx.obj["api_factory"], ctx.obj["url"], action))
    render(state, console)
    if state.error:
        ctx.exit(1)
    if not changed:
        console.print("Nothing changed.", style="yellow")


@click.group()
@click.option(
    "--url",
    envvar="TASKS_API_URL",
    default=None,
    help="Base URL of the tasks collection (default: TASKS_API_URL or http://localhost:8000/tasks)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log requests and failures")
@click.pass_context
def cli(ctx: click.Context, url: Optional[str], verbose: bool) -> None:
    """Track short text tasks."""
    from .main import configure_logging

    configure_logging("DEBUG" if verbose else "ERROR")
    ctx.ensure_object(dict)
    ctx.obj.setdefault("api_factory", TaskApi)
    ctx.obj["url"] = (url or get_settings().api_url).rstrip("/")


@cli.command()
@click.option("--host", default=None, help="Host to bind to (default: HOST or 0.0.0.0)")
@click.option("--port", default=None, type=int, help="Port to listen on (default: PORT or 8000)")
def serve(host: Optional[str], port: Optional[int]) -> None:
    """Start the Task Store API."""
    import uvicorn

    from .main import create_app

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port
    console.print(f"[bold green]Taskboard[/bold green] listening on http://{host}:{port}/tasks")
    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())


@cli.command(name="list")
@click.pass_context
def list_tasks(ctx: click.Context) -> None:
    """Show all tasks, incomplete first."""
    _run(ctx)


@cli.command()
@click.argument("title")
@click.pass_context
def add(ctx: click.Context, title: str) -> None:
    """Add a task."""

    async def action(client: TaskClient) -> bool:
        return await client.create_task(title) is not None

    _run(ctx, action)


@cli.command()
@click.argument("task_id", type=int)
@click.pass_context
def done(ctx: click.Context, task_id: int) -> None:
    """Mark a task as completed."""

    async def action(client: TaskClient) -> bool:
        return await client.toggle_complete(task_id, True)

    _run(ctx, action)


@cli.command()
@click.argument("task_id", type=int)
@click.pass_context
def undo(ctx: click.Context, task_id: int) -> None:
    """Mark a task as not completed."""

    async def action(client: TaskClient) -> bool:
        return await client.toggle_complete(task_id, False)

    _run(ctx, action)


@cli.command()
@click.argument("task_id", type=int)
@click.argument("title")
@click.pass_context
def edit(ctx: click.Context, task_id: int, title: str) -> None:
    """Rename a task."""

    async def action(client: TaskClient) -> bool:
        return await client.edit_title(task_id, title)

    _run(ctx, action)


@cli.command()
@click.argument("task_id", type=int)
@click.pass_context
def rm(ctx: click.Context, task_id: int) -> None:
    """Delete a task."""

    async def action(client: TaskClient) -> bool:
        return await client.delete_task(task_id)

    _run(ctx, action)


@cli.command()
@click.option("--output", "-o", default=None, help="Where to write the schema (default: interfaces/openapi.json)")
def openapi(output: Optional[str]) -> None:
    """Write the OpenAPI schema of the Task Store API."""
    from .generate_openapi import generate_openapi

    path = generate_openapi(output)
    console.print(f"Wrote OpenAPI schema to: {path}")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
