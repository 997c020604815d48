"""Terminal rendering of the client state."""

from __future__ import annotations

from typing import Iterable, List

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .state import Task, TaskListState


def display_order(tasks: Iterable[Task]) -> List[Task]:
    """Incomplete tasks first, then completed; store order kept within each group."""
    return sorted(tasks, key=lambda t: t.completed)


def summary(tasks: Iterable[Task]) -> str:
    items = list(tasks)
    done = sum(1 for t in items if t.completed)
    return f"{done} of {len(items)} tasks completed."


def build_table(tasks: Iterable[Task]) -> Table:
    table = Table(show_header=True, header_style="bold blue", expand=True)
    table.add_column("", width=3, no_wrap=True)
    table.add_column("ID", justify="right", style="dim", no_wrap=True)
    table.add_column("Title", ratio=1)
    for task in display_order(tasks):
        if task.completed:
            table.add_row("[green]✔[/green]", str(task.id), Text(task.title, style="dim strike"))
        else:
            table.add_row("○", str(task.id), Text(task.title))
    return table


def render(state: TaskListState, console: Console) -> None:
    console.print("[bold]TODO APP[/bold]")
    console.print(summary(state.tasks), style="dim")

    if state.error:
        console.print(Panel(state.error, style="red", expand=False))

    if state.loading:
        console.print("Loading tasks...", style="cyan")
        return

    if state.tasks:
        console.print(build_table(state.tasks))
    else:
        console.print("No tasks found.", style="bold")
        console.print("Add your first task with 'taskboard add'.", style="dim")
