"""Terminal rendering of the task list.

The view owns no task state.  It subscribes to a :class:`TaskStore` and
redraws the whole screen from every snapshot the store publishes.
"""

from __future__ import annotations

from typing import Callable, Optional

import click

from taskpad.storage.task_store import TaskList, TaskStore

EMPTY_PLACEHOLDER = "No tasks yet!"


class TaskListView:
    """Renders published task list snapshots to the terminal."""

    def __init__(self, store: TaskStore) -> None:
        self._store = store
        self._unsubscribe: Optional[Callable[[], None]] = None
        self.render_count = 0

    def attach(self, fire_immediately: bool = False) -> None:
        """Start rendering every snapshot the store publishes."""
        if self._unsubscribe is None:
            self._unsubscribe = self._store.subscribe(
                self.render, fire_immediately=fire_immediately
            )

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def render(self, tasks: TaskList) -> None:
        self.render_count += 1

        click.secho("Tasks", fg="cyan", bold=True)
        click.secho("=" * 30, fg="cyan")

        if not tasks:
            click.echo(EMPTY_PLACEHOLDER)
            return

        for index, task in enumerate(tasks):
            mark = "x" if task.is_completed else " "
            click.secho(
                f"{index:>3}. [{mark}] {task.title}",
                fg="bright_black" if task.is_completed else None,
                strikethrough=task.is_completed,
            )

        # Only offered when there is something to clear.
        completed = sum(1 for task in tasks if task.is_completed)
        if completed:
            click.echo()
            click.secho(
                f"Clear completed ({completed}): taskpad clear",
                fg="green",
            )
