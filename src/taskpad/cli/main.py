"""Main Click CLI entry point for the taskpad command.

Each subcommand loads the configuration, opens the task store over the
configured storage directory, and dispatches exactly one intent.  The
:class:`TaskListView` subscribed to the store redraws the list whenever the
intent publishes a new snapshot.

Entry point registered in pyproject.toml::

    [project.scripts]
    taskpad = "taskpad.cli.main:cli"

Usage examples::

    taskpad --version
    taskpad add Buy milk
    taskpad toggle 0
    taskpad list --json-output
    taskpad --storage-path /path/to/.taskpad clear
"""

from __future__ import annotations

import json
import sys
from typing import Callable, Optional, TypeVar

import click
from pydantic import ValidationError

from taskpad import __version__
from taskpad.cli.view import TaskListView
from taskpad.config import TaskpadConfig
from taskpad.errors import PersistenceError, TaskIndexError
from taskpad.storage.adapter import JsonFileAdapter
from taskpad.storage.task_store import TaskStore

T = TypeVar("T")


@click.group()
@click.version_option(version=__version__, prog_name="taskpad")
@click.option(
    "--storage-path",
    type=click.Path(file_okay=False),
    default=None,
    envvar="TASKPAD_STORAGE_PATH",
    help="Path to the .taskpad storage directory. Auto-detected if not set.",
)
@click.pass_context
def cli(ctx: click.Context, storage_path: Optional[str]) -> None:
    """taskpad -- A single-screen task list kept on local disk."""
    ctx.ensure_object(dict)
    ctx.obj["storage_path"] = storage_path


@cli.command("list")
@click.option(
    "--json-output",
    "output_json",
    is_flag=True,
    default=False,
    help="Output the task list as JSON instead of human-readable text.",
)
@click.pass_context
def list_tasks(ctx: click.Context, output_json: bool) -> None:
    """Show every task in insertion order."""
    store = _open_store(ctx)

    if output_json:
        payload = {
            "tasks": [task.to_json_dict() for task in store.tasks],
            "count": len(store),
            "completed_count": store.completed_count,
        }
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    TaskListView(store).attach(fire_immediately=True)


@cli.command()
@click.argument("title", nargs=-1)
@click.pass_context
def add(ctx: click.Context, title: tuple[str, ...]) -> None:
    """Add a task. The words of TITLE are joined with single spaces."""
    store, _ = _open_store_with_view(ctx)
    task = _dispatch(store.add_task, " ".join(title))
    if task is None:
        click.secho("Nothing to add: the title is blank.", fg="yellow")


@cli.command()
@click.argument("index", type=int)
@click.pass_context
def toggle(ctx: click.Context, index: int) -> None:
    """Mark the task at INDEX completed, or not completed again."""
    store, _ = _open_store_with_view(ctx)
    _dispatch(store.toggle_task, index)


@cli.command()
@click.argument("index", type=int)
@click.pass_context
def delete(ctx: click.Context, index: int) -> None:
    """Delete the task at INDEX."""
    store, _ = _open_store_with_view(ctx)
    _dispatch(store.delete_task, index)


@cli.command()
@click.pass_context
def clear(ctx: click.Context) -> None:
    """Delete every completed task."""
    store, _ = _open_store_with_view(ctx)
    removed = _dispatch(store.clear_completed)
    if not removed:
        click.secho("No completed tasks to clear.", fg="yellow")


# ---------------------------------------------------------------------------
# Store wiring
# ---------------------------------------------------------------------------


def _load_config(storage_path: Optional[str]) -> TaskpadConfig:
    """Resolve configuration, letting an explicit storage path win."""
    config = TaskpadConfig.load()
    if storage_path:
        config = TaskpadConfig.model_validate(
            {**config.model_dump(), "storage_path": storage_path}
        )
    return config


def _open_store(ctx: click.Context) -> TaskStore:
    """Build and initialize the store described by the configuration.

    Exits with status 1 if the configuration is invalid.
    """
    try:
        config = _load_config(ctx.obj.get("storage_path"))
    except (ValidationError, ValueError) as exc:
        click.secho(f"ERROR: Failed to load configuration: {exc}", fg="red", err=True)
        sys.exit(1)

    config.configure_logging()
    store = TaskStore(
        JsonFileAdapter(config.storage_path),
        key=config.storage_key,
        decode_policy=config.decode_policy,
    )
    store.initialize()
    return store


def _open_store_with_view(ctx: click.Context) -> tuple[TaskStore, TaskListView]:
    """Open the store and attach a view that renders the next published snapshot."""
    store = _open_store(ctx)
    view = TaskListView(store)
    view.attach()
    return store, view


def _dispatch(intent: Callable[..., T], *args: object) -> T:
    """Run one intent, turning store errors into a message and exit status 1."""
    try:
        return intent(*args)
    except TaskIndexError as exc:
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        sys.exit(1)
    except PersistenceError as exc:
        click.secho(
            f"ERROR: The change was applied but could not be saved: {exc}",
            fg="red",
            err=True,
        )
        sys.exit(1)


if __name__ == "__main__":
    cli()
