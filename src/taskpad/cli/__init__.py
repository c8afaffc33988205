"""Click CLI commands -- the terminal front end for the task list.

Provides the ``taskpad`` CLI entry point with subcommands:
- ``taskpad list``    -- Render the task list.
- ``taskpad add``     -- Add a task.
- ``taskpad toggle``  -- Mark a task completed / not completed.
- ``taskpad delete``  -- Delete a task.
- ``taskpad clear``   -- Delete every completed task.
"""

from taskpad.cli.main import add, clear, cli, delete, list_tasks, toggle
from taskpad.cli.view import TaskListView

__all__ = ["TaskListView", "add", "clear", "cli", "delete", "list_tasks", "toggle"]
