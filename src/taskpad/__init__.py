"""taskpad - A single-screen task list with local persistence."""

__version__ = "0.1.0"

from taskpad.config import TaskpadConfig

__all__ = ["TaskpadConfig", "__version__"]
