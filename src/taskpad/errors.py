"""Exception types raised by the task store and its persistence adapters."""

from __future__ import annotations


class TaskpadError(Exception):
    """Base class for all taskpad errors."""


class TaskIndexError(TaskpadError, IndexError):
    """A positional intent referenced a position outside the current list.

    This indicates the caller's view of the list is out of sync with the
    store; the list is left unchanged.
    """

    def __init__(self, index: int, length: int) -> None:
        self.index = index
        self.length = length
        super().__init__(
            f"Task index {index} is out of range for a list of {length} task(s)."
        )


class TaskDecodeError(TaskpadError, ValueError):
    """A persisted entry could not be decoded into a Task."""

    def __init__(self, raw: str, reason: str) -> None:
        self.raw = raw
        self.reason = reason
        super().__init__(f"Cannot decode task entry {raw!r}: {reason}")


class PersistenceError(TaskpadError):
    """A write to the persistence adapter failed."""
