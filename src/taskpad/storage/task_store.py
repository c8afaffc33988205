"""TaskStore -- the observable, authoritative holder of the task list.

Bridges the in-memory task list and a :class:`PersistenceAdapter`.  Every
mutation builds a new immutable snapshot, publishes it to subscribers, and
then writes it through to storage, so callers never need to remember to save.

Typical usage::

    store = TaskStore(JsonFileAdapter("/path/to/.taskpad"))
    unsubscribe = store.subscribe(render)
    store.initialize()

    store.add_task("Buy milk")
    store.toggle_task(0)
    store.clear_completed()

Mutations must only be issued after :meth:`TaskStore.initialize`, and from a
single thread: tasks are addressed by position, and a stale position from a
concurrent writer would target the wrong task.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from enum import Enum
from typing import Optional

from taskpad.errors import PersistenceError, TaskDecodeError, TaskIndexError
from taskpad.models.task import Task
from taskpad.storage.adapter import PersistenceAdapter

logger = logging.getLogger(__name__)

# Storage key under which the encoded task list is persisted.
DEFAULT_STORAGE_KEY = "tasks"

TaskList = tuple[Task, ...]
Listener = Callable[[TaskList], None]


class DecodePolicy(str, Enum):
    """How :meth:`TaskStore.initialize` treats entries that fail to decode."""

    SKIP = "skip"
    ABORT = "abort"


class TaskStore:
    """Observable state container for the ordered task list.

    The store owns the only reference to the current list.  The list is a
    tuple, so snapshots handed to readers and subscribers cannot be mutated.

    Parameters
    ----------
    adapter:
        Storage used to load the list at startup and persist it after every
        mutation.
    key:
        Storage key holding the encoded list.
    decode_policy:
        What to do with persisted entries that cannot be decoded:
        ``SKIP`` drops them with a warning, ``ABORT`` discards the whole
        persisted list and starts empty.
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        key: str = DEFAULT_STORAGE_KEY,
        decode_policy: DecodePolicy = DecodePolicy.SKIP,
    ) -> None:
        self._adapter = adapter
        self._key = key
        self._decode_policy = DecodePolicy(decode_policy)
        self._tasks: TaskList = ()
        self._listeners: list[Listener] = []
        self._initialized = False
        self._synced = True

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    @property
    def tasks(self) -> TaskList:
        """The current task list snapshot."""
        return self._tasks

    @property
    def completed_count(self) -> int:
        """Number of completed tasks in the current list."""
        return sum(1 for task in self._tasks if task.is_completed)

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_synced(self) -> bool:
        """False when the last write-through failed and storage is behind memory."""
        return self._synced

    @property
    def key(self) -> str:
        return self._key

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks)

    def __getitem__(self, index: int) -> Task:
        return self._tasks[index]

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(
        self,
        listener: Listener,
        fire_immediately: bool = False,
    ) -> Callable[[], None]:
        """Register *listener* to receive every published snapshot.

        Returns a function that removes the subscription.  When
        *fire_immediately* is true, the listener is also called once with
        the current snapshot.
        """
        self._listeners.append(listener)
        if fire_immediately:
            self._notify(listener, self._tasks)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        """Remove *listener*.  Unknown listeners are ignored."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> TaskList:
        """Load the persisted list and publish it as the current state.

        An absent key loads as an empty list.  Entries that fail to decode
        are handled according to the store's :class:`DecodePolicy`.  Calling
        this again reloads from storage, discarding the in-memory list.

        Returns
        -------
        tuple[Task, ...]
            The loaded list.
        """
        raw_entries = self._adapter.get(self._key) or []

        loaded: list[Task] = []
        skipped = 0
        for position, raw in enumerate(raw_entries):
            try:
                loaded.append(Task.decode(raw))
            except TaskDecodeError as exc:
                if self._decode_policy is DecodePolicy.ABORT:
                    logger.error(
                        "Persisted entry %d under %r is malformed (%s). "
                        "Discarding all %d persisted task(s).",
                        position,
                        self._key,
                        exc.reason,
                        len(raw_entries),
                    )
                    loaded = []
                    skipped = len(raw_entries)
                    break
                logger.warning(
                    "Skipping malformed persisted entry %d under %r: %s",
                    position,
                    self._key,
                    exc.reason,
                )
                skipped += 1

        self._initialized = True
        self._synced = True
        self._publish(tuple(loaded))
        logger.info(
            "Loaded %d task(s) from key %r (%d skipped).",
            len(loaded),
            self._key,
            skipped,
        )
        return self._tasks

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    def add_task(self, title: str) -> Optional[Task]:
        """Append a new, not yet completed task.

        Surrounding whitespace is stripped from *title*.  A blank title is
        ignored and *None* is returned.
        """
        self._require_initialized()
        title = title.strip()
        if not title:
            logger.debug("Ignoring add with a blank title.")
            return None

        task = Task(title=title)
        self._commit(self._tasks + (task,))
        logger.info("Added task %d ('%s').", len(self._tasks) - 1, title)
        return task

    def delete_task(self, index: int) -> Task:
        """Remove the task at *index* and return it.

        Raises:
            TaskIndexError: If *index* is outside ``0 <= index < len(tasks)``.
        """
        self._require_initialized()
        self._check_index(index)
        removed = self._tasks[index]
        self._commit(self._tasks[:index] + self._tasks[index + 1 :])
        logger.info("Deleted task %d ('%s').", index, removed.title)
        return removed

    def toggle_task(self, index: int) -> Task:
        """Invert the completion flag of the task at *index* and return the new task.

        Raises:
            TaskIndexError: If *index* is outside ``0 <= index < len(tasks)``.
        """
        self._require_initialized()
        self._check_index(index)
        toggled = self._tasks[index].toggled()
        self._commit(self._tasks[:index] + (toggled,) + self._tasks[index + 1 :])
        logger.info(
            "Marked task %d ('%s') as %s.",
            index,
            toggled.title,
            "completed" if toggled.is_completed else "not completed",
        )
        return toggled

    def clear_completed(self) -> int:
        """Drop every completed task, keeping the order of the rest.

        The list is persisted even when nothing was removed.

        Returns
        -------
        int
            The number of tasks removed.
        """
        self._require_initialized()
        remaining = tuple(task for task in self._tasks if not task.is_completed)
        removed = len(self._tasks) - len(remaining)
        self._commit(remaining)
        logger.info("Cleared %d completed task(s).", removed)
        return removed

    def save(self) -> None:
        """Write the current list through to storage.

        Useful to retry after a :class:`PersistenceError`.
        """
        self._require_initialized()
        self._persist()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "TaskStore.initialize() must be called before mutating the task list."
            )

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._tasks):
            raise TaskIndexError(index, len(self._tasks))

    def _commit(self, new_tasks: TaskList) -> None:
        """Publish *new_tasks* and write it through to storage."""
        self._publish(new_tasks)
        self._persist()

    def _publish(self, new_tasks: TaskList) -> None:
        self._tasks = new_tasks
        for listener in list(self._listeners):
            self._notify(listener, new_tasks)

    def _notify(self, listener: Listener, tasks: TaskList) -> None:
        try:
            listener(tasks)
        except Exception:
            logger.exception("Task list subscriber %r failed.", listener)

    def _persist(self) -> None:
        encoded = [task.encode() for task in self._tasks]
        try:
            self._adapter.set(self._key, encoded)
        except Exception as exc:
            self._synced = False
            logger.error(
                "Failed to persist %d task(s) under %r; storage is behind memory.",
                len(encoded),
                self._key,
                exc_info=True,
            )
            if isinstance(exc, PersistenceError):
                raise
            raise PersistenceError(
                f"Failed to persist tasks under {self._key!r}: {exc}"
            ) from exc
        self._synced = True
        logger.debug("Persisted %d task(s) under %r.", len(encoded), self._key)
