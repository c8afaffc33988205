"""Persistence adapters -- key-value storage for string lists.

A :class:`PersistenceAdapter` stores one ordered list of strings per key and
performs no interpretation of the contents.  The task store encodes each task
into one string and hands the whole list to the adapter on every change.

Two implementations are provided:

- :class:`JsonFileAdapter` keeps every key in a single JSON document on disk
  (``<storage_path>/prefs.json``) and writes it atomically.
- :class:`MemoryAdapter` keeps values in a dict, for embedding and tests.

Typical usage::

    adapter = JsonFileAdapter()                  # uses .taskpad/ in cwd
    adapter = JsonFileAdapter("/path/to/.taskpad")

    adapter.set("tasks", ['{"title":"Buy milk","isCompleted":false}'])
    values = adapter.get("tasks")                # list[str] or None
"""

from __future__ import annotations

import abc
import json
import logging
import os
import tempfile
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Optional

from taskpad.errors import PersistenceError

logger = logging.getLogger(__name__)

# Default directory name for storage, placed in the current working directory.
DEFAULT_STORAGE_DIR = ".taskpad"

# File name of the JSON document holding every key.
PREFS_FILE = "prefs.json"


class PersistenceAdapter(abc.ABC):
    """Opaque key-value storage for ordered lists of strings."""

    @abc.abstractmethod
    def get(self, key: str) -> Optional[list[str]]:
        """Return the list stored under *key*, or *None* if absent."""

    @abc.abstractmethod
    def set(self, key: str, values: Sequence[str]) -> None:
        """Store *values* under *key*, replacing any previous value.

        Raises:
            PersistenceError: If the value could not be written.
        """


class MemoryAdapter(PersistenceAdapter):
    """Dict-backed adapter.  Values are copied on the way in and out."""

    def __init__(self, initial: Optional[Mapping[str, Sequence[str]]] = None) -> None:
        self._data: dict[str, list[str]] = {
            key: list(values) for key, values in (initial or {}).items()
        }

    def get(self, key: str) -> Optional[list[str]]:
        values = self._data.get(key)
        return list(values) if values is not None else None

    def set(self, key: str, values: Sequence[str]) -> None:
        self._data[key] = list(values)


class JsonFileAdapter(PersistenceAdapter):
    """File-based adapter storing all keys in one JSON document.

    The document is a JSON object mapping each key to a list of strings.
    Every :meth:`set` rewrites the whole document atomically: data is first
    written to a temporary file in the same directory and then renamed into
    place, so a crash mid-write never leaves a truncated document.

    Reads are forgiving: a missing, unreadable or corrupt document is
    treated as empty, and a stored value that is not a list is treated as
    absent.  Both cases are logged as warnings.  List items are returned
    as stored; deciding what a bad item means is left to the caller.

    Parameters
    ----------
    storage_path:
        Absolute or relative path to the storage directory.  When *None*,
        defaults to ``<cwd>/.taskpad/``.
    """

    def __init__(self, storage_path: Optional[str] = None) -> None:
        if storage_path is not None:
            self._root = Path(storage_path).resolve()
        else:
            self._root = Path.cwd() / DEFAULT_STORAGE_DIR

        self._prefs_path = self._root / PREFS_FILE

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[list[str]]:
        document = self._safe_read_json(self._prefs_path)
        if document is None or key not in document:
            return None

        values = document[key]
        if not isinstance(values, list):
            logger.warning(
                "Value for key %r in %s is not a list. Ignoring it.",
                key,
                self._prefs_path,
            )
            return None
        return values

    def set(self, key: str, values: Sequence[str]) -> None:
        document = self._safe_read_json(self._prefs_path) or {}
        document[key] = list(values)
        try:
            self._atomic_write(self._prefs_path, document)
        except OSError as exc:
            raise PersistenceError(
                f"Failed to write key {key!r} to {self._prefs_path}: {exc}"
            ) from exc
        logger.debug("Wrote %d value(s) for key %r to %s", len(values), key, self._prefs_path)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def storage_root(self) -> Path:
        """The resolved root directory used for storage."""
        return self._root

    @property
    def prefs_path(self) -> Path:
        """The JSON document holding every key."""
        return self._prefs_path

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _atomic_write(self, target: Path, data: dict) -> None:
        """Write *data* as formatted JSON to *target* atomically.

        If anything fails before the rename, the temp file is cleaned up and
        the original target file (if any) is left untouched.
        """
        target.parent.mkdir(parents=True, exist_ok=True)

        fd = None
        tmp_path: Optional[str] = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=str(target.parent),
                prefix=".tmp_",
                suffix=".json",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                fd = None  # os.fdopen takes ownership of the fd
                json.dump(data, fp, indent=2, ensure_ascii=False)
                fp.write("\n")
                fp.flush()
                os.fsync(fp.fileno())

            os.replace(tmp_path, str(target))
            tmp_path = None

        except BaseException:
            if fd is not None:
                os.close(fd)
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
            raise

    def _safe_read_json(self, path: Path) -> Optional[dict]:
        """Read and parse the JSON document, returning *None* on any failure."""
        if not path.is_file():
            return None
        try:
            with open(path, "r", encoding="utf-8") as fp:
                data = json.load(fp)
        except json.JSONDecodeError:
            logger.warning(
                "Corrupt JSON in %s. The file will be ignored.",
                path,
                exc_info=True,
            )
            return None
        except OSError:
            logger.warning(
                "Could not read %s.",
                path,
                exc_info=True,
            )
            return None

        if not isinstance(data, dict):
            logger.warning("%s does not contain a JSON object. Ignoring it.", path)
            return None
        return data
