"""Configuration for taskpad.

:class:`TaskpadConfig` decides where the task list lives on disk, which key
holds it, what to do with entries that no longer decode, and how loudly the
package logs.  Values are resolved in priority order:

1. ``TASKPAD_*`` environment variables
2. ``<project_root>/.taskpad/config.json``
3. Built-in defaults

The CLI loads one config per invocation::

    config = TaskpadConfig.load()
    config.configure_logging()
    store = TaskStore(
        JsonFileAdapter(config.storage_path),
        key=config.storage_key,
        decode_policy=config.decode_policy,
    )
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from taskpad.storage.task_store import DEFAULT_STORAGE_KEY, DecodePolicy

logger = logging.getLogger(__name__)

# Storage directory created at the project root.  Also holds config.json.
DEFAULT_STORAGE_DIR_NAME = ".taskpad"

CONFIG_FILE_NAME = "config.json"

# ``TASKPAD_STORAGE_KEY=todo`` overrides ``storage_key``, and so on.
ENV_PREFIX = "TASKPAD_"

# A directory holding any of these is taken as the project root.
PROJECT_ROOT_MARKERS = (".git", "pyproject.toml", DEFAULT_STORAGE_DIR_NAME)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class TaskpadConfig(BaseModel):
    """Resolved settings for one taskpad process.

    ``project_root`` defaults to the nearest directory above the cwd holding
    one of :data:`PROJECT_ROOT_MARKERS`, and ``storage_path`` defaults to
    ``<project_root>/.taskpad``.  Both are stored as absolute paths.
    """

    storage_path: Optional[str] = Field(
        default=None,
        description="Directory holding prefs.json and config.json.",
    )
    storage_key: str = Field(
        default=DEFAULT_STORAGE_KEY,
        min_length=1,
        description="Key holding the encoded task list.",
    )
    decode_policy: DecodePolicy = Field(
        default=DecodePolicy.SKIP,
        description="Handling of malformed persisted entries: skip or abort.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Level of the taskpad package logger.",
    )
    project_root: Optional[str] = Field(
        default=None,
        description="Directory the default storage path is derived from.",
    )

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log_level '{value}'. Must be one of: {', '.join(LOG_LEVELS)}."
            )
        return level

    @model_validator(mode="after")
    def resolve_paths(self) -> "TaskpadConfig":
        root = Path(self.project_root) if self.project_root else _default_project_root()
        self.project_root = str(root.resolve())
        if self.storage_path is None:
            self.storage_path = str(Path(self.project_root) / DEFAULT_STORAGE_DIR_NAME)
        else:
            self.storage_path = str(Path(self.storage_path).resolve())
        return self

    @classmethod
    def load(
        cls,
        project_root: Optional[str] = None,
        config_path: Optional[str] = None,
    ) -> "TaskpadConfig":
        """Resolve the configuration from the environment, the config file and defaults.

        *project_root* always wins over a ``project_root`` found in the file
        or environment.  *config_path* replaces the default
        ``<project_root>/.taskpad/config.json`` location.

        Raises:
            pydantic.ValidationError: If a resolved value is invalid.
        """
        root = str(Path(project_root).resolve()) if project_root else str(_default_project_root())
        values = _load_config_file(root, config_path)
        values.update(_load_env_overrides())
        values["project_root"] = root
        return cls.model_validate(values)

    def save(self, config_path: Optional[str] = None) -> Path:
        """Write the user-facing settings to ``<storage_path>/config.json``.

        ``project_root`` is never written, and ``storage_path`` only when it
        is not the default.  Returns the path written.
        """
        target = Path(config_path).resolve() if config_path else Path(self.storage_path) / CONFIG_FILE_NAME
        target.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "storage_key": self.storage_key,
            "decode_policy": self.decode_policy.value,
            "log_level": self.log_level,
        }
        if self.storage_path != str(Path(self.project_root) / DEFAULT_STORAGE_DIR_NAME):
            data["storage_path"] = self.storage_path

        target.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        logger.info("Saved configuration to %s", target)
        return target

    def configure_logging(self) -> None:
        """Set the ``taskpad`` logger level, adding one stderr handler if it has none."""
        pkg_logger = logging.getLogger("taskpad")
        pkg_logger.setLevel(self.log_level)
        if not pkg_logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
            pkg_logger.addHandler(handler)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


def _detect_project_root(start_path: Optional[Path] = None) -> Optional[Path]:
    """Return the nearest directory at or above *start_path* holding a root marker."""
    start = (start_path or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if any((candidate / marker).exists() for marker in PROJECT_ROOT_MARKERS):
            return candidate
    return None


def _default_project_root() -> Path:
    return _detect_project_root() or Path.cwd()


def _load_config_file(project_root: str, config_path: Optional[str] = None) -> dict:
    """Return the settings object from the config file, or ``{}`` if there is none usable."""
    path = Path(config_path) if config_path else Path(project_root) / DEFAULT_STORAGE_DIR_NAME / CONFIG_FILE_NAME
    if not path.is_file():
        return {}

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.warning("Ignoring unreadable config file %s.", path, exc_info=True)
        return {}

    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: not a JSON object.", path)
        return {}
    logger.info("Loaded configuration from %s", path)
    return data


def _load_env_overrides() -> dict:
    """Collect ``TASKPAD_*`` overrides.

    ``TASKPAD_DECODE_POLICY`` is normalised to lower case; an unknown policy
    is logged and ignored.  Other values are passed through for the model
    to validate.
    """
    overrides: dict = {}
    for field in ("storage_path", "storage_key", "log_level"):
        value = os.environ.get(f"{ENV_PREFIX}{field.upper()}")
        if value is not None:
            overrides[field] = value

    policy = os.environ.get(f"{ENV_PREFIX}DECODE_POLICY")
    if policy is not None:
        normalised = policy.strip().lower()
        if normalised in {p.value for p in DecodePolicy}:
            overrides["decode_policy"] = normalised
        else:
            logger.warning(
                "Ignoring %sDECODE_POLICY=%r: expected 'skip' or 'abort'.",
                ENV_PREFIX,
                policy,
            )

    if overrides:
        logger.debug("Environment overrides: %s", ", ".join(sorted(overrides)))
    return overrides
