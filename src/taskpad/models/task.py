"""Task model -- one to-do item with a title and a completion flag.

Tasks are immutable.  A task has no identity field: within the task list it
is addressed by position.  Completion is changed by building a new task with
:meth:`Task.toggled`.

Each task is persisted as an independent JSON object string::

    {"title":"Buy milk","isCompleted":false}
"""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from taskpad.errors import TaskDecodeError


class Task(BaseModel):
    """A single to-do item.

    The title is never empty or whitespace-only; this is enforced when the
    task is constructed.  Titles are stored exactly as given -- trimming
    user input is the caller's job (see ``TaskStore.add_task``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = Field(
        ...,
        min_length=1,
        description="Short text describing the task.",
    )
    is_completed: bool = Field(
        default=False,
        alias="isCompleted",
        strict=True,
        description="Whether the task has been completed.",
    )

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        """Reject titles made only of whitespace."""
        if not value.strip():
            raise ValueError("title must not be blank")
        return value

    def toggled(self) -> "Task":
        """Return a copy of this task with ``is_completed`` inverted."""
        return self.model_copy(update={"is_completed": not self.is_completed})

    def encode(self) -> str:
        """Serialize to the compact JSON string used for persistence."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def decode(cls, raw: str) -> "Task":
        """Deserialize a string produced by :meth:`encode`.

        Raises:
            TaskDecodeError: If *raw* is not a JSON object or its fields
                do not describe a valid task.
        """
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError) as exc:
            raise TaskDecodeError(raw, "not valid JSON") from exc

        if not isinstance(data, dict):
            raise TaskDecodeError(raw, "expected a JSON object")

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            reason = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            )
            raise TaskDecodeError(raw, reason) from exc

    def to_json_dict(self) -> dict:
        """Serialize to a JSON-compatible dictionary using the persisted field names."""
        return self.model_dump(mode="json", by_alias=True)
