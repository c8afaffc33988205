"""Pydantic data models for tasks."""

from taskpad.models.task import Task

__all__ = ["Task"]
