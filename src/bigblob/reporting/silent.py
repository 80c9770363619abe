from __future__ import annotations

from typing import Any, List, Tuple

from .base import Reporter, TaskStatus


class SilentReporter(Reporter):
    """Discards output; keeps warnings and errors for later inspection."""

    def __init__(self) -> None:
        self.messages: List[Tuple[str, str]] = []

    def start_task(self, task_id: str, name: str, total: int | None = None, **meta: Any):
        pass

    def advance(self, task_id: str, step: int = 1, **meta: Any):
        pass

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ):
        pass

    def status(self, message: str, **fields: Any):
        pass

    def warning(self, message: str, **fields: Any):
        self.messages.append(("warning", message))

    def error(self, message: str, **fields: Any):
        self.messages.append(("error", message))

    def section(self, title: str) -> None:
        pass
