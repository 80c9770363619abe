"""Progress and message reporting backends for archive operations."""

from .base import (
    Reporter,
    TaskRecord,
    TaskStatus,
    env_flag,
    get_reporter,
    get_verbosity,
    section,
    set_reporter,
    set_verbosity,
    task,
)
from .plain import PlainReporter
from .rich_reporter import RichReporter
from .silent import SilentReporter

__all__ = [
    "Reporter",
    "TaskRecord",
    "TaskStatus",
    "env_flag",
    "get_reporter",
    "get_verbosity",
    "section",
    "set_reporter",
    "set_verbosity",
    "task",
    "PlainReporter",
    "RichReporter",
    "SilentReporter",
]
