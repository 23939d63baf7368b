"""Work items and the queue feeding the conversation loop."""

from parley.bus.events import (
    ErrorItem,
    InteractiveConfigure,
    Notification,
    PermissionRequest,
    Question,
    RunProgram,
    UserInput,
    WorkItem,
)
from parley.bus.queue import QueueEntry, WorkQueue

__all__ = [
    "ErrorItem",
    "InteractiveConfigure",
    "Notification",
    "PermissionRequest",
    "Question",
    "QueueEntry",
    "RunProgram",
    "UserInput",
    "WorkItem",
    "WorkQueue",
]
