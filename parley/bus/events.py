"""Work item types for the conversation loop.

Each producer enqueues exactly one kind of item; the loop dispatches on
the item's type.
"""

from dataclasses import dataclass
from typing import Any

from parley.agent.intent import Intent
from parley.program.ast import Program
from parley.program.types import Type


@dataclass
class WorkItem:
    """Base class for everything the conversation loop processes."""


@dataclass
class UserInput(WorkItem):
    """A command typed or clicked by the local user."""
    intent: Intent


@dataclass
class Notification(WorkItem):
    """Output produced by a running app."""
    app_id: str | None
    icon: str | None
    output_type: str | None
    output_value: Any
    channel: str | None = None


@dataclass
class ErrorItem(WorkItem):
    """An error reported by a running app."""
    app_id: str | None
    icon: str | None
    error: Any


@dataclass
class Question(WorkItem):
    """An app needs a value from the user."""
    app_id: str | None
    icon: str | None
    value_type: Type
    question: str


@dataclass
class PermissionRequest(WorkItem):
    """A remote principal asks to run ``program`` on the local devices."""
    program: Program
    principal: str
    identity: str


@dataclass
class InteractiveConfigure(WorkItem):
    """Configure a device kind, or discover devices when ``kind`` is None."""
    kind: str | None = None


@dataclass
class RunProgram(WorkItem):
    """A program submitted directly, skipping confirmation."""
    program: Program
    unique_id: str | None = None
