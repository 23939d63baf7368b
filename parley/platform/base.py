"""Abstract collaborators the conversation core talks to.

The core never reaches into storage, device directories or transports
directly: it goes through these interfaces, bundled in ``Platform``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from parley.agent.intent import Intent
    from parley.program.ast import Invocation, PermissionRule, Program


@dataclass
class App:
    """A program installed on the local engine."""
    app_id: str
    name: str
    is_running: bool = True


class Parser(ABC):
    """Turns free text into an intent."""

    @abstractmethod
    def parse(self, text: str) -> Intent:
        """Parse one utterance. May raise ``UpstreamFailure``."""

    def parse_primitive(self, text: str, primitive_type: str) -> Invocation | None:
        """Parse a single trigger, query or action; None when unsupported."""
        return None

    def learn(self, utterance: str, intent: Intent) -> bool:
        """Record a training example. Returns False when training is unsupported."""
        return False


class ContactDirectory(ABC):
    @abstractmethod
    def lookup_display_name(self, identity: str) -> str | None:
        """Display name of a principal, or None when unknown."""


class AppRegistry(ABC):
    @abstractmethod
    def get_app(self, app_id: str) -> App | None:
        """Look up an installed app."""

    @abstractmethod
    def create_app(self, program: Program, name: str, unique_id: str | None = None) -> App:
        """Hand a confirmed program to the engine."""


class PolicyStore(ABC):
    @abstractmethod
    def add_permission(self, rule: PermissionRule, description: str) -> None:
        """Persist a permission rule."""

    @abstractmethod
    def check_is_allowed(self, principal: str, program: Program) -> bool:
        """Whether the stored policy lets ``principal`` run ``program``."""


class Telemetry(ABC):
    @abstractmethod
    def hit(self, key: str) -> None:
        """Increment a named counter. Never raises."""


class OutputFormatter(ABC):
    @abstractmethod
    def format_for_type(
        self,
        output_type: str | None,
        output_value: Any,
        channel: str | None,
    ) -> str | list[Any]:
        """Render app output as a string or a list of messages.

        A message is a string or a dict with a ``type`` of ``text``,
        ``picture``, ``rdl`` or ``button``.
        """


class DeviceManager(ABC):
    @abstractmethod
    def discover(self) -> list[str]:
        """Device kinds found nearby."""

    @abstractmethod
    def configure(self, kind: str) -> str:
        """Configure a device of ``kind``; returns its display name."""


class RemoteMessenger(ABC):
    @abstractmethod
    def install_program(self, identity: str, program: Program) -> None:
        """Ask a remote principal to install ``program``."""


@dataclass
class Platform:
    """Everything the core needs from the outside world."""
    parser: Parser
    contacts: ContactDirectory
    apps: AppRegistry
    permissions: PolicyStore
    stats: Telemetry
    formatter: OutputFormatter
    devices: DeviceManager | None = None
    messaging: RemoteMessenger | None = None
