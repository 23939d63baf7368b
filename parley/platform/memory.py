"""In-memory collaborators for the console and for tests."""

from __future__ import annotations

import secrets
from collections import Counter
from typing import Any

from loguru import logger

from parley.agent.intent import FailedIntent, Intent, parse_payload
from parley.platform.base import (
    App,
    AppRegistry,
    ContactDirectory,
    DeviceManager,
    OutputFormatter,
    Parser,
    RemoteMessenger,
    Telemetry,
)
from parley.program.ast import Program


class PayloadParser(Parser):
    """Decodes JSON payloads; any other text is reported as not understood."""

    def __init__(self):
        self.training: list[tuple[str, Intent]] = []

    def parse(self, text: str) -> Intent:
        stripped = (text or "").strip()
        if stripped.startswith("{"):
            return parse_payload(stripped)
        return FailedIntent(stripped)

    def learn(self, utterance: str, intent: Intent) -> bool:
        self.training.append((utterance, intent))
        return True


class MemoryContacts(ContactDirectory):
    def __init__(self, contacts: dict[str, str] | None = None):
        self._contacts = dict(contacts or {})

    def add(self, identity: str, display_name: str) -> None:
        self._contacts[identity] = display_name

    def lookup_display_name(self, identity: str) -> str | None:
        return self._contacts.get(identity)


class MemoryAppRegistry(AppRegistry):
    def __init__(self):
        self._apps: dict[str, App] = {}
        self.programs: dict[str, Program] = {}

    def add(self, app: App) -> App:
        self._apps[app.app_id] = app
        return app

    def get_app(self, app_id: str) -> App | None:
        return self._apps.get(app_id)

    def create_app(self, program: Program, name: str, unique_id: str | None = None) -> App:
        app_id = unique_id or f"app-{secrets.token_hex(4)}"
        app = self.add(App(app_id=app_id, name=name, is_running=True))
        self.programs[app_id] = program
        logger.info(f"Created app {app_id}: {name}")
        return app


class CounterTelemetry(Telemetry):
    def __init__(self):
        self.counters: Counter[str] = Counter()

    def hit(self, key: str) -> None:
        self.counters[key] += 1
        logger.debug(f"stats: {key} -> {self.counters[key]}")


class SimpleFormatter(OutputFormatter):
    """Strings pass through, dicts become ``key: value`` lines.

    A dict carrying ``picture_url`` renders as a picture message.
    """

    def format_for_type(
        self,
        output_type: str | None,
        output_value: Any,
        channel: str | None,
    ) -> str | list[Any]:
        if isinstance(output_value, (str, list)):
            return output_value
        if isinstance(output_value, dict):
            if "picture_url" in output_value:
                return [{"type": "picture", "url": output_value.get("picture_url")}]
            return [f"{k}: {v}" for k, v in output_value.items()]
        return str(output_value)


class MemoryDeviceManager(DeviceManager):
    def __init__(self, discoverable: list[str] | None = None):
        self.discoverable = list(discoverable or [])
        self.configured: list[str] = []

    def discover(self) -> list[str]:
        return list(self.discoverable)

    def configure(self, kind: str) -> str:
        self.configured.append(kind)
        return kind.rsplit(".", 1)[-1].replace("_", " ").title()


class LoggingMessenger(RemoteMessenger):
    def __init__(self):
        self.sent: list[tuple[str, Program]] = []

    def install_program(self, identity: str, program: Program) -> None:
        self.sent.append((identity, program))
        logger.info(f"Sent program to {identity}")
