"""Collaborator interfaces and in-memory implementations."""

from parley.platform.base import (
    App,
    AppRegistry,
    ContactDirectory,
    DeviceManager,
    OutputFormatter,
    Parser,
    Platform,
    PolicyStore,
    RemoteMessenger,
    Telemetry,
)

__all__ = [
    "App",
    "AppRegistry",
    "ContactDirectory",
    "DeviceManager",
    "OutputFormatter",
    "Parser",
    "Platform",
    "PolicyStore",
    "RemoteMessenger",
    "Telemetry",
]
