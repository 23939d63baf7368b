"""Presentation channels."""

from parley.channels.base import BaseChannel
from parley.channels.console import ConsoleChannel

__all__ = ["BaseChannel", "ConsoleChannel"]
