"""Base class for presentation channels."""

from abc import ABC, abstractmethod
from typing import Any


class BaseChannel(ABC):
    """
    Where the assistant's replies go.

    Methods are synchronous: a reply never suspends the handler that
    produced it. Transports that deliver asynchronously should buffer.
    """

    name: str = "base"

    @abstractmethod
    def send(self, text: str, icon: str | None = None) -> None:
        """Send a plain text message."""

    @abstractmethod
    def send_picture(self, url: str, icon: str | None = None) -> None:
        """Send a picture by URL."""

    @abstractmethod
    def send_rdl(self, rdl: dict[str, Any], icon: str | None = None) -> None:
        """Send a rich deep link card."""

    @abstractmethod
    def send_choice(self, index: int, title: str) -> None:
        """Present one numbered entry of a choice list."""

    @abstractmethod
    def send_link(self, title: str, url: str) -> None:
        """Send a link."""

    @abstractmethod
    def send_button(self, title: str, payload: str) -> None:
        """Present a button that sends ``payload`` back when clicked."""

    @abstractmethod
    def send_ask_special(self, what: str | None) -> None:
        """Tell the client which kind of answer is expected next (None = none)."""
