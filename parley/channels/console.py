"""Console channel: renders replies to a terminal with rich."""

from typing import Any

from rich.console import Console
from rich.markup import escape

from parley.channels.base import BaseChannel


class ConsoleChannel(BaseChannel):
    """Prints every reply as a ``>>`` line, the way a test transcript reads."""

    name = "console"

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def _print(self, text: str) -> None:
        self.console.print(f"[bold green]>>[/bold green] {escape(text)}", highlight=False)

    def send(self, text: str, icon: str | None = None) -> None:
        self._print(text)

    def send_picture(self, url: str, icon: str | None = None) -> None:
        self._print(f"picture: {url}")

    def send_rdl(self, rdl: dict[str, Any], icon: str | None = None) -> None:
        self._print(f"rdl: {rdl.get('displayTitle', '')} {rdl.get('callback', '')}")

    def send_choice(self, index: int, title: str) -> None:
        self._print(f"choice {index}: {title}")

    def send_link(self, title: str, url: str) -> None:
        self._print(f"link: {title} {url}")

    def send_button(self, title: str, payload: str) -> None:
        self._print(f"button: {title} {payload}")

    def send_ask_special(self, what: str | None) -> None:
        if what is not None:
            self._print(f"ask special {what}")
