"""
The suspension primitive.

A handler that needs input from the user calls ``ask``, ``ask_choices`` or
``expect``: the prompt goes out on the channel and the handler suspends
until a response of the right category arrives. Nothing else in the core
awaits, so at most one handler ever runs and no two are interleaved.
"""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from parley.agent.intent import (
    AnswerIntent,
    ChoiceIntent,
    Intent,
    NeverMindIntent,
    ValueCategory,
    YesIntent,
    accepts,
)
from parley.channels.base import BaseChannel
from parley.errors import Cancelled
from parley.platform.base import Platform
from parley.program.ast import BooleanValue

_ASK_SPECIAL = {
    ValueCategory.YES_NO: "yesno",
    ValueCategory.MULTIPLE_CHOICE: "choice",
    ValueCategory.PERMISSION_RESPONSE: "generic",
    ValueCategory.COMMAND: "generic",
    ValueCategory.UNKNOWN: "generic",
}


class Dialogue:
    """
    Conversation state shared by all handlers.

    Args:
        platform: Collaborators (parser, contacts, policy store, ...).
        channel: Where replies are presented.
    """

    def __init__(self, platform: Platform, channel: BaseChannel):
        self.platform = platform
        self.channel = channel
        self.icon: str | None = None
        self._inbox: asyncio.Queue[Intent] = asyncio.Queue()
        self._expecting: ValueCategory | None = None
        self._choice_count: int | None = None

    # ── Output ──────────────────────────────────────────────────────

    def reply(self, text: str, icon: str | None = None) -> None:
        self.channel.send(text, icon or self.icon)

    def reply_picture(self, url: str, icon: str | None = None) -> None:
        self.channel.send_picture(url, icon or self.icon)

    def reply_rdl(self, rdl: dict[str, Any], icon: str | None = None) -> None:
        self.channel.send_rdl(rdl, icon or self.icon)

    def reply_link(self, title: str, url: str) -> None:
        self.channel.send_link(title, url)

    def reply_button(self, title: str, payload: str) -> None:
        self.channel.send_button(title, payload)

    def reply_choice(self, index: int, title: str) -> None:
        self.channel.send_choice(index, title)

    def fail(self) -> None:
        self.reply("Sorry, I did not understand that.")

    def unexpected(self) -> None:
        if self._expecting == ValueCategory.YES_NO:
            self.reply("Yes or no?")
        elif self._expecting == ValueCategory.MULTIPLE_CHOICE:
            self.reply("Could you choose one of the options?")
        else:
            self.reply("Sorry, I did not understand that. You can say \"never mind\" to stop.")

    # ── Input ───────────────────────────────────────────────────────

    @property
    def is_waiting(self) -> bool:
        """Whether a handler is suspended waiting for a response."""
        return self._expecting is not None

    @property
    def expecting(self) -> ValueCategory | None:
        return self._expecting

    def deliver(self, intent: Intent) -> bool:
        """Hand a response to the suspended handler. False when nobody waits."""
        if self._expecting is None:
            return False
        self._inbox.put_nowait(intent)
        return True

    def drain(self) -> list[Intent]:
        """Take responses that arrived after the handler stopped waiting."""
        pending = []
        while not self._inbox.empty():
            pending.append(self._inbox.get_nowait())
        return pending

    def _qualifies(self, category: ValueCategory, intent: Intent) -> bool:
        if not accepts(category, intent):
            return False
        if isinstance(intent, ChoiceIntent) and self._choice_count is not None:
            return 0 <= intent.index < self._choice_count
        return True

    async def expect(
        self,
        category: ValueCategory,
        choice_count: int | None = None,
    ) -> Intent:
        """Suspend until a response of ``category`` arrives.

        Raises:
            Cancelled: the user said "never mind" instead of answering.
        """
        self._expecting = category
        self._choice_count = choice_count
        self.channel.send_ask_special(_ASK_SPECIAL.get(category, category.value))
        try:
            while True:
                intent = await self._inbox.get()
                if isinstance(intent, NeverMindIntent):
                    logger.debug(f"Cancelled while expecting {category.value}")
                    raise Cancelled()
                if self._qualifies(category, intent):
                    return intent
                self.unexpected()
        finally:
            self._expecting = None
            self._choice_count = None
            self.channel.send_ask_special(None)

    async def ask(self, category: ValueCategory, question: str) -> Any:
        """Ask a question and return the answer's value.

        Yes/no questions return a bool, choice questions an index, anything
        else the answered ``Value``.
        """
        self.reply(question)
        intent = await self.expect(category)
        if category == ValueCategory.YES_NO:
            if isinstance(intent, AnswerIntent) and isinstance(intent.value, BooleanValue):
                return intent.value.value
            return isinstance(intent, YesIntent)
        if isinstance(intent, ChoiceIntent):
            return intent.index
        if isinstance(intent, AnswerIntent):
            return intent.value
        return intent

    async def ask_choices(self, question: str, choices: list[str]) -> int:
        """Present a numbered list and return the index the user picked."""
        self.reply(question)
        for index, title in enumerate(choices):
            self.reply_choice(index, title)
        intent = await self.expect(ValueCategory.MULTIPLE_CHOICE, choice_count=len(choices))
        if not isinstance(intent, ChoiceIntent):
            raise TypeError(f"Expected a choice, got {intent!r}")
        return intent.index
