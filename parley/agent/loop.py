"""Conversation loop: the single consumer of the work queue."""

from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Any

from loguru import logger

from parley.agent.dialogs.ask_anything import ask_anything
from parley.agent.dialogs.configure import configure_dialog, discovery_dialog
from parley.agent.dialogs.init import init_dialog
from parley.agent.dialogs.notifications import format_error, show_error, show_notification
from parley.agent.dialogs.rule import rule_dialog
from parley.agent.dialogue import Dialogue
from parley.agent.dispatcher import handle_user_input
from parley.agent.intent import Intent, ProgramIntent, parse_payload
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
from parley.channels.base import BaseChannel
from parley.errors import Cancelled, UpstreamFailure
from parley.permissions.grant import permission_grant
from parley.platform.base import Platform
from parley.program.ast import Program
from parley.program.types import Type


class ConversationLoop:
    """
    The conversation loop.

    It:
    1. Runs the init dialog once
    2. Pulls work items off the queue one at a time, oldest first
    3. Runs the matching handler to completion
    4. Settles the item's future with the handler's result or failure

    A handler suspended on a question receives user input directly; user
    input that arrives while nothing is suspended becomes a new work item.
    """

    def __init__(
        self,
        platform: Platform,
        channel: BaseChannel,
        assistant_name: str = "Parley",
        show_welcome: bool = False,
    ):
        self.platform = platform
        self.channel = channel
        self.assistant_name = assistant_name
        self.show_welcome = show_welcome

        self.dialogue = Dialogue(platform, channel)
        self.queue = WorkQueue()
        self._last_app: str | None = None
        self._running = False
        self._task: asyncio.Task[None] | None = None

    # ── Lifecycle ───────────────────────────────────────────────────

    async def run(self) -> None:
        """Run the loop until ``stop`` is called."""
        self.queue.bind(asyncio.get_running_loop())
        self._running = True
        logger.info("Conversation loop started")
        await init_dialog(self.dialogue, self.show_welcome, self.assistant_name)

        while self._running:
            try:
                entry = await asyncio.wait_for(self.queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            await self._process(entry)

    def start(self) -> asyncio.Task[None]:
        """Run the loop as a background task of the running event loop."""
        self.queue.bind(asyncio.get_running_loop())
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    def stop(self) -> None:
        """Stop the loop. A suspended handler is abandoned."""
        self._running = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.info("Conversation loop stopping")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_app(self) -> str | None:
        return self._last_app

    # ── Processing ──────────────────────────────────────────────────

    async def _process(self, entry: QueueEntry) -> None:
        item = entry.item
        dlg = self.dialogue
        dlg.icon = None
        try:
            value = await self._dispatch(item)
        except Cancelled as e:
            logger.debug(f"{type(item).__name__} cancelled by the user")
            entry.reject(e)
        except UpstreamFailure as e:
            logger.warning(f"Upstream failure processing {type(item).__name__}: {e}")
            dlg.reply(str(e))
            entry.reject(e)
        except Exception as e:
            logger.exception(f"Failed to process {type(item).__name__}: {e}")
            if isinstance(item, UserInput):
                dlg.reply(f"Sorry, I had an error processing your command: {format_error(e)}")
            entry.reject(e)
        else:
            entry.resolve(value)
        finally:
            # answers that arrived after the handler stopped waiting
            for intent in dlg.drain():
                self.queue.enqueue(UserInput(intent))

    async def _dispatch(self, item: WorkItem) -> Any:
        dlg = self.dialogue

        if isinstance(item, UserInput):
            self._last_app = None
            return await handle_user_input(dlg, item.intent)
        elif isinstance(item, Notification):
            show_notification(
                dlg, item.app_id, item.icon, item.output_type, item.output_value,
                item.channel, self._last_app,
            )
            self._last_app = item.app_id
            return None
        elif isinstance(item, ErrorItem):
            show_error(dlg, item.app_id, item.icon, item.error, self._last_app)
            self._last_app = item.app_id
            return None
        elif isinstance(item, Question):
            self._last_app = None
            return await ask_anything(dlg, item.app_id, item.icon, item.value_type, item.question)
        elif isinstance(item, PermissionRequest):
            self._last_app = None
            return await permission_grant(dlg, item.program, item.principal, item.identity)
        elif isinstance(item, InteractiveConfigure):
            self._last_app = None
            if item.kind is not None:
                return await configure_dialog(dlg, item.kind)
            return await discovery_dialog(dlg)
        elif isinstance(item, RunProgram):
            self._last_app = None
            return await rule_dialog(dlg, ProgramIntent(item.program), True, item.unique_id)
        else:
            raise TypeError(f"Unknown work item {item!r}")

    # ── Producers ───────────────────────────────────────────────────

    def enqueue(self, item: WorkItem) -> asyncio.Future:
        return self.queue.enqueue(item)

    def enqueue_threadsafe(self, item: WorkItem) -> concurrent.futures.Future:
        """Queue an item from a thread other than the loop's."""
        return self.queue.enqueue_threadsafe(item)

    def handle_intent(self, intent: Intent) -> asyncio.Future:
        """Answer the suspended handler, or start a new turn with ``intent``."""
        if self.dialogue.deliver(intent):
            future = asyncio.get_running_loop().create_future()
            future.set_result(None)
            return future
        return self.enqueue(UserInput(intent))

    def _rejected(self, text: Any, error: UpstreamFailure) -> asyncio.Future:
        logger.warning(f"Failed to parse {text!r}: {error}")
        self.dialogue.reply(str(error))
        future = asyncio.get_running_loop().create_future()
        future.set_exception(error)
        future.exception()
        return future

    def handle_command(self, text: str) -> asyncio.Future:
        """Parse free text with the parser collaborator and handle it."""
        try:
            intent = self.platform.parser.parse(text)
        except UpstreamFailure as e:
            return self._rejected(text, e)
        return self.handle_intent(intent)

    def handle_parsed_command(self, payload: str | dict[str, Any]) -> asyncio.Future:
        """Handle a structured payload, such as the JSON of a clicked button."""
        try:
            intent = parse_payload(payload)
        except UpstreamFailure as e:
            return self._rejected(payload, e)
        return self.handle_intent(intent)

    def notify(
        self,
        app_id: str | None,
        icon: str | None,
        output_type: str | None,
        output_value: Any,
        channel: str | None = None,
    ) -> asyncio.Future:
        return self.enqueue(Notification(app_id, icon, output_type, output_value, channel))

    def notify_error(self, app_id: str | None, icon: str | None, error: Any) -> asyncio.Future:
        return self.enqueue(ErrorItem(app_id, icon, error))

    def ask_question(
        self,
        app_id: str | None,
        icon: str | None,
        value_type: Type,
        question: str,
    ) -> asyncio.Future:
        return self.enqueue(Question(app_id, icon, value_type, question))

    def ask_for_permission(self, principal: str, identity: str, program: Program) -> asyncio.Future:
        return self.enqueue(PermissionRequest(program, principal, identity))

    def interactive_configure(self, kind: str | None = None) -> asyncio.Future:
        return self.enqueue(InteractiveConfigure(kind))

    def run_program(self, program: Program, unique_id: str | None = None) -> asyncio.Future:
        return self.enqueue(RunProgram(program, unique_id))
