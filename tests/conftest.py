"""
Shared test fixtures for parley tests.

This module provides:
- A channel that records everything shown to the user
- An in-memory platform (parser, contacts, apps, policy store, telemetry)
- Sample device functions and programs
- ``answer``, which feeds a response to a suspended handler
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from parley.agent.dialogue import Dialogue
from parley.agent.intent import Intent
from parley.channels.base import BaseChannel
from parley.platform.base import Platform
from parley.platform.memory import (
    CounterTelemetry,
    LoggingMessenger,
    MemoryAppRegistry,
    MemoryContacts,
    MemoryDeviceManager,
    PayloadParser,
    SimpleFormatter,
)
from parley.policy.store import MemoryPolicyStore
from parley.program.ast import (
    BUILTIN_KIND,
    IN_REQ,
    OUT,
    ArgumentDef,
    FunctionSchema,
    InputParam,
    Invocation,
    OutputParam,
    Program,
    Rule,
    Selector,
    StringValue,
    Value,
    notify_action,
)
from parley.program.types import (
    NUMBER,
    STRING,
    ArrayType,
    EntityType,
    MeasureType,
)

# =============================================================================
# Channel
# =============================================================================


class RecordingChannel(BaseChannel):
    """Records output the same way the console renders it, minus the ``>>``."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.buttons: list[tuple[str, str]] = []

    def send(self, text: str, icon: str | None = None) -> None:
        self.lines.append(text)

    def send_picture(self, url: str, icon: str | None = None) -> None:
        self.lines.append(f"picture: {url}")

    def send_rdl(self, rdl: dict[str, Any], icon: str | None = None) -> None:
        self.lines.append(f"rdl: {rdl.get('displayTitle', '')} {rdl.get('callback', '')}")

    def send_choice(self, index: int, title: str) -> None:
        self.lines.append(f"choice {index}: {title}")

    def send_link(self, title: str, url: str) -> None:
        self.lines.append(f"link: {title} {url}")

    def send_button(self, title: str, payload: str) -> None:
        self.buttons.append((title, payload))
        self.lines.append(f"button: {title} {payload}")

    def send_ask_special(self, what: str | None) -> None:
        pass

    def take(self) -> list[str]:
        lines, self.lines = self.lines, []
        self.buttons = []
        return lines


# =============================================================================
# Platform
# =============================================================================


def make_platform(contacts: dict[str, str] | None = None) -> Platform:
    return Platform(
        parser=PayloadParser(),
        contacts=MemoryContacts(contacts or {"phone:+15555550100": "Bob Smith"}),
        apps=MemoryAppRegistry(),
        permissions=MemoryPolicyStore(),
        stats=CounterTelemetry(),
        formatter=SimpleFormatter(),
        devices=MemoryDeviceManager(["org.thingpedia.builtin.thingengine.phone"]),
        messaging=LoggingMessenger(),
    )


@pytest.fixture
def platform() -> Platform:
    return make_platform()


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def dlg(platform: Platform, channel: RecordingChannel) -> Dialogue:
    return Dialogue(platform, channel)


async def wait_for_question(dlg: Dialogue) -> None:
    """Wait until a handler is suspended with nothing pending."""
    for _ in range(500):
        if dlg.is_waiting and dlg._inbox.empty():
            return
        await asyncio.sleep(0)
    raise AssertionError("no handler is waiting for an answer")


async def answer(dlg: Dialogue, intent: Intent) -> None:
    await wait_for_question(dlg)
    assert dlg.deliver(intent)


async def settle(rounds: int = 50) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


# =============================================================================
# Sample device functions
# =============================================================================


XKCD_KIND = "com.xkcd"
TWITTER_KIND = "com.twitter"
WEATHER_KIND = "org.thingpedia.weather"
REMOTE_KIND = "org.thingpedia.builtin.thingengine.remote"

XKCD_SCHEMA = FunctionSchema(
    args=(
        ArgumentDef("number", NUMBER, IN_REQ, "number"),
        ArgumentDef("title", STRING, OUT, "title"),
        ArgumentDef("picture_url", EntityType("tt:picture"), OUT, "picture url"),
        ArgumentDef("tags", ArrayType(STRING), OUT, "tags"),
    ),
    canonical="xkcd comic",
    confirmation="an xkcd comic",
)

TWEET_SCHEMA = FunctionSchema(
    args=(ArgumentDef("status", STRING, IN_REQ, "status"),),
    canonical="tweet",
    confirmation="tweet $status",
)

WEATHER_SCHEMA = FunctionSchema(
    args=(
        ArgumentDef("location", STRING, IN_REQ, "location"),
        ArgumentDef("temperature", MeasureType("C"), OUT, "temperature"),
    ),
    canonical="weather",
    confirmation="the weather in $location",
)

REMOTE_RECEIVE_SCHEMA = FunctionSchema(
    args=(ArgumentDef("payload", STRING, OUT, "payload"),),
    canonical="receive",
    confirmation="you receive something",
)


def xkcd(number: Value | None = None, outputs: bool = False) -> Invocation:
    params = (InputParam("number", number),) if number is not None else ()
    out = (OutputParam("v_title", "title"),) if outputs else ()
    return Invocation(
        selector=Selector(XKCD_KIND),
        channel="get_comic",
        in_params=params,
        out_params=out,
        schema=XKCD_SCHEMA,
    )


def tweet(status: Value) -> Invocation:
    return Invocation(
        selector=Selector(TWITTER_KIND),
        channel="post",
        in_params=(InputParam("status", status),),
        schema=TWEET_SCHEMA,
    )


def weather(location: Value) -> Invocation:
    return Invocation(
        selector=Selector(WEATHER_KIND),
        channel="current",
        in_params=(InputParam("location", location),),
        schema=WEATHER_SCHEMA,
    )


def remote_receive() -> Invocation:
    return Invocation(
        selector=Selector(REMOTE_KIND),
        channel="receive",
        out_params=(OutputParam("v_payload", "payload"),),
        schema=REMOTE_RECEIVE_SCHEMA,
    )


def builtin_say() -> Invocation:
    return Invocation(
        selector=Selector(BUILTIN_KIND),
        channel="say",
        in_params=(InputParam("message", StringValue("hi")),),
    )


def query_program(location: str = "Paris") -> Program:
    """get the weather in <location> and notify."""
    return Program((Rule(queries=(weather(StringValue(location)),), actions=(notify_action(),)),))


def tweet_program(status: str = "hello") -> Program:
    return Program((Rule(actions=(tweet(StringValue(status)),)),))
