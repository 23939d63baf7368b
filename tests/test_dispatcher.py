"""Tests for user command routing and the command sub-dialogs."""

import asyncio

import pytest

from conftest import answer, make_platform, tweet_program, weather
from parley.agent.dialogue import Dialogue
from parley.agent.dispatcher import handle_user_input
from parley.agent.intent import (
    AnswerIntent,
    ChoiceIntent,
    FailedIntent,
    HelpIntent,
    MakeIntent,
    NoIntent,
    PermissionRuleIntent,
    PrimitiveIntent,
    ProgramIntent,
    SetupIntent,
    TrainIntent,
    YesIntent,
)
from parley.platform.memory import PayloadParser
from parley.program.ast import UNDEFINED, PermissionRule, SpecifiedFunction, StringValue

BOB = "phone:+15555550100"


class _QueryParser(PayloadParser):
    def parse_primitive(self, text, primitive_type):
        if primitive_type == "query":
            return weather(StringValue("Paris"))
        return None


def _run(dlg, intent) -> asyncio.Task:
    return asyncio.create_task(handle_user_input(dlg, intent))


@pytest.mark.asyncio
async def test_yes_and_no_outside_a_question(dlg, channel, platform) -> None:
    await handle_user_input(dlg, YesIntent())
    await handle_user_input(dlg, NoIntent())
    assert channel.lines == ["I agree, but to what?", "No way!"]
    assert platform.stats.counters["command-egg"] == 2


@pytest.mark.asyncio
async def test_unroutable_input_fails(dlg, channel) -> None:
    await handle_user_input(dlg, AnswerIntent(StringValue("hello")))
    await handle_user_input(dlg, ChoiceIntent(2))
    await handle_user_input(dlg, FailedIntent("flibber"))
    assert channel.lines == ["Sorry, I did not understand that."] * 3


@pytest.mark.asyncio
async def test_program_confirmed_and_installed(dlg, channel, platform) -> None:
    task = _run(dlg, ProgramIntent(tweet_program("hi")))
    await answer(dlg, YesIntent())
    app = await task

    assert channel.lines == ['Ok, so you want me to tweet "hi". Is that right?', "Consider it done."]
    assert platform.apps.programs[app.app_id] == tweet_program("hi")
    assert platform.stats.counters["command-rule"] == 1


@pytest.mark.asyncio
async def test_program_declined(dlg, channel, platform) -> None:
    task = _run(dlg, ProgramIntent(tweet_program()))
    await answer(dlg, NoIntent())

    assert await task is None
    assert channel.lines[-1] == "Ok, I'll cancel the command."
    assert platform.apps.programs == {}


@pytest.mark.asyncio
async def test_primitive_is_wrapped_and_missing_values_asked(dlg, channel, platform) -> None:
    task = _run(dlg, PrimitiveIntent("query", weather(UNDEFINED)))
    await answer(dlg, AnswerIntent(StringValue("Oslo")))
    await answer(dlg, YesIntent())
    app = await task

    assert channel.lines == [
        "What's the value of location?",
        'Ok, so you want me to get the weather in "Oslo" and then notify you. Is that right?',
        "Consider it done.",
    ]
    rule = platform.apps.programs[app.app_id].rules[0]
    assert rule.queries[0].in_params[0].value == StringValue("Oslo")
    assert rule.actions[0].channel == "notify"


@pytest.mark.asyncio
async def test_help_lists_examples(dlg, channel, platform) -> None:
    task = _run(dlg, HelpIntent("media"))
    await answer(dlg, ChoiceIntent(2))
    await task

    assert channel.lines[0] == "I don't have examples for media yet. Here is what you can build:"
    assert channel.lines[1] == "Click on one of the following buttons to start adding command."
    assert channel.lines[5:] == [
        "Do: you can say things like",
        "post on twitter",
        "send a message to mom",
        "turn on the lights",
    ]
    assert platform.stats.counters["command-help"] == 1


@pytest.mark.asyncio
async def test_make_builds_a_program_step_by_step(channel) -> None:
    platform = make_platform()
    platform.parser = _QueryParser()
    dlg = Dialogue(platform, channel)

    task = _run(dlg, MakeIntent())
    await answer(dlg, ChoiceIntent(0))
    await answer(dlg, AnswerIntent(StringValue("when it rains")))
    await answer(dlg, ChoiceIntent(1))
    await answer(dlg, AnswerIntent(StringValue("the weather in paris")))
    await answer(dlg, ChoiceIntent(3))
    await answer(dlg, YesIntent())
    app = await task

    assert "Sorry, I did not understand that." in channel.lines
    assert 'choice 1: Get: the weather in "Paris"' in channel.lines
    assert platform.apps.programs[app.app_id].rules[0].queries[0].kind == "org.thingpedia.weather"


@pytest.mark.asyncio
async def test_make_needs_at_least_one_part(dlg, channel) -> None:
    task = _run(dlg, MakeIntent())
    await answer(dlg, ChoiceIntent(3))
    await answer(dlg, ChoiceIntent(4))

    assert await task is None
    assert "You need to pick at least one command first." in channel.lines


@pytest.mark.asyncio
async def test_setup_sends_the_program(dlg, channel, platform) -> None:
    task = _run(dlg, SetupIntent(BOB, tweet_program("hi")))
    await answer(dlg, YesIntent())

    assert await task is True
    assert channel.lines == [
        'Ok, so you want me to ask Bob Smith to tweet "hi". Is that right?',
        'Sending rule to Bob Smith: tweet "hi"',
        "Consider it done.",
    ]
    assert platform.messaging.sent == [(BOB, tweet_program("hi"))]


@pytest.mark.asyncio
async def test_setup_without_messaging(dlg, channel, platform) -> None:
    platform.messaging = None
    assert await handle_user_input(dlg, SetupIntent(BOB, tweet_program())) is False
    assert channel.lines == ["Sorry, I cannot reach other people from here."]


@pytest.mark.asyncio
async def test_permission_rule_typed_by_the_user(dlg, channel, platform) -> None:
    rule = PermissionRule(None, action=SpecifiedFunction(kind="com.twitter", channel="post"))
    task = _run(dlg, PermissionRuleIntent(rule))
    await answer(dlg, YesIntent())

    assert await task is True
    assert channel.lines[0] == "Ok, so anyone is allowed to com.twitter.post. Is that right?"
    assert platform.permissions.permissions[0].rule == rule


@pytest.mark.asyncio
async def test_train_learns_the_picked_parse(dlg, channel, platform) -> None:
    fallbacks = [ProgramIntent(tweet_program("hi")), HelpIntent()]
    task = _run(dlg, TrainIntent("say hi on twitter", fallbacks))
    await answer(dlg, ChoiceIntent(0))
    await task

    assert channel.lines[1:4] == ['choice 0: tweet "hi"', "choice 1: help", "choice 2: None of the above"]
    assert channel.lines[-1] == "Thanks, I made a note of that."
    assert platform.parser.training == [("say hi on twitter", fallbacks[0])]


@pytest.mark.asyncio
async def test_train_none_of_the_above(dlg, channel, platform) -> None:
    task = _run(dlg, TrainIntent("say hi", [HelpIntent()]))
    await answer(dlg, ChoiceIntent(1))
    await task

    assert channel.lines[-1] == "Ok, I'll try to do better next time."
    assert platform.parser.training == []


@pytest.mark.asyncio
async def test_train_without_candidates(dlg, channel) -> None:
    await handle_user_input(dlg, TrainIntent("dance"))
    assert channel.lines == ['Sorry, I don\'t know what "dance" should do yet.']
