"""Tests for the suspension primitive and single-value slot filling."""

import asyncio

import pytest

from conftest import answer
from parley.agent.dialogs.slot_filling import slot_fill_single
from parley.agent.intent import (
    AnswerIntent,
    ChoiceIntent,
    HelpIntent,
    NeverMindIntent,
    NoIntent,
    ValueCategory,
    YesIntent,
)
from parley.errors import Cancelled
from parley.program.ast import BooleanValue, EnumValue, MeasureValue, NumberValue, StringValue
from parley.program.types import BOOLEAN, NUMBER, EnumType, MeasureType


@pytest.mark.asyncio
async def test_deliver_without_waiting_handler(dlg) -> None:
    assert dlg.is_waiting is False
    assert dlg.deliver(YesIntent()) is False
    assert dlg.drain() == []


@pytest.mark.asyncio
async def test_yes_no_question_returns_bool(dlg, channel) -> None:
    task = asyncio.create_task(dlg.ask(ValueCategory.YES_NO, "Are you sure?"))
    await answer(dlg, YesIntent())
    assert await task is True

    task = asyncio.create_task(dlg.ask(ValueCategory.YES_NO, "Really sure?"))
    await answer(dlg, AnswerIntent(BooleanValue(False)))
    assert await task is False
    assert channel.lines == ["Are you sure?", "Really sure?"]


@pytest.mark.asyncio
async def test_wrong_category_gets_a_hint_and_keeps_waiting(dlg, channel) -> None:
    task = asyncio.create_task(dlg.ask(ValueCategory.YES_NO, "Are you sure?"))
    await answer(dlg, AnswerIntent(NumberValue(3)))
    await answer(dlg, NoIntent())

    assert await task is False
    assert channel.lines == ["Are you sure?", "Yes or no?"]
    assert dlg.is_waiting is False


@pytest.mark.asyncio
async def test_never_mind_cancels_silently(dlg, channel) -> None:
    task = asyncio.create_task(dlg.ask(ValueCategory.NUMBER, "How many?"))
    await answer(dlg, NeverMindIntent())

    with pytest.raises(Cancelled):
        await task
    assert channel.lines == ["How many?"]
    assert dlg.expecting is None


@pytest.mark.asyncio
async def test_out_of_range_choice_is_rejected(dlg, channel) -> None:
    task = asyncio.create_task(dlg.ask_choices("Pick one", ["red", "green"]))
    await answer(dlg, ChoiceIntent(5))
    await answer(dlg, ChoiceIntent(-1))
    await answer(dlg, ChoiceIntent(1))

    assert await task == 1
    assert channel.lines == [
        "Pick one",
        "choice 0: red",
        "choice 1: green",
        "Could you choose one of the options?",
        "Could you choose one of the options?",
    ]


@pytest.mark.asyncio
async def test_command_expectation_refuses_bare_answers(dlg, channel) -> None:
    task = asyncio.create_task(dlg.expect(ValueCategory.COMMAND))
    await answer(dlg, AnswerIntent(StringValue("hello")))
    await answer(dlg, HelpIntent())

    assert await task == HelpIntent()
    assert channel.lines == ["Sorry, I did not understand that. You can say \"never mind\" to stop."]


@pytest.mark.asyncio
async def test_late_answers_are_drained(dlg) -> None:
    task = asyncio.create_task(dlg.ask(ValueCategory.YES_NO, "Sure?"))
    await answer(dlg, YesIntent())
    assert dlg.deliver(NoIntent())
    assert await task is True

    assert dlg.drain() == [NoIntent()]
    assert dlg.drain() == []


@pytest.mark.asyncio
async def test_slot_fill_number(dlg) -> None:
    task = asyncio.create_task(slot_fill_single(dlg, NUMBER, "How many?"))
    await answer(dlg, AnswerIntent(NumberValue(4)))
    assert await task == NumberValue(4)


@pytest.mark.asyncio
async def test_slot_fill_boolean_wraps_the_answer(dlg) -> None:
    task = asyncio.create_task(slot_fill_single(dlg, BOOLEAN, "Enabled?"))
    await answer(dlg, NoIntent())
    assert await task == BooleanValue(False)


@pytest.mark.asyncio
async def test_slot_fill_measure_checks_unit(dlg, channel) -> None:
    task = asyncio.create_task(slot_fill_single(dlg, MeasureType("C"), "How warm?"))
    await answer(dlg, AnswerIntent(MeasureValue(70, "F")))
    await answer(dlg, AnswerIntent(MeasureValue(21, "C")))

    assert await task == MeasureValue(21, "C")
    assert channel.lines == ["How warm?", "Sorry, I need a value in C.", "How warm?"]


@pytest.mark.asyncio
async def test_slot_fill_enum_checks_entries(dlg, channel) -> None:
    task = asyncio.create_task(slot_fill_single(dlg, EnumType(("on", "off")), "Power?"))
    await answer(dlg, AnswerIntent(StringValue("dim")))
    await answer(dlg, AnswerIntent(StringValue("off")))

    assert await task == EnumValue("off")
    assert channel.lines[1] == "Please pick one of: on, off."
