"""Tests for the interactive filter refinement loop."""

from __future__ import annotations

import asyncio
import json

import pytest

from conftest import XKCD_SCHEMA, answer, query_program, wait_for_question, xkcd
from parley.agent.intent import (
    AnswerIntent,
    BackIntent,
    ChoiceIntent,
    FilterIntent,
    NeverMindIntent,
    PermissionRuleIntent,
    PredicateIntent,
    parse_payload,
)
from parley.errors import Cancelled
from parley.permissions.convert import convert_to_permission_rule
from parley.permissions.refine import (
    add_filter,
    candidate_operators,
    filter_value_type,
    make_filter_candidates,
)
from parley.program.ast import (
    TRUE,
    UNCONSTRAINED,
    UNDEFINED,
    And,
    Atom,
    Filter,
    MeasureValue,
    NumberValue,
    Program,
    Rule,
    StringValue,
    notify_action,
)
from parley.program.types import (
    BOOLEAN,
    DATE,
    NUMBER,
    STRING,
    ArrayType,
    EntityType,
    MeasureType,
)


@pytest.mark.parametrize(
    "type_, operators",
    [
        (STRING, ("=", "!=", "=~")),
        (NUMBER, ("=", "<", ">", ">=", "<=")),
        (MeasureType("C"), ("=", "<", ">", ">=", "<=")),
        (ArrayType(STRING), ("contains",)),
        (BOOLEAN, ("=", "!=")),
        (DATE, ("=", "!=")),
        (EntityType("tt:picture"), ("=", "!=")),
    ],
)
def test_candidate_operators_by_type(type_, operators) -> None:
    assert candidate_operators(type_) == operators


def test_numeric_candidates_have_no_not_equal() -> None:
    assert "!=" not in candidate_operators(NUMBER)
    assert "!=" not in candidate_operators(MeasureType("F"))


def _xkcd_rule(principal: str = "p:1"):
    program = Program((Rule(queries=(xkcd(),), actions=(notify_action(),)),))
    return convert_to_permission_rule(principal, "P", program)


def test_candidates_cover_required_inputs_then_outputs() -> None:
    rule = _xkcd_rule()
    candidates = make_filter_candidates(rule.query)

    names = [c.name for c in candidates]
    assert names[:5] == ["number"] * 5
    assert names[5:8] == ["title"] * 3
    assert [c.operator for c in candidates if c.name == "tags"] == ["contains"]
    assert all(c.value == UNDEFINED for c in candidates)


def test_unconstrained_slot_has_no_candidates() -> None:
    assert make_filter_candidates(UNCONSTRAINED) == []


def test_contains_is_typed_by_element() -> None:
    assert filter_value_type(XKCD_SCHEMA, Filter("tags", "contains", UNDEFINED)) == STRING
    assert filter_value_type(XKCD_SCHEMA, Filter("title", "=~", UNDEFINED)) == STRING
    assert filter_value_type(XKCD_SCHEMA, Filter("nope", "=", UNDEFINED)) is None


@pytest.mark.asyncio
async def test_back_at_top_returns_no_rule(dlg, platform, channel) -> None:
    rule = _xkcd_rule()
    task = asyncio.create_task(add_filter(dlg, rule))

    await answer(dlg, ChoiceIntent(2))  # query, Done, Back
    assert await task is None
    assert platform.permissions.permissions == []
    assert channel.lines[0] == "Pick the part you want to add restrictions to:"
    assert channel.lines[1] == "choice 0: Get: xkcd comic"
    assert channel.lines[2:] == ["choice 1: Done", "choice 2: Back"]


@pytest.mark.asyncio
async def test_done_returns_working_rule(dlg) -> None:
    rule = _xkcd_rule()
    task = asyncio.create_task(add_filter(dlg, rule))

    await answer(dlg, ChoiceIntent(1))
    assert await task == rule


@pytest.mark.asyncio
async def test_filter_button_is_slot_filled_and_anded(dlg, channel) -> None:
    rule = _xkcd_rule()
    task = asyncio.create_task(add_filter(dlg, rule))

    await answer(dlg, ChoiceIntent(0))
    await answer(dlg, AnswerIntent(StringValue("ignored")))  # not a filter: hint, keep waiting
    title_contains = dict(channel.buttons)["title contains ____"]
    assert json.loads(title_contains) == {
        "filter": {"name": "title", "operator": "contains", "value": None, "type": "String"}
    }
    await answer(dlg, parse_payload(title_contains))
    await answer(dlg, AnswerIntent(StringValue("lol")))
    await answer(dlg, ChoiceIntent(0))
    await answer(dlg, FilterIntent(Filter("number", ">", NumberValue(100))))
    await answer(dlg, ChoiceIntent(1))  # Done

    refined = await task
    assert refined.query.filter == And(
        Atom("title", "=~", StringValue("lol")),
        Atom("number", ">", NumberValue(100)),
    )
    assert "What's the value of this filter?" in channel.lines
    assert refined.principal == rule.principal


@pytest.mark.asyncio
async def test_filter_buttons_list_every_candidate_and_back(dlg, channel) -> None:
    task = asyncio.create_task(add_filter(dlg, _xkcd_rule()))
    await answer(dlg, ChoiceIntent(0))
    await answer(dlg, BackIntent())

    titles = [title for title, _ in channel.buttons]
    assert titles[0] == "number is equal to ____"
    assert "number is not equal to ____" not in titles
    assert "tags contains ____" in titles
    assert titles[-1] == "Back"
    assert json.loads(channel.buttons[-1][1]) == {"special": "back"}

    # Back in the filter list drops the whole refinement
    assert await task is None
    assert dlg.is_waiting is False


@pytest.mark.asyncio
async def test_measure_filter_button_carries_unit(dlg, channel) -> None:
    rule = convert_to_permission_rule("p:1", "P", query_program()).with_empty_filters()
    task = asyncio.create_task(add_filter(dlg, rule))
    await answer(dlg, ChoiceIntent(0))
    await wait_for_question(dlg)

    payloads = [json.loads(p) for title, p in channel.buttons if title.startswith("temperature")]
    assert payloads[0]["filter"] == {
        "name": "temperature", "operator": "is", "value": None, "type": "Measure", "unit": "C",
    }
    await answer(dlg, parse_payload(json.dumps(payloads[1])))  # temperature < ____
    await answer(dlg, AnswerIntent(MeasureValue(30, "C")))
    await answer(dlg, ChoiceIntent(1))

    refined = await task
    assert refined.query.filter == Atom("temperature", "<", MeasureValue(30, "C"))


@pytest.mark.asyncio
async def test_predicate_is_anded_in(dlg) -> None:
    task = asyncio.create_task(add_filter(dlg, _xkcd_rule()))
    await answer(dlg, ChoiceIntent(0))
    await answer(dlg, PredicateIntent(Atom("title", "=", StringValue("x"))))
    await answer(dlg, ChoiceIntent(1))
    refined = await task
    assert refined.query.filter == Atom("title", "=", StringValue("x"))


@pytest.mark.asyncio
async def test_complete_rule_is_taken_as_done(dlg) -> None:
    replacement = _xkcd_rule("p:2").with_principal(None)
    task = asyncio.create_task(add_filter(dlg, _xkcd_rule()))
    await answer(dlg, ChoiceIntent(0))
    await answer(dlg, PermissionRuleIntent(replacement))
    assert await task == replacement


@pytest.mark.asyncio
async def test_unknown_argument_is_rejected(dlg, channel) -> None:
    task = asyncio.create_task(add_filter(dlg, _xkcd_rule()))
    await answer(dlg, ChoiceIntent(0))
    await answer(dlg, FilterIntent(Filter("bogus", "=", StringValue("x"))))
    await answer(dlg, ChoiceIntent(1))

    refined = await task
    assert refined.query.filter == TRUE
    assert "Sorry, I did not understand that." in channel.lines


@pytest.mark.asyncio
async def test_never_mind_while_slot_filling_cancels(dlg) -> None:
    task = asyncio.create_task(add_filter(dlg, _xkcd_rule()))
    await answer(dlg, ChoiceIntent(0))
    await answer(dlg, FilterIntent(Filter("title", "=", UNDEFINED)))
    await answer(dlg, NeverMindIntent())

    with pytest.raises(Cancelled):
        await task
    assert not dlg.is_waiting
