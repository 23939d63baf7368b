"""
Intents and value categories.

An intent is what the parser made of one user turn: a command to start a
sub-dialog, or an answer to the question a suspended handler asked. Button
payloads are JSON and decode here; free text goes through the parser
collaborator.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from parley.errors import ParseError
from parley.program.ast import (
    UNDEFINED,
    BooleanExpression,
    BooleanValue,
    DateValue,
    EntityValue,
    Filter,
    Invocation,
    MeasureValue,
    NumberValue,
    PermissionRule,
    Program,
    StringValue,
    Value,
)
from parley.program.serialization import (
    expression_from_json,
    invocation_from_json,
    loads,
    permission_rule_from_json,
    program_from_json,
    value_from_json,
)
from parley.program.types import (
    BooleanType,
    DateType,
    EntityType,
    MeasureType,
    NumberType,
    StringType,
    Type,
)


class ValueCategory(str, Enum):
    """Semantic category of a user response."""
    YES_NO = "yes_no"
    MULTIPLE_CHOICE = "multiple_choice"
    NUMBER = "number"
    MEASURE = "measure"
    RAW_STRING = "raw_string"
    DATE = "date"
    LOCATION = "location"
    PHONE_NUMBER = "phone_number"
    EMAIL_ADDRESS = "email_address"
    CONTACT = "contact"
    PICTURE = "picture"
    PERMISSION_RESPONSE = "permission_response"
    COMMAND = "command"
    UNKNOWN = "unknown"


_ENTITY_CATEGORIES = {
    "tt:phone_number": ValueCategory.PHONE_NUMBER,
    "tt:email_address": ValueCategory.EMAIL_ADDRESS,
    "tt:contact": ValueCategory.CONTACT,
    "tt:picture": ValueCategory.PICTURE,
    "tt:location": ValueCategory.LOCATION,
}


def category_for_value(value: Value) -> ValueCategory:
    if isinstance(value, NumberValue):
        return ValueCategory.NUMBER
    if isinstance(value, MeasureValue):
        return ValueCategory.MEASURE
    if isinstance(value, StringValue):
        return ValueCategory.RAW_STRING
    if isinstance(value, DateValue):
        return ValueCategory.DATE
    if isinstance(value, BooleanValue):
        return ValueCategory.YES_NO
    if isinstance(value, EntityValue):
        return _ENTITY_CATEGORIES.get(value.entity_type, ValueCategory.UNKNOWN)
    return ValueCategory.UNKNOWN


def category_for_type(type_: Type) -> ValueCategory:
    """The category of answer that can fill a slot of ``type_``."""
    if isinstance(type_, NumberType):
        return ValueCategory.NUMBER
    if isinstance(type_, MeasureType):
        return ValueCategory.MEASURE
    if isinstance(type_, StringType):
        return ValueCategory.RAW_STRING
    if isinstance(type_, DateType):
        return ValueCategory.DATE
    if isinstance(type_, BooleanType):
        return ValueCategory.YES_NO
    if isinstance(type_, EntityType):
        return _ENTITY_CATEGORIES.get(type_.kind, ValueCategory.UNKNOWN)
    return ValueCategory.UNKNOWN


# ── Intents ─────────────────────────────────────────────────────────


@dataclass
class Intent:
    """Base class for parsed user turns."""

    @property
    def category(self) -> ValueCategory:
        return ValueCategory.COMMAND


@dataclass
class FailedIntent(Intent):
    command: str | None = None


@dataclass
class FallbackIntent(Intent):
    command: str | None = None


@dataclass
class TrainIntent(Intent):
    command: str | None = None
    fallbacks: list[Any] = field(default_factory=list)


@dataclass
class YesIntent(Intent):
    @property
    def category(self) -> ValueCategory:
        return ValueCategory.YES_NO


@dataclass
class NoIntent(Intent):
    @property
    def category(self) -> ValueCategory:
        return ValueCategory.YES_NO


@dataclass
class MaybeIntent(Intent):
    @property
    def category(self) -> ValueCategory:
        return ValueCategory.PERMISSION_RESPONSE


@dataclass
class BackIntent(Intent):
    @property
    def category(self) -> ValueCategory:
        return ValueCategory.PERMISSION_RESPONSE


@dataclass
class NeverMindIntent(Intent):
    """Explicit cancellation of the current turn."""


@dataclass
class HelpIntent(Intent):
    category_name: str | None = None


@dataclass
class MakeIntent(Intent):
    pass


@dataclass
class SetupIntent(Intent):
    person: str
    program: Program


@dataclass
class ProgramIntent(Intent):
    program: Program


@dataclass
class PrimitiveIntent(Intent):
    primitive_type: str  # trigger, query or action
    primitive: Invocation


@dataclass
class PermissionRuleIntent(Intent):
    rule: PermissionRule

    @property
    def category(self) -> ValueCategory:
        return ValueCategory.PERMISSION_RESPONSE


@dataclass
class FilterIntent(Intent):
    filter: Filter

    @property
    def category(self) -> ValueCategory:
        return ValueCategory.PERMISSION_RESPONSE


@dataclass
class PredicateIntent(Intent):
    predicate: BooleanExpression

    @property
    def category(self) -> ValueCategory:
        return ValueCategory.PERMISSION_RESPONSE


@dataclass
class AnswerIntent(Intent):
    value: Value

    @property
    def category(self) -> ValueCategory:
        return category_for_value(self.value)


@dataclass
class ChoiceIntent(Intent):
    index: int

    @property
    def category(self) -> ValueCategory:
        return ValueCategory.MULTIPLE_CHOICE


PERMISSION_RESPONSES = (
    YesIntent,
    NoIntent,
    MaybeIntent,
    BackIntent,
    PermissionRuleIntent,
    FilterIntent,
    PredicateIntent,
)


def accepts(expected: ValueCategory, intent: Intent) -> bool:
    """Whether ``intent`` answers a question of category ``expected``."""
    if expected == ValueCategory.PERMISSION_RESPONSE:
        return isinstance(intent, PERMISSION_RESPONSES)
    if expected == ValueCategory.YES_NO:
        return isinstance(intent, (YesIntent, NoIntent)) or (
            isinstance(intent, AnswerIntent) and isinstance(intent.value, BooleanValue)
        )
    if expected == ValueCategory.COMMAND:
        return not isinstance(intent, (AnswerIntent, ChoiceIntent))
    if expected == ValueCategory.UNKNOWN:
        return isinstance(intent, AnswerIntent)
    return intent.category == expected


# ── Button payloads ─────────────────────────────────────────────────


# wire name of a filter operator on buttons -> program operator
FILTER_OPERATOR_NAMES = {
    "=": "is",
    "=~": "contains",
    "contains": "has",
}
_FILTER_OPERATORS_FROM_NAMES = {v: k for k, v in FILTER_OPERATOR_NAMES.items()}

_SPECIALS = {
    "yes": YesIntent,
    "no": NoIntent,
    "maybe": MaybeIntent,
    "back": BackIntent,
    "nevermind": NeverMindIntent,
    "makerule": MakeIntent,
}


def filter_button_payload(filter: Filter, value_type: Type) -> str:
    """The JSON a filter-candidate button sends back when clicked."""
    obj: dict[str, Any] = {
        "filter": {
            "name": filter.name,
            "operator": FILTER_OPERATOR_NAMES.get(filter.operator, filter.operator),
            "value": None,
            "type": "Measure" if value_type.is_measure else str(value_type),
        }
    }
    if value_type.is_measure:
        obj["filter"]["unit"] = value_type.unit
    return json.dumps(obj)


def special_payload(name: str) -> str:
    return json.dumps({"special": name})


def _parse_filter(data: Any) -> Filter:
    if not isinstance(data, dict) or "name" not in data or "operator" not in data:
        raise ParseError(f"Invalid filter payload {data!r}")
    operator = _FILTER_OPERATORS_FROM_NAMES.get(data["operator"], data["operator"])
    value = data.get("value")
    if value is None:
        parsed_value: Value = UNDEFINED
    elif isinstance(value, dict):
        parsed_value = value_from_json(value)
    else:
        parsed_value = _answer_value(data.get("type", "String"), value, data.get("unit"))
    return Filter(str(data["name"]), str(operator), parsed_value)


def _answer_value(kind: str, value: Any, unit: str | None = None) -> Value:
    # {"type": "String", "value": {"value": "foo"}} is accepted as well
    if isinstance(value, dict) and "value" in value and len(value) == 1:
        value = value["value"]
    data: dict[str, Any] = {"type": kind, "value": value}
    if unit is not None:
        data["unit"] = unit
    if kind.startswith("Entity(") and kind.endswith(")"):
        data = {"type": "Entity", "value": value, "entity_type": kind[len("Entity("):-1]}
    return value_from_json(data)


def parse_payload(payload: str | dict[str, Any]) -> Intent:
    """Decode a structured (button or console) payload into an intent.

    Raises:
        ParseError: the payload is not valid JSON or has an unknown shape.
    """
    data = loads(payload) if isinstance(payload, str) else payload
    if not isinstance(data, dict):
        raise ParseError(f"Invalid payload {payload!r}")

    if "special" in data:
        special = str(data["special"]).lower()
        if special in _SPECIALS:
            return _SPECIALS[special]()
        if special == "help":
            return HelpIntent(data.get("category"))
        if special == "failed":
            return FailedIntent(data.get("command"))
        if special == "fallback":
            return FallbackIntent(data.get("command"))
        if special == "train":
            return TrainIntent(data.get("command"), list(data.get("fallbacks") or []))
        raise ParseError(f"Unknown special command {special!r}")

    if "answer" in data:
        answer = data["answer"]
        if not isinstance(answer, dict) or "type" not in answer:
            raise ParseError(f"Invalid answer {answer!r}")
        if answer["type"] == "Choice":
            try:
                return ChoiceIntent(int(answer["value"]))
            except (KeyError, TypeError, ValueError) as e:
                raise ParseError(f"Invalid choice {answer!r}") from e
        return AnswerIntent(_answer_value(str(answer["type"]), answer.get("value"), answer.get("unit")))

    if "filter" in data:
        return FilterIntent(_parse_filter(data["filter"]))
    if "predicate" in data:
        return PredicateIntent(expression_from_json(data["predicate"]))
    if "permission_rule" in data:
        return PermissionRuleIntent(permission_rule_from_json(data["permission_rule"]))
    if "program" in data:
        return ProgramIntent(program_from_json(data["program"]))
    if "primitive" in data:
        prim = data["primitive"]
        if not isinstance(prim, dict) or prim.get("type") not in ("trigger", "query", "action"):
            raise ParseError(f"Invalid primitive {prim!r}")
        return PrimitiveIntent(prim["type"], invocation_from_json(prim.get("invocation")))
    if "setup" in data:
        setup = data["setup"]
        if not isinstance(setup, dict) or "person" not in setup:
            raise ParseError(f"Invalid setup command {setup!r}")
        return SetupIntent(str(setup["person"]), program_from_json(setup.get("program")))

    raise ParseError(f"Unrecognized payload {payload!r}")
