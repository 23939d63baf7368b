"""JSON codec for the program model.

Rules travel inside button payloads and programs arrive from the console
as JSON, so every node has a plain ``dict`` form. Decoding errors raise
``ParseError`` with the offending fragment in the message.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from parley.errors import ParseError
from parley.program.ast import (
    FALSE,
    TRUE,
    UNCONSTRAINED,
    UNDEFINED,
    AndExpression,
    ArgumentDef,
    ArrayValue,
    AtomExpression,
    BooleanExpression,
    BooleanValue,
    DateValue,
    EntityValue,
    EnumValue,
    EventValue,
    Filter,
    FunctionSchema,
    InputParam,
    Invocation,
    MeasureValue,
    NotExpression,
    NumberValue,
    OrExpression,
    OutputParam,
    PermissionFunction,
    PermissionRule,
    Program,
    Rule,
    Selector,
    SpecifiedFunction,
    StringValue,
    UndefinedValue,
    Value,
    VarRefValue,
)
from parley.program.types import Type


# ── Values ──────────────────────────────────────────────────────────


def value_to_json(value: Value) -> dict[str, Any]:
    if isinstance(value, UndefinedValue):
        return {"type": "Undefined"}
    if isinstance(value, VarRefValue):
        return {"type": "VarRef", "name": value.name}
    if isinstance(value, EventValue):
        return {"type": "Event"}
    if isinstance(value, StringValue):
        return {"type": "String", "value": value.value}
    if isinstance(value, NumberValue):
        return {"type": "Number", "value": value.value}
    if isinstance(value, MeasureValue):
        return {"type": "Measure", "value": value.value, "unit": value.unit}
    if isinstance(value, BooleanValue):
        return {"type": "Bool", "value": value.value}
    if isinstance(value, EntityValue):
        return {
            "type": "Entity",
            "value": value.value,
            "entity_type": value.entity_type,
            "display": value.display,
        }
    if isinstance(value, DateValue):
        return {"type": "Date", "value": value.value.isoformat()}
    if isinstance(value, EnumValue):
        return {"type": "Enum", "value": value.value}
    if isinstance(value, ArrayValue):
        return {"type": "Array", "value": [value_to_json(v) for v in value.values]}
    raise TypeError(f"Cannot serialize value {value!r}")


def value_from_json(data: Any) -> Value:
    if data is None:
        return UNDEFINED
    if not isinstance(data, dict):
        raise ParseError(f"Invalid value {data!r}")
    kind = data.get("type")
    try:
        if kind == "Undefined":
            return UNDEFINED
        if kind == "VarRef":
            return VarRefValue(str(data["name"]))
        if kind == "Event":
            return EventValue()
        if kind == "String":
            return StringValue(str(data["value"]))
        if kind == "Number":
            return NumberValue(float(data["value"]))
        if kind == "Measure":
            return MeasureValue(float(data["value"]), str(data["unit"]))
        if kind in ("Bool", "Boolean"):
            return BooleanValue(bool(data["value"]))
        if kind == "Entity":
            return EntityValue(
                str(data["value"]),
                str(data.get("entity_type") or "tt:generic"),
                data.get("display"),
            )
        if kind == "Date":
            return DateValue(datetime.fromisoformat(str(data["value"])))
        if kind == "Enum":
            return EnumValue(str(data["value"]))
        if kind == "Array":
            return ArrayValue(tuple(value_from_json(v) for v in data.get("value", [])))
    except (KeyError, TypeError, ValueError) as e:
        raise ParseError(f"Invalid {kind} value {data!r}: {e}") from e
    raise ParseError(f"Unknown value type {kind!r}")


# ── Predicates ──────────────────────────────────────────────────────


def filter_to_json(filter: Filter) -> dict[str, Any]:
    return {
        "name": filter.name,
        "operator": filter.operator,
        "value": value_to_json(filter.value),
    }


def filter_from_json(data: dict[str, Any]) -> Filter:
    try:
        return Filter(
            str(data["name"]),
            str(data["operator"]),
            value_from_json(data.get("value")),
        )
    except (KeyError, TypeError) as e:
        raise ParseError(f"Invalid filter {data!r}") from e


def expression_to_json(expr: BooleanExpression) -> Any:
    if expr.is_true:
        return True
    if expr.is_false:
        return False
    if isinstance(expr, AtomExpression):
        return {"atom": filter_to_json(expr.filter)}
    if isinstance(expr, NotExpression):
        return {"not": expression_to_json(expr.expr)}
    if isinstance(expr, AndExpression):
        return {"and": [expression_to_json(e) for e in expr.operands]}
    if isinstance(expr, OrExpression):
        return {"or": [expression_to_json(e) for e in expr.operands]}
    raise TypeError(f"Cannot serialize expression {expr!r}")


def expression_from_json(data: Any) -> BooleanExpression:
    if data is None or data is True:
        return TRUE
    if data is False:
        return FALSE
    if not isinstance(data, dict) or len(data) != 1:
        raise ParseError(f"Invalid boolean expression {data!r}")
    (op, arg), = data.items()
    if op == "atom":
        return AtomExpression(filter_from_json(arg))
    if op == "not":
        return NotExpression(expression_from_json(arg))
    if op == "and":
        return AndExpression(tuple(expression_from_json(e) for e in arg))
    if op == "or":
        return OrExpression(tuple(expression_from_json(e) for e in arg))
    raise ParseError(f"Invalid boolean expression {data!r}")


# ── Schemas and invocations ─────────────────────────────────────────


def schema_to_json(schema: FunctionSchema) -> dict[str, Any]:
    return {
        "canonical": schema.canonical,
        "confirmation": schema.confirmation,
        "args": [
            {
                "name": a.name,
                "type": str(a.type),
                "direction": a.direction,
                "canonical": a.canonical,
            }
            for a in schema.args
        ],
    }


def schema_from_json(data: dict[str, Any] | None) -> FunctionSchema:
    data = data or {}
    try:
        args = tuple(
            ArgumentDef(
                name=str(a["name"]),
                type=Type.from_string(a["type"]),
                direction=str(a.get("direction", "in_req")),
                canonical=str(a.get("canonical", "")),
            )
            for a in data.get("args", [])
        )
    except (KeyError, TypeError) as e:
        raise ParseError(f"Invalid schema {data!r}") from e
    return FunctionSchema(
        args=args,
        canonical=str(data.get("canonical", "")),
        confirmation=str(data.get("confirmation", "")),
    )


def invocation_to_json(prim: Invocation) -> dict[str, Any]:
    return {
        "kind": prim.selector.kind,
        "id": prim.selector.id,
        "principal": prim.selector.principal,
        "channel": prim.channel,
        "in_params": {p.name: value_to_json(p.value) for p in prim.in_params},
        "filter": expression_to_json(prim.filter),
        "out_params": {p.name: p.value for p in prim.out_params},
        "schema": schema_to_json(prim.schema),
    }


def invocation_from_json(data: dict[str, Any]) -> Invocation:
    if not isinstance(data, dict) or "kind" not in data or "channel" not in data:
        raise ParseError(f"Invalid primitive {data!r}")
    return Invocation(
        selector=Selector(str(data["kind"]), data.get("id"), data.get("principal")),
        channel=str(data["channel"]),
        in_params=tuple(
            InputParam(name, value_from_json(v))
            for name, v in (data.get("in_params") or {}).items()
        ),
        filter=expression_from_json(data.get("filter")),
        out_params=tuple(
            OutputParam(name, str(v)) for name, v in (data.get("out_params") or {}).items()
        ),
        schema=schema_from_json(data.get("schema")),
    )


def rule_to_json(rule: Rule) -> dict[str, Any]:
    return {
        "trigger": invocation_to_json(rule.trigger) if rule.trigger is not None else None,
        "queries": [invocation_to_json(q) for q in rule.queries],
        "actions": [invocation_to_json(a) for a in rule.actions],
    }


def rule_from_json(data: dict[str, Any]) -> Rule:
    if not isinstance(data, dict):
        raise ParseError(f"Invalid rule {data!r}")
    trigger = data.get("trigger")
    return Rule(
        trigger=invocation_from_json(trigger) if trigger else None,
        queries=tuple(invocation_from_json(q) for q in data.get("queries", [])),
        actions=tuple(invocation_from_json(a) for a in data.get("actions", [])),
    )


def program_to_json(program: Program) -> dict[str, Any]:
    return {"name": program.name, "rules": [rule_to_json(r) for r in program.rules]}


def program_from_json(data: dict[str, Any] | str) -> Program:
    """Decode a program from a dict or a JSON string."""
    if isinstance(data, str):
        data = loads(data)
    if not isinstance(data, dict) or not isinstance(data.get("rules"), list):
        raise ParseError(f"Invalid program {data!r}")
    return Program(
        rules=tuple(rule_from_json(r) for r in data["rules"]),
        name=str(data.get("name", "")),
    )


# ── Permission rules ────────────────────────────────────────────────


def permission_function_to_json(fn: PermissionFunction) -> dict[str, Any] | None:
    if not isinstance(fn, SpecifiedFunction):
        return None
    return {
        "kind": fn.kind,
        "channel": fn.channel,
        "filter": expression_to_json(fn.filter),
        "out_params": {p.name: p.value for p in fn.out_params},
        "schema": schema_to_json(fn.schema),
    }


def permission_function_from_json(data: dict[str, Any] | None) -> PermissionFunction:
    if data is None:
        return UNCONSTRAINED
    if not isinstance(data, dict) or "kind" not in data or "channel" not in data:
        raise ParseError(f"Invalid permission function {data!r}")
    return SpecifiedFunction(
        kind=str(data["kind"]),
        channel=str(data["channel"]),
        filter=expression_from_json(data.get("filter")),
        out_params=tuple(
            OutputParam(name, str(v)) for name, v in (data.get("out_params") or {}).items()
        ),
        schema=schema_from_json(data.get("schema")),
    )


def permission_rule_to_json(rule: PermissionRule) -> dict[str, Any]:
    return {
        "principal": value_to_json(rule.principal) if rule.principal is not None else None,
        "trigger": permission_function_to_json(rule.trigger),
        "query": permission_function_to_json(rule.query),
        "action": permission_function_to_json(rule.action),
    }


def permission_rule_from_json(data: dict[str, Any]) -> PermissionRule:
    if not isinstance(data, dict):
        raise ParseError(f"Invalid permission rule {data!r}")
    principal = data.get("principal")
    if principal is not None:
        principal = value_from_json(principal)
        if not isinstance(principal, EntityValue):
            raise ParseError(f"Invalid principal {data.get('principal')!r}")
    return PermissionRule(
        principal=principal,
        trigger=permission_function_from_json(data.get("trigger")),
        query=permission_function_from_json(data.get("query")),
        action=permission_function_from_json(data.get("action")),
    )


def loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"Invalid JSON: {e}") from e
