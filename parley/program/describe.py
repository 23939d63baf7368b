"""Human-readable descriptions of programs, filters and permission rules."""

from __future__ import annotations

import re

from parley.errors import InvalidOperator
from parley.program.ast import (
    AndExpression,
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
    Invocation,
    MeasureValue,
    NotExpression,
    NumberValue,
    OrExpression,
    PermissionFunction,
    PermissionRule,
    Program,
    SpecifiedFunction,
    StringValue,
    UndefinedValue,
    Value,
    VarRefValue,
)

# operator -> (template, swap): swap puts the value first
OPERATOR_PHRASES: dict[str, tuple[str, bool]] = {
    "contains": ("{0} contains {1}", False),
    "substr": ("{0} contains {1}", False),
    "=~": ("{0} contains {1}", False),
    "in_array": ("{0} contains {1}", True),
    "~=": ("{0} contains {1}", True),
    "=": ("{0} is equal to {1}", False),
    "!=": ("{0} is not equal to {1}", False),
    "<": ("{0} is less than {1}", False),
    ">": ("{0} is greater than {1}", False),
    "<=": ("{0} is less than or equal to {1}", False),
    ">=": ("{0} is greater than or equal to {1}", False),
}


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def describe_arg(value: Value, scope: dict[str, str] | None = None) -> str:
    """Describe a single value."""
    if isinstance(value, UndefinedValue):
        return "____"
    if isinstance(value, VarRefValue):
        if scope and value.name in scope:
            return f"the {scope[value.name]}"
        return value.name
    if isinstance(value, EventValue):
        return "the result"
    if isinstance(value, StringValue):
        return f'"{value.value}"'
    if isinstance(value, NumberValue):
        return _format_number(value.value)
    if isinstance(value, MeasureValue):
        return f"{_format_number(value.value)} {value.unit}"
    if isinstance(value, BooleanValue):
        return "true" if value.value else "false"
    if isinstance(value, EntityValue):
        return value.display or value.value
    if isinstance(value, DateValue):
        return value.value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, EnumValue):
        return value.value.replace("_", " ")
    if isinstance(value, ArrayValue):
        return ", ".join(describe_arg(v, scope) for v in value.values)
    return str(value)


def describe_filter(
    schema: FunctionSchema,
    filter: Filter,
    scope: dict[str, str] | None = None,
) -> str:
    """Describe one comparison using the argument's canonical name.

    Raises:
        InvalidOperator: the operator is not one the describer knows.
    """
    phrase = OPERATOR_PHRASES.get(filter.operator)
    if phrase is None:
        raise InvalidOperator(filter.operator)
    template, swap = phrase
    argcanonical = schema.argcanonical(filter.name)
    value = describe_arg(filter.value, scope)
    if swap:
        return template.format(value, argcanonical)
    return template.format(argcanonical, value)


def describe_expression(
    expr: BooleanExpression,
    schema: FunctionSchema,
    scope: dict[str, str] | None = None,
) -> str:
    if expr.is_true:
        return "always"
    if expr.is_false:
        return "never"
    if isinstance(expr, AtomExpression):
        return describe_filter(schema, expr.filter, scope)
    if isinstance(expr, NotExpression):
        return f"not {describe_expression(expr.expr, schema, scope)}"
    if isinstance(expr, AndExpression):
        return " and ".join(describe_expression(e, schema, scope) for e in expr.operands)
    if isinstance(expr, OrExpression):
        return " or ".join(describe_expression(e, schema, scope) for e in expr.operands)
    raise TypeError(f"Unexpected boolean expression {expr!r}")


def _fill_template(template: str, args: dict[str, str]) -> str:
    return re.sub(r"\$(\w+)", lambda m: args.get(m.group(1), "____"), template)


def describe_primitive(
    prim: Invocation,
    scope: dict[str, str] | None = None,
) -> str:
    """Describe a trigger, query or action, recording its outputs into ``scope``."""
    if scope is None:
        scope = {}
    schema = prim.schema
    args = {p.name: describe_arg(p.value, scope) for p in prim.in_params}
    template = schema.confirmation or schema.canonical or f"{prim.kind}.{prim.channel}"
    text = _fill_template(template, args)
    if not prim.filter.is_true:
        text = f"{text} if {describe_expression(prim.filter, schema, scope)}"
    for out in prim.out_params:
        scope[out.name] = schema.argcanonical(out.value)
    return text


def describe_program(program: Program) -> str:
    """Describe a whole program, one clause per rule."""
    clauses = []
    for rule in program.rules:
        scope: dict[str, str] = {}
        trigger = describe_primitive(rule.trigger, scope) if rule.trigger is not None else None
        parts = [f"get {describe_primitive(q, scope)}" for q in rule.queries]
        parts += [describe_primitive(a, scope) for a in rule.actions]
        clause = " and then ".join(parts)
        if trigger:
            clause = f"{clause} when {trigger}" if clause else f"monitor when {trigger}"
        clauses.append(clause)
    return "; ".join(clauses)


def describe_permission_function(
    fn: PermissionFunction,
    scope: dict[str, str] | None = None,
) -> str:
    if not isinstance(fn, SpecifiedFunction):
        return ""
    if scope is None:
        scope = {}
    schema = fn.schema
    text = schema.canonical or f"{fn.kind}.{fn.channel}"
    if not fn.filter.is_true:
        text = f"{text} if {describe_expression(fn.filter, schema, scope)}"
    for out in fn.out_params:
        scope[out.name] = schema.argcanonical(out.value)
    return text


def describe_principal(rule: PermissionRule) -> str:
    if rule.principal is None:
        return "anyone"
    return rule.principal.display or rule.principal.value


def describe_permission_rule(rule: PermissionRule) -> str:
    """Describe a permission rule, e.g. "anyone is allowed to get the weather"."""
    scope: dict[str, str] = {}
    trigger = describe_permission_function(rule.trigger, scope)
    query = describe_permission_function(rule.query, scope)
    action = describe_permission_function(rule.action, scope)

    parts = []
    if query:
        parts.append(f"get {query}")
    if action:
        parts.append(action)
    if not parts:
        parts.append("monitor" if trigger else "notify you")
    text = f"{describe_principal(rule)} is allowed to {' and then '.join(parts)}"
    if trigger:
        text = f"{text} when {trigger}"
    return text
