"""Conversion of a candidate program into a permission rule."""

from __future__ import annotations

from loguru import logger

from parley.errors import UnrepresentableProgram
from parley.program.ast import (
    UNCONSTRAINED,
    AndExpression,
    AtomExpression,
    EntityValue,
    Filter,
    Invocation,
    PermissionFunction,
    PermissionRule,
    Program,
    Rule,
    SpecifiedFunction,
)
from parley.program.optimize import optimize_filter

Slots = tuple[Invocation | None, Invocation | None, Invocation | None]


def split_rule(rule: Rule) -> Slots:
    """Pick the trigger, query and action a permission rule would cover.

    Remote receive triggers, builtin actions and remote send actions do not
    occupy a slot.

    Raises:
        UnrepresentableProgram: more than one query or action.
    """
    trigger = None
    if rule.trigger is not None and not rule.trigger.is_remote_receive:
        trigger = rule.trigger

    if len(rule.queries) > 1:
        raise UnrepresentableProgram("cannot support more than one query")
    query = rule.queries[0] if rule.queries else None

    actions = [
        a for a in rule.actions
        if not a.selector.is_builtin and not a.is_remote_send
    ]
    if len(actions) > 1:
        raise UnrepresentableProgram("cannot support more than one action")
    action = actions[0] if actions else None
    return trigger, query, action


def single_rule(program: Program) -> Rule:
    if len(program.rules) != 1:
        raise UnrepresentableProgram(
            f"cannot support {len(program.rules)} rules, only exactly one"
        )
    return program.rules[0]


def convert_primitive(
    prim: Invocation | None,
    scope: dict[str, str],
) -> PermissionFunction:
    """Freeze a primitive's bound inputs into a filter.

    ``scope`` maps each variable bound by an earlier primitive of the same
    rule to the output argument it holds, e.g. ``v_title -> title``. A
    variable reference not found there is a cross-device placeholder and
    stays out of the filter. This primitive's bindings are added to ``scope``.
    """
    if prim is None:
        return UNCONSTRAINED

    atoms = []
    for param in prim.in_params:
        if param.value.is_var_ref and param.value.name not in scope:
            continue
        atoms.append(AtomExpression(Filter(param.name, "=", param.value)))
    expr = optimize_filter(AndExpression((prim.filter, AndExpression(tuple(atoms)))))

    for out in prim.out_params:
        scope[out.name] = out.value
    return SpecifiedFunction(
        kind=prim.kind,
        channel=prim.channel,
        filter=expr,
        out_params=prim.out_params,
        schema=prim.schema,
    )


def convert_to_permission_rule(
    principal: str,
    contact_name: str,
    program: Program,
) -> PermissionRule:
    """Build the rule "``principal`` may run exactly this program".

    Raises:
        UnrepresentableProgram: the program has more than one rule, query
            or non-builtin action.
    """
    try:
        trigger, query, action = split_rule(single_rule(program))
    except UnrepresentableProgram as e:
        logger.info(f"Program not representable as a permission rule: {e}")
        raise

    scope: dict[str, str] = {}
    return PermissionRule(
        principal=EntityValue(principal, "tt:contact", contact_name),
        trigger=convert_primitive(trigger, scope),
        query=convert_primitive(query, scope),
        action=convert_primitive(action, scope),
    )
