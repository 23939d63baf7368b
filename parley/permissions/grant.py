"""
Permission negotiation.

A remote principal asked to run a program. The user can allow it once,
allow it forever (from anybody or from that principal), refuse, or build a
narrower rule with the refinement loop. A program that cannot be expressed
as a permission rule only gets a yes/no question.
"""

from __future__ import annotations

import json

from loguru import logger

from parley.agent.dialogue import Dialogue
from parley.agent.intent import (
    MaybeIntent,
    PermissionRuleIntent,
    ValueCategory,
    YesIntent,
    special_payload,
)
from parley.errors import UnrepresentableProgram
from parley.permissions.convert import convert_to_permission_rule
from parley.permissions.identity import get_identity_name
from parley.permissions.refine import add_filter
from parley.program.ast import PermissionRule, Program
from parley.program.describe import describe_permission_rule, describe_program
from parley.program.serialization import permission_rule_to_json


def compute_icon(program: Program) -> str | None:
    """Kind of the last primitive that runs on an actual local device."""
    prims = []
    for rule in program.rules:
        if rule.trigger is not None:
            prims.append(rule.trigger)
        prims.extend(rule.queries)
        prims.extend(a for a in rule.actions if not a.selector.is_builtin)
    for prim in reversed(prims):
        if not prim.selector.is_remote and "." in prim.kind:
            return prim.kind
    return None


def rule_payload(rule: PermissionRule) -> str:
    return json.dumps({"permission_rule": permission_rule_to_json(rule)})


def check_permission_rule(
    dlg: Dialogue,
    principal: str,
    program: Program,
    rule: PermissionRule,
) -> bool:
    """Persist ``rule`` and check that it actually covers ``program``."""
    description = describe_permission_rule(rule)
    dlg.reply(f"Ok, I'll remember that {description}")

    store = dlg.platform.permissions
    store.add_permission(rule, description)
    allowed = store.check_is_allowed(principal, program)
    if not allowed:
        logger.warning(f"Granted rule does not cover the program from {principal}: {description}")
    return allowed


async def permission_grant(
    dlg: Dialogue,
    program: Program,
    principal: str,
    identity: str,
) -> bool:
    """Ask the user whether ``principal`` may run ``program``.

    Raises:
        Cancelled: the user said "never mind"; nothing was persisted.
    """
    contact_name = get_identity_name(dlg.platform.contacts, identity)
    description = describe_program(program)
    dlg.icon = compute_icon(program)

    try:
        rule = convert_to_permission_rule(principal, contact_name, program)
    except UnrepresentableProgram:
        return await dlg.ask(ValueCategory.YES_NO, f"{contact_name} wants to {description}")

    logger.debug(f"Converted into permission rule: {rule}")
    anybody_rule = rule.with_principal(None)
    empty_rule = rule.with_empty_filters()

    dlg.reply(f"{contact_name} wants to {description}")
    while True:
        dlg.reply_button("Yes this time", special_payload("yes"))
        dlg.reply_button("Always from anybody", rule_payload(anybody_rule))
        dlg.reply_button(f"Always from {contact_name}", rule_payload(rule))
        dlg.reply_button("No", special_payload("no"))
        dlg.reply_button("Maybe", special_payload("maybe"))

        answer = await dlg.expect(ValueCategory.PERMISSION_RESPONSE)
        if isinstance(answer, YesIntent):
            return True
        if isinstance(answer, PermissionRuleIntent):
            return check_permission_rule(dlg, principal, program, answer.rule)
        if isinstance(answer, MaybeIntent):
            new_rule = await add_filter(dlg, empty_rule)
            if new_rule is None:
                continue
            return check_permission_rule(dlg, principal, program, new_rule)
        return False
