"""Confirming and installing a program the local user asked for."""

from __future__ import annotations

from loguru import logger

from parley.agent.dialogue import Dialogue
from parley.agent.dialogs.slot_filling import slot_fill_single
from parley.agent.intent import PrimitiveIntent, ProgramIntent, ValueCategory
from parley.platform.base import App
from parley.program.ast import Invocation, Program, Rule, notify_action
from parley.program.describe import describe_program
from parley.program.types import ANY


def program_from_primitive(primitive_type: str, prim: Invocation) -> Program:
    """Wrap a single trigger, query or action into a runnable program."""
    if primitive_type == "trigger":
        return Program((Rule(trigger=prim, actions=(notify_action(),)),))
    if primitive_type == "query":
        return Program((Rule(queries=(prim,), actions=(notify_action(),)),))
    return Program((Rule(actions=(prim,)),))


async def _fill_invocation(dlg: Dialogue, prim: Invocation) -> Invocation:
    for param in prim.in_params:
        if not param.value.is_undefined:
            continue
        type_ = prim.schema.get_type(param.name) or ANY
        question = f"What's the value of {prim.schema.argcanonical(param.name)}?"
        value = await slot_fill_single(dlg, type_, question)
        prim = prim.with_in_param(param.name, value)
    return prim


async def _fill_rule(dlg: Dialogue, rule: Rule) -> Rule:
    trigger = await _fill_invocation(dlg, rule.trigger) if rule.trigger is not None else None
    queries = tuple([await _fill_invocation(dlg, q) for q in rule.queries])
    actions = tuple([await _fill_invocation(dlg, a) for a in rule.actions])
    return Rule(trigger=trigger, queries=queries, actions=actions)


async def rule_dialog(
    dlg: Dialogue,
    intent: ProgramIntent | PrimitiveIntent,
    confirmed: bool = False,
    unique_id: str | None = None,
) -> App | None:
    """
    Fill in missing values, confirm and hand the program to the app registry.

    Args:
        dlg: The conversation.
        intent: The program, or a single primitive to wrap into one.
        confirmed: Skip the yes/no confirmation (programs submitted directly).
        unique_id: Id to install the app under.

    Returns:
        The created app, or None if the user declined.
    """
    if isinstance(intent, PrimitiveIntent):
        program = program_from_primitive(intent.primitive_type, intent.primitive)
    else:
        program = intent.program

    rules = tuple([await _fill_rule(dlg, r) for r in program.rules])
    program = Program(rules, program.name)
    description = describe_program(program)

    if not confirmed:
        ok = await dlg.ask(ValueCategory.YES_NO, f"Ok, so you want me to {description}. Is that right?")
        if not ok:
            dlg.reply("Ok, I'll cancel the command.")
            return None

    app = dlg.platform.apps.create_app(program, program.name or description, unique_id)
    logger.info(f"Installed program as {app.app_id}")
    dlg.reply("Consider it done.")
    return app
