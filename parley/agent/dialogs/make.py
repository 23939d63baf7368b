"""Step by step builder: pick a trigger, a query and an action, then run."""

from __future__ import annotations

from parley.agent.dialogue import Dialogue
from parley.agent.dialogs.rule import rule_dialog
from parley.agent.intent import MakeIntent, ProgramIntent, ValueCategory
from parley.platform.base import App
from parley.program.ast import Invocation, Program, Rule, StringValue, notify_action
from parley.program.describe import describe_primitive

_PARTS = (("trigger", "When"), ("query", "Get"), ("action", "Do"))


async def make_dialog(dlg: Dialogue, intent: MakeIntent) -> App | None:
    parts: dict[str, Invocation | None] = {"trigger": None, "query": None, "action": None}

    while True:
        choices = []
        for slot, label in _PARTS:
            prim = parts[slot]
            if prim is not None:
                choices.append(f"{label}: {describe_primitive(prim, {})}")
            elif slot == "action":
                choices.append(f"{label}: notify you")
            else:
                choices.append(label)
        choices += ["Run it", "Back"]

        choice = await dlg.ask_choices(
            "Add more commands and filters or run your command if you are ready.", choices
        )
        if choice == len(choices) - 1:
            return None
        if choice == len(choices) - 2:
            if all(p is None for p in parts.values()):
                dlg.reply("You need to pick at least one command first.")
                continue
            break

        slot = _PARTS[choice][0]
        text = await dlg.ask(ValueCategory.RAW_STRING, "Type the command for this part.")
        if not isinstance(text, StringValue):
            raise TypeError(f"Expected a command string, got {text!r}")
        prim = dlg.platform.parser.parse_primitive(text.value, slot)
        if prim is None:
            dlg.fail()
            continue
        parts[slot] = prim

    queries = (parts["query"],) if parts["query"] is not None else ()
    action = parts["action"] or notify_action()
    program = Program((Rule(trigger=parts["trigger"], queries=queries, actions=(action,)),))
    return await rule_dialog(dlg, ProgramIntent(program))
