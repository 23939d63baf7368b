"""Asking another person to run a program on their side."""

from __future__ import annotations

from parley.agent.dialogue import Dialogue
from parley.agent.intent import SetupIntent, ValueCategory
from parley.program.describe import describe_program


async def setup_dialog(dlg: Dialogue, intent: SetupIntent) -> bool:
    messaging = dlg.platform.messaging
    if messaging is None:
        dlg.reply("Sorry, I cannot reach other people from here.")
        return False

    name = dlg.platform.contacts.lookup_display_name(intent.person) or intent.person
    description = describe_program(intent.program)
    ok = await dlg.ask(
        ValueCategory.YES_NO, f"Ok, so you want me to ask {name} to {description}. Is that right?"
    )
    if not ok:
        dlg.reply("Ok, I'll cancel the command.")
        return False

    dlg.reply(f"Sending rule to {name}: {description}")
    messaging.install_program(intent.person, intent.program)
    dlg.reply("Consider it done.")
    return True
