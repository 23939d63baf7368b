"""Help: what can be put in each part of a command."""

from __future__ import annotations

from parley.agent.dialogue import Dialogue
from parley.agent.intent import HelpIntent

PARTS = ("When", "Get", "Do")

EXAMPLES = {
    "When": [
        "when it starts raining",
        "when I receive an email",
        "when someone I follow tweets",
    ],
    "Get": [
        "get the weather",
        "get an xkcd comic",
        "get my latest emails",
    ],
    "Do": [
        "post on twitter",
        "send a message to mom",
        "turn on the lights",
    ],
}


async def help_dialog(dlg: Dialogue, intent: HelpIntent) -> None:
    if intent.category_name:
        dlg.reply(f"I don't have examples for {intent.category_name} yet. Here is what you can build:")

    choice = await dlg.ask_choices(
        "Click on one of the following buttons to start adding command.", list(PARTS)
    )
    part = PARTS[choice]
    dlg.reply(f"{part}: you can say things like")
    for example in EXAMPLES[part]:
        dlg.reply(example)
