"""What to do with a command the parser could not make sense of."""

from __future__ import annotations

from parley.agent.dialogue import Dialogue
from parley.agent.intent import Intent, ProgramIntent, TrainIntent
from parley.program.describe import describe_program


def _describe_choice(intent: Intent) -> str:
    if isinstance(intent, ProgramIntent):
        return describe_program(intent.program)
    return type(intent).__name__.removesuffix("Intent").lower()


async def fallback(dlg: Dialogue, intent: Intent) -> None:
    """Apologize, or for a training request, learn which parse was meant."""
    if not isinstance(intent, TrainIntent) or not intent.command:
        dlg.fail()
        return

    if not intent.fallbacks:
        dlg.reply(f"Sorry, I don't know what \"{intent.command}\" should do yet.")
        return

    choices = [_describe_choice(f) for f in intent.fallbacks] + ["None of the above"]
    choice = await dlg.ask_choices(f"Did you mean any of the following for \"{intent.command}\"?", choices)
    if choice == len(choices) - 1:
        dlg.reply("Ok, I'll try to do better next time.")
        return

    if dlg.platform.parser.learn(intent.command, intent.fallbacks[choice]):
        dlg.reply("Thanks, I made a note of that.")
    else:
        dlg.reply("Sorry, I cannot learn new commands right now.")
