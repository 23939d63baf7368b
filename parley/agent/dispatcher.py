"""Routing of a parsed user command to its sub-dialog."""

from __future__ import annotations

from typing import Any

from parley.agent.dialogue import Dialogue
from parley.agent.dialogs.fallback import fallback
from parley.agent.dialogs.help import help_dialog
from parley.agent.dialogs.make import make_dialog
from parley.agent.dialogs.permission_rule import permission_rule_dialog
from parley.agent.dialogs.rule import rule_dialog
from parley.agent.dialogs.setup import setup_dialog
from parley.agent.intent import (
    FailedIntent,
    FallbackIntent,
    HelpIntent,
    Intent,
    MakeIntent,
    NoIntent,
    PermissionRuleIntent,
    PrimitiveIntent,
    ProgramIntent,
    SetupIntent,
    TrainIntent,
    YesIntent,
)


async def handle_user_input(dlg: Dialogue, intent: Intent) -> Any:
    """Run the sub-dialog for ``intent`` and return its result."""
    stats = dlg.platform.stats

    if isinstance(intent, (FailedIntent, FallbackIntent, TrainIntent)):
        return await fallback(dlg, intent)
    elif isinstance(intent, YesIntent):
        stats.hit("command-egg")
        dlg.reply("I agree, but to what?")
    elif isinstance(intent, NoIntent):
        stats.hit("command-egg")
        dlg.reply("No way!")
    elif isinstance(intent, (ProgramIntent, PrimitiveIntent)):
        stats.hit("command-rule")
        return await rule_dialog(dlg, intent)
    elif isinstance(intent, HelpIntent):
        stats.hit("command-help")
        return await help_dialog(dlg, intent)
    elif isinstance(intent, MakeIntent):
        stats.hit("command-make")
        return await make_dialog(dlg, intent)
    elif isinstance(intent, SetupIntent):
        stats.hit("command-setup")
        return await setup_dialog(dlg, intent)
    elif isinstance(intent, PermissionRuleIntent):
        stats.hit("command-permissionrule")
        return await permission_rule_dialog(dlg, intent)
    else:
        dlg.fail()
    return None
