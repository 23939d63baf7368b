"""A permission rule typed by the local user directly."""

from __future__ import annotations

from parley.agent.dialogue import Dialogue
from parley.agent.intent import PermissionRuleIntent, ValueCategory
from parley.program.describe import describe_permission_rule


async def permission_rule_dialog(dlg: Dialogue, intent: PermissionRuleIntent) -> bool:
    description = describe_permission_rule(intent.rule)
    ok = await dlg.ask(ValueCategory.YES_NO, f"Ok, so {description}. Is that right?")
    if not ok:
        dlg.reply("Ok, I'll cancel the command.")
        return False

    dlg.platform.permissions.add_permission(intent.rule, description)
    dlg.reply("Consider it done.")
    return True
