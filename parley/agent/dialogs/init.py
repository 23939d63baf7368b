"""First turn of a conversation."""

from parley.agent.dialogue import Dialogue


async def init_dialog(dlg: Dialogue, show_welcome: bool, assistant_name: str) -> None:
    if not show_welcome:
        return
    dlg.reply(f"Hello! I'm {assistant_name}, your virtual assistant.")
    dlg.reply("You can ask me for help at any time, or say \"never mind\" to stop what I'm doing.")
