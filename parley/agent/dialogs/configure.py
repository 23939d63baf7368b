"""Device configuration and discovery."""

from __future__ import annotations

from loguru import logger

from parley.agent.dialogue import Dialogue


async def configure_dialog(dlg: Dialogue, kind: str) -> str | None:
    devices = dlg.platform.devices
    if devices is None:
        dlg.reply("Sorry, I cannot configure devices from here.")
        return None

    dlg.icon = kind
    name = devices.configure(kind)
    logger.info(f"Configured {kind} as {name}")
    dlg.reply(f"{name} has been set up.")
    return name


async def discovery_dialog(dlg: Dialogue) -> str | None:
    """Offer the devices found nearby and configure the one the user picks."""
    devices = dlg.platform.devices
    if devices is None:
        dlg.reply("Sorry, I cannot configure devices from here.")
        return None

    kinds = devices.discover()
    if not kinds:
        dlg.reply("I could not find any device nearby.")
        return None

    choices = kinds + ["None of the above"]
    choice = await dlg.ask_choices("I found the following devices. Which one do you want to set up?", choices)
    if choice == len(kinds):
        return None
    return await configure_dialog(dlg, kinds[choice])
