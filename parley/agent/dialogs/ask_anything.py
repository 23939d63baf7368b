"""Questions asked by a running app."""

from __future__ import annotations

from parley.agent.dialogue import Dialogue
from parley.agent.dialogs.slot_filling import slot_fill_single
from parley.program.ast import Value
from parley.program.types import Type


async def ask_anything(
    dlg: Dialogue,
    app_id: str | None,
    icon: str | None,
    value_type: Type,
    question: str,
) -> Value:
    dlg.icon = icon
    app = dlg.platform.apps.get_app(app_id) if app_id is not None else None
    if app is not None:
        question = f"Question from {app.name}: {question}"
    return await slot_fill_single(dlg, value_type, question)
