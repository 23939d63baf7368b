"""Ask the user for a single value of a given type."""

from loguru import logger

from parley.agent.dialogue import Dialogue
from parley.agent.intent import ValueCategory, category_for_type
from parley.program.ast import (
    BooleanValue,
    EnumValue,
    MeasureValue,
    StringValue,
    Value,
)
from parley.program.types import EnumType, MeasureType, Type


async def slot_fill_single(dlg: Dialogue, type_: Type, question: str) -> Value:
    """Keep asking ``question`` until an answer of ``type_`` comes back."""
    category = category_for_type(type_)
    while True:
        answer = await dlg.ask(category, question)
        if category == ValueCategory.YES_NO:
            return BooleanValue(bool(answer))

        if isinstance(type_, MeasureType):
            if isinstance(answer, MeasureValue) and answer.unit != type_.unit:
                dlg.reply(f"Sorry, I need a value in {type_.unit}.")
                continue
            return answer

        if isinstance(type_, EnumType) and isinstance(answer, StringValue):
            if answer.value not in type_.entries:
                dlg.reply(f"Please pick one of: {', '.join(type_.entries)}.")
                continue
            return EnumValue(answer.value)

        logger.debug(f"Filled {type_} slot with {answer!r}")
        return answer
