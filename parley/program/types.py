"""Value types of the program model.

Types are small immutable objects compared by value. ``Type.from_string``
accepts the same spelling ``str(type)`` produces, e.g. ``Measure(C)``,
``Array(String)`` or ``Entity(tt:email_address)``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from parley.errors import ParseError


@dataclass(frozen=True)
class Type:
    """Base class for all types."""

    @property
    def is_string(self) -> bool:
        return isinstance(self, StringType)

    @property
    def is_numeric(self) -> bool:
        return isinstance(self, (NumberType, MeasureType))

    @property
    def is_array(self) -> bool:
        return isinstance(self, ArrayType)

    @property
    def is_measure(self) -> bool:
        return isinstance(self, MeasureType)

    @staticmethod
    def from_string(text: str) -> Type:
        """Parse a type spelled the way ``str()`` renders it."""
        text = (text or "").strip()
        simple = {
            "String": STRING,
            "Number": NUMBER,
            "Boolean": BOOLEAN,
            "Bool": BOOLEAN,
            "Date": DATE,
            "Any": ANY,
        }
        if text in simple:
            return simple[text]

        match = re.fullmatch(r"(\w+)\((.*)\)", text)
        if not match:
            raise ParseError(f"Invalid type {text!r}")
        head, arg = match.group(1), match.group(2).strip()
        if head == "Measure":
            return MeasureType(arg)
        if head == "Array":
            return ArrayType(Type.from_string(arg))
        if head == "Entity":
            return EntityType(arg)
        if head == "Enum":
            return EnumType(tuple(e.strip() for e in arg.split(",") if e.strip()))
        raise ParseError(f"Invalid type {text!r}")


@dataclass(frozen=True)
class StringType(Type):
    def __str__(self) -> str:
        return "String"


@dataclass(frozen=True)
class NumberType(Type):
    def __str__(self) -> str:
        return "Number"


@dataclass(frozen=True)
class BooleanType(Type):
    def __str__(self) -> str:
        return "Boolean"


@dataclass(frozen=True)
class DateType(Type):
    def __str__(self) -> str:
        return "Date"


@dataclass(frozen=True)
class AnyType(Type):
    def __str__(self) -> str:
        return "Any"


@dataclass(frozen=True)
class MeasureType(Type):
    unit: str

    def __str__(self) -> str:
        return f"Measure({self.unit})"


@dataclass(frozen=True)
class ArrayType(Type):
    elem: Type

    def __str__(self) -> str:
        return f"Array({self.elem})"


@dataclass(frozen=True)
class EntityType(Type):
    kind: str  # e.g. tt:email_address, tt:contact

    def __str__(self) -> str:
        return f"Entity({self.kind})"


@dataclass(frozen=True)
class EnumType(Type):
    entries: tuple[str, ...]

    def __str__(self) -> str:
        return f"Enum({','.join(self.entries)})"


STRING = StringType()
NUMBER = NumberType()
BOOLEAN = BooleanType()
DATE = DateType()
ANY = AnyType()
