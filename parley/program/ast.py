"""Program model: values, predicates, invocations and permission rules.

Everything here is immutable. Code that needs a variant of a rule builds a
new one with the ``with_*`` constructors instead of editing in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from parley.program.types import (
    ANY,
    BOOLEAN,
    DATE,
    NUMBER,
    STRING,
    ArrayType,
    EntityType,
    EnumType,
    MeasureType,
    Type,
)


# ── Values ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Value:
    """Base class for all values."""

    @property
    def is_undefined(self) -> bool:
        return isinstance(self, UndefinedValue)

    @property
    def is_var_ref(self) -> bool:
        return isinstance(self, VarRefValue)

    @property
    def is_constant(self) -> bool:
        return not isinstance(self, (UndefinedValue, VarRefValue, EventValue))

    def get_type(self) -> Type:
        return ANY

    def to_python(self) -> Any:
        return None


@dataclass(frozen=True)
class UndefinedValue(Value):
    """A slot that still needs a value from the user."""

    local: bool = True


@dataclass(frozen=True)
class VarRefValue(Value):
    """Reference to an output of an earlier primitive, or a cross-device placeholder."""

    name: str


@dataclass(frozen=True)
class EventValue(Value):
    """The textual description of the result of the previous primitive."""


@dataclass(frozen=True)
class StringValue(Value):
    value: str

    def get_type(self) -> Type:
        return STRING

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class NumberValue(Value):
    value: float

    def get_type(self) -> Type:
        return NUMBER

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class MeasureValue(Value):
    value: float
    unit: str

    def get_type(self) -> Type:
        return MeasureType(self.unit)

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class BooleanValue(Value):
    value: bool

    def get_type(self) -> Type:
        return BOOLEAN

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class EntityValue(Value):
    value: str
    entity_type: str
    display: str | None = None

    def get_type(self) -> Type:
        return EntityType(self.entity_type)

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class DateValue(Value):
    value: datetime

    def get_type(self) -> Type:
        return DATE

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class EnumValue(Value):
    value: str

    def get_type(self) -> Type:
        return EnumType((self.value,))

    def to_python(self) -> Any:
        return self.value


@dataclass(frozen=True)
class ArrayValue(Value):
    values: tuple[Value, ...] = ()

    def get_type(self) -> Type:
        if self.values:
            return ArrayType(self.values[0].get_type())
        return ArrayType(ANY)

    def to_python(self) -> Any:
        return [v.to_python() for v in self.values]


UNDEFINED = UndefinedValue()


# ── Predicates ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Filter:
    """A single comparison ``name operator value``."""

    name: str
    operator: str
    value: Value


@dataclass(frozen=True)
class BooleanExpression:
    """Base class of the predicate tree."""

    @property
    def is_true(self) -> bool:
        return isinstance(self, TrueExpression)

    @property
    def is_false(self) -> bool:
        return isinstance(self, FalseExpression)


@dataclass(frozen=True)
class TrueExpression(BooleanExpression):
    pass


@dataclass(frozen=True)
class FalseExpression(BooleanExpression):
    pass


@dataclass(frozen=True)
class AndExpression(BooleanExpression):
    operands: tuple[BooleanExpression, ...]


@dataclass(frozen=True)
class OrExpression(BooleanExpression):
    operands: tuple[BooleanExpression, ...]


@dataclass(frozen=True)
class NotExpression(BooleanExpression):
    expr: BooleanExpression


@dataclass(frozen=True)
class AtomExpression(BooleanExpression):
    filter: Filter


TRUE = TrueExpression()
FALSE = FalseExpression()


def And(*operands: BooleanExpression) -> AndExpression:
    return AndExpression(tuple(operands))


def Or(*operands: BooleanExpression) -> OrExpression:
    return OrExpression(tuple(operands))


def Atom(name: str, operator: str, value: Value) -> AtomExpression:
    return AtomExpression(Filter(name, operator, value))


# ── Schemas and invocations ─────────────────────────────────────────


IN_REQ = "in_req"
IN_OPT = "in_opt"
OUT = "out"


@dataclass(frozen=True)
class ArgumentDef:
    name: str
    type: Type
    direction: str = IN_REQ
    canonical: str = ""


@dataclass(frozen=True)
class FunctionSchema:
    """Signature and natural-language templates of one device function.

    ``confirmation`` may reference arguments as ``$name``.
    """

    args: tuple[ArgumentDef, ...] = ()
    canonical: str = ""
    confirmation: str = ""

    def _by_direction(self, direction: str) -> dict[str, Type]:
        return {a.name: a.type for a in self.args if a.direction == direction}

    @property
    def in_req(self) -> dict[str, Type]:
        return self._by_direction(IN_REQ)

    @property
    def in_opt(self) -> dict[str, Type]:
        return self._by_direction(IN_OPT)

    @property
    def out(self) -> dict[str, Type]:
        return self._by_direction(OUT)

    def get_type(self, name: str) -> Type | None:
        for arg in self.args:
            if arg.name == name:
                return arg.type
        return None

    def argcanonical(self, name: str) -> str:
        for arg in self.args:
            if arg.name == name:
                return arg.canonical or name
        return name


BUILTIN_KIND = "org.thingpedia.builtin.thingengine.builtin"
REMOTE_KIND = "org.thingpedia.builtin.thingengine.remote"


@dataclass(frozen=True)
class Selector:
    kind: str
    id: str | None = None
    principal: str | None = None

    @property
    def is_builtin(self) -> bool:
        return self.kind == BUILTIN_KIND

    @property
    def is_remote(self) -> bool:
        return self.kind in ("remote", REMOTE_KIND) or self.kind.startswith("__dyn_")


@dataclass(frozen=True)
class InputParam:
    name: str
    value: Value


@dataclass(frozen=True)
class OutputParam:
    """Binds the output argument ``value`` of a primitive to variable ``name``."""

    name: str
    value: str


@dataclass(frozen=True)
class Invocation:
    """One primitive (trigger, query or action) bound to a device function."""

    selector: Selector
    channel: str
    in_params: tuple[InputParam, ...] = ()
    filter: BooleanExpression = TRUE
    out_params: tuple[OutputParam, ...] = ()
    schema: FunctionSchema = field(default_factory=FunctionSchema)

    @property
    def kind(self) -> str:
        return self.selector.kind

    @property
    def is_remote_receive(self) -> bool:
        return self.selector.is_remote and self.channel == "receive"

    @property
    def is_remote_send(self) -> bool:
        return self.selector.is_remote and self.channel == "send"

    def with_in_param(self, name: str, value: Value) -> Invocation:
        params = tuple(
            InputParam(p.name, value) if p.name == name else p for p in self.in_params
        )
        return replace(self, in_params=params)


@dataclass(frozen=True)
class Rule:
    trigger: Invocation | None = None
    queries: tuple[Invocation, ...] = ()
    actions: tuple[Invocation, ...] = ()

    @property
    def primitives(self) -> list[Invocation]:
        prims: list[Invocation] = []
        if self.trigger is not None:
            prims.append(self.trigger)
        prims.extend(self.queries)
        prims.extend(self.actions)
        return prims


@dataclass(frozen=True)
class Program:
    rules: tuple[Rule, ...] = ()
    name: str = ""

    @property
    def primitives(self) -> list[Invocation]:
        return [p for r in self.rules for p in r.primitives]


def notify_action() -> Invocation:
    """The builtin action that shows results to the local user."""
    return Invocation(
        selector=Selector(BUILTIN_KIND),
        channel="notify",
        schema=FunctionSchema(canonical="notify", confirmation="notify you"),
    )


# ── Permission rules ────────────────────────────────────────────────


SLOTS = ("trigger", "query", "action")


@dataclass(frozen=True)
class PermissionFunction:
    """Base class for one slot of a permission rule."""

    @property
    def is_specified(self) -> bool:
        return isinstance(self, SpecifiedFunction)


@dataclass(frozen=True)
class UnconstrainedFunction(PermissionFunction):
    """A slot with no device function in it."""


@dataclass(frozen=True)
class SpecifiedFunction(PermissionFunction):
    kind: str
    channel: str
    filter: BooleanExpression = TRUE
    out_params: tuple[OutputParam, ...] = ()
    schema: FunctionSchema = field(default_factory=FunctionSchema)


UNCONSTRAINED = UnconstrainedFunction()


@dataclass(frozen=True)
class PermissionRule:
    """Which principal may run which primitives, under which filters.

    ``principal`` is None for "anyone".
    """

    principal: EntityValue | None
    trigger: PermissionFunction = UNCONSTRAINED
    query: PermissionFunction = UNCONSTRAINED
    action: PermissionFunction = UNCONSTRAINED

    def function(self, slot: str) -> PermissionFunction:
        if slot not in SLOTS:
            raise KeyError(slot)
        return getattr(self, slot)

    def with_principal(self, principal: EntityValue | None) -> PermissionRule:
        return replace(self, principal=principal)

    def with_function(self, slot: str, fn: PermissionFunction) -> PermissionRule:
        if slot not in SLOTS:
            raise KeyError(slot)
        return replace(self, **{slot: fn})

    def with_filter(self, slot: str, expr: BooleanExpression) -> PermissionRule:
        fn = self.function(slot)
        if not isinstance(fn, SpecifiedFunction):
            raise ValueError(f"Cannot filter unconstrained {slot}")
        return self.with_function(slot, replace(fn, filter=expr))

    def with_empty_filters(self) -> PermissionRule:
        rule = self
        for slot in SLOTS:
            if self.function(slot).is_specified:
                rule = rule.with_filter(slot, TRUE)
        return rule
