"""
Interactive refinement of a permission rule.

Starting from a rule whose filters are all TRUE, the user picks a slot
(When / Get / Do), picks one of the filter candidates for it, fills in a
value and the predicate is ANDed into the slot's filter. The loop ends
when the user picks Done (keep the rule) or Back, in either menu (drop it).
"""

from __future__ import annotations

from dataclasses import replace

from loguru import logger

from parley.agent.dialogue import Dialogue
from parley.agent.dialogs.slot_filling import slot_fill_single
from parley.agent.intent import (
    BackIntent,
    FilterIntent,
    PermissionRuleIntent,
    PredicateIntent,
    ValueCategory,
    filter_button_payload,
    special_payload,
)
from parley.program.ast import (
    SLOTS,
    UNDEFINED,
    AndExpression,
    AtomExpression,
    BooleanExpression,
    Filter,
    FunctionSchema,
    PermissionFunction,
    PermissionRule,
    SpecifiedFunction,
)
from parley.program.describe import (
    OPERATOR_PHRASES,
    describe_filter,
    describe_permission_function,
)
from parley.program.optimize import optimize_filter
from parley.program.types import ArrayType, Type

STRING_OPERATORS = ("=", "!=", "=~")
# numeric arguments get no "!=" candidate
NUMERIC_OPERATORS = ("=", "<", ">", ">=", "<=")
ARRAY_OPERATORS = ("contains",)
DEFAULT_OPERATORS = ("=", "!=")

SLOT_LABELS = {
    "trigger": "When: {}",
    "query": "Get: {}",
    "action": "Do: {}",
}


def candidate_operators(type_: Type) -> tuple[str, ...]:
    if type_.is_string:
        return STRING_OPERATORS
    if type_.is_numeric:
        return NUMERIC_OPERATORS
    if type_.is_array:
        return ARRAY_OPERATORS
    return DEFAULT_OPERATORS


def make_filter_candidates(fn: PermissionFunction) -> list[Filter]:
    """Unvalued filters the user may add to ``fn``, required inputs first, then outputs."""
    if not isinstance(fn, SpecifiedFunction):
        return []
    candidates = []
    for args in (fn.schema.in_req, fn.schema.out):
        for name, type_ in args.items():
            for op in candidate_operators(type_):
                candidates.append(Filter(name, op, UNDEFINED))
    return candidates


def filter_value_type(schema: FunctionSchema, filter: Filter) -> Type | None:
    """Type of the value a filter compares against; the element type for ``contains``."""
    ptype = schema.get_type(filter.name)
    if ptype is not None and filter.operator == "contains" and isinstance(ptype, ArrayType):
        return ptype.elem
    return ptype


async def add_filter(dlg: Dialogue, rule: PermissionRule) -> PermissionRule | None:
    """Run the refinement loop. Returns the refined rule, or None when the user goes back."""
    while True:
        candidates = {slot: make_filter_candidates(rule.function(slot)) for slot in SLOTS}
        scope: dict[str, str] = {}
        descriptions = {
            slot: describe_permission_function(rule.function(slot), scope) for slot in SLOTS
        }

        slots = [slot for slot in SLOTS if candidates[slot]]
        choices = [SLOT_LABELS[slot].format(descriptions[slot]) for slot in slots]
        choices += ["Done", "Back"]

        choice = await dlg.ask_choices("Pick the part you want to add restrictions to:", choices)
        if choice == len(choices) - 2:
            return rule
        if choice == len(choices) - 1:
            return None

        slot = slots[choice]
        fn = rule.function(slot)
        if not isinstance(fn, SpecifiedFunction):
            raise TypeError(f"Slot {slot} has no function to restrict")
        schema = fn.schema

        dlg.reply("Pick the filter you want to add:")
        for candidate in candidates[slot]:
            vtype = filter_value_type(schema, candidate)
            dlg.reply_button(
                describe_filter(schema, candidate),
                filter_button_payload(candidate, vtype),
            )
        dlg.reply_button("Back", special_payload("back"))

        response = await dlg.expect(ValueCategory.PERMISSION_RESPONSE)
        if isinstance(response, BackIntent):
            return None
        if isinstance(response, PermissionRuleIntent):
            return response.rule

        predicate: BooleanExpression
        if isinstance(response, FilterIntent):
            filter = response.filter
            vtype = filter_value_type(schema, filter)
            if vtype is None or filter.operator not in OPERATOR_PHRASES:
                logger.warning(f"Rejected filter {filter} for {fn.kind}.{fn.channel}")
                dlg.fail()
                continue
            if filter.value.is_undefined:
                value = await slot_fill_single(dlg, vtype, "What's the value of this filter?")
                filter = replace(filter, value=value)
            predicate = AtomExpression(filter)
        elif isinstance(response, PredicateIntent):
            predicate = response.predicate
        else:
            dlg.unexpected()
            continue

        rule = rule.with_filter(slot, optimize_filter(AndExpression((fn.filter, predicate))))
