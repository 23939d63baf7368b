"""Program model used by the conversation core."""

from parley.program.ast import (
    FALSE,
    TRUE,
    UNCONSTRAINED,
    UNDEFINED,
    And,
    Atom,
    Filter,
    FunctionSchema,
    Invocation,
    Or,
    PermissionRule,
    Program,
    Rule,
    SpecifiedFunction,
)
from parley.program.describe import describe_permission_rule, describe_program
from parley.program.optimize import optimize_filter
from parley.program.types import Type

__all__ = [
    "FALSE",
    "TRUE",
    "UNCONSTRAINED",
    "UNDEFINED",
    "And",
    "Atom",
    "Filter",
    "FunctionSchema",
    "Invocation",
    "Or",
    "PermissionRule",
    "Program",
    "Rule",
    "SpecifiedFunction",
    "Type",
    "describe_permission_rule",
    "describe_program",
    "optimize_filter",
]
