"""Permission policy store.

Rules live in memory and, when a path is configured, are appended to a
JSONL file so grants survive restarts. A granted rule is never edited.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from loguru import logger

from parley.errors import ParseError, UnrepresentableProgram
from parley.permissions.convert import split_rule
from parley.platform.base import PolicyStore
from parley.program.ast import (
    AndExpression,
    ArrayValue,
    AtomExpression,
    BooleanExpression,
    Filter,
    Invocation,
    NotExpression,
    OrExpression,
    PermissionFunction,
    PermissionRule,
    Program,
    SpecifiedFunction,
    Value,
)
from parley.program.serialization import permission_rule_from_json, permission_rule_to_json


@dataclass
class StoredPermission:
    rule: PermissionRule
    description: str
    created_at: datetime = field(default_factory=datetime.now)


def _compare(actual: Value, operator: str, expected: Value) -> bool | None:
    """Evaluate ``actual operator expected``; None when it cannot be decided now."""
    if not actual.is_constant or not expected.is_constant:
        return None
    a, b = actual.to_python(), expected.to_python()
    if operator == "=":
        return a == b
    if operator == "!=":
        return a != b
    if operator in ("=~", "substr"):
        return isinstance(a, str) and isinstance(b, str) and b.lower() in a.lower()
    if operator == "contains":
        return isinstance(actual, ArrayValue) and expected in actual.values
    if operator in ("in_array", "~="):
        return isinstance(expected, ArrayValue) and actual in expected.values
    if type(actual) is not type(expected):
        return None
    try:
        if operator == "<":
            return a < b
        if operator == ">":
            return a > b
        if operator == "<=":
            return a <= b
        if operator == ">=":
            return a >= b
    except TypeError:
        return None
    return None


def evaluate_filter(expr: BooleanExpression, prim: Invocation) -> bool | None:
    """Evaluate a permission filter against the constant inputs of ``prim``.

    Atoms over outputs, placeholders or absent inputs can only be checked
    when the program runs, so they evaluate to None (undecided).
    """
    if expr.is_true:
        return True
    if expr.is_false:
        return False
    if isinstance(expr, AtomExpression):
        f: Filter = expr.filter
        for param in prim.in_params:
            if param.name == f.name:
                return _compare(param.value, f.operator, f.value)
        return None
    if isinstance(expr, NotExpression):
        inner = evaluate_filter(expr.expr, prim)
        return None if inner is None else not inner
    if isinstance(expr, AndExpression):
        results = [evaluate_filter(e, prim) for e in expr.operands]
        if any(r is False for r in results):
            return False
        return True if all(r is True for r in results) else None
    if isinstance(expr, OrExpression):
        results = [evaluate_filter(e, prim) for e in expr.operands]
        if any(r is True for r in results):
            return True
        return False if all(r is False for r in results) else None
    raise TypeError(f"Unexpected boolean expression {expr!r}")


def _function_matches(fn: PermissionFunction, prim: Invocation | None) -> bool:
    if not isinstance(fn, SpecifiedFunction):
        return prim is None
    if prim is None:
        return False
    if fn.kind != prim.kind or fn.channel != prim.channel:
        return False
    return evaluate_filter(fn.filter, prim) is not False


class MemoryPolicyStore(PolicyStore):
    """Policy store with optional JSONL persistence."""

    def __init__(self, path: Path | None = None):
        self._path = path
        self._permissions: list[StoredPermission] = []
        self._load()

    def _load(self) -> None:
        if not self._path:
            return
        path = self._path.expanduser()
        if not path.exists():
            return
        for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
            if not line.strip():
                continue
            try:
                obj = json.loads(line)
                self._permissions.append(
                    StoredPermission(
                        rule=permission_rule_from_json(obj["rule"]),
                        description=str(obj.get("description", "")),
                        created_at=datetime.fromisoformat(obj["created_at"])
                        if obj.get("created_at") else datetime.now(),
                    )
                )
            except (json.JSONDecodeError, KeyError, ValueError, ParseError) as e:
                logger.warning(f"Skipping malformed permission at {path}:{lineno}: {e}")
        logger.info(f"Loaded {len(self._permissions)} permission(s) from {path}")

    def _append(self, stored: StoredPermission) -> None:
        if not self._path:
            return
        path = self._path.expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        obj = {
            "rule": permission_rule_to_json(stored.rule),
            "description": stored.description,
            "created_at": stored.created_at.isoformat(),
        }
        with path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(obj) + "\n")

    @property
    def permissions(self) -> list[StoredPermission]:
        return list(self._permissions)

    def add_permission(self, rule: PermissionRule, description: str) -> None:
        stored = StoredPermission(rule=rule, description=description)
        self._permissions.append(stored)
        self._append(stored)
        logger.info(f"Added permission: {description}")

    def check_is_allowed(self, principal: str, program: Program) -> bool:
        if not program.rules:
            return False
        for rule in program.rules:
            try:
                slots = split_rule(rule)
            except UnrepresentableProgram:
                return False
            if not any(self._rule_allows(p.rule, principal, slots) for p in self._permissions):
                return False
        return True

    @staticmethod
    def _rule_allows(
        rule: PermissionRule,
        principal: str,
        slots: tuple[Invocation | None, Invocation | None, Invocation | None],
    ) -> bool:
        if rule.principal is not None and rule.principal.value != principal:
            return False
        trigger, query, action = slots
        return (
            _function_matches(rule.trigger, trigger)
            and _function_matches(rule.query, query)
            and _function_matches(rule.action, action)
        )
