"""Predicate simplification."""

from parley.program.ast import (
    FALSE,
    TRUE,
    AndExpression,
    AtomExpression,
    BooleanExpression,
    NotExpression,
    OrExpression,
)


def optimize_filter(expr: BooleanExpression) -> BooleanExpression:
    """Collapse redundant branches of a predicate tree.

    Nested And/Or nodes are flattened, TRUE drops out of And and FALSE out
    of Or, a short-circuiting constant absorbs its node, duplicate operands
    are removed and single-operand nodes are unwrapped.
    """
    if isinstance(expr, AtomExpression) or expr.is_true or expr.is_false:
        return expr

    if isinstance(expr, NotExpression):
        inner = optimize_filter(expr.expr)
        if inner.is_true:
            return FALSE
        if inner.is_false:
            return TRUE
        if isinstance(inner, NotExpression):
            return inner.expr
        return NotExpression(inner)

    if isinstance(expr, AndExpression):
        absorbing, neutral, node = FALSE, TRUE, AndExpression
    elif isinstance(expr, OrExpression):
        absorbing, neutral, node = TRUE, FALSE, OrExpression
    else:
        raise TypeError(f"Unexpected boolean expression {expr!r}")

    operands: list[BooleanExpression] = []
    for operand in expr.operands:
        operand = optimize_filter(operand)
        if operand == absorbing:
            return absorbing
        if operand == neutral:
            continue
        if isinstance(operand, node):
            candidates = operand.operands
        else:
            candidates = (operand,)
        for candidate in candidates:
            if candidate not in operands:
                operands.append(candidate)

    if not operands:
        return neutral
    if len(operands) == 1:
        return operands[0]
    return node(tuple(operands))
