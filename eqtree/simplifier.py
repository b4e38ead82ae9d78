"""
Algebraic simplification of expression trees.

``simplify_node`` performs one bottom-up pass of constant folding and
identity elimination and returns None when a sub-tree has nothing to
simplify. ``simplify`` repeats passes until the rendered text of the tree
stops changing.

Per-node rules:
    Sum       fold constants, flatten nested sums, drop a zero total,
              unwrap a single remaining term
    Multiply  fold constants into one coefficient (kept even when 1),
              flatten nested products, unwrap a single remaining factor
    Negate    -(-x) = x, -(c) folds, -(a + b) = -a + -b
    Divide    simplify both sides, fold c1/c2
    Equal     simplify both sides
"""

import logging
from typing import Optional

from .errors import IncompleteExpressionError
from .expression import (
    Divide, Equal, Expression, Mapping, Multiply, Negate, Sum, Text, Value,
    Variable,
)
from .members import divide_values, is_number, member_simplify
from .trace import RewriteStep, RewriteTrace, RuleMetadata

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 1000

_SYMBOLS = (Text, Mapping, Variable)

_PASS = RuleMetadata(name="simplify", description="one bottom-up simplification pass")


def _present(node: Expression, child: Optional[Expression]) -> Expression:
    if child is None:
        raise IncompleteExpressionError(f"cannot simplify a {node.kind} node "
                                        f"with a missing child")
    return child


# ============================================================
# Single pass
# ============================================================

def simplify_node(expr: Expression) -> Optional[Expression]:
    """
    Simplify one tree in a single bottom-up pass.

    Args:
        expr: Expression to simplify (not modified)

    Returns:
        A new, reduced expression, or None when nothing could be simplified.
        Values always come back as a copy of themselves; Text and Mapping
        leaves return None.
    """
    if isinstance(expr, Sum):
        return _simplify_sum(expr)
    if isinstance(expr, Multiply):
        return _simplify_multiply(expr)
    if isinstance(expr, Negate):
        return _simplify_negate(expr)
    if isinstance(expr, Divide):
        return _simplify_divide(expr)
    if isinstance(expr, Equal):
        return _simplify_equal(expr)
    if isinstance(expr, Value):
        return expr.clone()
    if isinstance(expr, Variable):
        reduced = member_simplify(expr.member)
        if reduced is not None and is_number(reduced):
            return Value(reduced)
        return reduced
    return None


def _simplify_sum(expr: Sum) -> Expression:
    total = 0.0
    terms = []
    for term in expr.terms:
        if isinstance(term, Value):
            total += term.value()
        elif isinstance(term, _SYMBOLS):
            terms.append(term.clone())
        elif isinstance(term, Sum):
            terms.extend(t.clone() for t in term.terms)
        else:
            reduced = simplify_node(term)
            if reduced is None:
                terms.append(term.clone())
            elif isinstance(reduced, Value):
                total += reduced.value()
            elif isinstance(reduced, Sum):
                terms.extend(reduced.terms)
            else:
                terms.append(reduced)

    if total != 0.0:
        terms.append(Value(total))
    if not terms:
        return Value(0.0)
    if len(terms) == 1:
        return terms[0]
    return Sum(terms)


def _simplify_multiply(expr: Multiply) -> Expression:
    coefficient = 1.0
    factors = []

    def absorb(factor: Expression):
        nonlocal coefficient
        if isinstance(factor, Value):
            coefficient *= factor.value()
        else:
            factors.append(factor)

    for factor in expr.terms:
        if isinstance(factor, Value):
            coefficient *= factor.value()
        elif isinstance(factor, _SYMBOLS):
            factors.append(factor.clone())
        else:
            reduced = simplify_node(factor)
            if reduced is None:
                factors.append(factor.clone())
            elif isinstance(reduced, Multiply):
                for inner in reduced.terms:
                    absorb(inner)
            else:
                absorb(reduced)

    factors.append(Value(coefficient))
    if len(factors) == 1:
        return factors[0]
    return Multiply(factors)


def _simplify_negate(expr: Negate) -> Optional[Expression]:
    child = _present(expr, expr.child)
    if isinstance(child, Negate):
        return _present(child, child.child).clone()
    if isinstance(child, Value):
        return Value(-child.value())
    if isinstance(child, Sum):
        return Sum([Negate(t.clone()) for t in child.terms])

    reduced = simplify_node(child)
    if reduced is None:
        return None
    if isinstance(reduced, Value):
        return Value(-reduced.value())
    if isinstance(reduced, Negate):
        return _present(reduced, reduced.child)
    return Negate(reduced)


def _simplify_divide(expr: Divide) -> Optional[Expression]:
    numerator = _present(expr, expr.numerator)
    denominator = _present(expr, expr.denominator)
    top = simplify_node(numerator)
    bottom = simplify_node(denominator)

    if isinstance(top, Value) and isinstance(bottom, Value):
        return Value(divide_values(top.value(), bottom.value()))
    if top is None and bottom is None:
        return None
    return Divide(
        numerator.clone() if top is None else top,
        denominator.clone() if bottom is None else bottom,
    )


def _simplify_equal(expr: Equal) -> Optional[Expression]:
    lhs = _present(expr, expr.lhs)
    rhs = _present(expr, expr.rhs)
    left = simplify_node(lhs)
    right = simplify_node(rhs)

    if left is None and right is None:
        return None
    return Equal(
        lhs.clone() if left is None else left,
        rhs.clone() if right is None else right,
    )


# ============================================================
# Fixed point
# ============================================================

def simplify(expr: Expression, max_passes: int = DEFAULT_MAX_PASSES,
             trace: bool = False):
    """
    Simplify an expression until its rendering stops changing.

    Each pass runs ``simplify_node`` over the whole tree. The loop ends when
    a pass reports nothing to simplify or leaves both the rendered text and
    the tree's shape as they were. Passes that only reshape the tree
    (flattening one level of a parsed ``a+b+c+d`` chain, for instance) are
    kept and the loop goes on, so the result is a fixed point. As a guard against rules
    that cycle, the loop also stops when a rendering from an earlier pass
    comes back, or after ``max_passes`` passes.

    Args:
        expr: Expression to simplify (not modified)
        max_passes: Maximum number of passes (default: 1000)
        trace: If True, return (result, trace) tuple

    Returns:
        Simplified expression, or (expression, trace) if trace=True

    Examples:
        simplify(Sum([Value(2), Value(3), Text("x")]))   # => x + 5
        simplify(Negate(Negate(Text("x"))))             # => x
    """
    trace_obj = RewriteTrace(initial=expr)
    current = expr.clone()
    rendered = current.render()
    shape = repr(current)
    seen = {rendered}

    for index in range(max_passes):
        reduced = simplify_node(current)
        if reduced is None:
            break
        reduced_text = reduced.render()
        reduced_shape = repr(reduced)
        if reduced_text == rendered:
            current = reduced
            if reduced_shape == shape:
                break
            # Same text, new shape: one level of nesting was flattened.
            logger.debug("simplify pass %d reshaped %s", index, rendered)
            shape = reduced_shape
            continue

        logger.debug("simplify pass %d: %s -> %s", index, rendered, reduced_text)
        trace_obj.add_step(RewriteStep(index, _PASS, current, reduced))
        current, rendered, shape = reduced, reduced_text, reduced_shape
        if rendered in seen:
            logger.warning("simplification revisited %r, stopping", rendered)
            break
        seen.add(rendered)
    else:
        logger.warning("simplification stopped after %d passes", max_passes)

    trace_obj.final = current
    if trace:
        return current, trace_obj
    return current
