"""
Structural matching and placeholder substitution.

Rewrite patterns are ordinary expressions whose variable parts are
``Mapping(i)`` placeholders. Matching is shape-level: placeholders match
anything, leaf kinds are interchangeable and negation is transparent.

    pattern  = Divide(Sum([Mapping(0), Mapping(1)]), Mapping(2))
    template = Sum([Divide(Mapping(0), Mapping(2)),
                    Divide(Mapping(1), Mapping(2))])

    expr = parse_expression("(x+y)/z")
    if compare_structure(pattern, expr):
        apply_mapping(template, bind_mappings(pattern, expr))
        # => x/z + y/z
"""

import logging
from typing import Dict, List, Optional

from .errors import IncompleteExpressionError
from .expression import (
    Divide, Equal, Expression, Mapping, Multiply, Negate, Sum, Text, Value,
    map_children, walk,
)

logger = logging.getLogger(__name__)

# Depth meaning "compare the whole tree".
UNBOUNDED = None

MappingIndex = List[Optional[Expression]]


def _child(node: Expression, child: Optional[Expression]) -> Expression:
    if child is None:
        raise IncompleteExpressionError(f"{node.kind} node is missing a child")
    return child


# ============================================================
# Structural match
# ============================================================

def compare_structure(ls: Expression, rs: Expression,
                      depth: Optional[int] = UNBOUNDED) -> bool:
    """
    Shape-level equivalence of two expressions.

    Rules, in order:
        - at depth 0 any two sub-trees match
        - Sum/Sum and Multiply/Multiply match when they have the same
          number of children and the children match pairwise
        - a Negate on either side is unwrapped (negation is transparent)
        - Divide/Divide match when numerators and denominators match
        - a Mapping on either side matches anything
        - otherwise the coarse kinds must agree (all leaf kinds agree)

    Args:
        ls: Left expression (usually the pattern)
        rs: Right expression
        depth: Levels of composite nodes to descend; UNBOUNDED (None)
            compares the entire tree

    Returns:
        True if the shapes match
    """
    if depth is not None and depth <= 0:
        return True
    below = None if depth is None else depth - 1

    if isinstance(ls, (Sum, Multiply)) and type(ls) is type(rs):
        if len(ls.terms) != len(rs.terms):
            return False
        return all(compare_structure(left, right, below)
                   for left, right in zip(ls.terms, rs.terms))
    if isinstance(ls, Negate) and isinstance(rs, Negate):
        return compare_structure(_child(ls, ls.child), _child(rs, rs.child), depth)
    if isinstance(ls, Negate):
        return compare_structure(_child(ls, ls.child), rs, depth)
    if isinstance(rs, Negate):
        return compare_structure(ls, _child(rs, rs.child), depth)
    if isinstance(ls, Divide) and isinstance(rs, Divide):
        numerators = compare_structure(_child(ls, ls.numerator),
                                       _child(rs, rs.numerator), below)
        denominators = compare_structure(_child(ls, ls.denominator),
                                         _child(rs, rs.denominator), below)
        return numerators and denominators
    if isinstance(ls, Mapping) or isinstance(rs, Mapping):
        return True
    return ls.matches(rs)


# ============================================================
# Mapping extraction
# ============================================================

def create_mapping_index(expr: Expression) -> List[Expression]:
    """
    Collect the leaves of a concrete expression in traversal order.

    Sum/Multiply children are visited left to right, then Negate children,
    numerators before denominators and left-hand sides before right-hand
    sides. Position i of the result lines up with ``Mapping(i)`` in a
    pattern whose placeholders all sit on leaves.

    Example:
        create_mapping_index(parse_expression("(x+y)/z"))
        # => [Text("x"), Text("y"), Text("z")]
    """
    return [node.clone() for node in walk(expr) if node.is_leaf()]


def bind_mappings(pattern: Expression, expr: Expression) -> MappingIndex:
    """
    Bind each placeholder of ``pattern`` to the sub-tree of ``expr`` at the
    same position.

    This agrees with ``create_mapping_index`` whenever every placeholder
    sits on a leaf of ``expr``, and additionally binds whole sub-trees when
    a placeholder faces a composite node. Where matching looked through a
    negation, the sign is pushed onto the bound sub-trees so that
    substituting the bindings keeps the value of the expression.

    Returns:
        A list whose entry i is the binding of ``Mapping(i)`` (None for
        indices the pattern does not use).
    """
    found: Dict[int, Expression] = {}
    _bind(pattern, expr, found, False)
    size = max(found) + 1 if found else 0
    return [found.get(i) for i in range(size)]


def _bind(pattern: Expression, expr: Expression,
          found: Dict[int, Expression], negated: bool) -> None:
    if isinstance(pattern, Mapping):
        bound = Negate(expr.clone()) if negated else expr.clone()
        found.setdefault(pattern.index, bound)
        return

    if isinstance(pattern, Negate) and isinstance(expr, Negate):
        _bind(_child(pattern, pattern.child), _child(expr, expr.child), found, negated)
        return
    if isinstance(pattern, Negate):
        _bind(_child(pattern, pattern.child), expr, found, not negated)
        return
    if isinstance(expr, Negate):
        _bind(pattern, _child(expr, expr.child), found, not negated)
        return

    if isinstance(pattern, Sum) and isinstance(expr, Sum):
        # -(a + b) = (-a) + (-b)
        for p, e in zip(pattern.terms, expr.terms):
            _bind(p, e, found, negated)
    elif isinstance(pattern, Multiply) and isinstance(expr, Multiply):
        # -(a * b) = (-a) * b
        for i, (p, e) in enumerate(zip(pattern.terms, expr.terms)):
            _bind(p, e, found, negated and i == 0)
    elif isinstance(pattern, Divide) and isinstance(expr, Divide):
        _bind(_child(pattern, pattern.numerator), _child(expr, expr.numerator),
              found, negated)
        _bind(_child(pattern, pattern.denominator), _child(expr, expr.denominator),
              found, False)
    elif isinstance(pattern, Equal) and isinstance(expr, Equal):
        _bind(_child(pattern, pattern.lhs), _child(expr, expr.lhs), found, negated)
        _bind(_child(pattern, pattern.rhs), _child(expr, expr.rhs), found, negated)


# ============================================================
# Substitution
# ============================================================

def apply_mapping(template: Expression, mappings: MappingIndex) -> Expression:
    """
    Instantiate a replacement template.

    Every ``Mapping(i)`` is replaced by a copy of ``mappings[i]``. Indices
    out of range (or unbound) degrade to ``Value(0)``, as do literal Value
    and Text leaves in the template; templates are expected to carry their
    variable content through placeholders only.

    Args:
        template: Replacement expression containing Mapping placeholders
        mappings: Bindings by placeholder index, e.g. from
            ``bind_mappings`` or ``create_mapping_index``

    Returns:
        A new expression; neither argument is modified.
    """
    if isinstance(template, Mapping):
        index = template.index
        if 0 <= index < len(mappings) and mappings[index] is not None:
            return mappings[index].clone()
        logger.debug("placeholder Map(%d) has no binding, using 0", index)
        return Value(0.0)
    if isinstance(template, (Value, Text)):
        return Value(0.0)
    return map_children(template, lambda child: apply_mapping(child, mappings))
