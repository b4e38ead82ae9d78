"""
Expression tree for eqtree.

An expression is a strict tree of the node classes below. Every node owns
its children; transformations build new trees instead of editing shared
ones, so a finished tree can be handed to any number of callers.

Node kinds:
    Sum([a, b, ...])        - n-ary addition, a - b is Sum([a, Negate(b)])
    Multiply([a, b, ...])   - n-ary multiplication
    Negate(a)               - sign inversion
    Divide(num, den)        - division
    Equal(lhs, rhs)         - an equation, lhs = rhs
    Value(member)           - a constant (number or EquationMember)
    Text(name)              - an uninterpreted symbol
    Mapping(i)              - wildcard placeholder, only used in rewrite rules
    Variable(member)        - a bound symbol backed by an EquationMember

Negate, Divide and Equal accept ``None`` children while a tree is being
assembled; rendering, evaluating or simplifying such a node raises
IncompleteExpressionError.

Sum and Multiply compare as multisets: ``Sum([x, 1]) == Sum([1, x])``.
"""

import math
from typing import Any, Iterator, List, Optional

from .errors import IncompleteExpressionError
from .members import (
    divide_values, member_is_zero, member_latex, member_repr, member_value,
)


def _require(child: Optional['Expression'], owner: 'Expression') -> 'Expression':
    if child is None:
        raise IncompleteExpressionError(
            f"{owner.kind} node is missing a child")
    return child


def _same_multiset(ls: List['Expression'], rs: List['Expression']) -> bool:
    if len(ls) != len(rs):
        return False
    unused = list(rs)
    for item in ls:
        for i, candidate in enumerate(unused):
            if item == candidate:
                del unused[i]
                break
        else:
            return False
    return True


class Expression:
    """Base class of all expression nodes."""

    __slots__ = ()

    @property
    def kind(self) -> str:
        """Node type name, e.g. "Sum" or "Divide"."""
        return type(self).__name__

    def children(self) -> List[Optional['Expression']]:
        """Direct children in traversal order (may contain None)."""
        return []

    def is_leaf(self) -> bool:
        return False

    def is_complete(self) -> bool:
        """True if no node in the tree has a missing child."""
        return all(c is not None and c.is_complete() for c in self.children())

    def render(self) -> str:
        """Plain-text infix rendering."""
        raise NotImplementedError

    def latex(self) -> str:
        """LaTeX rendering."""
        raise NotImplementedError

    def value(self) -> float:
        """Numeric value of the tree."""
        raise NotImplementedError

    def clone(self) -> 'Expression':
        """Deep copy of the tree; leaf members are shared, not copied."""
        raise NotImplementedError

    def is_zero(self) -> bool:
        return False

    def matches(self, other: 'Expression') -> bool:
        """
        Coarse kind test used by structural matching.

        Composite nodes match nodes of the same class; all leaf kinds
        (Value, Text, Mapping, Variable) match each other.
        """
        if self.is_leaf() and other.is_leaf():
            return True
        return type(self) is type(other)

    def __str__(self) -> str:
        return self.render()

    def __getitem__(self, index: int) -> 'Expression':
        raise TypeError(f"cannot index a {self.kind} node")

    def __add__(self, other: 'Expression') -> 'Expression':
        if isinstance(self, Sum) and isinstance(other, Sum):
            return Sum(self.terms + other.terms)
        if isinstance(self, Sum):
            return Sum(self.terms + [other])
        if isinstance(other, Sum):
            return Sum([self] + other.terms)
        if isinstance(self, Value) and isinstance(other, Value):
            return Value(self.value() + other.value())
        return Sum([self, other])

    __hash__ = None


# ============================================================
# Composite nodes
# ============================================================

class _Nary(Expression):
    """Shared behaviour of Sum and Multiply."""

    __slots__ = ('terms',)

    _separator = ""

    def __init__(self, terms: Optional[List[Expression]] = None):
        self.terms: List[Expression] = list(terms or [])

    def children(self) -> List[Optional[Expression]]:
        return list(self.terms)

    def clone(self) -> Expression:
        return type(self)([t.clone() for t in self.terms])

    def render(self) -> str:
        return self._separator.join(t.render() for t in self.terms)

    def __getitem__(self, index: int) -> Expression:
        return self.terms[index]

    def __len__(self) -> int:
        return len(self.terms)

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return False
        return _same_multiset(self.terms, other.terms)

    def __repr__(self) -> str:
        return f"{self.kind}({self.terms!r})"


class Sum(_Nary):
    """n-ary addition."""

    __slots__ = ()

    _separator = " + "

    def latex(self) -> str:
        parts = ["{"]
        last = len(self.terms) - 1
        for i, item in enumerate(self.terms):
            grouped = isinstance(item, (Sum, Multiply))
            if grouped:
                parts.append("{")
            # The sign of a negated term is carried by the " - " separator.
            if isinstance(item, Negate) and i != 0:
                parts.append(_require(item.child, item).latex())
            else:
                parts.append(item.latex())
            if grouped:
                parts.append("}")
            if i != last:
                parts.append(" - " if isinstance(self.terms[i + 1], Negate) else " + ")
        parts.append("}")
        return "".join(parts)

    def value(self) -> float:
        total = 0.0
        for item in self.terms:
            total += item.value()
        return total


class Multiply(_Nary):
    """n-ary multiplication."""

    __slots__ = ()

    _separator = " * "

    def latex(self) -> str:
        return " \\cdot ".join(t.latex() for t in self.terms)

    def value(self) -> float:
        product = 1.0
        for item in self.terms:
            product *= item.value()
        return product


class Negate(Expression):
    """Unary sign inversion."""

    __slots__ = ('child',)

    def __init__(self, child: Optional[Expression] = None):
        self.child = child

    def children(self) -> List[Optional[Expression]]:
        return [self.child]

    def clone(self) -> Expression:
        return Negate(None if self.child is None else self.child.clone())

    def render(self) -> str:
        child = _require(self.child, self)
        if isinstance(child, Negate):
            return _require(child.child, child).render()
        return f"-{child.render()}"

    def latex(self) -> str:
        return f"-{{{_require(self.child, self).latex()}}}"

    def value(self) -> float:
        return -_require(self.child, self).value()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Negate) and self.child == other.child

    def __repr__(self) -> str:
        return f"Negate({self.child!r})"


def _braced(expr: Expression) -> str:
    text = expr.render()
    if isinstance(expr, (Sum, Multiply)) and len(expr.terms) > 1:
        return "{" + text + "}"
    return text


class Divide(Expression):
    """Division of a numerator by a denominator."""

    __slots__ = ('numerator', 'denominator')

    def __init__(self, numerator: Optional[Expression] = None,
                 denominator: Optional[Expression] = None):
        self.numerator = numerator
        self.denominator = denominator

    def children(self) -> List[Optional[Expression]]:
        return [self.numerator, self.denominator]

    def clone(self) -> Expression:
        return Divide(
            None if self.numerator is None else self.numerator.clone(),
            None if self.denominator is None else self.denominator.clone(),
        )

    def render(self) -> str:
        numerator = _require(self.numerator, self)
        denominator = _require(self.denominator, self)
        return f"{_braced(numerator)}/{_braced(denominator)}"

    def latex(self) -> str:
        numerator = _require(self.numerator, self).latex()
        denominator = _require(self.denominator, self).latex()
        return f"\\frac{{{numerator}}}{{{denominator}}}"

    def value(self) -> float:
        return divide_values(_require(self.numerator, self).value(),
                             _require(self.denominator, self).value())

    def __eq__(self, other: object) -> bool:
        return (isinstance(other, Divide)
                and self.numerator == other.numerator
                and self.denominator == other.denominator)

    def __repr__(self) -> str:
        return f"Divide({self.numerator!r}, {self.denominator!r})"


class Equal(Expression):
    """An equation ``lhs = rhs``; its value is the residual lhs - rhs."""

    __slots__ = ('lhs', 'rhs')

    def __init__(self, lhs: Optional[Expression] = None,
                 rhs: Optional[Expression] = None):
        self.lhs = lhs
        self.rhs = rhs

    def children(self) -> List[Optional[Expression]]:
        return [self.lhs, self.rhs]

    def clone(self) -> Expression:
        return Equal(
            None if self.lhs is None else self.lhs.clone(),
            None if self.rhs is None else self.rhs.clone(),
        )

    def render(self) -> str:
        return (f"{_require(self.lhs, self).render()} = "
                f"{_require(self.rhs, self).render()}")

    def latex(self) -> str:
        return (f"{_require(self.lhs, self).latex()} = "
                f"{_require(self.rhs, self).latex()}")

    def value(self) -> float:
        return _require(self.lhs, self).value() - _require(self.rhs, self).value()

    def __eq__(self, other: object) -> bool:
        return (isinstance(other, Equal)
                and self.lhs == other.lhs
                and self.rhs == other.rhs)

    def __repr__(self) -> str:
        return f"Equal({self.lhs!r}, {self.rhs!r})"


# ============================================================
# Leaves
# ============================================================

class Leaf(Expression):
    __slots__ = ()

    def is_leaf(self) -> bool:
        return True

    def is_complete(self) -> bool:
        return True


class Value(Leaf):
    """A constant: a number, or any EquationMember acting as one."""

    __slots__ = ('member',)

    def __init__(self, member: Any):
        if isinstance(member, int) and not isinstance(member, bool):
            member = float(member)
        self.member = member

    def clone(self) -> Expression:
        return Value(self.member)

    def render(self) -> str:
        return member_repr(self.member)

    def latex(self) -> str:
        return member_latex(self.member)

    def value(self) -> float:
        return member_value(self.member)

    def is_zero(self) -> bool:
        return member_is_zero(self.member)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Value) and self.value() == other.value()

    def __repr__(self) -> str:
        return f"Value({self.member!r})"


class Text(Leaf):
    """A free symbol rendered verbatim."""

    __slots__ = ('name',)

    def __init__(self, name: str):
        self.name = name

    def clone(self) -> Expression:
        return Text(self.name)

    def render(self) -> str:
        return self.name

    def latex(self) -> str:
        return self.name

    def value(self) -> float:
        return 1.0

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Text) and self.name == other.name

    def __repr__(self) -> str:
        return f"Text({self.name!r})"


class Mapping(Leaf):
    """Wildcard placeholder ``Map(i)`` used in rewrite patterns."""

    __slots__ = ('index',)

    def __init__(self, index: int):
        self.index = index

    def clone(self) -> Expression:
        return Mapping(self.index)

    def render(self) -> str:
        return f"Map({self.index})"

    def latex(self) -> str:
        return self.render()

    def value(self) -> float:
        return 1.0

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Mapping) and self.index == other.index

    def __repr__(self) -> str:
        return f"Mapping({self.index})"


class Variable(Leaf):
    """A bound symbol whose text, LaTeX and value come from its member."""

    __slots__ = ('member',)

    def __init__(self, member: Any):
        self.member = member

    def clone(self) -> Expression:
        return Variable(self.member)

    def render(self) -> str:
        return member_repr(self.member)

    def latex(self) -> str:
        return member_latex(self.member)

    def value(self) -> float:
        return member_value(self.member)

    def is_zero(self) -> bool:
        return member_is_zero(self.member)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Variable) and (
            self.member is other.member or self.member == other.member)

    def __repr__(self) -> str:
        return f"Variable({self.member!r})"


# ============================================================
# Tree queries
# ============================================================

def walk(expr: Expression) -> Iterator[Expression]:
    """
    Yield every node in pre-order.

    Children are visited left to right, numerators before denominators and
    left-hand sides before right-hand sides. Missing children are skipped.
    """
    yield expr
    for child in expr.children():
        if child is not None:
            yield from walk(child)


def get_variables(expr: Expression) -> List[Expression]:
    """
    Collect the free symbols (Text and Variable leaves) of an expression.

    Two leaves name the same symbol when their renderings are equal; only
    the first occurrence is kept.

    Example:
        get_variables(Divide(Sum([Text("a"), Text("b")]), Text("c")))
        # => [Text("a"), Text("b"), Text("c")]
    """
    found: List[Expression] = []
    seen: List[str] = []
    for node in walk(expr):
        if isinstance(node, (Text, Variable)):
            key = node.render()
            if key not in seen:
                seen.append(key)
                found.append(node)
    return found


def contains_variable(expr: Expression, leaf: Expression) -> bool:
    """True if any leaf of expr renders the same as ``leaf``."""
    target = leaf.render()
    return any(node.is_leaf() and node.render() == target for node in walk(expr))


def apply_variables(expr: Expression) -> Expression:
    """
    Return a copy with every resolvable Variable replaced by its Value.

    Variables whose member value is not finite (the NaN default, say) are
    kept as symbols.
    """
    if isinstance(expr, Variable):
        number = expr.value()
        if math.isfinite(number):
            return Value(number)
        return expr.clone()
    return map_children(expr, apply_variables)


def cleanup(expr: Expression) -> Expression:
    """Return a copy with every double negation removed."""
    if isinstance(expr, Negate) and isinstance(expr.child, Negate) \
            and expr.child.child is not None:
        return cleanup(expr.child.child)
    return map_children(expr, cleanup)


def get_coefficient(expr: Expression) -> Optional[float]:
    """
    Numeric coefficient of a term, or None if it has none.

    Symbols count as 1 inside a Divide, so ``x/3`` has coefficient 1/3 and
    ``2/x`` has coefficient 2. The result is a display aid, not the value
    of the term.
    """
    if isinstance(expr, Value):
        return expr.value()
    if isinstance(expr, Negate):
        inner = get_coefficient(_require(expr.child, expr))
        return None if inner is None else -inner
    if isinstance(expr, Multiply):
        coefficient = 1.0
        for item in expr.terms:
            if isinstance(item, Value):
                coefficient *= item.value()
        return coefficient
    if isinstance(expr, Divide):
        numerator = _require(expr.numerator, expr)
        denominator = _require(expr.denominator, expr).value()
        if math.isfinite(numerator.value()):
            return divide_values(numerator.value(), denominator)
        if isinstance(numerator, Negate):
            return divide_values(-1.0, denominator)
        return divide_values(1.0, denominator)
    return None


def map_children(expr: Expression, transform) -> Expression:
    """Copy a node, passing each present child through ``transform``."""
    def apply(child):
        return None if child is None else transform(child)

    if isinstance(expr, (Sum, Multiply)):
        return type(expr)([transform(t) for t in expr.terms])
    if isinstance(expr, Negate):
        return Negate(apply(expr.child))
    if isinstance(expr, Divide):
        return Divide(apply(expr.numerator), apply(expr.denominator))
    if isinstance(expr, Equal):
        return Equal(apply(expr.lhs), apply(expr.rhs))
    return expr.clone()
