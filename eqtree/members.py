"""
Leaf capability for eqtree expressions.

Anything that appears inside a ``Value`` or ``Variable`` leaf is an
*equation member*: it knows how to render itself as text and LaTeX, what
its numeric value is, whether it can be simplified and whether it is zero.
Plain Python numbers are members too; they are handled by the ``member_*``
helpers below so callers never need to wrap them.

Host types (bound parameters, matrices, measured quantities) plug into an
expression by subclassing ``EquationMember`` or by providing the same
methods.
"""

import math
from typing import Any, Optional, Union

NumericType = Union[int, float]

# Numbers at or above this magnitude are already integral in a double, and
# scaling them by 1000 can overflow.
_ROUNDING_LIMIT = 1e15


def format_number(x: NumericType) -> str:
    """
    Render a number the way expressions display constants.

    Values are rounded to three decimal places (halves away from zero),
    integral results drop their fractional part.

    Examples:
        format_number(2.0)      -> "2"
        format_number(2 / 3)    -> "0.667"
        format_number(-0.0005)  -> "-0.001"
        format_number(float("nan")) -> "NaN"
    """
    x = float(x)
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    if abs(x) < _ROUNDING_LIMIT:
        rounded = math.copysign(math.floor(abs(x) * 1000.0 + 0.5), x) / 1000.0
    else:
        rounded = x
    if rounded.is_integer():
        return str(int(rounded))
    return repr(rounded)


class EquationMember:
    """
    Base class for objects that can live in a ``Value`` or ``Variable`` leaf.

    Only ``equation_repr`` is mandatory. The remaining methods have the
    defaults an opaque symbol needs: LaTeX falls back to the text form, the
    value is NaN, nothing can be simplified and the zero test compares the
    value against 0.
    """

    def equation_repr(self) -> str:
        """Return the plain-text rendering."""
        raise NotImplementedError

    def latex_string(self) -> str:
        """Return the LaTeX rendering (defaults to the text form)."""
        return self.equation_repr()

    def value(self) -> float:
        """Return the numeric value, NaN when unknown."""
        return math.nan

    def simplify(self) -> Optional[Any]:
        """Return a simpler Expression, or None when nothing can be done."""
        return None

    def is_zero(self) -> bool:
        """True if the member's value is exactly zero."""
        return self.value() == 0

    def __str__(self) -> str:
        return self.equation_repr()


class EquationRepr(EquationMember):
    """
    A frozen rendering plus value.

    Useful for snapshotting a live member, or for leaves whose text and
    LaTeX forms differ:

        EquationRepr("v_10", 0.5, latex="v_{10}")
    """

    __slots__ = ('string', 'latex', '_value')

    def __init__(self, string: str, value: float = math.nan,
                 latex: Optional[str] = None):
        self.string = string
        self.latex = latex
        self._value = float(value)

    @classmethod
    def from_member(cls, member: Any) -> 'EquationRepr':
        """Snapshot any member (or plain number) into an EquationRepr."""
        return cls(member_repr(member), member_value(member),
                   latex=member_latex(member))

    def equation_repr(self) -> str:
        return self.string

    def latex_string(self) -> str:
        if self.latex is None:
            return self.equation_repr()
        return self.latex

    def value(self) -> float:
        return self._value

    def __repr__(self) -> str:
        return f"EquationRepr({self.string!r}, {self._value!r})"


class NamedValue(EquationMember):
    """A named parameter bound to a number, e.g. ``NamedValue("g", 9.81)``."""

    __slots__ = ('name', '_value')

    def __init__(self, name: str, value: float):
        self.name = name
        self._value = float(value)

    def equation_repr(self) -> str:
        return self.name

    def value(self) -> float:
        return self._value

    def __repr__(self) -> str:
        return f"NamedValue({self.name!r}, {self._value!r})"


# ============================================================
# Member dispatch (numbers or member objects)
# ============================================================

def is_number(member: Any) -> bool:
    """True for plain numeric members (bool excluded)."""
    return isinstance(member, (int, float)) and not isinstance(member, bool)


def member_repr(member: Any) -> str:
    if is_number(member):
        return format_number(member)
    return member.equation_repr()


def member_latex(member: Any) -> str:
    if is_number(member):
        return format_number(member)
    return member.latex_string()


def member_value(member: Any) -> float:
    if is_number(member):
        return float(member)
    return float(member.value())


def member_is_zero(member: Any) -> bool:
    if is_number(member):
        return member == 0
    return bool(member.is_zero())


def member_simplify(member: Any) -> Optional[Any]:
    """Run the member's simplify hook; numbers never simplify further."""
    if is_number(member):
        return None
    return member.simplify()


def divide_values(a: float, b: float) -> float:
    """IEEE division: x/0 is a signed infinity, 0/0 and nan/0 are NaN."""
    try:
        return a / b
    except ZeroDivisionError:
        if math.isnan(a) or a == 0:
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
