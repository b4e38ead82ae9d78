"""
Binary operator trees, the direct output of the parser.

An ``Equation`` node has a root that is either an ``Operator`` (with up to
two children) or a leaf: a float for a number, a str for a variable name.
It has its own identity-based simplifier and can be lowered to the n-ary
``Expression`` form used by the rest of the package.

    eq = parse("(a+0)/c")
    eq.simplify().render()       # => "a/c"
    eq.lower()                   # => Divide(Sum([Text('a'), Value(0.0)]), Text('c'))
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .errors import IncompleteExpressionError, UnsupportedOperationError
from .expression import Divide, Expression, Multiply, Negate, Sum, Text, Value, Variable
from .members import divide_values, format_number, is_number

DEFAULT_MAX_PASSES = 1000


class Operator(Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    EXPONENTIATION = "^"
    COLLECT = "collect"

    @classmethod
    def from_symbol(cls, symbol: str) -> Optional['Operator']:
        """Look up an operator by its symbol, None if unknown."""
        for op in cls:
            if op.value == symbol:
                return op
        return None


RootType = Union[Operator, float, str]


def _leaf_text(root: Union[float, str]) -> str:
    text = format_number(root) if isinstance(root, float) else root
    if len(text) > 1:
        return "{" + text + "}"
    return text


class Equation:
    """
    A node of a binary operator tree.

    Args:
        root: An Operator, a number (stored as float) or a variable name
        left: Left operand, None when absent
        right: Right operand, None when absent (a unary minus has only a
            right operand)
    """

    __slots__ = ('root', 'left', 'right')

    def __init__(self, root: RootType, left: Optional['Equation'] = None,
                 right: Optional['Equation'] = None):
        if is_number(root):
            root = float(root)
        self.root = root
        self.left = left
        self.right = right

    # ============================================================
    # Queries
    # ============================================================

    @property
    def is_operator(self) -> bool:
        return isinstance(self.root, Operator)

    def is_leaf(self) -> bool:
        """True unless both operands are present."""
        return self.left is None or self.right is None

    def is_summation(self) -> bool:
        """True for an Add or Subtract node with both operands."""
        return (self.root in (Operator.ADD, Operator.SUBTRACT)
                and self.left is not None and self.right is not None)

    def _is_number(self, number: Optional[float] = None) -> bool:
        if not isinstance(self.root, float):
            return False
        return number is None or self.root == number

    def get_variables(self) -> List[str]:
        """Variable names in left-to-right order, without duplicates."""
        names: List[str] = []
        for node in self._walk():
            if isinstance(node.root, str) and node.root not in names:
                names.append(node.root)
        return names

    def _walk(self):
        yield self
        for child in (self.left, self.right):
            if child is not None:
                yield from child._walk()

    def compare_structure(self, other: 'Equation') -> bool:
        """
        Shape-level comparison.

        Operators must agree node by node; any two leaves match, whether
        they are numbers or names.
        """
        if self.is_operator and other.is_operator:
            if self.root is not other.root:
                return False
            return (_same_shape(self.left, other.left)
                    and _same_shape(self.right, other.right))
        return not self.is_operator and not other.is_operator

    # ============================================================
    # Rendering
    # ============================================================

    def render(self) -> str:
        """
        Infix rendering that ``parse`` reads back into the same tree.

        Operator children are parenthesized; names and numbers longer than
        one character are wrapped in braces.
        """
        if not self.is_operator:
            return _leaf_text(self.root)
        parts = []
        for child in (self.left, self.right):
            if child is None:
                parts.append("")
            elif child.is_operator:
                parts.append(f"({child.render()})")
            else:
                parts.append(child.render())
        return f"{parts[0]}{self.root.value}{parts[1]}"

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        if not self.is_operator:
            return f"Equation({self.root!r})"
        return f"Equation({self.root}, {self.left!r}, {self.right!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Equation):
            return NotImplemented
        return (self.root == other.root
                and self.left == other.left
                and self.right == other.right)

    __hash__ = None

    # ============================================================
    # Copies and rewrites
    # ============================================================

    def copy(self) -> 'Equation':
        return Equation(
            self.root,
            None if self.left is None else self.left.copy(),
            None if self.right is None else self.right.copy(),
        )

    def replace_variable(self, old: str, new: Union[str, float]) -> 'Equation':
        """
        Return a copy with every variable named ``old`` replaced.

        ``new`` may be a name, a number, or a string holding a number.

        Example:
            parse("(a+b)/c").replace_variable("a", "d")   # => (d+b)/c
        """
        if isinstance(self.root, str) and self.root == old:
            return Equation(_leaf_root(new))
        return Equation(
            self.root,
            None if self.left is None else self.left.replace_variable(old, new),
            None if self.right is None else self.right.replace_variable(old, new),
        )

    def collect_summations(self) -> List['Equation']:
        """
        Flatten a chain of additions and subtractions into its terms.

        Subtracted terms come back as ``Multiply(-1, term)``.

        Example:
            parse("a-b+c").collect_summations()   # => [a, {-1}*b, c]
        """
        if not self.is_summation():
            return [self.copy()]
        terms = self.left.collect_summations()
        if self.root is Operator.SUBTRACT:
            terms.extend(_negated(term) for term in self.right.collect_summations())
        else:
            terms.extend(self.right.collect_summations())
        return terms

    # ============================================================
    # Simplification
    # ============================================================

    def simplify(self, max_passes: int = DEFAULT_MAX_PASSES) -> 'Equation':
        """
        Return a simplified copy.

        Identities are applied top-down over the whole tree, and the pass is
        repeated until the rendering stops changing.

        Raises:
            IncompleteExpressionError: for a Multiply with no operands or a
                Divide without a divisor
        """
        result = self.copy()
        rendered = result.render()
        for _ in range(max_passes):
            result._simplify_pass()
            new_rendered = result.render()
            if new_rendered == rendered:
                break
            rendered = new_rendered
        return result

    def _simplify_pass(self) -> None:
        reduced = self._reduce()
        if reduced is not None:
            self.root, self.left, self.right = reduced.root, reduced.left, reduced.right
        for child in (self.left, self.right):
            if child is not None:
                child._simplify_pass()

    def _reduce(self) -> Optional['Equation']:
        """Apply the identities of this node's operator, None if none apply."""
        if self.root in (Operator.ADD, Operator.SUBTRACT):
            return self._reduce_summation()
        if self.root is Operator.MULTIPLY:
            return self._reduce_product()
        if self.root is Operator.DIVIDE:
            return self._reduce_quotient()
        return None

    def _reduce_summation(self) -> Optional['Equation']:
        left, right = self.left, self.right
        subtract = self.root is Operator.SUBTRACT
        if left is not None and right is not None:
            if left._is_number() and right._is_number():
                if subtract:
                    return Equation(left.root - right.root)
                return Equation(left.root + right.root)
            if right._is_number(0.0):
                return left
            if left._is_number(0.0):
                return _negated(right) if subtract else right
            return None
        if left is not None:
            return left
        if right is not None:
            # No unary negation node: -x is written {-1}*x
            return _negated(right) if subtract else right
        raise IncompleteExpressionError(f"{self.root.name} node has no operands")

    def _reduce_product(self) -> Optional['Equation']:
        left, right = self.left, self.right
        if left is not None and right is not None:
            if left._is_number() and right._is_number():
                return Equation(left.root * right.root)
            if left._is_number(0.0) or right._is_number(0.0):
                return Equation(0.0)
            if left._is_number(1.0):
                return right
            if right._is_number(1.0):
                return left
            return None
        if left is not None or right is not None:
            return Equation(0.0)
        raise IncompleteExpressionError("MULTIPLY node has no operands")

    def _reduce_quotient(self) -> Optional['Equation']:
        left, right = self.left, self.right
        if right is None:
            raise IncompleteExpressionError("DIVIDE node has no divisor")
        if left is None:
            return Equation(0.0)
        if left._is_number() and right._is_number():
            return Equation(divide_values(left.root, right.root))
        if right._is_number(1.0):
            return left
        if left._is_number(0.0):
            return Equation(0.0)
        return None

    # ============================================================
    # Lowering
    # ============================================================

    def lower(self, bindings: Optional[Dict[str, Any]] = None) -> Expression:
        """
        Convert to the n-ary Expression form.

        Args:
            bindings: Optional map from variable name to an EquationMember;
                bound names become ``Variable(member)``, the rest ``Text``

        Returns:
            The equivalent Expression. ``a - b`` lowers to
            ``Sum([a, Negate(b)])`` and a unary ``-b`` to ``Negate(b)``.

        Raises:
            UnsupportedOperationError: for Exponentiation and Collect
            IncompleteExpressionError: for operators missing operands
        """
        bindings = bindings or {}
        if isinstance(self.root, float):
            return Value(self.root)
        if isinstance(self.root, str):
            if self.root in bindings:
                return Variable(bindings[self.root])
            return Text(self.root)

        left = None if self.left is None else self.left.lower(bindings)
        right = None if self.right is None else self.right.lower(bindings)
        op = self.root

        if op is Operator.ADD:
            terms = [t for t in (left, right) if t is not None]
            if not terms:
                raise IncompleteExpressionError("ADD node has no operands")
            return terms[0] if len(terms) == 1 else Sum(terms)
        if op is Operator.SUBTRACT:
            if right is None:
                if left is None:
                    raise IncompleteExpressionError("SUBTRACT node has no operands")
                return left
            if left is None:
                return Negate(right)
            return Sum([left, Negate(right)])
        if op is Operator.MULTIPLY:
            if left is None or right is None:
                raise IncompleteExpressionError("MULTIPLY node is missing an operand")
            return Multiply([left, right])
        if op is Operator.DIVIDE:
            if left is None or right is None:
                raise IncompleteExpressionError("DIVIDE node is missing an operand")
            return Divide(left, right)
        raise UnsupportedOperationError(f"{op.name} has no Expression form")


def _same_shape(ls: Optional[Equation], rs: Optional[Equation]) -> bool:
    if ls is None or rs is None:
        return ls is None and rs is None
    return ls.compare_structure(rs)


def _negated(term: Equation) -> Equation:
    return Equation(Operator.MULTIPLY, Equation(-1.0), term)


def _leaf_root(value: Union[str, float]) -> Union[str, float]:
    if is_number(value):
        return float(value)
    try:
        return float(value)
    except ValueError:
        return value
