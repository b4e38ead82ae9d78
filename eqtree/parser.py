"""
Infix parser: tokenizer/shunting-yard conversion and tree building.

Input is a single line using ``+ - * / ^``, parentheses and single
character operands. Anything longer (multi-character names, decimals,
negative literals) goes in braces:

    parse("({v_1}+{2.5})/c")
    shunting_yard("4+4*2/(1-5)")     # => ['4', '4', '2', '*', '1', '5', '-', '/', '+']

A minus with no left operand is unary, so ``-(a)`` builds
``Subtract(None, a)``.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from .equation import Equation, Operator
from .errors import (
    MalformedExpressionError, MismatchedParenthesesError, UnknownOperatorError,
    UnterminatedBraceError,
)
from .expression import Expression

logger = logging.getLogger(__name__)

PRECEDENCE = {
    "+": 1,
    "-": 1,
    "*": 2,
    "/": 2,
    "^": 3,
}


def precedence(symbol: str) -> int:
    """Binding strength of an operator symbol; 0 for anything else."""
    return PRECEDENCE.get(symbol, 0)


# ============================================================
# Tokenizer / shunting-yard
# ============================================================

def shunting_yard(text: str) -> List[str]:
    """
    Convert infix text to a postfix token list.

    Operators of equal precedence are left associative. A brace group
    ``{...}`` is emitted as one token with the braces removed.

    Args:
        text: Infix expression

    Returns:
        Tokens in postfix (reverse Polish) order.

    Raises:
        MismatchedParenthesesError: on a ``)`` without ``(`` or vice versa
        UnterminatedBraceError: if a ``{`` is still open at end of input
        MalformedExpressionError: on an empty brace group

    Examples:
        shunting_yard("(a+b)/c")     # => ['a', 'b', '+', 'c', '/']
        shunting_yard("A+B*C-D")     # => ['A', 'B', 'C', '*', '+', 'D', '-']
    """
    output: List[str] = []
    stack: List[str] = []
    buffer: Optional[List[str]] = None

    for ch in text:
        if buffer is not None:
            if ch == "}":
                token = "".join(buffer)
                if not token:
                    raise MalformedExpressionError("empty brace group")
                output.append(token)
                buffer = None
            elif ch != "{":
                buffer.append(ch)
            continue

        if ch.isspace():
            continue
        if ch == "{":
            buffer = []
        elif ch == "(":
            stack.append(ch)
        elif ch == ")":
            while stack and stack[-1] != "(":
                output.append(stack.pop())
            if not stack:
                raise MismatchedParenthesesError(f"unmatched ')' in {text!r}")
            stack.pop()
        elif ch in PRECEDENCE:
            while stack and precedence(stack[-1]) >= precedence(ch):
                output.append(stack.pop())
            stack.append(ch)
        else:
            output.append(ch)

    if buffer is not None:
        raise UnterminatedBraceError(f"unclosed '{{' in {text!r}")

    while stack:
        symbol = stack.pop()
        if symbol == "(":
            raise MismatchedParenthesesError(f"unmatched '(' in {text!r}")
        output.append(symbol)

    logger.debug("postfix for %r: %s", text, output)
    return output


# ============================================================
# Tree building
# ============================================================

def _leaf(token: str) -> Union[float, str]:
    try:
        return float(token)
    except ValueError:
        pass
    if len(token) > 1 or token.isalnum() or token == "_":
        return token
    raise UnknownOperatorError(f"unknown operator {token!r}")


def build_tree(postfix: List[str]) -> Equation:
    """
    Build an Equation from postfix tokens.

    Operators pop their right operand first, then their left. Only ``-``
    may be missing its left operand (a unary minus).

    Raises:
        UnknownOperatorError: for a one-character token that is neither an
            operand nor a known operator
        MalformedExpressionError: for an operator without operands, or a
            token list that does not reduce to exactly one tree
    """
    stack: List[Equation] = []
    for token in postfix:
        op = Operator.from_symbol(token) if token in PRECEDENCE else None
        if op is None:
            stack.append(Equation(_leaf(token)))
            continue

        right = stack.pop() if stack else None
        left = stack.pop() if stack else None
        if right is None:
            raise MalformedExpressionError(f"operator {token!r} has no operands")
        if left is None and op is not Operator.SUBTRACT:
            raise MalformedExpressionError(f"operator {token!r} is missing an operand")
        stack.append(Equation(op, left, right))

    if len(stack) != 1:
        raise MalformedExpressionError(
            f"expected a single expression, found {len(stack)}")
    return stack[0]


def parse(text: str) -> Equation:
    """Parse infix text into a binary Equation tree."""
    return build_tree(shunting_yard(text))


def parse_expression(text: str, bindings: Optional[Dict[str, Any]] = None) -> Expression:
    """
    Parse infix text straight into an Expression.

    Args:
        text: Infix expression
        bindings: Optional map from variable name to an EquationMember;
            those names become Variable leaves, other names Text leaves

    Example:
        parse_expression("(x+y)/z")
        # => Divide(Sum([Text('x'), Text('y')]), Text('z'))
    """
    return parse(text).lower(bindings)
