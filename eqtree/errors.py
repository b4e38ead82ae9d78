"""
Exception hierarchy for eqtree.

Malformed input and incomplete trees are reported by raising; expansion
that finds no rule and sub-trees with nothing to simplify are ordinary
return values and never raise.
"""


class EqtreeError(Exception):
    """Base class for every error raised by eqtree."""


class ParseError(EqtreeError, ValueError):
    """The input text could not be turned into a tree."""


class MismatchedParenthesesError(ParseError):
    """Parentheses in the input do not pair up."""


class UnterminatedBraceError(ParseError):
    """A '{' literal was still open at the end of the input."""


class UnknownOperatorError(ParseError):
    """A postfix token is neither an operand nor a known operator."""


class MalformedExpressionError(ParseError):
    """The tokens do not form exactly one well-formed tree."""


class IncompleteExpressionError(EqtreeError, ValueError):
    """A node with a missing child reached a context that needs it."""


class UnsupportedOperationError(EqtreeError, TypeError):
    """An operator has no rule in the requested context."""
