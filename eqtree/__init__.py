"""
EQTREE - Expression trees for equation authoring

Parses infix notation into expression trees, simplifies them to a fixed
point and expands them with pattern-based rewrite rules.

Quick Start:
    from eqtree import parse_expression, simplify, expand

    expr = parse_expression("(x+y)/{2.0}")
    print(expand(expr).expression)                   # x/2 + y/2
    print(simplify(parse_expression("(0+1)*a")))     # a * 1

Input Syntax:
    + - * / ^          - binary operators (^ binds tightest)
    ( )                - grouping
    a, 7               - single character operands
    {v_1}, {-1}, {2.5} - longer names and numeric literals go in braces
    -(a)               - a leading minus is unary

Rewrite Patterns:
    Mapping(i)         - placeholder, matches any sub-tree
    Divide(Sum([Mapping(0), Mapping(1)]), Mapping(2))
        => Sum([Divide(Mapping(0), Mapping(2)), Divide(Mapping(1), Mapping(2))])
"""

__version__ = "0.1.0"

# Errors
from .errors import (
    EqtreeError,
    ParseError,
    MismatchedParenthesesError,
    UnterminatedBraceError,
    UnknownOperatorError,
    MalformedExpressionError,
    IncompleteExpressionError,
    UnsupportedOperationError,
)

# Leaf members
from .members import (
    NumericType,
    EquationMember,
    EquationRepr,
    NamedValue,
    format_number,
)

# Expression tree
from .expression import (
    Expression,
    Sum,
    Multiply,
    Negate,
    Divide,
    Equal,
    Value,
    Text,
    Mapping,
    Variable,
    walk,
    get_variables,
    contains_variable,
    apply_variables,
    cleanup,
    get_coefficient,
    map_children,
)

# Simplification
from .simplifier import (
    DEFAULT_MAX_PASSES,
    simplify,
    simplify_node,
)

# Matching and expansion
from .matcher import (
    UNBOUNDED,
    compare_structure,
    create_mapping_index,
    bind_mappings,
    apply_mapping,
)
from .trace import (
    RuleMetadata,
    RewriteStep,
    RewriteTrace,
)
from .engine import (
    DEFAULT_MATCH_DEPTH,
    Expansion,
    ExpansionEngine,
    expansions,
    default_engine,
    expand,
)

# Parsing and the binary Equation form
from .equation import (
    Operator,
    Equation,
)
from .parser import (
    PRECEDENCE,
    shunting_yard,
    build_tree,
    parse,
    parse_expression,
)

# Public API
__all__ = [
    # Version
    "__version__",
    # Errors
    "EqtreeError",
    "ParseError",
    "MismatchedParenthesesError",
    "UnterminatedBraceError",
    "UnknownOperatorError",
    "MalformedExpressionError",
    "IncompleteExpressionError",
    "UnsupportedOperationError",
    # Members
    "NumericType",
    "EquationMember",
    "EquationRepr",
    "NamedValue",
    "format_number",
    # Expression tree
    "Expression",
    "Sum",
    "Multiply",
    "Negate",
    "Divide",
    "Equal",
    "Value",
    "Text",
    "Mapping",
    "Variable",
    "walk",
    "get_variables",
    "contains_variable",
    "apply_variables",
    "cleanup",
    "get_coefficient",
    "map_children",
    # Simplification
    "DEFAULT_MAX_PASSES",
    "simplify",
    "simplify_node",
    # Matching
    "UNBOUNDED",
    "compare_structure",
    "create_mapping_index",
    "bind_mappings",
    "apply_mapping",
    # Engine
    "RuleMetadata",
    "RewriteStep",
    "RewriteTrace",
    "DEFAULT_MATCH_DEPTH",
    "Expansion",
    "ExpansionEngine",
    "expansions",
    "default_engine",
    "expand",
    # Parsing
    "Operator",
    "Equation",
    "PRECEDENCE",
    "shunting_yard",
    "build_tree",
    "parse",
    "parse_expression",
]
