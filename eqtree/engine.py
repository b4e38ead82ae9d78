"""
Expansion engine: pattern-based rewriting of expression trees.

A rule is a pair of expressions. The pattern uses ``Mapping(i)``
placeholders for the parts that vary; the replacement mentions the same
placeholders. ``expand`` applies the first rule whose pattern structurally
matches the input:

    from eqtree import expand, parse_expression

    result = expand(parse_expression("(x+y)/z"))
    if result:
        print(result.expression)     # x/z + y/z

The default rule table distributes division over two- and three-term
sums. More rules can be added to an ``ExpansionEngine``:

    engine = default_engine()
    engine.add_rule(
        Multiply([Mapping(0), Sum([Mapping(1), Mapping(2)])]),
        Sum([Multiply([Mapping(0), Mapping(1)]),
             Multiply([Mapping(0), Mapping(2)])]),
        name="mul-over-sum",
    )
"""

import functools
import logging
from typing import Dict, List, Optional, Tuple

from .expression import Divide, Expression, Mapping, Negate, Sum, map_children
from .matcher import (
    MappingIndex, apply_mapping, bind_mappings, compare_structure,
)
from .trace import RewriteStep, RewriteTrace, RuleMetadata

logger = logging.getLogger(__name__)

DEFAULT_MATCH_DEPTH = 2

DEFAULT_MAX_STEPS = 1000


# ============================================================
# Expansion result
# ============================================================

class Expansion:
    """
    Outcome of an expansion attempt.

    Truthy when a rule rewrote the input. On failure ``expression`` is the
    unchanged input and ``rule`` is None; failure is a normal outcome, not
    an error.
    """

    __slots__ = ('expression', 'original', 'rule')

    def __init__(self, expression: Expression, original: Expression,
                 rule: Optional[RuleMetadata] = None):
        self.expression = expression
        self.original = original
        self.rule = rule

    @property
    def expanded(self) -> bool:
        return self.rule is not None

    def unwrap(self) -> Expression:
        """The expanded expression, or the unchanged input."""
        return self.expression

    def __bool__(self) -> bool:
        return self.expanded

    def __repr__(self) -> str:
        if self.expanded:
            return f"Expanded({self.expression!r})"
        return f"NotExpanded({self.expression!r})"


# ============================================================
# Engine
# ============================================================

class ExpansionEngine:
    """
    An ordered collection of expansion rules.

    Rules are tried by descending priority; rules with equal priority keep
    the order they were added in.

    Example:
        engine = ExpansionEngine()
        engine.add_rule(pattern, replacement, name="div-sum-2")
        engine.expand(expr)          # one rewrite at the root
        engine.expand_all(expr)      # rewrite everywhere until nothing fires
    """

    def __init__(self, depth: Optional[int] = DEFAULT_MATCH_DEPTH):
        """
        Initialize an ExpansionEngine.

        Args:
            depth: How many composite levels of a pattern must match the
                input (default: 2). None compares the entire tree.
        """
        self.depth = depth
        self._rules: List[List[Expression]] = []
        self._metadata: List[RuleMetadata] = []
        self._rule_names: Dict[str, int] = {}

    def _sort_by_priority(self) -> None:
        """Sort rules by priority (descending), keeping insertion order for ties."""
        if not self._rules:
            return

        indexed = [(self._metadata[i].priority, i, self._rules[i], self._metadata[i])
                   for i in range(len(self._rules))]
        indexed.sort(key=lambda x: (-x[0], x[1]))

        self._rules = [item[2] for item in indexed]
        self._metadata = [item[3] for item in indexed]

        self._rule_names = {}
        for idx, meta in enumerate(self._metadata):
            if meta.name:
                self._rule_names[meta.name] = idx

    def load_rules(self, rules: List[Tuple[Expression, Expression]]) -> 'ExpansionEngine':
        """Load (pattern, replacement) pairs without metadata."""
        for pattern, replacement in rules:
            self._rules.append([pattern, replacement])
            self._metadata.append(RuleMetadata())
        self._sort_by_priority()
        return self

    def add_rule(self, pattern: Expression, replacement: Expression,
                 name: Optional[str] = None,
                 description: Optional[str] = None,
                 priority: int = 0,
                 tags: Optional[List[str]] = None) -> 'ExpansionEngine':
        """Add a single rule with optional metadata."""
        self._rules.append([pattern, replacement])
        self._metadata.append(RuleMetadata(name=name, description=description,
                                           tags=tags, priority=priority))
        self._sort_by_priority()
        return self

    def get_rule(self, name: str) -> Optional[Tuple[List[Expression], RuleMetadata]]:
        """Get a rule and its metadata by name."""
        if name in self._rule_names:
            idx = self._rule_names[name]
            return self._rules[idx], self._metadata[idx]
        return None

    def get_metadata(self, index: int) -> RuleMetadata:
        """Get metadata for a rule by index."""
        return self._metadata[index] if index < len(self._metadata) else RuleMetadata()

    @property
    def rules(self) -> List[List[Expression]]:
        """All loaded [pattern, replacement] pairs, in the order they are tried."""
        return self._rules

    # ============================================================
    # Matching
    # ============================================================

    def _find(self, expr: Expression) -> Optional[int]:
        for rule_idx, (pattern, _) in enumerate(self._rules):
            if compare_structure(pattern, expr, self.depth):
                return rule_idx
        return None

    def rules_matching(self, expr: Expression) -> List[Tuple[RuleMetadata, MappingIndex]]:
        """
        Find every rule whose pattern matches an expression.

        Useful for debugging why an expression does or does not expand.

        Returns:
            List of (metadata, bindings) for each matching rule, where
            bindings[i] is the sub-tree bound to ``Mapping(i)``.
        """
        matching = []
        for rule_idx, (pattern, _) in enumerate(self._rules):
            if compare_structure(pattern, expr, self.depth):
                matching.append((self._metadata[rule_idx], bind_mappings(pattern, expr)))
        return matching

    def apply_once(self, expr: Expression) -> Tuple[Expression, Optional[RuleMetadata]]:
        """
        Apply at most one rule to the root of an expression.

        Returns:
            Tuple of (result, metadata) where:
                - result: The rewritten expression (or the input if no rule applied)
                - metadata: RuleMetadata of the applied rule, or None

        Example:
            result, applied = engine.apply_once(expr)
            if applied:
                print(f"Applied rule: {applied.name}")
        """
        expansion = self.expand(expr)
        return expansion.expression, expansion.rule

    def expand(self, expr: Expression) -> Expansion:
        """
        Rewrite an expression with the first rule whose pattern matches it.

        A negation around the whole input is set aside before matching and
        put back around the result, so rules need no negated variants. The
        attempt fails when no rule matches, or when the rewritten tree has
        the same structure as the input.

        Placeholders are bound with ``bind_mappings``, which walks the
        pattern and the input together: ``Mapping(i)`` receives the whole
        sub-tree standing at its position, sign included. For the default
        rules, ``(2*x + y)/z`` therefore becomes ``2*x/z + y/z``. This
        differs from the flat leaf order given by ``create_mapping_index``
        only when an operand is itself a composite tree; on such inputs
        leaf-order binding would change the expression's value.

        Args:
            expr: Expression to expand (not modified)

        Returns:
            An Expansion, truthy on success.
        """
        negated = isinstance(expr, Negate) and expr.child is not None
        inner = expr.child if negated else expr

        rule_idx = self._find(inner)
        if rule_idx is None:
            return Expansion(expr.clone(), expr)

        pattern, replacement = self._rules[rule_idx]
        result = apply_mapping(replacement, bind_mappings(pattern, inner))
        if compare_structure(result, inner, self.depth):
            logger.debug("rule %r leaves %s unchanged", self._metadata[rule_idx], inner)
            return Expansion(expr.clone(), expr)

        logger.debug("rule %r expanded %s -> %s", self._metadata[rule_idx], inner, result)
        if negated:
            result = Negate(result)
        return Expansion(result, expr, self._metadata[rule_idx])

    # ============================================================
    # Exhaustive expansion
    # ============================================================

    def expand_all(self, expr: Expression, max_steps: int = DEFAULT_MAX_STEPS,
                   trace: bool = False):
        """
        Expand every sub-tree, repeatedly, until no rule fires.

        Each pass expands children before their parent. Passes repeat until
        the rendering stops changing or ``max_steps`` passes have run.

        Args:
            expr: Expression to expand (not modified)
            max_steps: Maximum number of passes (default: 1000)
            trace: If True, return (result, trace) tuple

        Returns:
            Expanded expression, or (expression, trace) if trace=True

        Example:
            engine.expand_all(parse_expression("(x+y)/z + (a+b)/c"))
            # => x/z + y/z + a/c + b/c
        """
        trace_obj = RewriteTrace(initial=expr)
        current = expr.clone()
        rendered = current.render()

        for _ in range(max_steps):
            new_expr = self._bottomup_pass(current, trace_obj)
            new_rendered = new_expr.render()
            if new_rendered == rendered:
                break
            current, rendered = new_expr, new_rendered
        else:
            logger.warning("expansion stopped after %d passes", max_steps)

        trace_obj.final = current
        if trace:
            return current, trace_obj
        return current

    def _bottomup_pass(self, expr: Expression, trace_obj: RewriteTrace) -> Expression:
        """Single bottom-up pass: expand children, then try the rules on the parent."""
        current = map_children(expr, lambda child: self._bottomup_pass(child, trace_obj))
        if current.is_leaf():
            return current

        expansion = self.expand(current)
        if expansion:
            rule_idx = self._metadata.index(expansion.rule)
            trace_obj.add_step(RewriteStep(rule_idx, expansion.rule,
                                           current, expansion.expression))
            return expansion.expression
        return current

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"ExpansionEngine({len(self._rules)} rules)"

    def __call__(self, expr: Expression) -> Expansion:
        """Make engine callable: engine(expr) is shorthand for engine.expand(expr)."""
        return self.expand(expr)

    def __iter__(self):
        """Iterate over (rule, metadata) pairs."""
        return iter(zip(self._rules, self._metadata))

    def __contains__(self, name: str) -> bool:
        """Check if a named rule exists: 'div-sum-2' in engine."""
        return name in self._rule_names

    def __getitem__(self, name: str) -> Tuple[List[Expression], RuleMetadata]:
        """Get rule by name: engine['div-sum-2']."""
        if name not in self._rule_names:
            raise KeyError(f"No rule named '{name}'")
        idx = self._rule_names[name]
        return self._rules[idx], self._metadata[idx]

    @classmethod
    def from_rules(cls, rules: List[Tuple[Expression, Expression]],
                   depth: Optional[int] = DEFAULT_MATCH_DEPTH) -> 'ExpansionEngine':
        """Create engine from a list of (pattern, replacement) pairs."""
        return cls(depth=depth).load_rules(rules)

    def copy(self) -> 'ExpansionEngine':
        """Create a copy of this engine (rule trees are shared, never modified)."""
        new_engine = ExpansionEngine(depth=self.depth)
        new_engine._rules = self._rules.copy()
        new_engine._metadata = self._metadata.copy()
        new_engine._rule_names = self._rule_names.copy()
        return new_engine

    def __or__(self, other: 'ExpansionEngine') -> 'ExpansionEngine':
        """Union of two engines: engine1 | engine2."""
        result = self.copy()
        for rule, meta in other:
            result._rules.append(rule)
            result._metadata.append(meta)
        result._sort_by_priority()
        return result


# ============================================================
# Default rule table
# ============================================================

_DIVISION_TERMS = (2, 3)


def _division_over_sum(terms: int) -> Tuple[Expression, Expression]:
    # (a + b + ...) / d  =>  a/d + b/d + ...
    divisor = Mapping(terms)
    pattern = Divide(Sum([Mapping(i) for i in range(terms)]), divisor)
    replacement = Sum([Divide(Mapping(i), divisor.clone()) for i in range(terms)])
    return pattern, replacement


@functools.lru_cache(maxsize=None)
def expansions() -> Tuple[Tuple[Expression, Expression], ...]:
    """
    The built-in (pattern, replacement) table.

    Built once on first use and shared afterwards; callers must not modify
    the returned trees.
    """
    return tuple(_division_over_sum(terms) for terms in _DIVISION_TERMS)


@functools.lru_cache(maxsize=None)
def _shared_engine() -> ExpansionEngine:
    engine = ExpansionEngine()
    for terms, (pattern, replacement) in zip(_DIVISION_TERMS, expansions()):
        engine.add_rule(pattern, replacement,
                        name=f"div-sum-{terms}",
                        description=f"distribute division over a {terms}-term sum",
                        tags=["division"])
    return engine


def default_engine() -> ExpansionEngine:
    """A fresh engine loaded with the built-in rules, safe to extend."""
    return _shared_engine().copy()


def expand(expr: Expression) -> Expansion:
    """Expand an expression with the built-in rules (see ExpansionEngine.expand)."""
    return _shared_engine().expand(expr)
