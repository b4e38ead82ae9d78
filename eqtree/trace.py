"""
Records of how a tree was reduced or expanded.

``simplify(..., trace=True)`` records one step per simplification pass that
changed the rendered text; ``ExpansionEngine.expand_all(..., trace=True)``
records one step per expansion rule that fired. Both use the same
``RewriteTrace``, so callers can print either kind the same way:

    result, trace = default_engine().expand_all(expr, trace=True)
    print(trace.format("chain"))
    print(trace.summary())
"""

from collections import Counter
from typing import Any, Dict, List, Optional

TRACE_STYLES = ("verbose", "compact", "rules", "chain")


def _text(expr: Any) -> str:
    return "" if expr is None else str(expr)


class RuleMetadata:
    """
    Descriptive data attached to an expansion rule or to the simplifier.

    Rules with a higher ``priority`` are tried first by an ExpansionEngine;
    equal priorities keep insertion order.
    """

    def __init__(self, name: Optional[str] = None, description: Optional[str] = None,
                 tags: Optional[List[str]] = None, priority: int = 0):
        self.name = name
        self.description = description
        self.tags = tags or []
        self.priority = priority

    def __repr__(self) -> str:
        if not self.name:
            return "<anonymous>"
        text = "@" + self.name
        if self.priority:
            text += f"[{self.priority}]"
        if self.description:
            text += f" \"{self.description}\""
        return text


class RewriteStep:
    """
    One change to a tree.

    For the simplifier ``rule_index`` is the pass number; for expansion it
    is the position of the rule that fired in its engine.
    """

    def __init__(self, rule_index: int, metadata: RuleMetadata,
                 before: Any, after: Any):
        self.rule_index = rule_index
        self.metadata = metadata
        self.before = before
        self.after = after

    @property
    def label(self) -> str:
        """Rule name, or ``rule[i]`` for an unnamed rule."""
        return self.metadata.name or f"rule[{self.rule_index}]"

    def __repr__(self) -> str:
        return f"{self.label}: {_text(self.before)} -> {_text(self.after)}"

    def to_dict(self) -> Dict:
        return {
            "rule_index": self.rule_index,
            "rule_name": self.metadata.name,
            "description": self.metadata.description,
            "before": _text(self.before),
            "after": _text(self.after),
        }


class RewriteTrace:
    """
    The trees an expression passed through on its way to a result.

    ``initial`` is the input, ``final`` the returned tree and ``steps`` the
    changes in between. An empty trace means the input came back as it was.
    """

    def __init__(self, initial: Any = None):
        self.initial: Any = initial
        self.final: Any = None
        self.steps: List[RewriteStep] = []

    def add_step(self, step: RewriteStep):
        self.steps.append(step)

    def format(self, style: str = "verbose") -> str:
        """
        Render the trace as text.

        Args:
            style: "verbose" lists every step between the initial and final
                trees; "compact" puts the rule labels on one line between
                them; "rules" gives only the labels; "chain" shows each
                intermediate tree on its own line.

        Raises:
            ValueError: For any other style.
        """
        if style not in TRACE_STYLES:
            raise ValueError(f"Unknown trace style {style!r}; "
                             f"expected one of {', '.join(TRACE_STYLES)}")
        labels = self.rules_applied()
        if style == "verbose":
            return repr(self)
        if style == "compact":
            return f"{_text(self.initial)} --[{', '.join(labels)}]--> {_text(self.final)}"
        if style == "rules":
            return " -> ".join(labels) or "(unchanged)"

        lines = [_text(self.initial)]
        for step in self.steps:
            lines.append(f"  --({step.label})-->")
            lines.append(_text(step.after))
        return "\n".join(lines)

    def __repr__(self) -> str:
        lines = [f"Initial: {_text(self.initial)}"]
        lines.extend(f"  {number}. {step}" for number, step in enumerate(self.steps, 1))
        lines.append(f"Final: {_text(self.final)}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    def __bool__(self) -> bool:
        return bool(self.steps)

    def to_dict(self) -> Dict:
        """Plain-data form with every tree rendered as text."""
        return {
            "initial": _text(self.initial),
            "final": _text(self.final),
            "steps": [step.to_dict() for step in self.steps],
            "step_count": len(self.steps),
        }

    def rule_counts(self) -> Dict[str, int]:
        """Number of steps per rule label, in order of first use."""
        return dict(Counter(self.rules_applied()))

    def rules_applied(self) -> List[str]:
        return [step.label for step in self.steps]

    def summary(self) -> str:
        """One line describing the trace, e.g. for logging."""
        if not self.steps:
            return "Expression unchanged"
        label, count = Counter(self.rules_applied()).most_common(1)[0]
        return (f"{len(self.steps)} rewrites by {len(self.rule_counts())} distinct rules; "
                f"{label} fired most ({count} times)")
