#!/usr/bin/env python3
"""
EQTREE Feature Demonstration

This script walks through parsing, simplification and expansion.
"""

from eqtree import (
    Divide, EquationRepr, Mapping, Multiply, NamedValue, Sum,
    default_engine, expand, parse, parse_expression, shunting_yard, simplify,
)


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def demo_parsing():
    """Demonstrate the tokenizer and the two tree forms."""
    section("Parsing")

    for text in ["(a+b)/c", "A+B*C-D", "4+4*2/(1-5)", "{-1}/{v_1}"]:
        print(f"  {text:<14} postfix: {' '.join(shunting_yard(text))}")

    tree = parse("(a+b)/c")
    print(f"\n  Equation:   {tree.render()}")
    print(f"  Expression: {tree.lower()!r}")


def demo_legacy_simplify():
    """Demonstrate the binary Equation simplifier."""
    section("Equation Simplification")

    for text in ["(a+0)/c", "(0-1)/c", "0*{v_1}", "-(a)", "4+4*2/(1-5)"]:
        print(f"  {text:<14} => {parse(text).simplify().render()}")


def demo_simplify():
    """Demonstrate Expression simplification."""
    section("Expression Simplification")

    for text in ["(0+1)/c", "2*(3*x)", "-(a+b)", "(1+2)*x+0"]:
        print(f"  {text:<14} => {simplify(parse_expression(text))}")

    result, trace = simplify(parse_expression("(1+2)*(4/2)*x"), trace=True)
    print("\n  Traced:")
    for line in trace.format("chain").splitlines():
        print(f"    {line}")


def demo_expand():
    """Demonstrate expansion with the built-in rules."""
    section("Expansion")

    for text in ["(x+y)/z", "-((x+y)/z)", "x/y"]:
        result = expand(parse_expression(text))
        status = "expanded" if result else "unchanged"
        print(f"  {text:<14} => {result.expression}  ({status})")

    engine = default_engine()
    result, trace = engine.expand_all(parse_expression("(x+y+z)/w"), trace=True)
    print(f"\n  expand_all: {result}")
    print(f"  {trace.summary()}")


def demo_custom_rules():
    """Demonstrate adding rules to an engine."""
    section("Custom Rules")

    engine = default_engine()
    engine.add_rule(
        Multiply([Mapping(0), Sum([Mapping(1), Mapping(2)])]),
        Sum([Multiply([Mapping(0), Mapping(1)]), Multiply([Mapping(0), Mapping(2)])]),
        name="mul-over-sum",
        description="Distribute a factor over a sum",
    )
    print(f"  {engine}: {[meta.name for _, meta in engine]}")

    expr = parse_expression("a*((x+y)/z)")
    print(f"  {expr}  =>  {engine.expand_all(expr)}")


def demo_members():
    """Demonstrate bound leaves."""
    section("Bound Values")

    g = NamedValue("g", 9.81)
    t = EquationRepr("t_1", 2.0, latex="t_{1}")
    expr = parse_expression("{g}*{t_1}/2", bindings={"g": g, "t_1": t})
    print(f"  text:  {expr}")
    print(f"  latex: {expr.latex()}")
    print(f"  value: {expr.value()}")
    print(f"  Divide? {isinstance(expr, Divide)}")


def main():
    """Run all demonstrations."""
    print("EQTREE - Expression trees for equation authoring")
    print("Feature Demonstration")

    demo_parsing()
    demo_legacy_simplify()
    demo_simplify()
    demo_expand()
    demo_custom_rules()
    demo_members()

    print("\n" + "="*60)
    print(" Demo complete!")
    print("="*60)


if __name__ == "__main__":
    main()
