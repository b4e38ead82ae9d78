"""Tests for expression simplification."""

import logging
import math

import pytest
from eqtree import (
    Divide, Equal, EquationMember, IncompleteExpressionError, Mapping,
    Multiply, NamedValue, Negate, RewriteTrace, Sum, Text, Value, Variable,
    parse_expression, simplify, simplify_node,
)

x = Text("x")
y = Text("y")


class TestSimplifyMultiply:
    """Tests for products."""

    def test_constants_fold(self):
        """All-constant products fold to a single value."""
        assert simplify_node(Multiply([Value(2), Value(3)])) == Value(6)

    def test_coefficient_is_collected(self):
        """Constants fold into one coefficient next to the symbols."""
        assert simplify_node(Multiply([Value(2), Value(3), x])) == Multiply([Value(6), x])

    def test_unit_coefficient_is_kept(self):
        """The coefficient stays even when it is 1."""
        assert simplify_node(Multiply([x, y])) == Multiply([x, y, Value(1)])

    def test_nested_products_flatten(self):
        """Nested products are absorbed into the parent."""
        expr = Multiply([Value(2), Multiply([Value(3), x])])
        assert simplify_node(expr) == Multiply([x, Value(6)])

    def test_zero_coefficient(self):
        """A zero factor gives a zero coefficient."""
        assert simplify(parse_expression("0*{v_1}")) == Multiply([Text("v_1"), Value(0)])


class TestSimplifySum:
    """Tests for sums."""

    def test_constants_fold(self):
        """Constants fold into one running total."""
        assert simplify_node(Sum([Value(2), x, Value(3)])) == Sum([x, Value(5)])

    def test_zero_total_dropped(self):
        """A zero total is left out."""
        assert simplify_node(Sum([Value(0), x])) == x

    def test_all_constants(self):
        """A sum of constants is a constant."""
        assert simplify_node(Sum([Value(1), Value(2)])) == Value(3)

    def test_cancelling_constants(self):
        """Constants that cancel leave the symbols."""
        assert simplify_node(Sum([Value(1), x, y, Value(-1)])) == Sum([x, y])

    def test_nested_sums_flatten(self):
        """Nested sums are spliced into the parent."""
        expr = Sum([x, Sum([y, Text("z")])])
        assert simplify_node(expr) == Sum([x, y, Text("z")])

    def test_empty_sum(self):
        """An empty sum is zero."""
        assert simplify_node(Sum([])) == Value(0)

    def test_negated_constant_folds(self):
        """Negated constants join the total."""
        assert simplify_node(Sum([x, Value(5), Negate(Value(2))])) == Sum([x, Value(3)])


class TestSimplifyNegate:
    """Tests for negation."""

    def test_double_negation(self):
        """-(-x) is x."""
        assert simplify_node(Negate(Negate(x))) == x

    def test_negate_value(self):
        """Negating a constant folds."""
        assert simplify_node(Negate(Value(2))) == Value(-2)

    def test_negate_sum_distributes(self):
        """Negation distributes over a sum."""
        assert simplify_node(Negate(Sum([x, y]))) == Sum([Negate(x), Negate(y)])

    def test_negate_symbol(self):
        """A negated symbol has nothing to simplify."""
        assert simplify_node(Negate(x)) is None

    def test_negate_simplified_child(self):
        """The child is simplified and re-wrapped."""
        expr = Negate(Multiply([Value(2), Value(3), x]))
        assert simplify_node(expr) == Negate(Multiply([Value(6), x]))

    def test_negate_child_folding_to_value(self):
        """A child that folds to a constant is negated arithmetically."""
        assert simplify_node(Negate(Multiply([Value(2), Value(3)]))) == Value(-6)

    def test_missing_child(self):
        """An incomplete negation cannot be simplified."""
        with pytest.raises(IncompleteExpressionError):
            simplify_node(Negate())


class TestSimplifyDivide:
    """Tests for division."""

    def test_constants_fold(self):
        """Constant quotients fold."""
        assert simplify_node(Divide(Value(6), Value(3))) == Value(2)

    def test_symbols_do_not_simplify(self):
        """x/y reports nothing to simplify."""
        assert simplify_node(Divide(x, y)) is None

    def test_numerator_simplifies(self):
        """Only the side that changed is rebuilt."""
        expr = Divide(Sum([Value(1), Value(2)]), x)
        assert simplify_node(expr) == Divide(Value(3), x)

    def test_denominator_simplifies(self):
        """A constant denominator still counts as simplified."""
        assert simplify_node(Divide(x, Value(2))) == Divide(x, Value(2))

    def test_missing_denominator(self):
        """An incomplete division cannot be simplified."""
        with pytest.raises(IncompleteExpressionError):
            simplify_node(Divide(x))


class TestSimplifyEqual:
    """Tests for equations."""

    def test_both_sides(self):
        """Each side is simplified independently."""
        expr = Equal(y, Sum([Value(1), Value(2)]))
        assert simplify_node(expr) == Equal(y, Value(3))

    def test_unchanged(self):
        """Equations of symbols have nothing to simplify."""
        assert simplify_node(Equal(y, x)) is None


class TestSimplifyLeaves:
    """Tests for leaves."""

    def test_value_copies(self):
        """Values come back as themselves."""
        assert simplify_node(Value(4)) == Value(4)

    def test_symbols(self):
        """Text and Mapping leaves report nothing to simplify."""
        assert simplify_node(x) is None
        assert simplify_node(Mapping(0)) is None

    def test_variable_hook(self):
        """Variables use their member's simplify hook."""
        class Constant(EquationMember):
            def equation_repr(self):
                return "k"

            def simplify(self):
                return 4.0

        assert simplify_node(Variable(Constant())) == Value(4)
        assert simplify_node(Variable(NamedValue("g", 9.81))) is None


class TestSimplifyFixedPoint:
    """Tests for the fixed-point driver."""

    def test_nested_constants(self):
        """Repeated passes fold everything that can be folded."""
        expr = parse_expression("(0+1)/c")
        assert simplify(expr) == Divide(Value(1), Text("c"))

    def test_sign_handling(self):
        """(0-1)/c becomes -1/c."""
        assert simplify(parse_expression("(0-1)/c")) == Divide(Value(-1), Text("c"))

    def test_idempotent(self):
        """Simplifying twice changes nothing."""
        for text in ["(a+0)/c", "-(a+b)", "2*(3*x)", "(1+2)*(a-a)", "{v_1}/2+0",
                     "a+b+c+d", "a+b+c+d+e"]:
            once = simplify(parse_expression(text))
            assert simplify(once) == once
            assert simplify(once).render() == once.render()

    def test_input_not_modified(self):
        """simplify works on a copy."""
        expr = Sum([Value(1), Value(2), x])
        simplify(expr)
        assert expr == Sum([Value(1), Value(2), x])

    def test_flattening_is_kept(self):
        """A pass that only reshapes the tree is still adopted."""
        expr = Sum([x, Sum([y, Text("z")])])
        result = simplify(expr)
        assert result == Sum([x, y, Text("z")])
        assert len(result) == 3

    def test_parsed_chain_fully_flattened(self):
        """Every level of a parsed addition chain is flattened in one call."""
        names = "abcde"
        result = simplify(parse_expression("+".join(names)))
        assert result == Sum([Text(n) for n in names])
        assert all(isinstance(term, Text) for term in result.terms)

    def test_nan_result_terminates(self, caplog):
        """A folded 0/0 settles without hitting the pass cap."""
        with caplog.at_level(logging.WARNING, logger="eqtree.simplifier"):
            result = simplify(parse_expression("0/0"))
        assert math.isnan(result.value())
        assert caplog.text == ""

    def test_negated_sum(self):
        """-(a + b) distributes and stays stable."""
        result = simplify(parse_expression("-(a+b)"))
        assert result == Sum([Negate(Text("a")), Negate(Text("b"))])

    def test_trace(self):
        """trace=True reports each pass."""
        result, trace = simplify(parse_expression("(1+2)*x"), trace=True)
        assert isinstance(trace, RewriteTrace)
        assert trace.final is result
        assert trace.rules_applied() == ["simplify"]
        assert trace.initial.render() == "1 + 2 * x"

    def test_no_passes_needed(self):
        """Nothing to do means an empty trace."""
        result, trace = simplify(x, trace=True)
        assert result == x
        assert not trace

    def test_pass_cap(self, caplog):
        """The pass cap stops the loop with a warning."""
        expr = Negate(Sum([Value(1), Multiply([Value(2), Value(3)])]))
        with caplog.at_level(logging.WARNING, logger="eqtree.simplifier"):
            result = simplify(expr, max_passes=1)
        assert "stopped after 1 passes" in caplog.text
        assert result.render() != expr.render()
