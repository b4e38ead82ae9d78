"""Tests for structural matching and placeholder substitution."""

from eqtree import (
    UNBOUNDED, Divide, Equal, Mapping, Multiply, Negate, Sum, Text, Value,
    apply_mapping, bind_mappings, compare_structure, create_mapping_index,
    parse_expression,
)

x = Text("x")
y = Text("y")
z = Text("z")

DIV_SUM = Divide(Sum([Mapping(0), Mapping(1)]), Mapping(2))


class TestCompareStructure:
    """Tests for compare_structure()."""

    def test_identical_patterns(self):
        """A pattern matches itself."""
        assert compare_structure(DIV_SUM, DIV_SUM.clone())

    def test_pattern_matches_concrete(self):
        """Placeholders match concrete leaves."""
        assert compare_structure(DIV_SUM, parse_expression("(x+y)/z"))

    def test_leaf_kinds_interchangeable(self):
        """Text and Value match each other in either direction."""
        assert compare_structure(Text("x"), Value(1))
        assert compare_structure(Value(1), Text("x"))

    def test_mapping_matches_composite(self):
        """A placeholder matches a whole sub-tree."""
        assert compare_structure(Mapping(0), Sum([x, y]))
        assert compare_structure(Sum([x, y]), Mapping(0))

    def test_length_mismatch(self):
        """Sums of different length do not match."""
        assert not compare_structure(Sum([x, y]), Sum([x, y, z]))
        assert not compare_structure(Multiply([x, y]), Multiply([x]))

    def test_kind_mismatch(self):
        """Different composite kinds do not match."""
        assert not compare_structure(Sum([x, y]), Multiply([x, y]))
        assert not compare_structure(Divide(x, y), Sum([x, y]))

    def test_composite_against_leaf(self):
        """A composite node does not match a plain leaf."""
        assert not compare_structure(Sum([x, y]), x)

    def test_divide_numerator_must_match(self):
        """Divide compares numerators and denominators."""
        expr = Divide(Multiply([x, y]), z)
        assert not compare_structure(DIV_SUM, expr)

    def test_negation_is_transparent(self):
        """A negation on either side is looked through."""
        assert compare_structure(DIV_SUM, Negate(parse_expression("(x+y)/z")))
        assert compare_structure(Negate(x), y)
        assert compare_structure(Sum([Negate(x), y]), Sum([x, Negate(y)]))

    def test_depth_zero_matches_anything(self):
        """At depth 0 any two trees match."""
        assert compare_structure(Sum([x, y]), Multiply([x]), depth=0)

    def test_depth_limits_descent(self):
        """Only the requested number of levels is compared."""
        ls = Divide(Sum([x, Sum([x, y])]), z)
        rs = Divide(Sum([x, Multiply([x, y])]), z)
        assert compare_structure(ls, rs, depth=2)
        assert not compare_structure(ls, rs, depth=3)
        assert not compare_structure(ls, rs, depth=UNBOUNDED)

    def test_three_term_pattern(self):
        """The three-term division pattern needs a three-term sum."""
        pattern = Divide(Sum([Mapping(0), Mapping(1), Mapping(2)]), Mapping(3))
        assert compare_structure(pattern, Divide(Sum([x, y, z]), Value(8)))
        assert not compare_structure(pattern, parse_expression("(x+y)/{8}"))

    def test_parsed_chains_nest(self):
        """Parsed a+b+c is a nested two-term sum."""
        pattern = Divide(Sum([Mapping(0), Mapping(1), Mapping(2)]), Mapping(3))
        assert not compare_structure(pattern, parse_expression("(x+y+z)/{8}"))
        assert compare_structure(DIV_SUM, parse_expression("(x+y+z)/{8}"))


class TestCreateMappingIndex:
    """Tests for create_mapping_index()."""

    def test_pattern_leaves(self):
        """Placeholders are collected in traversal order."""
        assert create_mapping_index(DIV_SUM) == [Mapping(0), Mapping(1), Mapping(2)]

    def test_concrete_leaves(self):
        """Numerator leaves come before denominator leaves."""
        leaves = create_mapping_index(parse_expression("(x+y)/{8}"))
        assert leaves == [x, y, Value(8)]

    def test_looks_through_negation(self):
        """Negated leaves are collected without their sign."""
        leaves = create_mapping_index(Sum([Negate(x), Multiply([y, z])]))
        assert leaves == [x, y, z]

    def test_equal_sides(self):
        """Left-hand side leaves come first."""
        assert create_mapping_index(Equal(y, x)) == [y, x]


class TestBindMappings:
    """Tests for bind_mappings()."""

    def test_leaf_bindings_agree_with_index(self):
        """Leaf-aligned matches bind like create_mapping_index."""
        expr = parse_expression("(x+y)/z")
        assert bind_mappings(DIV_SUM, expr) == create_mapping_index(expr)

    def test_composite_binding(self):
        """A placeholder facing a sub-tree binds the whole sub-tree."""
        expr = Divide(Sum([Multiply([Value(2), x]), y]), z)
        assert bind_mappings(DIV_SUM, expr) == [Multiply([Value(2), x]), y, z]

    def test_negated_terms(self):
        """Negated terms keep their sign."""
        expr = Divide(Sum([Negate(x), Negate(y)]), Value(8))
        assert bind_mappings(DIV_SUM, expr) == [Negate(x), Negate(y), Value(8)]

    def test_negated_numerator_pushes_sign(self):
        """A negated numerator sum negates each bound term."""
        expr = Divide(Negate(Sum([x, y])), z)
        assert bind_mappings(DIV_SUM, expr) == [Negate(x), Negate(y), z]

    def test_negated_denominator_keeps_sign_below(self):
        """A negated denominator sum binds as a whole."""
        expr = Divide(Sum([x, y]), Negate(z))
        assert bind_mappings(DIV_SUM, expr) == [x, y, Negate(z)]

    def test_unused_indices(self):
        """Indices the pattern does not use are None."""
        pattern = Divide(Mapping(0), Mapping(2))
        assert bind_mappings(pattern, Divide(x, y)) == [x, None, y]


class TestApplyMapping:
    """Tests for apply_mapping()."""

    def test_substitution(self):
        """Placeholders are replaced by their bindings."""
        template = Sum([Divide(Mapping(0), Mapping(2)), Divide(Mapping(1), Mapping(2))])
        result = apply_mapping(template, [x, y, z])
        assert result == Sum([Divide(x, z), Divide(y, z)])

    def test_out_of_range(self):
        """Missing bindings degrade to zero."""
        assert apply_mapping(Sum([Mapping(0), Mapping(5)]), [x]) == Sum([x, Value(0)])

    def test_literal_leaves_reset(self):
        """Template literals become zero."""
        assert apply_mapping(Multiply([Value(2), Mapping(0)]), [x]) == Multiply([Value(0), x])
        assert apply_mapping(Text("q"), [x]) == Value(0)

    def test_bindings_are_copied(self):
        """Each use of a binding is an independent copy."""
        binding = Negate(x)
        result = apply_mapping(Sum([Mapping(0), Mapping(0)]), [binding])
        assert result.terms[0] is not binding
        assert result.terms[0] is not result.terms[1]

    def test_negate_and_equal_rebuilt(self):
        """Templates may contain any composite node."""
        template = Equal(Negate(Mapping(0)), Mapping(1))
        assert apply_mapping(template, [x, y]) == Equal(Negate(x), y)
