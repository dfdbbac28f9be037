"""Tests for Coxeter diagram parsing, classification and group generation."""

from fractions import Fraction

import numpy as np
import pytest

from hedron.config import GeometryOptions
from hedron.construction.coxeter import (
    CoxeterDiagram,
    check_finite,
    generate_group,
    parse_diagram,
)
from hedron.errors import InfiniteGroup, InvalidDiagram, TooLarge


class TestParse:
    def test_linear_diagram(self):
        d = parse_diagram("x3o3o")
        assert d.rank == 3
        assert d.rings == (1.0, 0.0, 0.0)
        assert d.orders[0][1] == 3
        assert d.orders[1][2] == 3
        assert d.orders[0][2] == 2

    def test_matches_linear_constructor(self):
        assert parse_diagram("x4o3o") == CoxeterDiagram.linear([4, 3], [1, 0, 0])

    def test_classmethod(self):
        assert CoxeterDiagram.parse("x3o") == parse_diagram("x3o")

    def test_adjacent_nodes_are_orthogonal(self):
        d = parse_diagram("xo3x")
        assert d.orders[0][1] == 2
        assert d.orders[1][2] == 3

    def test_whitespace(self):
        assert parse_diagram("  x 3 o\t3o ") == parse_diagram("x3o3o")

    def test_explicit_value(self):
        d = parse_diagram("(1.5)3o")
        assert d.rings == (1.5, 0.0)

    def test_node_letters(self):
        d = parse_diagram("q f")
        assert d.rings == pytest.approx((2**0.5, (5**0.5 + 1) / 2))

    def test_rational_edge(self):
        d = parse_diagram("x5/2o")
        assert d.orders[0][1] == Fraction(5, 2)
        assert not d.is_integral()

    def test_virtual_node_branch(self):
        d = parse_diagram("x3o3o *b3o")
        assert d.rank == 4
        assert d.neighbours(1) == [0, 2, 3]

    def test_virtual_node_from_end(self):
        d = parse_diagram("x3o3o3o *-a3*a")
        assert d.orders[3][0] == 3

    def test_edge_of_two_is_dropped(self):
        assert parse_diagram("x2o").orders[0][1] == 2

    @pytest.mark.parametrize("text, message, pos", [
        ("", "ended unexpectedly", 0),
        ("x3", "ended unexpectedly", 2),
        ("x3y", "invalid symbol", 2),
        ("x#o", "invalid symbol", 1),
        ("x1o", "invalid edge", 1),
        ("x3/o", "invalid symbol", 3),
        ("(1.5", "mismatched parenthesis", 4),
        ("(abc)3o", "could not parse node value", 3),
        ("s3o", "snub nodes are not supported", 0),
        ("*Ax", "invalid virtual node", 1),
    ])
    def test_errors_carry_position(self, text, message, pos):
        with pytest.raises(InvalidDiagram, match=message) as excinfo:
            parse_diagram(text)
        assert excinfo.value.pos == pos

    def test_repeat_edge(self):
        with pytest.raises(InvalidDiagram, match="repeat edge"):
            parse_diagram("x3o3o *a3*b")

    def test_self_edge(self):
        with pytest.raises(InvalidDiagram, match="itself"):
            parse_diagram("x3o *a3*a")

    def test_missing_virtual_node(self):
        with pytest.raises(InvalidDiagram, match="missing node"):
            parse_diagram("x3o *z3o")


class TestDiagramValidation:
    def test_asymmetric_orders(self):
        with pytest.raises(InvalidDiagram, match="symmetric"):
            CoxeterDiagram(((1, 3), (4, 1)), (1.0, 0.0))

    def test_ring_count(self):
        with pytest.raises(InvalidDiagram, match="ring values"):
            CoxeterDiagram(((1, 3), (3, 1)), (1.0,))

    def test_empty(self):
        with pytest.raises(InvalidDiagram):
            CoxeterDiagram((), ())

    def test_orders_normalised_to_fractions(self):
        d = CoxeterDiagram(((1, 3), (3, 1)), (1, 0))
        assert isinstance(d.orders[0][1], Fraction)
        assert d.rings == (1.0, 0.0)

    def test_str_round_trip(self):
        for text in ["x4o3o", "x3o3o3x", "xo3x"]:
            assert str(parse_diagram(text)) == text


class TestClassify:
    @pytest.mark.parametrize("text, names, order", [
        ("x", ["A1"], 2),
        ("x3o3o", ["A3"], 24),
        ("x4o3o", ["B3"], 48),
        ("o3o3o4x", ["B4"], 384),
        ("x3o4o3o", ["F4"], 1152),
        ("x5o3o", ["H3"], 120),
        ("o3o3o5x", ["H4"], 14400),
        ("x3o3o *b3o", ["D4"], 192),
        ("x3o3o3o *c3o3o", ["E6"], 51840),
        ("x5o", ["I2(5)"], 10),
        ("x5/2o", ["I2(5)"], 10),
        ("x3o x4o", ["A2", "I2(4)"], 48),
        ("xxx", ["A1", "A1", "A1"], 8),
    ])
    def test_finite_types(self, text, names, order):
        d = parse_diagram(text)
        assert d.classify() == names
        assert d.group_order() == order
        assert d.is_finite()

    @pytest.mark.parametrize("text", [
        "x3o3o3*a",
        "x4o4o",
        "x6o3o",
        "x3o5o3o",
        "x3o3o *b3o *b3o",
    ])
    def test_infinite_types(self, text):
        d = parse_diagram(text)
        assert not d.is_finite()
        assert d.group_order() is None

    @pytest.mark.parametrize("text", ["x5/2o5o", "o5/2x5o", "o5/2o5x"])
    def test_star_diagram_is_finite_without_type(self, text):
        """Star diagrams fit in spherical space but match no type."""
        d = parse_diagram(text)
        assert d.classify() == [None]
        assert d.is_spherical()
        assert d.is_finite()
        assert d.group_order() is None

    def test_components(self):
        assert parse_diagram("x3o x4o").components() == [[0, 1], [2, 3]]

    def test_is_minimal(self):
        assert parse_diagram("x3o x4o").is_minimal()
        assert not parse_diagram("x3o o4o").is_minimal()


class TestGeometry:
    def test_normals_reproduce_gram_matrix(self):
        d = parse_diagram("x5o3o")
        normals = d.mirror_normals()
        np.testing.assert_allclose(normals @ normals.T, d.gram_matrix(), atol=1e-12)

    def test_seed_distances(self):
        d = parse_diagram("x4o3x")
        seed = d.seed_point()
        np.testing.assert_allclose(d.mirror_normals() @ seed, [0.5, 0.0, 0.5], atol=1e-12)

    def test_reflections_are_involutions(self):
        for r in parse_diagram("x3o3o").reflections():
            np.testing.assert_allclose(r @ r, np.eye(3), atol=1e-12)

    def test_hyperbolic_has_no_normals(self):
        with pytest.raises(InfiniteGroup):
            parse_diagram("x7o3o").mirror_normals()


class TestGenerateGroup:
    @pytest.mark.parametrize("text, order", [
        ("x3o3o", 24),
        ("x4o3o", 48),
        ("x5o3o", 120),
        ("x3o x3o", 36),
        ("x5/2o", 10),
    ])
    def test_order(self, text, order):
        assert len(generate_group(parse_diagram(text))) == order

    def test_starts_with_identity(self):
        group = generate_group(parse_diagram("x4o3o"))
        np.testing.assert_allclose(group[0], np.eye(3))

    def test_elements_are_orthogonal(self):
        for g in generate_group(parse_diagram("x3o4o")):
            np.testing.assert_allclose(g @ g.T, np.eye(3), atol=1e-10)

    def test_elements_are_distinct(self):
        group = generate_group(parse_diagram("x4o3o"))
        flat = group.reshape(len(group), -1)
        dists = np.linalg.norm(flat[:, None, :] - flat[None, :, :], axis=2)
        assert np.all(dists[~np.eye(len(group), dtype=bool)] > 1e-6)

    def test_workers_give_same_result(self):
        d = parse_diagram("x3o3o3o")
        serial = generate_group(d, GeometryOptions(workers=1))
        threaded = generate_group(d, GeometryOptions(workers=4))
        np.testing.assert_allclose(serial, threaded)

    def test_too_large_before_work(self):
        with pytest.raises(TooLarge) as excinfo:
            generate_group(parse_diagram("x3o3o3o3o"), GeometryOptions(max_group_order=100))
        assert excinfo.value.size == 720
        assert excinfo.value.limit == 100

    @pytest.mark.parametrize("text", ["x3o3o3*a", "x4o4o", "x7o3o"])
    def test_infinite(self, text):
        with pytest.raises(InfiniteGroup):
            generate_group(parse_diagram(text))

    def test_check_finite_returns_order(self):
        assert check_finite(parse_diagram("x3o4o3o")) == 1152

    def test_star_diagram_generates_h3(self):
        d = parse_diagram("x5/2o5o")
        assert check_finite(d) is None
        assert len(generate_group(d)) == 120

    def test_dense_group_stops_at_ceiling(self):
        """A spherical diagram outside Schwarz's list never closes."""
        d = parse_diagram("x7/2o3o")
        assert d.is_spherical()
        with pytest.raises(TooLarge):
            generate_group(d, GeometryOptions(max_group_order=1000))
