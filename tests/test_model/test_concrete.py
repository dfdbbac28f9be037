"""Tests for ConcretePolytope metrics, degeneracy checks and operators."""

import math

import numpy as np
import pytest

from hedron.construction.shapes import abstract_polygon, hypercube, simplex
from hedron.errors import Degenerate, InvalidOperand
from hedron.geometry import Hypersphere
from hedron.model.abstract import AbstractPolytope
from hedron.model.concrete import ConcretePolytope


class TestConstruction:
    def test_vertex_count_mismatch(self):
        with pytest.raises(InvalidOperand, match="positions"):
            ConcretePolytope(abstract_polygon(4), np.zeros((3, 2)))

    def test_vertices_are_read_only(self, cube):
        with pytest.raises(ValueError):
            cube.vertices[0, 0] = 5.0

    def test_input_array_is_copied(self):
        coords = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
        p = ConcretePolytope(abstract_polygon(3), coords)
        coords[0, 0] = 9.0
        assert p.vertices[0, 0] == 0.0

    def test_from_subs(self):
        p = ConcretePolytope.from_subs(
            [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]],
            [[[0, 1], [1, 2], [0, 2]], [[0, 1, 2]]],
        )
        assert p.element_counts() == [1, 3, 3, 1]
        assert p.is_valid()

    def test_dimensions(self, cube):
        assert cube.rank == 3
        assert cube.dim == 3
        assert cube.has_coordinates()
        assert cube.edge_count == 12

    def test_isomorphic_to_abstract(self, cube, abstract_cube):
        assert cube.is_isomorphic(abstract_cube)


class TestMetrics:
    def test_cube_circumradius(self, cube):
        assert cube.circumradius() == pytest.approx(math.sqrt(3) / 2)

    def test_tetrahedron_circumradius(self, tetrahedron):
        assert tetrahedron.circumradius() == pytest.approx(math.sqrt(3 / 8))

    def test_circumsphere_centre(self, tetrahedron):
        sphere = tetrahedron.circumsphere()
        np.testing.assert_allclose(sphere.centre, np.zeros(3), atol=1e-12)

    def test_no_circumsphere(self):
        kite = ConcretePolytope(
            abstract_polygon(4), [[0.0, 0.0], [1.0, 0.0], [2.0, 2.0], [0.0, 1.0]],
        )
        assert kite.circumsphere() is None
        assert kite.circumradius() is None

    def test_gravicenter(self, cube):
        np.testing.assert_allclose(cube.gravicenter(), np.zeros(3), atol=1e-12)
        np.testing.assert_allclose(
            cube.translate([1.0, 2.0, 3.0]).gravicenter(), [1.0, 2.0, 3.0],
        )

    def test_edge_lengths(self, cube):
        np.testing.assert_allclose(cube.edge_lengths(), np.ones(12))
        assert cube.edge_length(0) == pytest.approx(1.0)

    def test_is_equilateral(self, cube, tetrahedron):
        assert cube.is_equilateral(1.0)
        assert tetrahedron.is_equilateral()
        assert not cube.is_equilateral(2.0)

    def test_midradius(self, cube):
        assert cube.midradius() == pytest.approx(math.sqrt(2) / 2)

    def test_is_flat(self, cube):
        assert cube.is_flat(2, 0)
        assert cube.is_flat(1, 0)

    def test_skew_polygon_is_not_flat(self, tetrahedron):
        skew = ConcretePolytope(abstract_polygon(4), tetrahedron.vertices)
        assert not skew.is_flat(2, 0)

    def test_tolerance_scales(self, cube):
        assert cube.tolerance() == pytest.approx(5e-10)
        assert cube.scale(100.0).tolerance() == pytest.approx(5e-8)


class TestDegeneracy:
    def test_regular_shapes_are_not_degenerate(self, cube, tetrahedron):
        assert cube.degeneracies() == []
        assert not tetrahedron.is_degenerate()
        cube.check_nondegenerate()

    def test_coincident_vertices(self):
        p = ConcretePolytope(
            abstract_polygon(4), [[0.0, 0.0], [0.0, 0.0], [1.0, 1.0], [0.0, 1.0]],
        )
        found = p.degeneracies()
        assert "vertices 0 and 1 coincide" in found
        assert "edge 0 has zero length" in found
        with pytest.raises(Degenerate):
            p.check_nondegenerate()

    def test_flattened_cube(self, cube):
        flat = cube.affine_transform(np.diag([1.0, 1.0, 0.0]))
        assert flat.is_degenerate()
        assert any("spans" in d for d in flat.degeneracies())

    def test_tiny_cube_is_not_degenerate(self, cube):
        """Tolerances follow the coordinate magnitude downwards too."""
        tiny = cube.scale(1e-10)
        assert tiny.degeneracies() == []
        assert tiny.is_equilateral(1e-10)

    def test_tiny_flattened_cube_is_degenerate(self, cube):
        flat = cube.scale(1e-10).affine_transform(np.diag([1.0, 1.0, 0.0]))
        assert flat.is_degenerate()

    def test_collinear_triangle(self):
        p = ConcretePolytope(
            abstract_polygon(3), [[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]],
        )
        assert p.degeneracies() == ["element (2, 0) spans 1 dimensions"]


class TestTransforms:
    def test_scale(self, cube):
        assert cube.scale(2.0).is_equilateral(2.0)

    def test_translate_returns_new(self, cube):
        moved = cube.translate([1.0, 0.0, 0.0])
        assert moved is not cube
        np.testing.assert_allclose(moved.vertices[:, 0] - cube.vertices[:, 0], 1.0)

    def test_recenter(self, cube):
        moved = cube.translate([3.0, -1.0, 2.0]).recenter()
        np.testing.assert_allclose(moved.vertices, cube.vertices, atol=1e-12)

    def test_affine_transform_changes_dimension(self, cube):
        projected = cube.affine_transform(np.eye(2, 3), [1.0, 1.0])
        assert projected.dim == 2
        np.testing.assert_allclose(projected.vertices, cube.vertices[:, :2] + 1.0)

    def test_affine_transform_shape_mismatch(self, cube):
        with pytest.raises(InvalidOperand):
            cube.affine_transform(np.eye(2))

    def test_embed(self, cube):
        embedded = cube.embed(5)
        assert embedded.dim == 5
        np.testing.assert_allclose(embedded.vertices[:, 3:], 0.0)

    def test_embed_cannot_shrink(self, cube):
        with pytest.raises(InvalidOperand):
            cube.embed(2)


class TestDual:
    def test_cube_dual_is_octahedron(self, cube):
        dual = cube.dual()
        assert dual.element_counts() == [1, 6, 12, 8, 1]
        np.testing.assert_allclose(np.linalg.norm(dual.vertices, axis=1), 2.0)

    def test_double_dual_restores_vertices(self, cube):
        np.testing.assert_allclose(cube.dual().dual().vertices, cube.vertices)

    def test_custom_sphere(self, cube):
        dual = cube.dual(Hypersphere(centre=np.zeros(3), radius=2.0))
        np.testing.assert_allclose(np.linalg.norm(dual.vertices, axis=1), 8.0)

    def test_facet_through_centre(self, cube):
        with pytest.raises(Degenerate):
            cube.translate([0.5, 0.0, 0.0]).dual()

    def test_dual_of_polygon_in_space(self):
        square = hypercube(2).embed(3).translate([0.0, 0.0, 1.0])
        dual = square.dual()
        np.testing.assert_allclose(dual.vertices[:, 2], 1.0)

    def test_point_is_self_dual(self):
        point = simplex(0)
        assert point.dual() is point

    def test_dyad_dual_reciprocates_ends(self):
        dual = simplex(1).dual()
        np.testing.assert_allclose(np.sort(dual.vertices[:, 0]), [-2.0, 2.0])


class TestSections:
    def test_facet_of_cube(self, cube):
        facet = cube.facet(0)
        assert facet.element_counts() == [1, 4, 4, 1]
        assert facet.dim == 3
        assert facet.is_equilateral(1.0)

    def test_element_keeps_positions(self, cube):
        edge = cube.element(1, 0)
        a, b = cube.abstract.get_elements(1)[0].subs
        np.testing.assert_allclose(edge.vertices, cube.vertices[[a, b]])

    def test_vertex_figure_is_triangle(self, cube):
        figure = cube.vertex_figure(0)
        assert figure.element_counts() == [1, 3, 3, 1]
        assert figure.is_equilateral()

    def test_ditope(self, cube):
        ditope = cube.ditope()
        assert ditope.rank == 4
        np.testing.assert_allclose(ditope.vertices, cube.vertices)

    def test_hosotope(self, cube):
        hosotope = cube.hosotope()
        assert hosotope.element_counts() == [1, 2, 8, 12, 6, 1]
        assert hosotope.dim == 1

    def test_petrial_keeps_vertices(self, tetrahedron):
        petrial = tetrahedron.petrial()
        assert petrial.facet_count == 3
        np.testing.assert_allclose(petrial.vertices, tetrahedron.vertices)

    def test_repr(self, cube):
        assert "rank=3" in repr(cube)


def test_nullitope_has_empty_vertices():
    p = ConcretePolytope(AbstractPolytope.nullitope(), [])
    assert p.vertices.shape == (0, 0)
    assert p.gravicenter() is None


class TestCompound:
    def test_stella_octangula(self, tetrahedron):
        p = ConcretePolytope.compound([tetrahedron, tetrahedron.scale(-1.0)])
        assert p.element_counts() == [1, 8, 12, 8, 1]
        np.testing.assert_allclose(p.vertices[:4], tetrahedron.vertices)
        np.testing.assert_allclose(p.vertices[4:], -tetrahedron.vertices)
        assert not p.is_valid()

    def test_rejects_mixed_dimensions(self, tetrahedron):
        with pytest.raises(InvalidOperand, match="dimensions"):
            ConcretePolytope.compound([tetrahedron, tetrahedron.embed(4)])

    def test_empty_compound(self):
        assert ConcretePolytope.compound([]).rank == -1
