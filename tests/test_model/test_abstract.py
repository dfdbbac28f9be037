"""Tests for AbstractPolytope validation, operators and sections."""

import pytest

from hedron.construction.shapes import (
    abstract_hypercube,
    abstract_orthoplex,
    abstract_polygon,
    abstract_simplex,
)
from hedron.config import GeometryOptions
from hedron.errors import BrokenDiamond, Disconnected, InvalidOperand
from hedron.model.abstract import AbstractPolytope


def _two_triangles():
    """Two disjoint triangles posing as one polygon."""
    edges = [[0, 1], [1, 2], [0, 2], [3, 4], [4, 5], [3, 5]]
    return AbstractPolytope.from_subs([
        [[]], [[0]] * 6, edges, [list(range(6))],
    ])


class TestElementaryShapes:
    def test_nullitope(self):
        p = AbstractPolytope.nullitope()
        assert p.rank == -1
        assert p.element_counts() == [1]

    def test_point(self):
        assert AbstractPolytope.point().element_counts() == [1, 1]

    def test_dyad(self):
        assert AbstractPolytope.dyad().element_counts() == [1, 2, 1]

    def test_polygon(self):
        assert AbstractPolytope.polygon(5).element_counts() == [1, 5, 5, 1]

    def test_digon_is_valid(self):
        assert AbstractPolytope.polygon(2).is_valid()

    def test_polygon_needs_two_sides(self):
        with pytest.raises(InvalidOperand):
            AbstractPolytope.polygon(1)


class TestValidate:
    @pytest.mark.parametrize("rank", [-1, 0, 1, 2, 3, 4])
    def test_simplices_are_valid(self, rank):
        abstract_simplex(rank).validate()

    @pytest.mark.parametrize("rank", [2, 3, 4])
    def test_hypercubes_are_valid(self, rank):
        abstract_hypercube(rank).validate()

    def test_extra_edge_breaks_diamond(self):
        p = AbstractPolytope.from_subs([
            [[]], [[0]] * 3, [[0, 1], [1, 2], [0, 2], [0, 1]], [[0, 1, 2, 3]],
        ])
        with pytest.raises(BrokenDiamond):
            p.validate()
        assert not p.is_valid()

    def test_dangling_vertex_breaks_diamond(self):
        p = AbstractPolytope.from_subs([
            [[]], [[0]] * 4, [[0, 1], [1, 2], [0, 2]], [[0, 1, 2]],
        ])
        with pytest.raises(BrokenDiamond) as excinfo:
            p.validate()
        assert excinfo.value.rank == 0
        assert excinfo.value.index == 3

    def test_two_bodies_break_diamond(self):
        p = AbstractPolytope.from_subs([
            [[]], [[0], [0]], [[0, 1], [0, 1]],
        ])
        with pytest.raises(BrokenDiamond):
            p.validate()

    def test_disjoint_triangles_are_disconnected(self):
        with pytest.raises(Disconnected) as excinfo:
            _two_triangles().validate()
        assert excinfo.value.lo == (-1, 0)
        assert excinfo.value.hi == (2, 0)
        assert not _two_triangles().is_valid()

    def test_broken_diamond_is_value_error(self):
        with pytest.raises(ValueError):
            AbstractPolytope.from_subs([
                [[]], [[0]] * 3, [[0, 1], [1, 2], [0, 2], [0, 1]], [[0, 1, 2, 3]],
            ]).validate()


class TestCounts:
    def test_cube(self, abstract_cube):
        assert abstract_cube.element_counts() == [1, 8, 12, 6, 1]
        assert abstract_cube.vertex_count == 8
        assert abstract_cube.edge_count == 12
        assert abstract_cube.facet_count == 6
        assert abstract_cube.element_count(7) == 0

    def test_euler_characteristic(self, abstract_cube, abstract_tetrahedron):
        assert abstract_cube.euler_characteristic() == 2
        assert abstract_tetrahedron.euler_characteristic() == 2

    def test_has_no_coordinates(self, abstract_cube):
        assert not abstract_cube.has_coordinates()
        assert abstract_cube.abstract is abstract_cube


class TestDual:
    def test_dual_is_involution(self, abstract_cube):
        assert abstract_cube.dual().dual() == abstract_cube

    def test_dual_reverses_counts(self, abstract_cube):
        assert abstract_cube.dual().element_counts() == [1, 6, 12, 8, 1]

    def test_dual_of_cube_is_octahedron(self, abstract_cube):
        assert abstract_cube.dual().is_isomorphic(abstract_orthoplex(3))

    def test_dual_stays_valid(self, abstract_cube):
        assert abstract_cube.dual().is_valid()

    def test_dual_of_nullitope(self):
        p = AbstractPolytope.nullitope()
        assert p.dual() == p


class TestPetrial:
    def test_tetrahedron_gives_hemicube(self, abstract_tetrahedron):
        petrial = abstract_tetrahedron.petrial(validate=True)
        assert petrial.element_counts() == [1, 4, 6, 3, 1]
        assert all(len(f.subs) == 4 for f in petrial.get_elements(2))
        assert petrial.euler_characteristic() == 1
        assert not petrial.is_orientable()

    def test_cube_gives_hexagons(self, abstract_cube):
        petrial = abstract_cube.petrial()
        assert petrial.element_counts() == [1, 8, 12, 4, 1]
        assert all(len(f.subs) == 6 for f in petrial.get_elements(2))

    def test_validation_from_options(self, abstract_cube):
        petrial = abstract_cube.petrial(
            options=GeometryOptions(validate_petrial=True),
        )
        assert petrial.facet_count == 4

    def test_petrial_needs_rank_three(self):
        with pytest.raises(InvalidOperand):
            abstract_polygon(4).petrial()

    def test_petrie_polygon_of_cube(self, abstract_cube):
        edges = abstract_cube.petrie_polygon()
        assert len(edges) == 6
        assert len(set(edges)) == 6

    def test_petrie_polygon_of_square(self):
        assert sorted(abstract_polygon(4).petrie_polygon()) == [0, 1, 2, 3]

    def test_petrie_polygon_needs_rank_two(self):
        with pytest.raises(InvalidOperand):
            AbstractPolytope.dyad().petrie_polygon()


class TestSections:
    def test_facet_of_cube_is_square(self, abstract_cube):
        assert abstract_cube.facet(0).element_counts() == [1, 4, 4, 1]

    def test_vertex_figure_of_cube_is_triangle(self, abstract_cube):
        figure = abstract_cube.vertex_figure(0)
        assert figure.element_counts() == [1, 3, 3, 1]
        assert figure.is_valid()

    def test_element_of_rank_one_is_dyad(self, abstract_cube):
        assert abstract_cube.element(1, 0) == AbstractPolytope.dyad()

    def test_section_between_vertex_and_face(self, abstract_cube):
        edge = min(abstract_cube.superelements(0, 0))
        face = min(abstract_cube.superelements(1, edge))
        section = abstract_cube.section((0, 0), (2, face))
        assert section.element_counts() == [1, 2, 1]

    def test_section_requires_incidence(self, abstract_cube):
        far = next(
            f for f in range(6)
            if 0 not in abstract_cube.element_vertices(2, f)
        )
        with pytest.raises(InvalidOperand):
            abstract_cube.section((0, 0), (2, far))

    def test_element_vertices(self, abstract_cube):
        assert len(abstract_cube.element_vertices(2, 0)) == 4
        assert abstract_cube.element_vertices(3, 0) == list(range(8))
        assert abstract_cube.element_vertices(-1, 0) == []


class TestDitopeHosotope:
    def test_ditope_of_square(self):
        ditope = abstract_polygon(4).ditope()
        assert ditope.element_counts() == [1, 4, 4, 2, 1]
        assert ditope.is_valid()

    def test_hosotope_of_square(self):
        hosotope = abstract_polygon(4).hosotope()
        assert hosotope.element_counts() == [1, 2, 4, 4, 1]
        assert hosotope.is_valid()

    def test_ditope_of_point_is_dyad(self):
        assert AbstractPolytope.point().ditope() == AbstractPolytope.dyad()

    def test_nullitope_has_no_ditope(self):
        with pytest.raises(InvalidOperand):
            AbstractPolytope.nullitope().ditope()


class TestIsomorphism:
    def test_relabelled_square(self):
        a = abstract_polygon(4)
        b = AbstractPolytope.from_subs([
            [[]], [[0]] * 4, [[0, 2], [1, 2], [1, 3], [0, 3]], [[0, 1, 2, 3]],
        ])
        assert a.is_isomorphic(b)
        assert a != b

    def test_different_counts(self, abstract_cube, abstract_tetrahedron):
        assert not abstract_cube.is_isomorphic(abstract_tetrahedron)

    def test_same_counts_different_structure(self):
        assert not abstract_polygon(6).is_isomorphic(_two_triangles())


class TestOmnitruncate:
    def test_polygon_doubles(self):
        p = abstract_polygon(5).omnitruncate()
        assert p.is_isomorphic(abstract_polygon(10))

    def test_flags_become_vertices(self, abstract_tetrahedron):
        p = abstract_tetrahedron.omnitruncate()
        assert p.vertex_count == abstract_tetrahedron.flag_count()
        assert p.element_counts() == [1, 24, 36, 14, 1]
        assert p.is_valid()

    def test_cube(self, abstract_cube):
        p = abstract_cube.omnitruncate()
        assert p.element_counts() == [1, 48, 72, 26, 1]
        assert p.euler_characteristic() == 2

    def test_dual_has_same_omnitruncate(self, abstract_cube):
        left = abstract_cube.omnitruncate()
        right = abstract_cube.dual().omnitruncate()
        assert left.is_isomorphic(right)

    def test_low_ranks_unchanged(self):
        dyad = AbstractPolytope.dyad()
        assert dyad.omnitruncate() == dyad
        assert AbstractPolytope.point().omnitruncate() == AbstractPolytope.point()


class TestCompound:
    def test_two_triangles(self):
        p = AbstractPolytope.compound([abstract_polygon(3)] * 2)
        assert p == _two_triangles()

    def test_compound_is_disconnected(self, abstract_tetrahedron):
        p = AbstractPolytope.compound([abstract_tetrahedron] * 2)
        assert p.element_counts() == [1, 8, 12, 8, 1]
        with pytest.raises(Disconnected):
            p.validate()

    def test_single_component_is_a_copy(self, abstract_cube):
        assert AbstractPolytope.compound([abstract_cube]) == abstract_cube

    def test_empty_compound_is_nullitope(self):
        assert AbstractPolytope.compound([]).rank == -1

    def test_rejects_mixed_ranks(self, abstract_cube):
        with pytest.raises(InvalidOperand, match="differ in rank"):
            AbstractPolytope.compound([abstract_cube, abstract_polygon(4)])

    def test_rejects_points(self):
        with pytest.raises(InvalidOperand, match="at least 1"):
            AbstractPolytope.compound([AbstractPolytope.point()] * 2)
