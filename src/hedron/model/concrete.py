"""Polytopes realised in Euclidean space."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
from scipy.spatial import cKDTree

from hedron.config import GeometryOptions, resolve_options
from hedron.errors import Degenerate, InvalidOperand
from hedron.geometry import Hypersphere, Subspace, _scale, affine_rank, circumsphere
from hedron.model.abstract import AbstractPolytope

logger = logging.getLogger(__name__)


class ConcretePolytope:
    """An abstract polytope together with a position for every vertex.

    Vertex ``i`` of the abstract structure sits at ``vertices[i]``.  Both
    the structure and the coordinate array are read-only; every
    transformation returns a new polytope.

    Args:
        abstract: The incidence structure.
        vertices: Array-like of shape ``(n_vertices, dim)``.

    Raises:
        InvalidOperand: If the number of positions differs from the
            number of vertices of *abstract*.
    """

    __slots__ = ("_abstract", "_vertices")

    def __init__(self, abstract: AbstractPolytope, vertices: object) -> None:
        coords = np.array(vertices, dtype=float)
        if coords.ndim != 2:
            if coords.size != 0:
                raise InvalidOperand(
                    f"vertices must be a 2-D array, got shape {coords.shape}"
                )
            coords = coords.reshape(0, 0)
        if len(coords) != abstract.vertex_count:
            raise InvalidOperand(
                f"{len(coords)} positions for {abstract.vertex_count} vertices"
            )
        coords.setflags(write=False)
        self._abstract = abstract
        self._vertices = coords

    @classmethod
    def from_subs(
        cls,
        vertices: object,
        subs: Sequence[Sequence[Sequence[int]]],
    ) -> ConcretePolytope:
        """Build from positions and per-rank subelement lists.

        Args:
            vertices: Vertex positions.
            subs: Subelements of every element, for ranks 1 to d.  The
                nullitope and the vertices are added automatically.
        """
        coords = np.array(vertices, dtype=float)
        full = [[[]], [[0]] * len(coords), *subs]
        return cls(AbstractPolytope.from_subs(full), coords)

    @classmethod
    def compound(cls, components: Sequence[ConcretePolytope]) -> ConcretePolytope:
        """Several polytopes in one space, vertices stacked in order.

        Raises:
            InvalidOperand: If the components differ in rank or ambient
                dimension; see :meth:`AbstractPolytope.compound`.
        """
        if not components:
            return cls(AbstractPolytope.nullitope(), np.zeros((0, 0)))
        dims = {c.dim for c in components}
        if len(dims) > 1:
            raise InvalidOperand(
                f"compound components live in different dimensions: {sorted(dims)}"
            )
        structure = AbstractPolytope.compound(components)
        return cls(structure, np.vstack([c.vertices for c in components]))

    # ---- Basic queries ----

    @property
    def abstract(self) -> AbstractPolytope:
        return self._abstract

    @property
    def vertices(self) -> np.ndarray:
        """Read-only ``(n_vertices, dim)`` array of positions."""
        return self._vertices

    @property
    def rank(self) -> int:
        return self._abstract.rank

    @property
    def dim(self) -> int:
        """Dimension of the ambient space."""
        return self._vertices.shape[1]

    @property
    def vertex_count(self) -> int:
        return self._abstract.vertex_count

    @property
    def edge_count(self) -> int:
        return self._abstract.edge_count

    @property
    def facet_count(self) -> int:
        return self._abstract.facet_count

    def has_coordinates(self) -> bool:
        return True

    def element_count(self, rank: int) -> int:
        return self._abstract.element_count(rank)

    def element_counts(self) -> list[int]:
        return self._abstract.element_counts()

    def element_vertices(self, rank: int, index: int) -> list[int]:
        return self._abstract.element_vertices(rank, index)

    def euler_characteristic(self) -> int:
        return self._abstract.euler_characteristic()

    def is_orientable(self) -> bool:
        return self._abstract.is_orientable()

    def validate(self) -> None:
        """Validate the incidence structure; see :meth:`AbstractPolytope.validate`."""
        self._abstract.validate()

    def is_valid(self) -> bool:
        return self._abstract.is_valid()

    def is_isomorphic(self, other: AbstractPolytope | ConcretePolytope) -> bool:
        """Whether the incidence structures are isomorphic."""
        return self._abstract.is_isomorphic(other.abstract)

    def tolerance(self, options: GeometryOptions | None = None) -> float:
        """Absolute tolerance scaled to this polytope's coordinates."""
        return resolve_options(options).tolerance(_scale(self._vertices))

    # ---- Metric properties ----

    def gravicenter(self) -> np.ndarray | None:
        """Mean of the vertex positions, or ``None`` without vertices."""
        if len(self._vertices) == 0:
            return None
        return self._vertices.mean(axis=0)

    def circumsphere(
        self, options: GeometryOptions | None = None,
    ) -> Hypersphere | None:
        """The sphere through every vertex, centred in their affine hull.

        Returns:
            The sphere, or ``None`` if no such sphere exists.
        """
        return circumsphere(self._vertices, resolve_options(options).epsilon)

    def circumradius(self, options: GeometryOptions | None = None) -> float | None:
        sphere = self.circumsphere(options)
        return None if sphere is None else sphere.radius

    def edge_length(self, index: int) -> float:
        a, b = self._abstract.get_elements(1)[index].subs
        return float(np.linalg.norm(self._vertices[a] - self._vertices[b]))

    def edge_lengths(self) -> np.ndarray:
        """Lengths of every edge, in edge order."""
        if self.rank < 1:
            return np.zeros(0)
        pairs = np.array(
            [el.subs for el in self._abstract.get_elements(1)], dtype=int,
        ).reshape(-1, 2)
        diffs = self._vertices[pairs[:, 0]] - self._vertices[pairs[:, 1]]
        return np.linalg.norm(diffs, axis=1)

    def is_equilateral(
        self,
        length: float | None = None,
        options: GeometryOptions | None = None,
    ) -> bool:
        """Whether every edge has the same length.

        Args:
            length: Required edge length.  When ``None``, edges only
                need to agree with each other.
            options: Geometry options.
        """
        lengths = self.edge_lengths()
        if len(lengths) == 0:
            return True
        target = lengths[0] if length is None else length
        return bool(np.all(np.abs(lengths - target) <= self.tolerance(options)))

    def midradius(self) -> float | None:
        """Distance from the gravicenter to the midpoint of the first edge."""
        if self.edge_count == 0:
            return None
        a, b = self._abstract.get_elements(1)[0].subs
        mid = (self._vertices[a] + self._vertices[b]) / 2.0
        return float(np.linalg.norm(mid - self.gravicenter()))

    def is_flat(
        self, rank: int, index: int, options: GeometryOptions | None = None,
    ) -> bool:
        """Whether the vertices of an element lie in a ``rank``-flat."""
        pts = self._vertices[self.element_vertices(rank, index)]
        return affine_rank(pts, resolve_options(options).epsilon) <= rank

    def degeneracies(self, options: GeometryOptions | None = None) -> list[str]:
        """Describe every way in which the realisation is degenerate.

        Returns:
            Human-readable descriptions; empty for a proper realisation.
        """
        opts = resolve_options(options)
        tol = self.tolerance(opts)
        found: list[str] = []

        if self.dim > 0 and len(self._vertices) > 1:
            tree = cKDTree(self._vertices)
            for i, j in sorted(tree.query_pairs(r=tol)):
                found.append(f"vertices {i} and {j} coincide")

        for idx, length in enumerate(self.edge_lengths()):
            if length <= tol:
                found.append(f"edge {idx} has zero length")

        for r in range(2, self.rank + 1):
            for idx in range(self.element_count(r)):
                pts = self._vertices[self.element_vertices(r, idx)]
                span = affine_rank(pts, opts.epsilon)
                if span < r:
                    found.append(
                        f"element ({r}, {idx}) spans {span} dimensions"
                    )
        return found

    def is_degenerate(self, options: GeometryOptions | None = None) -> bool:
        """Whether vertices coincide or some element has zero measure."""
        return bool(self.degeneracies(options))

    def check_nondegenerate(self, options: GeometryOptions | None = None) -> None:
        """Raise :class:`Degenerate` describing the first degeneracy found."""
        found = self.degeneracies(options)
        if found:
            raise Degenerate(found[0])

    # ---- Transformations ----

    def affine_transform(
        self, matrix: object, translation: object | None = None,
    ) -> ConcretePolytope:
        """Map every vertex ``v`` to ``matrix @ v + translation``.

        Args:
            matrix: Array of shape ``(new_dim, dim)``.
            translation: Optional vector of shape ``(new_dim,)``.
        """
        m = np.asarray(matrix, dtype=float)
        if m.ndim != 2 or m.shape[1] != self.dim:
            raise InvalidOperand(
                f"matrix of shape {m.shape} cannot act on dimension {self.dim}"
            )
        coords = self._vertices @ m.T
        if translation is not None:
            coords = coords + np.asarray(translation, dtype=float)
        return ConcretePolytope(self._abstract, coords)

    def scale(self, factor: float) -> ConcretePolytope:
        return ConcretePolytope(self._abstract, self._vertices * factor)

    def translate(self, offset: object) -> ConcretePolytope:
        return ConcretePolytope(
            self._abstract, self._vertices + np.asarray(offset, dtype=float),
        )

    def recenter(self) -> ConcretePolytope:
        """Translate so that the gravicenter sits at the origin."""
        centre = self.gravicenter()
        if centre is None:
            return self
        return self.translate(-centre)

    def embed(self, dim: int) -> ConcretePolytope:
        """Pad coordinates with zeros up to dimension *dim*."""
        if dim < self.dim:
            raise InvalidOperand(f"cannot embed dimension {self.dim} in {dim}")
        coords = np.zeros((len(self._vertices), dim))
        coords[:, :self.dim] = self._vertices
        return ConcretePolytope(self._abstract, coords)

    # ---- Operators ----

    def dual(
        self,
        sphere: Hypersphere | None = None,
        options: GeometryOptions | None = None,
    ) -> ConcretePolytope:
        """Reciprocate about a hypersphere.

        The sphere's centre is first projected into the polytope's
        affine hull, then onto each facet's hull; the foot point ``p``
        of each facet becomes the dual vertex
        ``o + r^2 (p - o) / |p - o|^2``.  Polytopes of rank below 1 are
        their own duals.

        Args:
            sphere: Reciprocation sphere; the unit sphere at the origin
                when ``None``.
            options: Geometry options.

        Raises:
            Degenerate: If a facet passes through the centre.
        """
        if self.rank < 1:
            return self
        if sphere is None:
            sphere = Hypersphere.unit(self.dim)
        opts = resolve_options(options)

        hull = Subspace.from_points(self._vertices, opts.epsilon)
        centre = hull.project(np.asarray(sphere.centre, dtype=float))
        facets = self.element_count(self.rank - 1)
        feet = np.empty((facets, self.dim))
        for idx in range(facets):
            pts = self._vertices[self.element_vertices(self.rank - 1, idx)]
            feet[idx] = Subspace.from_points(pts, opts.epsilon).project(centre)

        rel = feet - centre
        norms = np.sum(rel**2, axis=1)
        tol = opts.tolerance(_scale(self._vertices))
        bad = np.flatnonzero(norms < tol**2)
        if len(bad):
            raise Degenerate(
                f"facet {int(bad[0])} passes through the reciprocation centre"
            )
        coords = centre + sphere.radius**2 * rel / norms[:, None]
        return ConcretePolytope(self._abstract.dual(), coords)

    def element(self, rank: int, index: int) -> ConcretePolytope:
        """Everything under ``(rank, index)`` with the matching positions."""
        section, members = self._abstract._section((-1, 0), (rank, index))
        coords = (
            self._vertices[members[1]] if rank >= 0
            else np.zeros((0, self.dim))
        )
        return ConcretePolytope(section, coords)

    def facet(self, index: int) -> ConcretePolytope:
        return self.element(self.rank - 1, index)

    def vertex_figure(
        self, index: int, options: GeometryOptions | None = None,
    ) -> ConcretePolytope:
        """The dual of the facet of the dual that corresponds to a vertex."""
        return self.dual(options=options).facet(index).dual(options=options)

    def ditope(self) -> ConcretePolytope:
        """Two coincident copies of this polytope, as one of rank + 1."""
        return ConcretePolytope(self._abstract.ditope(), self._vertices)

    def hosotope(self) -> ConcretePolytope:
        """The hosotope, realised on the dyad ``[-1/2, 1/2]``."""
        return ConcretePolytope(self._abstract.hosotope(), [[-0.5], [0.5]])

    def petrial(
        self,
        *,
        validate: bool | None = None,
        options: GeometryOptions | None = None,
    ) -> ConcretePolytope:
        """The Petrial of a polyhedron, keeping vertex positions."""
        return ConcretePolytope(
            self._abstract.petrial(validate=validate, options=options),
            self._vertices,
        )

    def __repr__(self) -> str:
        return (
            f"ConcretePolytope(rank={self.rank}, dim={self.dim}, "
            f"counts={self.element_counts()})"
        )
