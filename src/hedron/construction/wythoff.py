"""Wythoff's construction: uniform polytopes from ringed Coxeter diagrams.

The seed point sits at distance ``ring / 2`` from each mirror.  Its
orbit under the reflection group gives the vertices.  For each subset
``J`` of nodes whose every component carries a ring, the orbit of the
seed under the subgroup generated by ``J`` is a face of rank ``|J|``;
all faces of that type are the images of this one under the full group.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Sequence
from itertools import combinations

import numpy as np
from scipy.spatial import cKDTree

from hedron.config import GeometryOptions, resolve_options
from hedron.construction.coxeter import (
    CoxeterDiagram,
    _dedupe_in_order,
    check_finite,
    generate_group,
    parse_diagram,
)
from hedron.errors import Degenerate, DegenerateSeed
from hedron.geometry import _scale
from hedron.model.abstract import AbstractPolytope
from hedron.model.concrete import ConcretePolytope

logger = logging.getLogger(__name__)

VertexSet = frozenset[int]


def check_seed(
    diagram: CoxeterDiagram, options: GeometryOptions | None = None,
) -> None:
    """Make sure the seed point lies off every mirror it should avoid.

    Raises:
        DegenerateSeed: If no node is ringed, a ring value is
            numerically zero, or a component carries no ring.
    """
    opts = resolve_options(options)
    ringed = diagram.ringed()
    if not ringed:
        raise DegenerateSeed("no node is ringed")
    for i in ringed:
        if abs(diagram.rings[i]) <= opts.epsilon:
            raise DegenerateSeed(
                f"node {i} has ring value {diagram.rings[i]}, which is "
                "indistinguishable from zero"
            )
    for component in diagram.components():
        if not any(i in ringed for i in component):
            raise DegenerateSeed(f"component {component} carries no ring")


def _closure(start: int, perms: Sequence[np.ndarray]) -> VertexSet:
    """The orbit of vertex *start* under the given permutations."""
    seen = {start}
    queue = deque([start])
    while queue:
        v = queue.popleft()
        for perm in perms:
            w = int(perm[v])
            if w not in seen:
                seen.add(w)
                queue.append(w)
    return frozenset(seen)


def _face_orbit(base: VertexSet, perms: Sequence[np.ndarray]) -> list[VertexSet]:
    """Every image of a vertex set under the group, in discovery order."""
    seen = {base}
    order = [base]
    queue = deque([base])
    while queue:
        face = queue.popleft()
        for perm in perms:
            image = frozenset(int(perm[v]) for v in face)
            if image not in seen:
                seen.add(image)
                order.append(image)
                queue.append(image)
    return order


def _stabilizer_order(diagram: CoxeterDiagram, nodes: tuple[int, ...]) -> int:
    """Order of the subgroup fixing a face of type *nodes* pointwise.

    These are the unringed mirrors orthogonal to every mirror in *nodes*.
    """
    fixed = [
        i for i in range(diagram.rank)
        if i not in nodes
        and diagram.rings[i] == 0.0
        and all(diagram.orders[i][j] == 2 for j in nodes)
    ]
    if not fixed:
        return 1
    return diagram.subdiagram(fixed).group_order()


def _incidences(lower: list[VertexSet], upper: list[VertexSet]) -> list[list[int]]:
    """For each upper face, the lower faces whose vertices it contains."""
    containing: dict[int, list[int]] = {}
    for f, face in enumerate(upper):
        for v in face:
            containing.setdefault(v, []).append(f)
    subs: list[list[int]] = [[] for _ in upper]
    for g, face in enumerate(lower):
        for f in containing.get(min(face), ()):
            if face <= upper[f]:
                subs[f].append(g)
    return subs


def vertex_permutations(
    vertices: np.ndarray,
    reflections: np.ndarray,
    tol: float,
) -> list[np.ndarray]:
    """How each generating reflection permutes the vertices.

    Raises:
        Degenerate: If a reflected vertex matches no vertex.
    """
    tree = cKDTree(vertices)
    perms = []
    for s, reflection in enumerate(reflections):
        dist, idx = tree.query(vertices @ reflection.T, k=1)
        if np.max(dist) > tol:
            raise Degenerate(
                f"reflection {s} does not map the vertex set onto itself"
            )
        perms.append(idx)
    return perms


def wythoff(
    diagram: CoxeterDiagram | str,
    options: GeometryOptions | None = None,
) -> ConcretePolytope:
    """Build the Wythoffian polytope of a ringed Coxeter diagram.

    Args:
        diagram: A :class:`CoxeterDiagram` or its linear notation.
        options: Geometry options.

    Returns:
        A concrete polytope of rank ``diagram.rank`` in ``R^rank``.

    Raises:
        InvalidDiagram: If *diagram* is a string that cannot be parsed.
        InfiniteGroup: If the mirrors do not fit in spherical space.
        TooLarge: If the group exceeds ``options.max_group_order``.
        DegenerateSeed: If the seed point lies on a mirror it should
            avoid.
        Degenerate: If the face counts disagree with the group order,
            which signals coinciding vertices or faces.
    """
    opts = resolve_options(options)
    if isinstance(diagram, str):
        diagram = parse_diagram(diagram)
    order = check_finite(diagram, opts)
    check_seed(diagram, opts)

    group = generate_group(diagram, opts)
    seed = diagram.seed_point()
    orbit = group @ seed
    tol = opts.tolerance(_scale(orbit))
    vertices = orbit[_dedupe_in_order(orbit, tol)]
    perms = vertex_permutations(vertices, diagram.reflections(), tol)
    checked = order is not None and diagram.is_integral()

    n = diagram.rank
    if checked:
        expected = order // _stabilizer_order(diagram, ())
        if len(vertices) != expected:
            raise Degenerate(f"found {len(vertices)} vertices, expected {expected}")

    subs: list[list[list[int]]] = [[[]], [[0]] * len(vertices)]
    lower: list[VertexSet] = [frozenset([v]) for v in range(len(vertices))]
    for k in range(1, n):
        faces: list[VertexSet] = []
        index: dict[VertexSet, int] = {}
        for nodes in combinations(range(n), k):
            sub = diagram.subdiagram(list(nodes))
            if not sub.is_minimal():
                continue
            base = _closure(0, [perms[j] for j in nodes])
            found = _face_orbit(base, perms)
            if checked:
                expected = order // (
                    sub.group_order() * _stabilizer_order(diagram, nodes)
                )
                if len(found) != expected:
                    raise Degenerate(
                        f"found {len(found)} faces of type {list(nodes)}, "
                        f"expected {expected}"
                    )
            for face in found:
                if face not in index:
                    index[face] = len(faces)
                    faces.append(face)
        logger.debug("rank %d: %d elements", k, len(faces))
        subs.append(_incidences(lower, faces))
        lower = faces
    subs.append([list(range(len(lower)))])

    structure = AbstractPolytope.from_subs(subs)
    logger.info("built Wythoffian %s with counts %s", diagram, structure.element_counts())
    return ConcretePolytope(structure, vertices)


def from_diagram(text: str, options: GeometryOptions | None = None) -> ConcretePolytope:
    """Parse a diagram in linear notation and build its Wythoffian."""
    return wythoff(parse_diagram(text), options)
