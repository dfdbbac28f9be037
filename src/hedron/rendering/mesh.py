"""Tessellation of polytope faces into renderer-ready triangle meshes.

Polygons are taken from the rank-2 elements, with their vertices
ordered by walking the boundary edges.  Convex polygons are split as a
fan; anything else (star polygons, compound or holed faces) is
triangulated with Delaunay over the polygon vertices and their edge
crossings, keeping the triangles that the even-odd rule puts inside.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field

import numpy as np
from matplotlib.path import Path
from scipy.spatial import Delaunay, QhullError

from hedron.config import GeometryOptions, resolve_options
from hedron.errors import InvalidOperand
from hedron.geometry import Subspace
from hedron.model.concrete import ConcretePolytope

logger = logging.getLogger(__name__)

PROJECTIONS = ("orthogonal", "perspective")


@dataclass(frozen=True)
class PolygonBatch:
    """The tessellated 2-faces under one top-level element.

    Attributes:
        element: ``(rank, index)`` of the element the batch belongs to.
        polygons: Ordered vertex loops, one per boundary cycle of each
            2-face.
        triangles: Array of shape ``(m, 3)``.  Indices below the
            polytope's vertex count refer to its vertices; index
            ``vertex_count + k`` refers to ``extra_vertices[k]``.
        extra_vertices: Edge crossings added by the triangulation,
            shape ``(k, dim)``.
    """

    element: tuple[int, int]
    polygons: list[np.ndarray]
    triangles: np.ndarray
    extra_vertices: np.ndarray = field(
        default_factory=lambda: np.zeros((0, 0)),
    )


def edge_cycles(edges: list[tuple[int, int]]) -> list[list[int]]:
    """Split a set of edges into closed vertex loops.

    Every vertex must meet an even number of the edges.  Loops start at
    the smallest unused vertex.

    Raises:
        InvalidOperand: If the edges do not decompose into cycles.
    """
    adj: dict[int, list[int]] = defaultdict(list)
    for i, (a, b) in enumerate(edges):
        adj[a].append(i)
        adj[b].append(i)
    if any(len(incident) % 2 for incident in adj.values()):
        raise InvalidOperand("edges do not form closed loops")

    used = [False] * len(edges)
    cycles = []
    for start in sorted(adj):
        while any(not used[i] for i in adj[start]):
            loop = [start]
            current = start
            while True:
                i = next(i for i in adj[current] if not used[i])
                used[i] = True
                a, b = edges[i]
                current = b if a == current else a
                if current == start:
                    break
                loop.append(current)
            cycles.append(loop)
    return cycles


def _is_convex(points: np.ndarray) -> bool:
    """Whether a 2D vertex loop bounds a convex polygon, winding once."""
    d = np.roll(points, -1, axis=0) - points
    cross = d[:, 0] * np.roll(d, -1, axis=0)[:, 1] - d[:, 1] * np.roll(d, -1, axis=0)[:, 0]
    if not (np.all(cross > 0) or np.all(cross < 0)):
        return False
    angles = np.arctan2(d[:, 1], d[:, 0])
    turns = np.diff(np.append(angles, angles[0]))
    turns = (turns + np.pi) % (2.0 * np.pi) - np.pi
    return bool(abs(abs(turns.sum()) - 2.0 * np.pi) < 1e-6)


def _crossings(
    loops: list[list[int]], local: dict[int, np.ndarray],
) -> list[tuple[int, int, float, np.ndarray]]:
    """Proper crossings between non-adjacent polygon edges.

    Returns:
        Tuples ``(a, b, t, point)`` where the crossing lies at
        ``(1 - t) a + t b`` on segment ``a-b``.
    """
    segments = [
        (loop[i], loop[(i + 1) % len(loop)])
        for loop in loops for i in range(len(loop))
    ]
    found = []
    for i, (a, b) in enumerate(segments):
        p, r = local[a], local[b] - local[a]
        for c, d in segments[i + 1:]:
            if len({a, b, c, d}) < 4:
                continue
            q, s = local[c], local[d] - local[c]
            denom = r[0] * s[1] - r[1] * s[0]
            if abs(denom) < 1e-12:
                continue
            qp = q - p
            t = (qp[0] * s[1] - qp[1] * s[0]) / denom
            u = (qp[0] * r[1] - qp[1] * r[0]) / denom
            if 0.0 < t < 1.0 and 0.0 < u < 1.0:
                found.append((a, b, t, p + t * r))
    return found


def tessellate_face(
    polytope: ConcretePolytope,
    index: int,
    coords: np.ndarray | None = None,
    options: GeometryOptions | None = None,
) -> tuple[list[list[int]], np.ndarray, np.ndarray]:
    """Triangulate one 2-face.

    Args:
        polytope: The polytope.
        index: Index of the face among the rank-2 elements.
        coords: Vertex coordinates to triangulate in; the polytope's own
            vertices when ``None``.
        options: Geometry options.

    Returns:
        Tuple of ``(loops, triangles, extra)``: the vertex loops, an
        ``(m, 3)`` index array, and the crossing points added, given in
        the polytope's own coordinates.  Faces that do not lie in a
        plane get loops but no triangles.
    """
    opts = resolve_options(options)
    n = polytope.vertex_count
    if coords is None:
        coords = polytope.vertices
    edges = polytope.abstract.get_elements(1)
    face = polytope.abstract.get_elements(2)[index]
    loops = edge_cycles([edges[e].subs for e in face.subs])
    verts = sorted({v for loop in loops for v in loop})
    empty = np.zeros((0, 3), dtype=int), np.zeros((0, polytope.dim))

    plane = Subspace.from_points(coords[verts], opts.epsilon)
    if plane.rank != 2:
        return loops, *empty
    local = dict(zip(verts, plane.coordinates(coords[verts])))

    if len(loops) == 1 and _is_convex(np.array([local[v] for v in loops[0]])):
        loop = loops[0]
        tris = [(loop[0], loop[i], loop[i + 1]) for i in range(1, len(loop) - 1)]
        return loops, np.array(tris, dtype=int).reshape(-1, 3), empty[1]

    crossings = _crossings(loops, local)
    points = np.array([local[v] for v in verts] + [c[3] for c in crossings])
    labels = verts + [n + k for k in range(len(crossings))]
    extra = np.array([
        (1.0 - t) * polytope.vertices[a] + t * polytope.vertices[b]
        for a, b, t, _ in crossings
    ]).reshape(-1, polytope.dim)

    try:
        simplices = Delaunay(points).simplices
    except QhullError:
        return loops, *empty
    paths = [Path(np.array([local[v] for v in loop])) for loop in loops]
    tris = []
    for simplex in simplices:
        centroid = points[simplex].mean(axis=0)
        inside = sum(path.contains_point(centroid) for path in paths)
        if inside % 2 == 1:
            tris.append([labels[k] for k in simplex])
    return loops, np.array(tris, dtype=int).reshape(-1, 3), extra


def _faces_under(polytope: ConcretePolytope, rank: int, index: int) -> list[int]:
    """Indices of the 2-faces below ``(rank, index)``."""
    current = {index}
    for r in range(rank, 2, -1):
        current = {
            s for i in current
            for s in polytope.abstract.get_elements(r)[i].subs
        }
    return sorted(current)


def project(
    polytope: ConcretePolytope,
    rank: int | None = None,
    options: GeometryOptions | None = None,
) -> list[PolygonBatch]:
    """Tessellate a polytope's 2-faces, grouped by top-level element.

    Each batch collects the 2-faces under one element of rank
    ``max(2, rank - 1)``.  Before tessellation, every element's
    vertices are expressed in coordinates of its own affine hull.

    Args:
        polytope: The polytope to tessellate.
        rank: Rank used to pick the batch elements; the polytope's rank
            when ``None``.
        options: Geometry options.

    Returns:
        A fresh list of batches; empty for polytopes of rank below 2.
    """
    opts = resolve_options(options)
    if rank is None:
        rank = polytope.rank
    if polytope.rank < 2:
        return []
    top = min(max(2, rank - 1), polytope.rank)

    batches = []
    for index in range(polytope.element_count(top)):
        hull = Subspace.from_points(
            polytope.vertices[polytope.element_vertices(top, index)],
            opts.epsilon,
        )
        coords = hull.coordinates(polytope.vertices)
        polygons: list[np.ndarray] = []
        triangles = []
        extras = []
        offset = 0
        for face in _faces_under(polytope, top, index):
            loops, tris, extra = tessellate_face(polytope, face, coords, opts)
            polygons.extend(np.array(loop, dtype=int) for loop in loops)
            tris = tris.copy()
            tris[tris >= polytope.vertex_count] += offset
            triangles.append(tris)
            extras.append(extra)
            offset += len(extra)
        batches.append(PolygonBatch(
            element=(top, index),
            polygons=polygons,
            triangles=np.concatenate(triangles) if triangles
            else np.zeros((0, 3), dtype=int),
            extra_vertices=np.concatenate(extras) if extras
            else np.zeros((0, polytope.dim)),
        ))
    logger.debug("projected %d batches of rank %d", len(batches), top)
    return batches


def to_3d(
    points: np.ndarray,
    projection: str = "orthogonal",
    reference: np.ndarray | None = None,
) -> np.ndarray:
    """Reduce points of any dimension to 3D.

    Points of dimension below 3 are padded with zeros.  Above 3, the
    orthogonal projection drops the extra coordinates; the perspective
    projection divides the first three by ``prod(x_k + dist)`` over the
    extra coordinates, with ``dist`` chosen from the range of the fourth
    coordinate of *reference* so that every factor is positive.

    Raises:
        ValueError: For an unknown projection name.
    """
    if projection not in PROJECTIONS:
        raise ValueError(
            f"projection must be one of {PROJECTIONS}, got {projection!r}"
        )
    pts = np.asarray(points, dtype=float)
    dim = pts.shape[1] if pts.ndim == 2 else 0
    out = np.zeros((len(pts), 3))
    out[:, :min(dim, 3)] = pts[:, :3]
    if projection == "orthogonal" or dim <= 3:
        return out

    ref = pts if reference is None else np.asarray(reference, dtype=float)
    lo, hi = ref[:, 3].min(), ref[:, 3].max()
    dist = max(abs(lo - 1.0), abs(hi + 1.0))
    factor = np.prod(pts[:, 3:] + dist, axis=1)
    return out / factor[:, None]


@dataclass(frozen=True)
class Mesh:
    """Flattened 3D geometry for an external renderer.

    Attributes:
        positions: Vertex positions, shape ``(n, 3)``.  The polytope's
            vertices come first, followed by any crossing points.
        triangles: Index triples, shape ``(t, 3)``, without repeats.
        edges: Index pairs of the polytope's edges, shape ``(e, 2)``.
    """

    positions: np.ndarray
    triangles: np.ndarray
    edges: np.ndarray

    @property
    def normals(self) -> np.ndarray:
        """Radial unit normals, zero for points at the origin."""
        norms = np.linalg.norm(self.positions, axis=1)
        safe = np.where(norms < 1e-12, 1.0, norms)
        normals = self.positions / safe[:, None]
        normals[norms < 1e-12] = 0.0
        return normals


def wireframe(polytope: ConcretePolytope) -> np.ndarray:
    """Vertex index pairs of every edge, shape ``(n_edges, 2)``."""
    if polytope.rank < 1:
        return np.zeros((0, 2), dtype=int)
    return np.array(
        [el.subs for el in polytope.abstract.get_elements(1)], dtype=int,
    ).reshape(-1, 2)


def build_mesh(
    polytope: ConcretePolytope,
    projection: str = "orthogonal",
    options: GeometryOptions | None = None,
) -> Mesh:
    """Tessellate a polytope and flatten it to 3D.

    Args:
        polytope: The polytope.
        projection: ``"orthogonal"`` or ``"perspective"``.
        options: Geometry options.
    """
    if polytope.vertex_count == 0:
        return Mesh(
            positions=np.zeros((0, 3)),
            triangles=np.zeros((0, 3), dtype=int),
            edges=np.zeros((0, 2), dtype=int),
        )

    n = polytope.vertex_count
    extras = []
    triangles = []
    seen: set[tuple[int, ...]] = set()
    offset = 0
    for batch in project(polytope, options=options):
        for tri in batch.triangles:
            tri = [int(v) if v < n else int(v) + offset for v in tri]
            key = tuple(sorted(tri))
            if key not in seen:
                seen.add(key)
                triangles.append(tri)
        extras.append(batch.extra_vertices)
        offset += len(batch.extra_vertices)

    points = np.vstack([polytope.vertices, *extras]) if extras else polytope.vertices
    return Mesh(
        positions=to_3d(points, projection, reference=polytope.vertices),
        triangles=np.array(triangles, dtype=int).reshape(-1, 3),
        edges=wireframe(polytope),
    )
