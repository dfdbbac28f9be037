"""Affine subspaces, hyperspheres and related linear-algebra helpers."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from hedron._constants import EPSILON


def _scale(points: np.ndarray) -> float:
    """Largest absolute coordinate, or 1 for an empty or all-zero array."""
    if points.size == 0:
        return 1.0
    largest = float(np.max(np.abs(points)))
    return largest if largest > 0.0 else 1.0


@dataclass(frozen=True)
class Hypersphere:
    """A sphere of arbitrary dimension.

    Attributes:
        centre: Centre point, shape ``(dim,)``.
        radius: Non-negative radius.
    """

    centre: np.ndarray
    radius: float

    def __post_init__(self) -> None:
        if self.radius < 0:
            raise ValueError(f"radius must be non-negative, got {self.radius}")

    @classmethod
    def unit(cls, dim: int) -> Hypersphere:
        """The unit sphere centred at the origin of ``R^dim``."""
        return cls(centre=np.zeros(dim), radius=1.0)


@dataclass(frozen=True)
class Subspace:
    """An affine subspace given by a point and an orthonormal basis.

    Attributes:
        offset: A point on the subspace, shape ``(dim,)``.
        basis: Orthonormal basis vectors as rows, shape ``(rank, dim)``.
    """

    offset: np.ndarray
    basis: np.ndarray

    @classmethod
    def from_points(
        cls, points: np.ndarray, epsilon: float = EPSILON,
    ) -> Subspace:
        """Affine hull of a set of points.

        Directions whose singular value falls below
        ``epsilon * max |coordinate|`` are discarded, so nearly
        coplanar points give a plane rather than a 3-space.

        Raises:
            ValueError: If *points* is empty.
        """
        pts = np.atleast_2d(np.asarray(points, dtype=float))
        if len(pts) == 0:
            raise ValueError("cannot build a subspace from no points")
        offset = pts[0].copy()
        dim = pts.shape[1]
        if len(pts) == 1 or dim == 0:
            return cls(offset=offset, basis=np.zeros((0, dim)))

        centred = pts - offset
        _, s, vt = np.linalg.svd(centred, full_matrices=False)
        rank = int(np.sum(s > epsilon * _scale(pts)))
        return cls(offset=offset, basis=vt[:rank].copy())

    @property
    def rank(self) -> int:
        """Dimension of the subspace."""
        return len(self.basis)

    @property
    def dim(self) -> int:
        """Dimension of the ambient space."""
        return len(self.offset)

    def coordinates(self, points: np.ndarray) -> np.ndarray:
        """Express points in the subspace's own basis.

        Args:
            points: Array of shape ``(n, dim)`` or ``(dim,)``.

        Returns:
            Array of shape ``(n, rank)`` (or ``(rank,)``).
        """
        pts = np.asarray(points, dtype=float)
        return (pts - self.offset) @ self.basis.T

    def project(self, points: np.ndarray) -> np.ndarray:
        """Orthogonally project points onto the subspace."""
        return self.offset + self.coordinates(points) @ self.basis

    def distance(self, point: np.ndarray) -> float:
        """Distance from *point* to the subspace."""
        point = np.asarray(point, dtype=float)
        return float(np.linalg.norm(point - self.project(point)))


def affine_rank(points: np.ndarray, epsilon: float = EPSILON) -> int:
    """Dimension of the affine hull of *points* (-1 when empty)."""
    pts = np.asarray(points, dtype=float)
    if len(pts) == 0:
        return -1
    return Subspace.from_points(pts, epsilon).rank


def circumsphere(
    points: np.ndarray, epsilon: float = EPSILON,
) -> Hypersphere | None:
    """Smallest sphere through every point, within the points' affine hull.

    The centre is constrained to the affine hull, which makes it unique.
    With ``c = v0 + B t`` for an orthonormal hull basis ``B``, equal
    distances give the linear system ``2 (v_i - v0) . B t = |v_i - v0|^2``.

    Returns:
        The sphere, or ``None`` if no sphere passes through every point
        within tolerance.
    """
    pts = np.atleast_2d(np.asarray(points, dtype=float))
    if len(pts) == 0:
        return None
    v0 = pts[0]
    hull = Subspace.from_points(pts, epsilon)
    if hull.rank == 0:
        return Hypersphere(centre=v0.copy(), radius=0.0)

    diffs = pts[1:] - v0
    a = 2.0 * diffs @ hull.basis.T
    b = np.sum(diffs**2, axis=1)
    t, *_ = np.linalg.lstsq(a, b, rcond=None)
    centre = v0 + t @ hull.basis

    dists = np.linalg.norm(pts - centre, axis=1)
    tol = epsilon * _scale(pts) * 10.0
    if np.max(dists) - np.min(dists) > tol:
        return None
    return Hypersphere(centre=centre, radius=float(dists.mean()))
