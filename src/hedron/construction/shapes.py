"""Elementary polytopes with unit edges, and their abstract structures."""

from __future__ import annotations

import math

import numpy as np

from hedron._constants import SQRT_2
from hedron.construction.products import multiprism, multipyramid, multitegum
from hedron.errors import InvalidOperand
from hedron.model.abstract import AbstractPolytope
from hedron.model.concrete import ConcretePolytope


def _check_rank(rank: int) -> None:
    if rank < -1:
        raise InvalidOperand(f"rank must be at least -1, got {rank}")


# ---- Abstract structures ----

def abstract_nullitope() -> AbstractPolytope:
    return AbstractPolytope.nullitope()


def abstract_point() -> AbstractPolytope:
    return AbstractPolytope.point()


def abstract_dyad() -> AbstractPolytope:
    return AbstractPolytope.dyad()


def abstract_polygon(n: int) -> AbstractPolytope:
    return AbstractPolytope.polygon(n)


def abstract_simplex(rank: int) -> AbstractPolytope:
    """The simplex of a given rank: the join of ``rank + 1`` points."""
    _check_rank(rank)
    if rank == -1:
        return abstract_nullitope()
    return multipyramid([abstract_point()] * (rank + 1))


def abstract_hypercube(rank: int) -> AbstractPolytope:
    """The hypercube: the product of ``rank`` dyads."""
    _check_rank(rank)
    if rank == -1:
        return abstract_nullitope()
    return multiprism([abstract_dyad()] * rank) if rank else abstract_point()


def abstract_orthoplex(rank: int) -> AbstractPolytope:
    """The orthoplex: the direct sum of ``rank`` dyads."""
    _check_rank(rank)
    if rank == -1:
        return abstract_nullitope()
    return multitegum([abstract_dyad()] * rank) if rank else abstract_point()


# ---- Concrete realisations ----

def nullitope() -> ConcretePolytope:
    return ConcretePolytope(abstract_nullitope(), np.zeros((0, 0)))


def point() -> ConcretePolytope:
    """The point, in a space of dimension zero."""
    return ConcretePolytope(abstract_point(), np.zeros((1, 0)))


def dyad() -> ConcretePolytope:
    """The unit segment from -1/2 to 1/2."""
    return ConcretePolytope(abstract_dyad(), [[-0.5], [0.5]])


def polygon(n: int, turn: int = 1) -> ConcretePolytope:
    """A regular polygon ``{n/turn}`` with unit edges, centred at the origin.

    Vertex ``k`` sits at angle ``2 pi turn k / n``, so consecutive
    vertices are joined by edges and star polygons wind *turn* times.

    Raises:
        InvalidOperand: If ``n < 3`` or *turn* is not coprime to *n* and
            between 1 and ``n / 2``.
    """
    if n < 3:
        raise InvalidOperand(f"a regular polygon needs at least 3 sides, got {n}")
    if not 1 <= turn <= n // 2 or math.gcd(n, turn) != 1:
        raise InvalidOperand(f"{{{n}/{turn}}} is not a regular polygon")
    radius = 1.0 / (2.0 * math.sin(math.pi * turn / n))
    angles = 2.0 * math.pi * turn * np.arange(n) / n
    coords = radius * np.column_stack([np.cos(angles), np.sin(angles)])
    return ConcretePolytope(abstract_polygon(n), coords)


def simplex(rank: int) -> ConcretePolytope:
    """A regular simplex with unit edges, centred at the origin.

    The first ``rank`` vertices are ``e_i / sqrt(2)``; the last has every
    coordinate equal to ``(1 - sqrt(rank + 1)) / (sqrt(2) rank)``, which
    puts it at unit distance from the others.
    """
    _check_rank(rank)
    if rank == -1:
        return nullitope()
    if rank == 0:
        return point()
    coords = np.vstack([
        np.eye(rank) * SQRT_2 / 2.0,
        np.full((1, rank), (1.0 - math.sqrt(rank + 1)) * SQRT_2 / (2.0 * rank)),
    ])
    return ConcretePolytope(abstract_simplex(rank), coords).recenter()


def hypercube(rank: int) -> ConcretePolytope:
    """The hypercube with unit edges: the product of ``rank`` unit dyads."""
    _check_rank(rank)
    if rank == -1:
        return nullitope()
    return multiprism([dyad()] * rank)


def orthoplex(rank: int) -> ConcretePolytope:
    """The orthoplex with vertices at ``+-1/2`` on each axis."""
    _check_rank(rank)
    if rank == -1:
        return nullitope()
    return multitegum([dyad()] * rank)
