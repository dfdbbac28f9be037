"""Product operators: pyramids, prisms, tegums and combs of polytopes.

Every product is built from pairs ``(a, b)`` of elements of the two
factors.  The four products differ only in which ranks of each factor
take part, how pair ranks are offset, and whether an extra nullitope or
body closes the result:

=========  ===================  ===========  ==================
product    factor ranks         pair rank    extra elements
=========  ===================  ===========  ==================
pyramid    -1 .. d              ra + rb + 1  none
prism      0 .. d               ra + rb      nullitope
tegum      -1 .. d - 1          ra + rb + 1  body
comb       0 .. d - 1           ra + rb      nullitope and body
=========  ===================  ===========  ==================

Operators accept abstract or concrete polytopes.  The result is
concrete when both factors are, and abstract otherwise.
"""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np

from hedron.errors import InvalidOperand
from hedron.model.abstract import AbstractPolytope
from hedron.model.concrete import ConcretePolytope

Polytope = AbstractPolytope | ConcretePolytope


def _pair_product(
    p: AbstractPolytope,
    q: AbstractPolytope,
    p_ranks: range,
    q_ranks: range,
    offset: int,
    *,
    nullitope: bool,
    body: bool,
) -> AbstractPolytope:
    """Build the poset of element pairs with the given rank ranges.

    Pairs of a given product rank are ordered by the rank of their
    first component, then by the index in *p*, then by the index in *q*.
    """
    ps, qs = p.store, q.store
    if not p_ranks or not q_ranks:
        raise InvalidOperand("a product factor has no elements to pair")
    lo = p_ranks[0] + q_ranks[0] + offset
    hi = p_ranks[-1] + q_ranks[-1] + offset

    # start[(ra, rb)] is the index of the first pair of that block.
    start: dict[tuple[int, int], int] = {}
    blocks: dict[int, list[tuple[int, int]]] = {k: [] for k in range(lo, hi + 1)}
    for k in range(lo, hi + 1):
        position = 0
        for ra in p_ranks:
            rb = k - offset - ra
            if rb in q_ranks:
                start[(ra, rb)] = position
                blocks[k].append((ra, rb))
                position += ps.count(ra) * qs.count(rb)

    def index(ra: int, a: int, rb: int, b: int) -> int:
        return start[(ra, rb)] + a * qs.count(rb) + b

    subs: list[list[list[int]]] = [[[]]] if nullitope else []
    for k in range(lo, hi + 1):
        rank_subs: list[list[int]] = []
        for ra, rb in blocks[k]:
            for a, el_a in enumerate(ps.get_elements(ra)):
                for b, el_b in enumerate(qs.get_elements(rb)):
                    if k == lo:
                        rank_subs.append([0] if nullitope else [])
                        continue
                    entry = []
                    if ra - 1 in p_ranks:
                        entry.extend(index(ra - 1, s, rb, b) for s in el_a.subs)
                    if rb - 1 in q_ranks:
                        entry.extend(index(ra, a, rb - 1, s) for s in el_b.subs)
                    rank_subs.append(entry)
        subs.append(rank_subs)
    if body:
        subs.append([list(range(len(subs[-1])))])
    return AbstractPolytope.from_subs(subs)


def _both_concrete(p: Polytope, q: Polytope) -> bool:
    return p.has_coordinates() and q.has_coordinates()


def _join_vertices(
    p: ConcretePolytope, q: ConcretePolytope, height: float | None,
) -> np.ndarray:
    """Vertices of *q* then *p*, embedded in complementary subspaces.

    With a *height*, a final coordinate of ``+height / 2`` (for *q*) or
    ``-height / 2`` (for *p*) separates the two factors.  Without one
    (the tegum), a point factor is the body of its own pairs and
    contributes no vertex, unless both factors are points: their sum is
    a single point at both positions side by side.
    """
    pv, qv = p.vertices, q.vertices
    if height is None and p.rank == 0 and q.rank == 0:
        return np.hstack([pv, qv])
    if height is None:
        pv = pv if p.rank > 0 else pv[:0]
        qv = qv if q.rank > 0 else qv[:0]
    pd, qd = p.dim, q.dim
    nq = len(qv)
    extra = 0 if height is None else 1
    coords = np.zeros((nq + len(pv), pd + qd + extra))
    coords[:nq, pd:pd + qd] = qv
    coords[nq:, :pd] = pv
    if height is not None:
        coords[:nq, -1] = height / 2.0
        coords[nq:, -1] = -height / 2.0
    return coords


def _concat_vertices(p: ConcretePolytope, q: ConcretePolytope) -> np.ndarray:
    """Every vertex of *p* concatenated with every vertex of *q*, *p*-major."""
    left = np.repeat(p.vertices, q.vertex_count, axis=0)
    right = np.tile(q.vertices, (p.vertex_count, 1))
    return np.hstack([left, right])


def _reject_nullitope(name: str, *factors: Polytope) -> None:
    for f in factors:
        if f.rank < 0:
            raise InvalidOperand(f"the {name} of a nullitope is undefined")


def duopyramid(p: Polytope, q: Polytope, height: float = 1.0) -> Polytope:
    """The join of two polytopes.

    Args:
        p: First factor.
        q: Second factor.
        height: Distance between the hyperplanes holding the two
            factors, for concrete factors.
    """
    structure = _pair_product(
        p.abstract, q.abstract,
        range(-1, p.rank + 1), range(-1, q.rank + 1), 1,
        nullitope=False, body=False,
    )
    if _both_concrete(p, q):
        return ConcretePolytope(structure, _join_vertices(p, q, height))
    return structure


def duoprism(p: Polytope, q: Polytope) -> Polytope:
    """The Cartesian product of two polytopes.

    Raises:
        InvalidOperand: If either factor is the nullitope.
    """
    _reject_nullitope("prism", p, q)
    structure = _pair_product(
        p.abstract, q.abstract,
        range(0, p.rank + 1), range(0, q.rank + 1), 0,
        nullitope=True, body=False,
    )
    if _both_concrete(p, q):
        return ConcretePolytope(structure, _concat_vertices(p, q))
    return structure


def duotegum(p: Polytope, q: Polytope) -> Polytope:
    """The direct sum of two polytopes, dual to the prism of their duals.

    Raises:
        InvalidOperand: If either factor is the nullitope.
    """
    _reject_nullitope("tegum", p, q)
    structure = _pair_product(
        p.abstract, q.abstract,
        range(-1, p.rank), range(-1, q.rank), 1,
        nullitope=False, body=True,
    )
    if _both_concrete(p, q):
        return ConcretePolytope(structure, _join_vertices(p, q, None))
    return structure


def duocomb(p: Polytope, q: Polytope) -> Polytope:
    """The comb product, pairing proper elements of both factors.

    Raises:
        InvalidOperand: If either factor has rank below 1.
    """
    _reject_nullitope("comb", p, q)
    if p.rank < 1 or q.rank < 1:
        raise InvalidOperand("comb factors need rank at least 1")
    structure = _pair_product(
        p.abstract, q.abstract,
        range(0, p.rank), range(0, q.rank), 0,
        nullitope=True, body=True,
    )
    if _both_concrete(p, q):
        return ConcretePolytope(structure, _concat_vertices(p, q))
    return structure


def _point_like(p: Polytope) -> Polytope:
    from hedron.construction.shapes import abstract_point, point

    return point() if p.has_coordinates() else abstract_point()


def _dyad_like(p: Polytope) -> Polytope:
    from hedron.construction.shapes import abstract_dyad, dyad

    return dyad() if p.has_coordinates() else abstract_dyad()


def pyramid(p: Polytope, height: float = 1.0) -> Polytope:
    """The pyramid over *p*, with its apex *height* away from the base."""
    return duopyramid(p, _point_like(p), height)


def prism(p: Polytope, q: Polytope | None = None) -> Polytope:
    """The prism over *p*; *q* defaults to the unit dyad."""
    return duoprism(p, _dyad_like(p) if q is None else q)


def tegum(p: Polytope, q: Polytope | None = None) -> Polytope:
    """The tegum (bipyramid) over *p*; *q* defaults to the unit dyad."""
    return duotegum(p, _dyad_like(p) if q is None else q)


def _fold(op, factors: Iterable[Polytope], empty) -> Polytope:
    it = iter(factors)
    try:
        result = next(it)
    except StopIteration:
        return empty()
    for f in it:
        result = op(result, f)
    return result


def multipyramid(factors: Iterable[Polytope]) -> Polytope:
    """Iterated join; the empty join is the nullitope."""
    from hedron.construction.shapes import nullitope

    return _fold(duopyramid, factors, nullitope)


def multiprism(factors: Iterable[Polytope]) -> Polytope:
    """Iterated Cartesian product; the empty product is the point."""
    from hedron.construction.shapes import point

    return _fold(duoprism, factors, point)


def multitegum(factors: Iterable[Polytope]) -> Polytope:
    """Iterated direct sum; the empty sum is the point."""
    from hedron.construction.shapes import point

    return _fold(duotegum, factors, point)


def multicomb(factors: Iterable[Polytope]) -> Polytope:
    """Iterated comb product; the empty product is the nullitope."""
    from hedron.construction.shapes import nullitope

    return _fold(duocomb, factors, nullitope)


def ditope(p: Polytope) -> Polytope:
    return p.ditope()


def hosotope(p: Polytope) -> Polytope:
    return p.hosotope()


def omnitruncate(p: Polytope) -> AbstractPolytope:
    """The omnitruncate of the incidence structure of *p*."""
    return p.abstract.omnitruncate()


def compound(components: Iterable[Polytope]) -> Polytope:
    """Several polytopes of one rank sharing a nullitope and a body.

    The result is concrete when every component is.
    """
    parts = list(components)
    if parts and all(c.has_coordinates() for c in parts):
        return ConcretePolytope.compound(parts)
    return AbstractPolytope.compound(parts)
