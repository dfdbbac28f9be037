"""Abstract polytopes: incidence structure without coordinates."""

from __future__ import annotations

import logging
from collections import Counter, deque
from collections.abc import Iterable, Iterator, Sequence
from itertools import combinations

from hedron.config import GeometryOptions, resolve_options
from hedron.errors import BrokenDiamond, Disconnected, InvalidOperand
from hedron.model.elements import Element, ElementStore
from hedron.model.flags import (
    Flag,
    first_flag,
    flag_change,
    flag_count,
    flag_orbit,
    iter_flags,
)

logger = logging.getLogger(__name__)

Closure = dict[int, set[int]]
Chain = tuple[tuple[int, int], ...]


class AbstractPolytope:
    """An immutable ranked poset of elements.

    The polytope is a thin wrapper around an :class:`ElementStore`;
    every operator returns a new instance.

    Args:
        store: The rank-graded elements, from the nullitope up to the
            body.
    """

    __slots__ = ("_store",)

    def __init__(self, store: ElementStore) -> None:
        if len(store) == 0:
            raise InvalidOperand("a polytope needs at least a nullitope")
        self._store = store

    @classmethod
    def from_subs(cls, subs: Sequence[Sequence[Sequence[int]]]) -> AbstractPolytope:
        """Build from per-rank subelement lists, starting at rank -1."""
        return cls(ElementStore.from_subs(subs))

    @classmethod
    def compound(cls, components: Iterable[AbstractPolytope]) -> AbstractPolytope:
        """Place several polytopes of the same rank side by side.

        The components share one nullitope and one body; every other
        element keeps its incidences, with indices offset past the
        earlier components.  With two or more components of rank at
        least 2, :meth:`validate` rejects the result with
        :class:`Disconnected`.

        Args:
            components: Polytopes of a common rank, at least 1.  An empty
                iterable gives the nullitope.

        Raises:
            InvalidOperand: If the ranks differ or are below 1.
        """
        parts = [c.abstract for c in components]
        if not parts:
            return cls.nullitope()
        d = parts[0].rank
        if d < 1:
            raise InvalidOperand(f"compound components need rank at least 1, got {d}")
        if any(p.rank != d for p in parts):
            raise InvalidOperand(
                f"compound components differ in rank: {[p.rank for p in parts]}"
            )

        subs: list[list[list[int]]] = [[[]]]
        for r in range(0, d):
            rank_subs: list[list[int]] = []
            offset = 0
            for p in parts:
                for el in p.get_elements(r):
                    if r == 0:
                        rank_subs.append([0])
                    else:
                        rank_subs.append([s + offset for s in el.subs])
                offset += p.element_count(r - 1)
            subs.append(rank_subs)
        subs.append([list(range(len(subs[-1])))])
        return cls.from_subs(subs)

    # ---- Elementary shapes ----

    @classmethod
    def nullitope(cls) -> AbstractPolytope:
        """The empty polytope, of rank -1."""
        return cls.from_subs([[[]]])

    @classmethod
    def point(cls) -> AbstractPolytope:
        """The single-vertex polytope, of rank 0."""
        return cls.from_subs([[[]], [[0]]])

    @classmethod
    def dyad(cls) -> AbstractPolytope:
        """The line segment, of rank 1."""
        return cls.from_subs([[[]], [[0], [0]], [[0, 1]]])

    @classmethod
    def polygon(cls, n: int) -> AbstractPolytope:
        """An ``n``-gon; ``n = 2`` gives the digon.

        Raises:
            InvalidOperand: If *n* is less than 2.
        """
        if n < 2:
            raise InvalidOperand(f"a polygon needs at least 2 sides, got {n}")
        edges = [[i, (i + 1) % n] for i in range(n)]
        return cls.from_subs([[[]], [[0]] * n, edges, [list(range(n))]])

    # ---- Basic queries ----

    @property
    def store(self) -> ElementStore:
        """The underlying element store."""
        return self._store

    @property
    def abstract(self) -> AbstractPolytope:
        """This polytope; concrete polytopes return their structure here."""
        return self

    @property
    def rank(self) -> int:
        """Rank of the body."""
        return self._store.rank

    def has_coordinates(self) -> bool:
        """Whether vertices carry positions (never, for abstract polytopes)."""
        return False

    def element_count(self, rank: int) -> int:
        """Number of elements of a given rank (0 outside the rank range)."""
        return self._store.count(rank)

    def element_counts(self) -> list[int]:
        """Element counts for ranks -1 through d."""
        return self._store.counts()

    @property
    def vertex_count(self) -> int:
        return self._store.count(0)

    @property
    def edge_count(self) -> int:
        return self._store.count(1)

    @property
    def facet_count(self) -> int:
        return self._store.count(self.rank - 1)

    def get_elements(self, rank: int) -> tuple[Element, ...]:
        return self._store.get_elements(rank)

    def subelements(self, rank: int, index: int) -> frozenset[int]:
        return self._store.subelements(rank, index)

    def superelements(self, rank: int, index: int) -> frozenset[int]:
        return self._store.superelements(rank, index)

    def euler_characteristic(self) -> int:
        """Alternating sum of the proper element counts from rank 0."""
        return sum(
            (-1) ** r * self._store.count(r) for r in range(0, self.rank)
        )

    # ---- Validation ----

    def validate(self) -> None:
        """Check that the poset is a valid abstract polytope.

        Raises:
            BrokenDiamond: If there is not exactly one minimal and one
                maximal element, if an element is cut off from them, if
                an element above rank 0 has fewer than two subelements
                or one below rank ``d - 1`` has fewer than two
                superelements, or if an interval of length two does not
                contain exactly two elements.
            Disconnected: If a section of rank at least 2 falls apart.
        """
        store = self._store
        d = self.rank
        if store.count(-1) != 1:
            raise BrokenDiamond(-1, 0, "expected a single minimal element")
        if store.count(d) != 1:
            raise BrokenDiamond(d, 0, "expected a single maximal element")
        store.check_incidences()

        for r in range(0, d + 1):
            for idx, el in enumerate(store.get_elements(r)):
                if not el.subs:
                    raise BrokenDiamond(r, idx, "element has no subelements")
                if r > 0 and len(el.subs) < 2:
                    raise BrokenDiamond(r, idx, "fewer than two subelements")
        for r in range(-1, d):
            for idx, el in enumerate(store.get_elements(r)):
                if not el.sups:
                    raise BrokenDiamond(r, idx, "element has no superelements")
                if r < d - 1 and len(el.sups) < 2:
                    raise BrokenDiamond(r, idx, "fewer than two superelements")

        for r in range(-1, d - 1):
            for idx, el in enumerate(store.get_elements(r)):
                tally: Counter[int] = Counter()
                for g in el.sups:
                    tally.update(store.get_element(r + 1, g).sups)
                for h, n in tally.items():
                    if n != 2:
                        raise BrokenDiamond(
                            r, idx, f"{n} elements between it and ({r + 2}, {h})",
                        )

        self._check_connected()

    def is_valid(self) -> bool:
        """Whether :meth:`validate` succeeds."""
        try:
            self.validate()
        except (BrokenDiamond, Disconnected):
            return False
        return True

    def _closure(self, rank: int, index: int, *, upward: bool) -> Closure:
        """Every element below (or above) ``(rank, index)``, itself included."""
        store = self._store
        result: Closure = {rank: {index}}
        step = 1 if upward else -1
        stop = self.rank + 1 if upward else -2
        current = {index}
        for r in range(rank + step, stop, step):
            nxt: set[int] = set()
            for i in current:
                el = store.get_element(r - step, i)
                nxt.update(el.sups if upward else el.subs)
            result[r] = nxt
            current = nxt
        return result

    def _check_connected(self) -> None:
        """Raise :class:`Disconnected` unless every section is connected.

        Only sections whose rank difference is at least 3 can fall
        apart; for each of them the open interval is searched
        breadth-first.
        """
        d = self.rank
        if d < 2:
            return
        store = self._store
        up_cache: dict[tuple[int, int], Closure] = {}

        for rh in range(2, d + 1):
            for hi in range(store.count(rh)):
                below = self._closure(rh, hi, upward=False)
                for rl in range(-1, rh - 2):
                    for lo in below[rl]:
                        key = (rl, lo)
                        above = up_cache.get(key)
                        if above is None:
                            above = self._closure(rl, lo, upward=True)
                            up_cache[key] = above
                        middle = {
                            r: below[r] & above[r] for r in range(rl + 1, rh)
                        }
                        if not _is_connected(store, middle, rl, rh):
                            raise Disconnected((rl, lo), (rh, hi))

    # ---- Flags ----

    def first_flag(self) -> Flag:
        return first_flag(self._store)

    def flags(self) -> Iterator[Flag]:
        """Iterate over every flag, as tuples of indices for ranks 0..d-1."""
        return iter_flags(self._store)

    def flag_change(self, flag: Flag, rank: int) -> Flag:
        """The flag that differs from *flag* only at *rank*."""
        if not 0 <= rank < self.rank:
            raise InvalidOperand(f"cannot change a flag at rank {rank}")
        return flag_change(self._store, flag, rank)

    def flag_count(self) -> int:
        return flag_count(self._store)

    def is_orientable(self) -> bool:
        """Whether the flag graph is bipartite."""
        _, orientable = flag_orbit(self._store)
        return orientable

    def is_flag_connected(self) -> bool:
        """Whether every flag can be reached from the first by flag changes."""
        parity, _ = flag_orbit(self._store)
        return len(parity) == self.flag_count()

    # ---- Operators ----

    def dual(self) -> AbstractPolytope:
        """The polytope with its order reversed."""
        return type(self)(self._store.reversed())

    def petrie_polygon(self, flag: Flag | None = None) -> list[int]:
        """Edges of the Petrie polygon through *flag*, in walking order.

        The walk applies the flag changes ``0, 1, ..., d - 1`` in turn
        and records the edge of each resulting flag until it returns to
        the starting flag.

        Raises:
            InvalidOperand: If the rank is below 2.
        """
        if self.rank < 2:
            raise InvalidOperand(
                f"Petrie polygons need rank at least 2, got {self.rank}"
            )
        start = self.first_flag() if flag is None else tuple(flag)
        edges, _ = self._petrie_walk(start)
        seen: set[int] = set()
        polygon = []
        for e in edges:
            if e in seen:
                break
            seen.add(e)
            polygon.append(e)
        return polygon

    def _petrie_walk(self, start: Flag) -> tuple[list[int], list[Flag]]:
        edges: list[int] = []
        walked: list[Flag] = []
        current = start
        while True:
            walked.append(current)
            for r in range(self.rank):
                current = flag_change(self._store, current, r)
            edges.append(current[1])
            if current == start:
                return edges, walked

    def petrial(
        self,
        *,
        validate: bool | None = None,
        options: GeometryOptions | None = None,
    ) -> AbstractPolytope:
        """Replace the 2-faces of a polyhedron by its Petrie polygons.

        Vertices and edges are kept; each face of the result is the edge
        set of one Petrie polygon.

        Args:
            validate: Validate the result before returning it.  Falls
                back to ``options.validate_petrial`` when ``None``.
            options: Geometry options.

        Raises:
            InvalidOperand: If the rank is not 3.
            BrokenDiamond: If validation is requested and fails.
            Disconnected: If validation is requested and fails.
        """
        if self.rank != 3:
            raise InvalidOperand(f"the Petrial needs rank 3, got {self.rank}")
        opts = resolve_options(options)
        do_validate = opts.validate_petrial if validate is None else validate

        faces: list[list[int]] = []
        seen_faces: set[frozenset[int]] = set()
        visited: set[Flag] = set()
        for flag in self.flags():
            if flag in visited:
                continue
            edges, walked = self._petrie_walk(flag)
            visited.update(walked)
            key = frozenset(edges)
            if key not in seen_faces:
                seen_faces.add(key)
                faces.append(sorted(key))

        subs = self._store.sub_lists()[:3]
        subs.append(faces)
        subs.append([list(range(len(faces)))])
        result = type(self).from_subs(subs)
        logger.debug("Petrial has %d faces", len(faces))
        if do_validate:
            result.validate()
        return result

    def ditope(self) -> AbstractPolytope:
        """Two copies of the body glued along their common boundary.

        Raises:
            InvalidOperand: For the nullitope.
        """
        if self.rank < 0:
            raise InvalidOperand("the nullitope has no ditope")
        subs = self._store.sub_lists()
        body = subs.pop()[0]
        subs.append([body, list(body)])
        subs.append([[0, 1]])
        return type(self).from_subs(subs)

    def hosotope(self) -> AbstractPolytope:
        """The dual of the ditope of the dual."""
        return self.dual().ditope().dual()

    def omnitruncate(self) -> AbstractPolytope:
        """The polytope whose faces are the chains of proper elements.

        A chain of ``m`` pairwise incident proper elements becomes a face
        of rank ``d - m``, so flags become vertices and single elements
        become facets.  One face lies below another when its chain
        contains the other's.  Polytopes of rank below 1 are returned
        unchanged.
        """
        d = self.rank
        if d < 1:
            return self

        by_size: dict[int, set[Chain]] = {m: set() for m in range(1, d + 1)}
        for flag in self.flags():
            full = tuple(enumerate(flag))
            for m in range(1, d + 1):
                by_size[m].update(combinations(full, m))
        layers = [sorted(by_size[d - k]) for k in range(d)]
        positions = [{chain: i for i, chain in enumerate(layer)} for layer in layers]

        subs: list[list[list[int]]] = [[[]], [[0]] * len(layers[0])]
        for k in range(1, d):
            rank_subs: list[list[int]] = [[] for _ in layers[k]]
            here = positions[k]
            for j, chain in enumerate(layers[k - 1]):
                for drop in range(len(chain)):
                    shorter = chain[:drop] + chain[drop + 1:]
                    rank_subs[here[shorter]].append(j)
            subs.append(rank_subs)
        subs.append([list(range(len(layers[-1])))])
        result = type(self).from_subs(subs)
        logger.debug("omnitruncate has counts %s", result.element_counts())
        return result

    # ---- Sections ----

    def element_vertices(self, rank: int, index: int) -> list[int]:
        """Sorted indices of the vertices under ``(rank, index)``."""
        if rank < 0:
            return []
        return sorted(self._closure(rank, index, upward=False)[0])

    def _section(
        self, lo: tuple[int, int], hi: tuple[int, int],
    ) -> tuple[AbstractPolytope, list[list[int]]]:
        """The interval ``[lo, hi]`` as a polytope, with its index maps.

        Returns:
            The section, and for each of its ranks the original indices
            of its elements (in order).
        """
        rl, il = lo
        rh, ih = hi
        if rl > rh:
            raise InvalidOperand(f"section bottom {lo} is above its top {hi}")
        below = self._closure(rh, ih, upward=False)
        if il not in below[rl]:
            raise InvalidOperand(f"{lo} is not below {hi}")
        above = self._closure(rl, il, upward=True)

        members = [sorted(below[r] & above[r]) for r in range(rl, rh + 1)]
        positions = [{old: new for new, old in enumerate(m)} for m in members]
        subs: list[list[list[int]]] = [[[]]]
        for k in range(1, len(members)):
            index = positions[k - 1]
            subs.append([
                [index[s] for s in self._store.get_element(rl + k, old).subs
                 if s in index]
                for old in members[k]
            ])
        return type(self).from_subs(subs), members

    def section(
        self, lo: tuple[int, int], hi: tuple[int, int],
    ) -> AbstractPolytope:
        """The polytope made of the elements between *lo* and *hi*.

        Args:
            lo: ``(rank, index)`` of the bottom element, which becomes
                the nullitope.
            hi: ``(rank, index)`` of the top element, which becomes the
                body.
        """
        return self._section(lo, hi)[0]

    def element(self, rank: int, index: int) -> AbstractPolytope:
        """The polytope formed by everything below ``(rank, index)``."""
        return self._section((-1, 0), (rank, index))[0]

    def element_figure(self, rank: int, index: int) -> AbstractPolytope:
        """The polytope formed by everything above ``(rank, index)``."""
        return self._section((rank, index), (self.rank, 0))[0]

    def vertex_figure(self, index: int) -> AbstractPolytope:
        return self.element_figure(0, index)

    def facet(self, index: int) -> AbstractPolytope:
        return self.element(self.rank - 1, index)

    # ---- Comparison ----

    def is_isomorphic(self, other: AbstractPolytope) -> bool:
        """Whether the two polytopes have isomorphic flag graphs.

        The first flag of this polytope is tried against every flag of
        *other*; a candidate succeeds when the induced map on flags
        respects every flag change and is a bijection.
        """
        other = other.abstract
        if self.element_counts() != other.element_counts():
            return False
        if self.rank <= 0:
            return True
        n_flags = other.flag_count()
        if self.flag_count() != n_flags:
            return False
        start = self.first_flag()
        return any(
            self._maps_onto(other, start, image, n_flags)
            for image in other.flags()
        )

    def _maps_onto(
        self, other: AbstractPolytope, start: Flag, image: Flag, n_flags: int,
    ) -> bool:
        mapping = {start: image}
        used = {image}
        queue = deque([start])
        while queue:
            f = queue.popleft()
            g = mapping[f]
            for r in range(self.rank):
                f2 = flag_change(self._store, f, r)
                g2 = flag_change(other._store, g, r)
                known = mapping.get(f2)
                if known is None:
                    if g2 in used:
                        return False
                    mapping[f2] = g2
                    used.add(g2)
                    queue.append(f2)
                elif known != g2:
                    return False
        return len(mapping) == n_flags

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AbstractPolytope):
            return NotImplemented
        return self._store == other._store

    def __hash__(self) -> int:
        return hash(self._store)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(rank={self.rank}, "
            f"counts={self.element_counts()})"
        )


def _is_connected(
    store: ElementStore, middle: dict[int, set[int]], rl: int, rh: int,
) -> bool:
    """Whether the elements strictly between two ranks form one component."""
    nodes = [(r, i) for r in range(rl + 1, rh) for i in middle[r]]
    if not nodes:
        return True
    seen = {nodes[0]}
    queue = deque([nodes[0]])
    while queue:
        r, i = queue.popleft()
        el = store.get_element(r, i)
        if r - 1 > rl:
            for s in el.subs:
                if s in middle[r - 1] and (r - 1, s) not in seen:
                    seen.add((r - 1, s))
                    queue.append((r - 1, s))
        if r + 1 < rh:
            for s in el.sups:
                if s in middle[r + 1] and (r + 1, s) not in seen:
                    seen.add((r + 1, s))
                    queue.append((r + 1, s))
    return len(seen) == len(nodes)
