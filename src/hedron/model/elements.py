"""Rank-graded element storage.

Elements live in flat per-rank tuples and are addressed by
``(rank, index)`` pairs.  Each element records the indices of its
subelements (one rank down) and superelements (one rank up); the two
relations are plain index tuples, kept mutually inverse by construction.

Ranks run from -1 (the nullitope) to ``d`` (the body).  Internally
rank ``r`` is stored at position ``r + 1``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from hedron.errors import IncidenceMismatch, InvalidOperand


@dataclass(frozen=True)
class Element:
    """A single face of a polytope.

    Attributes:
        subs: Sorted indices of the subelements at rank - 1.
        sups: Sorted indices of the superelements at rank + 1.
    """

    subs: tuple[int, ...]
    sups: tuple[int, ...] = ()


class ElementStore:
    """Read-only per-rank element lists.

    Instances are produced by :class:`AbstractBuilder` or
    :meth:`from_subs` and never change afterwards.
    """

    __slots__ = ("_ranks",)

    def __init__(self, ranks: Sequence[Sequence[Element]]) -> None:
        self._ranks: tuple[tuple[Element, ...], ...] = tuple(
            tuple(elements) for elements in ranks
        )

    @classmethod
    def from_subs(cls, subs: Sequence[Sequence[Iterable[int]]]) -> ElementStore:
        """Build a store from subelement lists alone.

        Superelements are rebuilt in one pass over the whole structure.

        Args:
            subs: ``subs[k]`` lists the subelements of every element of
                rank ``k - 1``; ``subs[0]`` must hold the nullitope's
                (empty) entry.

        Raises:
            InvalidOperand: If an index is out of range or repeated.
        """
        builder = AbstractBuilder()
        for k, elements in enumerate(subs):
            if k == 0:
                if len(elements) != 1 or list(elements[0]):
                    raise InvalidOperand(
                        "rank -1 must hold exactly one empty element"
                    )
                builder.push_nullitope()
            else:
                builder.push(elements)
        return builder.build()

    @property
    def rank(self) -> int:
        """Rank of the top element (-2 for an empty store)."""
        return len(self._ranks) - 2

    def _slot(self, rank: int) -> int:
        slot = rank + 1
        if not 0 <= slot < len(self._ranks):
            raise IndexError(
                f"rank {rank} outside [-1, {self.rank}]"
            )
        return slot

    def get_elements(self, rank: int) -> tuple[Element, ...]:
        """All elements of a given rank, in index order."""
        return self._ranks[self._slot(rank)]

    def get_element(self, rank: int, index: int) -> Element:
        """The element at ``(rank, index)``."""
        return self._ranks[self._slot(rank)][index]

    def subelements(self, rank: int, index: int) -> frozenset[int]:
        """Indices of the rank - 1 elements contained in ``(rank, index)``."""
        return frozenset(self.get_element(rank, index).subs)

    def superelements(self, rank: int, index: int) -> frozenset[int]:
        """Indices of the rank + 1 elements containing ``(rank, index)``."""
        return frozenset(self.get_element(rank, index).sups)

    def count(self, rank: int) -> int:
        """Number of elements at *rank*, or 0 outside the rank range."""
        slot = rank + 1
        if 0 <= slot < len(self._ranks):
            return len(self._ranks[slot])
        return 0

    def counts(self) -> list[int]:
        """Element counts for ranks -1 through d."""
        return [len(elements) for elements in self._ranks]

    def sub_lists(self) -> list[list[list[int]]]:
        """Fresh nested lists of subelement indices, rank by rank."""
        return [
            [list(el.subs) for el in elements] for elements in self._ranks
        ]

    def reversed(self) -> ElementStore:
        """The store with rank order reversed and subs/sups swapped."""
        return ElementStore([
            [Element(subs=el.sups, sups=el.subs) for el in elements]
            for elements in reversed(self._ranks)
        ])

    def check_incidences(self) -> None:
        """Verify that subelements and superelements are mutual inverses.

        Raises:
            IncidenceMismatch: On any asymmetric pair.
        """
        for slot in range(1, len(self._ranks)):
            below = self._ranks[slot - 1]
            for idx, el in enumerate(self._ranks[slot]):
                for s in el.subs:
                    if idx not in below[s].sups:
                        raise IncidenceMismatch(
                            f"element ({slot - 1}, {idx}) lists sub {s} "
                            "without the matching superelement"
                        )
            for idx, el in enumerate(below):
                for s in el.sups:
                    if idx not in self._ranks[slot][s].subs:
                        raise IncidenceMismatch(
                            f"element ({slot - 2}, {idx}) lists sup {s} "
                            "without the matching subelement"
                        )

    def __len__(self) -> int:
        return len(self._ranks)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ElementStore):
            return NotImplemented
        return self._ranks == other._ranks

    def __hash__(self) -> int:
        return hash(self._ranks)

    def __repr__(self) -> str:
        return f"ElementStore(counts={self.counts()})"


class AbstractBuilder:
    """Incremental, bottom-up construction of an :class:`ElementStore`.

    Each :meth:`push` adds a new rank on top and registers every new
    element as a superelement of its subelements, so the inverse
    relation is maintained as elements arrive.

    Example usage::

        builder = AbstractBuilder()
        builder.push_nullitope()
        builder.push_vertices(3)
        builder.push([[0, 1], [1, 2], [2, 0]])
        builder.push_max()
        triangle = builder.build()
    """

    def __init__(self) -> None:
        self._subs: list[list[list[int]]] = []
        self._sups: list[list[list[int]]] = []
        self._built = False

    @property
    def rank(self) -> int:
        """Rank of the highest rank pushed so far."""
        return len(self._subs) - 2

    def _check_open(self) -> None:
        if self._built:
            raise RuntimeError("builder has already been built")

    def push_nullitope(self) -> None:
        """Push the single rank -1 element."""
        self._check_open()
        if self._subs:
            raise InvalidOperand("the nullitope must be pushed first")
        self._subs.append([[]])
        self._sups.append([[]])

    def push_vertices(self, count: int) -> None:
        """Push *count* vertices, each lying on the nullitope."""
        if count < 1:
            raise InvalidOperand(f"need at least one vertex, got {count}")
        self.push([[0]] * count)

    def push(self, elements: Iterable[Iterable[int]]) -> None:
        """Push a new rank whose elements have the given subelements.

        Raises:
            InvalidOperand: If no nullitope has been pushed, or an
                index is out of range or repeated within an element.
        """
        self._check_open()
        if not self._subs:
            raise InvalidOperand("push the nullitope before other ranks")

        below_sups = self._sups[-1]
        n_below = len(below_sups)
        new_subs: list[list[int]] = []
        for idx, subs in enumerate(elements):
            subs = sorted(subs)
            for a, b in zip(subs, subs[1:]):
                if a == b:
                    raise InvalidOperand(
                        f"element {idx} at rank {self.rank + 1} repeats "
                        f"subelement {a}"
                    )
            if subs and not (0 <= subs[0] and subs[-1] < n_below):
                raise InvalidOperand(
                    f"element {idx} at rank {self.rank + 1} refers to a "
                    f"subelement outside [0, {n_below})"
                )
            for s in subs:
                below_sups[s].append(idx)
            new_subs.append(subs)

        self._subs.append(new_subs)
        self._sups.append([[] for _ in new_subs])

    def push_max(self) -> None:
        """Push a single element containing every element of the top rank."""
        self.push([range(len(self._subs[-1]))])

    def build(self) -> ElementStore:
        """Freeze the builder into an :class:`ElementStore`."""
        self._check_open()
        self._built = True
        return ElementStore([
            [
                Element(subs=tuple(subs), sups=tuple(sorted(sups)))
                for subs, sups in zip(rank_subs, rank_sups)
            ]
            for rank_subs, rank_sups in zip(self._subs, self._sups)
        ])
