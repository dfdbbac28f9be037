"""Typed errors raised by construction and validation.

Every user-facing error derives from :class:`PolytopeError`, which is a
:class:`ValueError`, so callers may catch either.
"""

from __future__ import annotations


class PolytopeError(ValueError):
    """Base class for recoverable construction and validation errors."""


class BrokenDiamond(PolytopeError):
    """An interval of length two does not hold exactly two elements.

    Attributes:
        rank: Rank of the offending element.
        index: Index of the offending element within its rank.
    """

    def __init__(self, rank: int, index: int, detail: str = "") -> None:
        self.rank = rank
        self.index = index
        message = f"diamond property fails at rank {rank}, index {index}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class Disconnected(PolytopeError):
    """A section of the polytope is not connected.

    Attributes:
        lo: ``(rank, index)`` of the section's bottom element.
        hi: ``(rank, index)`` of the section's top element.
    """

    def __init__(
        self,
        lo: tuple[int, int] | None = None,
        hi: tuple[int, int] | None = None,
    ) -> None:
        self.lo = lo
        self.hi = hi
        if lo is None or hi is None:
            message = "polytope is not connected"
        else:
            message = f"section {hi}/{lo} is not connected"
        super().__init__(message)


class InvalidDiagram(PolytopeError):
    """A Coxeter diagram is malformed.

    Attributes:
        pos: Character position in the source text, when parsing.
    """

    def __init__(self, message: str, pos: int | None = None) -> None:
        self.pos = pos
        if pos is not None:
            message = f"{message} at position {pos}"
        super().__init__(message)


class InfiniteGroup(PolytopeError):
    """The diagram generates an infinite (non-spherical) group."""


class TooLarge(PolytopeError):
    """Group enumeration would exceed the configured size ceiling.

    Attributes:
        size: Predicted or reached number of elements.
        limit: The configured ceiling.
    """

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(
            f"group has at least {size} elements, above the limit of {limit}"
        )


class DegenerateSeed(PolytopeError):
    """The Wythoff seed point lies on a mirror it should avoid."""


class InvalidOperand(PolytopeError):
    """An operator received an input it cannot act on."""


class Degenerate(PolytopeError):
    """Distinct elements coincide, or an element has zero measure."""


class IncidenceMismatch(RuntimeError):
    """Subelement and superelement lists are not mutual inverses.

    This indicates a defect in the library rather than bad input.
    """
