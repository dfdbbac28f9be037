"""Numeric tolerances and size limits shared by every operator."""

from __future__ import annotations

from dataclasses import dataclass

from hedron._constants import EPSILON, MAX_GROUP_ORDER
from hedron._util import _field_defaults


@dataclass(frozen=True)
class GeometryOptions:
    """Configuration for construction, validation and realisation.

    Attributes:
        epsilon: Relative tolerance for geometric comparisons.  The
            absolute tolerance used on a vertex set is
            ``epsilon * max |coordinate|``, or *epsilon* itself when
            every coordinate is zero.
        max_group_order: Ceiling on the number of group elements the
            Coxeter engine will enumerate before raising
            :class:`~hedron.errors.TooLarge`.
        validate_petrial: Whether :meth:`AbstractPolytope.petrial`
            validates its result before returning it.
        workers: Number of threads used per group-generation layer.
            ``1`` runs everything on the calling thread.
    """

    epsilon: float = EPSILON
    max_group_order: int = MAX_GROUP_ORDER
    validate_petrial: bool = False
    workers: int = 1

    def __post_init__(self) -> None:
        if not 0.0 < self.epsilon < 1.0:
            raise ValueError(
                f"epsilon must be in (0, 1), got {self.epsilon}"
            )
        if self.max_group_order < 1:
            raise ValueError(
                f"max_group_order must be positive, got {self.max_group_order}"
            )
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")

    def tolerance(self, scale: float) -> float:
        """Absolute tolerance for coordinates of magnitude *scale*."""
        scale = abs(scale)
        return self.epsilon * (scale if scale > 0.0 else 1.0)

    def to_dict(self) -> dict:
        """Serialise to a JSON-compatible dictionary.

        Fields at their default values are omitted.
        """
        return {
            name: getattr(self, name)
            for name, default in _field_defaults(type(self)).items()
            if getattr(self, name) != default
        }

    @classmethod
    def from_dict(cls, d: dict) -> GeometryOptions:
        """Deserialise from a dictionary.

        Raises:
            ValueError: If *d* contains unknown keys.
        """
        known = _field_defaults(cls)
        unknown = set(d) - set(known)
        if unknown:
            raise ValueError(
                f"unknown option keys: {sorted(unknown)}"
            )
        return cls(**d)


DEFAULT_OPTIONS = GeometryOptions()


def resolve_options(options: GeometryOptions | None) -> GeometryOptions:
    """Return *options*, or the defaults when ``None``."""
    return DEFAULT_OPTIONS if options is None else options
