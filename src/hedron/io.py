"""JSON serialisation of concrete polytopes.

A polytope file holds the rank, the vertex positions and, for each rank
from 1 to ``d``, the subelement indices of every element::

    {
      "rank": 2,
      "vertices": [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]],
      "elements": [[[0, 1], [1, 2], [0, 2]], [[0, 1, 2]]]
    }

The nullitope and the per-vertex links to it are implied.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import numpy as np

from hedron.errors import InvalidOperand
from hedron.model.abstract import AbstractPolytope
from hedron.model.concrete import ConcretePolytope

logger = logging.getLogger(__name__)

_VALID_KEYS = frozenset({"rank", "vertices", "elements"})


def polytope_to_dict(polytope: ConcretePolytope) -> dict:
    """Serialise a concrete polytope to a JSON-compatible dictionary."""
    subs = polytope.abstract.store.sub_lists()
    return {
        "rank": polytope.rank,
        "vertices": polytope.vertices.tolist(),
        "elements": subs[2:],
    }


def polytope_from_dict(d: dict) -> ConcretePolytope:
    """Build a concrete polytope from a dictionary.

    The element lists are not validated here; see
    :func:`load_polytope`.

    Raises:
        InvalidOperand: If keys are missing or unknown, or the element
            lists do not match the declared rank.
    """
    unknown = set(d) - _VALID_KEYS
    if unknown:
        raise InvalidOperand(f"unknown keys in polytope data: {sorted(unknown)}")
    missing = _VALID_KEYS - set(d)
    if missing:
        raise InvalidOperand(f"missing keys in polytope data: {sorted(missing)}")

    rank = int(d["rank"])
    elements = d["elements"]
    if rank == -1:
        if d["vertices"] or elements:
            raise InvalidOperand("the nullitope has no vertices or elements")
        return ConcretePolytope(AbstractPolytope.nullitope(), np.zeros((0, 0)))
    if len(elements) != rank:
        raise InvalidOperand(
            f"rank {rank} needs {rank} element lists, got {len(elements)}"
        )
    return ConcretePolytope.from_subs(d["vertices"], elements)


def save_polytope(path: str | Path, polytope: ConcretePolytope) -> None:
    """Write a concrete polytope to a JSON file."""
    data = polytope_to_dict(polytope)
    Path(path).write_text(json.dumps(data, indent=2) + "\n")
    logger.debug("saved rank %d polytope to %s", polytope.rank, path)


def load_polytope(path: str | Path, validate: bool = True) -> ConcretePolytope:
    """Load a concrete polytope from a JSON file.

    Args:
        path: Source file path.
        validate: Check the diamond property and connectivity of the
            loaded structure.

    Returns:
        The loaded :class:`~hedron.model.concrete.ConcretePolytope`.

    Raises:
        InvalidOperand: If the file layout is malformed.
        BrokenDiamond: If *validate* is set and the diamond property
            fails.
        Disconnected: If *validate* is set and a section is not
            connected.
    """
    polytope = polytope_from_dict(json.loads(Path(path).read_text()))
    if validate:
        polytope.validate()
    return polytope
