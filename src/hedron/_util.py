"""Shared helpers for option dataclasses and sorted index lists."""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence

_field_defaults_cache: dict[tuple[type, frozenset[str]], dict] = {}


def _field_defaults(cls: type, *, exclude: frozenset[str] = frozenset()) -> dict:
    """Return a dict of ``{field_name: default}`` for a dataclass.

    Only fields with simple defaults (not ``MISSING`` and not
    ``default_factory``) are included.  Fields listed in *exclude*
    are skipped.  ``to_dict()`` methods compare current values against
    these so only non-default fields are serialised.  Results are
    cached per ``(cls, exclude)`` pair.
    """
    key = (cls, exclude)
    if key not in _field_defaults_cache:
        _field_defaults_cache[key] = {
            f.name: f.default
            for f in dataclasses.fields(cls)
            if f.default is not dataclasses.MISSING
            and f.name not in exclude
        }
    return _field_defaults_cache[key]


def _common(a: Sequence[int], b: Sequence[int]) -> list[int]:
    """Intersect two sorted index sequences by merging."""
    result: list[int] = []
    i = j = 0
    while i < len(a) and j < len(b):
        if a[i] == b[j]:
            result.append(a[i])
            i += 1
            j += 1
        elif a[i] < b[j]:
            i += 1
        else:
            j += 1
    return result
