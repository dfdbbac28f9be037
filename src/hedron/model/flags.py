"""Flags: maximal chains of elements, and walks over the flag graph.

A flag of a rank-``d`` polytope is stored as a tuple of ``d`` indices,
one for each rank from 0 to ``d - 1``; the nullitope and the body are
implicit.  Two flags are *r-adjacent* when they differ only at rank
``r``; the diamond property guarantees exactly one r-adjacent flag.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator, Sequence

from hedron._util import _common
from hedron.errors import BrokenDiamond
from hedron.model.elements import ElementStore

Flag = tuple[int, ...]


def first_flag(store: ElementStore) -> Flag:
    """The flag through vertex 0 that always takes the first superelement.

    Raises:
        BrokenDiamond: If some element on the way up has no
            superelement.
    """
    d = store.rank
    if d <= 0:
        return ()
    flag = [0]
    idx = 0
    for r in range(1, d):
        sups = store.get_element(r - 1, idx).sups
        if not sups:
            raise BrokenDiamond(r - 1, idx, "element has no superelements")
        idx = sups[0]
        flag.append(idx)
    return tuple(flag)


def flag_change(store: ElementStore, flag: Flag, r: int) -> Flag:
    """The unique flag that differs from *flag* exactly at rank *r*.

    Raises:
        BrokenDiamond: If the interval around rank *r* does not hold
            exactly two elements.
    """
    d = store.rank
    below = flag[r - 1] if r > 0 else 0
    above = flag[r + 1] if r + 1 < d else 0
    common = _common(
        store.get_element(r - 1, below).sups,
        store.get_element(r + 1, above).subs,
    )
    if len(common) != 2:
        raise BrokenDiamond(
            r - 1, below,
            f"{len(common)} elements between it and ({r + 1}, {above})",
        )
    new = common[1] if flag[r] == common[0] else common[0]
    return flag[:r] + (new,) + flag[r + 1:]


def iter_flags(store: ElementStore) -> Iterator[Flag]:
    """Enumerate every flag by descending from each facet."""
    d = store.rank
    if d <= 0:
        yield ()
        return

    stack: list[tuple[int, int, Flag]] = [
        (d - 1, f, (f,)) for f in reversed(range(store.count(d - 1)))
    ]
    while stack:
        r, idx, suffix = stack.pop()
        if r == 0:
            yield suffix
            continue
        for s in reversed(store.get_element(r, idx).subs):
            stack.append((r - 1, s, (s,) + suffix))


def flag_count(store: ElementStore) -> int:
    """Number of flags, by counting chains up from the nullitope.

    ``chains[i]`` holds the number of partial chains from the nullitope
    to element ``i`` of the current rank; the body's value is the flag
    count.
    """
    chains = [1] * store.count(-1)
    for r in range(0, store.rank + 1):
        chains = [
            sum(chains[s] for s in el.subs) for el in store.get_elements(r)
        ]
    return sum(chains)


def flag_orbit(
    store: ElementStore,
    start: Flag | None = None,
    changes: Sequence[int] | None = None,
) -> tuple[dict[Flag, int], bool]:
    """Breadth-first search over the flag graph.

    Args:
        store: The polytope's elements.
        start: Starting flag; the first flag when ``None``.
        changes: Ranks along which flags may change; all ranks
            ``0..d-1`` when ``None``.

    Returns:
        Tuple of ``(parity, orientable)`` where *parity* maps every
        reached flag to 0 or 1 (the number of changes from *start*,
        modulo 2), and *orientable* is ``False`` if two paths of
        different parity reach the same flag.
    """
    d = store.rank
    if d <= 0:
        return {(): 0}, True
    if start is None:
        start = first_flag(store)
    if changes is None:
        changes = range(d)

    parity = {start: 0}
    orientable = True
    queue = deque([start])
    while queue:
        flag = queue.popleft()
        p = parity[flag]
        for r in changes:
            other = flag_change(store, flag, r)
            seen = parity.get(other)
            if seen is None:
                parity[other] = 1 - p
                queue.append(other)
            elif seen == p:
                orientable = False
    return parity, orientable
