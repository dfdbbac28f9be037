"""Shared constants used across the model and construction layers."""

import math

EPSILON: float = 1e-9
"""Default relative tolerance for geometric comparisons."""

MAX_GROUP_ORDER: int = 500_000
"""Default ceiling on the number of enumerated group elements."""

SQRT_2: float = math.sqrt(2.0)
SQRT_3: float = math.sqrt(3.0)
SQRT_5: float = math.sqrt(5.0)

NODE_VALUES: dict[str, float] = {
    "o": 0.0,
    "v": (SQRT_5 - 1.0) / 2.0,
    "x": 1.0,
    "q": SQRT_2,
    "f": (SQRT_5 + 1.0) / 2.0,
    "h": SQRT_3,
    "k": math.sqrt(SQRT_2 + 2.0),
    "u": 2.0,
    "w": SQRT_2 + 1.0,
    "F": (SQRT_5 + 3.0) / 2.0,
    "e": SQRT_3 + 1.0,
    "Q": SQRT_2 * 2.0,
    "d": 3.0,
    "V": SQRT_5 + 1.0,
    "U": SQRT_2 + 2.0,
    "A": (SQRT_5 + 5.0) / 2.0,
    "X": SQRT_2 * 2.0 + 1.0,
    "B": SQRT_5 + 2.0,
}
"""Edge lengths encoded by single-letter Coxeter diagram nodes."""
