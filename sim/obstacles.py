from __future__ import annotations

import random
from typing import FrozenSet, Set, Tuple

from shared.errors import InvalidInput
from shared.types import Coordinate


def _candidates(hi: int, start: Coordinate, end: Coordinate) -> int:
    """Number of cells in [1, hi]^2 that are neither start nor end."""
    n = hi * hi
    for c in {start, end}:
        if 1 <= c[0] <= hi and 1 <= c[1] <= hi:
            n -= 1
    return n


def generate_obstacles(
    width: int,
    height: int,
    start: Coordinate,
    end: Coordinate,
    rng: random.Random,
    *,
    count_range: Tuple[int, int] = (5, 15),
) -> FrozenSet[Coordinate]:
    """Uniform obstacle sampler.

    Draws a count from ``count_range`` (inclusive), then that many cells
    uniformly from [1, min(width, height) - 1]^2, resampling any draw that lands
    on start or end. Repeated draws collapse, so the field can be smaller than
    the count. Returns an empty field when the square has no usable cell.
    """
    lo, hi_count = count_range
    if lo < 0 or hi_count < lo:
        raise InvalidInput(f"bad obstacle count range {count_range}")
    count = rng.randint(lo, hi_count)

    hi = min(width, height) - 1
    if hi < 1 or _candidates(hi, start, end) <= 0:
        return frozenset()

    out: Set[Coordinate] = set()
    for _ in range(count):
        while True:
            c = (rng.randint(1, hi), rng.randint(1, hi))
            if c != start and c != end:
                break
        out.add(c)
    return frozenset(out)
