#!/usr/bin/env python3
from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np

from shared.errors import InvalidInput
from shared.types import Coordinate

# 4-connected expansion order (+y, +x, -y, -x); fixed so equal-cost routes
# always reconstruct the same way.
STEPS_4: Tuple[Coordinate, ...] = ((0, 1), (1, 0), (0, -1), (-1, 0))


class GridModel:
    """Immutable W x H grid with a nonnegative traversal cost per cell.

    Costs are stored row-major as ``costs[y, x]``.
    """

    def __init__(self, costs) -> None:
        arr = np.array(costs, dtype=float)
        if arr.ndim != 2 or arr.size == 0:
            raise InvalidInput(f"grid costs must be a non-empty 2D array, got shape {arr.shape}")
        if not np.all(np.isfinite(arr)):
            raise InvalidInput("grid costs must be finite")
        if np.any(arr < 0.0):
            raise InvalidInput("grid costs must be nonnegative")
        arr.setflags(write=False)
        self._costs = arr

    @classmethod
    def uniform(cls, width: int, height: int, cost: float = 1.0) -> "GridModel":
        if width <= 0 or height <= 0:
            raise InvalidInput(f"grid size must be positive, got {width}x{height}")
        return cls(np.full((height, width), float(cost)))

    @property
    def width(self) -> int:
        return int(self._costs.shape[1])

    @property
    def height(self) -> int:
        return int(self._costs.shape[0])

    @property
    def costs(self) -> np.ndarray:
        return self._costs

    def in_bounds(self, c: Coordinate) -> bool:
        x, y = c
        return 0 <= x < self.width and 0 <= y < self.height

    def cost(self, c: Coordinate) -> float:
        if not self.in_bounds(c):
            raise InvalidInput(f"cell {c} outside {self.width}x{self.height} grid")
        x, y = c
        return float(self._costs[y, x])

    def neighbors(self, c: Coordinate) -> Iterable[Coordinate]:
        x, y = c
        for dx, dy in STEPS_4:
            n = (x + dx, y + dy)
            if self.in_bounds(n):
                yield n

    def __repr__(self) -> str:
        return f"GridModel({self.width}x{self.height})"


def grid_for_endpoints(start: Coordinate, end: Coordinate, cost: float = 1.0) -> GridModel:
    """Smallest uniform grid containing both endpoints (origin at (0, 0))."""
    for c in (start, end):
        if c[0] < 0 or c[1] < 0:
            raise InvalidInput(f"coordinates must be non-negative, got {c}")
    w = max(start[0], end[0]) + 1
    h = max(start[1], end[1]) + 1
    return GridModel.uniform(w, h, cost)


def manhattan(a: Coordinate, b: Coordinate) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])
