from __future__ import annotations

import heapq
import itertools
from typing import Dict, List, Optional, Sequence

from shared.errors import NoPathFound
from shared.types import Coordinate
from src.domain.grid import GridModel


def is_valid_path(path: Sequence[Coordinate]) -> bool:
    """True if every consecutive pair is one unit step along a single axis."""
    return all(abs(x1 - x2) + abs(y1 - y2) == 1 for (x1, y1), (x2, y2) in zip(path, path[1:]))


def path_cost(grid: GridModel, path: Sequence[Coordinate]) -> float:
    # entering a cell costs that cell; the start cell is free
    return float(sum(grid.cost(c) for c in path[1:]))


def _reconstruct(
    came_from: Dict[Coordinate, Optional[Coordinate]], start: Coordinate, end: Coordinate
) -> List[Coordinate]:
    if end not in came_from:
        raise NoPathFound(f"no route from {start} to {end}")
    path: List[Coordinate] = []
    cur: Optional[Coordinate] = end
    while cur is not None:
        path.append(cur)
        cur = came_from[cur]
    path.reverse()
    if path[0] != start:
        raise NoPathFound(f"predecessor chain from {end} does not reach {start}")
    return path


def plan_on_grid(grid: GridModel, start: Coordinate, end: Coordinate) -> List[Coordinate]:
    """Dijkstra on a 4-connected cost grid.

    Edge weight is the cost of the cell being entered. Neighbors expand in
    (+y, +x, -y, -x) order and heap ties break by discovery order, so equal-cost
    grids always give the same route. Stops as soon as ``end`` is popped.
    """
    for name, c in (("start", start), ("end", end)):
        if not grid.in_bounds(c):
            raise NoPathFound(f"{name} {c} outside {grid.width}x{grid.height} grid")

    tie = itertools.count()
    openq: list[tuple[float, int, Coordinate]] = [(0.0, next(tie), start)]
    came_from: dict[Coordinate, Optional[Coordinate]] = {start: None}
    g_cost: dict[Coordinate, float] = {start: 0.0}
    settled: set[Coordinate] = set()

    while openq:
        g, _, cur = heapq.heappop(openq)
        if cur in settled:
            continue  # stale entry
        settled.add(cur)
        if cur == end:
            break
        for nxt in grid.neighbors(cur):
            if nxt in settled:
                continue
            tentative = g + grid.cost(nxt)
            if tentative < g_cost.get(nxt, float("inf")):
                g_cost[nxt] = tentative
                came_from[nxt] = cur
                heapq.heappush(openq, (tentative, next(tie), nxt))
    else:
        raise NoPathFound(f"no route from {start} to {end}")

    return _reconstruct(came_from, start, end)
