import heapq
import logging
import math
from typing import Collection, Dict, List, Optional, Tuple

import numpy as np

from citygen.grid import DIRECTIONS_4, Coord, Grid, Tile

logger = logging.getLogger(__name__)

# --- Costs of entering a tile ---
ROAD_COST = 1.0
EMPTY_COST = 5.0
ZONE_COST = 100.0

MAX_ITERATIONS_FACTOR = 3


def terrain_cost(grid: Grid, coord: Coord) -> float:
    if not grid.in_bounds(coord):
        return math.inf
    if coord in grid.roads:
        return ROAD_COST
    tile = grid.get(coord)
    if tile == Tile.EMPTY:
        return EMPTY_COST
    if tile.is_zone:
        return ZONE_COST
    return math.inf


class _TargetHeuristic:
    """
    Minimum Manhattan distance to any target.

    Admissible as long as no step costs less than ROAD_COST.
    """

    def __init__(self, targets: Collection[Coord]):
        pts = np.asarray(list(targets), dtype=np.int64)
        self.tx = pts[:, 0]
        self.ty = pts[:, 1]

    def __call__(self, coord: Coord) -> float:
        return float(np.min(np.abs(self.tx - coord[0]) + np.abs(self.ty - coord[1])))


def _reconstruct(came_from: Dict[Coord, Coord], current: Coord) -> List[Coord]:
    path = [current]
    while current in came_from:
        current = came_from[current]
        path.append(current)
    path.reverse()
    return path


def find_path(grid: Grid, start: Coord, targets: Collection[Coord]) -> Optional[List[Coord]]:
    """
    A* from `start` to whichever member of `targets` is reached first.

    Returns the coordinates from start to the target inclusive, or None when
    no target is reachable within 3 * width * height iterations.
    """
    if not targets:
        return None
    if not isinstance(targets, (set, frozenset)):
        targets = set(targets)
    if start in targets:
        return [start]

    heuristic = _TargetHeuristic(targets)
    max_iterations = grid.width * grid.height * MAX_ITERATIONS_FACTOR

    open_heap: List[Tuple[float, int, float, Coord]] = []  # (f, tie, g, coord)
    tie_breaker = 0
    heapq.heappush(open_heap, (heuristic(start), tie_breaker, 0.0, start))
    came_from: Dict[Coord, Coord] = {}
    g_score: Dict[Coord, float] = {start: 0.0}
    iterations = 0

    while open_heap:
        iterations += 1
        if iterations > max_iterations:
            logger.warning("A* iteration limit (%d) exceeded from %s", max_iterations, start)
            return None

        _, _, pushed_g, current = heapq.heappop(open_heap)
        if current in targets:
            return _reconstruct(came_from, current)
        current_g = g_score[current]
        # Stale heap entry, a cheaper route was found after it was pushed
        if pushed_g > current_g:
            continue

        cx, cy = current
        for dx, dy in DIRECTIONS_4:
            nbr = (cx + dx, cy + dy)
            step = terrain_cost(grid, nbr)
            if math.isinf(step):
                continue
            tentative_g = current_g + step
            if tentative_g < g_score.get(nbr, math.inf):
                came_from[nbr] = current
                g_score[nbr] = tentative_g
                tie_breaker += 1
                heapq.heappush(open_heap, (tentative_g + heuristic(nbr), tie_breaker, tentative_g, nbr))

    logger.debug("A* found no path from %s", start)
    return None


def path_cost(grid: Grid, path: List[Coord]) -> float:
    """Cost of walking `path`, not counting the start tile."""
    return sum(terrain_cost(grid, c) for c in path[1:])
