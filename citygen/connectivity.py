import logging
from collections import deque
from typing import List, Optional, Set

from citygen.context import GenerationContext
from citygen.grid import Coord, Grid
from citygen.pathfinding import find_path

logger = logging.getLogger(__name__)


def find_road_components(grid: Grid) -> List[List[Coord]]:
    """
    4-connected road components, each listed in discovery order.

    Seeds are taken in sorted order, so the first member of every component
    is also its smallest coordinate.
    """
    components: List[List[Coord]] = []
    visited: Set[Coord] = set()
    for seed in grid.sorted_roads():
        if seed in visited:
            continue
        visited.add(seed)
        component = [seed]
        queue = deque([seed])
        while queue:
            node = queue.popleft()
            for nbr in grid.neighbors(node):
                if nbr in grid.roads and nbr not in visited:
                    visited.add(nbr)
                    component.append(nbr)
                    queue.append(nbr)
        components.append(component)
    return components


def ensure_road_connectivity(ctx: GenerationContext) -> int:
    """Join every road component to the largest one. Returns new road tiles."""
    components = find_road_components(ctx.grid)
    if len(components) <= 1:
        return 0

    # Stable sort keeps the first-found component ahead among equal sizes
    components.sort(key=len, reverse=True)
    main_network: Set[Coord] = set(components[0])
    logger.info("Found %d road components. Connecting...", len(components))

    added = 0
    for component in components[1:]:
        if all(node in main_network for node in component):
            continue
        start = component[0]
        path = find_path(ctx.grid, start, main_network)
        if path is None:
            logger.warning("Connectivity: no path from component at %s (%d tiles), skipped.",
                           start, len(component))
            continue
        added += ctx.commit_road(path, network=main_network)
        main_network.update(component)

    logger.info("Connectivity pass added %d road tiles. Road tiles: %d", added, len(ctx.grid.roads))
    return added


def ensure_zone_accessibility(ctx: GenerationContext) -> int:
    """Give every zoned tile a road among its eight neighbours."""
    grid = ctx.grid
    needing_access = [c for c in grid.coords()
                      if grid.get(c).is_zone and not grid.has_adjacent_road(c, diagonals=True)]
    if not needing_access:
        return 0
    logger.info("Found %d buildings needing access. Connecting...", len(needing_access))

    network = set(grid.roads)
    added = 0
    for coord in needing_access:
        # Earlier paths may already serve this tile
        if not grid.get(coord).is_zone or grid.has_adjacent_road(coord, diagonals=True):
            continue
        path = find_path(grid, coord, network)
        if path is None:
            logger.warning("Accessibility: no path from %s, skipped.", coord)
            continue
        # The whole path is paved, starting tile included
        added += ctx.commit_road(path, network=network)
    return added


def nearest_road_near(grid: Grid, center: Coord, radius: int) -> Optional[Coord]:
    """Closest road tile (squared Euclidean) inside the square window around center."""
    cx, cy = center
    nearest = None
    best = None
    for x in range(max(0, cx - radius), min(grid.width - 1, cx + radius) + 1):
        for y in range(max(0, cy - radius), min(grid.height - 1, cy + radius) + 1):
            if (x, y) in grid.roads:
                dist_sq = (x - cx) ** 2 + (y - cy) ** 2
                if best is None or dist_sq < best:
                    best = dist_sq
                    nearest = (x, y)
    return nearest


def nearest_site(point: Coord, sites: List[Coord]) -> Optional[Coord]:
    if not sites:
        return None
    return min(sites, key=lambda s: (s[0] - point[0]) ** 2 + (s[1] - point[1]) ** 2)


def draw_grid_path(grid: Grid, start: Coord, end: Coord) -> List[Coord]:
    """Greedy cardinal walk, stepping along the longer remaining axis (x on ties)."""
    current = start
    path = [current]
    while current != end:
        dx = end[0] - current[0]
        dy = end[1] - current[1]
        if abs(dx) >= abs(dy):
            step = (1 if dx > 0 else -1, 0)
        else:
            step = (0, 1 if dy > 0 else -1)
        current = (current[0] + step[0], current[1] + step[1])
        if not grid.in_bounds(current):
            break
        path.append(current)
    if path[-1] != end:
        path.append(end)
    return path


def edge_anchors(grid: Grid) -> List[Coord]:
    w, h = grid.width, grid.height
    return [(w // 2, h - 1), (w // 2, 0), (0, h // 2), (w - 1, h // 2)]


def ensure_map_edge_connections(ctx: GenerationContext) -> int:
    """Run a road out to the middle of each map edge."""
    grid = ctx.grid
    if not grid.roads and not ctx.sites:
        logger.warning("Skipped edge connections (no roads or sites).")
        return 0

    added = 0
    for anchor in edge_anchors(grid):
        start = nearest_road_near(grid, anchor, ctx.config.edge_search_radius)
        if start is None:
            start = nearest_site(anchor, ctx.sites)
        if start is None:
            continue
        added += ctx.commit_road(draw_grid_path(grid, start, anchor))

    logger.info("Road tiles after edge connection: %d", len(grid.roads))
    return added
