import logging
from typing import List, Sequence

import numpy as np

from citygen.context import GenerationContext
from citygen.grid import Coord, Tile, ZONES

logger = logging.getLogger(__name__)


def determine_zone(rng: np.random.RandomState, weights: Sequence[int] = (50, 30, 20)) -> Tile:
    """Draw a zone kind from the cumulative residential/commercial/industrial split."""
    roll = rng.randint(0, sum(weights))
    cumulative = 0
    for zone, weight in zip(ZONES, weights):
        cumulative += weight
        if roll < cumulative:
            return zone
    return ZONES[-1]


def place_initial_buildings(ctx: GenerationContext) -> int:
    cfg = ctx.config
    placed = 0
    for coord in ctx.grid.coords():
        if ctx.grid.get(coord) == Tile.EMPTY and ctx.rng.random_sample() < cfg.building_chance:
            ctx.place(coord, determine_zone(ctx.rng, cfg.zone_weights))
            placed += 1
    logger.info("Placed %d initial buildings.", placed)
    return placed


def prune_wide_roads(ctx: GenerationContext) -> int:
    """Thin out 2x2 road blobs by dropping the (x+1, y+1) corner of each."""
    roads = ctx.grid.roads
    to_prune = set()
    for x in range(ctx.grid.width - 1):
        for y in range(ctx.grid.height - 1):
            if ((x, y) in roads and (x + 1, y) in roads
                    and (x, y + 1) in roads and (x + 1, y + 1) in roads):
                to_prune.add((x + 1, y + 1))

    # Applied after the scan so removals don't hide later blocks
    for coord in sorted(to_prune):
        ctx.clear_tile(coord)
    logger.info("Pruned %d road tiles.", len(to_prune))
    return len(to_prune)


def remove_isolated_tiles(ctx: GenerationContext) -> int:
    """Clear every non-empty tile with no same-kind 4-neighbour."""
    grid = ctx.grid
    to_remove: List[Coord] = []
    for coord in grid.coords():
        kind = grid.get(coord)
        if kind == Tile.EMPTY:
            continue
        if not any(grid.get(n) == kind for n in grid.neighbors(coord)):
            to_remove.append(coord)

    for coord in to_remove:
        ctx.clear_tile(coord)
    logger.info("Removed %d isolated tiles.", len(to_remove))
    return len(to_remove)


def fill_remaining_empty_tiles(ctx: GenerationContext) -> int:
    filled = 0
    for coord in ctx.grid.coords():
        if ctx.grid.get(coord) == Tile.EMPTY:
            ctx.place(coord, determine_zone(ctx.rng, ctx.config.zone_weights))
            filled += 1
    logger.info("Filled %d final empty tiles.", filled)
    return filled
