import logging
from typing import Callable, List, Optional

import noise

from citygen.context import GenerationContext
from citygen.grid import Coord, Tile

logger = logging.getLogger(__name__)

NoiseSampler = Callable[[float, float], float]

OFFSET_RANGE = 10000.0


def perlin01(x: float, y: float) -> float:
    """Perlin noise remapped from roughly [-1, 1] into [0, 1]"""
    return min(1.0, max(0.0, (noise.pnoise2(x, y) + 1.0) * 0.5))


def resolve_noise_offset(ctx: GenerationContext):
    """Pick the per-run offset once, unless the config pins it."""
    if ctx.noise_offset is None:
        ox, oy = ctx.rng.uniform(0.0, OFFSET_RANGE, size=2)
        ctx.noise_offset = (float(ox), float(oy))
    logger.info("Using noise offset: (%.2f, %.2f)", *ctx.noise_offset)
    return ctx.noise_offset


def select_branch_points(ctx: GenerationContext, sampler: Optional[NoiseSampler] = None) -> List[Coord]:
    cfg = ctx.config
    grid = ctx.grid
    sampler = sampler or perlin01
    ox, oy = resolve_noise_offset(ctx)

    points: List[Coord] = []
    for x, y in grid.coords():
        if grid.get((x, y)) != Tile.EMPTY:
            continue
        nx = ox + x / cfg.width * cfg.noise_scale
        ny = oy + y / cfg.height * cfg.noise_scale
        if sampler(nx, ny) > cfg.branch_threshold:
            points.append((x, y))

    ctx.branch_points = points
    logger.info("Found %d noise points (threshold %.2f).", len(points), cfg.branch_threshold)
    if not points:
        logger.warning("No branch points selected.")
    return points
