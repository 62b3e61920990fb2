import logging
from typing import List

import numpy as np

from citygen.context import GenerationContext
from citygen.grid import Coord, Tile

logger = logging.getLogger(__name__)

MIN_SITES = 4
MIN_FALLBACK_SIZE = 5


def generate_sites(width: int, height: int, spacing: int, jitter: int,
                   rng: np.random.RandomState) -> List[Coord]:
    """Jittered lattice of seed points, one per `spacing` cell."""
    spacing = max(1, spacing)
    jitter = max(0, jitter)
    sites: List[Coord] = []

    for x in range(spacing // 2, width, spacing):
        for y in range(spacing // 2, height, spacing):
            jx = rng.randint(-jitter, jitter + 1) if jitter > 0 else 0
            jy = rng.randint(-jitter, jitter + 1) if jitter > 0 else 0
            p = (int(np.clip(x + jx, 0, width - 1)), int(np.clip(y + jy, 0, height - 1)))
            # Near-duplicate seeds collapse into one region
            if not any(abs(sx - p[0]) <= 1 and abs(sy - p[1]) <= 1 for sx, sy in sites):
                sites.append(p)

    if len(sites) < MIN_SITES and width > MIN_FALLBACK_SIZE and height > MIN_FALLBACK_SIZE:
        quarter_points = [
            (width // 4, height // 4), (3 * width // 4, height // 4),
            (width // 4, 3 * height // 4), (3 * width // 4, 3 * height // 4),
        ]
        for p in quarter_points:
            if p not in sites:
                sites.append(p)
        logger.warning("Added default Voronoi sites. Count: %d", len(sites))

    return sites


def nearest_site_map(width: int, height: int, sites: List[Coord]) -> np.ndarray:
    """
    Index of the nearest site for every tile, shape (width, height).

    Distances are squared Euclidean. Equal distances go to the site listed
    first. Sites are folded in one at a time, so memory stays at a few
    (width, height) arrays however many sites there are.
    """
    x, y = np.ogrid[:width, :height]
    nearest = np.zeros((width, height), dtype=np.int64)
    best = np.full((width, height), np.iinfo(np.int64).max, dtype=np.int64)
    for i, (sx, sy) in enumerate(sites):
        dist_sq = (x - sx) ** 2 + (y - sy) ** 2
        # Strict comparison keeps the earlier site on ties
        closer = dist_sq < best
        best[closer] = dist_sq[closer]
        nearest[closer] = i
    return nearest


def boundary_mask(nearest: np.ndarray) -> np.ndarray:
    """Tiles whose nearest site differs from that of any 4-neighbour."""
    mask = np.zeros(nearest.shape, dtype=bool)
    diff_x = nearest[1:, :] != nearest[:-1, :]
    diff_y = nearest[:, 1:] != nearest[:, :-1]
    mask[:-1, :] |= diff_x
    mask[1:, :] |= diff_x
    mask[:, :-1] |= diff_y
    mask[:, 1:] |= diff_y
    return mask


def place_voronoi_sites(ctx: GenerationContext) -> List[Coord]:
    cfg = ctx.config
    ctx.sites = generate_sites(cfg.width, cfg.height, cfg.site_spacing, cfg.site_jitter, ctx.rng)
    logger.info("Found %d Voronoi sites.", len(ctx.sites))
    if len(ctx.sites) < 2:
        logger.warning("Insufficient Voronoi sites (%d); no partition boundaries will form.", len(ctx.sites))
    return ctx.sites


def compute_voronoi_edges(ctx: GenerationContext) -> int:
    """Commit partition boundaries as road. Returns the number of road tiles added."""
    if not ctx.sites:
        return 0

    # Full scan first so new roads never influence the comparison
    nearest = nearest_site_map(ctx.grid.width, ctx.grid.height, ctx.sites)
    xs, ys = np.nonzero(boundary_mask(nearest))

    added = 0
    for x, y in zip(xs.tolist(), ys.tolist()):
        if ctx.grid.get((x, y)) == Tile.EMPTY:
            ctx.place((x, y), Tile.ROAD)
            added += 1

    logger.info("Voronoi road tiles: %d", len(ctx.grid.roads))
    if not ctx.grid.roads:
        logger.warning("No road tiles generated from Voronoi edges.")
    return added
