import json
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterator, List, Optional, Tuple

from citygen import branches, connectivity, graph, voronoi, zoning
from citygen.config import CityConfig
from citygen.context import GenerationContext
from citygen.grid import Coord, Grid, Tile

logger = logging.getLogger(__name__)


@dataclass
class CityLayout:
    """Finished generation: the grid plus what it was built from"""
    grid: Grid
    roads: FrozenSet[Coord]
    sites: List[Coord]
    branch_points: List[Coord]
    noise_offset: Tuple[float, float]

    def counts(self) -> Dict[str, int]:
        return {tile.name: self.grid.count(tile) for tile in Tile}


class CityGenerator:
    """
    Voronoi road backbone, noise branches joined by an MST, connectivity
    repair, then zoning. One instance runs one generation.
    """

    def __init__(self, config: Optional[CityConfig] = None,
                 noise_sampler: Optional[branches.NoiseSampler] = None):
        self.config = config or CityConfig()
        self.noise_sampler = noise_sampler
        self.ctx = GenerationContext.create(self.config)
        self.layout: Optional[CityLayout] = None

    @property
    def grid(self) -> Grid:
        return self.ctx.grid

    @property
    def events(self):
        return self.ctx.events

    def _stages(self) -> List[Tuple[str, Callable[[GenerationContext], object]]]:
        stages = [
            ("voronoi_sites", voronoi.place_voronoi_sites),
            ("voronoi_edges", voronoi.compute_voronoi_edges),
            ("branch_points", lambda ctx: branches.select_branch_points(ctx, self.noise_sampler)),
            ("mst_connection", graph.connect_branches_with_mst),
        ]
        if self.config.ensure_edge_connections:
            stages.append(("edge_connection", connectivity.ensure_map_edge_connections))
        stages += [
            ("connectivity_pass_1", connectivity.ensure_road_connectivity),
            # Pruning can cut the network, so connectivity runs again after it
            ("prune_roads", zoning.prune_wide_roads),
            ("connectivity_pass_2", connectivity.ensure_road_connectivity),
            ("place_buildings", zoning.place_initial_buildings),
            ("zone_accessibility", connectivity.ensure_zone_accessibility),
            ("remove_isolated", zoning.remove_isolated_tiles),
            ("fill_empty", zoning.fill_remaining_empty_tiles),
        ]
        return stages

    def run_stages(self) -> Iterator[str]:
        """
        Run the pipeline one stage at a time, yielding each stage name once
        its writes are committed. Callers may drain events between stages.
        """
        self.ctx.grid.clear()
        self.ctx.events.clear()
        logger.info("Starting city generation (%dx%d, seed %d)...",
                    self.config.width, self.config.height, self.config.seed)
        for step, (name, stage) in enumerate(self._stages(), start=1):
            logger.info("Step %d: %s", step, name)
            stage(self.ctx)
            yield name

        self.layout = CityLayout(
            grid=self.ctx.grid,
            roads=frozenset(self.ctx.grid.roads),
            sites=list(self.ctx.sites),
            branch_points=list(self.ctx.branch_points),
            noise_offset=self.ctx.noise_offset,
        )
        logger.info("Generation pipeline finished. Road tiles: %d", len(self.ctx.grid.roads))

    def generate(self) -> CityLayout:
        start = time.perf_counter()
        for _ in self.run_stages():
            pass
        logger.info("Total generation time: %.2f ms", (time.perf_counter() - start) * 1000)
        return self.layout

    def export_to_json(self, filename="city_layout.json"):
        if self.layout is None:
            raise RuntimeError("Generate a city first")
        grid = self.layout.grid
        export_body = {
            "width": grid.width,
            "height": grid.height,
            "seed": self.config.seed,
            "noise_offset": list(self.layout.noise_offset),
            "tiles": [[grid.get((x, y)).name for x in range(grid.width)] for y in range(grid.height)],
            "roads": [list(c) for c in sorted(self.layout.roads)],
        }
        with open(filename, 'w') as f:
            json.dump(export_body, f, indent=4)
        logger.info("Layout exported to %s", filename)
