from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set, Tuple

import numpy as np

from citygen.config import CityConfig
from citygen.events import EventQueue
from citygen.grid import Coord, Grid, Tile


@dataclass
class GenerationContext:
    """Everything one generation run mutates, passed explicitly to each stage."""
    config: CityConfig
    grid: Grid
    events: EventQueue
    rng: np.random.RandomState
    sites: List[Coord] = field(default_factory=list)
    branch_points: List[Coord] = field(default_factory=list)
    noise_offset: Optional[Tuple[float, float]] = None

    @classmethod
    def create(cls, config: CityConfig) -> "GenerationContext":
        return cls(
            config=config,
            grid=Grid(config.width, config.height),
            events=EventQueue(),
            rng=np.random.RandomState(config.seed),
            noise_offset=config.noise_offset,
        )

    def place(self, coord: Coord, tile: Tile):
        """Write a non-empty tile, retiring whatever stood there before."""
        current = self.grid.get(coord)
        if current == tile:
            return
        if current != Tile.EMPTY:
            self.events.remove(coord, current)
        self.grid.set(coord, tile)
        self.events.place(coord, tile)

    def clear_tile(self, coord: Coord):
        current = self.grid.get(coord)
        if current == Tile.EMPTY:
            return
        self.grid.set(coord, Tile.EMPTY)
        self.events.remove(coord, current)

    def commit_road(self, tiles: Iterable[Coord], network: Optional[Set[Coord]] = None) -> int:
        """Turn every in-bounds tile into road. Returns how many were new."""
        added = 0
        for coord in tiles:
            if not self.grid.in_bounds(coord):
                continue
            if coord not in self.grid.roads:
                self.place(coord, Tile.ROAD)
                added += 1
            if network is not None:
                network.add(coord)
        return added
