# ==============================================================================
# File: tests/test_grid.py
# Purpose: Grid/RoadSet bookkeeping, config validation and the event queue.
# ==============================================================================
import sys
import unittest
from pathlib import Path

import numpy as np

sys.path.append(str(Path(__file__).parent.parent))

from citygen.config import CityConfig, ConfigError
from citygen.context import GenerationContext
from citygen.events import Action, EventQueue, PlacementEvent
from citygen.grid import Grid, Tile
from citygen.materializer import TileRegistry


class TestGrid(unittest.TestCase):

    def test_new_grid_is_empty(self):
        grid = Grid(4, 3)
        self.assertEqual(grid.count(Tile.EMPTY), 12)
        self.assertEqual(len(list(grid.coords())), 12)
        self.assertEqual(grid.roads, set())

    def test_set_road_tracks_roadset(self):
        grid = Grid(5, 5)
        grid.set((2, 3), Tile.ROAD)
        self.assertIn((2, 3), grid.roads)
        self.assertEqual(grid.get((2, 3)), Tile.ROAD)

        grid.set((2, 3), Tile.COMMERCIAL)
        self.assertNotIn((2, 3), grid.roads)
        grid.set((1, 1), Tile.ROAD)
        grid.set((1, 1), Tile.EMPTY)
        self.assertEqual(grid.roads, set())

    def test_out_of_bounds_never_wraps(self):
        grid = Grid(3, 3)
        for coord in [(-1, 0), (0, -1), (3, 0), (0, 3)]:
            self.assertFalse(grid.in_bounds(coord))
            with self.assertRaises(IndexError):
                grid.get(coord)
            with self.assertRaises(IndexError):
                grid.set(coord, Tile.ROAD)
        self.assertEqual(grid.roads, set())

    def test_clear(self):
        grid = Grid(3, 3)
        grid.set((0, 0), Tile.ROAD)
        grid.set((1, 1), Tile.INDUSTRIAL)
        grid.clear()
        self.assertEqual(grid.count(Tile.EMPTY), 9)
        self.assertEqual(grid.roads, set())

    def test_adjacent_road_with_diagonals(self):
        grid = Grid(3, 3)
        grid.set((0, 0), Tile.ROAD)
        self.assertFalse(grid.has_adjacent_road((1, 1)))
        self.assertTrue(grid.has_adjacent_road((1, 1), diagonals=True))
        self.assertTrue(grid.has_adjacent_road((1, 0)))


class TestConfig(unittest.TestCase):

    def test_non_positive_dimensions_are_fatal(self):
        with self.assertRaises(ConfigError):
            CityConfig(width=0, height=10)
        with self.assertRaises(ConfigError):
            CityConfig(width=10, height=-3)

    def test_fractional_dimensions_are_fatal(self):
        with self.assertRaises(ConfigError):
            CityConfig(width=10.5, height=10)
        with self.assertRaises(ConfigError):
            CityConfig(width=10, height="12")
        cfg = CityConfig(width=np.int64(8), height=6)
        self.assertIs(type(cfg.width), int)
        self.assertEqual(GenerationContext.create(cfg).grid.cells.shape, (8, 6))

    def test_out_of_range_values_are_clamped(self):
        with self.assertLogs("citygen.config", level="WARNING"):
            cfg = CityConfig(site_spacing=0, site_jitter=-2, branch_threshold=1.5, edge_search_radius=0)
        self.assertEqual(cfg.site_spacing, 1)
        self.assertEqual(cfg.site_jitter, 0)
        self.assertEqual(cfg.branch_threshold, 1.0)
        self.assertEqual(cfg.edge_search_radius, 1)

    def test_noise_offset_must_be_2d(self):
        with self.assertRaises(ConfigError):
            CityConfig(noise_offset=(1.0, 2.0, 3.0))
        self.assertEqual(CityConfig(noise_offset=(1, 2)).noise_offset, (1.0, 2.0))


class TestEvents(unittest.TestCase):

    def setUp(self):
        self.ctx = GenerationContext.create(CityConfig(width=4, height=4))

    def test_overwriting_a_building_emits_remove_first(self):
        self.ctx.place((1, 1), Tile.RESIDENTIAL)
        self.ctx.commit_road([(1, 1)])
        events = self.ctx.events.drain(self.ctx.grid)
        self.assertEqual(events, [
            PlacementEvent((1, 1), Tile.RESIDENTIAL, Action.PLACE),
            PlacementEvent((1, 1), Tile.RESIDENTIAL, Action.REMOVE),
            PlacementEvent((1, 1), Tile.ROAD, Action.PLACE),
        ])
        self.assertEqual(len(self.ctx.events), 0)

    def test_clear_tile_emits_remove(self):
        self.ctx.place((0, 2), Tile.ROAD)
        self.ctx.clear_tile((0, 2))
        self.ctx.clear_tile((3, 3))  # already empty, nothing to say
        events = self.ctx.events.drain(self.ctx.grid)
        self.assertEqual([e.action for e in events], [Action.PLACE, Action.REMOVE])
        self.assertEqual(self.ctx.grid.roads, set())

    def test_grid_wins_on_mismatch(self):
        queue = EventQueue()
        grid = Grid(3, 3)
        queue.place((1, 2), Tile.COMMERCIAL)
        grid.set((1, 2), Tile.ROAD)  # written behind the queue's back

        with self.assertLogs("citygen.events", level="WARNING"):
            events = queue.drain(grid)
        self.assertEqual(events, [
            PlacementEvent((1, 2), Tile.COMMERCIAL, Action.REMOVE),
            PlacementEvent((1, 2), Tile.ROAD, Action.PLACE),
        ])

    def test_stale_place_on_empty_tile_becomes_remove(self):
        queue = EventQueue()
        grid = Grid(2, 2)
        queue.place((0, 0), Tile.INDUSTRIAL)
        with self.assertLogs("citygen.events", level="WARNING"):
            events = queue.drain(grid)
        self.assertEqual(events, [PlacementEvent((0, 0), Tile.INDUSTRIAL, Action.REMOVE)])

    def test_drain_in_batches(self):
        for x in range(4):
            self.ctx.place((x, 0), Tile.ROAD)
        first = self.ctx.events.drain(self.ctx.grid, limit=3)
        self.assertEqual(len(first), 3)
        self.assertEqual(len(self.ctx.events), 1)
        rest = self.ctx.events.drain(self.ctx.grid)
        self.assertEqual(rest, [PlacementEvent((3, 0), Tile.ROAD, Action.PLACE)])

    def test_registry_mirrors_grid(self):
        registry = TileRegistry(batch_size=2)
        self.ctx.place((0, 0), Tile.RESIDENTIAL)
        self.ctx.place((1, 0), Tile.ROAD)
        self.ctx.place((0, 0), Tile.ROAD)
        self.ctx.clear_tile((1, 0))
        while registry.pump(self.ctx.events, self.ctx.grid):
            pass
        self.assertEqual(registry.tiles, {(0, 0): Tile.ROAD})


if __name__ == "__main__":
    unittest.main()
