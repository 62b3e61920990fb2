from enum import IntEnum
from typing import Iterator, List, Set, Tuple

import numpy as np

Coord = Tuple[int, int]

# Cardinal first, then diagonals
DIRECTIONS_4: Tuple[Coord, ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))
DIRECTIONS_8: Tuple[Coord, ...] = DIRECTIONS_4 + ((1, 1), (1, -1), (-1, 1), (-1, -1))


class Tile(IntEnum):
    EMPTY = 0
    RESIDENTIAL = 1
    COMMERCIAL = 2
    INDUSTRIAL = 3
    ROAD = 4

    @property
    def is_zone(self) -> bool:
        return Tile.RESIDENTIAL <= self <= Tile.INDUSTRIAL


ZONES = (Tile.RESIDENTIAL, Tile.COMMERCIAL, Tile.INDUSTRIAL)


def manhattan(a: Coord, b: Coord) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


class Grid:
    """Tile store indexed [x, y], with the set of road coordinates kept alongside."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.cells = np.zeros((width, height), dtype=np.int8)
        self.roads: Set[Coord] = set()

    def in_bounds(self, coord: Coord) -> bool:
        x, y = coord
        return 0 <= x < self.width and 0 <= y < self.height

    def _check(self, coord: Coord):
        # numpy would silently wrap negative indices
        if not self.in_bounds(coord):
            raise IndexError(f"{coord} outside {self.width}x{self.height} grid")

    def get(self, coord: Coord) -> Tile:
        self._check(coord)
        return Tile(int(self.cells[coord[0], coord[1]]))

    def set(self, coord: Coord, tile: Tile):
        self._check(coord)
        self.cells[coord[0], coord[1]] = tile
        if tile == Tile.ROAD:
            self.roads.add(coord)
        else:
            self.roads.discard(coord)

    def clear(self):
        self.cells.fill(Tile.EMPTY)
        self.roads.clear()

    def coords(self) -> Iterator[Coord]:
        """All coordinates, x-major."""
        for x in range(self.width):
            for y in range(self.height):
                yield (x, y)

    def neighbors(self, coord: Coord, directions=DIRECTIONS_4) -> List[Coord]:
        x, y = coord
        result = []
        for dx, dy in directions:
            n = (x + dx, y + dy)
            if self.in_bounds(n):
                result.append(n)
        return result

    def has_adjacent_road(self, coord: Coord, diagonals: bool = False) -> bool:
        directions = DIRECTIONS_8 if diagonals else DIRECTIONS_4
        return any(n in self.roads for n in self.neighbors(coord, directions))

    def count(self, tile: Tile) -> int:
        return int(np.count_nonzero(self.cells == tile))

    def sorted_roads(self) -> List[Coord]:
        return sorted(self.roads)
