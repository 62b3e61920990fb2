from typing import Dict, Iterable

from citygen.events import Action, EventQueue, PlacementEvent
from citygen.grid import Coord, Grid, Tile


class TileRegistry:
    """
    Minimal materializer: keeps one entry per coordinate, built only from
    the event stream. A real consumer would spawn and destroy objects where
    this one writes and pops dictionary entries.
    """

    def __init__(self, batch_size: int = 200):
        self.batch_size = batch_size
        self.tiles: Dict[Coord, Tile] = {}
        self.placed = 0
        self.removed = 0

    def consume(self, events: Iterable[PlacementEvent]):
        for event in events:
            if event.action == Action.PLACE:
                # Whatever stood here is superseded
                self.tiles[event.coord] = event.kind
                self.placed += 1
            else:
                self.tiles.pop(event.coord, None)
                self.removed += 1

    def pump(self, queue: EventQueue, grid: Grid) -> int:
        """Drain one batch. Returns the number of events left in the queue."""
        self.consume(queue.drain(grid, limit=self.batch_size))
        return len(queue)

    def flush(self, queue: EventQueue, grid: Grid):
        self.consume(queue.drain(grid))
