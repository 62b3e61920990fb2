import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Dict, List, Optional

from citygen.grid import Coord, Grid, Tile

logger = logging.getLogger(__name__)


class Action(Enum):
    PLACE = "place"
    REMOVE = "remove"


@dataclass(frozen=True)
class PlacementEvent:
    coord: Coord
    kind: Tile
    action: Action


class EventQueue:
    """
    Ordered place/remove stream from the generator to the materializer.
    The generator only appends; the consumer drains at its own pace.
    """

    def __init__(self):
        self._events: Deque[PlacementEvent] = deque()
        self._pending: Dict[Coord, int] = {}

    def __len__(self) -> int:
        return len(self._events)

    def place(self, coord: Coord, kind: Tile):
        self._append(PlacementEvent(coord, kind, Action.PLACE))

    def remove(self, coord: Coord, kind: Tile):
        self._append(PlacementEvent(coord, kind, Action.REMOVE))

    def _append(self, event: PlacementEvent):
        self._events.append(event)
        self._pending[event.coord] = self._pending.get(event.coord, 0) + 1

    def clear(self):
        self._events.clear()
        self._pending.clear()

    def drain(self, grid: Grid, limit: Optional[int] = None) -> List[PlacementEvent]:
        """
        Pop up to `limit` events (all when None) in queue order.

        The last queued event for a coordinate must agree with the grid. If it
        does not, the grid wins and the event is swapped for a corrective
        remove/place pair.
        """
        drained: List[PlacementEvent] = []
        taken = 0
        while self._events and (limit is None or taken < limit):
            event = self._events.popleft()
            taken += 1
            remaining = self._pending[event.coord] - 1
            if remaining:
                self._pending[event.coord] = remaining
                drained.append(event)
                continue
            del self._pending[event.coord]
            drained.extend(self._reconcile(event, grid))
        return drained

    @staticmethod
    def _reconcile(event: PlacementEvent, grid: Grid) -> List[PlacementEvent]:
        actual = grid.get(event.coord)
        if event.action == Action.PLACE and event.kind == actual:
            return [event]
        if event.action == Action.REMOVE and actual == Tile.EMPTY:
            return [event]

        logger.warning("Queue/grid mismatch at %s: event %s %s, grid holds %s. Replacing.",
                       event.coord, event.action.value, event.kind.name, actual.name)
        corrected = [PlacementEvent(event.coord, event.kind, Action.REMOVE)]
        if actual != Tile.EMPTY:
            corrected.append(PlacementEvent(event.coord, actual, Action.PLACE))
        return corrected
