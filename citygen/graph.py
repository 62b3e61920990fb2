import heapq
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from citygen.connectivity import find_road_components
from citygen.context import GenerationContext
from citygen.grid import Coord, manhattan

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class GraphEdge:
    node_a: Coord
    node_b: Coord
    cost: int
    # Where the road is actually drawn; differs from the node for component representatives
    start: Optional[Coord] = field(default=None, compare=False)
    end: Optional[Coord] = field(default=None, compare=False)

    def __eq__(self, other):
        if not isinstance(other, GraphEdge):
            return NotImplemented
        same = (self.node_a, self.node_b) == (other.node_a, other.node_b)
        swapped = (self.node_a, self.node_b) == (other.node_b, other.node_a)
        return (same or swapped) and self.cost == other.cost

    def __hash__(self):
        return hash((frozenset((self.node_a, self.node_b)), self.cost))

    def other(self, node: Coord) -> Coord:
        return self.node_b if node == self.node_a else self.node_a


def nearest_point_in_set(start: Coord, points: Sequence[Coord]) -> Optional[Coord]:
    """Closest member by Manhattan distance; stops early once adjacent."""
    nearest = None
    best = None
    for p in points:
        d = manhattan(start, p)
        if best is None or d < best:
            best = d
            nearest = p
        if best <= 1:
            break
    return nearest


def build_edges(nodes: List[Coord], components: Dict[Coord, List[Coord]]) -> List[GraphEdge]:
    """Complete graph over nodes; `components` maps representatives to their members."""
    edges: List[GraphEdge] = []
    for i, node_a in enumerate(nodes):
        for node_b in nodes[i + 1:]:
            point_a, point_b = node_a, node_b
            if node_a in components:
                point_a = nearest_point_in_set(node_b, components[node_a]) or node_a
            if node_b in components:
                point_b = nearest_point_in_set(node_a, components[node_b]) or node_b
            edges.append(GraphEdge(node_a, node_b, manhattan(point_a, point_b), point_a, point_b))
    return edges


def compute_prim_mst(nodes: List[Coord], edges: List[GraphEdge]) -> List[GraphEdge]:
    """
    Prim's algorithm from nodes[0].

    The frontier is a binary heap keyed by (cost, insertion order), so equal
    costs resolve the same way on every run.
    """
    result: List[GraphEdge] = []
    if not nodes:
        return result

    adjacency: Dict[Coord, List[GraphEdge]] = {n: [] for n in nodes}
    for edge in edges:
        adjacency.setdefault(edge.node_a, []).append(edge)
        adjacency.setdefault(edge.node_b, []).append(edge)

    in_tree = set()
    frontier: List[Tuple[int, int, GraphEdge]] = []
    counter = 0

    def expand(node: Coord):
        nonlocal counter
        in_tree.add(node)
        for edge in adjacency[node]:
            if edge.other(node) not in in_tree:
                heapq.heappush(frontier, (edge.cost, counter, edge))
                counter += 1

    expand(nodes[0])
    while len(in_tree) < len(nodes) and frontier:
        _, _, edge = heapq.heappop(frontier)
        a_in, b_in = edge.node_a in in_tree, edge.node_b in in_tree
        if a_in == b_in:
            continue
        result.append(edge)
        expand(edge.node_b if a_in else edge.node_a)

    if len(in_tree) != len(nodes):
        logger.warning("MST incomplete. Nodes: %d/%d", len(in_tree), len(nodes))
    return result


def draw_straight_road_path(start: Coord, end: Coord) -> List[Coord]:
    """L-shaped path: along x on the start row, then along y on the end column."""
    sx, sy = start
    ex, ey = end
    x_dir = 1 if ex >= sx else -1
    y_dir = 1 if ey >= sy else -1
    path = [(x, sy) for x in range(sx, ex + x_dir, x_dir)]
    path.extend((ex, y) for y in range(sy + y_dir, ey + y_dir, y_dir))
    return path


def connect_branches_with_mst(ctx: GenerationContext) -> int:
    """Tie branch points and road components together along a spanning tree."""
    if not ctx.branch_points or not ctx.grid.roads:
        logger.info("Skipped MST connection (branch points: %d, road tiles: %d).",
                    len(ctx.branch_points), len(ctx.grid.roads))
        return 0

    components = {c[0]: c for c in find_road_components(ctx.grid)}
    nodes = list(ctx.branch_points) + list(components)
    if len(nodes) < 2:
        logger.info("Not enough nodes for MST.")
        return 0

    edges = build_edges(nodes, components)
    logger.info("Calculated %d potential MST edges.", len(edges))
    mst = compute_prim_mst(nodes, edges)
    logger.info("Computed MST with %d edges.", len(mst))

    added = 0
    for edge in mst:
        added += ctx.commit_road(draw_straight_road_path(edge.start or edge.node_a, edge.end or edge.node_b))
    logger.info("Road tiles after MST: %d", len(ctx.grid.roads))
    return added
