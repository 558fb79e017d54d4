"""Graph reachability - breadth-first searches over the workflow graph

Responsibilities:
- Nearest previous checkpoint of a node (walking edges backwards)
- All checkpoints at the minimum backward distance (parallel branches merged by a Join)
- Generic multi-seed reachability over a precomputed adjacency map

Design:
- GraphIndex is built once per pass (id -> node, id -> incoming/outgoing edges) so
  every BFS step is a dict lookup instead of a scan of the node and edge lists
- Every search keeps a visited set, so cycles terminate
- Backward searches never expand through the Start node
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable, Sequence

from approvalflow.domain.entities.edge import Edge
from approvalflow.domain.entities.node import Node
from approvalflow.domain.value_objects.node_type import NodeType

AdjacencyMap = dict[str, list[str]]


class GraphIndex:
    """Lookup tables for one snapshot of nodes and edges

    Edge lists keep the order of the input edge list, so searches visit neighbours
    in a deterministic order.
    """

    def __init__(self, nodes: Sequence[Node], edges: Sequence[Edge]):
        self.nodes_by_id: dict[str, Node] = {}
        for node in nodes:
            self.nodes_by_id.setdefault(node.id, node)

        self.outgoing: dict[str, list[Edge]] = {}
        self.incoming: dict[str, list[Edge]] = {}
        for edge in edges:
            self.outgoing.setdefault(edge.source_node_id, []).append(edge)
            self.incoming.setdefault(edge.target_node_id, []).append(edge)

    def node(self, node_id: str) -> Node | None:
        return self.nodes_by_id.get(node_id)

    def outgoing_edges(self, node_id: str) -> list[Edge]:
        return self.outgoing.get(node_id, [])

    def incoming_edges(self, node_id: str) -> list[Edge]:
        return self.incoming.get(node_id, [])


def find_nearest_previous_checkpoint(
    node_id: str,
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    index: GraphIndex | None = None,
) -> str | None:
    """Return the id of the first Checkpoint found walking backwards from `node_id`

    Returns None when every backward path ends at Start or at a node without
    incoming edges before a checkpoint is met.
    """
    index = index or GraphIndex(nodes, edges)
    visited: set[str] = set()
    queue: deque[str] = deque([node_id])

    while queue:
        current_id = queue.popleft()
        if current_id in visited:
            continue
        visited.add(current_id)

        for edge in index.incoming_edges(current_id):
            source = index.node(edge.source_node_id)
            if source is None:
                continue
            if source.type is NodeType.CHECKPOINT:
                return source.id
            if source.type is NodeType.START:
                continue
            if source.id not in visited:
                queue.append(source.id)

    return None


def find_all_nearest_previous_checkpoints(
    node_id: str,
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    index: GraphIndex | None = None,
) -> list[str]:
    """Return every checkpoint at the minimum backward hop distance from `node_id`

    Example: two branches each starting at their own checkpoint and merged by a
    Join are equally near to the node after the Join, so both are returned.
    """
    index = index or GraphIndex(nodes, edges)
    visited: set[str] = set()
    queue: deque[tuple[str, int]] = deque([(node_id, 0)])
    checkpoints: list[str] = []
    min_distance = float("inf")

    while queue:
        current_id, distance = queue.popleft()
        if current_id in visited:
            continue
        visited.add(current_id)

        # A nearer checkpoint is already known; nothing beyond it can be nearer
        if distance > min_distance:
            continue

        for edge in index.incoming_edges(current_id):
            source = index.node(edge.source_node_id)
            if source is None:
                continue

            next_distance = distance + 1
            if source.type is NodeType.CHECKPOINT:
                if next_distance < min_distance:
                    min_distance = next_distance
                    checkpoints = [source.id]
                elif next_distance == min_distance and source.id not in checkpoints:
                    checkpoints.append(source.id)
                continue

            if source.type is NodeType.START:
                continue

            if source.id not in visited:
                queue.append((source.id, next_distance))

    return checkpoints


def get_checkpoint_node(checkpoint_id: str | None, nodes: Iterable[Node]) -> Node | None:
    """Return the Checkpoint node with `checkpoint_id`, or None"""
    if not checkpoint_id:
        return None
    return next(
        (node for node in nodes if node.id == checkpoint_id and node.type is NodeType.CHECKPOINT),
        None,
    )


def build_adjacency_maps(edges: Iterable[Edge]) -> tuple[AdjacencyMap, AdjacencyMap]:
    """Return (outgoing, incoming) adjacency maps of node ids"""
    outgoing: AdjacencyMap = {}
    incoming: AdjacencyMap = {}
    for edge in edges:
        outgoing.setdefault(edge.source_node_id, []).append(edge.target_node_id)
        incoming.setdefault(edge.target_node_id, []).append(edge.source_node_id)
    return outgoing, incoming


def can_reach_node(
    seed_ids: Iterable[str],
    adjacency: AdjacencyMap,
    predicate: Callable[[str], bool],
) -> bool:
    """BFS from all seeds at once; True as soon as a visited id satisfies `predicate`

    The seeds themselves are tested. No seeds means nothing is reachable.
    """
    visited: set[str] = set()
    queue: deque[str] = deque()
    for seed_id in seed_ids:
        if seed_id not in visited:
            visited.add(seed_id)
            queue.append(seed_id)

    while queue:
        current_id = queue.popleft()
        if predicate(current_id):
            return True
        for neighbour_id in adjacency.get(current_id, []):
            if neighbour_id not in visited:
                visited.add(neighbour_id)
                queue.append(neighbour_id)

    return False
