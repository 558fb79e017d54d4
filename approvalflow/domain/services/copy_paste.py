"""Copy/paste of node selections

Copy:
- `serialize_selection` keeps the selected nodes (never Start) and the edges whose
  two endpoints are both selected

Paste (`deserialize_selection`), in order:
1. regenerate every node and edge id
2. resolve dependencies that point outside the copied set
   - API return-to-checkpoint whose checkpoint was not copied -> stop
   - Reject with retry but no edge to a copied Checkpoint -> retry disabled
3. rewrite API checkpointId references to the new checkpoint ids
4. drop Reject -> Checkpoint edges of Rejects that no longer retry
5. shift every position by the paste offset

All inputs are left untouched; pasted nodes are clones.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from approvalflow.domain.entities.edge import Edge, new_edge_id
from approvalflow.domain.entities.node import Node, new_node_id
from approvalflow.domain.entities.node_config import ApiConfig, FailureStrategy, RejectConfig
from approvalflow.domain.value_objects.node_type import NodeType
from approvalflow.domain.value_objects.position import Position

logger = logging.getLogger(__name__)

PASTE_OFFSET = 50
# Approximate node footprint used when checking for overlap
OVERLAP_TOLERANCE = 200


@dataclass
class CopiedSelection:
    """Clipboard content: nodes plus the edges between them"""

    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CopiedSelection:
        return cls(
            nodes=[Node.from_dict(node) for node in raw.get("nodes") or []],
            edges=[Edge.from_dict(edge) for edge in raw.get("edges") or []],
        )


def serialize_selection(
    selected_node_ids: Sequence[str],
    selected_edge_ids: Sequence[str],
    all_nodes: Sequence[Node],
    all_edges: Sequence[Edge],
) -> CopiedSelection | None:
    """Build the clipboard content for a selection

    Explicitly selected edges are only kept when both endpoints are selected too,
    so `selected_edge_ids` never adds edges on its own.

    Returns:
        None when nothing copyable is selected
    """
    wanted = set(selected_node_ids)
    nodes = [node.clone() for node in all_nodes if node.id in wanted and node.type is not NodeType.START]

    if not nodes and not selected_edge_ids:
        return None

    copied_ids = {node.id for node in nodes}
    edges = [
        edge.clone()
        for edge in all_edges
        if edge.source_node_id in copied_ids and edge.target_node_id in copied_ids
    ]
    if not nodes and not edges:
        return None

    return CopiedSelection(nodes=nodes, edges=edges)


def deserialize_selection(
    selection: CopiedSelection,
    existing_nodes: Sequence[Node],
    offset: Position | None = None,
) -> CopiedSelection:
    """Prepare clipboard content for insertion next to `existing_nodes`

    Args:
        selection: content produced by `serialize_selection`
        existing_nodes: nodes already on the canvas (used for the offset)
        offset: explicit offset; computed with `calculate_paste_offset` when None
    """
    original_checkpoint_ids = {node.id for node in selection.nodes if node.is_checkpoint}

    nodes, edges, id_mapping = _regenerate_ids(selection.nodes, selection.edges)
    nodes, edges = _resolve_dependencies(nodes, edges, original_checkpoint_ids)
    _remap_checkpoint_references(nodes, id_mapping, original_checkpoint_ids)

    paste_offset = offset or calculate_paste_offset(existing_nodes, nodes)
    for node in nodes:
        node.position = node.position.shifted(paste_offset.x, paste_offset.y)

    logger.debug(
        "prepared paste: nodes=%d edges=%d offset=(%s, %s)",
        len(nodes),
        len(edges),
        paste_offset.x,
        paste_offset.y,
    )
    return CopiedSelection(nodes=nodes, edges=edges)


def calculate_paste_offset(
    existing_nodes: Sequence[Node], copied_nodes: Sequence[Node]
) -> Position:
    """Offset that keeps pasted nodes from landing on existing ones

    The default offset is (50, 50). When an existing node lies inside the shifted
    bounding box of the copied nodes (grown by the overlap tolerance), each axis
    uses max(100, 50 + max(extent, 200) / 2) instead.
    """
    if not copied_nodes:
        return Position(x=PASTE_OFFSET, y=PASTE_OFFSET)

    xs = [node.position.x for node in copied_nodes]
    ys = [node.position.y for node in copied_nodes]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)

    left = min_x + PASTE_OFFSET - OVERLAP_TOLERANCE
    right = max_x + PASTE_OFFSET + OVERLAP_TOLERANCE
    top = min_y + PASTE_OFFSET - OVERLAP_TOLERANCE
    bottom = max_y + PASTE_OFFSET + OVERLAP_TOLERANCE

    has_overlap = any(
        left <= node.position.x <= right and top <= node.position.y <= bottom
        for node in existing_nodes
    )
    if not has_overlap:
        return Position(x=PASTE_OFFSET, y=PASTE_OFFSET)

    return Position(
        x=max(PASTE_OFFSET * 2, PASTE_OFFSET + max(max_x - min_x, OVERLAP_TOLERANCE) / 2),
        y=max(PASTE_OFFSET * 2, PASTE_OFFSET + max(max_y - min_y, OVERLAP_TOLERANCE) / 2),
    )


def _regenerate_ids(
    nodes: Sequence[Node], edges: Sequence[Edge]
) -> tuple[list[Node], list[Edge], dict[str, str]]:
    id_mapping: dict[str, str] = {}
    new_nodes: list[Node] = []
    for node in nodes:
        copy = node.clone()
        copy.id = new_node_id()
        id_mapping[node.id] = copy.id
        new_nodes.append(copy)

    new_edges: list[Edge] = []
    for edge in edges:
        source = id_mapping.get(edge.source_node_id)
        target = id_mapping.get(edge.target_node_id)
        if source is None or target is None:
            continue
        copy = edge.clone()
        copy.id = new_edge_id()
        copy.source_node_id = source
        copy.target_node_id = target
        new_edges.append(copy)

    return new_nodes, new_edges, id_mapping


def _resolve_dependencies(
    nodes: list[Node], edges: list[Edge], original_checkpoint_ids: set[str]
) -> tuple[list[Node], list[Edge]]:
    nodes_by_id = {node.id: node for node in nodes}

    for node in nodes:
        config = node.config
        if isinstance(config, ApiConfig) and config.failure_handling is not None:
            handling = config.failure_handling
            if (
                handling.on_failure is FailureStrategy.RETURN_TO_CHECKPOINT
                and handling.checkpoint_id
                and handling.checkpoint_id not in original_checkpoint_ids
            ):
                logger.debug(
                    "pasted API node %s lost checkpoint %s; failure handling set to stop",
                    node.id,
                    handling.checkpoint_id,
                )
                handling.on_failure = FailureStrategy.STOP
                handling.checkpoint_id = None

        elif isinstance(config, RejectConfig) and config.allow_retry:
            has_retry_target = any(
                edge.source_node_id == node.id
                and edge.target_node_id in nodes_by_id
                and nodes_by_id[edge.target_node_id].is_checkpoint
                for edge in edges
            )
            if not has_retry_target:
                logger.debug("pasted Reject node %s has no copied checkpoint; retry disabled", node.id)
                config.allow_retry = False

    kept_edges: list[Edge] = []
    for edge in edges:
        source = nodes_by_id.get(edge.source_node_id)
        target = nodes_by_id.get(edge.target_node_id)
        if (
            source is not None
            and isinstance(source.config, RejectConfig)
            and target is not None
            and target.is_checkpoint
            and not source.config.allow_retry
        ):
            continue
        kept_edges.append(edge)

    return nodes, kept_edges


def _remap_checkpoint_references(
    nodes: list[Node], id_mapping: dict[str, str], original_checkpoint_ids: set[str]
) -> None:
    for node in nodes:
        if not isinstance(node.config, ApiConfig) or node.config.failure_handling is None:
            continue
        handling = node.config.failure_handling
        if (
            handling.on_failure is FailureStrategy.RETURN_TO_CHECKPOINT
            and handling.checkpoint_id in original_checkpoint_ids
        ):
            handling.checkpoint_id = id_mapping[handling.checkpoint_id]
