"""Connection rules - decide whether an edge may be drawn between two nodes

Business rules:
- Normal nodes: at most 1 outgoing and 1 incoming edge
- Decision / Challenge: 2 outgoing edges, one per port (top/bottom)
- Join: 1 outgoing edge, unlimited incoming edges
- Start: no incoming edges
- Reject without retry and API with onFailure="stop" are terminal (no outgoing edges)
- Retry edges do not count against the incoming limit of a Checkpoint, so a
  checkpoint can hold one normal incoming edge plus any number of retry edges

All functions are pure. A rejected connection is reported through
ConnectionCheck.reason (Spanish, shown to the user as-is); nothing raises.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from approvalflow.domain.entities.edge import Edge
from approvalflow.domain.entities.node import Node
from approvalflow.domain.entities.node_config import ApiConfig, FailureStrategy, RejectConfig
from approvalflow.domain.value_objects.node_type import (
    DUAL_OUTPUT_NODE_TYPES,
    EdgeKind,
    NodeType,
    Port,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionCheck:
    allowed: bool
    reason: str | None = None


_PORT_NAMES: dict[NodeType, dict[Port, str]] = {
    NodeType.CHALLENGE: {Port.TOP: "accepted", Port.BOTTOM: "rejected"},
    NodeType.DECISION: {Port.TOP: "verde (positiva)", Port.BOTTOM: "roja (negativa)"},
}

_OUTGOING_KIND_NAMES: dict[NodeType, str] = {
    NodeType.DECISION: "decisión",
    NodeType.CHALLENGE: "challenge",
    NodeType.JOIN: "unión",
}


def is_retry_edge(edge: Edge) -> bool:
    return edge.is_retry


def get_max_outgoing_connections(node_type: NodeType) -> int:
    """Maximum outgoing edges by node type (terminal configuration is checked separately)"""
    if node_type in DUAL_OUTPUT_NODE_TYPES:
        return 2
    return 1


def get_max_incoming_connections(node_type: NodeType) -> int | None:
    """Maximum incoming edges by node type; None means unlimited"""
    if node_type is NodeType.START:
        return 0
    if node_type is NodeType.JOIN:
        return None
    return 1


def can_node_have_outgoing_connections(node: Node) -> bool:
    """False for nodes that are terminal by configuration

    - Reject without allowRetry
    - API whose failure handling stops the workflow
    """
    config = node.config
    if isinstance(config, RejectConfig) and not config.allow_retry:
        return False
    if (
        isinstance(config, ApiConfig)
        and config.failure_handling is not None
        and config.failure_handling.on_failure is FailureStrategy.STOP
    ):
        return False
    return True


def can_create_connection(
    source: Node,
    target: Node,
    edges: Sequence[Edge],
    from_port: Port | None = None,
    kind: EdgeKind = EdgeKind.NORMAL,
) -> ConnectionCheck:
    """Check whether source -> target may be added to `edges`

    Checks, in order:
    1. the source is not terminal by configuration
    2. for Decision/Challenge sources, the requested port is still free
    3. the source is below its outgoing limit
    4. the target is below its incoming limit (retry edges ignored for Checkpoints,
       so a new retry edge into a Checkpoint skips this check)
    """
    if not can_node_have_outgoing_connections(source):
        return _reject(f'El nodo "{source.title}" no puede tener conexiones de salida.')

    if source.type in DUAL_OUTPUT_NODE_TYPES and from_port is not None:
        port_taken = any(
            edge.source_node_id == source.id and edge.from_port is from_port for edge in edges
        )
        if port_taken:
            port_name = _PORT_NAMES[source.type][from_port]
            return _reject(
                f'El nodo "{source.title}" ya tiene una conexión en el conector {port_name}. '
                "Cada conector solo puede tener una conexión."
            )

    max_outgoing = get_max_outgoing_connections(source.type)
    current_outgoing = sum(1 for edge in edges if edge.source_node_id == source.id)
    if current_outgoing >= max_outgoing:
        kind_name = _OUTGOING_KIND_NAMES.get(source.type, "normal")
        return _reject(
            f'El nodo "{source.title}" ({kind_name}) ya tiene el máximo de conexiones '
            f"de salida permitidas ({max_outgoing})."
        )

    max_incoming = get_max_incoming_connections(target.type)
    retry_into_checkpoint = kind is EdgeKind.RETRY and target.type is NodeType.CHECKPOINT
    if max_incoming is not None and not retry_into_checkpoint:
        if target.type is NodeType.CHECKPOINT:
            current_incoming = sum(
                1 for edge in edges if edge.target_node_id == target.id and not edge.is_retry
            )
        else:
            current_incoming = sum(1 for edge in edges if edge.target_node_id == target.id)

        if current_incoming >= max_incoming:
            kind_name = "inicio" if target.type is NodeType.START else "normal"
            return _reject(
                f'El nodo "{target.title}" ({kind_name}) ya tiene el máximo de conexiones '
                f"de entrada permitidas ({max_incoming})."
            )

    return ConnectionCheck(allowed=True)


def _reject(reason: str) -> ConnectionCheck:
    logger.debug("connection rejected: %s", reason)
    return ConnectionCheck(allowed=False, reason=reason)
