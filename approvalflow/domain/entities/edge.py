"""Edge entity - a directed connection between two nodes

Business definition:
- An edge goes from a source node to a target node
- Dual-output sources (Decision, Challenge) record which output port it leaves from
- Retry edges mark where a Reject (or failing API) returns control; they are
  informational and excluded from the incoming count of Checkpoint targets

Design:
- The retry marker is the `kind` field, not the display label
- Documents written before `kind` existed mark retry edges only through the
  "Reintento" label; `from_dict` still recognizes that
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from approvalflow.domain.exceptions import DomainError
from approvalflow.domain.value_objects.node_type import EdgeKind, Port

RETRY_EDGE_LABEL = "Reintento"
RETRY_EDGE_COLOR = "rgb(234, 179, 8)"
RETRY_EDGE_THICKNESS = 3

_PORT_VALUES = {port.value for port in Port}


def new_edge_id() -> str:
    return f"edge_{uuid4().hex[:12]}"


@dataclass
class Edge:
    """Edge entity

    Attributes:
    - id: unique id (edge_ prefix for generated ids)
    - source_node_id / target_node_id: endpoints
    - label: display text, free
    - kind: NORMAL or RETRY
    - from_port: output port of a dual-output source
    - to_port: reserved for multi-input targets ("top", "middle", "bottom")
    - color / thickness: presentation only
    """

    id: str
    source_node_id: str
    target_node_id: str
    label: str | None = None
    kind: EdgeKind = EdgeKind.NORMAL
    from_port: Port | None = None
    to_port: str | None = None
    color: str | None = None
    thickness: float | None = None

    @classmethod
    def create(
        cls,
        source_node_id: str,
        target_node_id: str,
        from_port: Port | None = None,
        label: str | None = None,
        kind: EdgeKind = EdgeKind.NORMAL,
    ) -> Edge:
        """Factory for new edges

        Raises:
            DomainError: when an endpoint is blank or both endpoints are the same node
        """
        if not source_node_id or not source_node_id.strip():
            raise DomainError("source_node_id must not be empty")

        if not target_node_id or not target_node_id.strip():
            raise DomainError("target_node_id must not be empty")

        if source_node_id.strip() == target_node_id.strip():
            raise DomainError("a node cannot connect to itself")

        return cls(
            id=new_edge_id(),
            source_node_id=source_node_id.strip(),
            target_node_id=target_node_id.strip(),
            label=label,
            kind=kind,
            from_port=from_port,
        )

    @classmethod
    def retry(cls, source_node_id: str, checkpoint_id: str) -> Edge:
        """Retry edge from a Reject node back to its checkpoint"""
        edge = cls.create(
            source_node_id=source_node_id,
            target_node_id=checkpoint_id,
            label=RETRY_EDGE_LABEL,
            kind=EdgeKind.RETRY,
        )
        edge.color = RETRY_EDGE_COLOR
        edge.thickness = RETRY_EDGE_THICKNESS
        return edge

    @property
    def is_retry(self) -> bool:
        return self.kind is EdgeKind.RETRY

    def clone(self) -> Edge:
        return Edge(
            id=self.id,
            source_node_id=self.source_node_id,
            target_node_id=self.target_node_id,
            label=self.label,
            kind=self.kind,
            from_port=self.from_port,
            to_port=self.to_port,
            color=self.color,
            thickness=self.thickness,
        )

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Edge:
        """Build an edge from the editor's JSON shape ({"from", "to", "fromPort", ...})

        Raises:
            DomainError: when id or an endpoint is missing
        """
        edge_id = raw.get("id")
        source = raw.get("from")
        target = raw.get("to")
        if not isinstance(edge_id, str) or not edge_id:
            raise DomainError("edge id is required")
        if not isinstance(source, str) or not isinstance(target, str) or not source or not target:
            raise DomainError(f"edge {edge_id} must reference two nodes")

        label = raw.get("label") if isinstance(raw.get("label"), str) else None
        raw_kind = raw.get("kind")
        if raw_kind in (EdgeKind.NORMAL.value, EdgeKind.RETRY.value):
            kind = EdgeKind(raw_kind)
        else:
            kind = EdgeKind.RETRY if label == RETRY_EDGE_LABEL else EdgeKind.NORMAL

        from_port = raw.get("fromPort")
        thickness = raw.get("thickness")
        return cls(
            id=edge_id,
            source_node_id=source,
            target_node_id=target,
            label=label,
            kind=kind,
            from_port=(
                Port(from_port)
                if isinstance(from_port, str) and from_port in _PORT_VALUES
                else None
            ),
            to_port=raw.get("toPort") if isinstance(raw.get("toPort"), str) else None,
            color=raw.get("color") if isinstance(raw.get("color"), str) else None,
            thickness=(
                thickness
                if isinstance(thickness, (int, float)) and not isinstance(thickness, bool)
                else None
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "from": self.source_node_id,
            "to": self.target_node_id,
            "label": self.label,
            "kind": self.kind.value,
        }
        if self.from_port is not None:
            payload["fromPort"] = self.from_port.value
        if self.to_port is not None:
            payload["toPort"] = self.to_port
        if self.color is not None:
            payload["color"] = self.color
        if self.thickness is not None:
            payload["thickness"] = self.thickness
        return payload
