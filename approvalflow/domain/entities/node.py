"""Node entity - one vertex of the approval workflow graph

Business definition:
- A node has a type, a title shown on the canvas, optional roles and a typed config
- Checkpoint nodes carry a checkpoint type (normal/safe)
- Some node types may carry a staleTimeout

Design:
- Plain dataclass, no framework dependency
- `create()` factory generates the id and applies the per-type defaults
- `from_dict()` / `to_dict()` speak the editor's camelCase JSON shape
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from approvalflow.domain.entities.node_config import (
    NodeConfig,
    default_node_config,
    parse_node_config,
)
from approvalflow.domain.exceptions import DomainError
from approvalflow.domain.value_objects.duration import Duration
from approvalflow.domain.value_objects.node_type import (
    STALE_SUPPORTED_NODE_TYPES,
    CheckpointType,
    NodeType,
    Role,
)
from approvalflow.domain.value_objects.position import Position


def new_node_id() -> str:
    return f"node_{uuid4().hex[:12]}"


@dataclass
class Node:
    """Node entity

    Attributes:
    - id: unique id (node_ prefix for generated ids; imported ids are kept)
    - type: NodeType
    - title: label shown on the canvas and used in validation messages
    - description: free text
    - roles: roles assigned to the node
    - config: config variant matching `type`
    - checkpoint_type: normal/safe, only for Checkpoint nodes
    - stale_timeout: only for STALE_SUPPORTED_NODE_TYPES
    - position: canvas coordinates (opaque to the graph core)
    - group_id: visual group, opaque to the graph core
    """

    id: str
    type: NodeType
    title: str
    config: NodeConfig
    position: Position = field(default_factory=lambda: Position(x=0, y=0))
    description: str = ""
    roles: list[Role] = field(default_factory=list)
    checkpoint_type: CheckpointType | None = None
    stale_timeout: Duration | None = None
    group_id: str | None = None

    def __post_init__(self) -> None:
        if self.config.node_type is not self.type:
            raise DomainError(
                f"config {type(self.config).__name__} does not match node type {self.type.value}"
            )

    @classmethod
    def create(
        cls,
        type: NodeType,
        title: str,
        position: Position | None = None,
        config: NodeConfig | None = None,
        description: str = "",
        roles: list[Role] | None = None,
        checkpoint_type: CheckpointType | None = None,
        stale_timeout: Duration | None = None,
    ) -> Node:
        """Factory for new nodes

        Raises:
            DomainError: when the title is blank
        """
        if not title or not title.strip():
            raise DomainError("title must not be empty")

        node = cls(
            id=new_node_id(),
            type=type,
            title=title.strip(),
            config=config if config is not None else default_node_config(type),
            position=position or Position(x=0, y=0),
            description=description,
            roles=list(roles or []),
            checkpoint_type=checkpoint_type,
            stale_timeout=stale_timeout,
        )
        node.apply_type_defaults()
        return node

    @property
    def is_checkpoint(self) -> bool:
        return self.type is NodeType.CHECKPOINT

    @property
    def is_safe_checkpoint(self) -> bool:
        return self.is_checkpoint and self.checkpoint_type is CheckpointType.SAFE

    def apply_type_defaults(self) -> None:
        """Normalize type-dependent optional fields

        - Checkpoint nodes default to a normal checkpoint type; other nodes drop it
        - staleTimeout only survives on node types that support it
        """
        if self.is_checkpoint:
            self.checkpoint_type = self.checkpoint_type or CheckpointType.NORMAL
        else:
            self.checkpoint_type = None
        if self.type not in STALE_SUPPORTED_NODE_TYPES:
            self.stale_timeout = None

    def update_position(self, position: Position) -> None:
        self.position = position

    def update_config(self, config: NodeConfig) -> None:
        if config.node_type is not self.type:
            raise DomainError(
                f"config {type(config).__name__} does not match node type {self.type.value}"
            )
        self.config = config

    def clone(self) -> Node:
        """Independent copy of this node (config included)"""
        return Node(
            id=self.id,
            type=self.type,
            title=self.title,
            config=self.config.clone(),
            position=self.position,
            description=self.description,
            roles=list(self.roles),
            checkpoint_type=self.checkpoint_type,
            stale_timeout=self.stale_timeout,
            group_id=self.group_id,
        )

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Node:
        """Build a node from the editor's JSON shape

        Raises:
            DomainError: when id or type is missing/unknown
        """
        node_id = raw.get("id")
        if not isinstance(node_id, str) or not node_id:
            raise DomainError("node id is required")
        raw_type = raw.get("type")
        if not isinstance(raw_type, str) or raw_type not in _TYPE_VALUES:
            raise DomainError(f"unknown node type: {raw_type}")
        node_type = NodeType(raw_type)

        position = raw.get("position")
        if not isinstance(position, dict):
            position = {}
        checkpoint_type = raw.get("checkpointType")
        raw_roles = raw.get("roles") if isinstance(raw.get("roles"), list) else []
        roles = [
            Role(role)
            for role in raw_roles
            if isinstance(role, str) and role in _ROLE_VALUES
        ]

        node = cls(
            id=node_id,
            type=node_type,
            title=str(raw.get("title") or ""),
            config=parse_node_config(node_type, raw.get("config")),
            position=Position(x=_coordinate(position.get("x")), y=_coordinate(position.get("y"))),
            description=str(raw.get("description") or ""),
            roles=roles,
            checkpoint_type=(
                CheckpointType(checkpoint_type)
                if isinstance(checkpoint_type, str) and checkpoint_type in _CHECKPOINT_VALUES
                else None
            ),
            stale_timeout=Duration.from_dict(raw.get("staleTimeout")),
            group_id=raw.get("groupId") if isinstance(raw.get("groupId"), str) else None,
        )
        node.apply_type_defaults()
        return node

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "description": self.description,
            "roles": [role.value for role in self.roles],
            "config": self.config.to_dict(),
            "staleTimeout": self.stale_timeout.to_dict() if self.stale_timeout else None,
            "position": {"x": self.position.x, "y": self.position.y},
            "groupId": self.group_id,
        }
        if self.checkpoint_type is not None:
            payload["checkpointType"] = self.checkpoint_type.value
        return payload


_ROLE_VALUES = {role.value for role in Role}
_CHECKPOINT_VALUES = {value.value for value in CheckpointType}
_TYPE_VALUES = {node_type.value for node_type in NodeType}


def _coordinate(raw: Any) -> int | float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return 0
    return raw
