"""WorkflowDocument entity - aggregate root of the workflow editor

Business definition:
- A workflow document owns its nodes, edges, flags, metadata and viewport
- Every editing operation goes through the document so connection rules, retry
  edges and undo history stay consistent
- A new document starts with a single Start node

Design:
- Plain dataclass, no framework dependency
- Mutations record a history snapshot unless `record_history=False` is passed
  (used for continuous edits such as dragging, committed later with
  `record_history()`)
- The history itself is not persisted; a loaded document starts a fresh one
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from approvalflow.domain.entities.edge import Edge
from approvalflow.domain.entities.flag import Flag
from approvalflow.domain.entities.node import Node
from approvalflow.domain.entities.node_config import RejectConfig
from approvalflow.domain.exceptions import DomainError, NotFoundError
from approvalflow.domain.services.connection_rules import ConnectionCheck, can_create_connection
from approvalflow.domain.services.copy_paste import (
    CopiedSelection,
    deserialize_selection,
    serialize_selection,
)
from approvalflow.domain.services.flag_manager import validate_flag, validate_flags_unique
from approvalflow.domain.services.graph_reachability import find_nearest_previous_checkpoint
from approvalflow.domain.services.history_manager import (
    HistoryState,
    can_redo_history,
    can_undo_history,
    initialize_history,
    push_history_state,
    redo_history,
    undo_history,
)
from approvalflow.domain.services.legacy_migration import apply_node_defaults, migrate_legacy_nodes
from approvalflow.domain.services.workflow_validator import validate_workflow
from approvalflow.domain.value_objects.node_type import EdgeKind, NodeType, Port
from approvalflow.domain.value_objects.position import Position
from approvalflow.domain.value_objects.validation_finding import ValidationFinding
from approvalflow.domain.value_objects.workflow_status import WorkflowStatus

DEFAULT_WORKFLOW_NAME = "Nuevo Flujo de Trabajo"
DEFAULT_WORKFLOW_VERSION = "1.0.0"
DEFAULT_PAN = Position(x=200, y=100)
START_NODE_TITLE = "Inicio"
START_NODE_DESCRIPTION = "Punto de inicio del flujo"
START_NODE_POSITION = Position(x=200, y=200)

RETRY_CONNECTION_MESSAGE = (
    "Los nodos Reject con reintentos habilitados solo pueden conectarse al checkpoint "
    "anterior más próximo. Use el panel de propiedades para configurar los reintentos."
)
SELF_CONNECTION_MESSAGE = "Un nodo no puede conectarse consigo mismo."


def _now() -> datetime:
    return datetime.now(UTC)


def _parse_datetime(raw: Any) -> datetime:
    if isinstance(raw, str):
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            pass
    return _now()


@dataclass
class WorkflowMetadata:
    name: str = DEFAULT_WORKFLOW_NAME
    description: str = ""
    version: str = DEFAULT_WORKFLOW_VERSION
    author: str = ""
    tags: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @classmethod
    def from_dict(cls, raw: Any) -> WorkflowMetadata:
        if not isinstance(raw, dict):
            return cls()
        tags = raw.get("tags")
        return cls(
            name=str(raw.get("name") or DEFAULT_WORKFLOW_NAME),
            description=str(raw.get("description") or ""),
            version=str(raw.get("version") or DEFAULT_WORKFLOW_VERSION),
            author=str(raw.get("author") or ""),
            tags=[tag for tag in tags if isinstance(tag, str)] if isinstance(tags, list) else [],
            created_at=_parse_datetime(raw.get("createdAt")),
            updated_at=_parse_datetime(raw.get("updatedAt")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "author": self.author,
            "tags": list(self.tags),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass
class WorkflowDocument:
    """WorkflowDocument entity (aggregate root)

    Attributes:
    - id: unique id (wf_ prefix)
    - metadata: name, version, author, tags, timestamps
    - nodes / edges: the graph
    - flags: flags FlagChange nodes may set
    - zoom / pan: viewport, stored so the editor reopens where it was left
    - status: DRAFT or PUBLISHED
    - history: undo/redo state, never persisted
    """

    id: str
    metadata: WorkflowMetadata = field(default_factory=WorkflowMetadata)
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    flags: list[Flag] = field(default_factory=list)
    zoom: float = 1.0
    pan: Position = DEFAULT_PAN
    status: WorkflowStatus = WorkflowStatus.DRAFT
    history: HistoryState | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.history is None:
            self.history = initialize_history(self.nodes, self.edges)

    @classmethod
    def create(cls, name: str | None = None, description: str = "") -> WorkflowDocument:
        """New document with a single Start node"""
        start = Node.create(
            type=NodeType.START,
            title=START_NODE_TITLE,
            description=START_NODE_DESCRIPTION,
            position=START_NODE_POSITION,
        )
        metadata = WorkflowMetadata(description=description)
        if name and name.strip():
            metadata.name = name.strip()
        return cls(id=new_workflow_id(), metadata=metadata, nodes=[start])

    # ==================== Queries ====================

    @property
    def name(self) -> str:
        return self.metadata.name

    def find_node(self, node_id: str) -> Node | None:
        return next((node for node in self.nodes if node.id == node_id), None)

    def get_node(self, node_id: str) -> Node:
        node = self.find_node(node_id)
        if node is None:
            raise NotFoundError("Node", node_id)
        return node

    def find_edge(self, edge_id: str) -> Edge | None:
        return next((edge for edge in self.edges if edge.id == edge_id), None)

    def validate(self) -> list[ValidationFinding]:
        return validate_workflow(self.nodes, self.edges)

    # ==================== Nodes ====================

    def add_node(self, node: Node, record_history: bool = True) -> None:
        if self.find_node(node.id) is not None:
            raise DomainError(f"node already exists: {node.id}")
        node.apply_type_defaults()
        self.nodes.append(node)
        self._changed(record_history)

    def update_node(self, updated_node: Node, record_history: bool = True) -> None:
        """Replace the node with the same id

        Raises:
            NotFoundError: when no node has that id
        """
        for position, node in enumerate(self.nodes):
            if node.id == updated_node.id:
                updated_node.apply_type_defaults()
                self.nodes[position] = updated_node
                self._changed(record_history)
                return
        raise NotFoundError("Node", updated_node.id)

    def move_node(self, node_id: str, position: Position, record_history: bool = False) -> None:
        self.get_node(node_id).update_position(position)
        self._changed(record_history)

    def remove_node(self, node_id: str, record_history: bool = True) -> None:
        """Delete a node and every edge touching it"""
        self.get_node(node_id)
        self.nodes = [node for node in self.nodes if node.id != node_id]
        self.edges = [
            edge
            for edge in self.edges
            if edge.source_node_id != node_id and edge.target_node_id != node_id
        ]
        self._changed(record_history)

    # ==================== Edges ====================

    def add_edge(self, edge: Edge, record_history: bool = True) -> None:
        """Add an edge without applying connection rules (used by import and tooling)

        Raises:
            NotFoundError: when an endpoint does not exist
        """
        self.get_node(edge.source_node_id)
        self.get_node(edge.target_node_id)
        self.edges.append(edge)
        self._changed(record_history)

    def remove_edge(self, edge_id: str, record_history: bool = True) -> None:
        if self.find_edge(edge_id) is None:
            raise NotFoundError("Edge", edge_id)
        self.edges = [edge for edge in self.edges if edge.id != edge_id]
        self._changed(record_history)

    def connect(
        self,
        source_id: str,
        target_id: str,
        from_port: Port | None = None,
    ) -> tuple[ConnectionCheck, Edge | None]:
        """Draw an edge the way the canvas does

        - connecting a node to itself is refused
        - a Reject with retry may only connect to its nearest previous checkpoint
        - otherwise `can_create_connection` decides

        Returns:
            (check, edge); edge is None when the connection was refused

        Raises:
            NotFoundError: when an endpoint does not exist
        """
        source = self.get_node(source_id)
        target = self.get_node(target_id)

        if source.id == target.id:
            return ConnectionCheck(allowed=False, reason=SELF_CONNECTION_MESSAGE), None

        retrying_reject = isinstance(source.config, RejectConfig) and source.config.allow_retry
        if retrying_reject:
            checkpoint_id = find_nearest_previous_checkpoint(source.id, self.nodes, self.edges)
            if not checkpoint_id or target.id != checkpoint_id or not target.is_checkpoint:
                return ConnectionCheck(allowed=False, reason=RETRY_CONNECTION_MESSAGE), None

        kind = EdgeKind.RETRY if retrying_reject else EdgeKind.NORMAL
        check = can_create_connection(source, target, self.edges, from_port, kind)
        if not check.allowed:
            return check, None

        if retrying_reject:
            edge = Edge.retry(source.id, target.id)
        else:
            edge = Edge.create(source.id, target.id, from_port=from_port)
        self.edges.append(edge)
        self._changed(record_history=True)
        return check, edge

    def set_reject_retry(self, node_id: str, allow_retry: bool) -> Edge | None:
        """Enable or disable retries on a Reject node

        Enabling creates the retry edge to the nearest previous checkpoint when the
        node has no outgoing edge yet. Disabling removes the node's outgoing edge.

        Returns:
            the retry edge created, if any

        Raises:
            DomainError: when the node is not a Reject node
        """
        node = self.get_node(node_id)
        if not isinstance(node.config, RejectConfig):
            raise DomainError(f"node {node_id} is not a Reject node")

        config = node.config.clone()
        existing = next((edge for edge in self.edges if edge.source_node_id == node.id), None)
        created: Edge | None = None

        if allow_retry:
            checkpoint_id = find_nearest_previous_checkpoint(node.id, self.nodes, self.edges)
            if checkpoint_id and existing is None:
                created = Edge.retry(node.id, checkpoint_id)
                self.edges.append(created)
            config.allow_retry = True
            config.retry_count = config.retry_count or 0
        else:
            if existing is not None:
                self.edges = [edge for edge in self.edges if edge.id != existing.id]
            config.allow_retry = False

        node.update_config(config)
        self._changed(record_history=True)
        return created

    # ==================== Clipboard ====================

    def copy(
        self, node_ids: Sequence[str], edge_ids: Sequence[str] = ()
    ) -> CopiedSelection | None:
        return serialize_selection(node_ids, edge_ids, self.nodes, self.edges)

    def paste(self, selection: CopiedSelection, offset: Position | None = None) -> CopiedSelection:
        """Insert clipboard content with fresh ids; returns what was inserted"""
        pasted = deserialize_selection(selection, self.nodes, offset)
        for node in pasted.nodes:
            node.apply_type_defaults()
        self.nodes.extend(pasted.nodes)
        self.edges.extend(pasted.edges)
        self._changed(record_history=True)
        return pasted

    # ==================== Flags ====================

    def update_flags(self, flags: list[Flag]) -> None:
        """Replace the flag set

        Raises:
            DomainError: with the first flag problem found
        """
        for flag in flags:
            check = validate_flag(flag)
            if not check.valid:
                raise DomainError(check.error)
        check = validate_flags_unique(flags)
        if not check.valid:
            raise DomainError(check.error)
        self.flags = list(flags)
        self._touch()

    # ==================== History ====================

    @property
    def can_undo(self) -> bool:
        return can_undo_history(self.history.history_index)

    @property
    def can_redo(self) -> bool:
        return can_redo_history(self.history.history, self.history.history_index)

    def record_history(self) -> None:
        """Commit the current nodes and edges as a new history entry"""
        self.history = push_history_state(
            self.history.history, self.history.history_index, self.nodes, self.edges
        )

    def undo(self) -> bool:
        result = undo_history(self.history.history, self.history.history_index)
        if result is None:
            return False
        self._restore(result.nodes, result.edges, result.history_index)
        return True

    def redo(self) -> bool:
        result = redo_history(self.history.history, self.history.history_index)
        if result is None:
            return False
        self._restore(result.nodes, result.edges, result.history_index)
        return True

    def replace_graph(self, nodes: list[Node], edges: list[Edge]) -> None:
        """Swap in a whole new graph (import), recorded as one history entry"""
        self.nodes = list(nodes)
        self.edges = list(edges)
        self._changed(record_history=True)

    def _restore(self, nodes: list[Node], edges: list[Edge], history_index: int) -> None:
        self.nodes = nodes
        self.edges = edges
        self.history = HistoryState(history=self.history.history, history_index=history_index)
        self._touch()

    # ==================== Lifecycle ====================

    def publish(self) -> None:
        self.status = WorkflowStatus.PUBLISHED
        self._touch()

    def _changed(self, record_history: bool) -> None:
        if record_history:
            self.record_history()
        self._touch()

    def _touch(self) -> None:
        self.metadata.updated_at = _now()

    # ==================== Serialization ====================

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> WorkflowDocument:
        """Build a document from its stored JSON shape, migrating legacy nodes"""
        raw_nodes = [node for node in raw.get("nodes") or [] if isinstance(node, dict)]
        raw_edges = [edge for edge in raw.get("edges") or [] if isinstance(edge, dict)]
        raw_flags = [flag for flag in raw.get("flags") or [] if isinstance(flag, dict)]
        pan = raw.get("pan") if isinstance(raw.get("pan"), dict) else None
        zoom = raw.get("zoom")
        status = raw.get("status")

        return cls(
            id=str(raw.get("id") or new_workflow_id()),
            metadata=WorkflowMetadata.from_dict(raw.get("metadata")),
            nodes=nodes_from_dicts(raw_nodes),
            edges=[Edge.from_dict(edge) for edge in raw_edges],
            flags=[Flag.from_dict(flag) for flag in raw_flags],
            zoom=zoom if isinstance(zoom, (int, float)) and not isinstance(zoom, bool) else 1.0,
            pan=Position(x=pan.get("x", DEFAULT_PAN.x), y=pan.get("y", DEFAULT_PAN.y))
            if pan
            else DEFAULT_PAN,
            status=WorkflowStatus(status)
            if status in {item.value for item in WorkflowStatus}
            else WorkflowStatus.DRAFT,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "metadata": self.metadata.to_dict(),
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "flags": [flag.to_dict() for flag in self.flags],
            "zoom": self.zoom,
            "pan": {"x": self.pan.x, "y": self.pan.y},
            "status": self.status.value,
        }


def new_workflow_id() -> str:
    return f"wf_{uuid4().hex[:8]}"


def nodes_from_dicts(raw_nodes: Sequence[dict[str, Any]]) -> list[Node]:
    """Migrate legacy node types, apply defaults and build Node entities"""
    return [Node.from_dict(apply_node_defaults(raw)) for raw in migrate_legacy_nodes(raw_nodes)]
