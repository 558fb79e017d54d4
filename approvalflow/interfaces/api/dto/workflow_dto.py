"""Workflow DTOs (Data Transfer Objects)

Request and response models of the workflow and editor endpoints.

Wire format:
- Field names are the editor's camelCase names (`fromPort`, `staleTimeout`, ...)
- Edge endpoints are `from` / `to`; `from` is a Python keyword, so the attribute
  is `from_` with an alias
- Node configs travel as plain dicts and are parsed leniently by the domain, so a
  malformed config reaches validation instead of being rejected with a 422
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from approvalflow.domain.entities.edge import Edge
from approvalflow.domain.entities.flag import Flag
from approvalflow.domain.entities.node import Node
from approvalflow.domain.entities.workflow import WorkflowDocument, nodes_from_dicts
from approvalflow.domain.services.copy_paste import CopiedSelection
from approvalflow.domain.value_objects.position import Position
from approvalflow.domain.value_objects.validation_finding import (
    ValidationFinding,
    summarize_findings,
)


class PositionDTO(BaseModel):
    """Canvas coordinates; negative values are allowed"""

    x: float = Field(default=0, description="Horizontal coordinate")
    y: float = Field(default=0, description="Vertical coordinate")

    def to_value(self) -> Position:
        return Position(x=self.x, y=self.y)


class NodeDTO(BaseModel):
    """Node in the editor's JSON shape

    `type` is a plain string so legacy types (Status, Approve, ManualDecision)
    can be migrated by `nodes_to_entities`.
    """

    id: str
    type: str
    title: str = ""
    description: str = ""
    roles: list[str] = Field(default_factory=list)
    config: dict[str, Any] = Field(default_factory=dict)
    checkpointType: str | None = None
    staleTimeout: dict[str, Any] | None = None
    position: PositionDTO = Field(default_factory=PositionDTO)
    groupId: str | None = None

    @classmethod
    def from_entity(cls, node: Node) -> NodeDTO:
        return cls.model_validate(node.to_dict())

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class EdgeDTO(BaseModel):
    """Edge in the editor's JSON shape"""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    from_: str = Field(..., alias="from", description="Source node id")
    to: str = Field(..., description="Target node id")
    label: str | None = None
    kind: str | None = Field(default=None, description="normal or retry")
    fromPort: str | None = Field(default=None, description="top or bottom")
    toPort: str | None = None
    color: str | None = None
    thickness: float | None = None

    @classmethod
    def from_entity(cls, edge: Edge) -> EdgeDTO:
        return cls.model_validate(edge.to_dict())

    def to_entity(self) -> Edge:
        return Edge.from_dict(self.model_dump(by_alias=True, exclude_none=True))


class FlagOptionDTO(BaseModel):
    id: str
    label: str
    color: str


class FlagDTO(BaseModel):
    id: str
    name: str
    options: list[FlagOptionDTO] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, flag: Flag) -> FlagDTO:
        return cls.model_validate(flag.to_dict())

    def to_entity(self) -> Flag:
        return Flag.from_dict(self.model_dump())


def nodes_to_entities(nodes: list[NodeDTO]) -> list[Node]:
    """Migrate legacy nodes and build entities (raises DomainError on unknown types)"""
    return nodes_from_dicts([node.to_wire() for node in nodes])


def edges_to_entities(edges: list[EdgeDTO]) -> list[Edge]:
    return [edge.to_entity() for edge in edges]


# ==================== Validation ====================


class FindingDTO(BaseModel):
    message: str
    severity: str
    nodeId: str | None = None

    @classmethod
    def from_value(cls, finding: ValidationFinding) -> FindingDTO:
        return cls(message=finding.message, severity=finding.severity.value, nodeId=finding.node_id)


class ValidationSummaryDTO(BaseModel):
    errors: int
    warnings: int
    isPublishable: bool


class GraphRequest(BaseModel):
    """A graph sent by the editor for a stateless operation"""

    nodes: list[NodeDTO] = Field(default_factory=list)
    edges: list[EdgeDTO] = Field(default_factory=list)


class ValidationResponse(BaseModel):
    findings: list[FindingDTO]
    summary: ValidationSummaryDTO

    @classmethod
    def from_findings(cls, findings: list[ValidationFinding]) -> ValidationResponse:
        summary = summarize_findings(findings)
        return cls(
            findings=[FindingDTO.from_value(finding) for finding in findings],
            summary=ValidationSummaryDTO(
                errors=summary.errors,
                warnings=summary.warnings,
                isPublishable=summary.is_publishable,
            ),
        )


# ==================== Connections / checkpoints ====================


class ConnectionCheckRequest(GraphRequest):
    sourceId: str
    targetId: str
    fromPort: str | None = None
    kind: str = Field(default="normal", description="Kind of the edge to draw: normal or retry")


class ConnectionCheckResponse(BaseModel):
    allowed: bool
    reason: str | None = None


class NearestCheckpointRequest(GraphRequest):
    nodeId: str


class NearestCheckpointResponse(BaseModel):
    checkpointId: str | None = Field(default=None, description="First checkpoint found")
    checkpointIds: list[str] = Field(
        default_factory=list, description="Every checkpoint at the minimum distance"
    )


# ==================== Clipboard ====================


class SelectionDTO(BaseModel):
    nodes: list[NodeDTO] = Field(default_factory=list)
    edges: list[EdgeDTO] = Field(default_factory=list)

    @classmethod
    def from_value(cls, selection: CopiedSelection) -> SelectionDTO:
        return cls(
            nodes=[NodeDTO.from_entity(node) for node in selection.nodes],
            edges=[EdgeDTO.from_entity(edge) for edge in selection.edges],
        )

    def to_value(self) -> CopiedSelection:
        return CopiedSelection(
            nodes=nodes_to_entities(self.nodes), edges=edges_to_entities(self.edges)
        )


class CopyRequest(GraphRequest):
    selectedNodeIds: list[str] = Field(default_factory=list)
    selectedEdgeIds: list[str] = Field(default_factory=list)


class CopyResponse(BaseModel):
    selection: SelectionDTO | None = Field(
        default=None, description="None when nothing copyable was selected"
    )


class PasteRequest(BaseModel):
    selection: SelectionDTO
    existingNodes: list[NodeDTO] = Field(default_factory=list)
    offset: PositionDTO | None = None


# ==================== Workflows ====================


class WorkflowMetadataDTO(BaseModel):
    name: str
    description: str = ""
    version: str = "1.0.0"
    author: str = ""
    tags: list[str] = Field(default_factory=list)
    createdAt: datetime
    updatedAt: datetime


class WorkflowResponse(BaseModel):
    id: str
    metadata: WorkflowMetadataDTO
    nodes: list[NodeDTO]
    edges: list[EdgeDTO]
    flags: list[FlagDTO]
    zoom: float
    pan: PositionDTO
    status: str

    @classmethod
    def from_entity(cls, workflow: WorkflowDocument) -> WorkflowResponse:
        metadata = workflow.metadata
        return cls(
            id=workflow.id,
            metadata=WorkflowMetadataDTO(
                name=metadata.name,
                description=metadata.description,
                version=metadata.version,
                author=metadata.author,
                tags=list(metadata.tags),
                createdAt=metadata.created_at,
                updatedAt=metadata.updated_at,
            ),
            nodes=[NodeDTO.from_entity(node) for node in workflow.nodes],
            edges=[EdgeDTO.from_entity(edge) for edge in workflow.edges],
            flags=[FlagDTO.from_entity(flag) for flag in workflow.flags],
            zoom=workflow.zoom,
            pan=PositionDTO(x=workflow.pan.x, y=workflow.pan.y),
            status=workflow.status.value,
        )


class CreateWorkflowRequest(BaseModel):
    name: str | None = Field(default=None, description="Defaults to 'Nuevo Flujo de Trabajo'")
    description: str = ""


class UpdateWorkflowRequest(BaseModel):
    """Complete editor state; omitted optional parts keep their stored value"""

    nodes: list[NodeDTO] = Field(default_factory=list)
    edges: list[EdgeDTO] = Field(default_factory=list)
    flags: list[FlagDTO] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    zoom: float | None = Field(default=None, gt=0)
    pan: PositionDTO | None = None


class ImportWorkflowRequest(BaseModel):
    """JSON produced by the export endpoint, as text or as an object"""

    content: str | dict[str, Any]
    name: str | None = None
    workflowId: str | None = Field(default=None, description="Replace the graph of this workflow")


class PublishWorkflowResponse(BaseModel):
    workflow: WorkflowResponse
    warnings: list[FindingDTO] = Field(default_factory=list)
