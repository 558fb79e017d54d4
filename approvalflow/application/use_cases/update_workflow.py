"""UpdateWorkflowUseCase - save the editor state of an existing workflow

The editor sends the complete document (graph, flags, metadata, viewport); it
replaces the stored one instead of being merged. Any edit moves a published
workflow back to draft.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from approvalflow.domain.entities.edge import Edge
from approvalflow.domain.entities.flag import Flag
from approvalflow.domain.entities.node import Node
from approvalflow.domain.entities.workflow import WorkflowDocument
from approvalflow.domain.exceptions import DomainError, NotFoundError
from approvalflow.domain.ports.workflow_repository import WorkflowRepository
from approvalflow.domain.value_objects.position import Position
from approvalflow.domain.value_objects.workflow_status import WorkflowStatus


@dataclass
class UpdateWorkflowInput:
    """Attributes left as None keep their stored value"""

    workflow_id: str
    nodes: list[Node]
    edges: list[Edge]
    flags: list[Flag] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    zoom: float | None = None
    pan: Position | None = None


class UpdateWorkflowUseCase:
    def __init__(self, workflow_repository: WorkflowRepository):
        self.workflow_repository = workflow_repository

    def execute(self, input_data: UpdateWorkflowInput) -> WorkflowDocument:
        """Apply the update

        Raises:
            NotFoundError: when the workflow does not exist
            DomainError: when an edge references a missing node or a flag is invalid
        """
        workflow = self.workflow_repository.get_by_id(input_data.workflow_id)

        workflow.nodes = []
        workflow.edges = []
        for node in input_data.nodes:
            workflow.add_node(node, record_history=False)
        for edge in input_data.edges:
            try:
                workflow.add_edge(edge, record_history=False)
            except NotFoundError as exc:
                raise DomainError(
                    f"edge {edge.id} references a missing node: {exc.entity_id}"
                ) from exc
        workflow.record_history()

        if input_data.flags is not None:
            workflow.update_flags(input_data.flags)

        for key in ("name", "description", "version", "author"):
            value = input_data.metadata.get(key)
            if isinstance(value, str):
                setattr(workflow.metadata, key, value)
        tags = input_data.metadata.get("tags")
        if isinstance(tags, list):
            workflow.metadata.tags = [tag for tag in tags if isinstance(tag, str)]

        if input_data.zoom is not None:
            workflow.zoom = input_data.zoom
        if input_data.pan is not None:
            workflow.pan = input_data.pan

        workflow.status = WorkflowStatus.DRAFT
        self.workflow_repository.save(workflow)
        return workflow
