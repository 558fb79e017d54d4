"""ImportWorkflowUseCase - import a workflow graph from JSON

Business scenario:
The user pastes or uploads the JSON exported by the editor ({"nodes": [...],
"edges": [...]}). The graph is migrated from legacy node types, turned into
domain entities and either stored as a new document or swapped into an existing
one (recorded as a single undo step).

Responsibilities:
1. parse and check the document shape
2. migrate legacy nodes and build the entities
3. create or update the WorkflowDocument and save it when a repository is given
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from approvalflow.domain.entities.edge import Edge
from approvalflow.domain.entities.workflow import (
    WorkflowDocument,
    WorkflowMetadata,
    new_workflow_id,
    nodes_from_dicts,
)
from approvalflow.domain.exceptions import DomainError, WorkflowImportError
from approvalflow.domain.ports.workflow_repository import WorkflowRepository

logger = logging.getLogger(__name__)

EXPORT_FORMAT_VERSION = "1.0"


@dataclass
class ImportWorkflowInput:
    """Import parameters

    Attributes:
    - content: JSON text or an already parsed mapping
    - workflow_id: existing document whose graph is replaced (None creates a new one)
    - name: name of the new document (ignored when workflow_id is set)
    """

    content: str | dict[str, Any]
    workflow_id: str | None = None
    name: str | None = None


class ImportWorkflowUseCase:
    def __init__(self, workflow_repository: WorkflowRepository | None = None):
        self.workflow_repository = workflow_repository

    def execute(self, input_data: ImportWorkflowInput) -> WorkflowDocument:
        """Run the import

        Raises:
            WorkflowImportError: when the content is not JSON, lacks the nodes or
                edges array, or holds a node/edge that cannot be read
            NotFoundError: when workflow_id does not exist
        """
        data = parse_workflow_json(input_data.content)

        try:
            nodes = nodes_from_dicts(data["nodes"])
            edges = [Edge.from_dict(raw) for raw in data["edges"]]
        except DomainError as exc:
            raise WorkflowImportError(f"Formato inválido: {exc}") from exc

        if input_data.workflow_id:
            if self.workflow_repository is None:
                raise DomainError("importing into an existing workflow requires a repository")
            document = self.workflow_repository.get_by_id(input_data.workflow_id)
            document.replace_graph(nodes, edges)
        else:
            metadata = WorkflowMetadata.from_dict(data.get("metadata"))
            if input_data.name and input_data.name.strip():
                metadata.name = input_data.name.strip()
            document = WorkflowDocument(
                id=new_workflow_id(), metadata=metadata, nodes=nodes, edges=edges
            )

        if self.workflow_repository is not None:
            self.workflow_repository.save(document)

        logger.info(
            "imported workflow %s: nodes=%d edges=%d", document.id, len(nodes), len(edges)
        )
        return document


def parse_workflow_json(content: str | dict[str, Any]) -> dict[str, Any]:
    """Parse and check the exported shape; returns the mapping with both arrays"""
    if isinstance(content, str):
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise WorkflowImportError(f"Error al parsear JSON: {exc.msg}") from exc
    else:
        data = content

    if not isinstance(data, dict):
        raise WorkflowImportError('Formato inválido: falta el array "nodes"')
    if not isinstance(data.get("nodes"), list):
        raise WorkflowImportError('Formato inválido: falta el array "nodes"')
    if not isinstance(data.get("edges"), list):
        raise WorkflowImportError('Formato inválido: falta el array "edges"')

    for key in ("nodes", "edges"):
        if any(not isinstance(item, dict) for item in data[key]):
            raise WorkflowImportError(f'Formato inválido: el array "{key}" contiene elementos no válidos')
    return data


def export_workflow(document: WorkflowDocument) -> str:
    """JSON text of the graph in the shape `ImportWorkflowUseCase` reads back"""
    payload = {
        "metadata": {
            "version": EXPORT_FORMAT_VERSION,
            "createdAt": datetime.now(UTC).isoformat(),
        },
        "nodes": [node.to_dict() for node in document.nodes],
        "edges": [edge.to_dict() for edge in document.edges],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)
