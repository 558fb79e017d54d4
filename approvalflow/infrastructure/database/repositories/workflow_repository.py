"""SQLAlchemy WorkflowDocument repository

Responsibilities:
1. Translation: WorkflowDocument <-> WorkflowDraftModel
2. Persistence: save, load, list, delete
3. Migration: nodes stored by older editor versions are migrated when loaded

Transactions are controlled by the caller (routes commit the session).
"""

from __future__ import annotations

from datetime import UTC

from sqlalchemy import select
from sqlalchemy.orm import Session

from approvalflow.domain.entities.edge import Edge
from approvalflow.domain.entities.flag import Flag
from approvalflow.domain.entities.workflow import (
    DEFAULT_PAN,
    WorkflowDocument,
    WorkflowMetadata,
    nodes_from_dicts,
)
from approvalflow.domain.exceptions import NotFoundError
from approvalflow.domain.value_objects.position import Position
from approvalflow.domain.value_objects.workflow_status import WorkflowStatus
from approvalflow.infrastructure.database.models import WorkflowDraftModel


class SQLAlchemyWorkflowRepository:
    """Implements the WorkflowRepository port on a synchronous Session"""

    def __init__(self, session: Session):
        self.session = session

    # ==================== Assembler ====================

    def _to_entity(self, model: WorkflowDraftModel) -> WorkflowDocument:
        pan = model.pan or {}
        return WorkflowDocument(
            id=model.id,
            metadata=WorkflowMetadata(
                name=model.name,
                description=model.description,
                version=model.version,
                author=model.author,
                tags=list(model.tags or []),
                created_at=model.created_at.replace(tzinfo=UTC),
                updated_at=model.updated_at.replace(tzinfo=UTC),
            ),
            nodes=nodes_from_dicts(model.nodes or []),
            edges=[Edge.from_dict(raw) for raw in model.edges or []],
            flags=[Flag.from_dict(raw) for raw in model.flags or []],
            zoom=model.zoom,
            pan=Position(x=pan.get("x", DEFAULT_PAN.x), y=pan.get("y", DEFAULT_PAN.y)),
            status=WorkflowStatus(model.status),
        )

    def _to_model(self, entity: WorkflowDocument) -> WorkflowDraftModel:
        metadata = entity.metadata
        return WorkflowDraftModel(
            id=entity.id,
            name=metadata.name,
            description=metadata.description,
            version=metadata.version,
            author=metadata.author,
            tags=list(metadata.tags),
            status=entity.status.value,
            nodes=[node.to_dict() for node in entity.nodes],
            edges=[edge.to_dict() for edge in entity.edges],
            flags=[flag.to_dict() for flag in entity.flags],
            zoom=entity.zoom,
            pan={"x": entity.pan.x, "y": entity.pan.y},
            created_at=metadata.created_at.astimezone(UTC).replace(tzinfo=None),
            updated_at=metadata.updated_at.astimezone(UTC).replace(tzinfo=None),
        )

    # ==================== Repository ====================

    def save(self, workflow: WorkflowDocument) -> None:
        """Insert or update (merge on primary key)"""
        self.session.merge(self._to_model(workflow))

    def get_by_id(self, workflow_id: str) -> WorkflowDocument:
        """Raises NotFoundError when the workflow does not exist"""
        model = self._get_model(workflow_id)
        if model is None:
            raise NotFoundError(entity_type="Workflow", entity_id=workflow_id)
        return self._to_entity(model)

    def find_by_id(self, workflow_id: str) -> WorkflowDocument | None:
        model = self._get_model(workflow_id)
        if model is None:
            return None
        return self._to_entity(model)

    def find_all(self) -> list[WorkflowDocument]:
        """Newest first"""
        stmt = select(WorkflowDraftModel).order_by(WorkflowDraftModel.created_at.desc())
        return [self._to_entity(model) for model in self.session.scalars(stmt).all()]

    def exists(self, workflow_id: str) -> bool:
        stmt = select(WorkflowDraftModel.id).where(WorkflowDraftModel.id == workflow_id)
        return self.session.scalar(stmt) is not None

    def delete(self, workflow_id: str) -> None:
        """Idempotent: deleting a missing workflow does nothing"""
        model = self._get_model(workflow_id)
        if model is not None:
            self.session.delete(model)

    def _get_model(self, workflow_id: str) -> WorkflowDraftModel | None:
        stmt = select(WorkflowDraftModel).where(WorkflowDraftModel.id == workflow_id)
        return self.session.scalars(stmt).first()
