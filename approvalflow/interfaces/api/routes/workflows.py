"""Workflow API routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from approvalflow.application.use_cases.import_workflow import (
    ImportWorkflowInput,
    ImportWorkflowUseCase,
    export_workflow,
)
from approvalflow.application.use_cases.publish_workflow import (
    PublishWorkflowInput,
    PublishWorkflowUseCase,
)
from approvalflow.application.use_cases.update_workflow import (
    UpdateWorkflowInput,
    UpdateWorkflowUseCase,
)
from approvalflow.domain.entities.workflow import WorkflowDocument
from approvalflow.domain.exceptions import DomainError, DomainValidationError, NotFoundError
from approvalflow.infrastructure.database.engine import get_db_session
from approvalflow.infrastructure.database.repositories.workflow_repository import (
    SQLAlchemyWorkflowRepository,
)
from approvalflow.interfaces.api.dto.workflow_dto import (
    CreateWorkflowRequest,
    FindingDTO,
    ImportWorkflowRequest,
    PublishWorkflowResponse,
    UpdateWorkflowRequest,
    ValidationResponse,
    WorkflowResponse,
    edges_to_entities,
    nodes_to_entities,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workflows", tags=["Workflows"])


def get_workflow_repository(
    db: Session = Depends(get_db_session),
) -> SQLAlchemyWorkflowRepository:
    """Return a repository bound to the current DB session."""
    return SQLAlchemyWorkflowRepository(db)


def _not_found(exc: NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("", response_model=WorkflowResponse, status_code=status.HTTP_201_CREATED)
def create_workflow(
    request: CreateWorkflowRequest,
    db: Session = Depends(get_db_session),
) -> WorkflowResponse:
    """Create an empty workflow holding only its Start node."""
    repository = SQLAlchemyWorkflowRepository(db)
    workflow = WorkflowDocument.create(name=request.name, description=request.description)
    repository.save(workflow)
    db.commit()
    logger.info("created workflow %s", workflow.id)
    return WorkflowResponse.from_entity(workflow)


@router.get("", response_model=list[WorkflowResponse])
def list_workflows(
    repository: SQLAlchemyWorkflowRepository = Depends(get_workflow_repository),
) -> list[WorkflowResponse]:
    return [WorkflowResponse.from_entity(workflow) for workflow in repository.find_all()]


@router.post("/import", response_model=WorkflowResponse, status_code=status.HTTP_201_CREATED)
def import_workflow(
    request: ImportWorkflowRequest,
    db: Session = Depends(get_db_session),
) -> WorkflowResponse:
    """Import the JSON produced by the export endpoint."""
    use_case = ImportWorkflowUseCase(workflow_repository=SQLAlchemyWorkflowRepository(db))
    try:
        workflow = use_case.execute(
            ImportWorkflowInput(
                content=request.content,
                workflow_id=request.workflowId,
                name=request.name,
            )
        )
        db.commit()
        return WorkflowResponse.from_entity(workflow)
    except NotFoundError as exc:
        db.rollback()
        raise _not_found(exc) from exc
    except DomainError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/{workflow_id}", response_model=WorkflowResponse)
def get_workflow(
    workflow_id: str,
    repository: SQLAlchemyWorkflowRepository = Depends(get_workflow_repository),
) -> WorkflowResponse:
    try:
        return WorkflowResponse.from_entity(repository.get_by_id(workflow_id))
    except NotFoundError as exc:
        raise _not_found(exc) from exc


@router.put("/{workflow_id}", response_model=WorkflowResponse)
def update_workflow(
    workflow_id: str,
    request: UpdateWorkflowRequest,
    db: Session = Depends(get_db_session),
) -> WorkflowResponse:
    """Save the editor state of a workflow (moves it back to draft)."""
    use_case = UpdateWorkflowUseCase(workflow_repository=SQLAlchemyWorkflowRepository(db))
    try:
        workflow = use_case.execute(
            UpdateWorkflowInput(
                workflow_id=workflow_id,
                nodes=nodes_to_entities(request.nodes),
                edges=edges_to_entities(request.edges),
                flags=[flag.to_entity() for flag in request.flags]
                if request.flags is not None
                else None,
                metadata=request.metadata,
                zoom=request.zoom,
                pan=request.pan.to_value() if request.pan else None,
            )
        )
        db.commit()
        return WorkflowResponse.from_entity(workflow)
    except NotFoundError as exc:
        db.rollback()
        raise _not_found(exc) from exc
    except DomainError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.delete("/{workflow_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_workflow(
    workflow_id: str,
    db: Session = Depends(get_db_session),
) -> Response:
    repository = SQLAlchemyWorkflowRepository(db)
    if not repository.exists(workflow_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Workflow not found: {workflow_id}",
        )
    repository.delete(workflow_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{workflow_id}/export")
def export_workflow_json(
    workflow_id: str,
    repository: SQLAlchemyWorkflowRepository = Depends(get_workflow_repository),
) -> Response:
    """Graph as downloadable JSON ({metadata, nodes, edges})."""
    try:
        workflow = repository.get_by_id(workflow_id)
    except NotFoundError as exc:
        raise _not_found(exc) from exc
    return Response(
        content=export_workflow(workflow),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{workflow.id}.json"'},
    )


@router.post("/{workflow_id}/validate", response_model=ValidationResponse)
def validate_stored_workflow(
    workflow_id: str,
    repository: SQLAlchemyWorkflowRepository = Depends(get_workflow_repository),
) -> ValidationResponse:
    try:
        workflow = repository.get_by_id(workflow_id)
    except NotFoundError as exc:
        raise _not_found(exc) from exc
    return ValidationResponse.from_findings(workflow.validate())


@router.post("/{workflow_id}/publish", response_model=PublishWorkflowResponse)
def publish_workflow(
    workflow_id: str,
    db: Session = Depends(get_db_session),
) -> PublishWorkflowResponse:
    """Publish when validation reports no errors; 422 with every finding otherwise."""
    use_case = PublishWorkflowUseCase(workflow_repository=SQLAlchemyWorkflowRepository(db))
    try:
        output = use_case.execute(PublishWorkflowInput(workflow_id=workflow_id))
        db.commit()
    except NotFoundError as exc:
        db.rollback()
        raise _not_found(exc) from exc
    except DomainValidationError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": str(exc), "code": exc.code, "errors": exc.errors},
        ) from exc

    return PublishWorkflowResponse(
        workflow=WorkflowResponse.from_entity(output.workflow),
        warnings=[FindingDTO.from_value(finding) for finding in output.warnings],
    )
