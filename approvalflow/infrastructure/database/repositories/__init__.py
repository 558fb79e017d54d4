"""SQLAlchemy repository implementations"""

from approvalflow.infrastructure.database.repositories.workflow_repository import (
    SQLAlchemyWorkflowRepository,
)

__all__ = ["SQLAlchemyWorkflowRepository"]
