"""WorkflowRepository port - persistence interface of WorkflowDocument

The domain and application layers only depend on this Protocol; the SQLAlchemy
implementation lives in `approvalflow.infrastructure.database.repositories`.

Method naming:
- save(): insert or update
- get_by_id(): raises NotFoundError when missing
- find_by_id(): returns None when missing
- find_all(): every stored document
- exists(): existence check
- delete(): idempotent
"""

from typing import Protocol

from approvalflow.domain.entities.workflow import WorkflowDocument


class WorkflowRepository(Protocol):
    def save(self, workflow: WorkflowDocument) -> None:
        """Insert or update the document (nodes, edges and flags included)"""
        ...

    def get_by_id(self, workflow_id: str) -> WorkflowDocument:
        """Load a document

        Raises:
            NotFoundError: when no document has that id
        """
        ...

    def find_by_id(self, workflow_id: str) -> WorkflowDocument | None:
        ...

    def find_all(self) -> list[WorkflowDocument]:
        ...

    def exists(self, workflow_id: str) -> bool:
        ...

    def delete(self, workflow_id: str) -> None:
        """Delete a document; deleting a missing id does nothing"""
        ...
