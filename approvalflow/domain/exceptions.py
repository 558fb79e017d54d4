"""Domain exceptions

Hierarchy:
- DomainError: base class for business rule violations (mapped to 4xx by the API layer)
- NotFoundError: a requested entity does not exist (404)
- DomainValidationError: a workflow failed validation and cannot be published (422)
- WorkflowImportError: an imported document is structurally unusable (400)

Pure graph functions (connection rules, validation, copy/paste, history) never raise
these; they report problems through their return values instead.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for domain errors

    Example:
        if not title.strip():
            raise DomainError("title must not be empty")
    """

    pass


class NotFoundError(DomainError):
    """Entity does not exist

    Args:
        entity_type: entity kind (e.g. "Workflow", "Node")
        entity_id: entity id
    """

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class DomainValidationError(DomainError):
    """Validation failed with structured details

    `errors` carries the findings as plain dicts so the API layer can return them
    without knowing the domain types.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "validation_failed",
        errors: list[dict[str, Any]] | None = None,
    ):
        self.code = code
        self.errors = errors or []
        super().__init__(message)


class WorkflowImportError(DomainError):
    """Imported workflow document is missing required structure"""

    pass
