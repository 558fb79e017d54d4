"""WorkflowStatus enum - lifecycle of a stored workflow

- DRAFT: editable, may contain validation errors
- PUBLISHED: passed validation without errors when it was published

Editing a published workflow through the API moves it back to DRAFT.
"""

from enum import Enum


class WorkflowStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
