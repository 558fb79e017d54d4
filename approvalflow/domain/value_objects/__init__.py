"""Domain value objects

Re-exports the value objects so callers can import them from one place.
"""

from approvalflow.domain.value_objects.duration import Duration, TimeoutUnit
from approvalflow.domain.value_objects.node_type import (
    DUAL_OUTPUT_NODE_TYPES,
    STALE_SUPPORTED_NODE_TYPES,
    CheckpointType,
    EdgeKind,
    NodeType,
    Port,
    Role,
)
from approvalflow.domain.value_objects.position import Position
from approvalflow.domain.value_objects.validation_finding import (
    Severity,
    ValidationFinding,
    ValidationSummary,
    summarize_findings,
)
from approvalflow.domain.value_objects.workflow_status import WorkflowStatus

__all__ = [
    "DUAL_OUTPUT_NODE_TYPES",
    "STALE_SUPPORTED_NODE_TYPES",
    "CheckpointType",
    "Duration",
    "EdgeKind",
    "NodeType",
    "Port",
    "Position",
    "Role",
    "Severity",
    "TimeoutUnit",
    "ValidationFinding",
    "ValidationSummary",
    "WorkflowStatus",
    "summarize_findings",
]
