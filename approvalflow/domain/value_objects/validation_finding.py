"""ValidationFinding value object - one error or warning reported by validation

A finding is purely a report: it has no identity and is never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Severity(str, Enum):
    """ERROR blocks publishing, WARNING is advisory"""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationFinding:
    """One validation result

    Attributes:
    - message: human readable text (Spanish, shown as-is in the editor)
    - severity: error or warning
    - node_id: node the finding refers to (None for graph-wide findings)
    """

    message: str
    severity: Severity
    node_id: str | None = None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": self.message, "severity": self.severity.value}
        if self.node_id is not None:
            payload["nodeId"] = self.node_id
        return payload


@dataclass(frozen=True)
class ValidationSummary:
    """Counts derived from a list of findings"""

    errors: int
    warnings: int

    @property
    def is_publishable(self) -> bool:
        return self.errors == 0


def summarize_findings(findings: list[ValidationFinding]) -> ValidationSummary:
    errors = sum(1 for finding in findings if finding.is_error)
    return ValidationSummary(errors=errors, warnings=len(findings) - errors)
