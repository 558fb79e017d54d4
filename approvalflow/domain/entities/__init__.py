"""Domain entities

Exports the graph entities. The WorkflowDocument aggregate depends on the domain
services and is imported from `approvalflow.domain.entities.workflow` directly.
"""

from approvalflow.domain.entities.edge import Edge
from approvalflow.domain.entities.flag import Flag, FlagOption
from approvalflow.domain.entities.node import Node

__all__ = ["Edge", "Flag", "FlagOption", "Node"]
