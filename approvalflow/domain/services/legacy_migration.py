"""Legacy node migration

Older editor versions stored node types that no longer exist. Stored and imported
documents are migrated on the raw dict level, before they are turned into Node
entities:

- Status         -> FlagChange (with an empty flagChanges list)
- Approve        -> End
- ManualDecision -> Decision (condition defaults to "true"; sla and instructions
                    are dropped)

`apply_node_defaults` then normalizes the type-dependent optional fields.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from approvalflow.domain.value_objects.node_type import STALE_SUPPORTED_NODE_TYPES, NodeType

logger = logging.getLogger(__name__)

_DROPPED_MANUAL_DECISION_KEYS = frozenset({"sla", "instructions"})
_STALE_SUPPORTED_VALUES = frozenset(node_type.value for node_type in STALE_SUPPORTED_NODE_TYPES)


def migrate_legacy_nodes(raw_nodes: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Return migrated copies of `raw_nodes`; the input dicts are not modified"""
    migrated: list[dict[str, Any]] = []
    for raw in raw_nodes:
        node = dict(raw)
        node_type = node.get("type") if isinstance(node.get("type"), str) else None
        config = node.get("config") if isinstance(node.get("config"), dict) else {}

        if node_type == "Status":
            node["type"] = NodeType.FLAG_CHANGE.value
            node["config"] = {**config, "flagChanges": []}
        elif node_type == "Approve":
            node["type"] = NodeType.END.value
        elif node_type == "ManualDecision":
            node["type"] = NodeType.DECISION.value
            node["config"] = {
                "condition": config.get("condition") or "true",
                **{
                    key: value
                    for key, value in config.items()
                    if key not in _DROPPED_MANUAL_DECISION_KEYS and key != "condition"
                },
            }
        else:
            migrated.append(node)
            continue

        logger.debug("migrated legacy node %s: %s -> %s", node.get("id"), node_type, node["type"])
        migrated.append(node)
    return migrated


def apply_node_defaults(raw_node: dict[str, Any]) -> dict[str, Any]:
    """Checkpoints default to a normal checkpoint type; staleTimeout only where supported"""
    node = dict(raw_node)
    # non-string types are left for Node.from_dict to reject
    node_type = node.get("type") if isinstance(node.get("type"), str) else None
    if node_type == NodeType.CHECKPOINT.value:
        node["checkpointType"] = node.get("checkpointType") or "normal"
    else:
        node.pop("checkpointType", None)
    node["staleTimeout"] = node.get("staleTimeout") if node_type in _STALE_SUPPORTED_VALUES else None
    return node
