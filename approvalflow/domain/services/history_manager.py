"""Bounded undo/redo history of (nodes, edges) snapshots

- History is a list of snapshots plus the index of the current one
- Pushing discards the redo branch, appends, and keeps at most
  MAX_HISTORY_LENGTH snapshots (the oldest are dropped)
- Snapshots and restored states are clones; callers may mutate what they get back

Every function returns a new HistoryState instead of mutating the one passed in.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from approvalflow.domain.entities.edge import Edge
from approvalflow.domain.entities.node import Node

MAX_HISTORY_LENGTH = 50


@dataclass(frozen=True)
class HistorySnapshot:
    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]

    def restore(self) -> tuple[list[Node], list[Edge]]:
        return [node.clone() for node in self.nodes], [edge.clone() for edge in self.edges]


@dataclass(frozen=True)
class HistoryState:
    history: tuple[HistorySnapshot, ...] = field(default_factory=tuple)
    history_index: int = 0


@dataclass
class UndoResult:
    """State to restore after an undo or redo"""

    nodes: list[Node]
    edges: list[Edge]
    history_index: int


def create_history_snapshot(nodes: Sequence[Node], edges: Sequence[Edge]) -> HistorySnapshot:
    return HistorySnapshot(
        nodes=tuple(node.clone() for node in nodes),
        edges=tuple(edge.clone() for edge in edges),
    )


def initialize_history(nodes: Sequence[Node], edges: Sequence[Edge]) -> HistoryState:
    return HistoryState(history=(create_history_snapshot(nodes, edges),), history_index=0)


def push_history_state(
    history: Sequence[HistorySnapshot],
    history_index: int,
    nodes: Sequence[Node],
    edges: Sequence[Edge],
) -> HistoryState:
    """Record a new current state

    Snapshots after `history_index` are discarded. A negative index keeps only the
    last snapshot as base.
    """
    if history_index >= 0 and history:
        base = list(history[: history_index + 1])
    elif history:
        base = [history[-1]]
    else:
        base = []

    base.append(create_history_snapshot(nodes, edges))
    if len(base) > MAX_HISTORY_LENGTH:
        base = base[-MAX_HISTORY_LENGTH:]

    return HistoryState(history=tuple(base), history_index=len(base) - 1)


def can_undo_history(history_index: int) -> bool:
    return history_index > 0


def undo_history(history: Sequence[HistorySnapshot], history_index: int) -> UndoResult | None:
    if not can_undo_history(history_index):
        return None
    return _restore(history, history_index - 1)


def can_redo_history(history: Sequence[HistorySnapshot], history_index: int) -> bool:
    return 0 <= history_index < len(history) - 1


def redo_history(history: Sequence[HistorySnapshot], history_index: int) -> UndoResult | None:
    if not can_redo_history(history, history_index):
        return None
    return _restore(history, history_index + 1)


def _restore(history: Sequence[HistorySnapshot], index: int) -> UndoResult | None:
    if index >= len(history):
        return None
    nodes, edges = history[index].restore()
    return UndoResult(nodes=nodes, edges=edges, history_index=index)
