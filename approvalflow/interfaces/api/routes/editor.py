"""Editor API routes.

Stateless helpers for the canvas: the editor sends the graph it currently holds
and gets back validation findings, connection decisions, checkpoint lookups or
clipboard content. Nothing is stored.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from approvalflow.domain.exceptions import DomainError
from approvalflow.domain.services.connection_rules import can_create_connection
from approvalflow.domain.services.copy_paste import deserialize_selection, serialize_selection
from approvalflow.domain.services.graph_reachability import (
    GraphIndex,
    find_all_nearest_previous_checkpoints,
    find_nearest_previous_checkpoint,
)
from approvalflow.domain.services.workflow_validator import validate_workflow
from approvalflow.domain.value_objects.node_type import EdgeKind, Port
from approvalflow.interfaces.api.dto.workflow_dto import (
    ConnectionCheckRequest,
    ConnectionCheckResponse,
    CopyRequest,
    CopyResponse,
    GraphRequest,
    NearestCheckpointRequest,
    NearestCheckpointResponse,
    PasteRequest,
    SelectionDTO,
    ValidationResponse,
    edges_to_entities,
    nodes_to_entities,
)

router = APIRouter(prefix="/editor", tags=["Editor"])


def _bad_request(exc: DomainError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.post("/validate", response_model=ValidationResponse)
def validate_graph(request: GraphRequest) -> ValidationResponse:
    """Validate a graph; findings are returned even when there are errors."""
    try:
        nodes = nodes_to_entities(request.nodes)
        edges = edges_to_entities(request.edges)
    except DomainError as exc:
        raise _bad_request(exc) from exc
    return ValidationResponse.from_findings(validate_workflow(nodes, edges))


@router.post("/connections/check", response_model=ConnectionCheckResponse)
def check_connection(request: ConnectionCheckRequest) -> ConnectionCheckResponse:
    """Would an edge source -> target be accepted?"""
    try:
        nodes = nodes_to_entities(request.nodes)
        edges = edges_to_entities(request.edges)
    except DomainError as exc:
        raise _bad_request(exc) from exc

    index = GraphIndex(nodes, edges)
    source = index.node(request.sourceId)
    target = index.node(request.targetId)
    if source is None or target is None:
        missing = request.sourceId if source is None else request.targetId
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Node not found: {missing}",
        )

    try:
        from_port = Port(request.fromPort) if request.fromPort else None
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown port: {request.fromPort}",
        ) from exc
    try:
        kind = EdgeKind(request.kind)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown edge kind: {request.kind}",
        ) from exc

    check = can_create_connection(source, target, edges, from_port, kind)
    return ConnectionCheckResponse(allowed=check.allowed, reason=check.reason)


@router.post("/checkpoints/nearest", response_model=NearestCheckpointResponse)
def nearest_checkpoints(request: NearestCheckpointRequest) -> NearestCheckpointResponse:
    try:
        nodes = nodes_to_entities(request.nodes)
        edges = edges_to_entities(request.edges)
    except DomainError as exc:
        raise _bad_request(exc) from exc

    index = GraphIndex(nodes, edges)
    return NearestCheckpointResponse(
        checkpointId=find_nearest_previous_checkpoint(request.nodeId, nodes, edges, index),
        checkpointIds=find_all_nearest_previous_checkpoints(request.nodeId, nodes, edges, index),
    )


@router.post("/clipboard/copy", response_model=CopyResponse)
def copy_selection(request: CopyRequest) -> CopyResponse:
    try:
        nodes = nodes_to_entities(request.nodes)
        edges = edges_to_entities(request.edges)
    except DomainError as exc:
        raise _bad_request(exc) from exc

    selection = serialize_selection(
        request.selectedNodeIds, request.selectedEdgeIds, nodes, edges
    )
    return CopyResponse(selection=SelectionDTO.from_value(selection) if selection else None)


@router.post("/clipboard/paste", response_model=SelectionDTO)
def paste_selection(request: PasteRequest) -> SelectionDTO:
    """Return the clipboard content with fresh ids, repaired references and offset."""
    try:
        selection = request.selection.to_value()
        existing_nodes = nodes_to_entities(request.existingNodes)
    except DomainError as exc:
        raise _bad_request(exc) from exc

    offset = request.offset.to_value() if request.offset else None
    return SelectionDTO.from_value(deserialize_selection(selection, existing_nodes, offset))
