"""Workflow validator - turns a workflow graph into a list of errors and warnings

Goal:
- Report every structural and semantic problem of a workflow in one pass, so the
  editor can show them all at once and publishing can be blocked on errors
- Rules are independent: no rule short-circuits another
- Never raises: malformed optional config degrades to "rule not applicable"

Rule catalogue (in output order):
1. exactly one Start node
2. Form / Challenge nodes have at least one role
3. Decision nodes have both outputs connected
4. at least one End or Reject node exists
5. nodes without outgoing edges (End / Reject / Challenge excepted), plus the
   Reject retry rules
6. required per-type fields, API failure handling, Challenge settings and
   Challenge result coverage
7. nodes with a staleTimeout can reach a safe checkpoint or a terminal forwards,
   and are reachable from a safe checkpoint or Start backwards

Messages are the Spanish UI strings shown by the editor.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from approvalflow.domain.entities.edge import Edge
from approvalflow.domain.entities.node import Node
from approvalflow.domain.entities.node_config import (
    API_MAX_RETRIES,
    API_MAX_TIMEOUT_MS,
    API_MIN_TIMEOUT_MS,
    CHALLENGE_RESULT_CONFIG_KEYS,
    MAX_CHALLENGE_RETRIES,
    ApiConfig,
    ChallengeConfig,
    ChallengeType,
    DecisionConfig,
    FailureStrategy,
    FormConfig,
    MessageConfig,
    RejectConfig,
    TransformConfig,
)
from approvalflow.domain.services.graph_reachability import (
    GraphIndex,
    build_adjacency_maps,
    can_reach_node,
    find_nearest_previous_checkpoint,
)
from approvalflow.domain.value_objects.node_type import (
    ROLE_REQUIRED_NODE_TYPES,
    TERMINAL_NODE_TYPES,
    NodeType,
    Port,
)
from approvalflow.domain.value_objects.validation_finding import Severity, ValidationFinding

logger = logging.getLogger(__name__)

# Challenge result -> (label, expected output port)
CHALLENGE_RESULT_METADATA: dict[str, tuple[str, Port]] = {
    "accepted": ("Aceptado", Port.TOP),
    "rejected": ("Rechazado", Port.BOTTOM),
    "failed": ("Fallido", Port.BOTTOM),
}
DEFAULT_CHALLENGE_RESULTS: tuple[str, ...] = ("accepted", "rejected")

_NO_OUTGOING_CHECK_EXEMPT = frozenset({NodeType.END, NodeType.REJECT, NodeType.CHALLENGE})
_DELIVERY_REQUIRED_CHALLENGES = frozenset(
    {ChallengeType.ACCEPTANCE.value, ChallengeType.SIGNATURE.value}
)


class _Findings:
    """Collector with helpers for the two severities"""

    def __init__(self) -> None:
        self.items: list[ValidationFinding] = []

    def error(self, message: str, node_id: str | None = None) -> None:
        self.items.append(ValidationFinding(message=message, severity=Severity.ERROR, node_id=node_id))

    def warning(self, message: str, node_id: str | None = None) -> None:
        self.items.append(
            ValidationFinding(message=message, severity=Severity.WARNING, node_id=node_id)
        )


def validate_workflow(nodes: Sequence[Node], edges: Sequence[Edge]) -> list[ValidationFinding]:
    """Validate a workflow graph

    Deterministic: the same nodes and edges always produce the same findings in
    the same order.
    """
    findings = _Findings()
    index = GraphIndex(nodes, edges)

    start_nodes = [node for node in nodes if node.type is NodeType.START]
    _check_single_start(start_nodes, findings)
    _check_required_roles(nodes, findings)
    _check_decision_branches(nodes, index, findings)
    terminal_ids = _check_terminal_exists(nodes, findings)
    _check_outgoing_connections(nodes, edges, index, findings)
    _check_type_configs(nodes, edges, index, findings)
    _check_stale_timeouts(nodes, edges, start_nodes, terminal_ids, findings)

    logger.debug(
        "validated workflow: nodes=%d edges=%d findings=%d",
        len(nodes),
        len(edges),
        len(findings.items),
    )
    return findings.items


# ==================== Graph-wide rules ====================


def _check_single_start(start_nodes: list[Node], findings: _Findings) -> None:
    if not start_nodes:
        findings.error("El flujo debe tener exactamente un nodo de Inicio")
    elif len(start_nodes) > 1:
        findings.error("El flujo solo puede tener un nodo de Inicio")


def _check_required_roles(nodes: Sequence[Node], findings: _Findings) -> None:
    for node in nodes:
        if node.type in ROLE_REQUIRED_NODE_TYPES and not node.roles:
            findings.error(f'"{node.title}" debe tener al menos un rol asignado', node.id)


def _check_decision_branches(
    nodes: Sequence[Node], index: GraphIndex, findings: _Findings
) -> None:
    for node in nodes:
        if node.type is NodeType.DECISION and len(index.outgoing_edges(node.id)) < 2:
            findings.error(
                f'"{node.title}" debe tener dos salidas conectadas (Sí/No o Aprobar/Rechazar)',
                node.id,
            )


def _check_terminal_exists(nodes: Sequence[Node], findings: _Findings) -> set[str]:
    terminal_ids = {node.id for node in nodes if node.type in TERMINAL_NODE_TYPES}
    if not terminal_ids:
        findings.error("El flujo debe tener al menos un nodo de finalización (Fin o Rechazado)")
    return terminal_ids


# ==================== Outgoing connections / Reject ====================


def _check_outgoing_connections(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    index: GraphIndex,
    findings: _Findings,
) -> None:
    for node in nodes:
        outgoing = index.outgoing_edges(node.id)
        if node.type not in _NO_OUTGOING_CHECK_EXEMPT:
            if not outgoing:
                findings.warning(f'"{node.title}" no tiene conexiones de salida', node.id)
        elif node.type is NodeType.REJECT and isinstance(node.config, RejectConfig):
            _check_reject(node, node.config, outgoing, nodes, edges, index, findings)


def _check_reject(
    node: Node,
    config: RejectConfig,
    outgoing: list[Edge],
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    index: GraphIndex,
    findings: _Findings,
) -> None:
    if not config.allow_retry:
        if outgoing:
            findings.error(
                f'"{node.title}" sin reintentos no debe tener conexiones de salida', node.id
            )
        return

    if not outgoing:
        findings.error(
            f'"{node.title}" con reintentos habilitados debe tener una conexión hacia un checkpoint',
            node.id,
        )
    elif len(outgoing) > 1:
        findings.error(
            f'"{node.title}" con reintentos habilitados solo puede tener una conexión', node.id
        )
    else:
        edge = outgoing[0]
        checkpoint_id = find_nearest_previous_checkpoint(node.id, nodes, edges, index)
        if checkpoint_id and edge.target_node_id != checkpoint_id:
            findings.error(
                f'"{node.title}" debe conectarse al checkpoint anterior más próximo', node.id
            )
        target = index.node(edge.target_node_id)
        if target is not None and target.type is not NodeType.CHECKPOINT:
            findings.error(
                f'"{node.title}" solo puede conectarse a un checkpoint cuando los reintentos '
                "están habilitados",
                node.id,
            )

    max_retries = config.max_retries if config.max_retries is not None else 0
    if max_retries < 0:
        findings.error(
            f'"{node.title}" el número máximo de reintentos debe ser >= 0', node.id
        )


# ==================== Per-type configuration ====================


def _check_type_configs(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    index: GraphIndex,
    findings: _Findings,
) -> None:
    for node in nodes:
        config = node.config
        if isinstance(config, FormConfig) and not config.form_id:
            findings.error(f'"{node.title}" debe tener un formulario seleccionado', node.id)

        elif isinstance(config, DecisionConfig) and not config.condition:
            findings.error(f'"{node.title}" debe tener una condición definida', node.id)

        elif isinstance(config, TransformConfig) and not config.code:
            findings.error(f'"{node.title}" debe tener código TypeScript', node.id)

        elif isinstance(config, ApiConfig):
            _check_api(node, config, nodes, edges, index, findings)

        elif isinstance(config, MessageConfig) and not config.template:
            findings.error(f'"{node.title}" debe tener un template de mensaje', node.id)

        elif isinstance(config, ChallengeConfig):
            _check_challenge(node, config, index, findings)


def _check_api(
    node: Node,
    config: ApiConfig,
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    index: GraphIndex,
    findings: _Findings,
) -> None:
    if not config.url:
        findings.error(f'"{node.title}" debe tener una URL configurada', node.id)

    handling = config.failure_handling
    if handling is None:
        return

    if handling.max_retries is not None:
        if handling.max_retries > API_MAX_RETRIES:
            findings.error(
                f'"{node.title}": El número máximo de reintentos es {API_MAX_RETRIES}', node.id
            )
        if handling.max_retries < 0:
            findings.error(
                f'"{node.title}": El número de reintentos no puede ser negativo', node.id
            )

    returns_to_checkpoint = handling.on_failure is FailureStrategy.RETURN_TO_CHECKPOINT
    nearest_checkpoint_id = (
        find_nearest_previous_checkpoint(node.id, nodes, edges, index)
        if returns_to_checkpoint
        else None
    )
    if returns_to_checkpoint and not nearest_checkpoint_id:
        findings.error(
            f'"{node.title}": No hay checkpoint anterior para regresar en caso de fallo', node.id
        )

    if handling.timeout is not None and not (
        API_MIN_TIMEOUT_MS <= handling.timeout <= API_MAX_TIMEOUT_MS
    ):
        findings.warning(
            f'"{node.title}": El timeout debe estar entre 5 y 300 segundos', node.id
        )

    outgoing = index.outgoing_edges(node.id)
    if handling.on_failure is FailureStrategy.STOP and outgoing:
        findings.error(
            f'"{node.title}": Un nodo API con "Detener Workflow" no puede tener '
            "conexiones salientes",
            node.id,
        )

    if returns_to_checkpoint:
        if not handling.checkpoint_id:
            findings.error(f'"{node.title}": Debe tener un checkpoint configurado', node.id)
        elif handling.checkpoint_id != nearest_checkpoint_id:
            findings.warning(
                f'"{node.title}": El checkpoint configurado no es el más próximo', node.id
            )
        if outgoing:
            findings.warning(
                f'"{node.title}": No debe tener conexiones visuales. '
                "La conexión al checkpoint es automática.",
                node.id,
            )


def _check_challenge(
    node: Node, config: ChallengeConfig, index: GraphIndex, findings: _Findings
) -> None:
    if not config.challenge_type:
        findings.error(f'"{node.title}" debe definir el tipo de challenge', node.id)
        return

    if config.challenge_timeout is None or config.challenge_timeout.value <= 0:
        findings.error(f'"{node.title}" debe definir un timeout de challenge válido', node.id)

    if config.challenge_type in _DELIVERY_REQUIRED_CHALLENGES and not config.delivery_method:
        findings.error(f'"{node.title}" requiere un canal de entrega', node.id)

    retries = config.retries
    if retries is not None:
        if not _is_valid_challenge_retry_count(retries.max_retries):
            findings.error(
                f'"{node.title}": El número de reintentos debe estar entre 1 y '
                f"{MAX_CHALLENGE_RETRIES}",
                node.id,
            )

        if not retries.roles:
            findings.error(
                f'"{node.title}": Selecciona al menos un rol responsable de los reintentos',
                node.id,
            )
        elif any(not isinstance(role, str) or not role.strip() for role in retries.roles):
            findings.error(f'"{node.title}": Los roles de reintento deben ser válidos', node.id)

    _check_challenge_results(node, config, index.outgoing_edges(node.id), findings)


def _is_valid_challenge_retry_count(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, float) and not value.is_integer():
        return False
    return 1 <= value <= MAX_CHALLENGE_RETRIES


def configured_challenge_results(config: ChallengeConfig) -> list[str]:
    """Results a Challenge node is configured to produce

    Reads the first legacy key holding at least one known result; defaults to
    accepted + rejected.
    """
    for key in CHALLENGE_RESULT_CONFIG_KEYS:
        raw_values = config.result_lists.get(key)
        if not raw_values:
            continue
        normalized: list[str] = []
        for value in raw_values:
            result = value.strip().lower() if isinstance(value, str) else ""
            if result in CHALLENGE_RESULT_METADATA and result not in normalized:
                normalized.append(result)
        if normalized:
            return normalized
    return list(DEFAULT_CHALLENGE_RESULTS)


def _check_challenge_results(
    node: Node, config: ChallengeConfig, outgoing: list[Edge], findings: _Findings
) -> None:
    """Every configured result needs an outgoing edge

    An edge on the expected port is preferred. Otherwise any edge not yet claimed
    satisfies the result (ported edges are offered before port-less ones).
    """
    available = sorted(outgoing, key=lambda edge: edge.from_port is None)

    for result in configured_challenge_results(config):
        label, expected_port = CHALLENGE_RESULT_METADATA[result]
        satisfied = False

        matching = next((edge for edge in outgoing if edge.from_port is expected_port), None)
        if matching is not None:
            satisfied = _take_edge(available, matching)

        if not satisfied and available:
            available.pop(0)
            satisfied = True

        if not satisfied:
            findings.warning(
                f'"{node.title}": El resultado "{label}" no tiene una conexión de salida configurada',
                node.id,
            )


def _take_edge(available: list[Edge], edge: Edge) -> bool:
    for position, candidate in enumerate(available):
        if candidate is edge:
            del available[position]
            return True
    return False


# ==================== Stale timeout reachability ====================


def _check_stale_timeouts(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    start_nodes: list[Node],
    terminal_ids: set[str],
    findings: _Findings,
) -> None:
    outgoing_map, incoming_map = build_adjacency_maps(edges)
    start_ids = {node.id for node in start_nodes}
    safe_checkpoint_ids = {node.id for node in nodes if node.is_safe_checkpoint}

    for node in nodes:
        if node.stale_timeout is None:
            continue

        forward_seeds = outgoing_map.get(node.id, [])
        backward_seeds = incoming_map.get(node.id, [])

        has_safe_ahead = can_reach_node(forward_seeds, outgoing_map, safe_checkpoint_ids.__contains__)
        can_finish_flow = can_reach_node(forward_seeds, outgoing_map, terminal_ids.__contains__)
        if not has_safe_ahead and not can_finish_flow:
            findings.warning(
                'Este nodo con "staleTimeout" no tiene un checkpoint SAFE posterior ni un fin '
                "de flujo alcanzable.",
                node.id,
            )

        has_safe_behind = can_reach_node(
            backward_seeds, incoming_map, safe_checkpoint_ids.__contains__
        )
        reaches_start = can_reach_node(backward_seeds, incoming_map, start_ids.__contains__)
        if not has_safe_behind and not reaches_start:
            findings.warning(
                "Este nodo debe tener un checkpoint SAFE previo o el Inicio como punto de "
                "retorno si se pudre.",
                node.id,
            )
