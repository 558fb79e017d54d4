"""Connection rules tests

Business rules:
- normal nodes: 1 outgoing / 1 incoming
- Decision / Challenge: 2 outgoing, one per port
- Join: unlimited incoming
- Start: no incoming
- Reject without retry and API with "stop" cannot have outgoing edges
- retry edges do not count against a Checkpoint's incoming limit
"""

import pytest

from approvalflow.domain.entities.edge import Edge
from approvalflow.domain.entities.node import Node
from approvalflow.domain.entities.node_config import (
    ApiConfig,
    FailureHandling,
    FailureStrategy,
    RejectConfig,
    default_node_config,
)
from approvalflow.domain.services.connection_rules import (
    can_create_connection,
    can_node_have_outgoing_connections,
    get_max_incoming_connections,
    get_max_outgoing_connections,
    is_retry_edge,
)
from approvalflow.domain.value_objects.node_type import EdgeKind, NodeType, Port


def make_node(node_id: str, node_type: NodeType, config=None) -> Node:
    return Node(
        id=node_id,
        type=node_type,
        title=node_id,
        config=config if config is not None else default_node_config(node_type),
    )


def make_edge(edge_id: str, source: str, target: str, **kwargs) -> Edge:
    return Edge(id=edge_id, source_node_id=source, target_node_id=target, **kwargs)


class TestLimits:
    @pytest.mark.parametrize("node_type", list(NodeType))
    def test_max_outgoing_is_at_least_one(self, node_type):
        assert get_max_outgoing_connections(node_type) >= 1

    @pytest.mark.parametrize("node_type", list(NodeType))
    def test_max_outgoing_is_two_only_for_dual_output_nodes(self, node_type):
        expected = 2 if node_type in (NodeType.DECISION, NodeType.CHALLENGE) else 1

        assert get_max_outgoing_connections(node_type) == expected

    def test_max_incoming(self):
        assert get_max_incoming_connections(NodeType.START) == 0
        assert get_max_incoming_connections(NodeType.JOIN) is None
        assert get_max_incoming_connections(NodeType.FORM) == 1
        assert get_max_incoming_connections(NodeType.CHECKPOINT) == 1

    def test_is_retry_edge(self):
        assert is_retry_edge(make_edge("e1", "a", "b", kind=EdgeKind.RETRY))
        assert not is_retry_edge(make_edge("e2", "a", "b"))


class TestTerminalByConfiguration:
    def test_reject_without_retry_is_terminal(self):
        assert not can_node_have_outgoing_connections(make_node("r", NodeType.REJECT))

    def test_reject_with_retry_can_connect(self):
        node = make_node("r", NodeType.REJECT, RejectConfig(allow_retry=True))

        assert can_node_have_outgoing_connections(node)

    def test_api_with_stop_is_terminal(self):
        node = make_node(
            "api",
            NodeType.API,
            ApiConfig(failure_handling=FailureHandling(on_failure=FailureStrategy.STOP)),
        )

        assert not can_node_have_outgoing_connections(node)

    def test_api_without_failure_handling_can_connect(self):
        assert can_node_have_outgoing_connections(make_node("api", NodeType.API))

    def test_terminal_source_is_refused(self):
        reject = make_node("Rechazo", NodeType.REJECT)
        end = make_node("Fin", NodeType.END)

        check = can_create_connection(reject, end, [])

        assert not check.allowed
        assert check.reason == 'El nodo "Rechazo" no puede tener conexiones de salida.'


class TestCanCreateConnection:
    def test_simple_connection_allowed(self):
        check = can_create_connection(make_node("a", NodeType.FORM), make_node("b", NodeType.END), [])

        assert check.allowed
        assert check.reason is None

    def test_decision_port_exhaustion(self):
        decision = make_node("d", NodeType.DECISION)
        target = make_node("t", NodeType.END)
        edges = [make_edge("e1", "d", "x", from_port=Port.TOP)]

        taken = can_create_connection(decision, target, edges, Port.TOP)
        free = can_create_connection(decision, target, edges, Port.BOTTOM)

        assert not taken.allowed
        assert "ya tiene una conexión" in taken.reason
        assert "verde (positiva)" in taken.reason
        assert free.allowed

    def test_challenge_port_names(self):
        challenge = make_node("c", NodeType.CHALLENGE)
        edges = [make_edge("e1", "c", "x", from_port=Port.BOTTOM)]

        check = can_create_connection(challenge, make_node("t", NodeType.END), edges, Port.BOTTOM)

        assert "rejected" in check.reason

    def test_decision_outgoing_limit(self):
        decision = make_node("d", NodeType.DECISION)
        edges = [make_edge("e1", "d", "x"), make_edge("e2", "d", "y")]

        check = can_create_connection(decision, make_node("t", NodeType.END), edges)

        assert not check.allowed
        assert "(decisión)" in check.reason
        assert "(2)" in check.reason

    def test_normal_outgoing_limit(self):
        form = make_node("f", NodeType.FORM)
        edges = [make_edge("e1", "f", "x")]

        check = can_create_connection(form, make_node("t", NodeType.END), edges)

        assert not check.allowed
        assert "máximo de conexiones de salida" in check.reason

    def test_start_accepts_no_incoming(self):
        check = can_create_connection(
            make_node("f", NodeType.FORM), make_node("Inicio", NodeType.START), []
        )

        assert not check.allowed
        assert "(inicio)" in check.reason
        assert "(0)" in check.reason

    def test_join_accepts_many_incoming(self):
        join = make_node("j", NodeType.JOIN)
        edges = [make_edge(f"e{i}", f"n{i}", "j") for i in range(5)]

        check = can_create_connection(make_node("f", NodeType.FORM), join, edges)

        assert check.allowed

    def test_normal_incoming_limit(self):
        target = make_node("t", NodeType.FORM)
        edges = [make_edge("e1", "other", "t")]

        check = can_create_connection(make_node("f", NodeType.FORM), target, edges)

        assert not check.allowed
        assert "máximo de conexiones de entrada" in check.reason

    def test_checkpoint_ignores_retry_edges(self):
        checkpoint = make_node("cp", NodeType.CHECKPOINT)
        edges = [
            make_edge("e1", "r1", "cp", kind=EdgeKind.RETRY),
            make_edge("e2", "r2", "cp", kind=EdgeKind.RETRY),
        ]

        check = can_create_connection(make_node("f", NodeType.FORM), checkpoint, edges)

        assert check.allowed

    def test_checkpoint_keeps_single_normal_incoming(self):
        checkpoint = make_node("cp", NodeType.CHECKPOINT)
        edges = [make_edge("e1", "a", "cp")]

        check = can_create_connection(make_node("f", NodeType.FORM), checkpoint, edges)

        assert not check.allowed

    def test_new_retry_edge_into_occupied_checkpoint(self):
        checkpoint = make_node("cp", NodeType.CHECKPOINT)
        reject = make_node("r", NodeType.REJECT, RejectConfig(allow_retry=True))
        edges = [make_edge("e1", "a", "cp")]

        check = can_create_connection(reject, checkpoint, edges, kind=EdgeKind.RETRY)

        assert check.allowed

    def test_check_does_not_modify_edges(self):
        edges = [make_edge("e1", "f", "x")]

        can_create_connection(make_node("f", NodeType.FORM), make_node("t", NodeType.END), edges)

        assert [edge.id for edge in edges] == ["e1"]
