"""Node entity and node config tests

Covers:
1. Node.create() factory (ids, defaults, title check)
2. Per-type defaults (checkpointType, staleTimeout)
3. from_dict() / to_dict() with the editor's camelCase shape
4. clone() independence
5. Config variants match the node type
"""

import pytest

from approvalflow.domain.entities.node import Node
from approvalflow.domain.entities.node_config import (
    CONFIG_TYPES,
    ApiConfig,
    ChallengeConfig,
    DecisionConfig,
    FailureHandling,
    FailureStrategy,
    FlagChangeConfig,
    FormConfig,
    RejectConfig,
    parse_node_config,
)
from approvalflow.domain.exceptions import DomainError
from approvalflow.domain.value_objects.duration import Duration, TimeoutUnit
from approvalflow.domain.value_objects.node_type import CheckpointType, NodeType, Role
from approvalflow.domain.value_objects.position import Position


class TestNodeCreate:
    def test_create_generates_prefixed_id(self):
        node = Node.create(type=NodeType.FORM, title="Solicitud")

        assert node.id.startswith("node_")
        assert node.title == "Solicitud"
        assert isinstance(node.config, FormConfig)

    def test_create_generates_distinct_ids(self):
        first = Node.create(type=NodeType.END, title="Fin")
        second = Node.create(type=NodeType.END, title="Fin")

        assert first.id != second.id

    def test_create_strips_title(self):
        node = Node.create(type=NodeType.END, title="  Fin  ")

        assert node.title == "Fin"

    def test_create_rejects_blank_title(self):
        with pytest.raises(DomainError, match="title"):
            Node.create(type=NodeType.END, title="   ")

    def test_checkpoint_defaults_to_normal(self):
        node = Node.create(type=NodeType.CHECKPOINT, title="CP")

        assert node.checkpoint_type is CheckpointType.NORMAL
        assert node.is_checkpoint
        assert not node.is_safe_checkpoint

    def test_safe_checkpoint(self):
        node = Node.create(
            type=NodeType.CHECKPOINT, title="CP", checkpoint_type=CheckpointType.SAFE
        )

        assert node.is_safe_checkpoint

    def test_checkpoint_type_dropped_on_other_nodes(self):
        node = Node.create(type=NodeType.FORM, title="F", checkpoint_type=CheckpointType.SAFE)

        assert node.checkpoint_type is None

    def test_stale_timeout_dropped_on_unsupported_types(self):
        timeout = Duration(value=2, unit=TimeoutUnit.DAYS)

        join = Node.create(type=NodeType.JOIN, title="J", stale_timeout=timeout)
        form = Node.create(type=NodeType.FORM, title="F", stale_timeout=timeout)

        assert join.stale_timeout is None
        assert form.stale_timeout == timeout


class TestNodeConfigVariants:
    def test_every_node_type_has_a_config_variant(self):
        assert set(CONFIG_TYPES) == set(NodeType)

    def test_mismatched_config_is_rejected(self):
        with pytest.raises(DomainError, match="does not match"):
            Node(id="n1", type=NodeType.FORM, title="F", config=DecisionConfig())

    def test_update_config_checks_type(self):
        node = Node.create(type=NodeType.FORM, title="F")

        node.update_config(FormConfig(form_id="form-1"))
        assert node.config.form_id == "form-1"

        with pytest.raises(DomainError):
            node.update_config(RejectConfig())

    def test_api_config_parses_failure_handling(self):
        config = parse_node_config(
            NodeType.API,
            {
                "url": "https://example.test/score",
                "method": "POST",
                "failureHandling": {
                    "onFailure": "return-to-checkpoint",
                    "maxRetries": 1,
                    "timeout": 10000,
                    "checkpointId": "cp1",
                },
            },
        )

        assert isinstance(config, ApiConfig)
        assert config.method == "POST"
        assert config.failure_handling.on_failure is FailureStrategy.RETURN_TO_CHECKPOINT
        assert config.failure_handling.checkpoint_id == "cp1"

    def test_unknown_failure_strategy_becomes_none(self):
        config = parse_node_config(NodeType.API, {"failureHandling": {"onFailure": "explode"}})

        assert config.failure_handling.on_failure is None

    def test_non_dict_config_gives_defaults(self):
        config = parse_node_config(NodeType.REJECT, "garbage")

        assert config == RejectConfig()

    def test_reject_allow_retry_requires_true(self):
        assert RejectConfig.from_dict({"allowRetry": "yes"}).allow_retry is False
        assert RejectConfig.from_dict({"allowRetry": True}).allow_retry is True

    def test_challenge_keeps_legacy_result_lists(self):
        config = ChallengeConfig.from_dict(
            {"challengeType": "signature", "results": ["accepted", "failed"]}
        )

        assert config.result_lists == {"results": ["accepted", "failed"]}
        assert config.to_dict()["results"] == ["accepted", "failed"]

    def test_flag_change_skips_malformed_entries(self):
        config = FlagChangeConfig.from_dict(
            {"flagChanges": [{"flagId": "f1", "optionId": "o1"}, {"flagId": 3}, "x"]}
        )

        assert [(entry.flag_id, entry.option_id) for entry in config.flag_changes] == [
            ("f1", "o1")
        ]


class TestNodeSerialization:
    def test_from_dict_reads_editor_shape(self):
        node = Node.from_dict(
            {
                "id": "n1",
                "type": "Form",
                "title": "Solicitud",
                "roles": ["Solicitante", "Desconocido"],
                "config": {"formId": "form-1"},
                "staleTimeout": {"value": 3, "unit": "hours"},
                "position": {"x": 10, "y": -20},
            }
        )

        assert node.type is NodeType.FORM
        assert node.roles == [Role.SOLICITANTE]
        assert node.config.form_id == "form-1"
        assert node.stale_timeout == Duration(value=3, unit=TimeoutUnit.HOURS)
        assert node.position == Position(x=10, y=-20)

    def test_from_dict_rejects_unknown_type(self):
        with pytest.raises(DomainError, match="unknown node type"):
            Node.from_dict({"id": "n1", "type": "Teleport"})

    def test_from_dict_requires_id(self):
        with pytest.raises(DomainError, match="id"):
            Node.from_dict({"type": "End"})

    def test_to_dict_uses_camel_case(self):
        node = Node.create(
            type=NodeType.CHECKPOINT,
            title="CP",
            checkpoint_type=CheckpointType.SAFE,
            position=Position(x=1, y=2),
        )

        payload = node.to_dict()

        assert payload["type"] == "Checkpoint"
        assert payload["checkpointType"] == "safe"
        assert payload["position"] == {"x": 1, "y": 2}
        assert payload["staleTimeout"] is None

    def test_dict_round_trip(self):
        node = Node.create(
            type=NodeType.API,
            title="Buró",
            config=ApiConfig(
                url="https://example.test",
                failure_handling=FailureHandling(on_failure=FailureStrategy.RETRY, max_retries=2),
            ),
            roles=[Role.ADMIN],
        )

        restored = Node.from_dict(node.to_dict())

        assert restored == node


class TestNodeClone:
    def test_clone_does_not_share_config(self):
        node = Node.create(
            type=NodeType.API,
            title="API",
            config=ApiConfig(failure_handling=FailureHandling()),
        )

        copy = node.clone()
        copy.config.failure_handling.on_failure = FailureStrategy.CONTINUE
        copy.roles.append(Role.ADMIN)

        assert node.config.failure_handling.on_failure is FailureStrategy.STOP
        assert node.roles == []
        assert copy.id == node.id
