"""SQLAlchemyWorkflowRepository tests

Test strategy:
1. In-memory SQLite, tables created per test
2. One session per test, rolled back at the end
3. Every repository method (save, get_by_id, find_by_id, find_all, exists, delete)
4. Documents stored by older editor versions are migrated on load
"""

from datetime import UTC, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from approvalflow.domain.entities.flag import Flag, FlagOption
from approvalflow.domain.entities.node import Node
from approvalflow.domain.entities.workflow import WorkflowDocument
from approvalflow.domain.exceptions import NotFoundError
from approvalflow.domain.value_objects.node_type import EdgeKind, NodeType
from approvalflow.domain.value_objects.position import Position
from approvalflow.domain.value_objects.workflow_status import WorkflowStatus
from approvalflow.infrastructure.database.base import Base
from approvalflow.infrastructure.database.models import WorkflowDraftModel
from approvalflow.infrastructure.database.repositories.workflow_repository import (
    SQLAlchemyWorkflowRepository,
)
from approvalflow.infrastructure.database.schema import ensure_sqlite_schema

# ==================== Fixtures ====================


@pytest.fixture
def engine():
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session_maker = sessionmaker(engine, class_=Session, expire_on_commit=False)
    session = session_maker()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def workflow_repository(db_session):
    return SQLAlchemyWorkflowRepository(db_session)


def sample_workflow(name: str = "Crédito") -> WorkflowDocument:
    workflow = WorkflowDocument.create(name=name, description="Flujo de crédito")
    end = Node.create(type=NodeType.END, title="Fin", position=Position(x=200, y=400))
    workflow.add_node(end)
    workflow.connect(workflow.nodes[0].id, end.id)
    workflow.metadata.tags = ["credito"]
    return workflow


# ==================== save / get ====================


class TestSave:
    def test_save_and_get_round_trip(self, workflow_repository):
        workflow = sample_workflow()
        workflow.update_flags(
            [Flag(id="flag-1", name="Cartera", options=[FlagOption("o1", "Al día", "green-500")])]
        )
        workflow.zoom = 0.75

        workflow_repository.save(workflow)
        loaded = workflow_repository.get_by_id(workflow.id)

        assert loaded.id == workflow.id
        assert loaded.name == "Crédito"
        assert loaded.metadata.description == "Flujo de crédito"
        assert loaded.metadata.tags == ["credito"]
        assert loaded.nodes == workflow.nodes
        assert loaded.edges == workflow.edges
        assert loaded.flags == workflow.flags
        assert loaded.zoom == 0.75
        assert loaded.pan == workflow.pan
        assert loaded.status is WorkflowStatus.DRAFT

    def test_save_twice_updates(self, workflow_repository):
        workflow = sample_workflow()
        workflow_repository.save(workflow)

        workflow.metadata.name = "Crédito v2"
        workflow.publish()
        workflow_repository.save(workflow)

        loaded = workflow_repository.get_by_id(workflow.id)
        assert loaded.name == "Crédito v2"
        assert loaded.status is WorkflowStatus.PUBLISHED
        assert len(workflow_repository.find_all()) == 1

    def test_timestamps_come_back_in_utc(self, workflow_repository):
        workflow = sample_workflow()
        workflow.metadata.created_at = datetime(2024, 5, 1, 10, 0, tzinfo=UTC)

        workflow_repository.save(workflow)
        loaded = workflow_repository.get_by_id(workflow.id)

        assert loaded.metadata.created_at == datetime(2024, 5, 1, 10, 0, tzinfo=UTC)
        assert loaded.metadata.updated_at.tzinfo is UTC

    def test_loaded_document_starts_fresh_history(self, workflow_repository):
        workflow = sample_workflow()
        workflow_repository.save(workflow)

        loaded = workflow_repository.get_by_id(workflow.id)

        assert not loaded.can_undo
        assert not loaded.can_redo


class TestGet:
    def test_get_missing_raises(self, workflow_repository):
        with pytest.raises(NotFoundError) as excinfo:
            workflow_repository.get_by_id("wf_missing")

        assert excinfo.value.entity_type == "Workflow"
        assert excinfo.value.entity_id == "wf_missing"

    def test_find_missing_returns_none(self, workflow_repository):
        assert workflow_repository.find_by_id("wf_missing") is None

    def test_find_all_newest_first(self, workflow_repository):
        older = sample_workflow("Antiguo")
        older.metadata.created_at = datetime(2023, 1, 1, tzinfo=UTC)
        newer = sample_workflow("Reciente")
        newer.metadata.created_at = datetime(2024, 1, 1, tzinfo=UTC)
        workflow_repository.save(older)
        workflow_repository.save(newer)

        names = [workflow.name for workflow in workflow_repository.find_all()]

        assert names == ["Reciente", "Antiguo"]

    def test_find_all_empty(self, workflow_repository):
        assert workflow_repository.find_all() == []


class TestExistsAndDelete:
    def test_exists(self, workflow_repository):
        workflow = sample_workflow()
        workflow_repository.save(workflow)

        assert workflow_repository.exists(workflow.id)
        assert not workflow_repository.exists("wf_missing")

    def test_delete(self, workflow_repository):
        workflow = sample_workflow()
        workflow_repository.save(workflow)

        workflow_repository.delete(workflow.id)

        assert not workflow_repository.exists(workflow.id)

    def test_delete_is_idempotent(self, workflow_repository):
        workflow_repository.delete("wf_missing")
        workflow_repository.delete("wf_missing")


class TestLegacyDocuments:
    def test_legacy_nodes_and_retry_label_are_migrated(self, db_session, workflow_repository):
        db_session.add(
            WorkflowDraftModel(
                id="wf_legacy",
                name="Antiguo",
                status="draft",
                nodes=[
                    {"id": "start", "type": "Start", "title": "Inicio"},
                    {"id": "cp", "type": "Checkpoint", "title": "Control"},
                    {
                        "id": "decide",
                        "type": "ManualDecision",
                        "title": "Decidir",
                        "config": {"sla": 24},
                    },
                    {"id": "approve", "type": "Approve", "title": "Aprobar"},
                    {
                        "id": "reject",
                        "type": "Reject",
                        "title": "Rechazar",
                        "config": {"allowRetry": True},
                    },
                ],
                edges=[
                    {"id": "e1", "from": "start", "to": "cp"},
                    {"id": "e2", "from": "reject", "to": "cp", "label": "Reintento"},
                ],
                flags=[],
                pan={},
            )
        )
        db_session.flush()

        loaded = workflow_repository.get_by_id("wf_legacy")

        assert loaded.get_node("decide").type is NodeType.DECISION
        assert loaded.get_node("decide").config.condition == "true"
        assert loaded.get_node("approve").type is NodeType.END
        assert loaded.get_node("cp").checkpoint_type is not None
        assert loaded.find_edge("e2").kind is EdgeKind.RETRY
        assert loaded.find_edge("e1").kind is EdgeKind.NORMAL


class TestEnsureSqliteSchema:
    def test_creates_tables(self):
        engine = create_engine("sqlite:///:memory:")
        try:
            assert ensure_sqlite_schema(engine) is True
            with sessionmaker(engine)() as session:
                assert SQLAlchemyWorkflowRepository(session).find_all() == []
        finally:
            engine.dispose()

    def test_is_idempotent(self, engine):
        assert ensure_sqlite_schema(engine) is True
        assert ensure_sqlite_schema(engine) is True
