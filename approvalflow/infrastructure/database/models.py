"""ORM models - database table mappings

ORM models vs domain entities:
- ORM models describe storage (infrastructure layer)
- Domain entities carry the business rules (domain layer)
- The repository converts between them

A workflow draft is stored as one row. The graph (nodes, edges), the flags and
the viewport pan are JSON columns holding the editor's camelCase shapes, so a
document written by an older editor version can still be migrated on load.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from approvalflow.infrastructure.database.base import Base


class WorkflowDraftModel(Base):
    """Workflow draft ORM model

    Table: workflow_drafts

    Columns:
    - id: primary key (wf_ prefix)
    - name / description / version / author / tags: metadata
    - status: draft or published
    - nodes / edges / flags: JSON lists in the editor's wire shape
    - zoom / pan: viewport
    - created_at / updated_at: naive UTC timestamps

    Indexes:
    - idx_workflow_drafts_status
    - idx_workflow_drafts_created_at
    """

    __tablename__ = "workflow_drafts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    version: Mapped[str] = mapped_column(String(50), nullable=False, default="1.0.0")
    author: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")

    nodes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    edges: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    flags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    zoom: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    pan: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now, onupdate=datetime.now
    )

    __table_args__ = (
        Index("idx_workflow_drafts_status", "status"),
        Index("idx_workflow_drafts_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<WorkflowDraftModel(id={self.id}, name={self.name}, status={self.status})>"
