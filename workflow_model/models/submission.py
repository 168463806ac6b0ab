"""Submission ORM — workflow-driven entity managed by the instance resolver.

Invariants:
    - phase is the state field; it only changes through destroy / task completion
    - submitter_id is the owner join field; submitter is its relation
    - submitter is never lazy-loaded: it is either eager-loaded or loaded explicitly
"""

from sqlalchemy import String, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workflow_model.db.base import Base, WorkflowInstanceMixin
from workflow_model.models.identity import Identity


class Submission(WorkflowInstanceMixin, Base):
    __tablename__ = "submissions"

    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    abstract: Mapped[str | None] = mapped_column(Text, nullable=True)
    phase: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    curator_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitter_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("identities.id"), nullable=True, index=True,
    )

    submitter: Mapped[Identity | None] = relationship(lazy="raise")
