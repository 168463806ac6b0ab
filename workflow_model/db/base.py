"""SQLAlchemy Declarative Base — shared base class and instance mixin for all ORM models.

Invariants:
    - All models inherit from Base
    - Entity types managed by the resolver also mix in WorkflowInstanceMixin
    - Instance ids are UUID strings assigned before the first flush (they are workflow business keys)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_instance_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all workflow-model ORM models."""
    pass


class WorkflowInstanceMixin:
    """Fixed attributes of every resolver-managed instance."""

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=new_instance_id,
    )
    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )
