"""Identity ORM — the caller record a request-scoped user reference resolves to.

Invariants:
    - id is the same string stored in owner join fields
    - Identities are read-only from the resolver's point of view
"""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from workflow_model.db.base import Base, new_instance_id


class Identity(Base):
    __tablename__ = "identities"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=new_instance_id,
    )
    email: Mapped[str | None] = mapped_column(String(320), nullable=True, unique=True)
    display_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
