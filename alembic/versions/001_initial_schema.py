"""Initial schema — identities, submissions.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "identities",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(320), nullable=True, unique=True),
        sa.Column("display_name", sa.String(200), nullable=True),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "submissions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("title", sa.String(500), nullable=True),
        sa.Column("abstract", sa.Text, nullable=True),
        sa.Column("phase", sa.String(50), nullable=True),
        sa.Column("curator_notes", sa.Text, nullable=True),
        sa.Column("submitter_id", sa.String(36), sa.ForeignKey("identities.id"), nullable=True),
    )
    op.create_index("ix_submissions_phase", "submissions", ["phase"])
    op.create_index("ix_submissions_submitter_id", "submissions", ["submitter_id"])


def downgrade() -> None:
    op.drop_index("ix_submissions_submitter_id", table_name="submissions")
    op.drop_index("ix_submissions_phase", table_name="submissions")
    op.drop_table("submissions")
    op.drop_table("identities")
