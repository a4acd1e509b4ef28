"""machine host store

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:00:01

"""

from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261018_0001"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None


def upgrade() -> None:
    bind = op.get_bind()
    document_type: sa.TypeEngine[object]
    if bind.dialect.name == "postgresql":
        document_type = postgresql.JSONB()
    else:
        document_type = sa.JSON()

    op.create_table(
        "machine_host",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("driver_name", sa.Text(), nullable=False),
        sa.Column("config_version", sa.Integer(), nullable=False, server_default=sa.text("3")),
        sa.Column(
            "ssh_client_type",
            sa.Text(),
            nullable=False,
            server_default=sa.text("'external'"),
        ),
        sa.Column("driver_config", document_type, nullable=False),
        sa.Column("host_options", document_type, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("length(name) > 0", name="machine_host_name_not_empty"),
        sa.UniqueConstraint("name", name="uq_machine_host_name"),
    )


def downgrade() -> None:
    op.drop_table("machine_host")
