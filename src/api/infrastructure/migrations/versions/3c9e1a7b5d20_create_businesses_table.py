"""create businesses table

Revision ID: 3c9e1a7b5d20
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "3c9e1a7b5d20"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "businesses",
        sa.Column("id", sa.String(length=26), nullable=False),  # ULID
        sa.Column("owner_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("website", sa.String(length=2048), nullable=True),
        sa.Column("gst_number", sa.String(length=32), nullable=True),
        sa.Column("registration_no", sa.String(length=64), nullable=True),
        sa.Column("pan_number", sa.String(length=16), nullable=True),
        sa.Column(
            "currency", sa.String(length=8), nullable=False, server_default="INR"
        ),
        sa.Column(
            "fiscal_year",
            sa.String(length=32),
            nullable=False,
            server_default="april-march",
        ),
        sa.Column("logo_image", sa.Text(), nullable=True),
        sa.Column(
            "is_default", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_businesses"),
    )
    op.create_index(
        "ix_businesses_owner_id_created_at",
        "businesses",
        ["owner_id", "created_at"],
    )
    # At most one active auto-provisioned business per owner
    op.create_index(
        "uq_businesses_owner_default",
        "businesses",
        ["owner_id"],
        unique=True,
        postgresql_where=sa.text("is_default AND is_active"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("uq_businesses_owner_default", table_name="businesses")
    op.drop_index("ix_businesses_owner_id_created_at", table_name="businesses")
    op.drop_table("businesses")
