# mypy: ignore-errors
"""
Migration Alembic pour créer la table execution_protocols.

Cette migration crée la table execution_protocols (snapshot JSONB sur PostgreSQL) et les index
utilisés par le polling: (tenant_id, status, updated_at) et (tenant_id).
"""

from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision = "20260201_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """
    Applique la migration pour créer la table execution_protocols.

    Crée la table et ses index de polling et d'isolation tenant.
    """
    op.create_table(
        "execution_protocols",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("site_id", sa.String(length=255), nullable=False),
        sa.Column("plant_id", sa.String(length=255), nullable=False),
        sa.Column("tenant_id", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False, server_default="CLOSED"),
        sa.Column(
            "snapshot",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index(
        "idx_execution_protocols_polling",
        "execution_protocols",
        ["tenant_id", "status", "updated_at"],
    )
    op.create_index("idx_execution_protocols_tenant", "execution_protocols", ["tenant_id"])


def downgrade() -> None:
    """
    Annule la migration en supprimant la table execution_protocols et ses index.
    """
    op.drop_index("idx_execution_protocols_tenant", table_name="execution_protocols")
    op.drop_index("idx_execution_protocols_polling", table_name="execution_protocols")
    op.drop_table("execution_protocols")
