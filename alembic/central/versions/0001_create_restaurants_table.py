"""create restaurants table

Revision ID: c0a1e2f3d401
Revises:
Create Date: 2025-11-20 10:12:03.118204

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "c0a1e2f3d401"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "restaurants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact_phone", sa.String(20), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("domain", sa.String(255), nullable=True),
        sa.Column("database_name", sa.String(255), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=True,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=True,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.UniqueConstraint("slug", name="uq_restaurants_slug"),
        sa.UniqueConstraint("domain", name="uq_restaurants_domain"),
        sa.UniqueConstraint("database_name", name="uq_restaurants_database_name"),
    )
    op.create_index("ix_restaurants_active", "restaurants", ["active"])


def downgrade() -> None:
    op.drop_index("ix_restaurants_active", table_name="restaurants")
    op.drop_table("restaurants")
