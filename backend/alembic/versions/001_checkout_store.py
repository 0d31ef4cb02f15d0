"""Add checkout_store table (server-side persisted transactions).

Revision ID: 001
Revises:
Create Date: (run alembic upgrade head)

- checkout_store: one row per persisted key (deal_{slug}_order_id, deal_{slug}_order_data,
  deal_{slug}_payment_intent, delivery fee fallbacks). Values are strings / JSON text.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "checkout_store",
        sa.Column("key", sa.String(255), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("checkout_store")
