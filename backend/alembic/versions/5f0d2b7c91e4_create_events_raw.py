"""create_events_raw

Revision ID: 5f0d2b7c91e4
Revises:
Create Date: 2026-10-19 09:12:04.118203

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5f0d2b7c91e4"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "events_raw",
        sa.Column("msg_id", sa.String(), nullable=False),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("metadata", sa.Text(), nullable=False),
        sa.Column("time_created", sa.DateTime(timezone=True), nullable=False),
        sa.Column("signature", sa.String(), nullable=False),
        sa.Column("source", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("msg_id"),
    )
    op.create_index(
        "ix_events_raw_type_time", "events_raw", ["event_type", "time_created"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_events_raw_type_time", table_name="events_raw")
    op.drop_table("events_raw")
