"""Create icon_cache table

Revision ID: 3f9c2a7d41b8
Revises:
Create Date: 2026-10-19 09:12:44.318207

"""

from typing import Sequence, Union

from alembic import op  # type: ignore[attr-defined]
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f9c2a7d41b8"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "icon_cache",
        sa.Column("host", sa.String(), nullable=False),
        sa.Column("ref", sa.String(), nullable=True),
        sa.Column("fetched_at", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("host"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("icon_cache")
