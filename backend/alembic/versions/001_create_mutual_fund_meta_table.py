"""Create mutual_fund_meta table

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the `mutual_fund_meta` table holding scheme metadata.
How:   BIGINT identity key, one VARCHAR(255) column per descriptive field,
       TIMESTAMP WITH TIME ZONE audit columns; deleted_on NULL means active.

Rollback: downgrade() drops the table and every row in it.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "mutual_fund_meta",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column("fund_house", sa.String(255), nullable=False),
        sa.Column("scheme_type", sa.String(255), nullable=False),
        sa.Column("scheme_category", sa.String(255), nullable=False),
        sa.Column(
            "scheme_code",
            sa.String(255),
            nullable=False,
            comment="Scheme code published by the fund house; unique across rows",
        ),
        sa.Column("scheme_name", sa.String(255), nullable=False),
        sa.Column("created_on", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_on", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column(
            "deleted_on",
            sa.TIMESTAMP(timezone=True),
            nullable=True,
            comment="Soft-delete marker; NULL for active rows",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("scheme_code", name="uq_mutual_fund_meta_scheme_code"),
    )

    # Back the created/updated sort orders of the list endpoint
    op.create_index("idx_mutual_fund_meta_created_on", "mutual_fund_meta", ["created_on"])
    op.create_index("idx_mutual_fund_meta_updated_on", "mutual_fund_meta", ["updated_on"])


def downgrade() -> None:
    op.drop_index("idx_mutual_fund_meta_updated_on", table_name="mutual_fund_meta")
    op.drop_index("idx_mutual_fund_meta_created_on", table_name="mutual_fund_meta")
    op.drop_table("mutual_fund_meta")
