"""
Mutual Fund Tracking Backend — MutualFundMeta SQLAlchemy Model
===============================================================

What:  ORM model representing the `mutual_fund_meta` table.
Why:   Storage-shaped row used by the store; the API-facing record lives in
       schemas/mutual_fund_meta.py and is built by an explicit conversion.
Who:   Used by MutualFundMetaStore for CRUD and by Alembic for schema management.

Table Design Rationale:
    - BIGINT identity primary key assigned by the database on insert
    - scheme_code UNIQUE: one metadata row per scheme; violations map to 409
    - created_on / updated_on supplied by the service from the request start
      time, never from caller input
    - deleted_on NULL means active; soft delete sets it and the row stays

    Indexes on created_on and updated_on back the two timestamp sort orders
    offered by the list endpoint.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from mftracking.database import Base

# SQLite only auto-increments INTEGER PRIMARY KEY columns
IDType = BigInteger().with_variant(Integer(), "sqlite")


class MutualFundMetaRow(Base):
    """
    One row of mutual fund scheme metadata.

    Lifecycle:
        1. Inserted by the service's create (created_on == updated_on)
        2. Updated in place (updated_on bumped only when a field changed)
        3. Soft-deleted (deleted_on set); never physically removed
    """

    __tablename__ = "mutual_fund_meta"

    id: Mapped[int] = mapped_column(IDType, primary_key=True, autoincrement=True)

    fund_house: Mapped[str] = mapped_column(String(255), nullable=False)
    scheme_type: Mapped[str] = mapped_column(String(255), nullable=False)
    scheme_category: Mapped[str] = mapped_column(String(255), nullable=False)
    scheme_code: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    scheme_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # ── Timestamps ────────────────────────────────────────────────────────
    # TIMESTAMP WITH TIME ZONE; values are always written in UTC
    created_on: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_on: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    deleted_on: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    __table_args__ = (
        Index("idx_mutual_fund_meta_created_on", "created_on"),
        Index("idx_mutual_fund_meta_updated_on", "updated_on"),
    )

    def __repr__(self) -> str:
        return (
            f"<MutualFundMetaRow(id={self.id}, scheme_code='{self.scheme_code}', "
            f"deleted_on={self.deleted_on})>"
        )
