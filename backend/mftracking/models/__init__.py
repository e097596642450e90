"""SQLAlchemy ORM models. Import them here so Alembic and tests see every table."""

from mftracking.models.mutual_fund_meta import MutualFundMetaRow

__all__ = ["MutualFundMetaRow"]
