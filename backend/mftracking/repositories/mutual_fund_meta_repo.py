"""
Mutual Fund Tracking Backend — MutualFundMeta Store
====================================================

What:  Data-access layer for the `mutual_fund_meta` table, plus the only
       transaction boundary in the application.
Why:   Keeps every SQL statement and every commit/rollback decision in one
       place; the service above it never touches a session.
How:   Async SQLAlchemy statements over sessions from an async_sessionmaker.

Transactions and the write lock:
    within_tran() serializes every write transaction in the process behind
    one asyncio.Lock shared by all store instances. Concurrent multi-statement
    transactions can deadlock in the storage engine; one transaction at a
    time cannot. Plain reads open their own session and never take the lock.

    A store returned by tran(session) is bound to a live transaction. Calling
    within_tran() on it runs the function directly on that session: no nested
    transaction and no second lock acquisition (asyncio.Lock is not reentrant).

    There is no timeout on the lock wait. A transaction that never finishes
    blocks every later writer.

Error classification:
    IntegrityError from a uniqueness violation → DuplicateEntryError
    any other SQLAlchemyError                  → StorageError (chained)
    no active row for an id                    → RecordNotFoundError
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Awaitable, Callable, List, Optional, TypeVar

from sqlalchemy import asc, desc, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mftracking.exceptions import (
    DuplicateEntryError,
    RecordNotFoundError,
    StorageError,
)
from mftracking.models.mutual_fund_meta import MutualFundMetaRow
from mftracking.pagination import Pagination

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgreSQL unique_violation
_UNIQUE_VIOLATION = "23505"

_SORT_COLUMNS = {
    "created_on": MutualFundMetaRow.created_on,
    "updated_on": MutualFundMetaRow.updated_on,
    "id": MutualFundMetaRow.id,
}


def _is_duplicate_entry(exc: IntegrityError) -> bool:
    """True when the integrity failure is a uniqueness violation (PostgreSQL or SQLite)."""
    orig = exc.orig
    if getattr(orig, "sqlstate", None) == _UNIQUE_VIOLATION:
        return True
    if getattr(orig, "pgcode", None) == _UNIQUE_VIOLATION:
        return True
    text = str(orig)
    return "UNIQUE constraint failed" in text or "duplicate key value" in text


class MutualFundMetaStore:
    """
    CRUD access to mutual fund metadata rows.

    Args:
        session_factory: creates sessions for non-transactional calls and
                         for new transactions
        lock:            the process-wide write lock
        session:         set only on stores returned by tran()
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        lock: asyncio.Lock,
        session: Optional[AsyncSession] = None,
    ):
        self._session_factory = session_factory
        self._lock = lock
        self._session = session

    @property
    def in_tran(self) -> bool:
        return self._session is not None

    def tran(self, session: AsyncSession) -> "MutualFundMetaStore":
        """Store bound to an open transaction on `session`."""
        return MutualFundMetaStore(self._session_factory, self._lock, session)

    async def within_tran(self, fn: Callable[["MutualFundMetaStore"], Awaitable[T]]) -> T:
        """
        Run `fn` inside a transaction and commit or roll back.

        Steps (outside a transaction):
            1. Acquire the write lock (blocks until free)
            2. Open a session and begin a transaction
            3. Await fn(store bound to that transaction)
            4. Commit on success; roll back on any exception and re-raise
            5. Release the lock regardless of outcome

        Already inside a transaction: returns `await fn(self)`.
        """
        if self.in_tran:
            return await fn(self)

        async with self._lock:
            async with self._session_factory() as session:
                tx = await session.begin()
                try:
                    result = await fn(self.tran(session))
                except Exception:
                    try:
                        await tx.rollback()
                    except SQLAlchemyError:
                        logger.error("unable to rollback db transaction", exc_info=True)
                    else:
                        logger.debug("db transaction rolled back")
                    raise

                try:
                    await tx.commit()
                except SQLAlchemyError as exc:
                    raise StorageError(
                        message="commit db transaction failed",
                        context={"error": str(exc)},
                    ) from exc
                return result

    @asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[AsyncSession]:
        """The bound transaction's session, or a short-lived one committed on exit."""
        if self._session is not None:
            yield self._session
            return
        async with self._session_factory() as session:
            yield session
            await session.commit()

    # ── Writes ────────────────────────────────────────────────────────────

    async def create(self, row: MutualFundMetaRow) -> int:
        """
        Insert a new row and return the id the database assigned.

        Raises:
            DuplicateEntryError: scheme_code already exists
            StorageError: any other database failure
        """
        try:
            async with self._session_scope() as session:
                session.add(row)
                await session.flush()
                row_id = row.id
        except IntegrityError as exc:
            if _is_duplicate_entry(exc):
                raise DuplicateEntryError(
                    context={"scheme_code": row.scheme_code, "error": str(exc.orig)}
                ) from exc
            raise StorageError(
                message="inserting mutual_fund_meta failed",
                context={"error": str(exc.orig)},
            ) from exc
        except SQLAlchemyError as exc:
            raise StorageError(
                message="inserting mutual_fund_meta failed",
                context={"error": str(exc)},
            ) from exc

        logger.debug("Inserted mutual_fund_meta id=%s", row_id)
        return row_id

    async def update(self, row: MutualFundMetaRow) -> None:
        """
        Replace every descriptive field and updated_on of the row keyed by row.id.

        Raises:
            DuplicateEntryError: the new scheme_code belongs to another row
            StorageError: any other database failure
        """
        stmt = (
            update(MutualFundMetaRow)
            .where(MutualFundMetaRow.id == row.id)
            .values(
                fund_house=row.fund_house,
                scheme_type=row.scheme_type,
                scheme_category=row.scheme_category,
                scheme_code=row.scheme_code,
                scheme_name=row.scheme_name,
                updated_on=row.updated_on,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            async with self._session_scope() as session:
                await session.execute(stmt)
        except IntegrityError as exc:
            if _is_duplicate_entry(exc):
                raise DuplicateEntryError(
                    context={"id": row.id, "scheme_code": row.scheme_code, "error": str(exc.orig)}
                ) from exc
            raise StorageError(
                message=f"updating mutual_fund_meta ID[{row.id}] failed",
                context={"id": row.id, "error": str(exc.orig)},
            ) from exc
        except SQLAlchemyError as exc:
            raise StorageError(
                message=f"updating mutual_fund_meta ID[{row.id}] failed",
                context={"id": row.id, "error": str(exc)},
            ) from exc

    async def delete(self, id: int, now: datetime) -> None:
        """
        Soft-delete: set deleted_on = now.

        Does not check that the row exists or is still active; callers look
        it up first.
        """
        stmt = (
            update(MutualFundMetaRow)
            .where(MutualFundMetaRow.id == id)
            .values(deleted_on=now)
            .execution_options(synchronize_session=False)
        )
        try:
            async with self._session_scope() as session:
                await session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError(
                message=f"deleting mutual_fund_meta id[{id}] failed",
                context={"id": id, "error": str(exc)},
            ) from exc

    # ── Reads ─────────────────────────────────────────────────────────────

    async def query(self, pagination: Pagination) -> List[MutualFundMetaRow]:
        """
        One page of active rows.

        Order: the allow-listed sort column, then id, both in the requested
        direction, so rows with equal timestamps still come back in a stable
        order. An empty page is an empty list, not an error.
        """
        order = asc if pagination.direction == "asc" else desc
        column = _SORT_COLUMNS.get(pagination.sort, MutualFundMetaRow.created_on)

        stmt = (
            select(MutualFundMetaRow)
            .where(MutualFundMetaRow.deleted_on.is_(None))
            .order_by(order(column), order(MutualFundMetaRow.id))
            .offset(pagination.page)
            .limit(pagination.per_page)
        )
        try:
            async with self._session_scope() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise StorageError(
                message="selecting mutual_fund_meta failed",
                context={"pagination": repr(pagination), "error": str(exc)},
            ) from exc

    async def query_by_id(self, id: int) -> MutualFundMetaRow:
        """
        The active row with this id.

        Raises:
            RecordNotFoundError: no row, or the row is soft-deleted
        """
        stmt = select(MutualFundMetaRow).where(
            MutualFundMetaRow.id == id,
            MutualFundMetaRow.deleted_on.is_(None),
        )
        try:
            async with self._session_scope() as session:
                result = await session.execute(stmt)
                row = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError(
                message=f"selecting mutual_fund_meta id[{id}] failed",
                context={"id": id, "error": str(exc)},
            ) from exc

        if row is None:
            raise RecordNotFoundError(context={"id": id})
        return row
