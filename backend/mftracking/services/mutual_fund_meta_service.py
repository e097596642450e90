"""
Mutual Fund Tracking Backend — MutualFundMeta Service (Domain Core)
====================================================================

What:  Business rules on top of MutualFundMetaStore.
Why:   The store knows SQL; this layer knows what a valid record is, what a
       partial update means, and which errors callers are allowed to see.
Who:   Called by the route handlers; calls the store.

Responsibilities:
    - Validate inputs and identifiers before touching storage
    - Stamp created_on / updated_on from the request start time
    - Apply partial updates, skipping the write entirely when nothing changed
    - Translate RecordNotFoundError into NotFoundError
    - Convert storage rows into API records explicitly, field by field

Design Decision:
    The service is stateless apart from its store, so a single instance is
    built at startup and shared by every request.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from mftracking import validate
from mftracking.exceptions import NotFoundError, RecordNotFoundError
from mftracking.models.mutual_fund_meta import MutualFundMetaRow
from mftracking.pagination import Pagination
from mftracking.repositories.mutual_fund_meta_repo import MutualFundMetaStore
from mftracking.schemas.mutual_fund_meta import (
    MutualFundMeta,
    NewMutualFundMeta,
    UpdateMutualFundMeta,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "fund_house",
    "scheme_type",
    "scheme_category",
    "scheme_code",
    "scheme_name",
)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is written in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_mutual_fund_meta(row: MutualFundMetaRow) -> MutualFundMeta:
    """Map a storage row onto the API record."""
    return MutualFundMeta(
        id=row.id,
        fund_house=row.fund_house,
        scheme_type=row.scheme_type,
        scheme_category=row.scheme_category,
        scheme_code=row.scheme_code,
        scheme_name=row.scheme_name,
        created_on=_as_utc(row.created_on),
        updated_on=_as_utc(row.updated_on),
        deleted_on=_as_utc(row.deleted_on),
    )


def to_mutual_fund_meta_list(rows: Iterable[MutualFundMetaRow]) -> List[MutualFundMeta]:
    return [to_mutual_fund_meta(row) for row in rows]


async def _load(store: MutualFundMetaStore, row_id: int) -> MutualFundMetaRow:
    try:
        return await store.query_by_id(row_id)
    except RecordNotFoundError as exc:
        raise NotFoundError(resource_id=str(row_id)) from exc


def _changes(row: MutualFundMetaRow, upd: UpdateMutualFundMeta) -> Dict[str, str]:
    """Trimmed, non-blank update values that differ from the stored row."""
    changes = {}
    for field in UPDATABLE_FIELDS:
        value = getattr(upd, field)
        if value is None:
            continue
        value = value.strip()
        if value and value != getattr(row, field):
            changes[field] = value
    return changes


def _merged(row: MutualFundMetaRow, changes: Dict[str, str], now: datetime) -> MutualFundMetaRow:
    # Detached copy; the loaded row stays clean so the session does not flush it
    values = {field: getattr(row, field) for field in UPDATABLE_FIELDS}
    values.update(changes)
    return MutualFundMetaRow(
        id=row.id,
        created_on=row.created_on,
        updated_on=now,
        deleted_on=row.deleted_on,
        **values,
    )


class MutualFundMetaService:
    """
    Domain operations for mutual fund metadata.

    Error contract towards handlers:
        ValidationError, InvalidIDError, NotFoundError, DuplicateEntryError,
        StorageError. Nothing else is raised deliberately.
    """

    def __init__(self, store: MutualFundMetaStore):
        self.store = store

    async def create(self, new: NewMutualFundMeta, now: datetime) -> MutualFundMeta:
        """
        Insert a new record.

        `now` (the request start time) becomes both created_on and updated_on.

        Raises:
            ValidationError: one entry per invalid field
            DuplicateEntryError: scheme_code already registered
        """
        validate.check(new)

        row = MutualFundMetaRow(
            fund_house=new.fund_house,
            scheme_type=new.scheme_type,
            scheme_category=new.scheme_category,
            scheme_code=new.scheme_code,
            scheme_name=new.scheme_name,
            created_on=now,
            updated_on=now,
        )

        async def tran(store: MutualFundMetaStore) -> int:
            return await store.create(row)

        row.id = await self.store.within_tran(tran)
        logger.info("Created mutual_fund_meta id=%s scheme_code=%s", row.id, row.scheme_code)
        return to_mutual_fund_meta(row)

    async def update(
        self, id: str, upd: UpdateMutualFundMeta, now: datetime
    ) -> MutualFundMeta:
        """
        Apply a partial update.

        Each provided field is trimmed; None and blank values are ignored.
        When no field ends up different from the stored value nothing is
        written and the current record is returned with updated_on untouched.

        Raises:
            InvalidIDError, ValidationError, NotFoundError, DuplicateEntryError
        """
        row_id = validate.check_id(id)
        validate.check(upd)

        async def tran(store: MutualFundMetaStore) -> MutualFundMetaRow:
            row = await _load(store, row_id)
            changes = _changes(row, upd)
            if not changes:
                logger.debug("Update of mutual_fund_meta id=%s changed nothing", row_id)
                return row

            merged = _merged(row, changes, now)
            await store.update(merged)
            logger.info("Updated mutual_fund_meta id=%s fields=%s", row_id, sorted(changes))
            return merged

        # Read, merge and write under one lock hold; a concurrent update or
        # delete of the same row cannot interleave
        return to_mutual_fund_meta(await self.store.within_tran(tran))

    async def delete(self, id: str, now: datetime) -> None:
        """
        Soft-delete a record. There is no undelete.

        Raises:
            InvalidIDError, NotFoundError
        """
        row_id = validate.check_id(id)

        async def tran(store: MutualFundMetaStore) -> None:
            await _load(store, row_id)
            await store.delete(row_id, now)

        await self.store.within_tran(tran)
        logger.info("Deleted mutual_fund_meta id=%s", row_id)

    async def query(self, pagination: Pagination) -> List[MutualFundMeta]:
        """A page of active records; empty when nothing matches."""
        try:
            rows = await self.store.query(pagination)
        except RecordNotFoundError as exc:
            raise NotFoundError() from exc
        return to_mutual_fund_meta_list(rows)

    async def query_by_id(self, id: str) -> MutualFundMeta:
        """
        Raises:
            InvalidIDError, NotFoundError
        """
        row_id = validate.check_id(id)
        return to_mutual_fund_meta(await _load(self.store, row_id))
