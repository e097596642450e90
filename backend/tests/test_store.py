"""
Mutual Fund Tracking Backend — Store Tests
===========================================

What:  Tests for MutualFundMetaStore against a real (SQLite) database.
Why:   Transactions, ordering and the write lock only mean something with
       real sessions, so nothing here is mocked.

What we test:
    ✅ create / query_by_id / update / soft delete
    ✅ Duplicate scheme_code → DuplicateEntryError
    ✅ Pagination ordering with id as the tie-breaker
    ✅ within_tran commits on success and rolls back on failure
    ✅ Write transactions are serialized; nesting does not deadlock
    ✅ Reads do not wait for the write lock
"""

import asyncio
from datetime import timedelta

import pytest

from mftracking.exceptions import DuplicateEntryError, RecordNotFoundError
from mftracking.models.mutual_fund_meta import MutualFundMetaRow
from mftracking.pagination import Pagination


def make_row(meta, now) -> MutualFundMetaRow:
    return MutualFundMetaRow(**meta.model_dump(), created_on=now, updated_on=now)


class TestWrites:

    @pytest.mark.asyncio
    async def test_create_assigns_id(self, store, new_meta, now):
        row_id = await store.create(make_row(new_meta, now))

        assert row_id > 0
        row = await store.query_by_id(row_id)
        assert row.scheme_code == new_meta.scheme_code
        assert row.deleted_on is None

    @pytest.mark.asyncio
    async def test_duplicate_scheme_code(self, store, new_meta, now):
        await store.create(make_row(new_meta, now))

        with pytest.raises(DuplicateEntryError) as info:
            await store.create(make_row(new_meta, now))

        assert info.value.message == "duplicated entry"
        assert info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_update_replaces_fields(self, store, new_meta, now):
        row_id = await store.create(make_row(new_meta, now))
        row = await store.query_by_id(row_id)

        later = now + timedelta(hours=1)
        row.scheme_name = "Renamed Scheme"
        row.updated_on = later
        await store.update(row)

        stored = await store.query_by_id(row_id)
        assert stored.scheme_name == "Renamed Scheme"
        assert stored.updated_on.replace(tzinfo=None) == later.replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_update_to_taken_scheme_code(self, store, make_meta, now):
        await store.create(make_row(make_meta("100001"), now))
        second_id = await store.create(make_row(make_meta("100002"), now))

        row = await store.query_by_id(second_id)
        row.scheme_code = "100001"
        with pytest.raises(DuplicateEntryError):
            await store.update(row)

    @pytest.mark.asyncio
    async def test_soft_delete_hides_row(self, store, session_factory, new_meta, now):
        row_id = await store.create(make_row(new_meta, now))

        await store.delete(row_id, now)

        with pytest.raises(RecordNotFoundError):
            await store.query_by_id(row_id)
        assert await store.query(Pagination()) == []

        # The row is still there, only marked
        async with session_factory() as session:
            row = await session.get(MutualFundMetaRow, row_id)
        assert row is not None
        assert row.deleted_on is not None

    @pytest.mark.asyncio
    async def test_query_by_id_missing(self, store):
        with pytest.raises(RecordNotFoundError, match="data not found"):
            await store.query_by_id(999)


class TestQuery:

    @pytest.mark.asyncio
    async def test_empty_table_returns_empty_list(self, store):
        assert await store.query(Pagination()) == []

    @pytest.mark.asyncio
    async def test_equal_timestamps_ordered_by_id(self, store, make_meta, now):
        ids = [await store.create(make_row(make_meta(str(100 + i)), now)) for i in range(3)]

        desc_rows = await store.query(Pagination())
        asc_rows = await store.query(Pagination(direction="asc"))

        assert [r.id for r in desc_rows] == sorted(ids, reverse=True)
        assert [r.id for r in asc_rows] == sorted(ids)

    @pytest.mark.asyncio
    async def test_sort_by_updated_on(self, store, make_meta, now):
        first = await store.create(make_row(make_meta("1"), now))
        second = await store.create(make_row(make_meta("2"), now))

        row = await store.query_by_id(first)
        row.updated_on = now + timedelta(minutes=5)
        await store.update(row)

        rows = await store.query(Pagination(sort="updated_on", direction="desc"))
        assert [r.id for r in rows] == [first, second]

    @pytest.mark.asyncio
    async def test_offset_and_limit(self, store, make_meta, now):
        for i in range(5):
            await store.create(
                make_row(make_meta(str(i)), now + timedelta(seconds=i))
            )

        rows = await store.query(Pagination(page=2, per_page=2, direction="asc"))

        assert [r.scheme_code for r in rows] == ["2", "3"]


class TestTransactions:

    @pytest.mark.asyncio
    async def test_within_tran_commits(self, store, new_meta, now):
        async def tran(s):
            assert s.in_tran
            return await s.create(make_row(new_meta, now))

        row_id = await store.within_tran(tran)

        assert (await store.query_by_id(row_id)).id == row_id

    @pytest.mark.asyncio
    async def test_within_tran_rolls_back_on_error(self, store, new_meta, now):
        async def tran(s):
            await s.create(make_row(new_meta, now))
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await store.within_tran(tran)

        assert await store.query(Pagination()) == []

    @pytest.mark.asyncio
    async def test_lock_released_after_error(self, store, write_lock):
        async def tran(s):
            raise ValueError("nope")

        with pytest.raises(ValueError):
            await store.within_tran(tran)

        assert not write_lock.locked()

    @pytest.mark.asyncio
    async def test_nested_within_tran_reuses_transaction(self, store, make_meta, now):
        """A tran-bound store runs nested work inline instead of re-acquiring the lock."""
        async def inner(s):
            return await s.create(make_row(make_meta("200"), now))

        async def outer(s):
            await s.create(make_row(make_meta("100"), now))
            return await s.within_tran(inner)

        inner_id = await asyncio.wait_for(store.within_tran(outer), timeout=5)

        assert (await store.query_by_id(inner_id)).scheme_code == "200"
        assert len(await store.query(Pagination())) == 2

    @pytest.mark.asyncio
    async def test_nested_failure_rolls_back_everything(self, store, make_meta, now):
        async def inner(s):
            await s.create(make_row(make_meta("200"), now))
            raise RuntimeError("inner failed")

        async def outer(s):
            await s.create(make_row(make_meta("100"), now))
            await s.within_tran(inner)

        with pytest.raises(RuntimeError):
            await store.within_tran(outer)

        assert await store.query(Pagination()) == []

    @pytest.mark.asyncio
    async def test_write_transactions_do_not_overlap(self, store, make_meta, now):
        events = []

        def work(name, code):
            async def tran(s):
                events.append(f"{name}:start")
                await asyncio.sleep(0.05)
                await s.create(make_row(make_meta(code), now))
                events.append(f"{name}:end")
            return tran

        await asyncio.gather(
            store.within_tran(work("a", "1")),
            store.within_tran(work("b", "2")),
        )

        assert events in (
            ["a:start", "a:end", "b:start", "b:end"],
            ["b:start", "b:end", "a:start", "a:end"],
        )

    @pytest.mark.asyncio
    async def test_reads_do_not_wait_for_lock(self, store, write_lock, new_meta, now):
        row_id = await store.create(make_row(new_meta, now))

        async with write_lock:
            row = await asyncio.wait_for(store.query_by_id(row_id), timeout=5)
            rows = await asyncio.wait_for(store.query(Pagination()), timeout=5)

        assert row.id == row_id
        assert len(rows) == 1
