"""
Tests for the pie, slice and settlement repositories.

Covers:
- Unique pie ids and exact token lookups
- Atomic settlement claim and reopen
- Slice counting and withdrawal
- Settlement upsert keyed by pie id
"""

import pytest

from app.core.exceptions import DuplicatePie
from app.models.base import CorrelationToken
from app.models.pie import Pie
from app.models.settlement import SettlementRecord
from app.models.slice import Slice
from app.repositories.pie_repo import PieRepository
from app.repositories.settlement_repo import SettlementRepository
from app.repositories.slice_repo import SliceRepository


def make_pie(pie_id="p1", token="1700000000.000100", value=10.0, owner="alice"):
    return Pie(
        pie_id=pie_id,
        owner=owner,
        correlation_token=CorrelationToken(token),
        channel="C0PIE",
        declared_value=value
    )


@pytest.mark.asyncio
class TestPieRepository:

    async def test_insert_and_get(self, test_db):
        repo = PieRepository(test_db)
        pie = await repo.insert(make_pie())

        assert pie.id is not None
        assert pie.settled is False

        found = await repo.get_by_id("p1")
        assert found.pie_id == "p1"
        assert found.declared_value == 10.0
        assert await repo.exists("p1") is True
        assert await repo.exists("p2") is False

    async def test_duplicate_pie_id_rejected(self, test_db):
        repo = PieRepository(test_db)
        await repo.insert(make_pie())

        with pytest.raises(DuplicatePie):
            await repo.insert(make_pie(token="1700000000.000200"))

    async def test_token_lookup_is_exact_string_match(self, test_db):
        repo = PieRepository(test_db)
        await repo.insert(make_pie(token="1700000000.000100"))

        assert (await repo.get_by_token(CorrelationToken("1700000000.000100"))).pie_id == "p1"
        # Numerically equal, textually different
        assert await repo.get_by_token(CorrelationToken("1700000000.0001")) is None

    async def test_claim_is_exactly_once(self, test_db):
        repo = PieRepository(test_db)
        await repo.insert(make_pie())

        first = await repo.claim_for_settlement("p1")
        second = await repo.claim_for_settlement("p1")

        assert first is not None
        assert first.settled is True
        assert first.settled_at is not None
        assert second is None
        assert await repo.list_open() == []

    async def test_reopen_after_claim(self, test_db):
        repo = PieRepository(test_db)
        await repo.insert(make_pie())
        await repo.claim_for_settlement("p1")

        assert await repo.reopen("p1") is True
        assert [pie.pie_id for pie in await repo.list_open()] == ["p1"]

    async def test_list_open_in_creation_order(self, test_db):
        repo = PieRepository(test_db)
        await repo.insert(make_pie("a", token="1.1"))
        await repo.insert(make_pie("b", token="1.2"))
        await repo.insert(make_pie("c", token="1.3"))
        await repo.claim_for_settlement("b")

        assert [pie.pie_id for pie in await repo.list_open()] == ["a", "c"]


@pytest.mark.asyncio
class TestSliceRepository:

    async def test_mark_counted_only_touches_one_pie(self, test_db):
        repo = SliceRepository(test_db)
        await repo.insert(Slice(pie_id="p1", claimant="bob", value=5))
        await repo.insert(Slice(pie_id="p1", claimant="carol", value=5))
        await repo.insert(Slice(pie_id="p2", claimant="dave", value=1))

        assert await repo.mark_counted("p1") == 2
        assert len(await repo.list_counted("p1")) == 2
        assert await repo.list_counted("p2") == []

    async def test_withdraw_uncounted_slice(self, test_db):
        repo = SliceRepository(test_db)
        slice_ = await repo.insert(Slice(pie_id="p1", claimant="bob", value=5))

        assert await repo.withdraw(slice_.id) is True
        assert await repo.list_for_pie("p1") == []

    async def test_withdraw_refuses_counted_slice(self, test_db):
        repo = SliceRepository(test_db)
        slice_ = await repo.insert(Slice(pie_id="p1", claimant="bob", value=5))
        await repo.mark_counted("p1")

        assert await repo.withdraw(slice_.id) is False
        assert len(await repo.list_for_pie("p1")) == 1


@pytest.mark.asyncio
class TestSettlementRepository:

    async def test_upsert_overwrites_by_pie_id(self, test_db):
        repo = SettlementRepository(test_db)
        await repo.upsert(SettlementRecord(pie_id="p1", claimant="alice", slice_count=0, total=10, average=10))
        await repo.upsert(SettlementRecord(pie_id="p1", claimant="alice", slice_count=2, total=20, average=20 / 3))

        records = await repo.list_all()
        assert len(records) == 1
        assert records[0].slice_count == 2
        assert records[0].average == pytest.approx(6.6667, rel=1e-4)

    async def test_set_percentage(self, test_db):
        repo = SettlementRepository(test_db)
        await repo.upsert(SettlementRecord(pie_id="p1", claimant="alice", slice_count=0, total=3, average=3))
        await repo.upsert(SettlementRecord(pie_id="p2", claimant="bob", slice_count=0, total=1, average=1))

        await repo.set_percentage("p1", 75.0)
        await repo.set_percentage("p2", 25.0)

        percentages = {record.pie_id: record.percentage for record in await repo.list_all()}
        assert percentages == {"p1": 75.0, "p2": 25.0}

    async def test_delete_all(self, test_db):
        repo = SettlementRepository(test_db)
        await repo.upsert(SettlementRecord(pie_id="p1", claimant="alice", slice_count=0, total=3, average=3))

        assert await repo.delete_all() == 1
        assert await repo.list_all() == []
