import asyncio

import pytest
import pytest_asyncio

from app.core.exceptions import InvalidAmount, PieAlreadySettled, PieNotFound
from app.repositories.pie_repo import PieRepository
from app.repositories.slice_repo import SliceRepository
from app.services.pie_service import PieService
from app.services.slice_service import SliceService


@pytest.fixture
def slice_service(test_db, gateway, locks):
    return SliceService(test_db, gateway, locks)


@pytest_asyncio.fixture
async def open_pie(test_db, gateway):
    return await PieService(test_db, gateway, "C0PIE").create_pie("alice", "p1", "10")


@pytest.mark.asyncio
@pytest.mark.parametrize("value", [0, 0.5, 5, 1234.56])
async def test_record_slice_by_id(slice_service, test_db, open_pie, value):
    slice_ = await slice_service.record_slice("bob", str(value), pie_id="p1")

    assert slice_.pie_id == "p1"
    assert slice_.claimant == "bob"
    assert slice_.value == value

    stored = await SliceRepository(test_db).list_for_pie("p1")
    assert [s.value for s in stored] == [value]


@pytest.mark.asyncio
async def test_record_slice_by_thread_token(slice_service, open_pie):
    slice_ = await slice_service.record_slice("carol", "5", correlation_token=open_pie.correlation_token)
    assert slice_.pie_id == "p1"


@pytest.mark.asyncio
async def test_record_slice_posts_confirmation_in_thread(slice_service, gateway, open_pie):
    await slice_service.record_slice("bob", "5", pie_id="p1")

    assert gateway.replies[-1]["thread_token"] == open_pie.correlation_token
    assert gateway.replies[-1]["text"] == "Slice of 5 for pie p1 has been added by bob"


@pytest.mark.asyncio
async def test_confirmation_failure_keeps_slice(slice_service, gateway, test_db, open_pie):
    gateway.fail_replies = True

    slice_ = await slice_service.record_slice("bob", "5", pie_id="p1")

    assert slice_.id is not None
    assert len(await SliceRepository(test_db).list_for_pie("p1")) == 1


@pytest.mark.asyncio
async def test_confirmations_can_be_disabled(test_db, gateway, locks, open_pie):
    service = SliceService(test_db, gateway, locks, confirmations=False)
    await service.record_slice("bob", "5", pie_id="p1")
    assert gateway.replies == []


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["-1", "abc", "", "nan"])
async def test_invalid_amount_writes_nothing(slice_service, test_db, open_pie, raw):
    with pytest.raises(InvalidAmount):
        await slice_service.record_slice("bob", raw, pie_id="p1")
    assert await SliceRepository(test_db).list_for_pie("p1") == []


@pytest.mark.asyncio
async def test_unknown_pie_writes_nothing(slice_service, test_db):
    with pytest.raises(PieNotFound):
        await slice_service.record_slice("bob", "5", pie_id="nope")
    assert await SliceRepository(test_db).list_for_pie("nope") == []


@pytest.mark.asyncio
async def test_settled_pie_rejects_slices(slice_service, test_db, open_pie):
    await PieRepository(test_db).claim_for_settlement("p1")

    with pytest.raises(PieAlreadySettled):
        await slice_service.record_slice("bob", "5", pie_id="p1")
    assert await SliceRepository(test_db).list_for_pie("p1") == []


@pytest.mark.asyncio
async def test_concurrent_slices_all_persist(slice_service, test_db, open_pie):
    await asyncio.gather(
        slice_service.record_slice("bob", "5", pie_id="p1"),
        slice_service.record_slice("carol", "5", pie_id="p1"),
        slice_service.record_slice("dave", "2", correlation_token=open_pie.correlation_token),
    )

    stored = await SliceRepository(test_db).list_for_pie("p1")
    assert sorted(s.claimant for s in stored) == ["bob", "carol", "dave"]


@pytest.mark.asyncio
async def test_slice_racing_a_settlement_is_withdrawn(slice_service, test_db, open_pie):
    """Another process settles the pie right after the insert, before counting."""
    pies = PieRepository(test_db)
    insert = slice_service.slices.insert

    async def insert_then_settle(slice_):
        stored = await insert(slice_)
        await pies.claim_for_settlement("p1")
        return stored

    slice_service.slices.insert = insert_then_settle

    with pytest.raises(PieAlreadySettled):
        await slice_service.record_slice("bob", "5", pie_id="p1")
    assert await SliceRepository(test_db).list_for_pie("p1") == []


@pytest.mark.asyncio
async def test_slice_counted_by_racing_settlement_is_kept(slice_service, test_db, open_pie):
    """Another process settles and counts the slice before the re-check."""
    pies = PieRepository(test_db)
    slices = SliceRepository(test_db)
    insert = slice_service.slices.insert

    async def insert_then_settle_and_count(slice_):
        stored = await insert(slice_)
        await pies.claim_for_settlement("p1")
        await slices.mark_counted("p1")
        return stored

    slice_service.slices.insert = insert_then_settle_and_count

    slice_ = await slice_service.record_slice("bob", "5", pie_id="p1")

    assert slice_.counted is True
    assert len(await slices.list_counted("p1")) == 1


@pytest.mark.asyncio
async def test_slice_for_pie_cleared_mid_record_is_rejected(slice_service, test_db, open_pie):
    pies = PieRepository(test_db)
    insert = slice_service.slices.insert

    async def insert_then_clear(slice_):
        stored = await insert(slice_)
        await pies.delete_all()
        return stored

    slice_service.slices.insert = insert_then_clear

    with pytest.raises(PieNotFound):
        await slice_service.record_slice("bob", "5", pie_id="p1")
    assert await SliceRepository(test_db).list_for_pie("p1") == []
