"""
Settlement engine.

Algorithm, per open pie (each under its own lock, failures isolated):
1. Atomically claim the pie (settled: false -> true)
2. Mark its uncounted slices as counted, then read the counted slices
3. total = declared value + sum(slice values)
4. average = total / (slice count + 1)
5. Upsert the pie's settlement record (claimant = pie owner)

Then, across every settlement record ever written:
6. grand total = sum(average)
7. percentage = 100 * average / grand total (0 when the grand total is 0)
8. per-claimant totals and percentages
"""

import logging
from typing import Dict, Iterable, List

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.exceptions import StoreFailure
from app.models.pie import Pie
from app.models.settlement import SettlementRecord
from app.repositories.pie_repo import PieRepository
from app.repositories.settlement_repo import SettlementRepository
from app.repositories.slice_repo import SliceRepository
from app.schemas.settlement import ClaimantShare, PieFailure, PieShare, SettlementReport
from app.services.locks import PieLocks

logger = logging.getLogger(__name__)


def average_contribution(declared_value: float, slice_values: Iterable[float]) -> tuple[float, float, int]:
    """
    Return (total, average, slice_count).

    The declared value counts as the first contribution, so the
    denominator is always slice_count + 1 and never zero.
    """
    values = list(slice_values)
    total = declared_value + sum(values)
    return total, total / (len(values) + 1), len(values)


def share_of(amount: float, grand_total: float) -> float:
    if grand_total <= 0:
        return 0.0
    return 100 * amount / grand_total


def build_report(records: List[SettlementRecord]) -> SettlementReport:
    """Aggregate settlement records into pie and claimant shares."""
    grand_total = sum(record.average for record in records)

    pies = [
        PieShare(
            pie_id=record.pie_id,
            claimant=record.claimant,
            average=record.average,
            percentage=share_of(record.average, grand_total)
        )
        for record in records
    ]

    user_totals: Dict[str, float] = {}
    for record in records:
        user_totals[record.claimant] = user_totals.get(record.claimant, 0.0) + record.average

    claimants = [
        ClaimantShare(
            claimant=claimant,
            total=total,
            percentage=share_of(total, grand_total)
        )
        for claimant, total in sorted(user_totals.items())
    ]

    return SettlementReport(pies=pies, claimants=claimants, grand_total=grand_total)


class SettlementService:
    def __init__(self, db: AsyncIOMotorDatabase, locks: PieLocks):
        self.pies = PieRepository(db)
        self.slices = SliceRepository(db)
        self.settlements = SettlementRepository(db)
        self.locks = locks

    async def settle(self) -> SettlementReport:
        """
        Settle every open pie and return the cumulative report.

        A pie that fails is reopened and listed under report.failures;
        the other pies are unaffected.
        """
        open_pies = await self.pies.list_open()

        failures: List[PieFailure] = []
        settled = 0
        for pie in open_pies:
            try:
                if await self._settle_pie(pie):
                    settled += 1
            except StoreFailure as e:
                logger.error(f"Settlement of pie {pie.pie_id} failed: {e.message}")
                failures.append(PieFailure(pie_id=pie.pie_id, reason=e.message))

        report = await self.report(persist=True)
        report.failures = failures + report.failures
        logger.info(
            f"Settlement pass: {settled} settled, {len(report.failures)} failed, "
            f"grand total {report.grand_total}"
        )
        return report

    async def report(self, persist: bool = False) -> SettlementReport:
        """
        Cumulative report from the stored records, optionally saving percentages.

        A percentage that cannot be saved is listed under report.failures;
        the report itself is still built from the records.
        """
        records = await self.settlements.list_all()
        report = build_report(records)
        if persist:
            for share in report.pies:
                try:
                    await self.settlements.set_percentage(share.pie_id, share.percentage)
                except StoreFailure as e:
                    logger.error(f"Percentage of pie {share.pie_id} not saved: {e.message}")
                    report.failures.append(PieFailure(pie_id=share.pie_id, reason=e.message))
        return report

    async def _settle_pie(self, pie: Pie) -> bool:
        """Settle one pie. Returns False if another pass already took it."""
        async with self.locks.hold(pie.pie_id):
            claimed = await self.pies.claim_for_settlement(pie.pie_id)
            if claimed is None:
                return False

            try:
                await self.slices.mark_counted(claimed.pie_id)
                slices = await self.slices.list_counted(claimed.pie_id)
                total, average, count = average_contribution(
                    claimed.declared_value,
                    (slice_.value for slice_ in slices)
                )
                await self.settlements.upsert(SettlementRecord(
                    pie_id=claimed.pie_id,
                    claimant=claimed.owner,
                    slice_count=count,
                    total=total,
                    average=average
                ))
            except StoreFailure:
                await self._reopen(claimed.pie_id)
                raise

        logger.info(f"Pie {pie.pie_id} settled: {count} slices, average {average}")
        return True

    async def _reopen(self, pie_id: str) -> None:
        try:
            await self.pies.reopen(pie_id)
        except StoreFailure as e:
            logger.error(f"Pie {pie_id} is marked settled without a settlement record: {e.message}")
