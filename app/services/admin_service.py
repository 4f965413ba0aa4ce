import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel

from app.repositories.pie_repo import PieRepository
from app.repositories.settlement_repo import SettlementRepository
from app.repositories.slice_repo import SliceRepository
from app.services.locks import PieLocks

logger = logging.getLogger(__name__)


class ClearResult(BaseModel):
    pies: int
    slices: int
    settlements: int


class AdminService:
    def __init__(self, db: AsyncIOMotorDatabase, locks: PieLocks):
        self.pies = PieRepository(db)
        self.slices = SliceRepository(db)
        self.settlements = SettlementRepository(db)
        self.locks = locks

    async def clear_all(self) -> ClearResult:
        """Purge every pie, slice and settlement record."""
        result = ClearResult(
            pies=await self.pies.delete_all(),
            slices=await self.slices.delete_all(),
            settlements=await self.settlements.delete_all()
        )
        self.locks.clear()
        logger.info(
            f"Ledger cleared: {result.pies} pies, {result.slices} slices, "
            f"{result.settlements} settlements"
        )
        return result
