from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.db.mongo import store_errors
from app.models.settlement import SettlementRecord


def _to_record(doc: dict) -> SettlementRecord:
    doc["_id"] = str(doc["_id"])
    return SettlementRecord(**doc)


class SettlementRepository:
    """Settlement record ("average") database operations. One record per pie."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["settlements"]

    async def upsert(self, record: SettlementRecord) -> None:
        """Create or overwrite the record for record.pie_id."""
        now = datetime.now(timezone.utc)
        with store_errors(f"save settlement for pie {record.pie_id}"):
            await self.collection.update_one(
                {"pie_id": record.pie_id},
                {
                    "$set": {
                        "claimant": record.claimant,
                        "slice_count": record.slice_count,
                        "total": record.total,
                        "average": record.average,
                        "updated_at": now
                    },
                    "$setOnInsert": {
                        "created_at": record.created_at,
                        "percentage": 0.0
                    }
                },
                upsert=True
            )

    async def list_all(self) -> list[SettlementRecord]:
        """Every record ever written, oldest first."""
        with store_errors("list settlements"):
            docs = await self.collection.find({}).sort([
                ("created_at", 1),
                ("pie_id", 1)
            ]).to_list(None)
        return [_to_record(doc) for doc in docs]

    async def set_percentage(self, pie_id: str, percentage: float) -> None:
        with store_errors(f"save percentage for pie {pie_id}"):
            await self.collection.update_one(
                {"pie_id": pie_id},
                {"$set": {"percentage": percentage}}
            )

    async def delete_all(self) -> int:
        with store_errors("clear settlements"):
            result = await self.collection.delete_many({})
        return result.deleted_count
