from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.db.mongo import store_errors
from app.models.slice import Slice


def _to_slice(doc: dict) -> Slice:
    doc["_id"] = str(doc["_id"])
    return Slice(**doc)


class SliceRepository:
    """
    Slice database operations.

    Slices are append-only: concurrent inserts for the same pie never
    read-modify-write a shared document. The only mutation is the
    counted flag set by settlement, and the only delete outside clear-all
    is withdrawing a slice that no settlement has counted yet.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["slices"]

    async def insert(self, slice_: Slice) -> Slice:
        doc = slice_.to_document()
        with store_errors(f"save slice for pie {slice_.pie_id}"):
            result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return _to_slice(doc)

    async def list_for_pie(self, pie_id: str) -> list[Slice]:
        with store_errors(f"list slices for pie {pie_id}"):
            docs = await self.collection.find({"pie_id": pie_id}).sort("created_at", 1).to_list(None)
        return [_to_slice(doc) for doc in docs]

    async def mark_counted(self, pie_id: str) -> int:
        """Take every not-yet-counted slice of a pie into the current settlement."""
        with store_errors(f"count slices for pie {pie_id}"):
            result = await self.collection.update_many(
                {"pie_id": pie_id, "counted": False},
                {"$set": {"counted": True}}
            )
        return result.modified_count

    async def list_counted(self, pie_id: str) -> list[Slice]:
        with store_errors(f"list slices for pie {pie_id}"):
            docs = await self.collection.find({
                "pie_id": pie_id,
                "counted": True
            }).sort("created_at", 1).to_list(None)
        return [_to_slice(doc) for doc in docs]

    async def withdraw(self, slice_id: str) -> bool:
        """
        Delete a slice only if no settlement has counted it.

        Returns True if the slice was removed, False if a settlement got to
        it first (in which case it stays and is part of that settlement).
        """
        with store_errors("withdraw slice"):
            result = await self.collection.delete_one({
                "_id": ObjectId(slice_id),
                "counted": False
            })
        return result.deleted_count == 1

    async def delete_all(self) -> int:
        with store_errors("clear slices"):
            result = await self.collection.delete_many({})
        return result.deleted_count
