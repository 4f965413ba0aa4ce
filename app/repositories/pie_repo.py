from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.core.exceptions import DuplicatePie
from app.db.mongo import store_errors
from app.models.base import CorrelationToken
from app.models.pie import Pie


def _to_pie(doc: dict) -> Pie:
    doc["_id"] = str(doc["_id"])
    return Pie(**doc)


class PieRepository:
    """Pie database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["pies"]

    async def insert(self, pie: Pie) -> Pie:
        """Insert an open pie. Raises DuplicatePie if the id is taken."""
        doc = pie.to_document()
        with store_errors(f"save pie {pie.pie_id}"):
            try:
                result = await self.collection.insert_one(doc)
            except DuplicateKeyError as e:
                key_pattern = (e.details or {}).get("keyPattern") or {}
                if "correlation_token" in key_pattern:
                    raise
                raise DuplicatePie(pie.pie_id) from e
        doc["_id"] = result.inserted_id
        return _to_pie(doc)

    async def exists(self, pie_id: str) -> bool:
        with store_errors(f"look up pie {pie_id}"):
            doc = await self.collection.find_one({"pie_id": pie_id}, {"_id": 1})
        return doc is not None

    async def get_by_id(self, pie_id: str) -> Pie | None:
        with store_errors(f"look up pie {pie_id}"):
            doc = await self.collection.find_one({"pie_id": pie_id})
        return _to_pie(doc) if doc else None

    async def get_by_token(self, token: CorrelationToken) -> Pie | None:
        """Exact-match lookup of the pie announced in a thread."""
        with store_errors("look up pie by thread"):
            doc = await self.collection.find_one({"correlation_token": str(token)})
        return _to_pie(doc) if doc else None

    async def list_open(self) -> list[Pie]:
        """Open pies in creation order."""
        with store_errors("list open pies"):
            cursor = self.collection.find({"settled": False}).sort([
                ("created_at", 1),
                ("pie_id", 1)
            ])
            docs = await cursor.to_list(None)
        return [_to_pie(doc) for doc in docs]

    async def claim_for_settlement(self, pie_id: str) -> Pie | None:
        """
        Atomically flip an open pie to settled.

        Returns the settled pie, or None if it was already settled (or gone),
        so exactly one settlement pass wins each pie.
        """
        with store_errors(f"settle pie {pie_id}"):
            doc = await self.collection.find_one_and_update(
                {"pie_id": pie_id, "settled": False},
                {"$set": {
                    "settled": True,
                    "settled_at": datetime.now(timezone.utc)
                }},
                return_document=ReturnDocument.AFTER
            )
        return _to_pie(doc) if doc else None

    async def reopen(self, pie_id: str) -> bool:
        """Undo a claim after a failed settlement."""
        with store_errors(f"reopen pie {pie_id}"):
            result = await self.collection.update_one(
                {"pie_id": pie_id, "settled": True},
                {"$set": {"settled": False, "settled_at": None}}
            )
        return result.modified_count > 0

    async def delete_all(self) -> int:
        with store_errors("clear pies"):
            result = await self.collection.delete_many({})
        return result.deleted_count
