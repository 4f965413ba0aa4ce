import logging
from contextlib import contextmanager

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.core.exceptions import StoreFailure

logger = logging.getLogger(__name__)


class MongoDatabase:
    """MongoDB connection manager, owned by the application lifespan."""

    def __init__(self, uri: str, database_name: str):
        self.uri = uri
        self.database_name = database_name
        self.client: AsyncIOMotorClient | None = None
        self.db: AsyncIOMotorDatabase | None = None

    async def connect(self) -> AsyncIOMotorDatabase:
        """Connect to MongoDB and make sure indexes exist."""
        self.client = AsyncIOMotorClient(self.uri)
        self.db = self.client[self.database_name]
        await create_indexes(self.db)
        logger.info(f"Connected to MongoDB: {self.database_name}")
        return self.db

    async def close(self):
        """Disconnect from MongoDB."""
        if self.client is not None:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("Disconnected from MongoDB")

    async def ping(self) -> bool:
        if self.db is None:
            return False
        try:
            await self.db.command("ping")
        except PyMongoError:
            logger.warning("MongoDB ping failed", exc_info=True)
            return False
        return True


async def create_indexes(db: AsyncIOMotorDatabase):
    """Create database indexes."""
    # Pie lookups: by id (slice command path) and by thread (reply path)
    await db["pies"].create_index("pie_id", unique=True)
    await db["pies"].create_index("correlation_token", unique=True)
    await db["pies"].create_index([("settled", 1), ("created_at", 1)])

    await db["slices"].create_index([("pie_id", 1), ("counted", 1)])

    await db["settlements"].create_index("pie_id", unique=True)


@contextmanager
def store_errors(action: str):
    """Translate driver errors raised inside the block into StoreFailure."""
    try:
        yield
    except PyMongoError as e:
        logger.error(f"MongoDB error while trying to {action}: {e}")
        raise StoreFailure(f"Could not {action}") from e
