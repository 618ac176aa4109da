from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from supply_ledger.core.config import settings
from supply_ledger.core.logging import get_logger

logger = get_logger(__name__)


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=True)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    await create_indexes(mongodb.db)
    logger.info("mongo_connected", database=settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
        logger.info("mongo_disconnected")

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create database indexes."""
    await db["customers"].create_index("name")

    # History and reporting scans
    await db["entries"].create_index("start_at")
    await db["entries"].create_index([("customer_id", 1), ("start_at", -1)])
    # Oldest-first unpaid walk during payment application
    await db["entries"].create_index([("customer_id", 1), ("is_paid", 1), ("start_at", 1)])

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
