import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from quarry_ledger.core.config import settings

logger = logging.getLogger(__name__)


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB unless a client is already attached."""
    if mongodb.client is None:
        mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL)
        mongodb.db = mongodb.client[settings.DATABASE_NAME]

    await create_indexes(mongodb.db)
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    mongodb.client = None
    mongodb.db = None
    logger.info("Disconnected from MongoDB")

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create database indexes."""
    # Owner name is the natural key
    await db["truck_owners"].create_index("name", unique=True)

    # Receipt indexes
    await db["receipts"].create_index("receipt_no", unique=True)
    await db["receipts"].create_index([("receipt_seq", DESCENDING)])
    await db["receipts"].create_index([("date_time", DESCENDING)])
    await db["receipts"].create_index("truck_owner")

    # Deposit ledger indexes
    await db["deposit_transactions"].create_index(
        [("owner_id", ASCENDING), ("created_at", ASCENDING)]
    )
    await db["credit_payments"].create_index("receipt_id")

    await db["expenses"].create_index([("expense_date", DESCENDING), ("created_at", DESCENDING)])
    await db["expenses"].create_index("created_by")

    await db["users"].create_index("username", unique=True)

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
