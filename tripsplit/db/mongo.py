from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from tripsplit.core.config import settings
from tripsplit.core.logging import get_logger

logger = get_logger(__name__)

class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URI)
    mongodb.db = mongodb.client[settings.MONGODB_DB]
    logger.info("mongo_connected", database=settings.MONGODB_DB)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
        mongodb.client = None
        mongodb.db = None
        logger.info("mongo_disconnected")

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
