import logging
from motor.motor_asyncio import AsyncIOMotorClient
from config import MONGO_URL, DB_NAME

logger = logging.getLogger(__name__)

client = AsyncIOMotorClient(MONGO_URL)
db = client[DB_NAME]


async def create_indexes():
    """Create database indexes on startup."""
    try:
        await db.use_cases.create_index("id", unique=True)
        await db.use_cases.create_index([("created_at", -1)])
        await db.use_cases.create_index("form.use_case_code")
        logger.info("Database indexes created successfully")
    except Exception as e:
        logger.error(f"Error creating indexes: {e}")


async def close_connection():
    """Close the MongoDB connection."""
    client.close()
