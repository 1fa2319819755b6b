from contextlib import asynccontextmanager
import logging
from pymongo import MongoClient, errors
from carrental.config import DATABASE_URL, DATABASE_NAME, MONGO_SERVER_SELECTION_TIMEOUT_MS
from carrental.database.db import ensure_indexes

logger = logging.getLogger(__name__)


def connect(db_url: str = DATABASE_URL) -> MongoClient:
    client = MongoClient(db_url, serverSelectionTimeoutMS=MONGO_SERVER_SELECTION_TIMEOUT_MS)
    try:
        client.admin.command("ping")
    except errors.ConfigurationError:
        client.close()
        logger.error("Invalid MongoDB configuration for %s", db_url)
        raise
    except errors.ConnectionFailure:
        client.close()
        logger.error("Unable to connect to the MongoDB server at %s", db_url)
        raise
    except errors.OperationFailure as err:
        client.close()
        logger.error("MongoDB authentication or command error: %s", err)
        raise
    return client


@asynccontextmanager
async def lifespan(app):
    """Owns the MongoDB client for the lifetime of the application."""
    try:
        client = connect()
        ensure_indexes(client[DATABASE_NAME])
        app.state.mongo_client = client
        logger.info("✅ MongoDB connection established at startup (database=%s)", DATABASE_NAME)
    except Exception as e:
        logger.error(f"❌ MongoDB connection failed at startup: {e}")
        raise

    yield

    mongo_client = getattr(app.state, "mongo_client", None)
    if mongo_client:
        mongo_client.close()
        logger.info("🔌 MongoDB connection closed at shutdown.")
    logger.info("🚪 Shutting down FastAPI app.")
