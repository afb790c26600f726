# storefront/db/mongo_client.py

# This file handles MongoDB connection and disconnection, and exposes the
# resource collections to request handlers through a FastAPI dependency.

import asyncio
import logging
from typing import Optional, Tuple

from fastapi import Request
from pymongo import MongoClient

from ..config.settings import Settings
from ..shared.exceptions import StorefrontError
from .collections import Collections

logger = logging.getLogger(__name__)


# --- Connection Function ---
async def connect_to_mongo(settings: Settings) -> Tuple[MongoClient, Collections]:
    """
    Connects to MongoDB using MONGODB_URI / DB_NAME, pings the server and
    ensures indexes. Connection errors propagate: the app must not start
    without its database.
    """
    if not settings.MONGODB_URI:
        raise RuntimeError("MONGODB_URI is not set.")
    if not settings.DB_NAME:
        raise RuntimeError("DB_NAME is not set.")

    logger.info("Attempting to connect to MongoDB...")
    client = MongoClient(settings.MONGODB_URI, serverSelectionTimeoutMS=5000, tz_aware=True)
    # Use asyncio.to_thread for the blocking command
    await asyncio.to_thread(client.admin.command, "ping")

    database = client.get_database(settings.DB_NAME)
    collections = Collections(database)
    await asyncio.to_thread(collections.ensure_indexes)

    logger.info("Connected to MongoDB database '%s'.", settings.DB_NAME)
    return client, collections


# --- Disconnection Function ---
async def close_mongo_connection(client: Optional[MongoClient]) -> None:
    """Closes the MongoDB client connection."""
    if client is None:
        logger.info("No active MongoDB client to close.")
        return
    await asyncio.to_thread(client.close)
    logger.info("MongoDB connection closed.")


# --- Dependency ---
def get_collections(request: Request) -> Collections:
    """Returns the collections registry stored on app.state at startup."""
    collections = getattr(request.app.state, "collections", None)
    if collections is None:
        raise StorefrontError("Database service is not available.", status_code=503)
    return collections
