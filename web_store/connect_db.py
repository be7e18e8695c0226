# connect_db.py
import logging
import os
from contextlib import contextmanager

from dotenv import load_dotenv
from pymongo import MongoClient
from pymongo.errors import ConfigurationError, ConnectionFailure, PyMongoError
from pymongo.server_api import ServerApi

from .errors import DatabaseConnectionError

logger = logging.getLogger(__name__)

load_dotenv()
MONGO_URI = os.getenv("MONGO_URI")
SERVER_SELECTION_TIMEOUT_MS = int(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "5000"))


def get_client(uri=None) -> MongoClient:
    """Create a client for the configured deployment and check it answers.

    Returns a fresh client; callers own it and must close it.
    """
    uri = uri or MONGO_URI
    if not uri:
        raise DatabaseConnectionError("MONGO_URI is not set")

    client = None
    try:
        client = MongoClient(
            uri,
            serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS,
            server_api=ServerApi("1", strict=True, deprecation_errors=True),
        )
        # Test the connection
        client.admin.command("ping")
    except (ConnectionFailure, ConfigurationError) as e:
        if client is not None:
            client.close()
        logger.error("Failed to connect to MongoDB: %s", e)
        raise DatabaseConnectionError(f"Failed to connect to MongoDB: {e}") from e

    logger.debug("Connected to MongoDB")
    return client


@contextmanager
def open_connection(client_factory=None):
    """Yield a connected client and close it on every exit path.

    An exception raised inside the block propagates unchanged; the client
    is closed before it reaches the caller.
    """
    client = (client_factory or get_client)()
    try:
        yield client
    except BaseException:
        try:
            client.close()
        except PyMongoError as close_error:
            logger.warning("Failed to close MongoDB connection: %s", close_error)
        raise
    client.close()
    logger.debug("Closed MongoDB connection")


def get_database(database_name, client):
    return client[database_name]


if __name__ == "__main__":
    with open_connection() as client:
        print(f"✅ Connected to MongoDB, databases: {client.list_database_names()}")
