# content_tree/db.py
import asyncio
import logging
import time
from typing import Optional
from urllib.parse import urlparse

import motor.motor_asyncio
from beanie import init_beanie

from .config import settings
from .models.exam import Exam
from .models.subject import Subject
from .models.unit import Unit
from .models.chapter import Chapter
from .models.topic import Topic
from .models.subtopic import SubTopic
from .models.details import TopicDetails, SubTopicDetails
from .models.admin_action import AdminAction

logger = logging.getLogger(__name__)

DOCUMENT_MODELS = [
    Exam,
    Subject,
    Unit,
    Chapter,
    Topic,
    SubTopic,
    TopicDetails,
    SubTopicDetails,
    AdminAction,
]

# Globals (one client + one beanie-init flag per process)
_global_client: Optional[motor.motor_asyncio.AsyncIOMotorClient] = None
_beanie_initialized = False
_beanie_lock = asyncio.Lock()


def get_db_name() -> str:
    if settings.MONGO_DB_NAME:
        return settings.MONGO_DB_NAME
    parsed = urlparse(settings.MONGO_URI)
    return parsed.path.lstrip("/") or "content_tree_db"


def _make_client() -> motor.motor_asyncio.AsyncIOMotorClient:
    return motor.motor_asyncio.AsyncIOMotorClient(
        settings.MONGO_URI,
        serverSelectionTimeoutMS=3000,
        connectTimeoutMS=3000,
        socketTimeoutMS=10000,
        maxPoolSize=10,
        appname="content-tree-api",
        retryWrites=True,
        retryReads=True,
    )


async def get_db_client() -> motor.motor_asyncio.AsyncIOMotorClient:
    """
    Get the process-wide MongoDB client, creating it on first use.
    """
    global _global_client

    if _global_client is None:
        _global_client = _make_client()
        logger.info("New DB client created")
    return _global_client


async def init_beanie_if_needed() -> None:
    """
    Initialize Beanie only if needed, with proper locking.
    """
    global _beanie_initialized

    # Fast path - already initialized
    if _beanie_initialized:
        return

    async with _beanie_lock:
        # Double-check after acquiring lock
        if _beanie_initialized:
            return

        start_time = time.time()
        client = await get_db_client()
        try:
            await init_beanie(
                database=client.get_database(get_db_name()),
                document_models=DOCUMENT_MODELS,
                allow_index_dropping=False,
            )
        except Exception as e:
            logger.error(f"Beanie initialization failed: {e}")
            raise

        _beanie_initialized = True
        elapsed = time.time() - start_time
        logger.info(f"Beanie models initialized successfully in {elapsed:.2f}s")


async def init_db() -> None:
    await init_beanie_if_needed()


def close_client() -> None:
    """
    Close and drop the process-global client (useful during cleanup/tests).
    """
    global _global_client, _beanie_initialized
    if _global_client is not None:
        _global_client.close()
    _global_client = None
    _beanie_initialized = False
