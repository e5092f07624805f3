# autograde/core/database.py
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from autograde.core.config import CONFIG
from autograde.core.logger import get_logger

logger = get_logger("database")

_client: MongoClient | None = None

PROCESSING_JOBS = "processing_jobs"
GRADE_SHEETS = "grade_sheets"
STUDENTS = "students"
PERIODS = "periods"
ASSIGNMENTS = "assignments"


def get_db() -> Database:
    """MongoClient connects lazily, so this is safe to call at import time."""
    global _client
    if _client is None:
        _client = MongoClient(CONFIG.MONGO_URI)
        logger.info("MongoDB client created for database '%s'", CONFIG.MONGO_DB)
    return _client[CONFIG.MONGO_DB]


def get_collection(name: str) -> Collection:
    return get_db()[name]
