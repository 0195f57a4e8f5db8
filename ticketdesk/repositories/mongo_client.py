"""
MongoDB access for Ticket Desk.

One lazily created client per process. Repositories ask for collections by
name; tests swap ``_database`` for an in-memory one.
"""
from typing import Any, Dict, List, Optional, Tuple, Union
from pymongo import MongoClient as PyMongoClient
from pymongo import ASCENDING, DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, PyMongoError

from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

_client: Optional[PyMongoClient] = None
_database: Optional[Database] = None

IndexKeys = Union[str, List[Tuple[str, int]]]


def _scoped(*fields: Tuple[str, int]) -> List[Tuple[str, int]]:
    """Compound key led by tenant_id"""
    return [("tenant_id", ASCENDING), *fields]


# collection -> [(keys, options)]
INDEXES: Dict[str, List[Tuple[IndexKeys, Dict[str, Any]]]] = {
    "tenants": [
        ("tenant_id", {"unique": True}),
        ("slug", {"unique": True}),
    ],
    "users": [
        (_scoped(("user_id", ASCENDING)), {"unique": True}),
        (_scoped(("email", ASCENDING)), {}),
    ],
    "departments": [
        (_scoped(("department_id", ASCENDING)), {"unique": True}),
    ],
    "sections": [
        (_scoped(("section_id", ASCENDING)), {"unique": True}),
        (_scoped(("department_id", ASCENDING)), {}),
    ],
    "user_departments": [
        (_scoped(("user_id", ASCENDING), ("department_id", ASCENDING)), {"unique": True}),
    ],
    "user_sections": [
        (_scoped(("user_id", ASCENDING), ("section_id", ASCENDING)), {"unique": True}),
    ],
    "tickets": [
        (_scoped(("ticket_id", ASCENDING)), {"unique": True}),
        (_scoped(("requester.user_id", ASCENDING)), {}),
        (_scoped(("department.department_id", ASCENDING)), {}),
        (_scoped(("status", ASCENDING), ("resolved_at", DESCENDING)), {}),
        # Sweeper scan across tenants
        ([("status", ASCENDING), ("updated_at", ASCENDING)], {}),
    ],
}


def get_client() -> PyMongoClient:
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB: {settings.mongo_uri}")
        client = PyMongoClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=settings.mongo_timeout_ms,
            connectTimeoutMS=settings.mongo_timeout_ms,
            socketTimeoutMS=30000,
            tz_aware=False,
        )
        try:
            client.admin.command("ping")
        except ConnectionFailure as e:
            logger.error(f"MongoDB unreachable at {settings.mongo_uri}: {e}")
            client.close()
            raise
        _client = client
    return _client


def get_database() -> Database:
    global _database
    if _database is None:
        _database = get_client()[settings.mongo_db]
        logger.info(f"Using database: {settings.mongo_db}")
    return _database


def get_collection(name: str) -> Collection:
    return get_database()[name]


def close_connection() -> None:
    global _client, _database
    if _client is None:
        return
    _client.close()
    _client = None
    _database = None
    logger.info("MongoDB connection closed")


def create_indexes() -> None:
    """Create the tenant-scoped indexes; existing ones are left as they are."""
    db = get_database()
    for collection, indexes in INDEXES.items():
        for keys, options in indexes:
            db[collection].create_index(keys, **options)
    logger.info(f"MongoDB indexes ensured on {len(INDEXES)} collections")


def health_check() -> Dict[str, Any]:
    report: Dict[str, Any] = {"database": settings.mongo_db}
    try:
        get_client().admin.command("ping")
    except PyMongoError as e:
        logger.error(f"MongoDB health check failed: {e}")
        report.update(status="unhealthy", error=str(e))
        return report
    report.update(status="healthy", connection="ok")
    return report
