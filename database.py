"""
MongoDB access for the portfolio CMS.

One ``Database`` is created when the app is built and stored on
``app.state``; request handlers receive the pymongo database through the
``get_db`` dependency. If the first connection attempt fails, the next
request tries again.
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Optional, Union

from bson import ObjectId
from fastapi import Request
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database as MongoDatabase
from pymongo.errors import PyMongoError

from errors import DatabaseUnavailable

logger = logging.getLogger(__name__)

PROJECTS = "projects"
CONTENTS = "contents"
SITE_CONFIGS = "siteconfigs"
CONTACT_FORMS = "contactforms"
USERS = "users"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Database:
    def __init__(
        self,
        url: str,
        name: str,
        timeout_ms: int = 5000,
        client_factory: Callable[..., Any] = MongoClient,
        on_connect: Iterable[Callable[[MongoDatabase], None]] = (),
    ):
        self.url = url
        self.name = name
        self.timeout_ms = timeout_ms
        self._client_factory = client_factory
        self._on_connect = list(on_connect)
        self.client = None
        self.db: Optional[MongoDatabase] = None
        self._lock = threading.Lock()

    def connect(self) -> MongoDatabase:
        if self.db is not None:
            return self.db
        with self._lock:
            if self.db is not None:
                return self.db
            client = None
            try:
                client = self._client_factory(
                    self.url,
                    maxPoolSize=10,
                    minPoolSize=2,
                    serverSelectionTimeoutMS=self.timeout_ms,
                    connectTimeoutMS=10000,
                    socketTimeoutMS=45000,
                )
                client.admin.command("ping")
                db = client[self.name]
                for hook in self._on_connect:
                    hook(db)
            except PyMongoError as e:
                logger.error("MongoDB connection failed: %s", e)
                if client is not None:
                    client.close()
                raise DatabaseUnavailable("Database not available") from e

            self.client = client
            self.db = db
        logger.info("Connected to MongoDB database %s", self.name)
        return db

    def close(self) -> None:
        with self._lock:
            if self.client is not None:
                self.client.close()
            self.client = None
            self.db = None


def get_db(request: Request) -> MongoDatabase:
    return request.app.state.database.connect()


def ensure_indexes(db: MongoDatabase) -> None:
    # (locale, originalId) stays non-unique; the linker checks it before insert
    db[PROJECTS].create_index([("locale", ASCENDING), ("id", ASCENDING)], unique=True)
    db[PROJECTS].create_index([("locale", ASCENDING), ("originalId", ASCENDING)])
    db[CONTENTS].create_index([("locale", ASCENDING)], unique=True)
    db[USERS].create_index([("username", ASCENDING)], unique=True)


# =========
# Utilities
# =========

def serialize_document(doc: Optional[dict]) -> Optional[dict]:
    """Copy of ``doc`` safe for JSON responses (ObjectIds become strings)."""
    if doc is None:
        return None
    return _plain(doc)


def _plain(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def create_document(db: MongoDatabase, collection_name: str, data: Union[BaseModel, dict]) -> str:
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(by_alias=True)
    else:
        data_dict = dict(data)
    now = utcnow()
    data_dict.setdefault("createdAt", now)
    data_dict["updatedAt"] = now
    result = db[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(
    db: MongoDatabase,
    collection_name: str,
    filter_dict: Optional[dict] = None,
    sort: Optional[list] = None,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[dict]:
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if skip:
        cursor = cursor.skip(skip)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
