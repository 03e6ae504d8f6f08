"""
MongoDB access for the storefront.

The process holds one MongoConnection. Its status moves through
disconnected -> connecting -> ready -> disconnected and is updated by the
driver's heartbeat events; the rest of the app only asks `is_ready`.
Collection names are the lowercased schema class names (Category -> "category").
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient, ReturnDocument, monitoring
from pymongo.database import Database
from pymongo.errors import PyMongoError

from errors import DatabaseUnavailable, ValidationFailed

logger = logging.getLogger(__name__)


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"


class _HeartbeatListener(monitoring.ServerHeartbeatListener):
    """Feeds server heartbeat outcomes back into the owning connection."""

    def __init__(self, connection: "MongoConnection"):
        self._connection = connection

    def started(self, event):
        pass

    def succeeded(self, event):
        self._connection._heartbeat(True)

    def failed(self, event):
        logger.warning("MongoDB heartbeat failed: %s", event.reply)
        self._connection._heartbeat(False)


class MongoConnection:
    def __init__(self):
        self._client: Optional[MongoClient] = None
        self._db: Optional[Database] = None
        self.status = ConnectionStatus.DISCONNECTED

    @property
    def is_ready(self) -> bool:
        return self.status is ConnectionStatus.READY and self._db is not None

    @property
    def db(self) -> Database:
        if self._db is None:
            raise DatabaseUnavailable()
        return self._db

    def connect(self, uri: str, name: str) -> Database:
        if self.is_ready:
            logger.info("Using existing MongoDB connection")
            return self._db

        self.status = ConnectionStatus.CONNECTING
        try:
            client = MongoClient(
                uri,
                maxPoolSize=10,
                minPoolSize=1,
                serverSelectionTimeoutMS=5000,
                socketTimeoutMS=45000,
                event_listeners=[_HeartbeatListener(self)],
            )
            client.admin.command("ping")
        except PyMongoError as e:
            self.status = ConnectionStatus.DISCONNECTED
            logger.error("MongoDB connection error: %s", e)
            raise DatabaseUnavailable() from e

        self._client = client
        self._db = client[name]
        self.status = ConnectionStatus.READY
        logger.info("MongoDB connected, database: %s", name)
        return self._db

    def attach(self, database: Database) -> None:
        """Bind an already constructed database, e.g. an in-memory one."""
        self._client = None
        self._db = database
        self.status = ConnectionStatus.READY

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self._db = None
        self.status = ConnectionStatus.DISCONNECTED
        logger.info("MongoDB connection closed")

    def _heartbeat(self, ok: bool) -> None:
        if self._db is None:
            return
        if ok and self.status is ConnectionStatus.DISCONNECTED:
            logger.info("MongoDB connection re-established")
            self.status = ConnectionStatus.READY
        elif not ok and self.status is ConnectionStatus.READY:
            logger.warning("MongoDB disconnected")
            self.status = ConnectionStatus.DISCONNECTED


connection = MongoConnection()


def get_db() -> Database:
    """FastAPI dependency for the bound database."""
    return connection.db


# Utility

def to_object_id(value: Union[str, ObjectId]) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValidationFailed("Invalid id")


def is_object_id(value: Any) -> bool:
    return isinstance(value, ObjectId) or (isinstance(value, str) and ObjectId.is_valid(value))


def serialize(doc: Any) -> Any:
    """Make a document JSON friendly: every ObjectId becomes its hex string."""
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, dict):
        return {k: serialize(v) for k, v in doc.items()}
    if isinstance(doc, list):
        return [serialize(v) for v in doc]
    return doc


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_document(db: Database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(by_alias=True)
    else:
        data_dict = dict(data)
    data_dict["createdAt"] = _now()
    data_dict["updatedAt"] = _now()
    result = db[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[dict] = None,
    limit: Optional[int] = None,
    sort: Optional[List[Tuple[str, int]]] = None,
) -> List[Dict[str, Any]]:
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def get_document(db: Database, collection_name: str, doc_id: Union[str, ObjectId]) -> Optional[dict]:
    return db[collection_name].find_one({"_id": to_object_id(doc_id)})


def update_document(
    db: Database, collection_name: str, doc_id: Union[str, ObjectId], changes: dict
) -> Optional[dict]:
    changes = dict(changes)
    changes["updatedAt"] = _now()
    return db[collection_name].find_one_and_update(
        {"_id": to_object_id(doc_id)},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )


def delete_document(db: Database, collection_name: str, doc_id: Union[str, ObjectId]) -> Optional[dict]:
    return db[collection_name].find_one_and_delete({"_id": to_object_id(doc_id)})
