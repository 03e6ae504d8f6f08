from datetime import datetime

import mongomock
import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

import database
from database import (
    ConnectionStatus,
    MongoConnection,
    create_document,
    delete_document,
    serialize,
    to_object_id,
    update_document,
)
from errors import DatabaseUnavailable, ValidationFailed


class TestConnectionLifecycle:
    def test_starts_disconnected(self):
        conn = MongoConnection()
        assert conn.status is ConnectionStatus.DISCONNECTED
        assert not conn.is_ready
        with pytest.raises(DatabaseUnavailable):
            conn.db

    def test_attach_and_close(self):
        conn = MongoConnection()
        conn.attach(mongomock.MongoClient()["t"])
        assert conn.is_ready
        conn.close()
        assert conn.status is ConnectionStatus.DISCONNECTED
        assert not conn.is_ready

    def test_heartbeats_toggle_readiness(self):
        conn = MongoConnection()
        conn.attach(mongomock.MongoClient()["t"])
        conn._heartbeat(False)
        assert conn.status is ConnectionStatus.DISCONNECTED
        assert not conn.is_ready
        conn._heartbeat(True)
        assert conn.is_ready

    def test_heartbeat_ignored_without_database(self):
        conn = MongoConnection()
        conn._heartbeat(True)
        assert conn.status is ConnectionStatus.DISCONNECTED

    def test_failed_connect_returns_to_disconnected(self, monkeypatch):
        class _Admin:
            def command(self, name):
                raise ServerSelectionTimeoutError("no servers")

        class _Client:
            def __init__(self, *args, **kwargs):
                self.admin = _Admin()

        monkeypatch.setattr(database, "MongoClient", _Client)
        conn = MongoConnection()
        with pytest.raises(DatabaseUnavailable):
            conn.connect("mongodb://localhost:1", "t")
        assert conn.status is ConnectionStatus.DISCONNECTED

    def test_connect_reuses_ready_connection(self, monkeypatch):
        conn = MongoConnection()
        db = mongomock.MongoClient()["t"]
        conn.attach(db)
        monkeypatch.setattr(database, "MongoClient", None)
        assert conn.connect("mongodb://localhost:1", "t") is db


def test_health_follows_connection(client):
    assert client.get("/api/health").json()["data"] == {"database": "ready"}
    database.connection._heartbeat(False)
    res = client.get("/api/health")
    assert res.status_code == 503
    assert res.json()["success"] is False


def test_unbound_database_is_unavailable(client):
    database.connection.close()
    res = client.get("/api/categories")
    assert res.status_code == 503
    assert res.json() == {"success": False, "message": "Database not available"}


def test_helpers_stamp_and_update(db):
    doc_id = create_document(db, "category", {"name": "Rings"})
    doc = db["category"].find_one({"_id": ObjectId(doc_id)})
    assert isinstance(doc["createdAt"], datetime)
    assert isinstance(doc["updatedAt"], datetime)

    updated = update_document(db, "category", doc_id, {"name": "Bands"})
    assert updated["name"] == "Bands"
    assert update_document(db, "category", ObjectId(), {"name": "x"}) is None

    assert delete_document(db, "category", doc_id)["name"] == "Bands"
    assert delete_document(db, "category", doc_id) is None


def test_to_object_id():
    oid = ObjectId()
    assert to_object_id(oid) is oid
    assert to_object_id(str(oid)) == oid
    for bad in ("nope", "", None, 42):
        with pytest.raises(ValidationFailed, match="Invalid id"):
            to_object_id(bad)


def test_serialize_nested():
    oid = ObjectId()
    doc = {"_id": oid, "category": {"_id": oid, "name": "Rings"}, "tags": [oid, "x"], "price": 1.5}
    assert serialize(doc) == {
        "_id": str(oid),
        "category": {"_id": str(oid), "name": "Rings"},
        "tags": [str(oid), "x"],
        "price": 1.5,
    }


def test_root_and_security_headers(client):
    res = client.get("/")
    assert res.json()["success"] is True
    assert res.headers["X-Content-Type-Options"] == "nosniff"
    assert res.headers["X-Frame-Options"] == "DENY"


def test_unknown_route_uses_envelope(client):
    res = client.get("/api/nothing-here")
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Route not found"}
