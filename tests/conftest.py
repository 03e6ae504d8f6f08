"""Shared fixtures: an in-memory Mongo database, the API client and a seeded admin."""

import os

os.environ.setdefault("JWT_SECRET", "storefront-test-signing-secret-0123456789")
os.environ.setdefault("JWT_EXPIRE", "7d")
os.environ.setdefault("LOG_FORMAT", "text")

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from auth import hash_password
from database import connection, create_document
from main import app, limiter

ADMIN_EMAIL = "admin@startup.com"
ADMIN_PASSWORD = "Sparkle123!"
ADMIN_HASH = hash_password(ADMIN_PASSWORD)

CART_ITEM = {
    "id": "p-101",
    "name": "Pearl Drop Earrings",
    "category": "Earrings",
    "price": 129.99,
    "image": "https://images.example.com/pearl-drop.jpg",
    "description": "Elegant pearl drop earrings with silver setting",
    "quantity": 2,
}

ORDER = {
    "items": [CART_ITEM],
    "total": 259.98,
    "customerName": "Ayesha Khan",
    "email": "Ayesha.Khan@Example.com",
    "contactNumber": "+92 300 1234567",
    "address": "12 Garden Road, Lahore",
}


@pytest.fixture(autouse=True)
def clear_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def db():
    database = mongomock.MongoClient()["storefront_test"]
    connection.attach(database)
    yield database
    connection.close()


@pytest.fixture
def client(db):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin(db):
    admin_id = create_document(db, "admin", {"name": "Admin", "email": ADMIN_EMAIL, "password": ADMIN_HASH})
    return db["admin"].find_one({"_id": ObjectId(admin_id)})


@pytest.fixture
def token(client, admin):
    res = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert res.status_code == 200
    return res.json()["data"]["token"]


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_category(db):
    def _make(name, **fields):
        return ObjectId(create_document(db, "category", {"name": name, **fields}))
    return _make


@pytest.fixture
def make_product(db):
    def _make(name, category_id, description="", **fields):
        data = {
            "name": name,
            "category": category_id,
            "price": fields.pop("price", 99.0),
            "image": fields.pop("image", "https://images.example.com/item.jpg"),
            "description": description,
            "inStock": True,
            **fields,
        }
        return ObjectId(create_document(db, "product", data))
    return _make
