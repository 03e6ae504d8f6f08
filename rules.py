"""
Integrity rules checked against the current database state right before a write.

Each check either returns quietly or raises a StorefrontError subclass carrying a
readable reason. Nothing is auto-corrected. The checks are check-then-act: two
concurrent requests (say, a product create and a delete of its category) are not
serialized here.

Order payload rules (non-empty items, prices, quantities, images) live on the
schemas in schemas.py and run at the request boundary.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from pymongo.database import Database

from database import is_object_id, to_object_id
from errors import Conflict, InvalidReference, ValidationFailed
from schemas import ORDER_STATUSES

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20
NEWEST_FIRST = [("createdAt", -1)]


def _exact_name(name: str) -> dict:
    return {"$regex": f"^{re.escape(name)}$", "$options": "i"}


def _contains(text: str) -> dict:
    return {"$regex": re.escape(text), "$options": "i"}


# Categories

def ensure_category_name_available(
    db: Database, name: str, exclude_id: Optional[Union[str, ObjectId]] = None
) -> None:
    """No other category may share `name`, ignoring case.

    Pass `exclude_id` when renaming so a category can keep its own name.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationFailed("Category name is required")

    query: Dict[str, Any] = {"name": _exact_name(name)}
    if exclude_id is not None:
        query["_id"] = {"$ne": to_object_id(exclude_id)}

    if db["category"].find_one(query, {"_id": 1}):
        if exclude_id is None:
            raise Conflict("Category already exists")
        raise Conflict("Category name already exists")


def ensure_category_unused(db: Database, category_id: Union[str, ObjectId]) -> None:
    count = db["product"].count_documents({"category": to_object_id(category_id)})
    if count > 0:
        logger.info("Category delete blocked by %d product(s)", count, extra={"collection": "category"})
        raise Conflict(f"Cannot delete category. {count} product(s) are using this category.")


# Products

def ensure_category_exists(db: Database, category_id: Union[str, ObjectId]) -> dict:
    """Return the referenced category or raise InvalidReference."""
    if not is_object_id(category_id):
        raise InvalidReference("Invalid category ID")
    category = db["category"].find_one({"_id": to_object_id(category_id)})
    if category is None:
        raise InvalidReference("Invalid category ID")
    return category


def populate_categories(db: Database, products: List[dict]) -> List[dict]:
    """Swap each product's category id for {_id, name}; None if it no longer exists."""
    ids = {p["category"] for p in products if isinstance(p.get("category"), ObjectId)}
    names = {}
    if ids:
        for c in db["category"].find({"_id": {"$in": list(ids)}}, {"name": 1}):
            names[c["_id"]] = {"_id": c["_id"], "name": c["name"]}
    for p in products:
        p["category"] = names.get(p.get("category"))
    return products


# Orders

def check_order_status(status: Any) -> str:
    if status not in ORDER_STATUSES:
        raise ValidationFailed("Invalid status value")
    return status


# Search

def search_products(db: Database, query: Optional[str]) -> List[dict]:
    """
    Case-insensitive substring search over products.

    Pass one matches product name or description (newest first, at most
    SEARCH_LIMIT). Pass two matches the name of the product's category. The
    passes are concatenated in that order, de-duplicated by id (first wins)
    and cut to SEARCH_LIMIT, so plenty of direct hits can crowd out
    category hits.
    """
    if not isinstance(query, str) or not query.strip():
        raise ValidationFailed("Search query is required")
    pattern = _contains(query.strip())

    direct = list(
        db["product"]
        .find({"$or": [{"name": pattern}, {"description": pattern}]})
        .sort(NEWEST_FIRST)
        .limit(SEARCH_LIMIT)
    )

    category_ids = [c["_id"] for c in db["category"].find({"name": pattern}, {"_id": 1})]
    by_category = []
    if category_ids:
        by_category = list(db["product"].find({"category": {"$in": category_ids}}).sort(NEWEST_FIRST))

    seen = set()
    results = []
    for product in direct + by_category:
        if product["_id"] in seen:
            continue
        seen.add(product["_id"])
        results.append(product)
    return results[:SEARCH_LIMIT]
