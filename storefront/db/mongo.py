import logging
from datetime import datetime, timezone

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.server_api import ServerApi
from slugify import slugify

from storefront.core.config import settings
from storefront.core.errors import ErrorKind, StoreError

logger = logging.getLogger(__name__)

PRODUCTS = "products"
ORDERS = "orders"
CATEGORIES = "categories"
PAYMENT_INTENTS = "payment_intents"

DEFAULT_CATEGORIES = ["Men", "Women", "Kids", "Accessories", "Footwear"]

client = None


def get_client() -> MongoClient:
    global client
    if client is None:
        if not settings.MONGO_URI:
            raise RuntimeError("MONGO_URI not configured. See .env")
        client = MongoClient(settings.MONGO_URI, server_api=ServerApi("1"))
    return client


def get_db():
    """FastAPI dependency; tests override it with a mongomock database."""
    return get_client()[settings.MONGO_DB_NAME]


def ensure_indexes(db):
    db[PRODUCTS].create_index([("category", ASCENDING)])
    db[PRODUCTS].create_index([("price", ASCENDING)])
    db[PRODUCTS].create_index([("createdAt", DESCENDING)])
    db[ORDERS].create_index([("userId", ASCENDING), ("createdAt", DESCENDING)])
    db[ORDERS].create_index("paymentInfo.gatewayPaymentId", unique=True, sparse=True)
    db[CATEGORIES].create_index("slug", unique=True)
    db[PAYMENT_INTENTS].create_index("gatewayOrderId", unique=True)


def seed_categories(db) -> int:
    if db[CATEGORIES].count_documents({}) > 0:
        return 0
    now = utcnow()
    docs = [{"name": name, "slug": slugify(name), "createdAt": now, "updatedAt": now} for name in DEFAULT_CATEGORIES]
    db[CATEGORIES].insert_many(docs)
    logger.info(f"Seeded {len(docs)} default categories")
    return len(docs)


# --- Helpers ---

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_object_id(value: str, what: str = "id") -> ObjectId:
    if not ObjectId.is_valid(value):
        raise StoreError(ErrorKind.VALIDATION_ERROR, f"Invalid {what}: {value}")
    return ObjectId(value)


def _public_value(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _public_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_public_value(v) for v in value]
    return value


def to_public(doc: dict) -> dict:
    """Mongo document -> JSON-safe dict with ``id`` in place of ``_id``."""
    if not doc:
        return doc
    d = {**doc}
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    return _public_value(d)
