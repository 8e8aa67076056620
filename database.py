from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Tuple

from bson import ObjectId
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import Settings

logger = logging.getLogger(__name__)

USERS = "user"
TABLES = "table"
MENUS = "menu"
FOODS = "food"
ORDERS = "order"
ORDER_ITEMS = "orderitem"
INVOICES = "invoice"

# collection -> name of the human-usable id field
ID_FIELDS = {
    USERS: "user_id",
    TABLES: "table_id",
    MENUS: "menu_id",
    FOODS: "food_id",
    ORDERS: "order_id",
    ORDER_ITEMS: "order_item_id",
    INVOICES: "invoice_id",
}


def connect(settings: Settings) -> Database:
    """Open a client with a bounded wait for every operation and return the app database."""
    client: MongoClient = MongoClient(
        settings.database_url,
        timeoutMS=settings.db_timeout_ms,
        serverSelectionTimeoutMS=settings.db_timeout_ms,
        tz_aware=True,
    )
    return client[settings.database_name]


def ping(db: Database) -> None:
    db.command("ping")


def ensure_indexes(db: Database) -> None:
    for collection, id_field in ID_FIELDS.items():
        db[collection].create_index([(id_field, ASCENDING)], unique=True)

    db[USERS].create_index([("email", ASCENDING)], unique=True)
    # tables may exist before a number is assigned; the field is left out until then
    db[TABLES].create_index([("table_number", ASCENDING)], unique=True, sparse=True)
    db[MENUS].create_index([("unique_id", ASCENDING)], unique=True)
    db[FOODS].create_index([("unique_food_id", ASCENDING)], unique=True)

    db[FOODS].create_index([("menu_id", ASCENDING)])
    db[ORDERS].create_index([("table_id", ASCENDING)])
    db[ORDERS].create_index([("user_id", ASCENDING)])
    db[ORDER_ITEMS].create_index([("order_id", ASCENDING)])
    db[INVOICES].create_index([("order_id", ASCENDING)], unique=True)
    db[INVOICES].create_index([("user_id", ASCENDING)])
    db[INVOICES].create_index([("payment_status", ASCENDING)])
    logger.debug("Indexes ensured on %d collections", len(ID_FIELDS))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_identity() -> Tuple[ObjectId, str]:
    """Fresh primary key plus the string id exposed to clients."""
    oid = ObjectId()
    return oid, str(oid)


def timestamps() -> dict:
    now = utcnow()
    return {"created_at": now, "updated_at": now}
