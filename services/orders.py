import logging
from typing import Any, Dict, Optional

from pymongo.database import Database

from database import ORDERS, utcnow
from errors import ClientInputError, ConflictError, NotFoundError
from schemas import TERMINAL_ORDER_STATUSES, OrderCreate, OrderStatus, OrderStatusUpdate, OrderUpdate
from security import Claims

from .base import EntityService, Pagination, Page, changed_fields
from .tables import TableService
from .users import UserService

logger = logging.getLogger(__name__)


class OrderService(EntityService):
    collection_name = ORDERS
    label = "orders"
    noun = "Order"

    def __init__(self, db: Database, tables: TableService, users: UserService):
        super().__init__(db)
        self.tables = tables
        self.users = users

    def _require_reserved_table(self, table_id: str) -> Dict[str, Any]:
        table = self.tables.get_or_404(table_id, "Invalid table ID, table not found")
        if not self.tables.is_reserved(table):
            raise ClientInputError("Table is not reserved. Reserve the table first.")
        return table

    def active_order_on_table(self, table_id: str, exclude_order_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        query: Dict[str, Any] = {
            "table_id": table_id,
            "status": {"$nin": list(TERMINAL_ORDER_STATUSES)},
        }
        if exclude_order_id:
            query["order_id"] = {"$ne": exclude_order_id}
        return self.collection.find_one(query)

    def create(self, body: OrderCreate, claims: Claims) -> Dict[str, Any]:
        self._require_reserved_table(body.table_id)

        user_id = body.user_id or claims.uid
        if not self.users.exists(user_id):
            raise NotFoundError("Invalid user ID, user not found")

        return self.insert({
            "table_id": body.table_id,
            "user_id": user_id,
            "status": body.status or OrderStatus.PENDING.value,
            "order_date": body.order_date or utcnow(),
        })

    def update(self, order_id: str, body: OrderUpdate) -> Dict[str, Any]:
        existing = self.get_or_404(order_id)
        # status only changes through update_status
        changes = changed_fields(body.model_dump())
        self.require_changes(changes)

        table_id = changes.get("table_id")
        if table_id and table_id != existing.get("table_id"):
            self._require_reserved_table(table_id)
            if self.active_order_on_table(table_id, exclude_order_id=order_id):
                raise ConflictError("Table is already assigned to another order.")
        return self.apply_update(order_id, changes)

    def update_status(self, order_id: str, body: OrderStatusUpdate) -> Dict[str, Any]:
        order = self.apply_update(order_id, {"status": body.status})
        logger.info("Order %s status set to %s", order_id, body.status)
        return order

    def promote_if_pending(self, order_id: str) -> bool:
        result = self.collection.update_one(
            {"order_id": order_id, "status": OrderStatus.PENDING.value},
            {"$set": {"status": OrderStatus.PLACED.value, "updated_at": utcnow()}},
        )
        if result.modified_count:
            logger.info("Order %s promoted to %s", order_id, OrderStatus.PLACED.value)
        return bool(result.modified_count)

    def mark_paid(self, order_id: str) -> None:
        self.collection.update_one(
            {"order_id": order_id},
            {"$set": {"status": OrderStatus.PAID.value, "updated_at": utcnow()}},
        )
        logger.info("Order %s marked as %s", order_id, OrderStatus.PAID.value)

    def list_by_table(self, table_id: str, pagination: Pagination) -> Page:
        return self.list(pagination, {"table_id": table_id})

    def list_by_user(self, user_id: str, pagination: Pagination) -> Page:
        return self.list(pagination, {"user_id": user_id})
