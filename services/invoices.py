import logging
from typing import Any, Dict

from pymongo.database import Database

from database import INVOICES, utcnow
from errors import ConflictError, NotFoundError
from schemas import InvoiceCreate, InvoiceUpdate, PaymentStatus

from .base import EntityService, Pagination, Page, changed_fields
from .order_items import OrderItemService
from .orders import OrderService
from .users import UserService

logger = logging.getLogger(__name__)


class InvoiceService(EntityService):
    collection_name = INVOICES
    label = "invoices"
    noun = "Invoice"

    def __init__(self, db: Database, orders: OrderService, order_items: OrderItemService, users: UserService):
        super().__init__(db)
        self.orders = orders
        self.order_items = order_items
        self.users = users

    def create(self, body: InvoiceCreate) -> Dict[str, Any]:
        order = self.orders.get_or_404(body.order_id, "Invalid order ID, order not found")
        self.ensure_unique("order_id", body.order_id, "Invoice already exists for this order")

        user_id = body.user_id or order.get("user_id")
        if body.user_id and not self.users.exists(body.user_id):
            raise NotFoundError("Invalid user ID, user not found")

        status = body.payment_status or PaymentStatus.PENDING.value
        paid = status == PaymentStatus.PAID.value
        invoice = self.insert({
            "order_id": body.order_id,
            "user_id": user_id,
            "payment_method": body.payment_method,
            "payment_status": status,
            # any client-supplied total is ignored
            "total_price": self.order_items.order_total(body.order_id),
            "payment_date": body.payment_date or (utcnow() if paid else None),
        })
        if paid:
            self.orders.mark_paid(body.order_id)
        return invoice

    def update(self, invoice_id: str, body: InvoiceUpdate) -> Dict[str, Any]:
        existing = self.get_or_404(invoice_id)
        changes = changed_fields(body.model_dump())
        self.require_changes(changes)

        paid = changes.get("payment_status") == PaymentStatus.PAID.value
        if paid and "payment_date" not in changes and not existing.get("payment_date"):
            changes["payment_date"] = utcnow()
        changes["total_price"] = self.order_items.order_total(existing["order_id"])

        invoice = self.apply_update(invoice_id, changes)
        if paid:
            self.orders.mark_paid(existing["order_id"])
        return invoice

    def get_by_order(self, order_id: str) -> Dict[str, Any]:
        invoice = self.collection.find_one({"order_id": order_id}) if order_id else None
        if invoice is None:
            raise NotFoundError("Invoice not found")
        return self.public(invoice)

    def list_by_user(self, user_id: str, pagination: Pagination) -> Page:
        return self.list(pagination, {"user_id": user_id})

    def list_by_status(self, status: PaymentStatus, pagination: Pagination) -> Page:
        return self.list(pagination, {"payment_status": status.value})
