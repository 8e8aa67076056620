import logging
from typing import Any, Dict, List

from pymongo.database import Database

from database import ORDER_ITEMS
from errors import ClientInputError, ConflictError
from schemas import OrderItemCreate, OrderItemUpdate

from .base import EntityService, Pagination, Page
from .foods import FoodService
from .orders import OrderService

logger = logging.getLogger(__name__)

# food_id -> {food_id, name, quantity, unit_price}
Lines = Dict[str, Dict[str, Any]]


def line_total(lines: List[Dict[str, Any]]) -> float:
    return round(sum(line["unit_price"] * line["quantity"] for line in lines), 2)


def quantities_by_name(lines: List[Dict[str, Any]]) -> Dict[str, int]:
    items: Dict[str, int] = {}
    for line in lines:
        items[line["name"]] = items.get(line["name"], 0) + line["quantity"]
    return items


def _line(food: Dict[str, Any], quantity: int) -> Dict[str, Any]:
    return {
        "food_id": food["food_id"],
        "name": food["name"],
        "quantity": quantity,
        "unit_price": float(food["price"]),
    }


class OrderItemService(EntityService):
    """
    Line items of an order.

    Items arrive keyed by food id. Each food keeps its own line with the
    price it was charged at, so two foods sharing a name (from different
    menus) are still priced separately. `items` is the by-name summary
    shown to clients.
    """

    collection_name = ORDER_ITEMS
    label = "orderitems"
    noun = "Order item"

    def __init__(self, db: Database, orders: OrderService, foods: FoodService):
        super().__init__(db)
        self.orders = orders
        self.foods = foods

    def resolve_foods(self, requested: Dict[str, int]) -> Lines:
        """Look up every requested food; all missing ids are reported at once."""
        lines: Lines = {}
        missing = []
        for food_id, quantity in requested.items():
            food = self.foods.find(food_id)
            if food is None:
                missing.append(food_id)
                continue
            lines[food_id] = _line(food, quantity)
        if missing:
            raise ClientInputError("Food items not found: " + ", ".join(missing))
        return lines

    def _reprice(self, line: Dict[str, Any]) -> Dict[str, Any]:
        food = self.foods.find(line["food_id"])
        if food is None:
            # removed from the menu since; keep what it was charged at
            return line
        return _line(food, line["quantity"])

    def _fields(self, lines: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "lines": lines,
            "items": quantities_by_name(lines),
            "total_price": line_total(lines),
        }

    def create(self, body: OrderItemCreate) -> Dict[str, Any]:
        order = self.orders.get_or_404(body.order_id, "Invalid order ID, order not found")
        if body.table_id != order.get("table_id"):
            raise ClientInputError("Invalid table ID for this order")
        if self.orders.active_order_on_table(body.table_id, exclude_order_id=body.order_id):
            raise ConflictError("Another active order is already open on this table")

        lines = self.resolve_foods(body.items)
        order_item = self.insert({
            "order_id": body.order_id,
            "table_id": body.table_id,
            **self._fields(list(lines.values())),
        })
        self.orders.promote_if_pending(body.order_id)
        return order_item

    def update(self, order_item_id: str, body: OrderItemUpdate) -> Dict[str, Any]:
        existing = self.get_or_404(order_item_id)
        updates = self.resolve_foods(body.items)

        lines: Lines = {line["food_id"]: self._reprice(line) for line in existing.get("lines") or []}
        lines.update(updates)
        return self.apply_update(order_item_id, self._fields(list(lines.values())))

    def list_by_order(self, order_id: str, pagination: Pagination) -> Page:
        self.orders.get_or_404(order_id)
        return self.list(pagination, {"order_id": order_id})

    def order_total(self, order_id: str) -> float:
        total = 0.0
        for item in self.collection.find({"order_id": order_id}, {"total_price": 1}):
            total += float(item.get("total_price") or 0)
        return round(total, 2)
