"""Entity services, wired together over one database handle."""

from dataclasses import dataclass

from pymongo.database import Database

from config import Settings
from database import USERS
from security import TokenService

from .base import Pagination
from .foods import FoodService
from .invoices import InvoiceService
from .menus import MenuService
from .order_items import OrderItemService
from .orders import OrderService
from .tables import TableService
from .users import UserService


@dataclass
class Services:
    tokens: TokenService
    users: UserService
    tables: TableService
    menus: MenuService
    foods: FoodService
    orders: OrderService
    order_items: OrderItemService
    invoices: InvoiceService


def build_services(db: Database, settings: Settings) -> Services:
    tokens = TokenService(db[USERS], settings)
    users = UserService(db, tokens, settings)
    tables = TableService(db)
    menus = MenuService(db)
    foods = FoodService(db, menus)
    orders = OrderService(db, tables, users)
    order_items = OrderItemService(db, orders, foods)
    invoices = InvoiceService(db, orders, order_items, users)
    return Services(
        tokens=tokens,
        users=users,
        tables=tables,
        menus=menus,
        foods=foods,
        orders=orders,
        order_items=order_items,
        invoices=invoices,
    )


__all__ = ["Pagination", "Services", "build_services"]
