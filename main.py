"""
Hotel management API.

Public routes: POST /users/signup, POST /users/login, GET /, GET /health.
Every other route requires an `Authorization: Bearer <token>` header.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import Settings, get_settings, setup_logging
from database import connect, ensure_indexes, ping
from errors import AuthError, UpstreamError, register_exception_handlers
from schemas import (
    FoodCreate, FoodUpdate,
    InvoiceCreate, InvoiceUpdate, PaymentStatus,
    LoginBody, SignupBody,
    MenuCreate, MenuUpdate,
    OrderCreate, OrderStatusUpdate, OrderUpdate,
    OrderItemCreate, OrderItemUpdate,
    TableCreate, TableStatus, TableUpdate,
)
from security import Claims
from services import Pagination, Services, build_services

setup_logging()
logger = logging.getLogger(__name__)


# ---------------------- Helpers ----------------------
def ok(message: str, data: Any = None, pagination: Optional[Dict[str, int]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    if pagination is not None:
        body["pagination"] = pagination
    return body


def get_services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise UpstreamError("Database not configured")
    return services


def get_pagination(
    page: Optional[str] = Query(None),
    record_per_page: Optional[str] = Query(None, alias="recordPerPage"),
) -> Pagination:
    return Pagination.from_query(page, record_per_page)


# ---------------------- Auth ----------------------
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    services: Services = Depends(get_services),
) -> Claims:
    if creds is None:
        if not request.headers.get("Authorization"):
            raise AuthError("No Authorization header provided")
        raise AuthError("Invalid Authorization format")
    if " " in creds.credentials:
        raise AuthError("Invalid Authorization format")
    return services.tokens.validate(creds.credentials)


public = APIRouter()
protected = APIRouter(dependencies=[Depends(get_current_user)])


# ---------------------- Users ----------------------
@public.post("/users/signup", status_code=201)
def signup(body: SignupBody, services: Services = Depends(get_services)):
    return ok("User created successfully", services.users.signup(body))


@public.post("/users/login")
def login(body: LoginBody, services: Services = Depends(get_services)):
    return ok("User logged-in successfully", services.users.login(body))


@protected.post("/users/logout")
def logout(claims: Claims = Depends(get_current_user), services: Services = Depends(get_services)):
    services.users.logout(claims)
    return ok("User logged out successfully")


@protected.get("/users")
def list_users(pagination: Pagination = Depends(get_pagination), services: Services = Depends(get_services)):
    users, meta = services.users.list(pagination)
    return ok("Users retrieved successfully", users, meta)


@protected.get("/users/{user_id}")
def get_user(user_id: str, services: Services = Depends(get_services)):
    return ok("User retrieved successfully", services.users.get(user_id))


# ---------------------- Tables ----------------------
@protected.get("/tables")
def list_tables(pagination: Pagination = Depends(get_pagination), services: Services = Depends(get_services)):
    tables, meta = services.tables.list(pagination)
    return ok("Tables retrieved successfully", tables, meta)


@protected.post("/tables", status_code=201)
def create_table(body: TableCreate, services: Services = Depends(get_services)):
    return ok("Table created successfully", services.tables.create(body))


@protected.get("/tables/reserved")
def list_reserved_tables(pagination: Pagination = Depends(get_pagination), services: Services = Depends(get_services)):
    tables, meta = services.tables.list_by_status(TableStatus.RESERVED, pagination)
    return ok("Reserved tables retrieved successfully", tables, meta)


@protected.get("/tables/unreserved")
def list_unreserved_tables(pagination: Pagination = Depends(get_pagination), services: Services = Depends(get_services)):
    tables, meta = services.tables.list_by_status(TableStatus.NOT_RESERVED, pagination)
    return ok("Unreserved tables retrieved successfully", tables, meta)


@protected.put("/tables/reserve/{table_id}")
def reserve_table(table_id: str, services: Services = Depends(get_services)):
    return ok("Table reserved successfully", services.tables.reserve(table_id))


@protected.put("/tables/unreserve/{table_id}")
def unreserve_table(table_id: str, services: Services = Depends(get_services)):
    return ok("Table unreserved successfully", services.tables.unreserve(table_id))


@protected.get("/tables/{table_id}")
def get_table(table_id: str, services: Services = Depends(get_services)):
    return ok("Table retrieved successfully", services.tables.get(table_id))


@protected.patch("/tables/{table_id}")
def update_table(table_id: str, body: TableUpdate, services: Services = Depends(get_services)):
    return ok("Table updated successfully", services.tables.update(table_id, body))


@protected.delete("/tables/{table_id}")
def delete_table(table_id: str, services: Services = Depends(get_services)):
    return ok("Table deleted successfully", services.tables.delete(table_id))


# ---------------------- Menus ----------------------
@protected.get("/menus")
def list_menus(pagination: Pagination = Depends(get_pagination), services: Services = Depends(get_services)):
    menus, meta = services.menus.list(pagination)
    return ok("Menus retrieved successfully", menus, meta)


@protected.post("/menus", status_code=201)
def create_menu(body: MenuCreate, services: Services = Depends(get_services)):
    return ok("Menu created successfully", services.menus.create(body))


@protected.get("/menus/{menu_id}")
def get_menu(menu_id: str, services: Services = Depends(get_services)):
    return ok("Menu retrieved successfully", services.menus.get(menu_id))


@protected.patch("/menus/{menu_id}")
def update_menu(menu_id: str, body: MenuUpdate, services: Services = Depends(get_services)):
    return ok("Menu updated successfully", services.menus.update(menu_id, body))


@protected.delete("/menus/{menu_id}")
def delete_menu(menu_id: str, services: Services = Depends(get_services)):
    return ok("Menu deleted successfully", services.menus.delete(menu_id))


# ---------------------- Foods ----------------------
@protected.get("/foods")
def list_foods(pagination: Pagination = Depends(get_pagination), services: Services = Depends(get_services)):
    foods, meta = services.foods.list(pagination)
    return ok("Foods retrieved successfully", foods, meta)


@protected.post("/foods", status_code=201)
def create_food(body: FoodCreate, services: Services = Depends(get_services)):
    return ok("Food item created successfully", services.foods.create(body))


@protected.get("/foods/menu/{menu_id}")
def list_foods_by_menu(menu_id: str, pagination: Pagination = Depends(get_pagination), services: Services = Depends(get_services)):
    foods, meta = services.foods.list_by_menu(menu_id, pagination)
    return ok("Food items retrieved successfully", foods, meta)


@protected.get("/foods/{food_id}")
def get_food(food_id: str, services: Services = Depends(get_services)):
    return ok("Food item retrieved successfully", services.foods.get(food_id))


@protected.patch("/foods/{food_id}")
def update_food(food_id: str, body: FoodUpdate, services: Services = Depends(get_services)):
    return ok("Food item updated successfully", services.foods.update(food_id, body))


@protected.delete("/foods/{food_id}")
def delete_food(food_id: str, services: Services = Depends(get_services)):
    return ok("Food item deleted successfully", services.foods.delete(food_id))


# ---------------------- Orders ----------------------
@protected.get("/orders")
def list_orders(pagination: Pagination = Depends(get_pagination), services: Services = Depends(get_services)):
    orders, meta = services.orders.list(pagination)
    return ok("Orders retrieved successfully", orders, meta)


@protected.post("/orders", status_code=201)
def create_order(body: OrderCreate, claims: Claims = Depends(get_current_user), services: Services = Depends(get_services)):
    return ok("Order created successfully", services.orders.create(body, claims))


@protected.get("/orders/table/{table_id}")
def list_orders_by_table(table_id: str, pagination: Pagination = Depends(get_pagination), services: Services = Depends(get_services)):
    orders, meta = services.orders.list_by_table(table_id, pagination)
    return ok("Orders retrieved successfully", orders, meta)


@protected.get("/orders/user/{user_id}")
def list_orders_by_user(user_id: str, pagination: Pagination = Depends(get_pagination), services: Services = Depends(get_services)):
    orders, meta = services.orders.list_by_user(user_id, pagination)
    return ok("Orders retrieved successfully", orders, meta)


@protected.get("/orders/{order_id}")
def get_order(order_id: str, services: Services = Depends(get_services)):
    return ok("Order retrieved successfully", services.orders.get(order_id))


@protected.patch("/orders/{order_id}")
def update_order(order_id: str, body: OrderUpdate, services: Services = Depends(get_services)):
    return ok("Order updated successfully", services.orders.update(order_id, body))


@protected.patch("/orders/{order_id}/status")
def update_order_status(order_id: str, body: OrderStatusUpdate, services: Services = Depends(get_services)):
    return ok("Order status updated successfully", services.orders.update_status(order_id, body))


@protected.delete("/orders/{order_id}")
def delete_order(order_id: str, services: Services = Depends(get_services)):
    return ok("Order deleted successfully", services.orders.delete(order_id))


# ---------------------- Order items ----------------------
@protected.get("/orderitems")
def list_order_items(pagination: Pagination = Depends(get_pagination), services: Services = Depends(get_services)):
    items, meta = services.order_items.list(pagination)
    return ok("Order items retrieved successfully", items, meta)


@protected.post("/orderitems", status_code=201)
def create_order_item(body: OrderItemCreate, services: Services = Depends(get_services)):
    return ok("Order item created successfully", services.order_items.create(body))


@protected.get("/orderitems/{order_id}/order")
def list_order_items_by_order(order_id: str, pagination: Pagination = Depends(get_pagination), services: Services = Depends(get_services)):
    items, meta = services.order_items.list_by_order(order_id, pagination)
    return ok("Order items retrieved successfully", items, meta)


@protected.get("/orderitems/{order_item_id}")
def get_order_item(order_item_id: str, services: Services = Depends(get_services)):
    return ok("Order item retrieved successfully", services.order_items.get(order_item_id))


@protected.patch("/orderitems/{order_item_id}")
def update_order_item(order_item_id: str, body: OrderItemUpdate, services: Services = Depends(get_services)):
    return ok("Order item updated successfully", services.order_items.update(order_item_id, body))


@protected.delete("/orderitems/{order_item_id}")
def delete_order_item(order_item_id: str, services: Services = Depends(get_services)):
    return ok("Order item deleted successfully", services.order_items.delete(order_item_id))


# ---------------------- Invoices ----------------------
@protected.get("/invoices")
def list_invoices(pagination: Pagination = Depends(get_pagination), services: Services = Depends(get_services)):
    invoices, meta = services.invoices.list(pagination)
    return ok("Invoices retrieved successfully", invoices, meta)


@protected.post("/invoices", status_code=201)
def create_invoice(body: InvoiceCreate, services: Services = Depends(get_services)):
    return ok("Invoice created successfully", services.invoices.create(body))


@protected.get("/invoices/status/pending")
def list_pending_invoices(pagination: Pagination = Depends(get_pagination), services: Services = Depends(get_services)):
    invoices, meta = services.invoices.list_by_status(PaymentStatus.PENDING, pagination)
    return ok("Pending invoices retrieved successfully", invoices, meta)


@protected.get("/invoices/status/paid")
def list_paid_invoices(pagination: Pagination = Depends(get_pagination), services: Services = Depends(get_services)):
    invoices, meta = services.invoices.list_by_status(PaymentStatus.PAID, pagination)
    return ok("Paid invoices retrieved successfully", invoices, meta)


@protected.get("/invoices/order/{order_id}")
def get_invoice_by_order(order_id: str, services: Services = Depends(get_services)):
    return ok("Invoice retrieved successfully", services.invoices.get_by_order(order_id))


@protected.get("/invoices/user/{user_id}")
def list_invoices_by_user(user_id: str, pagination: Pagination = Depends(get_pagination), services: Services = Depends(get_services)):
    invoices, meta = services.invoices.list_by_user(user_id, pagination)
    return ok("Invoices retrieved successfully", invoices, meta)


@protected.get("/invoices/{invoice_id}")
def get_invoice(invoice_id: str, services: Services = Depends(get_services)):
    return ok("Invoice retrieved successfully", services.invoices.get(invoice_id))


@protected.patch("/invoices/{invoice_id}")
def update_invoice(invoice_id: str, body: InvoiceUpdate, services: Services = Depends(get_services)):
    return ok("Invoice updated successfully", services.invoices.update(invoice_id, body))


@protected.delete("/invoices/{invoice_id}")
def delete_invoice(invoice_id: str, services: Services = Depends(get_services)):
    return ok("Invoice deleted successfully", services.invoices.delete(invoice_id))


# ---------------------- Misc ----------------------
@public.get("/")
def read_root(request: Request):
    return {"message": request.app.title}


@public.get("/health")
def health(request: Request):
    db: Optional[Database] = getattr(request.app.state, "db", None)
    response = {"backend": "running", "database": "not configured"}
    if db is None:
        return response
    try:
        ping(db)
        response["database"] = "connected"
    except PyMongoError as e:
        logger.warning("Health check could not reach the database: %s", e)
        response["database"] = "unreachable"
    return response


# ---------------------- App ----------------------
def create_app(db: Optional[Database] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    With an explicit `db` the services are wired immediately (tests pass an
    in-memory database here). Otherwise the connection is opened on startup,
    and a failure to reach the database aborts the startup.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if getattr(app.state, "services", None) is None:
            owned = connect(settings)
            try:
                ping(owned)
                ensure_indexes(owned)
                logger.info("Connected to MongoDB database %r", owned.name)
            except PyMongoError:
                logger.exception("Could not connect to MongoDB at startup")
                owned.client.close()
                raise
            app.state.db = owned
            app.state.services = build_services(owned, settings)
        yield
        if owned is not None:
            owned.client.close()

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    if db is not None:
        app.state.db = db
        app.state.services = build_services(db, settings)

    app.include_router(public)
    app.include_router(protected)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
