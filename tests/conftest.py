import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import ensure_indexes
from main import create_app


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        secret_key="test-secret",
        # cheap hashing keeps the suite fast
        password_hash_method="pbkdf2:sha256:1000",
    )


@pytest.fixture
def db():
    client = mongomock.MongoClient()
    database = client["hotel_test"]
    ensure_indexes(database)
    yield database
    client.close()


@pytest.fixture
def app(db, settings):
    return create_app(db=db, settings=settings)


@pytest.fixture
def client(app):
    return TestClient(app)


def signup(client, email="guest@example.com", password="secret123", **extra):
    payload = {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": email,
        "password": password,
        "phone": "5550100123",
        **extra,
    }
    return client.post("/users/signup", json=payload)


@pytest.fixture
def register(client):
    def _register(email="guest@example.com", password="secret123", **extra):
        return signup(client, email, password, **extra)
    return _register


@pytest.fixture
def user(client):
    r = signup(client)
    assert r.status_code == 201, r.text
    return r.json()["data"]


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {user['token']}"}


class Api:
    """Shortcuts for building the records most tests need."""

    def __init__(self, client, headers):
        self.client = client
        self.headers = headers

    def post(self, path, payload):
        return self.client.post(path, json=payload, headers=self.headers)

    def create(self, path, payload):
        r = self.post(path, payload)
        assert r.status_code == 201, r.text
        return r.json()["data"]

    def table(self, number=None, guests=4, reserved=False):
        payload = {"number_of_guests": guests}
        if number is not None:
            payload["table_number"] = number
        table = self.create("/tables", payload)
        if reserved:
            r = self.client.put(f"/tables/reserve/{table['table_id']}", headers=self.headers)
            assert r.status_code == 200, r.text
            table = r.json()["data"]
        return table

    def menu(self, name="Dinner", category="Main"):
        return self.create("/menus", {"name": name, "category": category})

    def food(self, menu_id, name="Burger", price=12.5):
        return self.create("/foods", {"name": name, "price": price, "menu_id": menu_id})

    def order(self, table_id, **extra):
        return self.create("/orders", {"table_id": table_id, **extra})

    def order_item(self, order, items):
        return self.create("/orderitems", {
            "order_id": order["order_id"],
            "table_id": order["table_id"],
            "items": items,
        })


@pytest.fixture
def api(client, auth_headers):
    return Api(client, auth_headers)
