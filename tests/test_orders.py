import pytest


@pytest.fixture
def foods(api):
    menu = api.menu()
    return {
        "burger": api.food(menu["menu_id"], name="Burger", price=12.5),
        "fries": api.food(menu["menu_id"], name="Fries", price=4.0),
    }


def test_order_requires_reserved_table(api, client, auth_headers):
    table = api.table(number=1)
    r = api.post("/orders", {"table_id": table["table_id"]})
    assert r.status_code == 400
    assert r.json()["message"] == "Table is not reserved. Reserve the table first."
    assert client.get("/orders", headers=auth_headers).json()["pagination"]["total_orders"] == 0

    r = api.post("/orders", {"table_id": "missing"})
    assert r.status_code == 404
    assert r.json()["message"] == "Invalid table ID, table not found"


def test_order_defaults(api, user):
    table = api.table(number=1, reserved=True)
    order = api.order(table["table_id"])
    assert order["status"] == "Order Pending"
    assert order["user_id"] == user["user_id"]
    assert order["order_date"]


def test_order_for_unknown_user(api):
    table = api.table(number=1, reserved=True)
    r = api.post("/orders", {"table_id": table["table_id"], "user_id": "ghost"})
    assert r.status_code == 404
    assert r.json()["message"] == "Invalid user ID, user not found"


def test_order_status_update(api, client, auth_headers):
    table = api.table(number=1, reserved=True)
    order = api.order(table["table_id"])
    url = f"/orders/{order['order_id']}/status"

    r = client.patch(url, json={"status": "Order Served"}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "Order Served"

    assert client.patch(url, json={"status": "Eaten"}, headers=auth_headers).status_code == 400
    assert client.patch("/orders/missing/status", json={"status": "Order Served"}, headers=auth_headers).status_code == 404


def test_order_lists_by_table_and_user(api, client, auth_headers, user):
    first = api.table(number=1, reserved=True)
    second = api.table(number=2, reserved=True)
    api.order(first["table_id"])
    api.order(second["table_id"])

    r = client.get(f"/orders/table/{first['table_id']}", headers=auth_headers)
    assert r.json()["pagination"]["total_orders"] == 1

    r = client.get(f"/orders/user/{user['user_id']}", headers=auth_headers)
    assert r.json()["pagination"]["total_orders"] == 2

    r = client.get("/orders/user/nobody", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["data"] == []


def test_order_item_rejects_unknown_food(api, client, auth_headers, foods):
    table = api.table(number=1, reserved=True)
    order = api.order(table["table_id"])

    r = api.post("/orderitems", {
        "order_id": order["order_id"],
        "table_id": table["table_id"],
        "items": {foods["burger"]["food_id"]: 1, "bogus": 2},
    })
    assert r.status_code == 400
    assert r.json()["message"] == "Food items not found: bogus"
    assert client.get("/orderitems", headers=auth_headers).json()["pagination"]["total_orderitems"] == 0


def test_order_item_totals_and_promotion(api, client, auth_headers, foods):
    table = api.table(number=1, reserved=True)
    order = api.order(table["table_id"])

    item = api.order_item(order, {foods["burger"]["food_id"]: 2, foods["fries"]["food_id"]: 3})
    assert item["items"] == {"Burger": 2, "Fries": 3}
    assert sorted((l["name"], l["unit_price"], l["quantity"]) for l in item["lines"]) == [
        ("Burger", 12.5, 2),
        ("Fries", 4.0, 3),
    ]
    assert item["total_price"] == 37.0

    r = client.get(f"/orders/{order['order_id']}", headers=auth_headers)
    assert r.json()["data"]["status"] == "Order Placed"


def test_order_item_table_must_match(api, foods):
    table = api.table(number=1, reserved=True)
    other = api.table(number=2, reserved=True)
    order = api.order(table["table_id"])

    r = api.post("/orderitems", {
        "order_id": order["order_id"],
        "table_id": other["table_id"],
        "items": {foods["burger"]["food_id"]: 1},
    })
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid table ID for this order"

    r = api.post("/orderitems", {
        "order_id": "missing",
        "table_id": table["table_id"],
        "items": {foods["burger"]["food_id"]: 1},
    })
    assert r.status_code == 404


def test_one_active_order_per_table(api, foods):
    table = api.table(number=1, reserved=True)
    first = api.order(table["table_id"])
    api.order_item(first, {foods["burger"]["food_id"]: 1})

    second = api.order(table["table_id"])
    r = api.post("/orderitems", {
        "order_id": second["order_id"],
        "table_id": table["table_id"],
        "items": {foods["fries"]["food_id"]: 1},
    })
    assert r.status_code == 409
    assert r.json()["message"] == "Another active order is already open on this table"


def test_order_item_update_and_listing(api, client, auth_headers, foods):
    table = api.table(number=1, reserved=True)
    order = api.order(table["table_id"])
    item = api.order_item(order, {foods["burger"]["food_id"]: 2, foods["fries"]["food_id"]: 3})

    r = client.patch(
        f"/orderitems/{item['order_item_id']}",
        json={"items": {foods["fries"]["food_id"]: 1}},
        headers=auth_headers,
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["items"] == {"Burger": 2, "Fries": 1}
    assert data["total_price"] == 29.0

    api.order_item(order, {foods["fries"]["food_id"]: 2})
    r = client.get(f"/orderitems/{order['order_id']}/order", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["pagination"]["total_orderitems"] == 2

    assert client.get("/orderitems/missing/order", headers=auth_headers).status_code == 404


def test_order_moves_to_free_reserved_table(api, client, auth_headers):
    first = api.table(number=1, reserved=True)
    second = api.table(number=2, reserved=True)
    order = api.order(first["table_id"])
    api.order(second["table_id"])

    r = client.patch(f"/orders/{order['order_id']}", json={"table_id": second["table_id"]}, headers=auth_headers)
    assert r.status_code == 409
    assert r.json()["message"] == "Table is already assigned to another order."

    third = api.table(number=3, reserved=True)
    r = client.patch(f"/orders/{order['order_id']}", json={"table_id": third["table_id"]}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["data"]["table_id"] == third["table_id"]


def test_same_named_foods_from_different_menus_keep_their_prices(api):
    dinner = api.menu(name="Dinner")
    lunch = api.menu(name="Lunch")
    dinner_burger = api.food(dinner["menu_id"], name="Burger", price=12.5)
    lunch_burger = api.food(lunch["menu_id"], name="Burger", price=9.0)
    table = api.table(number=1, reserved=True)
    order = api.order(table["table_id"])

    item = api.order_item(order, {dinner_burger["food_id"]: 1, lunch_burger["food_id"]: 1})
    assert item["items"] == {"Burger": 2}
    assert item["total_price"] == 21.5
    assert len(item["lines"]) == 2


def test_order_item_update_uses_current_prices(api, client, auth_headers, foods):
    table = api.table(number=1, reserved=True)
    order = api.order(table["table_id"])
    item = api.order_item(order, {foods["burger"]["food_id"]: 2, foods["fries"]["food_id"]: 3})

    r = client.patch(f"/foods/{foods['fries']['food_id']}", json={"price": 5.0}, headers=auth_headers)
    assert r.status_code == 200

    r = client.patch(
        f"/orderitems/{item['order_item_id']}",
        json={"items": {foods["burger"]["food_id"]: 1}},
        headers=auth_headers,
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["items"] == {"Burger": 1, "Fries": 3}
    assert data["total_price"] == 27.5


def test_order_item_update_rejects_unknown_food(api, client, auth_headers, foods):
    table = api.table(number=1, reserved=True)
    order = api.order(table["table_id"])
    item = api.order_item(order, {foods["burger"]["food_id"]: 1})

    r = client.patch(
        f"/orderitems/{item['order_item_id']}",
        json={"items": {"bogus": 1, "gone": 2}},
        headers=auth_headers,
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Food items not found: bogus, gone"
