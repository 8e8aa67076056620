import pytest


@pytest.fixture
def records(api):
    menu = api.menu()
    food = api.food(menu["menu_id"])
    table = api.table(number=1, reserved=True)
    order = api.order(table["table_id"])
    order_item = api.order_item(order, {food["food_id"]: 1})
    invoice = api.create("/invoices", {"order_id": order["order_id"]})
    return {
        "menus": (menu, "menu_id"),
        "foods": (food, "food_id"),
        "orders": (order, "order_id"),
        "orderitems": (order_item, "order_item_id"),
        "invoices": (invoice, "invoice_id"),
    }


@pytest.mark.parametrize("resource", ["menus", "foods", "orders", "orderitems", "invoices"])
def test_get_then_delete(client, auth_headers, records, resource):
    record, id_field = records[resource]
    url = f"/{resource}/{record[id_field]}"

    r = client.get(url, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["data"][id_field] == record[id_field]
    assert "_id" not in r.json()["data"]

    r = client.delete(url, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert r.json()["data"][id_field] == record[id_field]

    assert client.get(url, headers=auth_headers).status_code == 404
    r = client.delete(url, headers=auth_headers)
    assert r.status_code == 404
    assert r.json()["success"] is False


@pytest.mark.parametrize("resource, message", [
    ("menus", "Menu not found"),
    ("foods", "Food item not found"),
    ("orders", "Order not found"),
    ("orderitems", "Order item not found"),
    ("invoices", "Invoice not found"),
])
def test_unknown_id(client, auth_headers, resource, message):
    r = client.get(f"/{resource}/missing", headers=auth_headers)
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": message}
