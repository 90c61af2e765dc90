from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from foodhub.api.routers import carts as carts_router
from foodhub.api.routers import orders as orders_router
from foodhub.main import create_app

CUSTOMER = {"X-Principal-Id": "cust-1", "X-Principal-Role": "customer"}
PARTNER_1 = {"X-Principal-Id": "1", "X-Principal-Role": "partner"}

ORDER_PAYLOAD = {
    "session_id": "web-1",
    "customer": {"name": "Jan Kowalski", "phone": "600100200"},
    "delivery_address": {"street": "Marszalkowska 1", "city": "Warszawa", "postal_code": "00-001"},
    "payment_method": "card",
}


@pytest.fixture
def client(carts, orders):
    app = create_app(with_lifespan=False)
    app.dependency_overrides[carts_router.get_service] = lambda: carts
    app.dependency_overrides[orders_router.get_service] = lambda: orders
    with TestClient(app) as c:
        yield c


def build_cart(client):
    assert client.post("/carts/web-1/items", json={"menu_item_id": 1, "quantity": 2}).status_code == 200
    assert client.post("/carts/web-1/items", json={"menu_item_id": 3, "quantity": 1}).status_code == 200
    return client.post("/carts/web-1/delivery", json={"postal_code": "00-001"})


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_cart_endpoints(client):
    resp = build_cart(client)
    assert resp.status_code == 200
    totals = resp.json()["totals"]
    assert Decimal(totals["grand_total"]) == Decimal("39.49")

    cart = client.get("/carts/web-1").json()
    line_id = cart["partners"][0]["items"][0]["line_item_id"]

    resp = client.patch(f"/carts/web-1/items/{line_id}", json={"quantity": 3})
    assert Decimal(resp.json()["totals"]["items_total"]) == Decimal("45.00")

    assert client.get("/carts/web-1/validation").json()["is_valid"] is True

    resp = client.delete(f"/carts/web-1/items/{line_id}")
    assert resp.json()["partners_count"] == 1

    assert client.delete("/carts/web-1").status_code == 204
    assert client.get("/carts/web-1").status_code == 404


def test_domain_errors_map_to_http(client):
    resp = client.post("/carts/web-1/items", json={"menu_item_id": 999, "quantity": 1})
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"

    resp = client.post("/carts/web-1/items", json={"menu_item_id": 4, "quantity": 1})
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_input"

    # walidacja schematu
    assert client.post("/carts/web-1/items", json={"menu_item_id": 1, "quantity": 0}).status_code == 422


def test_order_flow_over_http(client):
    build_cart(client)

    resp = client.post("/orders/", json=ORDER_PAYLOAD, headers=CUSTOMER)
    assert resp.status_code == 201
    order = resp.json()
    assert order["overall_status"] == "pending"
    assert Decimal(order["total_price"]) == Decimal("41.24")

    resp = client.post(
        f"/orders/{order['id']}/status",
        json={"partner_id": 1, "status": "accepted"},
        headers=PARTNER_1,
    )
    assert resp.status_code == 200
    assert resp.json()["overall_status"] == "accepted"

    resp = client.post(
        f"/orders/{order['id']}/status",
        json={"partner_id": 1, "status": "pending"},
        headers=PARTNER_1,
    )
    assert resp.status_code == 403

    resp = client.post(
        f"/orders/{order['id']}/status",
        json={"partner_id": 1, "status": "ready"},
        headers=PARTNER_1,
    )
    assert resp.status_code == 409
    assert resp.json()["details"] == {"current": "accepted", "requested": "ready"}

    listed = client.get("/orders/", headers=CUSTOMER).json()
    assert [o["id"] for o in listed] == [order["id"]]

    stranger = {"X-Principal-Id": "cust-2", "X-Principal-Role": "customer"}
    assert client.get(f"/orders/{order['id']}", headers=stranger).status_code == 403

    resp = client.post(f"/orders/{order['id']}/cancel", json={"reason": "changed my mind"}, headers=CUSTOMER)
    assert resp.status_code == 200
    assert resp.json()["cancellation"]["reason"] == "changed my mind"


def test_drift_is_a_conflict(client, db):
    from foodhub.data.models import MenuItemModel

    build_cart(client)
    db.get(MenuItemModel, 3).price = Decimal("16.00")
    db.commit()

    resp = client.post("/orders/", json=ORDER_PAYLOAD, headers=CUSTOMER)
    assert resp.status_code == 409
    assert resp.json()["code"] == "price_or_availability_drift"


def test_principal_headers_are_required(client):
    assert client.get("/orders/").status_code == 422
    resp = client.get("/orders/", headers={"X-Principal-Id": "x", "X-Principal-Role": "wizard"})
    assert resp.status_code == 401
