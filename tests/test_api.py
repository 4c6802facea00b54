from types import SimpleNamespace

import pytest
import stripe
from fastapi.testclient import TestClient

from aroma.main import create_app

ADMIN = ("admin", "secret")


def _order(client, lines, **extra):
    return client.post("/api/orders", json={"items": lines, "orderType": "dine-in", **extra})


def test_health_and_index(client):
    assert client.get("/api/health").json() == {"ok": True}
    assert client.get("/").json()["endpoints"]["menu"] == "/api/menu"


def test_menu_lists_seeded_categories_in_order(client):
    body = client.get("/api/menu").json()

    assert [c["key"] for c in body["categories"]] == ["burgers", "sides", "drinks"]
    assert [i["name"] for i in body["menu"]["burgers"]] == ["Classic Burger", "Veggie Burger", "Chicken Burger"]
    first = body["menu"]["burgers"][0]
    assert first["price"] == 8.5
    assert first["prepTime"] == "10 min"
    assert first["image"].startswith("https://")


def test_menu_hides_hidden_entries(client):
    client.put("/admin/items/2", json={"hidden": True}, auth=ADMIN)
    client.put("/admin/categories/3", json={"hidden": True}, auth=ADMIN)

    body = client.get("/api/menu").json()

    assert [i["id"] for i in body["menu"]["burgers"]] == [1, 3]
    assert "drinks" not in body["menu"]
    assert len(client.get("/admin/items", auth=ADMIN).json()) == 7


def test_public_settings_shape(client):
    body = client.get("/api/settings").json()

    assert body == {
        "brandName": "AROMA",
        "logoUrl": "",
        "colors": {"primary": "#f97316", "secondary": "#ffffff"},
        "backgroundUrl": "",
        "fontFamily": "system-ui, sans-serif",
        "currency": "EUR",
    }
    assert client.get("/api/settings").headers["cache-control"].startswith("no-store")


def test_place_order_returns_total(client):
    response = _order(client, [{"id": 1, "qty": 2}, {"id": 2, "qty": 1}])

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 24.0

    order = client.get(f"/api/orders/{body['orderId']}").json()
    assert order["status"] == "received"
    assert [(line["name"], line["quantity"]) for line in order["items"]] == [
        ("Classic Burger", 2),
        ("Veggie Burger", 1),
    ]


def test_unknown_item_rejected_without_records(client):
    response = _order(client, [{"id": 1, "qty": 1}, {"id": 999, "qty": 1}])

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid item 999"
    assert client.get("/admin/orders", auth=ADMIN).json() == []


@pytest.mark.parametrize(
    "payload",
    [
        {"items": [], "orderType": "dine-in"},
        {"items": [{"id": 1}], "orderType": "delivery"},
        {"items": [{"id": 1}]},
        {"items": "burger", "orderType": "dine-in"},
    ],
)
def test_malformed_orders_are_bad_requests(client, payload):
    assert client.post("/api/orders", json=payload).status_code == 400


def test_table_token_binds_order_to_table(client):
    table = client.get("/admin/tables", auth=ADMIN).json()[2]

    body = _order(client, [{"id": 6}], tableToken=table["token"]).json()

    order = client.get(f"/api/orders/{body['orderId']}").json()
    assert order["table_number"] == table["number"]
    assert _order(client, [{"id": 6}], tableToken="t-forged").status_code == 400


def test_confirm_then_complete(client):
    order_id = _order(client, [{"id": 4}]).json()["orderId"]

    assert client.post(f"/api/orders/{order_id}/complete").status_code == 409
    assert client.post(f"/api/orders/{order_id}/confirm").json() == {"ok": True}
    assert client.post(f"/api/orders/{order_id}/complete").json() == {"ok": True}
    assert client.get(f"/api/orders/{order_id}").json()["status"] == "completed"


def test_unknown_order_is_404(client):
    assert client.post("/api/orders/999/confirm").status_code == 404
    assert client.get("/api/orders/999").status_code == 404


def test_top_items_counts_confirmed_orders(client):
    confirmed = _order(client, [{"id": 1, "qty": 2}, {"id": 6, "qty": 3}]).json()["orderId"]
    _order(client, [{"id": 7, "qty": 10}])
    client.post(f"/api/orders/{confirmed}/confirm")

    assert client.get("/api/analytics/top-items").json() == [
        {"item_id": 1, "name": "Classic Burger", "qty": 2, "sales": 17.0},
        {"item_id": 6, "name": "Cola", "qty": 3, "sales": 6.0},
    ]


def test_stripe_intent_requires_configuration(client):
    response = client.post("/api/payments/stripe-intent", json={"amount": 12.5})

    assert response.status_code == 400
    assert response.json()["detail"] == "Stripe not configured"


@pytest.fixture
def stripe_client(settings):
    settings = settings.model_copy(update={"stripe_secret": "sk_test_123"})
    with TestClient(create_app(settings)) as client:
        yield client


def test_stripe_intent_created_in_cents(stripe_client, monkeypatch):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(client_secret="pi_secret_abc")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)

    response = stripe_client.post("/api/payments/stripe-intent", json={"amount": 24.0})

    assert response.json() == {"clientSecret": "pi_secret_abc"}
    assert calls[0]["amount"] == 2400
    assert calls[0]["currency"] == "eur"
    assert calls[0]["api_key"] == "sk_test_123"


def test_stripe_errors_are_not_leaked(stripe_client, monkeypatch):
    def failing_create(**kwargs):
        raise stripe.StripeError("card_declined: internal detail")

    monkeypatch.setattr(stripe.PaymentIntent, "create", failing_create)

    response = stripe_client.post("/api/payments/stripe-intent", json={"amount": 5, "currency": "USD"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Payment provider error"


# -------------------------
# Admin
# -------------------------

def test_admin_requires_basic_auth(client):
    missing = client.get("/admin")
    wrong = client.get("/admin", auth=("admin", "nope"))

    assert missing.status_code == 401
    assert wrong.status_code == 401
    assert wrong.headers["www-authenticate"].startswith("Basic")


def test_dashboard_counts(client):
    first = _order(client, [{"id": 1}]).json()["orderId"]
    _order(client, [{"id": 2}])
    client.post(f"/api/orders/{first}/confirm")

    assert client.get("/admin", auth=ADMIN).json() == {"pending": 1, "confirmed": 1, "totalSales": 8.5}


def test_admin_item_crud(client):
    created = client.post(
        "/admin/items",
        json={"category_id": 2, "name": "Salad", "price": 5.5, "sort_order": 3},
        auth=ADMIN,
    )
    assert created.status_code == 201
    item = created.json()
    assert item["id"] == 8

    updated = client.put(f"/admin/items/{item['id']}", json={"price": 6.0}, auth=ADMIN).json()
    assert updated["price"] == 6.0
    assert updated["name"] == "Salad"

    listing = client.get("/admin/items", auth=ADMIN).json()
    assert listing[-3]["name"] == "Salad"
    assert listing[-3]["category_name"] == "Sides"

    assert client.delete(f"/admin/items/{item['id']}", auth=ADMIN).status_code == 204
    assert client.delete(f"/admin/items/{item['id']}", auth=ADMIN).status_code == 404
    assert client.put("/admin/items/999", json={"name": "x"}, auth=ADMIN).status_code == 404


def test_admin_item_validation(client):
    negative = client.post("/admin/items", json={"category_id": 1, "name": "Bad", "price": -1}, auth=ADMIN)
    orphan = client.post("/admin/items", json={"category_id": 99, "name": "Orphan", "price": 1}, auth=ADMIN)

    assert negative.status_code == 400
    assert orphan.status_code == 400


def test_admin_categories(client):
    created = client.post("/admin/categories", json={"name": "Desserts", "icon": "🍰", "sort_order": 4}, auth=ADMIN)
    assert created.json()["key"] == "desserts"

    category_id = created.json()["id"]
    client.post("/admin/items", json={"category_id": category_id, "name": "Cake", "price": 4}, auth=ADMIN)
    assert client.delete(f"/admin/categories/{category_id}", auth=ADMIN).status_code == 204

    names = [item["name"] for item in client.get("/admin/items", auth=ADMIN).json()]
    assert "Cake" not in names


def test_admin_settings_update(client):
    response = client.put("/admin/settings", json={"brand_name": "Bistro", "primary_color": "#000000"}, auth=ADMIN)

    assert response.json()["brand_name"] == "Bistro"
    public = client.get("/api/settings").json()
    assert public["brandName"] == "Bistro"
    assert public["colors"]["primary"] == "#000000"


def test_admin_tables_carry_qr_codes(client):
    tables = client.get("/admin/tables", auth=ADMIN).json()

    assert len(tables) == 10
    assert len({table["token"] for table in tables}) == 10
    first = tables[0]
    assert first["url"] == f"https://menu.example.com/?table=1&token={first['token']}"
    assert first["qr"].startswith("data:image/svg+xml;base64,")


def test_admin_create_table(client):
    created = client.post("/admin/tables", json={"number": "Patio"}, auth=ADMIN)

    assert created.status_code == 201
    assert created.json()["number"] == "Patio"
    assert client.post("/admin/tables", json={"number": "Patio"}, auth=ADMIN).status_code == 400


def test_admin_order_status(client):
    order_id = _order(client, [{"id": 3}]).json()["orderId"]

    cancelled = client.post(f"/admin/orders/{order_id}/status", json={"status": "cancelled"}, auth=ADMIN)
    assert cancelled.json()["status"] == "cancelled"

    again = client.post(f"/admin/orders/{order_id}/status", json={"status": "confirmed"}, auth=ADMIN)
    assert again.status_code == 409

    bogus = client.post(f"/admin/orders/{order_id}/status", json={"status": "eaten"}, auth=ADMIN)
    assert bogus.status_code == 400

    orders = client.get("/admin/orders", auth=ADMIN).json()
    assert orders[0]["items"][0]["name"] == "Chicken Burger"


def test_out_of_range_ids_answer_like_unknown_ids(client):
    huge = 10**20

    response = _order(client, [{"id": huge}])
    assert response.status_code == 400
    assert response.json()["detail"] == f"Invalid item {huge}"

    assert client.get(f"/api/orders/{huge}").status_code == 404
    assert client.post(f"/api/orders/{huge}/confirm").status_code == 404
    assert client.put(f"/admin/items/{huge}", json={"name": "x"}, auth=ADMIN).status_code == 404
    assert client.delete(f"/admin/categories/{huge}", auth=ADMIN).status_code == 404


def test_missing_order_goes_through_error_handler(client):
    response = client.get("/api/orders/999")

    assert response.status_code == 404
    assert response.json() == {"detail": "Order not found"}
