"""Tests for the orders API."""
from decimal import Decimal

import pytest

from app.marketplace import create_app
from app.marketplace.auth import _login_attempts
from app.marketplace.db import session_scope
from app.marketplace.models import AuditEvent, Base, User
from app.marketplace.modules.orders.models import Order
from app.marketplace.modules.products.models import Product

PASSWORD = "correct-horse"


def _make_user(s, email, role="user", approved=True):
    u = User(email=email, role=role, approved=approved)
    u.set_password(PASSWORD)
    s.add(u)
    return u


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    _login_attempts.clear()

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        _make_user(s, "admin@example.com", role="admin")
        buyer = _make_user(s, "buyer@example.com")
        seller = _make_user(s, "seller@example.com")
        s.flush()
        product = Product(name="Wheat", price=Decimal("210.50"), unit="t", seller=seller)
        s.add(product)
        s.flush()
        s.add(Order(volume=3, comments="seed", buyer=seller, product=product))

    app.config["SEED_PRODUCT_ID"] = product.id
    app.config["SEED_BUYER_ID"] = buyer.id
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _login(client, email="buyer@example.com"):
    r = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 200


def _create_order(client, app, **fields):
    payload = {"volume": 10, "comments": "deliver Monday", "ico": "12345678"}
    payload.update(fields)
    r = client.post(f"/products/{app.config['SEED_PRODUCT_ID']}/orders", json=payload)
    assert r.status_code == 200, r.get_json()
    return r.get_json()


def _set_status(app, order_id, status):
    with session_scope(app) as s:
        s.get(Order, order_id).status = status


@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/orders/all"),
        ("get", "/orders"),
        ("get", "/orders/1"),
        ("post", "/products/1/orders"),
        ("patch", "/orders/1"),
    ],
)
def test_orders_require_login(client, method, path):
    r = getattr(client, method)(path, json={})
    assert r.status_code == 401
    assert r.get_json()["error"] == "Unauthorized"


def test_create_order_attributes_order_to_caller(client, app):
    _login(client)
    order = _create_order(client, app)

    assert order["buyer_id"] == app.config["SEED_BUYER_ID"]
    assert order["buyer"]["email"] == "buyer@example.com"
    assert order["product_id"] == app.config["SEED_PRODUCT_ID"]
    assert order["status"] == "Pending"
    assert order["volume"] == 10
    assert order["ico"] == "12345678"
    assert order["date"]
    assert "password_hash" not in order["buyer"]


def test_create_order_unknown_product_404(client):
    _login(client)
    r = client.post("/products/9999/orders", json={"volume": 1})
    assert r.status_code == 404


@pytest.mark.parametrize("volume", [None, 0, -4, "lots", True, 1.5])
def test_create_order_rejects_bad_volume(client, app, volume):
    _login(client)
    r = client.post(f"/products/{app.config['SEED_PRODUCT_ID']}/orders", json={"volume": volume})
    assert r.status_code == 400
    with session_scope(app) as s:
        assert s.query(Order).count() == 1


def test_create_order_rejects_non_object_body(client, app):
    _login(client)
    r = client.post(f"/products/{app.config['SEED_PRODUCT_ID']}/orders", json=[1, 2])
    assert r.status_code == 400


def test_create_order_rejects_bool_comments(client, app):
    _login(client)
    r = client.post(f"/products/{app.config['SEED_PRODUCT_ID']}/orders", json={"volume": 1, "comments": True})
    assert r.status_code == 400
    assert r.get_json()["message"] == "comments must be a string."
    with session_scope(app) as s:
        assert s.query(Order).count() == 1


def test_list_all_orders_includes_buyer(client, app):
    _login(client)
    _create_order(client, app)
    r = client.get("/orders/all")
    assert r.status_code == 200
    orders = r.get_json()
    assert len(orders) == 2
    assert {o["buyer"]["email"] for o in orders} == {"buyer@example.com", "seller@example.com"}


def test_my_orders_only_returns_callers_orders(client, app):
    _login(client)
    mine = _create_order(client, app)
    r = client.get("/orders")
    assert r.status_code == 200
    assert [o["id"] for o in r.get_json()] == [mine["id"]]


def test_get_order_by_id(client, app):
    _login(client)
    created = _create_order(client, app)
    r = client.get(f"/orders/{created['id']}")
    assert r.status_code == 200
    assert r.get_json()["buyer"]["id"] == app.config["SEED_BUYER_ID"]

    r = client.get("/orders/4242")
    assert r.status_code == 404


def test_non_numeric_order_id_is_not_routed(client):
    _login(client)
    assert client.get("/orders/abc").status_code == 404


def test_patch_pending_order_merges_fields(client, app):
    _login(client)
    created = _create_order(client, app)

    r = client.patch(f"/orders/{created['id']}", json={"volume": 25})
    assert r.status_code == 200
    patched = r.get_json()
    assert patched["volume"] == 25
    assert patched["comments"] == "deliver Monday"
    assert patched["ico"] == "12345678"
    assert patched["status"] == "Pending"
    assert patched["buyer_id"] == created["buyer_id"]


def test_patch_ignores_server_owned_fields(client, app):
    _login(client)
    created = _create_order(client, app)
    r = client.patch(f"/orders/{created['id']}", json={"buyer_id": 1, "date": "1999-01-01", "comments": "x"})
    assert r.status_code == 200
    body = r.get_json()
    assert body["buyer_id"] == created["buyer_id"]
    assert body["date"] == created["date"]
    assert body["comments"] == "x"


def test_patch_can_move_status_out_of_pending(client, app):
    _login(client)
    created = _create_order(client, app)
    r = client.patch(f"/orders/{created['id']}", json={"status": "Approved"})
    assert r.status_code == 200
    assert r.get_json()["status"] == "Approved"

    # Terminal from here on.
    r = client.patch(f"/orders/{created['id']}", json={"comments": "too late"})
    assert r.status_code == 400


@pytest.mark.parametrize("status", ["Approved", "Rejected", "Cancelled"])
def test_patch_non_pending_order_rejected_and_unchanged(client, app, status):
    _login(client)
    created = _create_order(client, app)
    _set_status(app, created["id"], status)

    r = client.patch(f"/orders/{created['id']}", json={"volume": 99, "status": "Pending"})
    assert r.status_code == 400
    assert r.get_json()["message"] == "You are not allowed to do this."

    with session_scope(app) as s:
        order = s.get(Order, created["id"])
        assert order.volume == 10
        assert order.status == status


def test_patch_invalid_status_400(client, app):
    _login(client)
    created = _create_order(client, app)
    r = client.patch(f"/orders/{created['id']}", json={"status": "Shipped"})
    assert r.status_code == 400


def test_patch_missing_order_404(client):
    _login(client)
    assert client.patch("/orders/777", json={"volume": 1}).status_code == 404


def test_order_mutations_are_audited(client, app):
    _login(client)
    created = _create_order(client, app)
    client.patch(f"/orders/{created['id']}", json={"volume": 11})

    with session_scope(app) as s:
        actions = [
            e.action
            for e in s.query(AuditEvent).filter(AuditEvent.entity_type == "Order").order_by(AuditEvent.id).all()
        ]
    assert actions == ["order.create", "order.edit"]
