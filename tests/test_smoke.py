import pytest

from app.marketplace import create_app
from app.marketplace.auth import _login_attempts
from app.marketplace.db import session_scope
from app.marketplace.models import AuditEvent, Base, User


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    _login_attempts.clear()

    app = create_app()

    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        u = User(email="admin@example.com", role="admin", approved=True)
        u.set_password("admin-password")
        s.add(u)

    return app.test_client()


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True


def test_healthz_ok(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_unknown_route_is_json_404(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json["error"] == "Not Found"


def test_login_and_logout(client):
    # Anonymous is refused
    r = client.get("/orders")
    assert r.status_code == 401

    r = client.post("/auth/login", json={"email": "Admin@Example.com ", "password": "admin-password"})
    assert r.status_code == 200
    assert r.json["email"] == "admin@example.com"
    assert "password_hash" not in r.json

    r = client.get("/orders")
    assert r.status_code == 200
    assert r.json == []

    r = client.post("/auth/logout")
    assert r.status_code == 200
    assert client.get("/orders").status_code == 401


def test_login_bad_credentials(client):
    r = client.post("/auth/login", json={"email": "admin@example.com", "password": "wrong"})
    assert r.status_code == 400
    assert r.json["message"] == "Invalid credentials."

    app = client.application
    with session_scope(app) as s:
        assert s.query(AuditEvent).filter(AuditEvent.action == "auth.login_failed").count() == 1


def test_login_rate_limited(client):
    for _ in range(5):
        client.post("/auth/login", json={"email": "admin@example.com", "password": "wrong"})
    r = client.post("/auth/login", json={"email": "admin@example.com", "password": "admin-password"})
    assert r.status_code == 429


def test_malformed_json_is_400(client):
    r = client.post("/users", data="{not json", content_type="application/json")
    assert r.status_code == 400
    assert r.get_json()["message"] == "Request body must be valid JSON."


@pytest.mark.parametrize("body", ["null", " null\n", "[1, 2]", "\"text\""])
def test_non_object_json_body_is_400(client, body):
    r = client.post("/users", data=body, content_type="application/json")
    assert r.status_code == 400
    assert r.get_json()["message"] == "Request body must be a JSON object."


def test_production_requires_strong_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("SECRET_KEY", "change-me")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'prod.db'}")
    with pytest.raises(RuntimeError):
        create_app()
