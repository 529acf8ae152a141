"""Health, readiness, dev seed and error-body shape."""

import logging

from recipebox.main import create_app
from recipebox.routers.dev import SEED_RECIPES


def test_root_message(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Recipe API is running!"}


def test_ready_endpoint(client):
    response = client.get("/api/ready")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "db_ok": True}


def test_unknown_route_uses_error_body(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_wrong_method_uses_error_body(client):
    response = client.patch("/api/grocery/1", json={"name": "x"})
    assert response.status_code == 405
    assert "error" in response.json()


def test_seed_requires_auth(client):
    assert client.post("/api/dev/seed").status_code == 401


def test_seed_is_idempotent_per_user(client, user_a, user_b, login):
    headers_a = login(user_a)
    first = client.post("/api/dev/seed", headers=headers_a)
    assert first.status_code == 200
    data = first.json()
    assert data["recipes_created"] == len(SEED_RECIPES)
    assert all(r["userId"] == user_a.id for r in data["recipes"])

    second = client.post("/api/dev/seed", headers=headers_a)
    assert second.json()["recipes_created"] == 0

    listed = client.get("/api/recipes", headers=headers_a).json()["recipes"]
    assert len(listed) == len(SEED_RECIPES)

    # Other users get their own copies and still can't see A's.
    headers_b = login(user_b)
    assert client.post("/api/dev/seed", headers=headers_b).json()["recipes_created"] == len(SEED_RECIPES)
    ids_b = {r["id"] for r in client.get("/api/recipes", headers=headers_b).json()["recipes"]}
    assert ids_b.isdisjoint({r["id"] for r in listed})


def test_seed_hidden_when_dev_routes_disabled(app, client, user_a, login, test_settings):
    app.state.settings = test_settings.model_copy(update={"dev_routes_enabled": False})
    response = client.post("/api/dev/seed", headers=login(user_a))
    assert response.status_code == 404


def test_create_app_applies_log_level(test_settings):
    app_logger = logging.getLogger("recipebox")
    previous = app_logger.level
    try:
        create_app(test_settings.model_copy(update={"log_level": "debug"}))
        assert app_logger.level == logging.DEBUG
        create_app(test_settings.model_copy(update={"log_level": "WARNING"}))
        assert app_logger.level == logging.WARNING
    finally:
        app_logger.setLevel(previous)
