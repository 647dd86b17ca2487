from unittest.mock import patch

from sqlalchemy.exc import OperationalError


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "service": "publisher"}


def test_store_failure_surfaces_as_generic_error(client):
    failure = OperationalError("SELECT 1", {}, Exception("connection lost"))
    with patch("publisher_service.feed.query_feed", side_effect=failure):
        resp = client.get("/posts")

    assert resp.status_code == 500
    assert resp.json() == {"detail": "Database error"}


def test_run_serves_app_on_configured_port(monkeypatch):
    from publisher_service import app as app_module

    monkeypatch.setenv("PORT", "6100")
    monkeypatch.delenv("HOST", raising=False)
    with patch("publisher_service.app.uvicorn.run") as serve:
        app_module.run()

    serve.assert_called_once_with(app_module.app, host="127.0.0.1", port=6100)
