"""Health and ping endpoints."""
from sqlalchemy.exc import OperationalError

import app.main


def test_health_ok(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["database"] == {"status": "ok"}
    assert data["timestamp"].endswith("Z")


def test_health_reports_database_failure(client, monkeypatch):
    def unreachable(db):
        raise OperationalError("SELECT 1", {}, Exception("could not connect"))

    monkeypatch.setattr(app.main, "health_check", unreachable)
    resp = client.get("/api/health")
    assert resp.status_code == 503
    assert resp.json()["status"] == "degraded"
    assert resp.json()["database"]["status"] == "error"


def test_ping(client):
    resp = client.get("/api/ping")
    assert resp.status_code == 200
    assert resp.json()["message"] == "pong"
