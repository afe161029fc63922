from unittest.mock import patch

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session


def test_health_endpoint_returns_ok(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["database"] == "ok"
    assert body["service"] == "Magic Yarn API"
    assert body["environment"] == "test"
    assert "version" in body


def test_health_reports_unreachable_database(client):
    with patch.object(Session, "execute", side_effect=OperationalError("SELECT 1", {}, Exception("down"))):
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["database"] == "unavailable"
