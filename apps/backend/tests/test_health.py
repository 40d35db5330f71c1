from unittest.mock import patch

from sqlalchemy.exc import OperationalError


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_database_outage_maps_to_503(client):
    outage = OperationalError("SELECT 1", {}, Exception("database is locked"))
    with patch(
        "finflow.services.occurrence_service.OccurrenceService.list_occurrences",
        side_effect=outage,
    ):
        r = client.get("/api/income", params={"month": 1, "year": 2024})
    assert r.status_code == 503
    assert r.json() == {"detail": "Database unavailable"}
