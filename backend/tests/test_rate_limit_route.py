from fastapi.testclient import TestClient

from app.main import app
from app.services.rate_limiter import DATA_LIMIT, DATA_WINDOW_MS, FILE_LIMIT, FILE_WINDOW_MS

client = TestClient(app)

MB = 1024 * 1024


def test_status_for_new_client(upload_limiter, clock):
    response = client.get("/v1/rate-limit/status")

    assert response.status_code == 200
    data = response.json()
    assert data["files"] == {
        "used": 0,
        "limit": FILE_LIMIT,
        "remaining": FILE_LIMIT,
        "resetTime": clock.now + FILE_WINDOW_MS,
        "resetIn": "30m 0s",
    }
    assert data["data"]["used"] == 0
    assert data["data"]["limit"] == DATA_LIMIT
    assert data["data"]["limitFormatted"] == "20.0 MB"
    assert data["data"]["usedFormatted"] == "0 B"
    assert data["data"]["resetIn"] == "10m 0s"


def test_status_reflects_recorded_uploads(upload_limiter, clock):
    upload_limiter.record_upload("testclient", 3 * MB)
    clock.advance(90_000)

    data = client.get("/v1/rate-limit/status").json()

    assert data["files"]["used"] == 1
    assert data["files"]["remaining"] == FILE_LIMIT - 1
    assert data["files"]["resetIn"] == "28m 30s"
    assert data["data"]["usedFormatted"] == "3.0 MB"
    assert data["data"]["remainingFormatted"] == "17.0 MB"
    assert data["data"]["resetTime"] == clock.now - 90_000 + DATA_WINDOW_MS


def test_status_does_not_consume_quota(upload_limiter):
    for _ in range(3):
        client.get("/v1/rate-limit/status")

    assert upload_limiter.get_status("testclient")["files"].used == 0
