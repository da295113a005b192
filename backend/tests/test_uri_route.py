import json
from unittest.mock import patch

from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from app.config import settings
from app.main import app

client = TestClient(app)

VALID_JSON = {
    "image": "https://cdn.zerafile.io/token/$ZRA+0001/image.png",
    "url": "https://example.com",
    "description": "Governance token",
}


@patch("app.routes.uri.s3_service")
def test_publish_uri(mock_s3):
    response = client.post("/v1/uri", json={"contractId": "$ZRA+0001", "json": VALID_JSON})

    assert response.status_code == 200
    assert response.json() == {"cdnUrl": f"{settings.CDN_BASE_URL}/token/%24ZRA%2B0001/uri.json"}

    key, body, content_type = mock_s3.put.call_args.args
    assert key == "token/%24ZRA%2B0001/uri.json"
    assert json.loads(body) == VALID_JSON
    assert content_type == "application/json; charset=utf-8"
    assert mock_s3.put.call_args.kwargs["cache_control"] == "public, max-age=31536000, immutable"


@patch("app.routes.uri.s3_service")
def test_publish_uri_drops_unknown_fields(mock_s3):
    payload = {**VALID_JSON, "extra": "ignored"}

    response = client.post("/v1/uri", json={"contractId": "$ZRA+0001", "json": payload})

    assert response.status_code == 200
    assert json.loads(mock_s3.put.call_args.args[1]) == VALID_JSON


@patch("app.routes.uri.s3_service")
def test_publish_uri_rejects_invalid_url(mock_s3):
    payload = {**VALID_JSON, "url": "not a url"}

    response = client.post("/v1/uri", json={"contractId": "$ZRA+0001", "json": payload})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid JSON schema"
    assert "url" in response.json()["details"]
    mock_s3.put.assert_not_called()


@patch("app.routes.uri.s3_service")
def test_publish_uri_rejects_long_description(mock_s3):
    payload = {**VALID_JSON, "description": "x" * 501}

    response = client.post("/v1/uri", json={"contractId": "$ZRA+0001", "json": payload})

    assert response.status_code == 400


def test_publish_uri_requires_contract_id():
    response = client.post("/v1/uri", json={"json": VALID_JSON})
    assert response.status_code == 422


@patch("app.routes.uri.s3_service")
def test_publish_uri_storage_failure(mock_s3):
    mock_s3.put.side_effect = ClientError({"Error": {"Code": "500"}}, "PutObject")

    response = client.post("/v1/uri", json={"contractId": "$ZRA+0001", "json": VALID_JSON})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to store URI JSON"}


@patch("app.routes.uri.s3_service")
def test_publish_uri_request_throttle(mock_s3):
    for _ in range(10):
        assert client.post("/v1/uri", json={"contractId": "$ZRA+0001", "json": VALID_JSON}).status_code == 200

    response = client.post("/v1/uri", json={"contractId": "$ZRA+0001", "json": VALID_JSON})
    assert response.status_code == 429
