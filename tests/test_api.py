"""
FastAPI endpoint tests for the Broker Validator API.

Uses httpx + FastAPI TestClient — no real server needed.
"""

from __future__ import annotations

import json

import api
import pytest
from api import app
from fastapi.testclient import TestClient

from broker_validator.config import ValidationSettings
from broker_validator.pipeline import BrokerValidationPipeline

client = TestClient(app)


@pytest.fixture(scope="module", autouse=True)
def _warm_pipeline() -> None:
    """Initialise the pipeline once for all API tests (bypasses lifespan)."""
    api._pipeline = BrokerValidationPipeline()
    yield  # type: ignore[misc]
    api._pipeline = None


# ─── Sample records ──────────────────────────────────────────────────

RECORDS = [
    {"id": "1", "name": "Maria Silva", "phone": "85 97100-5622", "email": "  MARIA@HOTMAIL.COM  "},
    {"id": "2", "name": "Maria S.", "phone": "(85) 97100-5622", "email": "maria@hotmail.com"},
    {"id": "3", "phone": "(85) 00000-0000", "email": "test@test.com"},
]


def _upload(content: bytes, filename: str = "brokers.json"):
    return client.post("/validate/file", files={"file": (filename, content, "application/json")})


class TestHealthEndpoint:
    def test_health_returns_200(self) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200

    def test_health_response_shape(self) -> None:
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert data["max_records"] == 10_000


class TestValidateEndpoint:
    def test_returns_report(self) -> None:
        resp = client.post("/validate", json={"records": RECORDS})
        assert resp.status_code == 200
        data = resp.json()
        assert data["metadata"]["total_records"] == 3
        assert data["summary"]["records_needing_attention"] == 3
        assert data["quality"]["critical_issues"] == 1

    def test_worst_record_first(self) -> None:
        flagged = client.post("/validate", json={"records": RECORDS}).json()["records_needing_attention"]
        assert flagged[0]["record_id"] == "3"
        assert flagged[0]["severity"] == "CRITICAL"

    def test_duplicate_group_in_results(self) -> None:
        data = client.post("/validate", json={"records": RECORDS}).json()
        groups = data["validation_results"]["duplicates"]["duplicate_groups"]
        assert len(groups) == 1
        assert groups[0]["match_type"] == "phone_exact"
        assert data["issues_by_type"]["potential_duplicates"] == 2

    def test_empty_batch(self) -> None:
        resp = client.post("/validate", json={"records": []})
        assert resp.status_code == 200
        assert resp.json()["summary"]["total_issues"] == 0


class TestRequestValidation:
    def test_empty_body_returns_422(self) -> None:
        resp = client.post("/validate", json={})
        assert resp.status_code == 422

    def test_non_object_records_return_422(self) -> None:
        resp = client.post("/validate", json={"records": [1, 2]})
        assert resp.status_code == 422

    def test_batch_too_large_returns_413(self) -> None:
        previous = api._pipeline
        api._pipeline = BrokerValidationPipeline(ValidationSettings(api_max_records=2))
        try:
            resp = client.post("/validate", json={"records": RECORDS})
        finally:
            api._pipeline = previous
        assert resp.status_code == 413

    def test_uninitialised_pipeline_returns_503(self) -> None:
        previous = api._pipeline
        api._pipeline = None
        try:
            resp = client.get("/health")
        finally:
            api._pipeline = previous
        assert resp.status_code == 503


class TestFileUploadEndpoint:
    def test_upload_list(self) -> None:
        resp = _upload(json.dumps(RECORDS).encode("utf-8"))
        assert resp.status_code == 200
        assert resp.json()["metadata"]["total_records"] == 3

    def test_upload_brokers_wrapper(self) -> None:
        resp = _upload(json.dumps({"brokers": RECORDS[:1]}).encode("utf-8"))
        assert resp.status_code == 200
        assert resp.json()["metadata"]["total_records"] == 1

    def test_upload_invalid_json_returns_400(self) -> None:
        assert _upload(b"{not json").status_code == 400

    def test_upload_non_utf8_returns_400(self) -> None:
        assert _upload(b"\xff\xfe\x00").status_code == 400

    def test_upload_object_returns_422(self) -> None:
        assert _upload(b'{"records": []}').status_code == 422

    def test_upload_non_object_records_returns_422(self) -> None:
        resp = _upload(b"[1, 2]")
        assert resp.status_code == 422
        detail = resp.json()["detail"]
        assert detail["code"] == "RECORD_SHAPE_INVALID"
        assert detail["index"] == 0


class TestCleanupEndpoint:
    def test_returns_plan(self) -> None:
        resp = client.post("/cleanup", json={"records": RECORDS})
        assert resp.status_code == 200
        data = resp.json()
        assert data["fixes_applied"]["phone_standardized"] == 1
        assert data["fixes_applied"]["email_normalized"] == 1
        assert data["cleaned_records"][0]["email"] == "maria@hotmail.com"
        assert data["review_summary"]["missing_required_fields"] == 1
