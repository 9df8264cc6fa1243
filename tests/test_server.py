"""Tests for brightsites_export.server (FastAPI endpoints)."""

import pytest
from fastapi.testclient import TestClient

from brightsites_export.report_service import ReportService
from brightsites_export.row_assembler import ALL_COLUMNS
from brightsites_export.server import create_app


@pytest.fixture
def client(store, fake_api):
    fake_api.orders = [{"id": 1, "order_id": "BS-1"}]
    fake_api.details = {"1": {"id": 1, "order_id": "BS-1"}}
    fake_api.line_items = {"1": [{"id": 10}]}
    service = ReportService({store.key: store}, http_factory=fake_api.http, retry_delay=0)
    return TestClient(create_app(service))


def test_list_stores(client):
    response = client.get("/api/stores")
    assert response.status_code == 200
    assert response.json() == [{"key": "acme", "label": "Acme Store", "subdomain": "acme"}]


def test_run_report(client):
    response = client.post("/api/run", json={"storeKey": "acme"})
    assert response.status_code == 200
    body = response.json()
    assert body["columns"] == ALL_COLUMNS
    assert body["rows"][0][0] == "BS-1"
    assert body["meta"]["orders"] == 1


def test_run_report_unknown_store(client):
    response = client.post("/api/run", json={"storeKey": "initech"})
    assert response.status_code == 400
    assert "not found" in response.json()["error"]


def test_run_report_without_body(client):
    response = client.post("/api/run")
    assert response.status_code == 400
    assert "storeKey is required" in response.json()["error"]
