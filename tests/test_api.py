import pytest
from fastapi.testclient import TestClient

from schema_health.api import db
from schema_health.api.main import app
from schema_health.config import Settings
from schema_health.errors import UnsupportedEngine

TOKEN = "test-token"
AUTH = {"Authorization": f"Bearer {TOKEN}"}


@pytest.fixture
def client(monkeypatch, shop_adapter):
    monkeypatch.setenv("API_AUTH_TOKEN", TOKEN)
    monkeypatch.setattr(db, "get_settings", lambda: Settings(api_auth_token=TOKEN))
    monkeypatch.setattr(db, "get_adapter", lambda: shop_adapter)
    # no context manager: the lifespan would connect to a real database
    return TestClient(app)


def test_missing_token_is_rejected(client):
    assert client.get("/api/scans/invalid-values").status_code == 401


def test_wrong_token_is_rejected(client):
    response = client.get("/api/scans/invalid-values", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_unconfigured_token_is_a_server_error(client, monkeypatch):
    monkeypatch.delenv("API_AUTH_TOKEN")
    assert client.get("/api/scans/invalid-values", headers=AUTH).status_code == 503


def test_invalid_values(client):
    response = client.get("/api/scans/invalid-values", headers=AUTH)
    assert response.status_code == 200
    body = response.json()
    assert body["exit_status"] == 1
    assert body["summary"]["total_issue_count"] == 4
    assert [f["check"] for f in body["findings"]] == ["null", "long_string", "datetime", "datetime"]
    assert body["advisories"][0]["column"] == "nickname"


def test_invalid_values_with_selected_checks(client):
    response = client.get("/api/scans/invalid-values?check=null&check=long_text", headers=AUTH)
    assert response.status_code == 200
    body = response.json()
    assert body["metadata"]["checks"] == ["null", "long_text"]
    assert body["summary"]["total_issue_count"] == 1


def test_unknown_check_is_a_bad_request(client):
    response = client.get("/api/scans/invalid-values?check=bogus", headers=AUTH)
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "UnknownCheckKind"


def test_risky_columns(client):
    response = client.get("/api/scans/risky-columns", headers=AUTH)
    assert response.status_code == 200
    body = response.json()
    assert body["metadata"]["threshold"] == 70.0
    assert body["summary"]["risky_column_count"] == 1
    finding = body["findings"][0]
    assert (finding["table"], finding["column"]) == ("tags", "id")
    assert finding["occupancy_percentage"] == 78.4314


def test_risky_columns_threshold_param(client):
    body = client.get("/api/scans/risky-columns?threshold=90", headers=AUTH).json()
    assert body["exit_status"] == 0
    assert body["findings"] == []


def test_negative_threshold_is_rejected(client):
    assert client.get("/api/scans/risky-columns?threshold=-1", headers=AUTH).status_code == 422


@pytest.mark.parametrize("threshold", ["inf", "nan"])
def test_non_finite_threshold_is_a_client_error(client, shop_adapter, threshold):
    response = client.get(f"/api/scans/risky-columns?threshold={threshold}", headers=AUTH)
    assert response.status_code in (400, 422)
    assert shop_adapter.queries == []


def test_query_failure_is_a_bad_gateway(client, shop_adapter):
    shop_adapter.fail_on = {("tags", "id")}
    response = client.get("/api/scans/risky-columns", headers=AUTH)
    assert response.status_code == 502
    detail = response.json()["detail"]
    assert (detail["table"], detail["column"], detail["check"]) == ("tags", "id", "overflow_risk")


def test_continue_on_error_param(client, shop_adapter):
    shop_adapter.fail_on = {("tags", "id")}
    response = client.get("/api/scans/risky-columns?continue_on_error=true", headers=AUTH)
    assert response.status_code == 200
    body = response.json()
    assert body["exit_status"] == 1
    assert body["failures"][0]["table"] == "tags"


def test_unsupported_engine_is_a_bad_request(client, monkeypatch):
    def unsupported():
        raise UnsupportedEngine("sqlite", ("mysql", "mariadb"))

    monkeypatch.setattr(db, "get_adapter", unsupported)
    response = client.get("/api/scans/invalid-values", headers=AUTH)
    assert response.status_code == 400
