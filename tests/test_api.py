"""
API endpoint tests.

Uses FastAPI TestClient for in-process testing. The parser dependency is
overridden so tests never read configuration from the environment.
"""
import pytest
from fastapi.testclient import TestClient

from llm_json.config import ParserConfig
from llm_json.parser import LlmJson


@pytest.fixture
def client():
    from llm_json.api import app, get_parser

    def override_get_parser():
        return LlmJson(ParserConfig(max_buffer_size=4096))

    app.dependency_overrides[get_parser] = override_get_parser
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


# --- Health endpoint ---

class TestHealth:
    def test_returns_200(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200

    def test_reports_config(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["max_buffer_size"] == 4096
        assert data["collect_warnings"] is True
        assert data["version"]

    def test_health_requires_no_auth(self, client, monkeypatch):
        monkeypatch.setenv("API_KEY", "secret-key")
        resp = client.get("/health")
        assert resp.status_code == 200


# --- Parse endpoint ---

class TestParse:
    def test_repairs_llm_output(self, client):
        resp = client.post("/parse", json={"text": "Here you go: {name: 'John', age: 30,}"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["ok"] is True
        assert data["data"] == {"name": "John", "age": 30}
        codes = {w["code"] for w in data["warnings"]}
        assert "unquoted_key_fixed" in codes

    def test_failure_is_200_with_error_body(self, client):
        resp = client.post("/parse", json={"text": "no json here"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["ok"] is False
        assert data["error"]["code"] == "no_json_found"

    def test_schema_alias(self, client, user_schema):
        resp = client.post("/parse", json={"text": '{"name": 7}', "schema": user_schema})
        data = resp.json()
        assert data["ok"] is False
        assert data["error"]["code"] == "schema_mismatch"

    def test_malformed_schema_returns_422(self, client):
        resp = client.post("/parse", json={"text": "{}", "schema": {"type": "mystery"}})
        assert resp.status_code == 422

    def test_missing_text_returns_422(self, client):
        resp = client.post("/parse", json={})
        assert resp.status_code == 422


# --- Extract / repair / partial endpoints ---

class TestExtract:
    def test_first_region(self, client):
        data = client.post("/extract", json={"text": 'a {"x": 1} b [2]'}).json()
        assert data["candidate"] == '{"x": 1}'
        assert data["start"] == 2

    def test_all_regions(self, client):
        data = client.post("/extract", json={"text": 'a {"x": 1} b [2]', "all": True}).json()
        assert data["candidates"] == ['{"x": 1}', "[2]"]


class TestRepair:
    def test_returns_strict_json(self, client):
        data = client.post("/repair", json={"text": "{'a': None,}"}).json()
        assert data["output"] == '{"a": null}'
        assert data["strictly_valid"] is True


class TestParsePartial:
    def test_truncated_text(self, client):
        data = client.post("/parse-partial", json={"text": '{"a": "hel'}).json()
        assert data["ok"] is True
        assert data["data"] == {"a": "hel"}

    def test_options_respected(self, client):
        resp = client.post("/parse-partial", json={
            "text": '{"a": "hel',
            "options": {"allow_partial_strings": False},
        })
        data = resp.json()
        assert data["ok"] is False
        assert data["error"]["code"] == "truncated"
        assert data["partial"]["confidence"] == "medium"


class TestStream:
    def test_replays_chunks(self, client):
        resp = client.post("/stream", json={"chunks": ['{"a": ', "[1, 2", "]}"]})
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_chunks"] == 3
        assert len(data["previews"]) == 3
        assert data["previews"][1]["data"] == {"a": [1, 2]}
        assert data["final"]["data"] == {"a": [1, 2]}

    def test_unclosed_stream(self, client):
        data = client.post("/stream", json={"chunks": ['{"a": [1']}).json()
        assert data["final"]["ok"] is False
        assert data["final"]["error"]["code"] == "truncated"

    def test_empty_chunks_rejected(self, client):
        assert client.post("/stream", json={"chunks": []}).status_code == 422


# --- Auth ---

class TestAuth:
    def test_missing_key_rejected(self, client, monkeypatch):
        monkeypatch.setenv("API_KEY", "secret-key")
        resp = client.post("/parse", json={"text": "{}"})
        assert resp.status_code == 401

    def test_wrong_key_rejected(self, client, monkeypatch):
        monkeypatch.setenv("API_KEY", "secret-key")
        resp = client.post("/repair", json={"text": "{}"}, headers={"X-API-Key": "nope"})
        assert resp.status_code == 401

    def test_valid_key_accepted(self, client, monkeypatch):
        monkeypatch.setenv("API_KEY", "secret-key")
        resp = client.post("/parse", json={"text": "{}"}, headers={"X-API-Key": "secret-key"})
        assert resp.status_code == 200

    def test_no_key_configured_allows_all(self, client, monkeypatch):
        monkeypatch.delenv("API_KEY", raising=False)
        assert client.post("/parse", json={"text": "{}"}).status_code == 200
