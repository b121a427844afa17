"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from conftest import FakeCatalog, FakeRuleStore
from schema_mapper.api import db
from schema_mapper.api.main import app
from schema_mapper.engine import SchemaChange
from schema_mapper.models import BuiltinDatatype, TableNameRule

TOKEN = "test-token"
AUTH = {"Authorization": f"Bearer {TOKEN}"}


@pytest.fixture
def api_store(builtin_catalog):
    return FakeRuleStore(builtin=builtin_catalog, table_names=[TableNameRule("orders", "t_orders")])


@pytest.fixture
def failing():
    return set()


@pytest.fixture
def seen():
    return {}


@pytest.fixture
def client(monkeypatch, api_store, sample_tables, failing, seen):
    monkeypatch.setenv("API_AUTH_TOKEN", TOKEN)

    def factory(schema, target_schema, tables):
        seen.update(schema=schema, target_schema=target_schema, tables=tables)
        return SchemaChange(
            rule_store=api_store,
            catalog=FakeCatalog(sample_tables, failing=failing),
            source_schema=schema,
            target_schema=target_schema,
            tables=tables or list(sample_tables),
            threads=2,
        )

    app.dependency_overrides[db.get_change_factory] = lambda: factory
    # no lifespan: the factory above replaces the database engines
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestAuth:

    def test_missing_token(self, client):
        assert client.get("/api/mappings/app").status_code == 401

    def test_wrong_token(self, client):
        r = client.get("/api/mappings/app", headers={"Authorization": "Bearer nope"})
        assert r.status_code == 401

    def test_wrong_scheme(self, client):
        r = client.get("/api/mappings/app", headers={"Authorization": f"Basic {TOKEN}"})
        assert r.status_code == 401

    def test_server_token_unset(self, client, monkeypatch):
        monkeypatch.delenv("API_AUTH_TOKEN")
        assert client.get("/api/mappings/app", headers=AUTH).status_code == 503


class TestMappings:

    def test_selected_tables(self, client):
        r = client.get("/api/mappings/app", params={"tables": ["orders", "payments"]}, headers=AUTH)
        assert r.status_code == 200
        body = r.json()
        assert body["schema"] == "app"
        assert body["target_schema"] == "APP"
        assert body["table_names"] == {"ORDERS": "T_ORDERS", "PAYMENTS": "PAYMENTS"}
        assert body["datatypes"]["orders"]["amount"] == "NUMBER"
        assert body["defaults"]["payments"]["paid_at"] == "now()"

    def test_all_tables_by_default(self, client, seen):
        r = client.get("/api/mappings/app", params={"target_schema": "mig"}, headers=AUTH)
        assert r.status_code == 200
        assert set(r.json()["datatypes"]) == {"orders", "customers", "payments"}
        assert seen["target_schema"] == "mig"
        assert seen["tables"] is None

    def test_catalog_failure(self, client, failing):
        failing.add("customers")
        r = client.get("/api/mappings/app", headers=AUTH)
        assert r.status_code == 502
        assert r.json()["detail"]["table"] == "customers"

    def test_setup_failure_is_structured_500(self, client):
        def factory(schema, target_schema, tables):
            raise RuntimeError("Database engines not initialized")

        app.dependency_overrides[db.get_change_factory] = lambda: factory
        r = client.get("/api/mappings/app", headers=AUTH)
        assert r.status_code == 500
        assert r.json()["detail"] == {"detail": "Database error", "schema": "app"}

    def test_builtin_format_spec_is_422(self, client, api_store):
        api_store.builtin = [BuiltinDatatype("DECIMAL", "NUMBER({precision:q})")]
        r = client.get("/api/mappings/app", headers=AUTH)
        assert r.status_code == 422

    def test_logic_error(self, client, api_store):
        api_store.builtin = [BuiltinDatatype("INT", "NUMBER({digits})")]
        r = client.get("/api/mappings/app", headers=AUTH)
        assert r.status_code == 422
