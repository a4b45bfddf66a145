from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tablekit.db import get_db
from tablekit.main import app
from tablekit.services.table_type import TableType
from tests.table_types import PeopleTable


class BrokenTable(TableType):
    name = "broken"

    def default_options(self):
        return {}

    def build_columns(self, builder):
        builder.add("first_name")


@pytest.fixture()
def client(db_session, registry):
    registry.register(PeopleTable())
    registry.register(BrokenTable())

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.pop(get_db, None)


def test_table_page_renders_html_with_current_params(client, people):
    resp = client.get("/tables/people", params={"page": "2", "status": "active"})

    assert resp.status_code == 200
    assert "text/html" in resp.headers.get("content-type", "")
    assert '<table id="people" class="table">' in resp.text
    assert 'href="/tables/people?status=active&amp;page=1"' in resp.text
    assert resp.headers.get("X-Request-ID")


def test_table_data_returns_json_snapshot(client, people):
    resp = client.get("/tables/people/data", params={"page": "3"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["table_name"] == "people"
    assert body["pagination"] == {"page": 3, "items_per_page": 10, "total_pages": 3}
    assert body["sort"] == {"column": "age", "direction": "asc"}
    assert [row["position"] for row in body["rows"]] == [21, 22, 23]
    assert body["rows"][0]["cells"]["first_name"] == "First21"
    assert body["rows"][0]["attributes"] == {"data-id": "21"}
    assert [column["name"] for column in body["columns"]][:2] == ["position", "first_name"]
    team_filter = next(item for item in body["filters"] if item["name"] == "team")
    assert team_filter["choices"] == ["red", "blue"]
    assert team_filter["operator"] == "="


def test_out_of_range_page_returns_404(client, people):
    resp = client.get("/tables/people/data", params={"page": "4"})

    assert resp.status_code == 404
    body = resp.json()
    assert body["code"] == "http_404"
    assert "request_id" in body


def test_unknown_table_returns_404(client):
    resp = client.get("/tables/missing")

    assert resp.status_code == 404
    assert resp.json()["message"] == "Unregistered table"


def test_invalid_filter_value_returns_400(client, people):
    resp = client.get("/tables/people/data", params={"min_age": "old"})

    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_filter"


def test_configuration_error_returns_500(client):
    resp = client.get("/tables/broken/data")

    assert resp.status_code == 500
    assert resp.json()["code"] == "table_configuration_error"


def test_error_handlers_can_be_registered_on_other_apps():
    from tablekit.errors import TableNotFoundError, register_error_handlers

    other = FastAPI()
    register_error_handlers(other)

    @other.get("/boom")
    def boom():
        raise TableNotFoundError("Gone")

    resp = TestClient(other, raise_server_exceptions=False).get("/boom")

    assert resp.status_code == 404
    assert resp.json()["message"] == "Gone"
    assert resp.json()["request_id"] == "unknown"
