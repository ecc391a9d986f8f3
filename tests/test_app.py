import mongomock
import pytest
from pymongo.errors import PyMongoError

from dairypro.utils.parsing import is_valid_date, parse_quantity, round_half_up


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["ok"] is True
    assert isinstance(body["collections"], list)
    assert body["missingIndexes"] == []

    assert client.get("/api/health").status_code == 200


def test_health_without_mongo(make_app):
    app = make_app(DISABLE_MONGO=True)
    resp = app.test_client().get("/health")
    assert resp.status_code == 500
    assert resp.get_json()["ok"] is False


def test_unknown_route_is_json_404(client):
    resp = client.get("/nowhere")
    assert resp.status_code == 404
    assert "error" in resp.get_json()


def test_wrong_method_is_json_405(client):
    resp = client.patch("/production")
    assert resp.status_code == 405
    assert "error" in resp.get_json()


def _break_find(monkeypatch):
    def boom(*args, **kwargs):
        raise PyMongoError("connection refused")
    monkeypatch.setattr(mongomock.collection.Collection, "find", boom)


def test_database_failure_is_500_with_details(client, monkeypatch):
    _break_find(monkeypatch)
    resp = client.get("/production")
    assert resp.status_code == 500
    body = resp.get_json()
    assert body["error"] == "Failed to fetch production records"
    assert body["details"] == "connection refused"


def test_database_failure_hides_details_in_production(make_app, monkeypatch):
    app = make_app(APP_ENV="production")
    _break_find(monkeypatch)
    resp = app.test_client().get("/supplier")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Failed to fetch supplier records"}


def test_config_overrides_environment(monkeypatch, make_app):
    monkeypatch.setenv("PRODUCTION_LIST_LIMIT", "7")
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://a.example, http://b.example")
    app = make_app()
    assert app.config["PRODUCTION_LIST_LIMIT"] == 7
    assert app.config["ALLOWED_ORIGINS"] == ["http://a.example", "http://b.example"]
    assert app.config["MONGO_DB_NAME"] == "test_dairypro"


def test_unique_indexes_created(db):
    entry_indexes = db.entries.index_information()
    assert entry_indexes["uniq_batch"]["unique"] is True
    assert "uniq_supplier_number" in db.suppliers.index_information()


# ── Parsing helpers ──────────────────────────────────────────────

@pytest.mark.parametrize("value,expected", [
    (2.675, 2.68),
    (1.005, 1.01),
    (0.125, 0.13),
    (10, 10.0),
])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


@pytest.mark.parametrize("value", [1e27, float("inf")])
def test_round_half_up_rejects_unroundable(value):
    with pytest.raises(ValueError):
        round_half_up(value)


@pytest.mark.parametrize("value,pct,expected", [
    ("12.345", False, 12.35),
    ("0", False, 0.0),
    ("-1", False, None),
    ("abc", False, None),
    (None, False, None),
    ("nan", False, None),
    (True, False, None),
    ("4.25", True, 4.3),
    ("100", True, 100.0),
    ("100.1", True, None),
    ("1e27", False, None),
    ("1e25", False, 1e25),
])
def test_parse_quantity(value, pct, expected):
    assert parse_quantity(value, is_percentage=pct) == expected


@pytest.mark.parametrize("value,ok", [
    ("2024-02-29", True),
    ("2023-02-29", False),
    ("2024-1-01", False),
    (20240101, False),
])
def test_is_valid_date(value, ok):
    assert is_valid_date(value) is ok
