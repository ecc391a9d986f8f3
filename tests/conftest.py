"""Pytest configuration and fixtures for DairyPro tests.

The app is built against an in-memory mongomock client, so no MongoDB
server is needed.
"""

import mongomock
import pytest

from dairypro.application import create_app


TEST_CONFIG = {
    "TESTING": True,
    "APP_ENV": "test",
    "MONGO_DB_NAME": "test_dairypro",
    "SECRET_KEY": "test",
}


@pytest.fixture
def mongo_client():
    return mongomock.MongoClient()


@pytest.fixture
def app(mongo_client):
    app = create_app(TEST_CONFIG, mongo_client=mongo_client)
    yield app
    app.extensions["dairypro_mongo"].close()


@pytest.fixture
def make_app(mongo_client):
    """Build a second app with extra config on the same in-memory client."""
    def _make(**overrides):
        return create_app({**TEST_CONFIG, **overrides}, mongo_client=mongo_client)
    return _make


@pytest.fixture
def db(app):
    return app.extensions["dairypro_mongo"].db


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


# ── Test Data Fixtures ───────────────────────────────────────────

@pytest.fixture
def make_supplier(client):
    """POST a supplier and return the JSON body."""
    def _make(**overrides):
        body = {
            "supplierName": "Ravi Farms",
            "supplierType": "Farmer",
            "supplierAddress": "12 Main Road, Gudiyatham",
            "supplierTSRate": 350,
        }
        body.update(overrides)
        resp = client.post("/supplier", json=body)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()
    return _make


@pytest.fixture
def supplier(make_supplier):
    return make_supplier(supplierNumber="9876543210")
