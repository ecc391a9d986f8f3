# dairypro/mongo.py
from __future__ import annotations

from typing import List, Optional

from flask import current_app
from flask_pymongo import PyMongo
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

ENTRIES = "entries"
SUPPLIERS = "suppliers"
PROCUREMENTS = "procurements"

EXTENSION_KEY = "dairypro_mongo"


class MongoGateway:
    """
    Owns the pooled Mongo client for one Flask app.

    Built once in create_app() and stored in app.extensions; request handlers
    reach the database through get_db(). Tests inject a client (mongomock)
    instead of letting Flask-PyMongo open a real connection.
    """

    def __init__(self, app=None, client=None):
        self.client = None
        self.db = None
        self.missing_indexes: List[str] = []
        self._pymongo: Optional[PyMongo] = None
        if app is not None:
            self.init_app(app, client=client)

    def init_app(self, app, client=None):
        if client is None:
            self._pymongo = PyMongo()
            self._pymongo.init_app(
                app,
                uri=app.config["MONGO_URI"],
                maxPoolSize=app.config["MONGO_MAX_POOL_SIZE"],
                serverSelectionTimeoutMS=app.config["MONGO_SERVER_SELECTION_TIMEOUT_MS"],
                socketTimeoutMS=app.config["MONGO_SOCKET_TIMEOUT_MS"],
                connectTimeoutMS=app.config["MONGO_CONNECT_TIMEOUT_MS"],
            )
            client = self._pymongo.cx

        self.client = client
        self.db = client[app.config["MONGO_DB_NAME"]]
        app.extensions[EXTENSION_KEY] = self

        self.missing_indexes = ensure_indexes(self.db, app.logger)
        app.logger.info("Mongo initialized (db=%s)", app.config["MONGO_DB_NAME"])
        return self

    def ping(self) -> bool:
        self.db.command("ping")
        return True

    def close(self):
        if self.client is not None:
            self.client.close()
        self.client = None
        self.db = None


def ensure_indexes(db, logger):
    """
    Storage-level guards for the uniqueness rules (batch labels, supplier
    phone numbers) plus the indexes behind the sorted list reads.
    A failure here is logged and startup continues; the names of the indexes
    that could not be built are returned for /health.
    """
    specs = [
        (ENTRIES, [("batch", ASCENDING)], {"unique": True, "name": "uniq_batch"}),
        (ENTRIES, [("date", DESCENDING), ("createdAt", DESCENDING)], {"name": "date_created"}),
        (SUPPLIERS, [("supplierNumber", ASCENDING)],
         {"unique": True, "name": "uniq_supplier_number",
          "partialFilterExpression": {"supplierNumber": {"$gt": ""}}}),
        (SUPPLIERS, [("createdAt", DESCENDING)], {"name": "created"}),
        (PROCUREMENTS, [("supplierId", ASCENDING), ("date", DESCENDING)], {"name": "supplier_date"}),
        (PROCUREMENTS, [("date", DESCENDING)], {"name": "date"}),
    ]
    missing = []
    for collection, keys, options in specs:
        try:
            db[collection].create_index(keys, **options)
        except PyMongoError as e:
            logger.warning("index %s.%s not created: %s", collection, options.get("name"), e)
            missing.append(f"{collection}.{options.get('name')}")
    return missing


def get_gateway(app=None) -> Optional[MongoGateway]:
    app = app or current_app
    return app.extensions.get(EXTENSION_KEY)


def get_db():
    """
    Returns the database of the current app.
    Raises RuntimeError when Mongo was disabled or never initialized.
    """
    gateway = get_gateway()
    if gateway is None or gateway.db is None:
        raise RuntimeError("Mongo is not initialized for this app")
    return gateway.db


def init_mongo(app, client=None) -> Optional[MongoGateway]:
    """
    Initializes the gateway during create_app().
    Honors DISABLE_MONGO=1 by leaving the app without a database.
    """
    if app.config.get("DISABLE_MONGO"):
        app.logger.warning("Mongo disabled by DISABLE_MONGO=1")
        return None

    return MongoGateway(app, client=client)
