# dairypro/application.py

from flask import Flask
from flask_cors import CORS

from dairypro.app_config import load_config
from dairypro.errors import configure_logging, register_error_handlers
from dairypro.mongo import init_mongo
from dairypro.register_blueprints import register_all_blueprints


def create_app(config=None, mongo_client=None):
    """
    Build the Flask app.

    `config` overrides environment settings; `mongo_client` replaces the
    Flask-PyMongo connection (tests pass a mongomock client).
    """
    app = Flask(__name__)

    # -------------------------
    # Config & logging
    # -------------------------
    load_config(app, config)
    configure_logging(app)

    CORS(app, resources={r"/*": {"origins": app.config["ALLOWED_ORIGINS"]}})

    # -------------------------
    # Mongo
    # -------------------------
    init_mongo(app, client=mongo_client)

    # -------------------------
    # Errors & blueprints
    # -------------------------
    register_error_handlers(app)
    register_all_blueprints(app)

    return app
