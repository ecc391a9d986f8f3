# dairypro/app_config.py

import os


def _env_int(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_float(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def load_config(app, overrides=None):
    """
    Load all Flask configuration in a clean centralized way.
    Values passed in `overrides` win over the environment.
    """
    # ------------------------------
    # Mongo
    # ------------------------------
    app.config["MONGO_URI"] = os.getenv(
        "MONGO_URI",
        "mongodb://localhost:27017/production"
    )
    app.config["MONGO_DB_NAME"] = os.getenv("MONGO_DB_NAME", "production")
    app.config["DISABLE_MONGO"] = os.getenv("DISABLE_MONGO", "0") == "1"

    app.config["MONGO_MAX_POOL_SIZE"] = _env_int("MONGO_MAX_POOL_SIZE", 10)
    app.config["MONGO_SERVER_SELECTION_TIMEOUT_MS"] = _env_int("MONGO_SERVER_SELECTION_TIMEOUT_MS", 5000)
    app.config["MONGO_SOCKET_TIMEOUT_MS"] = _env_int("MONGO_SOCKET_TIMEOUT_MS", 45000)
    app.config["MONGO_CONNECT_TIMEOUT_MS"] = _env_int("MONGO_CONNECT_TIMEOUT_MS", 10000)

    # ------------------------------
    # Runtime
    # ------------------------------
    app.config["APP_ENV"] = os.getenv("APP_ENV", "development")
    app.config["LOG_LEVEL"] = os.getenv("LOG_LEVEL", "INFO").upper()

    origins = os.getenv("ALLOWED_ORIGINS", "*")
    app.config["ALLOWED_ORIGINS"] = [o.strip() for o in origins.split(",") if o.strip()] or ["*"]

    # ------------------------------
    # Limits
    # ------------------------------
    app.config["PRODUCTION_LIST_LIMIT"] = _env_int("PRODUCTION_LIST_LIMIT", 100)
    app.config["PROCUREMENT_HISTORY_LIMIT"] = _env_int("PROCUREMENT_HISTORY_LIMIT", 5000)
    app.config["BATCH_RENAME_MAX_ATTEMPTS"] = _env_int("BATCH_RENAME_MAX_ATTEMPTS", 50)

    # Supplier total-solids rate bounds
    app.config["SUPPLIER_TS_RATE_MIN"] = _env_float("SUPPLIER_TS_RATE_MIN", 1.0)
    app.config["SUPPLIER_TS_RATE_MAX"] = _env_float("SUPPLIER_TS_RATE_MAX", 1000.0)

    # ------------------------------
    # Security Keys
    # ------------------------------
    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", os.urandom(24))

    if overrides:
        app.config.update(overrides)

    return app.config


def is_production(app) -> bool:
    return app.config.get("APP_ENV") == "production"
