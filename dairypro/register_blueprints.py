"""
Centralized Blueprint Registration
All blueprints MUST be registered inside register_all_blueprints(app)
"""

API_PREFIX = "/api"


def _register(app, bp):
    app.register_blueprint(bp)
    # legacy clients call the same handlers under /api/...
    app.register_blueprint(
        bp,
        url_prefix=API_PREFIX + (bp.url_prefix or ""),
        name=f"api_{bp.name}",
    )


def register_all_blueprints(app):

    # Production
    from dairypro.routes.production_routes import production_bp
    _register(app, production_bp)

    # Suppliers + procurement
    from dairypro.routes.supplier_routes import supplier_bp
    from dairypro.routes.procurement_routes import procurement_bp
    _register(app, supplier_bp)
    _register(app, procurement_bp)

    # Health
    from dairypro.routes.health_routes import health_bp
    _register(app, health_bp)

    app.logger.debug("All blueprints registered")
