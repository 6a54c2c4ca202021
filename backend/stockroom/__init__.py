# backend/stockroom/__init__.py
import os

from flask import Flask, request

from .config import Config, engine_options_for
from .extensions import db, migrate

MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "migrations")



def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)

    # Overrides must land before db.init_app: the engine is built there
    if config_overrides:
        app.config.update(config_overrides)
        if "SQLALCHEMY_DATABASE_URI" in config_overrides and "SQLALCHEMY_ENGINE_OPTIONS" not in config_overrides:
            app.config["SQLALCHEMY_ENGINE_OPTIONS"] = engine_options_for(app.config["SQLALCHEMY_DATABASE_URI"])

    # app.logger is named after the package, so stockroom.* module loggers propagate to it
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db, directory=MIGRATIONS_DIR)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .storage import init_storage
    init_storage(app)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.categories import categories_bp
    from .routes.products import products_bp
    from .routes.inventory import inventory_bp
    from .routes.dashboard import dashboard_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(dashboard_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config.get("CORS_ALLOWED_ORIGINS", ()):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
