# backend/autocrm/__init__.py
import logging

from flask import Flask, jsonify, request

from .config import Config
from .extensions import db


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)

    # Import models so create_all sees every table
    from . import models  # noqa: F401
    from .fixtures import load_fixtures
    from .store import init_store

    with app.app_context():
        db.create_all()
        if app.config.get("SEED_FIXTURES"):
            count = load_fixtures(db.session)
            app.logger.info("Loaded %d fixture records", count)
        init_store(app, db.session)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.clients import clients_bp
    from .routes.vehicles import vehicles_bp
    from .routes.appointments import appointments_bp
    from .routes.work_orders import work_orders_bp
    from .routes.inventory import inventory_bp
    from .routes.settings import settings_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(clients_bp)
    app.register_blueprint(vehicles_bp)
    app.register_blueprint(appointments_bp)
    app.register_blueprint(work_orders_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(reports_bp)

    _register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "X-User-Id, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app


def _register_error_handlers(app: Flask) -> None:
    """Map store exceptions that escape a route to JSON errors."""
    from .services.entity_store import NotFoundError
    from .validation import ValidationError

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found(exc):
        return jsonify({"error": str(exc)}), 404
