# backend/pharmacy/__init__.py
import traceback

from flask import Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from .config import Config, parse_duration
from .errors import ErrorKind, ServiceError, error_response
from .extensions import db, migrate
from .validation import ConflictError, ValidationError


def _error_body(kind: ErrorKind, message: str):
    return error_response(ServiceError(kind, message))


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def handle_validation_error(exc):
        return _error_body(ErrorKind.VALIDATION_FAILED, str(exc))

    @app.errorhandler(ConflictError)
    def handle_conflict_error(exc):
        return _error_body(ErrorKind.DUPLICATE_EMAIL, str(exc))

    @app.errorhandler(404)
    def handle_not_found(exc):
        return _error_body(ErrorKind.ROUTE_NOT_FOUND, f"Route {request.path} not found")

    @app.errorhandler(405)
    def handle_method_not_allowed(exc):
        return jsonify({"status": "fail", "message": "Method not allowed"}), 405

    @app.errorhandler(Exception)
    def handle_unexpected(exc):
        if isinstance(exc, HTTPException):
            return jsonify({"status": "fail", "message": exc.description}), exc.code
        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        body = {"status": "error", "message": "Internal server error"}
        if current_app.config.get("EXPOSE_STACK_TRACES"):
            body["stack"] = traceback.format_exc()
        return jsonify(body), 500


def create_app(config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config:
        app.config.update(config)
    for key in ("JWT_EXPIRES_IN", "JWT_REFRESH_EXPIRES_IN"):
        app.config[key] = parse_duration(app.config[key])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .repositories import build_repositories
    from .services import EXTENSION_KEY, build_services

    backend = app.config["REPOSITORY_BACKEND"]
    app.extensions[EXTENSION_KEY] = build_services(app.config, build_repositories(backend), app.logger)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.catalog import products_bp, categories_bp
    from .routes.orders import orders_bp
    from .routes.admin import admin_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(admin_bp)

    register_error_handlers(app)

    allowed_origins = set(app.config["CORS_ORIGINS"])

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    if app.config["SEED_DEMO_DATA"]:
        from .services.seed_service import seed_demo_data

        with app.app_context():
            if backend == "sql":
                db.create_all()
            services = app.extensions[EXTENSION_KEY]
            seed_demo_data(
                services.auth,
                services.catalog,
                admin_email=app.config["DEFAULT_ADMIN_EMAIL"],
                admin_password=app.config["DEFAULT_ADMIN_PASSWORD"],
            )

    return app
