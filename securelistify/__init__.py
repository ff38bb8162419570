"""
SecureListify
Flask Application Factory.

Usage:
    from securelistify import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event
from werkzeug.exceptions import HTTPException

from securelistify.config import config
from securelistify.core.exceptions import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    SerializationError,
    ValidationError,
)
from securelistify.middleware.jwt_auth import init_jwt_middleware
from securelistify.middleware.logging_config import configure_logging, init_request_logging
from securelistify.middleware.rate_limiter import init_rate_limits
from securelistify.models import db
from securelistify.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# werkzeug HTTP status → API error code for framework-raised errors
_HTTP_CODES = {
    401: E.UNAUTHENTICATED,
    403: E.FORBIDDEN,
    404: E.NOT_FOUND,
    429: E.RATE_LIMITED,
}


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(key_func=get_remote_address, default_limits=[])


def _register_error_handlers(app):
    """One handler per service exception type; all bodies come from api_error."""

    @app.errorhandler(ValidationError)
    def _validation(error):
        db.session.rollback()
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @app.errorhandler(AuthenticationError)
    def _unauthenticated(error):
        return api_error(E.UNAUTHENTICATED, str(error))

    @app.errorhandler(ForbiddenError)
    def _forbidden(error):
        db.session.rollback()
        return api_error(E.FORBIDDEN, str(error))

    @app.errorhandler(NotFoundError)
    def _not_found(error):
        db.session.rollback()
        return api_error(E.NOT_FOUND, str(error))

    @app.errorhandler(ConflictError)
    def _conflict(error):
        db.session.rollback()
        code = E.CONFLICT_STATE if error.field == "version" else E.CONFLICT_DUPLICATE
        return api_error(code, str(error))

    @app.errorhandler(SerializationError)
    def _serialization(error):
        logger.exception("Export failed format=%s path=%s", error.fmt, request.path)
        return api_error(E.SERIALIZATION, str(error))

    @app.errorhandler(HTTPException)
    def _http(error):
        if not request.path.startswith("/api/") or error.code is None or error.code < 400:
            return error
        code = _HTTP_CODES.get(error.code, E.VALIDATION_INVALID if error.code < 500 else E.INTERNAL)
        return api_error(code, error.description or error.name, status=error.code)

    @app.errorhandler(Exception)
    def _unexpected(error):
        db.session.rollback()
        logger.exception("Unhandled error endpoint=%s", request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")


def _register_cli(app):

    @app.cli.command("seed-templates")
    def seed_templates_cmd():
        """Create the admin account (if needed) and load bundled templates."""
        from securelistify.services.seed_service import ensure_admin, seed_templates

        try:
            admin = ensure_admin(
                app.config["ADMIN_EMAIL"],
                app.config.get("ADMIN_PASSWORD"),
                app.config.get("ADMIN_NAME", "Admin User"),
            )
            result = seed_templates(admin)
        except ValidationError as exc:
            db.session.rollback()
            raise click.ClickException(str(exc)) from exc
        db.session.commit()
        click.echo(f"Seeded {len(result['created'])} templates, skipped {len(result['skipped'])}.")


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: "development", "testing" or "production".
                     Defaults to the APP_ENV env var, then "development".

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request middleware ───────────────────────────────────────────────
    init_request_logging(app)
    init_jwt_middleware(app)

    # ── Models (register tables on db.metadata) ──────────────────────────
    from securelistify.models import checklist as _checklist_models  # noqa: F401
    from securelistify.models import template as _template_models    # noqa: F401
    from securelistify.models import user as _user_models            # noqa: F401

    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///") and ":memory:" not in \
            app.config["SQLALCHEMY_DATABASE_URI"]:
        os.makedirs(app.instance_path, exist_ok=True)

    with app.app_context():
        db.create_all()

    # ── Blueprints ───────────────────────────────────────────────────────
    from securelistify.blueprints import all_blueprints

    for bp in all_blueprints():
        app.register_blueprint(bp)

    _register_error_handlers(app)
    _register_cli(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
