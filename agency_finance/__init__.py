import os
from datetime import date, timedelta
from decimal import Decimal

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask.json.provider import DefaultJSONProvider
from flask_jwt_extended import JWTManager
from psycopg2 import errors as pg_errors

from agency_finance.routes import (
    auth_bp,
    user,
    core,
    admin_bp,
    clients_bp,
    settings_bp,
    fees_bp,
    billing_bp,
    media_bp,
    periods_bp,
    expenses_bp,
    employees_bp,
    payroll_bp,
    partners_bp,
    platforms_bp,
    events_bp,
    pl_bp,
    dashboard_bp,
    payments_bp,
)
from agency_finance.realtime import init_socketio
from agency_finance.utils.logger import get_logger

load_dotenv(dotenv_path=".env")
log = get_logger(__name__)


class FinanceJSONProvider(DefaultJSONProvider):
    """Money as JSON numbers and dates as ISO strings."""

    @staticmethod
    def default(o):
        if isinstance(o, Decimal):
            return float(o)
        if isinstance(o, date):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValueError)
    def handle_bad_input(e):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(pg_errors.UniqueViolation)
    def handle_conflict(e):
        detail = getattr(e.diag, "message_detail", None)
        return jsonify({"error": "already exists", "detail": detail}), 409

    @app.errorhandler(pg_errors.ForeignKeyViolation)
    def handle_missing_reference(e):
        detail = getattr(e.diag, "message_detail", None)
        return jsonify({"error": "referenced record does not exist", "detail": detail}), 400

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify({"error": "not found"}), 404

    @app.errorhandler(405)
    def handle_method(e):
        return jsonify({"error": "method not allowed"}), 405

    @app.errorhandler(500)
    def handle_server_error(e):
        log.exception("unhandled error: %s", getattr(e, "original_exception", e))
        return jsonify({"error": "internal server error"}), 500


def create_app():
    app = Flask(__name__)
    app.json = FinanceJSONProvider(app)
    app.url_map.strict_slashes = False

    # JWT
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET", "dev-secret")
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config["JWT_HEADER_NAME"] = "Authorization"
    app.config["JWT_HEADER_TYPE"] = "Bearer"
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(minutes=15)
    app.config["JWT_REFRESH_TOKEN_EXPIRES"] = timedelta(days=30)
    JWTManager(app)

    _register_error_handlers(app)

    app.register_blueprint(core)
    app.register_blueprint(admin_bp)
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(user, url_prefix="/api/users")
    app.register_blueprint(clients_bp, url_prefix="/api/clients")
    app.register_blueprint(settings_bp, url_prefix="/api/settings")
    app.register_blueprint(fees_bp, url_prefix="/api/fees")
    app.register_blueprint(billing_bp, url_prefix="/api/billing")
    app.register_blueprint(media_bp, url_prefix="/api/media")
    app.register_blueprint(periods_bp, url_prefix="/api/periods")
    app.register_blueprint(expenses_bp, url_prefix="/api/expenses")
    app.register_blueprint(employees_bp, url_prefix="/api/employees")
    app.register_blueprint(payroll_bp, url_prefix="/api/payroll")
    app.register_blueprint(partners_bp, url_prefix="/api/partners")
    app.register_blueprint(platforms_bp, url_prefix="/api/platforms")
    app.register_blueprint(events_bp, url_prefix="/api/events")
    app.register_blueprint(pl_bp, url_prefix="/api/pl")
    app.register_blueprint(dashboard_bp, url_prefix="/api/dashboard")
    app.register_blueprint(payments_bp, url_prefix="/api/payments")

    init_socketio(app)
    log.debug("registered %d routes", len(list(app.url_map.iter_rules())))
    return app
