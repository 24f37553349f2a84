import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from tabmark.api import api_bp
from tabmark.config import Config
from tabmark.errors import TabmarkError
from tabmark.extensions import db, migrate
from tabmark.schema_migrations import migrate_legacy_tab_assignments


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(TabmarkError)
    def handle_tabmark_error(exc: TabmarkError):
        db.session.rollback()
        return jsonify({"error": exc.message}), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"error": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        db.session.rollback()
        app.logger.exception("Unhandled error: %s", exc)
        return jsonify({"error": "internal server error"}), 500


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    level = str(app.config["LOG_LEVEL"]).upper()
    app.logger.setLevel(getattr(logging, level, logging.INFO))

    db.init_app(app)
    migrate.init_app(app, db)

    app.register_blueprint(api_bp)
    _register_error_handlers(app)

    @app.cli.command("init-db")
    def init_db_command():
        db.create_all()
        migrate_legacy_tab_assignments()
        print("Initialized Tabmark database.")

    with app.app_context():
        db.create_all()
        if app.config["STARTUP_MIGRATION_ENABLED"]:
            migrate_legacy_tab_assignments()

    return app
