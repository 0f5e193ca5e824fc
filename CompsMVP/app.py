# CompsMVP/app.py

import os
import importlib
import logging
from logging.handlers import RotatingFileHandler

from flask import Flask, Blueprint, jsonify
from werkzeug.exceptions import HTTPException

from CompsMVP.config import Config
from CompsMVP.extensions import db, migrate, cors
from CompsMVP.services.wiring import build_services

import CompsMVP.models  # noqa: F401  (register tables with SQLAlchemy)

logger = logging.getLogger("CompsMVP")

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


# ---------------------------------------------------------
# Logging
# ---------------------------------------------------------
def configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logger.setLevel(level)

    if not any(getattr(h, "_compsmvp", False) for h in logger.handlers):
        stream = logging.StreamHandler()
        stream.setFormatter(logging.Formatter(LOG_FORMAT))
        stream._compsmvp = True
        logger.addHandler(stream)

        if app.config.get("LOG_TO_FILE") and not app.config.get("TESTING"):
            log_dir = app.config.get("LOG_FOLDER")
            os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                os.path.join(log_dir, "compsmvp.log"),
                maxBytes=5 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            file_handler._compsmvp = True
            logger.addHandler(file_handler)


# ---------------------------------------------------------
# App Factory
# ---------------------------------------------------------
def create_app(config_class=Config, http_session=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)

    configure_logging(app)

    # Initialize extensions
    cors.init_app(app, resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})
    db.init_app(app)
    migrate.init_app(app, db)

    # Services (storage, provider clients, reconciliation, scheduler)
    build_services(app, session=http_session)

    # Register all route blueprints dynamically
    register_blueprints(app)
    register_error_handlers(app)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    return app


# ---------------------------------------------------------
# Error Handlers
# ---------------------------------------------------------
def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return jsonify({"status": "error", "error": e.name.lower().replace(" ", "_")}), e.code

    @app.errorhandler(Exception)
    def handle_any_exception(e):
        logger.exception("Unhandled error: %s", e)
        db.session.rollback()
        return jsonify({"status": "error", "error": "internal_error"}), 500


# ---------------------------------------------------------
# Dynamic Blueprint Registration
# ---------------------------------------------------------
def register_blueprints(app):
    routes_dir = os.path.join(os.path.dirname(__file__), "routes")
    if not os.path.exists(routes_dir):
        logger.warning("No routes folder found.")
        return

    for file in sorted(os.listdir(routes_dir)):
        if file.endswith(".py") and not file.startswith("__"):
            mod_name = f"CompsMVP.routes.{file[:-3]}"
            mod = importlib.import_module(mod_name)
            for attr in dir(mod):
                obj = getattr(mod, attr)
                if isinstance(obj, Blueprint) and obj.name not in app.blueprints:
                    app.register_blueprint(obj)
                    logger.debug("Registered blueprint: %s -> %s", obj.name, obj.url_prefix)


if __name__ == "__main__":
    app = create_app()
    print("\nRegistered routes:")
    for rule in app.url_map.iter_rules():
        print(f"{rule.endpoint:40s} -> {rule.rule}")
    app.run(host="0.0.0.0", port=5050, debug=True, use_reloader=False)
