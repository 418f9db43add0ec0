"""Smart Tasbih application factory."""

from __future__ import annotations

from datetime import datetime
from importlib import import_module
from typing import Callable, Iterable

from flask import Flask, g, jsonify
from werkzeug.exceptions import HTTPException

from . import cli as _cli
from .config import BaseConfig, DevConfig, TestConfig
from .context import create_app_context
from .errors import TasbihError
from .extensions import init_app_context
from .logging_config import get_logger, setup_logging

_CONFIG_MAP = {
    "development": DevConfig,
    "testing": TestConfig,
    "default": BaseConfig,
}

logger = get_logger("app")


def _resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return _CONFIG_MAP.get(name.lower(), BaseConfig)


def _blueprint_paths() -> Iterable[str]:
    """Yield blueprint import paths."""

    yield "tasbih.blueprints.tasbih"
    yield "tasbih.blueprints.metrics"
    yield "tasbih.blueprints.webhooks"


def create_app(
    config_name: str | None = None,
    *,
    config: BaseConfig | None = None,
    clock: Callable[[], datetime] | None = None,
) -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__, instance_relative_config=True)
    config_obj = config or _resolve_config(config_name)()
    app.config.from_object(config_obj)
    app.config["TASBIH_CONFIG"] = config_obj

    setup_logging(config_obj)
    init_app_context(app, create_app_context(config_obj, clock=clock))
    _register_blueprints(app)
    _register_error_handlers(app)
    _cli.init_app(app)

    logger.info("Smart Tasbih app created (database: %s)", config_obj.DATABASE_URL.split("://")[0])
    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        blueprint = getattr(module, "bp")
        app.register_blueprint(blueprint)


def _register_error_handlers(app: Flask) -> None:
    """Render every error as JSON."""

    @app.errorhandler(TasbihError)
    def _handle_tasbih_error(exc: TasbihError):
        if exc.status_code >= 500:
            g.request_error = exc.message
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(HTTPException)
    def _handle_http_error(exc: HTTPException):
        code = exc.code or 500
        name = (exc.name or "error").lower().replace(" ", "_")
        return jsonify({"error": name, "message": exc.description}), code

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        g.request_error = str(exc) or exc.__class__.__name__
        return jsonify({"error": "internal_error", "message": "Internal server error"}), 500


__all__ = ["BaseConfig", "DevConfig", "TestConfig", "create_app"]
