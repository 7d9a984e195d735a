from __future__ import annotations

import logging
import os
import sys

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from .config import Config
from .game.registry import RoomRegistry
from .routes.health import bp as health_bp, health
from .routes.rooms import bp as rooms_bp
from .realtime.handlers import register_socketio_handlers


def _default_async_mode() -> str:
    env_async_mode = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()
    if env_async_mode:
        return env_async_mode

    # - Windows: threading (eventlet has known compatibility issues on newer Python)
    # - Python >= 3.13: threading (safer default)
    # - Otherwise: eventlet
    if sys.platform.startswith("win") or sys.version_info >= (3, 13):
        return "threading"
    return "eventlet"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(config_class=Config, async_mode: str | None = None) -> tuple[Flask, SocketIO]:
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=async_mode or _default_async_mode(),
    )

    # One registry per app; rooms run their timers on the Socket.IO scheduler.
    registry = RoomRegistry(
        scheduler=socketio,
        emit=socketio.emit,
        code_length=app.config.get("ROOM_CODE_LENGTH"),
        max_rounds=app.config.get("MAX_ROUNDS"),
        round_duration_sec=app.config.get("ROUND_DURATION_SEC"),
        max_name_length=app.config.get("MAX_NAME_LENGTH"),
    )
    app.extensions["rooms"] = registry

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(rooms_bp, url_prefix="/api")
    # Bare root answers health probes too.
    app.add_url_rule("/", endpoint="index", view_func=health)

    register_socketio_handlers(socketio, registry)

    return app, socketio
