"""
Application factory for the Retro Board application.
"""

import logging

from flask import Flask

from config import get_config
from models import db
from routes import bp, csrf, limiter
from sockets import init_socketio


def configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(level)


def create_app(env: str = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        env: Environment name (development, production, testing)

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)
    app.config.from_object(get_config(env))
    configure_logging(app)

    db.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)
    init_socketio(app)

    app.register_blueprint(bp)

    with app.app_context():
        db.create_all()

    app.logger.info(f"Retro Board initialised ({env or 'default'} environment)")
    return app
