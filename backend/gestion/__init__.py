# backend/gestion/__init__.py
import logging

from flask import Flask

from .config import Config
from .extensions import db, migrate


def create_app(config=None) -> Flask:
    """
    Build the application.

    config may be a config class (e.g. TestConfig) or a mapping of overrides
    applied on top of Config.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)

    if isinstance(config, dict):
        app.config.update(config)
    elif config is not None:
        app.config.from_object(config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
