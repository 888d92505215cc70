"""Charity lottery Flask application package."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dotenv import load_dotenv
from flask import Flask


def create_app(config_overrides: Mapping[str, Any] | None = None, events: Any | None = None) -> Flask:
    """Application factory.

    Args:
        config_overrides: values applied on top of the environment config (tests).
        events: an existing ``LotteryEvents`` to share; a new one is created otherwise.

    Returns:
        Configured Flask application.

    Raises:
        ConfigError: if the game settings are inconsistent.
    """
    load_dotenv()

    from charity_lottery.config import get_config, validate_game_config
    from charity_lottery.db import init_db
    from charity_lottery.error_handlers import register_error_handlers
    from charity_lottery.extensions import init_lottery
    from charity_lottery.logging_config import configure_logging
    from charity_lottery.routes.admin import admin_bp
    from charity_lottery.routes.beneficiaries import beneficiaries_bp
    from charity_lottery.routes.events import events_bp
    from charity_lottery.routes.game import game_bp
    from charity_lottery.routes.health import health_bp
    from charity_lottery.routes.lottery import lottery_bp
    from charity_lottery.routes.users import users_bp

    app = Flask(__name__)
    app.config.from_object(get_config())
    if config_overrides:
        app.config.update(config_overrides)

    validate_game_config(app.config)

    configure_logging(app)
    init_db(app)
    init_lottery(app, events=events)
    register_error_handlers(app)

    app.register_blueprint(health_bp)
    app.register_blueprint(game_bp, url_prefix="/api/game")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    app.register_blueprint(lottery_bp, url_prefix="/api/lottery")
    app.register_blueprint(events_bp, url_prefix="/api/events")
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(beneficiaries_bp, url_prefix="/api/beneficiaries")

    return app
