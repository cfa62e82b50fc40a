"""Application factory for the session-auth API."""

from __future__ import annotations

from flask import Flask

from session_auth.core.config import AuthSettings, BaseConfig, get_config
from session_auth.core.logger import configure_logging


def _load_config(
    app: Flask, config: str | type[BaseConfig] | object | None, instance_file: str | None
) -> None:
    app.config.from_object(get_config() if config is None else config)
    if instance_file:
        app.config.from_pyfile(instance_file, silent=True)


def _wire(app: Flask, settings: AuthSettings) -> None:
    # Imported here: these modules reach the models and services, which in
    # turn need the extension singletons to exist first.
    from session_auth import cli
    from session_auth.api import init_app as init_api
    from session_auth.core import cors, errors, extensions, logger, proxy

    proxy.init_app(app)
    extensions.init_app(app, settings)
    logger.init_app(app)
    cors.init_app(app)
    init_api(app)
    errors.init_app(app)
    errors.register_jwt_handlers(extensions.jwt)
    cli.init_app(app)


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build the application.

    Configuration comes from ``config`` (an object, a dotted path, or the
    environment-selected class when ``None``), then from the instance folder's
    ``config.py`` if present.

    :raises ConfigurationError: When signing material or a lifetime is
        missing or invalid. The process refuses to start instead of failing
        on the first login.
    """
    app = Flask(__name__, instance_relative_config=instance_relative_config)
    _load_config(app, config, instance_config_filename if instance_relative_config else None)
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    settings = AuthSettings.from_mapping(app.config)
    _wire(app, settings)
    return app
