"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from flask import Flask

from storefront.core.config import BaseConfig, get_config, validate_config
from storefront.core.logger import configure_logging
from storefront.core.logger import init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :raises RuntimeError: When :func:`validate_config` rejects the token setup.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    # flask-jwt-extended verifies access tokens with the access secret.
    app.config["JWT_SECRET_KEY"] = app.config.get("JWT_ACCESS_SECRET")
    validate_config(app.config)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from storefront.core import proxy

    proxy.init_app(app)

    from storefront.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from storefront.core import cors

    cors.init_app(app)

    from storefront.api import init_app as init_api

    init_api(app)

    from storefront.core import errors

    errors.init_app(app)

    from storefront import cli as app_cli

    app_cli.init_app(app)

    return app
