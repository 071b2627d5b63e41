# -*- coding: utf-8 -*-
import stripe
from flask import Flask

from offline_cashier.config import Config
from offline_cashier.database import db
from offline_cashier.routes.billing import register_billing_routes
from offline_cashier.services.request_context import init_request_context
from offline_cashier.services.structured_logging import init_logging


def create_app(config_overrides=None) -> Flask:
    app = Flask(__name__)
    app.url_map.strict_slashes = False

    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    db.init_app(app)

    if app.config.get("STRIPE_API_VERSION"):
        stripe.api_version = app.config["STRIPE_API_VERSION"]

    init_request_context(app)
    init_logging(app)

    register_billing_routes(app)

    return app
