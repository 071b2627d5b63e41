# -*- coding: utf-8 -*-
"""
Billing log output.

Every call takes keyword context (``customer_id``, ``card_id``,
``subscription_id`` ...) that is emitted as its own JSON field, next to the
current request's id, method, path and billing user when there is one.
"""

import json
import logging
from datetime import datetime, timezone
from flask import Flask, has_request_context
from offline_cashier.services.request_context import get_request_context

CASHIER_LOGGERS = [
    'offline_cashier.billing',
    'offline_cashier.routes',
]


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, or the bare message when JSON is off."""

    def __init__(self, json_enabled: bool = True):
        super().__init__()
        self.json_enabled = json_enabled

    def format(self, record: logging.LogRecord) -> str:
        if not self.json_enabled:
            return super().format(record)

        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        if has_request_context():
            entry.update(get_request_context())
        entry.update(getattr(record, 'billing_context', {}))
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class StructuredLogger:
    """Wraps a stdlib logger so context is passed as keyword arguments."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def log(self, level: int, message: str, **context):
        self.logger.log(level, message, extra={'billing_context': context})

    def debug(self, message: str, **context):
        self.log(logging.DEBUG, message, **context)

    def info(self, message: str, **context):
        self.log(logging.INFO, message, **context)

    def warning(self, message: str, **context):
        self.log(logging.WARNING, message, **context)

    def log_stripe_error(self, operation: str, error: Exception, **context):
        """Record a failed Stripe call with its error class and Stripe code."""
        self.log(
            logging.ERROR,
            f"Stripe error during {operation}: {error}",
            event_type='stripe_error',
            operation=operation,
            error_type=type(error).__name__,
            stripe_code=getattr(error, 'code', None),
            **context
        )


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)


def configure_logging(app: Flask):
    """Route billing loggers to a single stderr handler at ``LOG_LEVEL``."""
    json_enabled = app.config.get('CASHIER_LOG_JSON', True)
    level_name = app.config.get('LOG_LEVEL', 'INFO')
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(json_enabled=json_enabled))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)
    app.logger.setLevel(level)

    for name in CASHIER_LOGGERS:
        logging.getLogger(name).setLevel(level)


def init_logging(app: Flask):
    configure_logging(app)

    get_logger('offline_cashier.startup').info(
        "Billing app starting",
        json_enabled=app.config.get('CASHIER_LOG_JSON', True),
        stripe_configured=bool(app.config.get('STRIPE_SECRET_KEY')),
    )
