# -*- coding: utf-8 -*-
"""
offline-cashier: Stripe billing for a Flask-SQLAlchemy user model.

The four billing columns live under an ``offline_cashier_`` prefix on the
host ``users`` table, and the customer retrieval, creation and card update
calls are adjusted for the 2020-08-27 Stripe API, which no longer returns a
customer's sources and subscriptions unless they are expanded.
"""

__version__ = "1.0.0"
