# -*- coding: utf-8 -*-
"""
Pytest configuration and shared fixtures for offline-cashier tests.
"""
import os
import tempfile
from datetime import datetime

import pytest
import stripe

# Set test environment before importing the app
os.environ["FLASK_ENV"] = "testing"
os.environ["TESTING"] = "true"

STRIPE_TEST_KEY = 'sk_test_fake_key'


@pytest.fixture
def app():
    """Create and configure a new app instance for each test."""
    from offline_cashier.factory import create_app
    from offline_cashier.database import db

    db_fd, db_path = tempfile.mkstemp(suffix='.db')

    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
        'SECRET_KEY': 'test-secret-key',
        'STRIPE_SECRET_KEY': STRIPE_TEST_KEY,
        'CASHIER_LOG_JSON': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def user(app):
    """A user with no Stripe customer yet."""
    from offline_cashier.models import User, db

    user = User(
        name='Test User',
        email='test@example.com',
        created_at=datetime.utcnow(),
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def customer_user(app):
    """A user that already has a Stripe customer and a card on file."""
    from offline_cashier.models import User, db

    user = User(
        name='Card Holder',
        email='customer@example.com',
        created_at=datetime.utcnow(),
        offline_cashier_stripe_id='cus_test_123',
        offline_cashier_card_brand='MasterCard',
        offline_cashier_card_last_four='4444',
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def billable(user):
    from offline_cashier.billing import Billable
    return Billable(user)


@pytest.fixture
def customer_billable(customer_user):
    from offline_cashier.billing import Billable
    return Billable(customer_user)


@pytest.fixture
def authenticated_client(client, customer_user):
    """A test client whose session belongs to customer_user."""
    with client.session_transaction() as sess:
        sess['user_id'] = customer_user.id
    return client


@pytest.fixture
def make_stripe_customer():
    """Build a Stripe customer object as returned by an expanded retrieve."""
    def _make(customer_id='cus_test_123', default_source='card_old', sources=None, subscriptions=None):
        if sources is None:
            sources = [_card_values('card_old', 'MasterCard', '4444')] if default_source else []
        return stripe.Customer.construct_from({
            'id': customer_id,
            'object': 'customer',
            'email': 'customer@example.com',
            'default_source': default_source,
            'sources': {'object': 'list', 'data': sources, 'has_more': False},
            'subscriptions': {'object': 'list', 'data': subscriptions or [], 'has_more': False},
        }, STRIPE_TEST_KEY)
    return _make


@pytest.fixture
def make_stripe_token():
    """Build a card token object."""
    def _make(token_id='tok_visa', card_id='card_new', brand='Visa', last4='4242'):
        return stripe.Token.construct_from({
            'id': token_id,
            'object': 'token',
            'type': 'card',
            'card': _card_values(card_id, brand, last4),
        }, STRIPE_TEST_KEY)
    return _make


@pytest.fixture
def make_stripe_card():
    def _make(card_id='card_new', brand='Visa', last4='4242'):
        return stripe.Card.construct_from(_card_values(card_id, brand, last4), STRIPE_TEST_KEY)
    return _make


def _card_values(card_id, brand, last4):
    return {
        'id': card_id,
        'object': 'card',
        'brand': brand,
        'last4': last4,
        'exp_month': 12,
        'exp_year': 2030,
    }
