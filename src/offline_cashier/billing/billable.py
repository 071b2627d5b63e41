# -*- coding: utf-8 -*-
"""
Billable wraps a host ``User`` row so the billing layer can treat it as a
customer.

Three things happen here:

* The billing columns ``stripe_id``, ``card_brand``, ``card_last_four`` and
  ``trial_ends_at`` are stored on the host table as
  ``offline_cashier_<name>``. Reads and writes under the plain name are
  translated through ``COLUMN_ALIASES``; every other name reaches the record
  untouched.
* ``as_stripe_customer``, ``create_as_stripe_customer`` and ``update_card``
  are overridden for the 2020-08-27 Stripe API, which stopped returning
  ``sources`` and ``subscriptions`` on a customer unless they are expanded.
* Anything not defined here (attributes and methods alike) is looked up on
  the wrapped record.

Stripe and database errors are not caught: they reach the caller as raised.
"""

import stripe
from sqlalchemy import inspect as sa_inspect

from offline_cashier.billing.mixin import BillingMixin
from offline_cashier.database import db
from offline_cashier.services.structured_logging import get_logger

logger = get_logger('offline_cashier.billing')

COLUMN_PREFIX = 'offline_cashier_'

COLUMN_ALIASES = {
    'stripe_id': COLUMN_PREFIX + 'stripe_id',
    'card_brand': COLUMN_PREFIX + 'card_brand',
    'card_last_four': COLUMN_PREFIX + 'card_last_four',
    'trial_ends_at': COLUMN_PREFIX + 'trial_ends_at',
}

CUSTOMER_EXPANSIONS = ['sources', 'subscriptions']


def register_subscriptions_relation(model_cls):
    """Add a ``subscriptions`` relationship, newest first, to ``model_cls``.

    Does nothing when the model already has a property of that name.
    """
    from offline_cashier.models.subscription import Subscription

    if sa_inspect(model_cls).has_property('subscriptions'):
        return

    model_cls.subscriptions = db.relationship(
        Subscription,
        order_by=Subscription.created_at.desc(),
        lazy='dynamic',
    )


def _aliased_column(name):
    def getter(self):
        return self.get_attribute(name)

    def setter(self, value):
        self.set_attribute(name, value)

    return property(getter, setter, doc=f"``{name}``, stored as ``{COLUMN_ALIASES[name]}``.")


class Billable(BillingMixin):
    """Customer view of a host user record."""

    stripe_id = _aliased_column('stripe_id')
    card_brand = _aliased_column('card_brand')
    card_last_four = _aliased_column('card_last_four')
    trial_ends_at = _aliased_column('trial_ends_at')

    def __init__(self, record):
        object.__setattr__(self, '_record', record)
        register_subscriptions_relation(type(record))

    @property
    def record(self):
        return self._record

    @property
    def email(self):
        return self._record.email

    @email.setter
    def email(self, value):
        self._record.email = value

    def save(self):
        return self._record.save()

    # --- overrides ---
    def subscriptions(self):
        # Registered in __init__, newest first.
        return self._record.subscriptions

    def as_stripe_customer(self):
        return stripe.Customer.retrieve(
            self.stripe_id,
            expand=CUSTOMER_EXPANSIONS,
            api_key=self.stripe_key(),
        )

    def create_as_stripe_customer(self, options=None):
        """Create the Stripe customer, save its id, and return it expanded.

        The create response carries neither ``sources`` nor ``subscriptions``,
        which ``SubscriptionBuilder`` relies on, so the customer is retrieved
        again through the host record once the id is stored.
        """
        customer = super().create_as_stripe_customer(options)

        logger.info(
            "Stripe customer created",
            user_id=self._record.id,
            customer_id=customer.id,
        )

        return self._record.as_stripe_customer()

    def update_card(self, token):
        customer = self.as_stripe_customer()

        token = stripe.Token.retrieve(token, api_key=self.stripe_key())

        if token[token.type].id == customer.default_source:
            logger.debug(
                "Card is already the default source",
                customer_id=customer.id,
                card_id=customer.default_source,
            )
            return None

        card = stripe.Customer.create_source(customer.id, source=token.id, api_key=self.stripe_key())
        customer = stripe.Customer.modify(customer.id, default_source=card.id, api_key=self.stripe_key())

        self.fill_card_details(card if customer.default_source else None)
        self.save()

        logger.info(
            "Default card replaced",
            customer_id=customer.id,
            card_id=card.id,
            card_brand=self.card_brand,
        )

        return card

    # --- attribute delegation ---
    def get_attribute(self, name):
        return getattr(self._record, COLUMN_ALIASES.get(name, name))

    def set_attribute(self, name, value):
        setattr(self._record, COLUMN_ALIASES.get(name, name), value)
        return value

    def has_attribute(self, name):
        """Whether the record has ``name`` set to something other than None.

        Unlike get_attribute and set_attribute this does not translate the
        aliased columns: ``has_attribute('stripe_id')`` asks the record for a
        ``stripe_id`` attribute, not ``offline_cashier_stripe_id``.
        """
        return getattr(self._record, name, None) is not None

    def __getattr__(self, name):
        if name.startswith('_'):
            raise AttributeError(name)
        return self.get_attribute(name)

    def __setattr__(self, name, value):
        if name.startswith('_') or isinstance(getattr(type(self), name, None), property):
            object.__setattr__(self, name, value)
        else:
            self.set_attribute(name, value)

    def __repr__(self):
        return f'<Billable {self._record!r}>'
