# -*- coding: utf-8 -*-
"""
Generic billing behavior for a customer-like model.

``BillingMixin`` is written against a small set of attributes on ``self``:
``id``, ``email``, ``stripe_id``, ``card_brand``, ``card_last_four``,
``trial_ends_at`` and a ``save()`` method. A model that stores those columns
under their plain names can inherit it directly; the ``users`` table keeps
them under a prefix and goes through ``Billable`` instead.

The Stripe calls here follow the pre-2020-08-27 API, where a retrieved
customer carries its ``sources`` and ``subscriptions`` lists.
"""

import os
from datetime import datetime

import stripe
from flask import current_app, has_app_context

from offline_cashier.billing.builder import SubscriptionBuilder


class BillingMixin:
    """Default billing operations shared by every billable model."""

    _stripe_key = None

    # --- configuration ---
    @classmethod
    def stripe_key(cls):
        """Stripe secret key: explicit key, then app config, then environment.

        An explicit key set on a base class also applies to its subclasses.
        """
        for klass in cls.__mro__:
            key = klass.__dict__.get('_stripe_key')
            if key:
                return key
        if has_app_context():
            key = current_app.config.get('STRIPE_SECRET_KEY')
            if key:
                return key
        return os.environ.get('STRIPE_SECRET_KEY')

    @classmethod
    def set_stripe_key(cls, key):
        """Pin ``key`` on ``cls`` for the rest of the process; ``None`` unpins it."""
        cls._stripe_key = key

    # --- customer ---
    def has_stripe_id(self):
        return bool(self.stripe_id)

    def as_stripe_customer(self):
        return stripe.Customer.retrieve(self.stripe_id, api_key=self.stripe_key())

    def create_as_stripe_customer(self, options=None):
        """Create the Stripe customer and remember its id on this model.

        An ``email`` already present in ``options`` is sent as given, even
        when it is ``None``.
        """
        options = dict(options or {})
        options.setdefault('email', self.email)

        customer = stripe.Customer.create(api_key=self.stripe_key(), **options)

        self.stripe_id = customer.id
        self.save()

        return customer

    # --- cards ---
    def update_card(self, token):
        """Make the card behind ``token`` the customer's default source.

        Returns the new card, or ``None`` when the token already points at the
        default source.
        """
        customer = self.as_stripe_customer()

        token = stripe.Token.retrieve(token, api_key=self.stripe_key())

        if token[token.type].id == customer.default_source:
            return None

        card = stripe.Customer.create_source(customer.id, source=token.id, api_key=self.stripe_key())
        customer = stripe.Customer.modify(customer.id, default_source=card.id, api_key=self.stripe_key())

        source = None
        if customer.default_source:
            source = stripe.Customer.retrieve_source(
                customer.id, customer.default_source, api_key=self.stripe_key())

        self.fill_card_details(source)
        self.save()

        return card

    def fill_card_details(self, card):
        if card:
            self.card_brand = card.brand
            self.card_last_four = card.last4
        else:
            self.card_brand = None
            self.card_last_four = None

        return self

    def has_card_on_file(self):
        return bool(self.card_brand)

    def cards(self):
        if not self.stripe_id:
            return []

        sources = stripe.Customer.list_sources(
            self.stripe_id, object='card', limit=24, api_key=self.stripe_key())
        return list(sources.data)

    def default_card(self):
        customer = self.as_stripe_customer()

        for source in customer.sources.data:
            if source.id == customer.default_source:
                return source

        return None

    # --- subscriptions ---
    def subscriptions(self):
        from offline_cashier.models.subscription import Subscription

        return Subscription.query.filter_by(user_id=self.id).order_by(Subscription.created_at.desc())

    def subscription(self, name='default'):
        return self.subscriptions().filter_by(name=name).first()

    def subscribed(self, name='default', plan=None):
        subscription = self.subscription(name)

        if subscription is None or not subscription.valid():
            return False

        return plan is None or subscription.stripe_plan == plan

    def on_trial(self, name='default', plan=None):
        if name == 'default' and plan is None and self.on_generic_trial():
            return True

        subscription = self.subscription(name)

        if subscription is None or not subscription.on_trial():
            return False

        return plan is None or subscription.stripe_plan == plan

    def on_generic_trial(self):
        """Trial on the user itself, with no subscription behind it yet."""
        return self.trial_ends_at is not None and datetime.utcnow() < self.trial_ends_at

    def new_subscription(self, name, plan):
        return SubscriptionBuilder(self, name, plan)
