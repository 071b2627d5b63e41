# -*- coding: utf-8 -*-
"""
Fluent builder for new Stripe subscriptions.

    user.new_subscription('default', 'price_monthly').trial_days(14).create(token)
"""

from datetime import datetime, timedelta

import stripe

from offline_cashier.database import db
from offline_cashier.utils.dates import to_utc_naive, utc_timestamp
from offline_cashier.services.structured_logging import get_logger

logger = get_logger('offline_cashier.billing')


class SubscriptionBuilder:
    """Collects subscription options, then creates it in Stripe and locally."""

    def __init__(self, owner, name, plan):
        self.owner = owner
        self.name = name
        self.plan = plan

        self._quantity = 1
        self._trial_expires = None
        self._skip_trial = False
        self._coupon = None
        self._metadata = None

    def quantity(self, quantity):
        self._quantity = quantity
        return self

    def trial_days(self, days):
        self._trial_expires = datetime.utcnow() + timedelta(days=days)
        return self

    def trial_until(self, trial_until):
        self._trial_expires = to_utc_naive(trial_until)
        return self

    def skip_trial(self):
        self._skip_trial = True
        return self

    def with_coupon(self, coupon):
        self._coupon = coupon
        return self

    def with_metadata(self, metadata):
        self._metadata = metadata
        return self

    def add(self, options=None):
        """Create the subscription without collecting a new card."""
        return self.create(None, options)

    def create(self, token=None, options=None):
        from offline_cashier.models.subscription import Subscription

        customer = self._get_stripe_customer(token, options)

        stripe_subscription = stripe.Subscription.create(
            customer=customer.id,
            api_key=self.owner.stripe_key(),
            **self._build_payload()
        )

        trial_ends_at = None if self._skip_trial else self._trial_expires

        subscription = Subscription(
            user_id=self.owner.id,
            name=self.name,
            stripe_id=stripe_subscription.id,
            stripe_plan=self.plan,
            quantity=self._quantity,
            trial_ends_at=trial_ends_at,
            ends_at=None,
        )
        db.session.add(subscription)
        db.session.commit()

        logger.info(
            f"Subscription '{self.name}' created",
            customer_id=customer.id,
            subscription_id=stripe_subscription.id,
            plan=self.plan,
        )

        return subscription

    def _get_stripe_customer(self, token=None, options=None):
        # On Billable both branches return the expanded customer.
        if not self.owner.stripe_id:
            customer = self.owner.create_as_stripe_customer(options)
        else:
            customer = self.owner.as_stripe_customer()

        if token:
            self.owner.update_card(token)

        return customer

    def _build_payload(self):
        payload = {
            'items': [{'price': self.plan, 'quantity': self._quantity}],
        }

        if self._coupon:
            payload['coupon'] = self._coupon

        if self._metadata:
            payload['metadata'] = self._metadata

        trial_end = self._trial_end()
        if trial_end is not None:
            payload['trial_end'] = trial_end

        return payload

    def _trial_end(self):
        if self._skip_trial:
            return 'now'

        if self._trial_expires:
            return utc_timestamp(self._trial_expires)

        return None
