# -*- coding: utf-8 -*-
"""
SubscriptionBuilder: customer resolution, Stripe payload and local row.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import stripe

from offline_cashier.billing import Billable, SubscriptionBuilder
from offline_cashier.models import Subscription

STRIPE_TEST_KEY = 'sk_test_fake_key'


def _stripe_subscription(subscription_id='sub_test_123'):
    return stripe.Subscription.construct_from(
        {'id': subscription_id, 'object': 'subscription', 'status': 'active'}, STRIPE_TEST_KEY)


class TestPayload:

    def test_minimal_payload(self, billable):
        payload = SubscriptionBuilder(billable, 'default', 'price_monthly')._build_payload()

        assert payload == {'items': [{'price': 'price_monthly', 'quantity': 1}]}

    def test_full_payload(self, billable):
        builder = (SubscriptionBuilder(billable, 'default', 'price_monthly')
                   .quantity(3)
                   .with_coupon('LAUNCH')
                   .with_metadata({'source': 'signup'})
                   .trial_until(datetime(2030, 1, 1)))

        assert builder._build_payload() == {
            'items': [{'price': 'price_monthly', 'quantity': 3}],
            'coupon': 'LAUNCH',
            'metadata': {'source': 'signup'},
            'trial_end': 1893456000,
        }

    def test_aware_trial_end_converted_to_utc(self, billable):
        trial_end = datetime(2030, 1, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))

        builder = SubscriptionBuilder(billable, 'default', 'price_monthly').trial_until(trial_end)

        assert builder._build_payload()['trial_end'] == 1893456000

    def test_skip_trial_ends_trial_now(self, billable):
        builder = SubscriptionBuilder(billable, 'default', 'price_monthly').trial_days(14).skip_trial()

        assert builder._build_payload()['trial_end'] == 'now'


class TestCreate:

    def test_new_customer_is_created_then_subscribed(self, user, make_stripe_customer):
        created = stripe.Customer.construct_from({'id': 'cus_new'}, STRIPE_TEST_KEY)

        with patch('stripe.Customer.create', return_value=created) as mock_create, \
                patch('stripe.Customer.retrieve', return_value=make_stripe_customer('cus_new')), \
                patch('stripe.Subscription.create', return_value=_stripe_subscription()) as mock_sub:
            subscription = user.new_subscription('default', 'price_monthly').create(
                options={'name': 'Test User'})

        mock_create.assert_called_once_with(
            api_key=STRIPE_TEST_KEY, name='Test User', email='test@example.com')
        mock_sub.assert_called_once_with(
            customer='cus_new',
            api_key=STRIPE_TEST_KEY,
            items=[{'price': 'price_monthly', 'quantity': 1}],
        )

        assert isinstance(subscription, Subscription)
        assert subscription.id is not None
        assert subscription.user_id == user.id
        assert subscription.stripe_id == 'sub_test_123'
        assert subscription.stripe_plan == 'price_monthly'
        assert subscription.ends_at is None
        assert user.offline_cashier_stripe_id == 'cus_new'
        assert user.billable.subscribed() is True

    def test_existing_customer_with_token_updates_card(self, customer_user, make_stripe_customer):
        customer = make_stripe_customer()

        with patch('stripe.Customer.retrieve', return_value=customer), \
                patch('stripe.Customer.create') as mock_create, \
                patch.object(Billable, 'update_card', autospec=True) as mock_update_card, \
                patch('stripe.Subscription.create', return_value=_stripe_subscription()) as mock_sub:
            customer_user.new_subscription('default', 'price_monthly').create('tok_visa')

        mock_create.assert_not_called()
        mock_update_card.assert_called_once_with(customer_user.billable, 'tok_visa')
        assert mock_sub.call_args.kwargs['customer'] == 'cus_test_123'

    def test_trial_recorded_locally(self, customer_billable, make_stripe_customer):
        trial_end = datetime(2030, 1, 1)

        with patch('stripe.Customer.retrieve', return_value=make_stripe_customer()), \
                patch('stripe.Subscription.create', return_value=_stripe_subscription()) as mock_sub:
            subscription = customer_billable.new_subscription('default', 'price_monthly') \
                .trial_until(trial_end).add()

        assert mock_sub.call_args.kwargs['trial_end'] == 1893456000
        assert subscription.trial_ends_at == trial_end

    def test_skipped_trial_not_recorded(self, customer_billable, make_stripe_customer):
        with patch('stripe.Customer.retrieve', return_value=make_stripe_customer()), \
                patch('stripe.Subscription.create', return_value=_stripe_subscription()):
            subscription = customer_billable.new_subscription('default', 'price_monthly') \
                .trial_days(7).skip_trial().add()

        assert subscription.trial_ends_at is None

    def test_aware_trial_stored_as_naive_utc(self, customer_billable, make_stripe_customer):
        trial_end = datetime(2030, 1, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))

        with patch('stripe.Customer.retrieve', return_value=make_stripe_customer()), \
                patch('stripe.Subscription.create', return_value=_stripe_subscription()):
            subscription = customer_billable.new_subscription('default', 'price_monthly') \
                .trial_until(trial_end).add()

        assert subscription.trial_ends_at == datetime(2030, 1, 1, 0, 0)
        assert subscription.on_trial() is True
        assert customer_billable.on_trial() is True
