# -*- coding: utf-8 -*-
from offline_cashier.billing.builder import SubscriptionBuilder
from offline_cashier.billing.mixin import BillingMixin
from offline_cashier.billing.billable import Billable, COLUMN_ALIASES, register_subscriptions_relation
from offline_cashier.billing.extension import implement_billable, BILLABLE_OPERATIONS

__all__ = [
    "Billable",
    "BillingMixin",
    "SubscriptionBuilder",
    "COLUMN_ALIASES",
    "BILLABLE_OPERATIONS",
    "implement_billable",
    "register_subscriptions_relation",
]
