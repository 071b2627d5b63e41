# -*- coding: utf-8 -*-
"""
Attach the Billable behavior to a host model class.

After ``implement_billable(User)`` every ``User`` instance has a cached
``billable`` accessor, and the billing operations can be called on the row
itself (``user.as_stripe_customer()``, ``user.update_card(token)``, ...),
each one running on that row's ``Billable``.
"""

from offline_cashier.billing.billable import Billable

BILLABLE_OPERATIONS = (
    'as_stripe_customer',
    'create_as_stripe_customer',
    'update_card',
    'has_stripe_id',
    'fill_card_details',
    'has_card_on_file',
    'cards',
    'default_card',
    'subscription',
    'subscribed',
    'on_trial',
    'on_generic_trial',
    'new_subscription',
)


def _billable(self):
    behavior = getattr(self, '_billable', None)
    if behavior is None:
        behavior = type(self)._billable_behavior(self)
        self._billable = behavior
    return behavior


def _forward(name, behavior):
    def operation(self, *args, **kwargs):
        return getattr(self.billable, name)(*args, **kwargs)

    operation.__name__ = name
    operation.__doc__ = getattr(behavior, name).__doc__
    return operation


def implement_billable(model_cls, behavior=Billable):
    """Extend ``model_cls`` with ``behavior``; existing attributes are kept."""
    if getattr(model_cls, '_billable_behavior', None) is behavior:
        return model_cls

    model_cls._billable_behavior = behavior
    model_cls.billable = property(_billable)

    for name in BILLABLE_OPERATIONS:
        if hasattr(model_cls, name):
            continue
        setattr(model_cls, name, _forward(name, behavior))

    return model_cls
