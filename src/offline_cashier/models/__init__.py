# -*- coding: utf-8 -*-
from offline_cashier.database import db

from .subscription import Subscription
from .user import User

from offline_cashier.billing.extension import implement_billable

implement_billable(User)

__all__ = ["db", "Subscription", "User"]
