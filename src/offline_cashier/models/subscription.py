# -*- coding: utf-8 -*-
# src/offline_cashier/models/subscription.py
from datetime import datetime

from sqlalchemy.orm import validates

from offline_cashier.database import db
from offline_cashier.utils.dates import to_utc_naive


class Subscription(db.Model):
    """Local copy of a Stripe subscription owned by a user."""
    __tablename__ = 'subscriptions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    stripe_id = db.Column(db.String(255), nullable=False, index=True)
    stripe_plan = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    trial_ends_at = db.Column(db.DateTime, nullable=True)
    ends_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @validates('trial_ends_at', 'ends_at')
    def _store_utc(self, key, value):
        return to_utc_naive(value)

    def valid(self):
        """Active, on trial, or cancelled but still inside the paid period."""
        return self.active() or self.on_trial() or self.on_grace_period()

    def active(self):
        return self.ends_at is None or self.on_grace_period()

    def cancelled(self):
        return self.ends_at is not None

    def on_trial(self):
        return self.trial_ends_at is not None and datetime.utcnow() < self.trial_ends_at

    def on_grace_period(self):
        return self.ends_at is not None and datetime.utcnow() < self.ends_at

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "stripe_id": self.stripe_id,
            "stripe_plan": self.stripe_plan,
            "quantity": self.quantity,
            "trial_ends_at": self.trial_ends_at.isoformat() if self.trial_ends_at else None,
            "ends_at": self.ends_at.isoformat() if self.ends_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Subscription {self.name} {self.stripe_id}>'
