# -*- coding: utf-8 -*-
# src/offline_cashier/models/user.py
from datetime import datetime

from sqlalchemy.orm import validates

from offline_cashier.database import db
from offline_cashier.utils.dates import to_utc_naive


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Billing columns, prefixed so they never collide with the host schema.
    # Read and written through Billable under their unprefixed names.
    offline_cashier_stripe_id = db.Column(db.String(255), nullable=True, index=True)
    offline_cashier_card_brand = db.Column(db.String(255), nullable=True)
    offline_cashier_card_last_four = db.Column(db.String(4), nullable=True)
    offline_cashier_trial_ends_at = db.Column(db.DateTime, nullable=True)

    @validates('offline_cashier_trial_ends_at')
    def _store_utc(self, key, value):
        return to_utc_naive(value)

    def save(self):
        db.session.add(self)
        db.session.commit()

    # --- safe serializer ---
    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "card_brand": self.offline_cashier_card_brand,
            "card_last_four": self.offline_cashier_card_last_four,
            "trial_ends_at": self.offline_cashier_trial_ends_at.isoformat() if self.offline_cashier_trial_ends_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<User {self.email}>'
