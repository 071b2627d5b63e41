# -*- coding: utf-8 -*-
"""
Datetimes are stored naive, in UTC, to match ``datetime.utcnow()``.
"""
from datetime import timezone


def to_utc_naive(value):
    """Convert an aware datetime to naive UTC; naive values pass through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utc_timestamp(value):
    """Unix timestamp for ``value``, reading naive datetimes as UTC."""
    return int(to_utc_naive(value).replace(tzinfo=timezone.utc).timestamp())
