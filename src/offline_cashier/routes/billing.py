# -*- coding: utf-8 -*-
"""
Billing routes for the signed-in user.

Thin HTTP layer over the user's Billable: create the Stripe customer, replace
the default card, list local subscriptions. Stripe errors are translated to
HTTP status codes here and nowhere else.
"""

from functools import wraps

import stripe
from flask import Blueprint, request, jsonify, session
from marshmallow import Schema, fields, validate, ValidationError

from offline_cashier.database import db
from offline_cashier.models import User
from offline_cashier.services.request_context import set_billing_user
from offline_cashier.services.structured_logging import get_logger

logger = get_logger('offline_cashier.routes')

billing_bp = Blueprint('billing', __name__, url_prefix='/api/billing')


class CreateCustomerSchema(Schema):
    """Schema for Stripe customer creation."""
    email = fields.Email(required=False)
    name = fields.Str(required=False)
    description = fields.Str(required=False)
    metadata = fields.Dict(keys=fields.Str(), values=fields.Str(), required=False)


class UpdateCardSchema(Schema):
    """Schema for default card replacement."""
    token = fields.Str(required=True, validate=validate.Length(min=1))


def require_user(func):
    """Resolve the session user and pass it to the view."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        user_id = session.get('user_id')
        if not user_id:
            return jsonify({'error': 'Authentication required'}), 401

        user = db.session.get(User, user_id)
        if user is None:
            return jsonify({'error': 'User not found'}), 404

        set_billing_user(user.id)
        return func(user, *args, **kwargs)
    return wrapper


def _stripe_error_response(operation, error, **context):
    logger.log_stripe_error(operation, error, **context)

    if isinstance(error, (stripe.CardError, stripe.InvalidRequestError)):
        return jsonify({'error': error.user_message or 'Invalid billing request'}), 400
    if isinstance(error, stripe.AuthenticationError):
        return jsonify({'error': 'Billing service authentication failed'}), 500
    if isinstance(error, stripe.APIConnectionError):
        return jsonify({'error': 'Billing service temporarily unavailable'}), 503
    return jsonify({'error': 'Billing service error'}), 502


@billing_bp.route('/customer', methods=['POST'])
@require_user
def create_customer(user):
    """
    Create the Stripe customer for the signed-in user.

    Returns:
        JSON response with the Stripe customer id, 409 if one already exists
    """
    try:
        options = CreateCustomerSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        logger.warning("Invalid customer request", details=e.messages)
        return jsonify({'error': 'Invalid request data', 'details': e.messages}), 400

    billable = user.billable
    if billable.has_stripe_id():
        return jsonify({'error': 'Stripe customer already exists',
                        'customer_id': billable.stripe_id}), 409

    try:
        customer = billable.create_as_stripe_customer(options)
    except stripe.StripeError as e:
        return _stripe_error_response('create_customer', e)

    return jsonify({'customer_id': customer.id}), 200


@billing_bp.route('/card', methods=['POST'])
@require_user
def update_card(user):
    """
    Replace the signed-in user's default card with the card behind a token.

    Returns:
        JSON response with the stored card brand and last four digits
    """
    try:
        data = UpdateCardSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        logger.warning("Invalid card request", details=e.messages)
        return jsonify({'error': 'Invalid request data', 'details': e.messages}), 400

    billable = user.billable
    if not billable.has_stripe_id():
        return jsonify({'error': 'No Stripe customer for this user'}), 409

    try:
        card = billable.update_card(data['token'])
    except stripe.StripeError as e:
        return _stripe_error_response('update_card', e, customer_id=billable.stripe_id)

    return jsonify({
        'updated': card is not None,
        'card_brand': billable.card_brand,
        'card_last_four': billable.card_last_four,
    }), 200


@billing_bp.route('/subscriptions', methods=['GET'])
@require_user
def list_subscriptions(user):
    """List the signed-in user's subscriptions, newest first."""
    subscriptions = user.billable.subscriptions().all()
    return jsonify({
        'subscriptions': [s.to_dict() for s in subscriptions],
        'on_generic_trial': user.billable.on_generic_trial(),
    }), 200


def register_billing_routes(app):
    app.register_blueprint(billing_bp)
    logger.info("Billing routes registered")
