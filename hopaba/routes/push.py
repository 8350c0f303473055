"""Push notification subscription routes."""

from flask import Blueprint, request, jsonify, current_app

from hopaba import db
from hopaba.models import PushSubscription
from hopaba.services.push_notifications import send_push_notification
from hopaba.utils import token_required

push_bp = Blueprint('push', __name__)


@push_bp.route('/vapid-public-key', methods=['GET'])
def get_vapid_public_key():
    """
    Get the VAPID public key needed for push subscription.
    This endpoint is public - no auth required.
    """
    public_key = current_app.config.get('VAPID_PUBLIC_KEY')
    if not public_key:
        return jsonify({'error': 'Push notifications not configured'}), 503

    return jsonify({'publicKey': public_key}), 200


@push_bp.route('/subscribe', methods=['POST'])
@token_required
def subscribe(current_user_id):
    """
    Subscribe to push notifications.

    Request body:
    {
        "endpoint": "https://fcm.googleapis.com/...",
        "keys": {"p256dh": "...", "auth": "..."},
        "device_name": "Pixel 8" (optional),
        "notify_messages": true (optional),
        "notify_requests": true (optional)
    }
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'Request body required'}), 400

    endpoint = data.get('endpoint')
    keys = data.get('keys') or {}
    if not isinstance(keys, dict):
        return jsonify({'error': 'Missing required subscription data'}), 400
    p256dh = keys.get('p256dh')
    auth = keys.get('auth')

    if not endpoint or not p256dh or not auth:
        return jsonify({'error': 'Missing required subscription data'}), 400
    if not all(isinstance(value, str) for value in (endpoint, p256dh, auth)) \
            or not isinstance(data.get('device_name') or '', str):
        return jsonify({'error': 'Subscription fields must be text'}), 400

    preferences = {
        key: bool(data[key]) for key in ('notify_messages', 'notify_requests') if key in data
    }
    user_agent = (request.headers.get('User-Agent') or '')[:500] or None

    try:
        existing = PushSubscription.query.filter_by(endpoint=endpoint).first()
        if existing:
            # The browser may hand the same endpoint to a different account
            existing.user_id = current_user_id
            existing.p256dh_key = p256dh
            existing.auth_key = auth
            existing.device_name = data.get('device_name')
            existing.user_agent = user_agent
            existing.is_active = True
            for key, value in preferences.items():
                setattr(existing, key, value)
            db.session.commit()
            return jsonify({'message': 'Subscription updated', 'subscription_id': existing.id}), 200

        subscription = PushSubscription(
            user_id=current_user_id,
            endpoint=endpoint,
            p256dh_key=p256dh,
            auth_key=auth,
            device_name=data.get('device_name'),
            user_agent=user_agent,
            **preferences
        )
        db.session.add(subscription)
        db.session.commit()
        return jsonify({
            'message': 'Subscribed to push notifications',
            'subscription_id': subscription.id
        }), 201
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@push_bp.route('/unsubscribe', methods=['POST'])
@token_required
def unsubscribe(current_user_id):
    data = request.get_json(silent=True) or {}
    endpoint = data.get('endpoint')
    if not endpoint or not isinstance(endpoint, str):
        return jsonify({'error': 'Endpoint required'}), 400

    subscription = PushSubscription.query.filter_by(endpoint=endpoint, user_id=current_user_id).first()
    if not subscription:
        return jsonify({'message': 'Subscription not found'}), 404

    try:
        subscription.is_active = False
        db.session.commit()
        return jsonify({'message': 'Unsubscribed successfully'}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@push_bp.route('/subscriptions', methods=['GET'])
@token_required
def get_subscriptions(current_user_id):
    subscriptions = PushSubscription.query.filter_by(user_id=current_user_id, is_active=True).all()
    return jsonify({
        'subscriptions': [s.to_dict() for s in subscriptions],
        'count': len(subscriptions)
    }), 200


@push_bp.route('/test', methods=['POST'])
@token_required
def send_test_notification(current_user_id):
    """Send a test push to every device of the current user."""
    result = send_push_notification(
        user_id=current_user_id,
        title='🔔 Test Notification',
        body='Push notifications are working!',
        url='/'
    )
    return jsonify(result), 200
