"""Web Push delivery for the service worker.

The service worker reads `title`, `body`, `icon`, `badge`, `tag`,
`requireInteraction` and `data` from the JSON payload; clicking a
notification opens `data.url`.
"""

import json
import logging
from datetime import datetime

from flask import current_app
from pywebpush import webpush, WebPushException

from hopaba import db
from hopaba.models import PushSubscription

logger = logging.getLogger(__name__)

DEFAULT_ICON = '/icons/icon-192x192.png'
DEFAULT_BADGE = '/icons/badge-72x72.png'
PREVIEW_LENGTH = 100


def is_push_configured() -> bool:
    return bool(current_app.config.get('VAPID_PRIVATE_KEY') and current_app.config.get('VAPID_PUBLIC_KEY'))


def build_payload(title: str, body: str, url: str = None, tag: str = None,
                  icon: str = None, data: dict = None,
                  require_interaction: bool = False) -> dict:
    payload_data = {'url': str(url) if url else '/'}
    if data:
        payload_data.update(data)
    return {
        'title': str(title) if title else '',
        'body': str(body) if body else '',
        'icon': str(icon) if icon else DEFAULT_ICON,
        'badge': DEFAULT_BADGE,
        'tag': str(tag) if tag else 'notification',
        'requireInteraction': require_interaction,
        'data': payload_data,
    }


def send_push_notification(user_id: int, title: str, body: str,
                           url: str = None, tag: str = None,
                           icon: str = None, data: dict = None,
                           require_interaction: bool = False,
                           preference: str = 'notify_messages') -> dict:
    """
    Send push notification to all devices registered for a user.

    Args:
        user_id: The user to send notification to
        title: Notification title
        body: Notification body text
        url: URL to open when notification is clicked
        tag: Tag for grouping/replacing notifications
        data: Extra keys merged into payload['data']
        preference: Subscription flag that must be on for the device

    Returns:
        dict with 'sent' count and 'failed' count
    """
    if not is_push_configured():
        logger.warning('[PUSH] VAPID keys not configured - skipping push notification')
        return {'sent': 0, 'failed': 0, 'error': 'VAPID keys not configured'}

    subscriptions = PushSubscription.query.filter_by(user_id=user_id, is_active=True).all()
    subscriptions = [s for s in subscriptions if getattr(s, preference, True) is not False]

    if not subscriptions:
        logger.info(f'[PUSH] No active subscriptions for user {user_id}')
        return {'sent': 0, 'failed': 0, 'error': 'No active subscriptions'}

    payload_json = json.dumps(build_payload(title, body, url, tag, icon, data, require_interaction))
    vapid_claims = {'sub': current_app.config['VAPID_SUBJECT']}

    sent_count = 0
    failed_count = 0

    for subscription in subscriptions:
        try:
            webpush(
                subscription_info=subscription.get_subscription_info(),
                data=payload_json,
                vapid_private_key=current_app.config['VAPID_PRIVATE_KEY'],
                vapid_claims=dict(vapid_claims),
            )
            subscription.last_used_at = datetime.utcnow()
            sent_count += 1
        except WebPushException as e:
            failed_count += 1
            status = e.response.status_code if e.response is not None else None
            logger.error(f'[PUSH] WebPushException for subscription {subscription.id} (status {status}): {e}')

            # Gone or unknown endpoint: the browser dropped this subscription
            if status in (404, 410):
                logger.warning(f'[PUSH] Deactivating invalid subscription {subscription.id}')
                subscription.is_active = False

    try:
        db.session.commit()
    except Exception as e:
        logger.error(f'[PUSH] Failed to update subscriptions: {e}')
        db.session.rollback()

    result = {'sent': sent_count, 'failed': failed_count}
    logger.info(f'[PUSH] user {user_id}: {result}')
    return result


def _preview(text: str) -> str:
    text = text or ''
    return text[:PREVIEW_LENGTH] + ('...' if len(text) > PREVIEW_LENGTH else '')


def notify_new_message(recipient_id: int, sender_name: str, message_preview: str,
                       conversation_id: int):
    """Push for a chat message; one notification per conversation is kept."""
    return send_push_notification(
        user_id=recipient_id,
        title=f'💬 {sender_name}',
        body=_preview(message_preview),
        url=f'/messages/{conversation_id}',
        tag=f'message-{conversation_id}',
        data={'conversationId': conversation_id},
        require_interaction=True,
    )


def notify_new_quotation(recipient_id: int, provider_name: str, price: float,
                         request_title: str, conversation_id: int):
    return send_push_notification(
        user_id=recipient_id,
        title=f'💰 New quotation from {provider_name}',
        body=f'₹{price:g} for "{request_title}"',
        url=f'/messages/{conversation_id}',
        tag=f'message-{conversation_id}',
        data={'conversationId': conversation_id},
        require_interaction=True,
    )


def notify_request_match(provider_owner_id: int, request_title: str, request_id: int):
    """Push to a provider owner whose business matches a new request."""
    return send_push_notification(
        user_id=provider_owner_id,
        title='🔔 New service request',
        body=f'Someone is looking for "{request_title}"',
        url=f'/requests/{request_id}',
        tag=f'request-{request_id}',
        preference='notify_requests',
    )
