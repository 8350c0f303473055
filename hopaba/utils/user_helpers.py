"""Shared user-related helper functions."""

import logging

logger = logging.getLogger(__name__)


def get_display_name(user):
    """
    Get the best display name for a user.

    Priority: full_name, then the local part of the email, then 'Someone'.
    """
    if not user:
        return 'Someone'
    if user.full_name:
        return user.full_name
    if user.email:
        return user.email.split('@')[0]
    return 'Someone'


def send_safe(notify_func, *args, **kwargs):
    """
    Run a notification side effect without letting it fail the request.

    Push, WhatsApp and realtime failures are logged and swallowed; the
    caller has already committed its own work.

    Usage:
        send_safe(
            notify_new_message,
            recipient_id=user_id,
            sender_name='Asha',
            message_preview='Hello!'
        )
    """
    try:
        return notify_func(*args, **kwargs)
    except Exception as e:
        logger.error(f'Notification error (non-critical) in {getattr(notify_func, "__name__", notify_func)}: {e}')
        return None
