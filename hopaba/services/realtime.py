"""Realtime fan-out over Socket.IO.

Chat messages go to the `conversation_<id>` room as they happen. Inbox
refreshes (`conversations_changed`) go to each participant's `user_<id>`
room and are debounced: a burst of activity within 200ms produces one
refresh per user.
"""

import logging
import threading

from hopaba import socketio

logger = logging.getLogger(__name__)

REFRESH_DEBOUNCE_SECONDS = 0.2


def conversation_room(conversation_id):
    return f'conversation_{conversation_id}'


def user_room(user_id):
    return f'user_{user_id}'


def emit_new_message(conversation_id, message_dict):
    """Emit new message to all users in the conversation room."""
    try:
        socketio.emit('new_message', {
            'message': message_dict,
            'conversation_id': conversation_id
        }, room=conversation_room(conversation_id))
    except Exception as e:
        logger.error(f'Emit message error: {e}')


def emit_conversations_changed(user_id):
    try:
        socketio.emit('conversations_changed', {'user_id': user_id}, room=user_room(user_id))
    except Exception as e:
        logger.error(f'Emit conversations_changed error for user {user_id}: {e}')


class Debouncer:
    """Trailing-edge debounce per key: each call restarts that key's timer."""

    def __init__(self, callback, delay=REFRESH_DEBOUNCE_SECONDS):
        self._callback = callback
        self._delay = delay
        self._lock = threading.Lock()
        self._timers = {}

    def schedule(self, key):
        with self._lock:
            existing = self._timers.get(key)
            if existing is not None:
                existing.cancel()
            timer = threading.Timer(self._delay, self._fire, args=(key,))
            timer.daemon = True
            self._timers[key] = timer
            timer.start()

    def _fire(self, key):
        with self._lock:
            # A newer schedule() replaced this timer; let that one fire instead
            if self._timers.get(key) is not threading.current_thread():
                return
            del self._timers[key]
        self._callback(key)

    def pending(self):
        with self._lock:
            return set(self._timers)

    def cancel_all(self):
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()


conversation_refresher = Debouncer(emit_conversations_changed)


def notify_conversation_participants(conversation):
    """Schedule an inbox refresh for both sides of a conversation."""
    for user_id in conversation.participant_ids():
        conversation_refresher.schedule(user_id)
