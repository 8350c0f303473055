"""Socket.IO events for chat rooms, typing indicators and presence."""

from flask_socketio import emit, join_room, leave_room
from flask import request
import jwt
from hopaba.models import Conversation, User
from hopaba import db
from hopaba.services.realtime import conversation_room, user_room
from hopaba.services.redis_client import (
    set_user_online,
    set_user_offline,
    is_user_online,
    refresh_user_online
)
from hopaba.utils.auth import decode_token
import logging
from datetime import datetime

logger = logging.getLogger(__name__)


def get_user_from_token(token):
    """Extract user ID from a JWT, None when it cannot be trusted."""
    if not token:
        return None
    try:
        return decode_token(token)
    except jwt.InvalidTokenError as e:
        logger.warning(f'Socket token rejected: {e}')
        return None


def touch_last_seen(user_id):
    user = User.query.get(user_id)
    if user:
        user.update_last_seen()
        db.session.commit()


def register_socket_events(socketio):
    """Register all Socket.IO event handlers."""

    @socketio.on('connect')
    def handle_connect(auth=None):
        """Authenticate the socket and join the user's personal room."""
        token = None
        if auth and isinstance(auth, dict):
            token = auth.get('token')
        elif request.args.get('token'):
            token = request.args.get('token')

        user_id = get_user_from_token(token)
        if not user_id:
            logger.warning('Socket connection without a valid token')
            return False

        try:
            touch_last_seen(user_id)
        except Exception as e:
            db.session.rollback()
            logger.error(f'Connect last_seen error for user {user_id}: {e}')

        set_user_online(user_id, request.sid)
        join_room(user_room(user_id))
        logger.info(f'User {user_id} connected: {request.sid}')

        emit('connected', {'user_id': user_id})
        emit('user_status_changed', {
            'user_id': user_id,
            'status': 'online',
            'last_seen': datetime.utcnow().isoformat()
        }, broadcast=True, include_self=False)
        return True

    @socketio.on('disconnect')
    def handle_disconnect(*args):
        user_id = set_user_offline(socket_id=request.sid)
        if not user_id:
            return

        try:
            touch_last_seen(user_id)
        except Exception as e:
            db.session.rollback()
            logger.error(f'Disconnect last_seen error for user {user_id}: {e}')

        logger.info(f'User {user_id} disconnected: {request.sid}')
        socketio.emit('user_status_changed', {
            'user_id': user_id,
            'status': 'offline',
            'last_seen': datetime.utcnow().isoformat()
        })

    @socketio.on('join_conversation')
    def handle_join_conversation(data):
        """Join a conversation room; participants only."""
        data = data or {}
        conversation_id = data.get('conversation_id')
        user_id = get_user_from_token(data.get('token'))

        if not conversation_id:
            emit('error', {'message': 'Missing conversation_id'})
            return
        if not user_id:
            emit('error', {'message': 'Invalid token'})
            return

        refresh_user_online(user_id)

        conversation = Conversation.query.get(conversation_id)
        if not conversation:
            emit('error', {'message': 'Conversation not found'})
            return
        if user_id not in conversation.participant_ids():
            emit('error', {'message': 'Access denied'})
            return

        join_room(conversation_room(conversation_id))
        logger.info(f'User {user_id} joined conversation {conversation_id}')
        emit('joined_conversation', {'conversation_id': conversation_id})

    @socketio.on('leave_conversation')
    def handle_leave_conversation(data):
        conversation_id = (data or {}).get('conversation_id')
        if not conversation_id:
            return
        leave_room(conversation_room(conversation_id))
        emit('left_conversation', {'conversation_id': conversation_id})

    @socketio.on('typing')
    def handle_typing(data):
        """Relay a typing indicator to the rest of the conversation room."""
        data = data or {}
        conversation_id = data.get('conversation_id')
        user_id = get_user_from_token(data.get('token'))
        if not conversation_id or not user_id:
            return

        refresh_user_online(user_id)
        emit('user_typing', {
            'user_id': user_id,
            'is_typing': bool(data.get('is_typing', False)),
            'conversation_id': conversation_id
        }, room=conversation_room(conversation_id), include_self=False)

    @socketio.on('heartbeat')
    def handle_heartbeat(data):
        user_id = get_user_from_token((data or {}).get('token'))
        if not user_id:
            return

        # Expired presence (e.g. after a Redis restart) is re-created
        if not refresh_user_online(user_id):
            set_user_online(user_id, request.sid)
        try:
            touch_last_seen(user_id)
        except Exception as e:
            db.session.rollback()
            logger.error(f'Heartbeat last_seen error for user {user_id}: {e}')

        emit('heartbeat_ack', {'status': 'ok'})

    @socketio.on('get_user_status')
    def handle_get_user_status(data):
        target_user_id = (data or {}).get('user_id')
        if not target_user_id:
            return

        user = User.query.get(target_user_id)
        emit('user_status', {
            'user_id': target_user_id,
            'status': 'online' if is_user_online(target_user_id) else 'offline',
            'last_seen': user.last_seen.isoformat() if user and user.last_seen else None
        })
