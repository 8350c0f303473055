"""Shared authentication utilities.

This module provides JWT helpers and the decorators used across all route
files, so every endpoint resolves the caller the same way.
"""

from datetime import datetime, timedelta
from functools import wraps
from flask import request, jsonify, current_app
import jwt


def _get_secret_key():
    """Get JWT secret from Flask app config (single source of truth)."""
    return current_app.config['JWT_SECRET_KEY']


def generate_token(user):
    """Issue an HS256 access token for a user."""
    payload = {
        'user_id': user.id,
        'email': user.email,
        'exp': datetime.utcnow() + timedelta(hours=current_app.config['JWT_EXPIRES_HOURS'])
    }
    return jwt.encode(payload, _get_secret_key(), algorithm='HS256')


def decode_token(token):
    """Return the user_id inside a token.

    Raises jwt.InvalidTokenError (or its ExpiredSignatureError subclass)
    when the token cannot be trusted.
    """
    if token and token.startswith('Bearer '):
        token = token.split(' ', 1)[1]
    payload = jwt.decode(token, _get_secret_key(), algorithms=['HS256'])
    if 'user_id' not in payload:
        raise jwt.InvalidTokenError('Token has no user_id')
    return payload['user_id']


def token_required(f):
    """
    Decorator to require valid JWT token.

    Extracts user_id from JWT token and passes it as the first argument
    to the decorated function.

    Usage:
        @bp.route('/protected')
        @token_required
        def protected_route(current_user_id):
            return jsonify({'user_id': current_user_id})
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        auth_header = request.headers.get('Authorization')

        if not auth_header:
            return jsonify({'error': 'Token is missing'}), 401

        try:
            # Support both "Bearer <token>" and raw token formats
            current_user_id = decode_token(auth_header)
        except jwt.ExpiredSignatureError:
            return jsonify({'error': 'Token has expired'}), 401
        except jwt.InvalidTokenError:
            return jsonify({'error': 'Token is invalid'}), 401

        return f(current_user_id, *args, **kwargs)
    return decorated


def token_optional(f):
    """
    Decorator that optionally validates JWT token.

    If a valid token is provided, extracts user_id. Otherwise, passes None.
    Useful for endpoints that work for both authenticated and anonymous users.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        auth_header = request.headers.get('Authorization')
        current_user_id = None

        if auth_header:
            try:
                current_user_id = decode_token(auth_header)
            except jwt.InvalidTokenError:
                current_user_id = None

        return f(current_user_id, *args, **kwargs)
    return decorated


def is_admin_user(user_id):
    """Check if user is admin (by field or ADMIN_EMAILS whitelist)."""
    if user_id is None:
        return False
    from hopaba.models import User

    user = User.query.get(user_id)
    if not user or not user.is_active:
        return False
    if user.is_admin:
        return True
    return user.email.lower() in current_app.config.get('ADMIN_EMAILS', [])


def admin_required(f):
    """Decorator that combines token_required + admin check."""
    @wraps(f)
    @token_required
    def decorated(current_user_id, *args, **kwargs):
        if not is_admin_user(current_user_id):
            return jsonify({'error': 'Admin access required'}), 403
        return f(current_user_id, *args, **kwargs)
    return decorated
