"""Online presence shared across workers through Redis.

Without REDIS_URL presence falls back to a per-process dict, which is
accurate only for single-worker deployments.
"""

import os
import threading
import time

import redis
import logging

logger = logging.getLogger(__name__)

ONLINE_PREFIX = 'hopaba:online:'
SOCKET_PREFIX = 'hopaba:socket:'
ONLINE_TTL = 120  # seconds, refreshed by heartbeat

_redis_client = None
_local_lock = threading.Lock()
_local_online = {}   # user_id -> expiry timestamp
_local_sockets = {}  # socket_id -> user_id


def get_redis():
    """Get or create Redis connection, None when not configured or unreachable."""
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    redis_url = os.environ.get('REDIS_URL')
    if not redis_url:
        return None

    try:
        client = redis.from_url(redis_url, decode_responses=True)
        client.ping()
    except redis.RedisError as e:
        logger.error(f'Redis connection failed: {e}')
        return None

    logger.info('Redis connected successfully')
    _redis_client = client
    return _redis_client


def set_user_online(user_id: int, socket_id: str) -> None:
    r = get_redis()
    if r is not None:
        try:
            pipe = r.pipeline()
            pipe.setex(f'{ONLINE_PREFIX}{user_id}', ONLINE_TTL, '1')
            pipe.setex(f'{SOCKET_PREFIX}{socket_id}', ONLINE_TTL, str(user_id))
            pipe.execute()
            return
        except redis.RedisError as e:
            logger.error(f'Redis set_user_online error: {e}')

    with _local_lock:
        _local_online[user_id] = time.time() + ONLINE_TTL
        _local_sockets[socket_id] = user_id


def set_user_offline(socket_id: str) -> int | None:
    """Forget a socket. Returns the user it belonged to, if known."""
    user_id = None
    r = get_redis()
    if r is not None:
        try:
            user_id_str = r.get(f'{SOCKET_PREFIX}{socket_id}')
            if user_id_str:
                user_id = int(user_id_str)
                r.delete(f'{ONLINE_PREFIX}{user_id}')
            r.delete(f'{SOCKET_PREFIX}{socket_id}')
        except redis.RedisError as e:
            logger.error(f'Redis set_user_offline error: {e}')

    with _local_lock:
        local_user = _local_sockets.pop(socket_id, None)
        if local_user is not None:
            _local_online.pop(local_user, None)
            user_id = user_id or local_user

    return user_id


def refresh_user_online(user_id: int) -> bool:
    r = get_redis()
    if r is not None:
        try:
            return bool(r.expire(f'{ONLINE_PREFIX}{user_id}', ONLINE_TTL))
        except redis.RedisError as e:
            logger.error(f'Redis refresh_user_online error: {e}')

    with _local_lock:
        if user_id in _local_online:
            _local_online[user_id] = time.time() + ONLINE_TTL
            return True
    return False


def is_user_online(user_id: int) -> bool:
    r = get_redis()
    if r is not None:
        try:
            return r.exists(f'{ONLINE_PREFIX}{user_id}') > 0
        except redis.RedisError as e:
            logger.error(f'Redis is_user_online error: {e}')

    with _local_lock:
        expires_at = _local_online.get(user_id)
        return expires_at is not None and expires_at > time.time()
