"""Shared utilities for the Hopaba backend.

Authentication decorators, validators and sanitizers used by more than
one route module.
"""

from hopaba.utils.auth import (
    token_required,
    token_optional,
    admin_required,
    is_admin_user,
    generate_token,
)
from hopaba.utils.user_helpers import get_display_name, send_safe

__all__ = [
    'token_required',
    'token_optional',
    'admin_required',
    'is_admin_user',
    'generate_token',
    'get_display_name',
    'send_safe',
]
