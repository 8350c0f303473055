"""Messaging routes package.

- conversations: inbox, find-or-create, messages, read state, unread counts
- quotations: provider price offers inside a conversation
- saved_quotations: requester bookmarks on quotations
"""

from flask import Blueprint

messages_bp = Blueprint('messages', __name__)

from hopaba.routes.messages import conversations  # noqa: E402,F401
from hopaba.routes.messages import quotations  # noqa: E402,F401
from hopaba.routes.messages import saved_quotations  # noqa: E402,F401
