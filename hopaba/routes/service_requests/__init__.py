"""Service request routes package.

- crud: create, list, retrieve, update, close/reopen, delete
- matching: providers matching a request and WhatsApp notification
"""

from flask import Blueprint

service_requests_bp = Blueprint('service_requests', __name__)

from hopaba.routes.service_requests import crud  # noqa: E402,F401
from hopaba.routes.service_requests import matching  # noqa: E402,F401
