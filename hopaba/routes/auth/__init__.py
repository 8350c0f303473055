"""Auth routes package.

- core: registration and login
- profile: the current user's own profile
"""

from flask import Blueprint

auth_bp = Blueprint('auth', __name__)

# Import route modules (registers routes on auth_bp)
from hopaba.routes.auth import core  # noqa: E402,F401
from hopaba.routes.auth import profile  # noqa: E402,F401
