"""Provider (business listing) routes package.

- crud: list, retrieve, create, update, delete
- search: text + location search with distances
- helpers: payload extraction and cascading delete
"""

from flask import Blueprint

providers_bp = Blueprint('providers', __name__)

from hopaba.routes.providers import search  # noqa: E402,F401
from hopaba.routes.providers import crud  # noqa: E402,F401
