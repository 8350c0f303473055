"""AI-assisted search query enhancement."""

from flask import Blueprint, request, jsonify
from hopaba import limiter
from hopaba.services.search_enhancement import enhance_query
from hopaba.utils.sanitize import sanitize_search_query, sanitize_text

search_bp = Blueprint('search', __name__)

MAX_CONTEXT_LENGTH = 500


@search_bp.route('/enhance', methods=['POST'])
@limiter.limit("30 per minute")
def enhance():
    """
    Rewrite a search query with category hashtags and expanded terms.

    Request body:
    {
        "query": "cheap biryani jp nagar",
        "context": "food" (optional),
        "nearMe": true (optional)
    }

    Failures upstream still answer 200 with the original query and an
    'error' key, so the client can search with what it has.
    """
    data = request.get_json(silent=True) or {}
    raw_query = data.get('query')
    if raw_query is not None and not isinstance(raw_query, str):
        return jsonify({'error': 'Query must be text'}), 400
    query = sanitize_search_query(raw_query or '')
    if not query:
        return jsonify({'error': 'Query is required'}), 400

    context = sanitize_text(str(data.get('context') or ''))[:MAX_CONTEXT_LENGTH] or None
    near_me = bool(data.get('nearMe', False))

    result = enhance_query(query, context=context, near_me=near_me)
    # echo what the client typed; 'enhanced' stays the sanitized form
    result['original'] = raw_query.strip()
    return jsonify(result), 200
