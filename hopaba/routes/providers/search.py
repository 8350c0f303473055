"""Provider search with optional distance ranking."""

from flask import request, jsonify, current_app
from hopaba import db
from hopaba.constants import is_all_categories
from hopaba.models import ServiceProvider
from hopaba.routes.providers import providers_bp
from hopaba.services.distance import distance_service
from hopaba.services.ratings import batch_rating_summaries
from hopaba.utils.auth import token_optional
from hopaba.utils.sanitize import sanitize_search_query
from hopaba.utils.validation import validate_coordinates
import logging

logger = logging.getLogger(__name__)

MAX_RESULTS = 100


def search_terms(query: str) -> list[str]:
    """Lowercased terms longer than one character, hashtags unwrapped."""
    terms = []
    for word in query.lower().split():
        word = word.strip('#.,!?')
        if len(word) > 1 and word not in terms:
            terms.append(word)
    return terms


def relevance(provider, terms) -> int:
    """Number of terms found in the provider's name, description, area, city or tags."""
    haystack = ' '.join([
        provider.name or '',
        provider.description or '',
        provider.area or '',
        provider.city or '',
        ' '.join(provider.tags or []),
    ]).lower()
    return sum(1 for term in terms if term in haystack)


def rank_by_distance(entries):
    """Entries with a distance first (nearest first); the rest keep their order."""
    with_distance = [e for e in entries if e[1] is not None]
    without_distance = [e for e in entries if e[1] is None]
    with_distance.sort(key=lambda e: e[1].distance)
    return with_distance + without_distance


@providers_bp.route('/search', methods=['GET'])
@token_optional
def search_providers(current_user_id):
    """Search approved providers.

    Query params:
    - q: free text (enhanced queries with #tags are fine)
    - category: case-insensitive, 'all' means no filter
    - postal_code
    - lat, lng: searcher location, enables distances
    - max_distance: km; drops farther results, keeps ones without location
    - limit: max results (default 50)
    """
    try:
        query_text = sanitize_search_query(request.args.get('q', ''))
        category = request.args.get('category')
        postal_code = request.args.get('postal_code')
        lat = request.args.get('lat', type=float)
        lng = request.args.get('lng', type=float)
        max_distance = request.args.get('max_distance', type=float)
        limit = min(request.args.get('limit', 50, type=int), MAX_RESULTS)

        if (lat is None) != (lng is None):
            return jsonify({'error': 'lat and lng must be provided together'}), 400
        coord_error = validate_coordinates(lat, lng)
        if coord_error:
            return jsonify({'error': coord_error}), 400

        query = ServiceProvider.query.filter_by(approval_status='approved')
        if not is_all_categories(category):
            query = query.filter(db.func.lower(ServiceProvider.category) == category.strip().lower())
        if postal_code:
            query = query.filter(ServiceProvider.postal_code == postal_code.strip())

        providers = query.order_by(ServiceProvider.created_at.desc()).all()

        terms = search_terms(query_text)
        if terms:
            scored = [(p, relevance(p, terms)) for p in providers]
            scored = [s for s in scored if s[1] > 0]
            # stable sort keeps newest-first among equal scores
            scored.sort(key=lambda s: s[1], reverse=True)
            providers = [p for p, _ in scored]

        entries = [(p, None) for p in providers]
        user_location = None

        if lat is not None:
            user_location = {'lat': lat, 'lng': lng}
            viewer = f'user:{current_user_id}' if current_user_id else f'addr:{request.remote_addr}'
            distance_service.update_user_location(viewer, lat, lng)
            geocode = current_app.config.get('GEOCODE_POSTAL_CODES', True)
            entries = [
                (p, distance_service.get_distance(lat, lng, p, geocode=geocode, viewer=viewer))
                for p in providers
            ]
            if max_distance is not None:
                entries = [e for e in entries if e[1] is None or e[1].distance <= max_distance]
            entries = rank_by_distance(entries)

        entries = entries[:limit]
        ratings = batch_rating_summaries([p.id for p, _ in entries])

        logger.info(f'[SEARCH] q={query_text!r} category={category} -> {len(entries)} providers')

        return jsonify({
            'providers': [
                p.to_dict(review_stats=ratings.get(p.id), distance=d) for p, d in entries
            ],
            'userLocation': user_location,
            'total': len(entries)
        }), 200
    except Exception as e:
        return jsonify({'error': str(e)}), 500
