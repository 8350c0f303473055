"""Provider CRUD routes."""

from flask import request, jsonify
from hopaba import db
from hopaba.constants import is_all_categories
from hopaba.models import ServiceProvider
from hopaba.routes.providers import providers_bp
from hopaba.routes.providers.helpers import (
    check_category,
    extract_provider_fields,
    delete_provider_cascade,
)
from hopaba.services.ratings import batch_rating_summaries, business_review_stats
from hopaba.utils.auth import token_required, token_optional, is_admin_user
from hopaba.utils.validation import validate_provider_data
import logging

logger = logging.getLogger(__name__)


@providers_bp.route('', methods=['GET'])
def list_providers():
    """Approved providers with optional filters and pagination.

    Query params: category, subcategory, city, postal_code, page, per_page
    """
    try:
        page = request.args.get('page', 1, type=int)
        per_page = min(request.args.get('per_page', 20, type=int), 100)
        category = request.args.get('category')
        subcategory = request.args.get('subcategory')
        city = request.args.get('city')
        postal_code = request.args.get('postal_code')

        query = ServiceProvider.query.filter_by(approval_status='approved')

        if not is_all_categories(category):
            query = query.filter(db.func.lower(ServiceProvider.category) == category.strip().lower())
        if city:
            query = query.filter(db.func.lower(ServiceProvider.city) == city.strip().lower())
        if postal_code:
            query = query.filter(ServiceProvider.postal_code == postal_code.strip())

        query = query.order_by(ServiceProvider.created_at.desc())

        if subcategory:
            # subcategory lives in a JSON list, filter after loading
            matches = [p for p in query.all() if p.has_subcategory(subcategory)]
            total = len(matches)
            items = matches[(page - 1) * per_page:page * per_page]
            pages = (total + per_page - 1) // per_page
        else:
            paginated = query.paginate(page=page, per_page=per_page, error_out=False)
            items, total, pages = paginated.items, paginated.total, paginated.pages

        ratings = batch_rating_summaries([p.id for p in items])

        return jsonify({
            'providers': [p.to_dict(review_stats=ratings.get(p.id)) for p in items],
            'total': total,
            'pages': pages,
            'current_page': page
        }), 200
    except Exception as e:
        return jsonify({'error': str(e)}), 500


@providers_bp.route('/mine', methods=['GET'])
@token_required
def my_providers(current_user_id):
    """Providers owned by the current user, in every approval state."""
    providers = ServiceProvider.query.filter_by(user_id=current_user_id).order_by(
        ServiceProvider.created_at.desc()
    ).all()
    return jsonify({
        'providers': [p.to_dict() for p in providers],
        'total': len(providers)
    }), 200


@providers_bp.route('/<int:provider_id>', methods=['GET'])
@token_optional
def get_provider(current_user_id, provider_id):
    """A provider with its aggregated review stats.

    Pending and rejected providers are visible only to their owner and admins.
    """
    provider = ServiceProvider.query.get(provider_id)
    if not provider:
        return jsonify({'error': 'Provider not found'}), 404

    if not provider.is_approved and provider.user_id != current_user_id \
            and not is_admin_user(current_user_id):
        return jsonify({'error': 'Provider not found'}), 404

    return jsonify(provider.to_dict(review_stats=business_review_stats(provider.id))), 200


@providers_bp.route('', methods=['POST'])
@token_required
def create_provider(current_user_id):
    """Create a business listing. It starts as pending until an admin approves it."""
    data = request.get_json(silent=True) or {}

    error = validate_provider_data(data) or check_category(data)
    if error:
        return jsonify({'error': error}), 400

    try:
        provider = ServiceProvider(user_id=current_user_id, approval_status='pending',
                                   **extract_provider_fields(data))
        db.session.add(provider)
        db.session.commit()
        logger.info(f'Provider {provider.id} created by user {current_user_id}')

        return jsonify({
            'message': 'Business submitted for approval',
            'provider': provider.to_dict()
        }), 201
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@providers_bp.route('/<int:provider_id>', methods=['PUT'])
@token_required
def update_provider(current_user_id, provider_id):
    provider = ServiceProvider.query.get(provider_id)
    if not provider:
        return jsonify({'error': 'Provider not found'}), 404
    if provider.user_id != current_user_id:
        return jsonify({'error': 'You can only edit your own business'}), 403

    data = request.get_json(silent=True) or {}
    error = validate_provider_data(data, partial=True) or check_category(data)
    if error:
        return jsonify({'error': error}), 400

    try:
        for key, value in extract_provider_fields(data).items():
            setattr(provider, key, value)
        db.session.commit()
        return jsonify({
            'message': 'Business updated successfully',
            'provider': provider.to_dict()
        }), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@providers_bp.route('/<int:provider_id>', methods=['DELETE'])
@token_required
def delete_provider(current_user_id, provider_id):
    provider = ServiceProvider.query.get(provider_id)
    if not provider:
        return jsonify({'error': 'Provider not found'}), 404
    if provider.user_id != current_user_id and not is_admin_user(current_user_id):
        return jsonify({'error': 'You can only delete your own business'}), 403

    try:
        delete_provider_cascade(provider)
        db.session.commit()
        return jsonify({'message': 'Business deleted successfully'}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500
