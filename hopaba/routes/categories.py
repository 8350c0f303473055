"""Public category, option and review criteria routes."""

from flask import Blueprint, jsonify
from hopaba.constants import (
    PRICE_UNITS, DAYS_OF_WEEK, EXPERIENCE_OPTIONS, AVAILABILITY_OPTIONS,
    LISTING_CONDITIONS, normalize_category,
)
from hopaba.models import Category, ReviewCriterion
from hopaba.routes.providers.helpers import known_categories

categories_bp = Blueprint('categories', __name__)


@categories_bp.route('', methods=['GET'])
def get_categories():
    """All categories, with subcategories for the admin-managed ones."""
    stored = {c.name: c for c in Category.query.all()}
    categories = []
    for name in known_categories():
        category = stored.get(name)
        categories.append({
            'id': category.id if category else None,
            'name': name,
            'subcategories': [s.to_dict() for s in category.subcategories] if category else [],
        })
    return jsonify({'categories': categories, 'total': len(categories)}), 200


@categories_bp.route('/options', methods=['GET'])
def get_options():
    """Fixed option lists used by the provider and listing forms."""
    return jsonify({
        'price_units': PRICE_UNITS,
        'days_of_week': DAYS_OF_WEEK,
        'experience': EXPERIENCE_OPTIONS,
        'availability': AVAILABILITY_OPTIONS,
        'listing_conditions': LISTING_CONDITIONS,
    }), 200


@categories_bp.route('/<path:category>/criteria', methods=['GET'])
def get_review_criteria(category):
    wanted = normalize_category(category)
    criteria = [
        c for c in ReviewCriterion.query.order_by(ReviewCriterion.name).all()
        if normalize_category(c.category) == wanted
    ]
    return jsonify({'criteria': [c.to_dict() for c in criteria]}), 200
