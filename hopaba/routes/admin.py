"""Admin routes for moderation, seller limits and category management."""
from flask import Blueprint, jsonify, request
from hopaba import db
from hopaba.models import (
    User, ServiceProvider, ServiceRequest, MarketplaceListing, SellerListingLimit,
    Event, Category, Subcategory, ReviewCriterion,
)
from hopaba.models.marketplace import DEFAULT_LISTING_LIMIT
from hopaba.utils.auth import admin_required
from hopaba.utils.sanitize import sanitize_text
from datetime import datetime, timedelta
from sqlalchemy import func
import logging
import re

admin_bp = Blueprint('admin', __name__)

logger = logging.getLogger(__name__)

MODERATION_STATUSES = ('approved', 'rejected')
MODERATED_MODELS = {
    'listings': MarketplaceListing,
    'providers': ServiceProvider,
    'events': Event,
}


def find_seller_by_phone(phone):
    """Match on the last 10 digits against listing phones, then account phones."""
    if not isinstance(phone, str):
        return None
    digits = re.sub(r'\D', '', phone)[-10:]
    if len(digits) < 10:
        return None

    listing = MarketplaceListing.query.filter(
        MarketplaceListing.seller_phone.like(f'%{digits}')
    ).order_by(MarketplaceListing.created_at.desc()).first()
    if listing:
        return User.query.get(listing.seller_id)
    return User.query.filter(User.phone.like(f'%{digits}')).first()


def seller_summary(user):
    status = SellerListingLimit.status_for(user.id)
    phones = sorted({
        row.seller_phone for row in MarketplaceListing.query.filter_by(seller_id=user.id).all()
        if row.seller_phone
    })
    return {
        'user_id': user.id,
        'full_name': user.full_name,
        'email': user.email,
        'phone': user.phone,
        'seller_phones': phones,
        **status,
    }


# ============================================================================
# DASHBOARD STATS
# ============================================================================

@admin_bp.route('/stats', methods=['GET'])
@admin_required
def get_stats(current_user_id):
    """Overview counts for the admin dashboard."""
    week_ago = datetime.utcnow() - timedelta(days=7)

    def pending(model):
        return model.query.filter_by(approval_status='pending').count()

    return jsonify({
        'total_users': User.query.count(),
        'new_users_week': User.query.filter(User.created_at >= week_ago).count(),
        'total_providers': ServiceProvider.query.count(),
        'pending_providers': pending(ServiceProvider),
        'total_requests': ServiceRequest.query.count(),
        'open_requests': ServiceRequest.query.filter_by(status='open').count(),
        'total_listings': MarketplaceListing.query.count(),
        'pending_listings': pending(MarketplaceListing),
        'total_events': Event.query.count(),
        'pending_events': pending(Event),
    }), 200


# ============================================================================
# MODERATION QUEUES
# ============================================================================

@admin_bp.route('/pending/<kind>', methods=['GET'])
@admin_required
def get_pending(current_user_id, kind):
    """Pending listings, providers or events, oldest first."""
    model = MODERATED_MODELS.get(kind)
    if not model:
        return jsonify({'error': 'Unknown queue'}), 404

    items = model.query.filter_by(approval_status='pending').order_by(model.created_at.asc()).all()
    return jsonify({
        kind: [item.to_dict() for item in items],
        'total': len(items)
    }), 200


@admin_bp.route('/<kind>/<int:item_id>/status', methods=['PUT'])
@admin_required
def update_status(current_user_id, kind, item_id):
    model = MODERATED_MODELS.get(kind)
    if not model:
        return jsonify({'error': 'Unknown item type'}), 404

    data = request.get_json(silent=True) or {}
    status = data.get('status')
    if status not in MODERATION_STATUSES:
        return jsonify({'error': 'Status must be approved or rejected'}), 400

    item = model.query.get(item_id)
    if not item:
        return jsonify({'error': 'Item not found'}), 404

    try:
        item.approval_status = status
        db.session.commit()
        logger.info(f'[ADMIN] {kind} {item_id} marked {status} by user {current_user_id}')
        return jsonify({'message': f'Status updated to {status}', 'item': item.to_dict()}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


# ============================================================================
# SELLER LISTING LIMITS
# ============================================================================

@admin_bp.route('/sellers/lookup', methods=['GET'])
@admin_required
def lookup_seller(current_user_id):
    seller = find_seller_by_phone(request.args.get('phone'))
    if not seller:
        return jsonify({'error': 'Seller not found with this phone number'}), 404
    return jsonify(seller_summary(seller)), 200


@admin_bp.route('/sellers/limit', methods=['PUT'])
@admin_required
def update_seller_limit(current_user_id):
    """Set a seller's listing limit, looked up by phone number."""
    data = request.get_json(silent=True) or {}
    max_listings = data.get('max_listings')
    if isinstance(max_listings, str) and max_listings.strip().isdigit():
        max_listings = int(max_listings)
    if not isinstance(max_listings, int) or isinstance(max_listings, bool):
        return jsonify({'error': 'max_listings must be a whole number'}), 400
    if max_listings < 0:
        return jsonify({'error': 'max_listings cannot be negative'}), 400

    seller = find_seller_by_phone(data.get('phone'))
    if not seller:
        return jsonify({'error': 'Seller not found with this phone number'}), 404

    try:
        limit = SellerListingLimit.query.filter_by(user_id=seller.id).first()
        if limit:
            limit.max_listings = max_listings
        else:
            db.session.add(SellerListingLimit(user_id=seller.id, max_listings=max_listings))
        db.session.commit()
        logger.info(f'[ADMIN] Listing limit for user {seller.id} set to {max_listings}')
        return jsonify({'message': 'Listing limit updated', 'seller': seller_summary(seller)}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@admin_bp.route('/sellers/high-limit', methods=['GET'])
@admin_required
def high_limit_sellers(current_user_id):
    """Sellers allowed more than the default number of listings."""
    limits = SellerListingLimit.query.filter(
        SellerListingLimit.max_listings > DEFAULT_LISTING_LIMIT
    ).order_by(SellerListingLimit.max_listings.desc()).all()
    sellers = [seller_summary(limit.user) for limit in limits if limit.user]
    return jsonify({'sellers': sellers, 'total': len(sellers)}), 200


# ============================================================================
# CATEGORIES, SUBCATEGORIES, REVIEW CRITERIA
# ============================================================================

def _clean_name(data):
    if not isinstance(data.get('name') or '', str):
        return None, 'Name must be text'
    name = sanitize_text(data.get('name') or '')
    if len(name) < 2:
        return None, 'Name must be at least 2 characters'
    if len(name) > 100:
        return None, 'Name must be at most 100 characters'
    return name, None


@admin_bp.route('/categories', methods=['POST'])
@admin_required
def create_category(current_user_id):
    name, error = _clean_name(request.get_json(silent=True) or {})
    if error:
        return jsonify({'error': error}), 400
    if Category.query.filter(func.lower(Category.name) == name.lower()).first():
        return jsonify({'error': 'Category already exists'}), 409

    try:
        category = Category(name=name)
        db.session.add(category)
        db.session.commit()
        return jsonify({'message': 'Category created', 'category': category.to_dict()}), 201
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@admin_bp.route('/categories/<int:category_id>', methods=['PUT'])
@admin_required
def rename_category(current_user_id, category_id):
    category = Category.query.get(category_id)
    if not category:
        return jsonify({'error': 'Category not found'}), 404
    name, error = _clean_name(request.get_json(silent=True) or {})
    if error:
        return jsonify({'error': error}), 400

    clash = Category.query.filter(func.lower(Category.name) == name.lower(), Category.id != category.id).first()
    if clash:
        return jsonify({'error': 'Category already exists'}), 409

    try:
        old_name = category.name
        category.name = name
        # Criteria are keyed by category name
        ReviewCriterion.query.filter_by(category=old_name).update(
            {'category': name}, synchronize_session=False
        )
        db.session.commit()
        return jsonify({'message': 'Category renamed', 'category': category.to_dict()}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@admin_bp.route('/categories/<int:category_id>', methods=['DELETE'])
@admin_required
def delete_category(current_user_id, category_id):
    category = Category.query.get(category_id)
    if not category:
        return jsonify({'error': 'Category not found'}), 404

    try:
        ReviewCriterion.query.filter_by(category=category.name).delete(synchronize_session=False)
        db.session.delete(category)
        db.session.commit()
        return jsonify({'message': 'Category deleted'}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@admin_bp.route('/categories/<int:category_id>/subcategories', methods=['POST'])
@admin_required
def create_subcategory(current_user_id, category_id):
    category = Category.query.get(category_id)
    if not category:
        return jsonify({'error': 'Category not found'}), 404
    name, error = _clean_name(request.get_json(silent=True) or {})
    if error:
        return jsonify({'error': error}), 400
    if any(s.name.lower() == name.lower() for s in category.subcategories):
        return jsonify({'error': 'Subcategory already exists'}), 409

    try:
        subcategory = Subcategory(category_id=category.id, name=name)
        db.session.add(subcategory)
        db.session.commit()
        return jsonify({'message': 'Subcategory created', 'subcategory': subcategory.to_dict()}), 201
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@admin_bp.route('/subcategories/<int:subcategory_id>', methods=['PUT'])
@admin_required
def rename_subcategory(current_user_id, subcategory_id):
    subcategory = Subcategory.query.get(subcategory_id)
    if not subcategory:
        return jsonify({'error': 'Subcategory not found'}), 404
    name, error = _clean_name(request.get_json(silent=True) or {})
    if error:
        return jsonify({'error': error}), 400

    try:
        subcategory.name = name
        db.session.commit()
        return jsonify({'message': 'Subcategory renamed', 'subcategory': subcategory.to_dict()}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@admin_bp.route('/subcategories/<int:subcategory_id>', methods=['DELETE'])
@admin_required
def delete_subcategory(current_user_id, subcategory_id):
    subcategory = Subcategory.query.get(subcategory_id)
    if not subcategory:
        return jsonify({'error': 'Subcategory not found'}), 404
    try:
        db.session.delete(subcategory)
        db.session.commit()
        return jsonify({'message': 'Subcategory deleted'}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@admin_bp.route('/review-criteria', methods=['POST'])
@admin_required
def create_review_criterion(current_user_id):
    data = request.get_json(silent=True) or {}
    if not isinstance(data.get('category') or '', str):
        return jsonify({'error': 'Category must be text'}), 400
    category = sanitize_text(data.get('category') or '')
    if not category:
        return jsonify({'error': 'Category is required'}), 400
    name, error = _clean_name(data)
    if error:
        return jsonify({'error': error}), 400
    if ReviewCriterion.query.filter_by(category=category, name=name).first():
        return jsonify({'error': 'Criterion already exists for this category'}), 409

    try:
        criterion = ReviewCriterion(category=category, name=name)
        db.session.add(criterion)
        db.session.commit()
        return jsonify({'message': 'Criterion created', 'criterion': criterion.to_dict()}), 201
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@admin_bp.route('/review-criteria/<int:criterion_id>', methods=['DELETE'])
@admin_required
def delete_review_criterion(current_user_id, criterion_id):
    criterion = ReviewCriterion.query.get(criterion_id)
    if not criterion:
        return jsonify({'error': 'Criterion not found'}), 404
    try:
        db.session.delete(criterion)
        db.session.commit()
        return jsonify({'message': 'Criterion deleted'}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500
