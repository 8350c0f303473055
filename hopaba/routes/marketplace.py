"""Marketplace routes for second-hand listings."""

from flask import Blueprint, request, jsonify
from hopaba import db
from hopaba.models import MarketplaceListing, SellerListingLimit, WishlistItem
from hopaba.utils import token_required, token_optional, is_admin_user
from hopaba.utils.sanitize import sanitize_text, sanitize_url, sanitize_search_query
from hopaba.utils.validation import validate_listing_data, normalize_phone, is_year_term
from sqlalchemy import or_
import logging

marketplace_bp = Blueprint('marketplace', __name__)

logger = logging.getLogger(__name__)

TEXT_FIELDS = (
    'title', 'description', 'category', 'condition', 'location', 'area', 'city',
    'seller_name', 'seller_role', 'seller_instagram',
)
IMAGE_FIELDS = ('images', 'shop_images', 'damage_images', 'inspection_certificates', 'bill_images')


def _extract_listing_fields(data):
    fields = {}
    for field in TEXT_FIELDS:
        if field in data:
            fields[field] = sanitize_text(data[field] or '') or None
    for field in IMAGE_FIELDS:
        if field in data:
            fields[field] = [url for url in (sanitize_url(u) for u in data[field] or []) if url]
    if 'price' in data:
        fields['price'] = float(data['price'])
    for field in ('model_year', 'ownership_number'):
        if field in data:
            fields[field] = int(float(data[field])) if data[field] not in (None, '') else None
    if fields.get('condition'):
        fields['condition'] = fields['condition'].lower()
    for field in ('latitude', 'longitude'):
        if field in data:
            fields[field] = float(data[field]) if data[field] not in (None, '') else None
    for field in ('seller_phone', 'seller_whatsapp'):
        if field in data:
            fields[field] = normalize_phone(data[field]) if data[field] else None
    if 'postal_code' in data:
        fields['postal_code'] = str(data['postal_code'] or '').strip() or None
    if 'map_link' in data:
        fields['map_link'] = sanitize_url(data['map_link']) or None
    if 'is_negotiable' in data:
        fields['is_negotiable'] = bool(data['is_negotiable'])
    return fields


def search_condition(raw_query):
    """OR of every query term over title and description.

    Terms of one character are ignored; a 4-digit year also matches the
    model year. Falls back to the whole query when no term survives.
    """
    query = ' '.join(raw_query.split())
    terms = [t for t in query.split(' ') if len(t) > 1]
    if not terms:
        pattern = f'%{query}%'
        return or_(MarketplaceListing.title.ilike(pattern), MarketplaceListing.description.ilike(pattern))

    clauses = []
    for term in terms:
        pattern = f'%{term}%'
        clauses.append(MarketplaceListing.title.ilike(pattern))
        clauses.append(MarketplaceListing.description.ilike(pattern))
        if is_year_term(term):
            clauses.append(MarketplaceListing.model_year == int(term))
    return or_(*clauses)


@marketplace_bp.route('', methods=['GET'])
@token_optional
def get_listings(current_user_id):
    """Browse listings with filtering and search."""
    try:
        include_all = request.args.get('include_all', 'false').lower() == 'true'
        category = request.args.get('category')
        condition = request.args.get('condition')
        min_price = request.args.get('min_price', type=float)
        max_price = request.args.get('max_price', type=float)
        min_rating = request.args.get('min_rating', type=float)
        search = sanitize_search_query(request.args.get('q') or request.args.get('search') or '')

        query = MarketplaceListing.query
        if not (include_all and is_admin_user(current_user_id)):
            query = query.filter_by(approval_status='approved')
        if category and category.lower() != 'all':
            query = query.filter(MarketplaceListing.category == category)
        if search:
            query = query.filter(search_condition(search))
        if condition:
            query = query.filter(MarketplaceListing.condition == condition)
        if min_price is not None:
            query = query.filter(MarketplaceListing.price >= min_price)
        if max_price is not None:
            query = query.filter(MarketplaceListing.price <= max_price)
        if min_rating is not None:
            query = query.filter(MarketplaceListing.seller_rating >= min_rating)

        listings = query.order_by(MarketplaceListing.created_at.desc(), MarketplaceListing.id.desc()).all()
        return jsonify({
            'listings': [listing.to_dict() for listing in listings],
            'total': len(listings)
        }), 200
    except Exception as e:
        return jsonify({'error': str(e)}), 500


@marketplace_bp.route('/mine', methods=['GET'])
@token_required
def my_listings(current_user_id):
    listings = MarketplaceListing.query.filter_by(seller_id=current_user_id).order_by(
        MarketplaceListing.created_at.desc()
    ).all()
    return jsonify({
        'listings': [listing.to_dict() for listing in listings],
        'total': len(listings)
    }), 200


@marketplace_bp.route('/limit', methods=['GET'])
@token_required
def listing_limit(current_user_id):
    """How many listings the user has and may still create."""
    return jsonify(SellerListingLimit.status_for(current_user_id)), 200


@marketplace_bp.route('/<int:listing_id>', methods=['GET'])
@token_optional
def get_listing(current_user_id, listing_id):
    listing = MarketplaceListing.query.get(listing_id)
    if not listing:
        return jsonify({'error': 'Listing not found'}), 404
    if listing.approval_status != 'approved' and listing.seller_id != current_user_id \
            and not is_admin_user(current_user_id):
        return jsonify({'error': 'Listing not found'}), 404
    return jsonify(listing.to_dict()), 200


@marketplace_bp.route('', methods=['POST'])
@token_required
def create_listing(current_user_id):
    """Create a listing, subject to the seller's listing limit."""
    data = request.get_json(silent=True) or {}
    error = validate_listing_data(data)
    if error:
        return jsonify({'error': error}), 400

    status = SellerListingLimit.status_for(current_user_id)
    if not status['can_create']:
        return jsonify({
            'error': f"Listing limit reached ({status['max_listings']} listings)",
            'limit_status': status
        }), 403

    try:
        listing = MarketplaceListing(
            seller_id=current_user_id,
            approval_status='pending',
            **_extract_listing_fields(data)
        )
        db.session.add(listing)
        db.session.commit()
        logger.info(f'Marketplace listing {listing.id} created by user {current_user_id}')
        return jsonify({
            'message': 'Listing submitted for approval',
            'listing': listing.to_dict()
        }), 201
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@marketplace_bp.route('/<int:listing_id>', methods=['PUT'])
@token_required
def update_listing(current_user_id, listing_id):
    listing = MarketplaceListing.query.get(listing_id)
    if not listing:
        return jsonify({'error': 'Listing not found'}), 404
    if listing.seller_id != current_user_id:
        return jsonify({'error': 'You can only edit your own listings'}), 403

    data = request.get_json(silent=True) or {}
    error = validate_listing_data(data, partial=True)
    if error:
        return jsonify({'error': error}), 400

    try:
        for key, value in _extract_listing_fields(data).items():
            setattr(listing, key, value)
        db.session.commit()
        return jsonify({
            'message': 'Listing updated successfully',
            'listing': listing.to_dict()
        }), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@marketplace_bp.route('/<int:listing_id>', methods=['DELETE'])
@token_required
def delete_listing(current_user_id, listing_id):
    listing = MarketplaceListing.query.get(listing_id)
    if not listing:
        return jsonify({'error': 'Listing not found'}), 404
    if listing.seller_id != current_user_id and not is_admin_user(current_user_id):
        return jsonify({'error': 'You can only delete your own listings'}), 403

    try:
        WishlistItem.query.filter_by(item_type='listing', item_id=listing.id).delete(synchronize_session=False)
        db.session.delete(listing)
        db.session.commit()
        return jsonify({'message': 'Listing deleted successfully'}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500
