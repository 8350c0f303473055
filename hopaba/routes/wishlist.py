"""Wishlist routes for saved providers, marketplace listings and events."""

from flask import Blueprint, request, jsonify
from hopaba import db
from hopaba.models import WishlistItem, ServiceProvider, MarketplaceListing, Event
from hopaba.models.wishlist import WISHLIST_ITEM_TYPES
from hopaba.utils import token_required
from hopaba.utils.validation import is_record_id

wishlist_bp = Blueprint('wishlist', __name__)

ITEM_MODELS = {
    'provider': ServiceProvider,
    'listing': MarketplaceListing,
    'event': Event,
}


def get_item_details(item_type, item_id):
    """Full details of a saved item, or None if it no longer exists."""
    model = ITEM_MODELS.get(item_type)
    item = model.query.get(item_id) if model else None
    if not item:
        return None
    details = item.to_dict()
    details['type'] = item_type
    return details


@wishlist_bp.route('', methods=['GET'])
@token_required
def get_wishlist(current_user_id):
    """Saved items newest first, optionally filtered by type."""
    item_type = request.args.get('type')
    query = WishlistItem.query.filter_by(user_id=current_user_id)
    if item_type:
        query = query.filter_by(item_type=item_type)

    items = []
    for saved in query.order_by(WishlistItem.created_at.desc(), WishlistItem.id.desc()).all():
        details = get_item_details(saved.item_type, saved.item_id)
        if details:
            items.append({**saved.to_dict(), 'item': details})
    return jsonify({'items': items, 'total': len(items)}), 200


@wishlist_bp.route('/toggle', methods=['POST'])
@token_required
def toggle_wishlist(current_user_id):
    data = request.get_json(silent=True) or {}
    item_type = data.get('item_type')
    item_id = data.get('item_id')

    if not item_type or not is_record_id(item_id):
        return jsonify({'error': 'item_type and item_id are required'}), 400
    if item_type not in WISHLIST_ITEM_TYPES:
        return jsonify({'error': f"Invalid item_type. Must be one of: {', '.join(WISHLIST_ITEM_TYPES)}"}), 400
    if not get_item_details(item_type, item_id):
        return jsonify({'error': 'Item not found'}), 404

    try:
        is_saved, item = WishlistItem.toggle(current_user_id, item_type, item_id)
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500
    return jsonify({
        'is_saved': is_saved,
        'item': item.to_dict() if item else None,
        'message': 'Added to wishlist' if is_saved else 'Removed from wishlist'
    }), 200


@wishlist_bp.route('/check', methods=['GET'])
@token_required
def check_wishlist(current_user_id):
    item_type = request.args.get('item_type')
    item_id = request.args.get('item_id', type=int)
    if not item_type or not item_id:
        return jsonify({'error': 'item_type and item_id are required'}), 400
    return jsonify({'is_saved': WishlistItem.is_saved(current_user_id, item_type, item_id)}), 200
