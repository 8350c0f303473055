"""Review routes for businesses and marketplace sellers.

One review per user per business, and one per reviewer per seller.
"""

from flask import Blueprint, request, jsonify
from hopaba import db
from hopaba.models import BusinessReview, SellerReview, ServiceProvider, User
from hopaba.services.ratings import business_review_stats, refresh_seller_rating, seller_rating
from hopaba.utils import token_required, get_display_name
from hopaba.utils.sanitize import sanitize_text
import logging
import math

reviews_bp = Blueprint('reviews', __name__)

logger = logging.getLogger(__name__)

MAX_REVIEW_LENGTH = 2000


def _parse_rating(value):
    """Return (rating, error)."""
    if isinstance(value, bool):
        return None, 'Rating must be between 1 and 5'
    try:
        rating = int(value)
    except (TypeError, ValueError, OverflowError):
        return None, 'Rating must be between 1 and 5'
    if rating != value and str(rating) != str(value).strip():
        return None, 'Rating must be a whole number'
    if rating < 1 or rating > 5:
        return None, 'Rating must be between 1 and 5'
    return rating, None


def _parse_criteria(value):
    """Return (criteria_ratings, error); each score must be 0-10."""
    if value in (None, ''):
        return {}, None
    if not isinstance(value, dict):
        return None, 'criteria_ratings must be an object'
    criteria = {}
    for name, score in value.items():
        if isinstance(score, bool):
            return None, f'Invalid score for {name}'
        try:
            score = float(score)
        except (TypeError, ValueError):
            return None, f'Invalid score for {name}'
        if not math.isfinite(score):
            return None, f'Invalid score for {name}'
        if score < 0 or score > 10:
            return None, f'Score for {name} must be between 0 and 10'
        criteria[sanitize_text(str(name))] = score
    return criteria, None


def _review_fields(data, partial=False):
    """Return (fields, error) for a business review payload."""
    fields = {}
    if 'rating' in data or not partial:
        rating, error = _parse_rating(data.get('rating'))
        if error:
            return None, error
        fields['rating'] = rating
    if 'text' in data:
        if data['text'] is not None and not isinstance(data['text'], str):
            return None, 'Review text must be text'
        text = sanitize_text(data.get('text') or '')
        if len(text) > MAX_REVIEW_LENGTH:
            return None, f'Review text must be at most {MAX_REVIEW_LENGTH} characters'
        fields['text'] = text or None
    if 'criteria_ratings' in data:
        criteria, error = _parse_criteria(data.get('criteria_ratings'))
        if error:
            return None, error
        fields['criteria_ratings'] = criteria
    for flag in ('is_must_visit', 'is_hidden_gem'):
        if flag in data:
            fields[flag] = bool(data[flag])
    return fields, None


# ---------------------------------------------------------------------------
# Business reviews
# ---------------------------------------------------------------------------

@reviews_bp.route('/business/<int:business_id>', methods=['GET'])
def get_business_reviews(business_id):
    """Reviews for a business, newest first."""
    try:
        reviews = BusinessReview.query.filter_by(business_id=business_id).order_by(
            BusinessReview.created_at.desc(), BusinessReview.id.desc()
        ).all()
        return jsonify({
            'reviews': [r.to_dict() for r in reviews],
            'total': len(reviews)
        }), 200
    except Exception as e:
        return jsonify({'error': str(e)}), 500


@reviews_bp.route('/business/<int:business_id>/summary', methods=['GET'])
def get_business_review_summary(business_id):
    if not ServiceProvider.query.get(business_id):
        return jsonify({'error': 'Business not found'}), 404
    return jsonify(business_review_stats(business_id)), 200


@reviews_bp.route('/business/<int:business_id>', methods=['POST'])
@token_required
def create_business_review(current_user_id, business_id):
    business = ServiceProvider.query.get(business_id)
    if not business:
        return jsonify({'error': 'Business not found'}), 404
    if business.user_id == current_user_id:
        return jsonify({'error': 'You cannot review your own business'}), 400

    data = request.get_json(silent=True) or {}
    fields, error = _review_fields(data)
    if error:
        return jsonify({'error': error}), 400

    if BusinessReview.query.filter_by(business_id=business_id, user_id=current_user_id).first():
        return jsonify({'error': 'You have already reviewed this business'}), 409

    try:
        review = BusinessReview(
            business_id=business_id,
            user_id=current_user_id,
            reviewer_name=get_display_name(User.query.get(current_user_id)),
            **fields
        )
        db.session.add(review)
        db.session.commit()
        logger.info(f'Review {review.id} added to business {business_id} by user {current_user_id}')
        return jsonify({'message': 'Review submitted', 'review': review.to_dict()}), 201
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@reviews_bp.route('/<int:review_id>', methods=['PUT'])
@token_required
def update_business_review(current_user_id, review_id):
    review = BusinessReview.query.get(review_id)
    if not review:
        return jsonify({'error': 'Review not found'}), 404
    if review.user_id != current_user_id:
        return jsonify({'error': 'You can only edit your own reviews'}), 403

    data = request.get_json(silent=True) or {}
    fields, error = _review_fields(data, partial=True)
    if error:
        return jsonify({'error': error}), 400

    try:
        for key, value in fields.items():
            setattr(review, key, value)
        db.session.commit()
        return jsonify({'message': 'Review updated', 'review': review.to_dict()}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@reviews_bp.route('/<int:review_id>', methods=['DELETE'])
@token_required
def delete_business_review(current_user_id, review_id):
    review = BusinessReview.query.get(review_id)
    if not review:
        return jsonify({'error': 'Review not found'}), 404
    if review.user_id != current_user_id:
        return jsonify({'error': 'You can only delete your own reviews'}), 403

    try:
        db.session.delete(review)
        db.session.commit()
        return jsonify({'message': 'Review deleted'}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


# ---------------------------------------------------------------------------
# Seller reviews
# ---------------------------------------------------------------------------

@reviews_bp.route('/seller/<int:seller_id>', methods=['GET'])
def get_seller_reviews(seller_id):
    reviews = SellerReview.query.filter_by(seller_id=seller_id).order_by(
        SellerReview.created_at.desc(), SellerReview.id.desc()
    ).all()
    return jsonify({
        'reviews': [r.to_dict() for r in reviews],
        'average_rating': seller_rating(seller_id),
        'total': len(reviews)
    }), 200


@reviews_bp.route('/seller/<int:seller_id>', methods=['POST'])
@token_required
def create_seller_review(current_user_id, seller_id):
    """Review a marketplace seller; the seller's listings pick up the new average."""
    if seller_id == current_user_id:
        return jsonify({'error': 'You cannot review yourself'}), 400
    if not User.query.get(seller_id):
        return jsonify({'error': 'Seller not found'}), 404

    data = request.get_json(silent=True) or {}
    rating, error = _parse_rating(data.get('rating'))
    if error:
        return jsonify({'error': error}), 400
    if not isinstance(data.get('comment') or '', str):
        return jsonify({'error': 'Comment must be text'}), 400
    comment = sanitize_text(data.get('comment') or '')
    if not comment:
        return jsonify({'error': 'Comment is required'}), 400
    if len(comment) > MAX_REVIEW_LENGTH:
        return jsonify({'error': f'Comment must be at most {MAX_REVIEW_LENGTH} characters'}), 400

    if SellerReview.query.filter_by(seller_id=seller_id, reviewer_id=current_user_id).first():
        return jsonify({'error': 'You have already reviewed this seller'}), 409

    try:
        review = SellerReview(
            seller_id=seller_id,
            reviewer_id=current_user_id,
            reviewer_name=get_display_name(User.query.get(current_user_id)),
            rating=rating,
            comment=comment
        )
        db.session.add(review)
        db.session.flush()
        average = refresh_seller_rating(seller_id)
        db.session.commit()
        return jsonify({
            'message': 'Review submitted',
            'review': review.to_dict(),
            'seller_rating': average
        }), 201
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@reviews_bp.route('/seller-reviews/<int:review_id>', methods=['DELETE'])
@token_required
def delete_seller_review(current_user_id, review_id):
    review = SellerReview.query.get(review_id)
    if not review:
        return jsonify({'error': 'Review not found'}), 404
    if review.reviewer_id != current_user_id:
        return jsonify({'error': 'You can only delete your own reviews'}), 403

    try:
        seller_id = review.seller_id
        db.session.delete(review)
        db.session.flush()
        average = refresh_seller_rating(seller_id)
        db.session.commit()
        return jsonify({'message': 'Review deleted', 'seller_rating': average}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500
