"""Review aggregation for businesses and marketplace sellers."""

import math

from sqlalchemy import func

from hopaba import db
from hopaba.models import BusinessReview, SellerReview, MarketplaceListing

# Upper bounds (inclusive) of each colour band on the 0-100 scale
RATING_COLOR_BANDS = (
    (30, '#ea384c'),
    (50, '#F97316'),
    (70, '#d9a404'),
    (85, '#68cd77'),
)
TOP_RATING_COLOR = '#00ee24'


def _finite(value):
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def round_half_up(value):
    """Nearest integer, halves rounded up."""
    return math.floor(value + 0.5)


def calculate_overall_rating(criteria_ratings):
    """Average of 0-10 criterion scores, expressed on a 0-100 scale."""
    values = [v for v in (_finite(value) for value in (criteria_ratings or {}).values()) if v is not None]
    if not values:
        return 0
    return round_half_up(sum(values) / len(values) / 10 * 100)


def get_rating_color(rating):
    for upper, color in RATING_COLOR_BANDS:
        if rating <= upper:
            return color
    return TOP_RATING_COLOR


def business_review_stats(business_id):
    """Aggregates shown on a business profile."""
    reviews = BusinessReview.query.filter_by(business_id=business_id).all()
    count = len(reviews)

    distribution = {str(star): 0 for star in range(1, 6)}
    criteria_totals = {}
    criteria_counts = {}
    for review in reviews:
        if 1 <= review.rating <= 5:
            distribution[str(review.rating)] += 1
        for name, value in (review.criteria_ratings or {}).items():
            value = _finite(value)
            if value is None:
                continue
            criteria_totals[name] = criteria_totals.get(name, 0) + value
            criteria_counts[name] = criteria_counts.get(name, 0) + 1

    raw_averages = {name: total / criteria_counts[name] for name, total in criteria_totals.items()}
    criteria_averages = {name: round(average, 1) for name, average in raw_averages.items()}
    overall = calculate_overall_rating(raw_averages)

    return {
        'average_rating': round(sum(r.rating for r in reviews) / count, 1) if count else 0,
        'review_count': count,
        'rating_distribution': distribution,
        'criteria_averages': criteria_averages,
        'overall_score': overall,
        'overall_color': get_rating_color(overall),
        'must_visit_count': sum(1 for r in reviews if r.is_must_visit),
        'hidden_gem_count': sum(1 for r in reviews if r.is_hidden_gem),
    }


def batch_rating_summaries(business_ids):
    """{business_id: {'average_rating', 'review_count'}} in one query."""
    if not business_ids:
        return {}
    rows = db.session.query(
        BusinessReview.business_id,
        func.avg(BusinessReview.rating),
        func.count(BusinessReview.id)
    ).filter(
        BusinessReview.business_id.in_(business_ids)
    ).group_by(BusinessReview.business_id).all()

    summaries = {bid: {'average_rating': 0, 'review_count': 0} for bid in business_ids}
    for business_id, average, count in rows:
        summaries[business_id] = {
            'average_rating': round(float(average), 1) if average is not None else 0,
            'review_count': count,
        }
    return summaries


def seller_rating(seller_id):
    average = db.session.query(func.avg(SellerReview.rating)).filter(
        SellerReview.seller_id == seller_id
    ).scalar()
    return round(float(average), 1) if average is not None else 0


def refresh_seller_rating(seller_id):
    """Copy the seller's current average onto all their listings (no commit)."""
    rating = seller_rating(seller_id)
    MarketplaceListing.query.filter_by(seller_id=seller_id).update(
        {'seller_rating': rating}, synchronize_session=False
    )
    return rating
