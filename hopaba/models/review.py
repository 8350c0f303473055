"""Review models for businesses and marketplace sellers."""
from datetime import datetime
from hopaba import db
from hopaba.models.user import utc_isoformat


class BusinessReview(db.Model):
    """Review of a service provider.

    criteria_ratings maps a review criterion name (see ReviewCriterion)
    to a score between 0 and 10.
    """

    __tablename__ = 'business_reviews'

    id = db.Column(db.Integer, primary_key=True)
    business_id = db.Column(db.Integer, db.ForeignKey('service_providers.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    reviewer_name = db.Column(db.String(120), nullable=True)
    rating = db.Column(db.Integer, nullable=False)
    text = db.Column(db.Text, nullable=True)
    is_must_visit = db.Column(db.Boolean, default=False, nullable=False)
    is_hidden_gem = db.Column(db.Boolean, default=False, nullable=False)
    criteria_ratings = db.Column(db.JSON, default=dict)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('business_id', 'user_id', name='unique_user_business_review'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'business_id': self.business_id,
            'user_id': self.user_id,
            'reviewer_name': self.reviewer_name,
            'rating': self.rating,
            'text': self.text,
            'is_must_visit': self.is_must_visit,
            'is_hidden_gem': self.is_hidden_gem,
            'criteria_ratings': self.criteria_ratings or {},
            'created_at': utc_isoformat(self.created_at),
            'updated_at': utc_isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<BusinessReview {self.id}: {self.rating}stars>'


class SellerReview(db.Model):
    __tablename__ = 'seller_reviews'

    id = db.Column(db.Integer, primary_key=True)
    seller_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    reviewer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    reviewer_name = db.Column(db.String(120), nullable=True)
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('seller_id', 'reviewer_id', name='unique_seller_reviewer'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'seller_id': self.seller_id,
            'reviewer_id': self.reviewer_id,
            'reviewer_name': self.reviewer_name,
            'rating': self.rating,
            'comment': self.comment,
            'created_at': utc_isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<SellerReview {self.id}: seller {self.seller_id} {self.rating}stars>'
