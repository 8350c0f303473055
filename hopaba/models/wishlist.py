"""Wishlist model for providers, marketplace listings and events a user saved."""

from datetime import datetime
from hopaba import db

WISHLIST_ITEM_TYPES = ('provider', 'listing', 'event')


class WishlistItem(db.Model):
    __tablename__ = 'wishlist_items'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    item_type = db.Column(db.String(20), nullable=False)  # 'provider', 'listing', 'event'
    item_id = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'item_type', 'item_id', name='unique_user_wishlist_item'),
    )

    @classmethod
    def is_saved(cls, user_id, item_type, item_id):
        return cls.query.filter_by(
            user_id=user_id,
            item_type=item_type,
            item_id=item_id
        ).first() is not None

    @classmethod
    def toggle(cls, user_id, item_type, item_id):
        """Toggle the saved state of an item. Returns (is_saved, item)."""
        existing = cls.query.filter_by(
            user_id=user_id,
            item_type=item_type,
            item_id=item_id
        ).first()

        if existing:
            db.session.delete(existing)
            db.session.commit()
            return False, None

        item = cls(user_id=user_id, item_type=item_type, item_id=item_id)
        db.session.add(item)
        db.session.commit()
        return True, item

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'item_type': self.item_type,
            'item_id': self.item_id,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f'<WishlistItem {self.item_type}:{self.item_id} user={self.user_id}>'
