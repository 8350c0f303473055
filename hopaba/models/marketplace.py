"""Second-hand marketplace listing and per-seller listing limit models."""

from datetime import datetime
from hopaba import db
from hopaba.models.user import utc_isoformat

DEFAULT_LISTING_LIMIT = 5
SELLER_ROLES = ('owner', 'dealer')


class MarketplaceListing(db.Model):
    __tablename__ = 'marketplace_listings'

    id = db.Column(db.Integer, primary_key=True)
    seller_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    price = db.Column(db.Float, nullable=False)
    category = db.Column(db.String(100), nullable=False, index=True)
    condition = db.Column(db.String(50), nullable=False)
    model_year = db.Column(db.Integer, nullable=True)
    ownership_number = db.Column(db.Integer, nullable=True)
    is_negotiable = db.Column(db.Boolean, default=False, nullable=False)

    # Location
    location = db.Column(db.String(300), nullable=True)
    area = db.Column(db.String(120), nullable=True)
    city = db.Column(db.String(120), nullable=True)
    postal_code = db.Column(db.String(10), nullable=True)
    map_link = db.Column(db.String(500), nullable=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)

    # Seller
    seller_name = db.Column(db.String(120), nullable=False)
    seller_role = db.Column(db.String(10), default='owner', nullable=False)
    seller_phone = db.Column(db.String(20), nullable=True, index=True)
    seller_whatsapp = db.Column(db.String(20), nullable=True)
    seller_instagram = db.Column(db.String(200), nullable=True)
    seller_rating = db.Column(db.Float, default=0, nullable=False)

    # Images
    images = db.Column(db.JSON, default=list)
    shop_images = db.Column(db.JSON, default=list)
    damage_images = db.Column(db.JSON, default=list)
    inspection_certificates = db.Column(db.JSON, default=list)
    bill_images = db.Column(db.JSON, default=list)

    approval_status = db.Column(db.String(20), default='pending', nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    seller = db.relationship('User', backref=db.backref('marketplace_listings', lazy='dynamic'))

    def to_dict(self):
        return {
            'id': self.id,
            'seller_id': self.seller_id,
            'title': self.title,
            'description': self.description,
            'price': self.price,
            'category': self.category,
            'condition': self.condition,
            'model_year': self.model_year,
            'ownership_number': self.ownership_number,
            'is_negotiable': self.is_negotiable,
            'location': self.location,
            'area': self.area,
            'city': self.city,
            'postal_code': self.postal_code,
            'map_link': self.map_link,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'seller_name': self.seller_name,
            'seller_role': self.seller_role,
            'seller_phone': self.seller_phone,
            'seller_whatsapp': self.seller_whatsapp,
            'seller_instagram': self.seller_instagram,
            'seller_rating': self.seller_rating,
            'images': self.images or [],
            'shop_images': self.shop_images or [],
            'damage_images': self.damage_images or [],
            'inspection_certificates': self.inspection_certificates or [],
            'bill_images': self.bill_images or [],
            'approval_status': self.approval_status,
            'created_at': utc_isoformat(self.created_at),
            'updated_at': utc_isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<MarketplaceListing {self.id}: {self.title}>'


class SellerListingLimit(db.Model):
    """Admin-adjustable cap on how many listings a seller may hold."""

    __tablename__ = 'seller_listing_limits'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, unique=True)
    max_listings = db.Column(db.Integer, default=DEFAULT_LISTING_LIMIT, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = db.relationship('User')

    @classmethod
    def limit_for(cls, user_id):
        row = cls.query.filter_by(user_id=user_id).first()
        return row.max_listings if row else DEFAULT_LISTING_LIMIT

    @classmethod
    def status_for(cls, user_id):
        """Current listing count, limit and whether another listing is allowed."""
        count = MarketplaceListing.query.filter_by(seller_id=user_id).count()
        max_listings = cls.limit_for(user_id)
        return {
            'current_count': count,
            'max_listings': max_listings,
            'can_create': count < max_listings,
        }

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'max_listings': self.max_listings,
            'updated_at': utc_isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<SellerListingLimit user={self.user_id} max={self.max_listings}>'
