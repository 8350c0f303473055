"""Service provider (business listing) model."""

from datetime import datetime
from hopaba import db
from hopaba.models.user import utc_isoformat

APPROVAL_STATUSES = ('pending', 'approved', 'rejected')


class ServiceProvider(db.Model):
    """A business or independent professional discoverable by searchers.

    New providers start as 'pending' and only show up in public listings
    once an admin approves them.
    """

    __tablename__ = 'service_providers'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    # Basic info
    name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(100), nullable=False, index=True)
    subcategory = db.Column(db.JSON, default=list)  # list of subcategory names
    description = db.Column(db.Text, nullable=False)
    experience = db.Column(db.String(50), nullable=True)
    tags = db.Column(db.JSON, default=list)
    languages = db.Column(db.JSON, default=list)
    images = db.Column(db.JSON, default=list)

    # Location
    address = db.Column(db.String(300), nullable=False)
    area = db.Column(db.String(120), nullable=False)
    city = db.Column(db.String(120), nullable=False, index=True)
    postal_code = db.Column(db.String(10), nullable=False, index=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    map_link = db.Column(db.String(500), nullable=True)

    # Contact
    contact_phone = db.Column(db.String(20), nullable=False)
    whatsapp = db.Column(db.String(20), nullable=True)
    contact_email = db.Column(db.String(254), nullable=True)
    website = db.Column(db.String(500), nullable=True)
    instagram = db.Column(db.String(200), nullable=True)

    # Pricing & availability
    price_range_min = db.Column(db.Float, nullable=True)
    price_range_max = db.Column(db.Float, nullable=True)
    price_unit = db.Column(db.String(30), nullable=True)
    availability = db.Column(db.String(50), nullable=True)
    availability_days = db.Column(db.JSON, default=list)
    availability_start_time = db.Column(db.String(10), nullable=True)
    availability_end_time = db.Column(db.String(10), nullable=True)
    hours = db.Column(db.String(50), nullable=True)

    approval_status = db.Column(db.String(20), default='pending', nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    reviews = db.relationship('BusinessReview', backref='business', lazy='dynamic', passive_deletes=True)

    @property
    def is_approved(self):
        return self.approval_status == 'approved'

    def has_subcategory(self, name):
        if not name:
            return True
        wanted = name.strip().lower()
        return any((s or '').strip().lower() == wanted for s in (self.subcategory or []))

    def to_dict(self, review_stats=None, distance=None):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'category': self.category,
            'subcategory': self.subcategory or [],
            'description': self.description,
            'experience': self.experience,
            'tags': self.tags or [],
            'languages': self.languages or [],
            'images': self.images or [],
            'address': self.address,
            'area': self.area,
            'city': self.city,
            'postal_code': self.postal_code,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'map_link': self.map_link,
            'contact_phone': self.contact_phone,
            'whatsapp': self.whatsapp,
            'contact_email': self.contact_email,
            'website': self.website,
            'instagram': self.instagram,
            'price_range_min': self.price_range_min,
            'price_range_max': self.price_range_max,
            'price_unit': self.price_unit,
            'availability': self.availability,
            'availability_days': self.availability_days or [],
            'availability_start_time': self.availability_start_time,
            'availability_end_time': self.availability_end_time,
            'hours': self.hours,
            'approval_status': self.approval_status,
            'created_at': utc_isoformat(self.created_at),
            'updated_at': utc_isoformat(self.updated_at),
        }
        if review_stats is not None:
            data['review_stats'] = review_stats
        if distance is not None:
            data['distance'] = distance.distance
            data['distance_text'] = distance.text
            data['distance_approximate'] = distance.approximate
        return data

    def __repr__(self):
        return f'<ServiceProvider {self.id}: {self.name}>'
