"""Service request model - a user's posted need that providers can answer."""

from datetime import datetime
from hopaba import db
from hopaba.models.user import utc_isoformat


class ServiceRequest(db.Model):
    __tablename__ = 'service_requests'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(100), nullable=False, index=True)
    subcategory = db.Column(db.String(100), nullable=True)
    budget = db.Column(db.Float, nullable=True)
    date_range_start = db.Column(db.Date, nullable=True)
    date_range_end = db.Column(db.Date, nullable=True)

    city = db.Column(db.String(120), nullable=False)
    area = db.Column(db.String(120), nullable=False)
    postal_code = db.Column(db.String(10), nullable=False)
    contact_phone = db.Column(db.String(20), nullable=True)
    images = db.Column(db.JSON, default=list)

    status = db.Column(db.String(20), default='open', nullable=False, index=True)  # 'open', 'closed'

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    conversations = db.relationship('Conversation', backref='request', lazy='dynamic', passive_deletes=True)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'subcategory': self.subcategory,
            'budget': self.budget,
            'date_range_start': self.date_range_start.isoformat() if self.date_range_start else None,
            'date_range_end': self.date_range_end.isoformat() if self.date_range_end else None,
            'city': self.city,
            'area': self.area,
            'postal_code': self.postal_code,
            'contact_phone': self.contact_phone,
            'images': self.images or [],
            'status': self.status,
            'created_at': utc_isoformat(self.created_at),
            'updated_at': utc_isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<ServiceRequest {self.id}: {self.title}>'
