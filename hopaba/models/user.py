"""User model for authentication and account management."""

from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from hopaba import db


def utc_isoformat(dt):
    """Convert datetime to ISO format with Z suffix to indicate UTC."""
    if dt is None:
        return None
    return dt.isoformat() + 'Z'


class User(db.Model):
    """Account used by searchers, providers, sellers and admins alike."""

    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(254), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(120), nullable=True)
    phone = db.Column(db.String(20), nullable=True, index=True)
    avatar_url = db.Column(db.String(500), nullable=True)
    city = db.Column(db.String(80), nullable=True)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_seen = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    providers = db.relationship('ServiceProvider', backref='owner', lazy='dynamic')
    service_requests = db.relationship('ServiceRequest', backref='requester', lazy='dynamic')

    def set_password(self, password):
        """Hash and set the user password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check if the provided password matches the hash."""
        return check_password_hash(self.password_hash, password)

    def update_last_seen(self):
        self.last_seen = datetime.utcnow()

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
            'phone': self.phone,
            'avatar_url': self.avatar_url,
            'city': self.city,
            'is_admin': self.is_admin,
            'is_active': self.is_active,
            'last_seen': utc_isoformat(self.last_seen),
            'created_at': utc_isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<User {self.email}>'
