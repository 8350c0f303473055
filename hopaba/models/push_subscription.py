"""Push subscription model for web push notifications."""

from hopaba import db
from datetime import datetime


class PushSubscription(db.Model):
    """A browser's Web Push subscription.

    One user can hold several (one per device/browser). The service
    worker on that device receives the JSON payload built in
    services.push_notifications.
    """
    __tablename__ = 'push_subscriptions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    endpoint = db.Column(db.Text, nullable=False, unique=True)
    p256dh_key = db.Column(db.Text, nullable=False)
    auth_key = db.Column(db.Text, nullable=False)

    device_name = db.Column(db.String(100), nullable=True)
    user_agent = db.Column(db.String(500), nullable=True)

    notify_messages = db.Column(db.Boolean, default=True)
    notify_requests = db.Column(db.Boolean, default=True)

    is_active = db.Column(db.Boolean, default=True)
    last_used_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship('User', backref=db.backref('push_subscriptions', lazy='dynamic'))

    def get_subscription_info(self):
        """Return subscription info in format needed by pywebpush."""
        return {
            'endpoint': self.endpoint,
            'keys': {
                'p256dh': self.p256dh_key,
                'auth': self.auth_key
            }
        }

    def to_dict(self):
        return {
            'id': self.id,
            'device_name': self.device_name,
            'notify_messages': self.notify_messages,
            'notify_requests': self.notify_requests,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'last_used_at': self.last_used_at.isoformat() if self.last_used_at else None,
        }

    def __repr__(self):
        return f'<PushSubscription {self.id} user={self.user_id}>'
