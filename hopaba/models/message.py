"""Conversation, message and saved quotation models.

A conversation always ties one service request to one provider. The
requesting user talks as sender_type 'user', the provider's owner as
sender_type 'provider'.
"""

from datetime import datetime
from hopaba import db
from hopaba.models.user import utc_isoformat

SENDER_TYPES = ('user', 'provider')
PRICING_TYPES = ('fixed', 'negotiable', 'wholesale')


class Conversation(db.Model):
    __tablename__ = 'conversations'

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.Integer, db.ForeignKey('service_requests.id'), nullable=False, index=True)
    provider_id = db.Column(db.Integer, db.ForeignKey('service_providers.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    last_message_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    provider = db.relationship('ServiceProvider', backref=db.backref('conversations', lazy='dynamic', passive_deletes=True))
    user = db.relationship('User', backref='conversations_as_requester')
    messages = db.relationship('Message', backref='conversation', lazy='dynamic',
                               order_by='Message.created_at', passive_deletes=True)

    __table_args__ = (
        db.UniqueConstraint('request_id', 'provider_id', 'user_id', name='unique_request_provider_user'),
    )

    @property
    def provider_owner_id(self):
        return self.provider.user_id if self.provider else None

    def sender_type_for(self, user_id):
        """Return 'user' or 'provider' for a participant, None for outsiders."""
        if user_id == self.user_id:
            return 'user'
        if user_id == self.provider_owner_id:
            return 'provider'
        return None

    def participant_ids(self):
        return [uid for uid in (self.user_id, self.provider_owner_id) if uid is not None]

    def get_unread_count(self, user_id):
        """Unread messages sent by the other side of the conversation."""
        viewer_type = self.sender_type_for(user_id)
        if viewer_type is None:
            return 0
        return self.messages.filter(
            Message.sender_type != viewer_type,
            Message.read == False  # noqa: E712
        ).count()

    def get_latest_quotation(self):
        return self.messages.filter(
            Message.quotation_price.isnot(None)
        ).order_by(None).order_by(Message.created_at.desc(), Message.id.desc()).first()

    def get_last_message(self):
        return self.messages.order_by(None).order_by(
            Message.created_at.desc(), Message.id.desc()
        ).first()

    def to_dict(self, current_user_id=None):
        latest_quotation = self.get_latest_quotation()
        last_message = self.get_last_message()
        request = self.request

        data = {
            'id': self.id,
            'request_id': self.request_id,
            'provider_id': self.provider_id,
            'user_id': self.user_id,
            'request_title': request.title if request else None,
            'request_category': request.category if request else None,
            'request_status': request.status if request else None,
            'provider_name': self.provider.name if self.provider else None,
            'requester_name': self.user.full_name if self.user else None,
            'latest_quotation': {
                'message_id': latest_quotation.id,
                'quotation_price': latest_quotation.quotation_price,
                'pricing_type': latest_quotation.pricing_type,
            } if latest_quotation else None,
            'last_message': last_message.to_dict() if last_message else None,
            'last_message_at': utc_isoformat(self.last_message_at),
            'created_at': utc_isoformat(self.created_at),
        }
        if current_user_id is not None:
            data['role'] = self.sender_type_for(current_user_id)
            data['unread_count'] = self.get_unread_count(current_user_id)
        return data

    def __repr__(self):
        return f'<Conversation {self.id}: request {self.request_id} <-> provider {self.provider_id}>'


class Message(db.Model):
    __tablename__ = 'messages'

    id = db.Column(db.Integer, primary_key=True)
    conversation_id = db.Column(db.Integer, db.ForeignKey('conversations.id'), nullable=False, index=True)
    sender_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    sender_type = db.Column(db.String(10), nullable=False)  # 'user', 'provider'
    content = db.Column(db.Text, nullable=False, default='')
    read = db.Column(db.Boolean, default=False, nullable=False)
    attachments = db.Column(db.JSON, default=list)

    # Quotation
    quotation_price = db.Column(db.Float, nullable=True)
    quotation_images = db.Column(db.JSON, default=list)
    delivery_available = db.Column(db.Boolean, default=False, nullable=False)
    pricing_type = db.Column(db.String(20), nullable=True)
    wholesale_price = db.Column(db.Float, nullable=True)
    negotiable_price = db.Column(db.Float, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    sender = db.relationship('User', backref='sent_messages')

    @property
    def is_quotation(self):
        return self.quotation_price is not None

    def to_dict(self):
        return {
            'id': self.id,
            'conversation_id': self.conversation_id,
            'sender_id': self.sender_id,
            'sender_type': self.sender_type,
            'content': self.content,
            'read': self.read,
            'attachments': self.attachments or [],
            'is_quotation': self.is_quotation,
            'quotation_price': self.quotation_price,
            'quotation_images': self.quotation_images or [],
            'delivery_available': self.delivery_available,
            'pricing_type': self.pricing_type,
            'wholesale_price': self.wholesale_price,
            'negotiable_price': self.negotiable_price,
            'created_at': utc_isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<Message {self.id} in Conversation {self.conversation_id}>'


class SavedQuotation(db.Model):
    """A requester's bookmark on a quotation message."""

    __tablename__ = 'saved_quotations'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    message_id = db.Column(db.Integer, db.ForeignKey('messages.id'), nullable=False)
    conversation_id = db.Column(db.Integer, db.ForeignKey('conversations.id'), nullable=False)
    provider_id = db.Column(db.Integer, db.ForeignKey('service_providers.id'), nullable=False)
    request_id = db.Column(db.Integer, db.ForeignKey('service_requests.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    message = db.relationship('Message')
    provider = db.relationship('ServiceProvider')
    request = db.relationship('ServiceRequest')

    __table_args__ = (
        db.UniqueConstraint('user_id', 'message_id', name='unique_user_saved_quotation'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'message_id': self.message_id,
            'conversation_id': self.conversation_id,
            'provider_id': self.provider_id,
            'request_id': self.request_id,
            'provider_name': self.provider.name if self.provider else None,
            'request_title': self.request.title if self.request else None,
            'quotation': self.message.to_dict() if self.message else None,
            'created_at': utc_isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<SavedQuotation {self.id}: message {self.message_id}>'
