"""Local event listing model."""

from datetime import datetime
from hopaba import db
from hopaba.models.user import utc_isoformat


class Event(db.Model):
    __tablename__ = 'events'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)
    time = db.Column(db.String(20), nullable=False)
    location = db.Column(db.String(300), nullable=False)
    image = db.Column(db.String(500), nullable=False)
    attendees = db.Column(db.Integer, default=0, nullable=False)
    price_per_person = db.Column(db.Float, default=0, nullable=False)
    approval_status = db.Column(db.String(20), default='pending', nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    organizer = db.relationship('User', backref=db.backref('events', lazy='dynamic'))

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'title': self.title,
            'description': self.description,
            'date': self.date.isoformat() if self.date else None,
            'time': self.time,
            'location': self.location,
            'image': self.image,
            'attendees': self.attendees,
            'price_per_person': self.price_per_person,
            'approval_status': self.approval_status,
            'created_at': utc_isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<Event {self.id}: {self.title}>'
