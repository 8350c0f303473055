"""Community notes attached to a business, plus their comments."""

from datetime import datetime
from hopaba import db
from hopaba.models.user import utc_isoformat


class CommunityNote(db.Model):
    """User-contributed content about a location.

    content is a list of blocks as produced by the client's note editor;
    thumbs_up always equals len(thumbs_up_users).
    """

    __tablename__ = 'community_notes'

    id = db.Column(db.Integer, primary_key=True)
    location_id = db.Column(db.Integer, db.ForeignKey('service_providers.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.JSON, default=list)
    images = db.Column(db.JSON, default=list)
    social_links = db.Column(db.JSON, default=list)
    thumbs_up = db.Column(db.Integer, default=0, nullable=False)
    thumbs_up_users = db.Column(db.JSON, default=list)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    author = db.relationship('User')
    comments = db.relationship('NoteComment', backref='note', lazy='dynamic',
                               order_by='NoteComment.created_at', passive_deletes=True)

    def toggle_thumbs_up(self, user_id):
        """Add or remove the user's thumbs-up. Returns True if now liked."""
        # Reassign rather than mutate so the JSON column is flagged dirty
        users = list(self.thumbs_up_users or [])
        if user_id in users:
            users.remove(user_id)
            liked = False
        else:
            users.append(user_id)
            liked = True
        self.thumbs_up_users = users
        self.thumbs_up = len(users)
        return liked

    def to_dict(self, current_user_id=None):
        return {
            'id': self.id,
            'location_id': self.location_id,
            'user_id': self.user_id,
            'author_name': self.author.full_name if self.author else None,
            'title': self.title,
            'content': self.content or [],
            'images': self.images or [],
            'social_links': self.social_links or [],
            'thumbs_up': self.thumbs_up,
            'user_has_liked': current_user_id in (self.thumbs_up_users or []),
            'comment_count': self.comments.count(),
            'created_at': utc_isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<CommunityNote {self.id}: {self.title}>'


class NoteComment(db.Model):
    __tablename__ = 'note_comments'

    id = db.Column(db.Integer, primary_key=True)
    note_id = db.Column(db.Integer, db.ForeignKey('community_notes.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    author = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'note_id': self.note_id,
            'user_id': self.user_id,
            'author_name': self.author.full_name if self.author else None,
            'content': self.content,
            'created_at': utc_isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<NoteComment {self.id} on note {self.note_id}>'
