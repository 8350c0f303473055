"""Admin-managed categories, subcategories and review criteria."""

from datetime import datetime
from hopaba import db


class Category(db.Model):
    __tablename__ = 'categories'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    subcategories = db.relationship('Subcategory', backref='category', lazy=True,
                                    cascade='all, delete-orphan', order_by='Subcategory.name')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'subcategories': [s.to_dict() for s in self.subcategories],
        }

    def __repr__(self):
        return f'<Category {self.name}>'


class Subcategory(db.Model):
    __tablename__ = 'subcategories'

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)

    __table_args__ = (
        db.UniqueConstraint('category_id', 'name', name='unique_category_subcategory'),
    )

    def to_dict(self):
        return {'id': self.id, 'category_id': self.category_id, 'name': self.name}

    def __repr__(self):
        return f'<Subcategory {self.name}>'


class ReviewCriterion(db.Model):
    """A 0-10 scored aspect reviewers rate for businesses of a category."""

    __tablename__ = 'review_criteria'

    id = db.Column(db.Integer, primary_key=True)
    category = db.Column(db.String(100), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)

    __table_args__ = (
        db.UniqueConstraint('category', 'name', name='unique_category_criterion'),
    )

    def to_dict(self):
        return {'id': self.id, 'category': self.category, 'name': self.name}

    def __repr__(self):
        return f'<ReviewCriterion {self.category}/{self.name}>'
