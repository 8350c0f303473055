"""Database models for the Hopaba directory and marketplace."""

from .user import User
from .provider import ServiceProvider
from .service_request import ServiceRequest
from .message import Conversation, Message, SavedQuotation
from .review import BusinessReview, SellerReview
from .marketplace import MarketplaceListing, SellerListingLimit
from .event import Event
from .community_note import CommunityNote, NoteComment
from .category import Category, Subcategory, ReviewCriterion
from .push_subscription import PushSubscription
from .wishlist import WishlistItem

__all__ = [
    'User',
    'ServiceProvider',
    'ServiceRequest',
    'Conversation',
    'Message',
    'SavedQuotation',
    'BusinessReview',
    'SellerReview',
    'MarketplaceListing',
    'SellerListingLimit',
    'Event',
    'CommunityNote',
    'NoteComment',
    'Category',
    'Subcategory',
    'ReviewCriterion',
    'PushSubscription',
    'WishlistItem',
]
