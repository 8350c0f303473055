"""Shared helpers for provider routes."""

from hopaba import db
from hopaba.constants import CATEGORIES, validate_category
from hopaba.models import (
    Category, BusinessReview, CommunityNote, NoteComment, Conversation,
    Message, SavedQuotation, WishlistItem,
)
from hopaba.utils.sanitize import sanitize_text, sanitize_email, sanitize_url, sanitize_string_list
from hopaba.utils.validation import normalize_phone, parse_business_hours, format_business_hours

TEXT_FIELDS = (
    'name', 'description', 'address', 'area', 'city', 'experience',
    'price_unit', 'availability', 'availability_start_time',
    'availability_end_time', 'hours', 'instagram',
)
LIST_FIELDS = ('subcategory', 'tags', 'languages', 'availability_days')
NUMBER_FIELDS = ('price_range_min', 'price_range_max', 'latitude', 'longitude')


def known_categories():
    """Built-in categories plus the ones admins added."""
    extra = [c.name for c in Category.query.order_by(Category.name).all()]
    return sorted(set(CATEGORIES) | set(extra))


def check_category(data):
    """Normalize data['category'] in place. Returns an error message or None."""
    if 'category' not in data:
        return None
    category, error = validate_category(data.get('category') or '', known_categories())
    if error:
        return error
    data['category'] = category
    return None


def extract_provider_fields(data):
    """Sanitized column values from a validated provider payload."""
    fields = {}
    for field in TEXT_FIELDS:
        if field in data:
            fields[field] = sanitize_text(data[field] or '') or None
    for field in LIST_FIELDS:
        if field in data:
            fields[field] = sanitize_string_list(data[field])
    for field in NUMBER_FIELDS:
        if field in data:
            fields[field] = float(data[field]) if data[field] not in (None, '') else None
    if 'images' in data:
        fields['images'] = [url for url in (sanitize_url(u) for u in data['images'] or []) if url]
    if 'category' in data:
        fields['category'] = data['category']
    if 'postal_code' in data:
        fields['postal_code'] = str(data['postal_code']).strip()
    for field in ('contact_phone', 'whatsapp'):
        if field in data:
            fields[field] = normalize_phone(data[field]) if data[field] else None
    if 'contact_email' in data:
        fields['contact_email'] = sanitize_email(data['contact_email']) or None
    if 'website' in data:
        fields['website'] = sanitize_url(data['website']) or None
    if 'map_link' in data:
        fields['map_link'] = sanitize_url(data['map_link']) or None
    if fields.get('hours') and not (fields.get('availability_start_time') or fields.get('availability_end_time')):
        fields['availability_start_time'], fields['availability_end_time'] = parse_business_hours(fields['hours'])
    elif 'hours' not in data and fields.get('availability_start_time') and fields.get('availability_end_time'):
        fields['hours'] = format_business_hours(fields['availability_start_time'], fields['availability_end_time'])
    return fields


def delete_provider_cascade(provider):
    """Delete a provider and everything hanging off it (caller commits)."""
    conversation_ids = [c.id for c in Conversation.query.filter_by(provider_id=provider.id).all()]
    if conversation_ids:
        SavedQuotation.query.filter(
            SavedQuotation.conversation_id.in_(conversation_ids)
        ).delete(synchronize_session=False)
        Message.query.filter(
            Message.conversation_id.in_(conversation_ids)
        ).delete(synchronize_session=False)
        Conversation.query.filter(
            Conversation.id.in_(conversation_ids)
        ).delete(synchronize_session=False)

    note_ids = [n.id for n in CommunityNote.query.filter_by(location_id=provider.id).all()]
    if note_ids:
        NoteComment.query.filter(NoteComment.note_id.in_(note_ids)).delete(synchronize_session=False)
        CommunityNote.query.filter(CommunityNote.id.in_(note_ids)).delete(synchronize_session=False)

    BusinessReview.query.filter_by(business_id=provider.id).delete(synchronize_session=False)
    WishlistItem.query.filter_by(item_type='provider', item_id=provider.id).delete(synchronize_session=False)
    db.session.delete(provider)
