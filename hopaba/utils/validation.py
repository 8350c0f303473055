"""Form validators shared by the route modules.

Each validate_* function returns an error message (str) or None when the
data is acceptable, so routes can answer `400 {'error': message}` directly.
With partial=True only the fields present in the payload are checked, which
is what PUT handlers use.
"""

import math
import re
from datetime import date, datetime
from urllib.parse import urlparse

from hopaba.constants import PRICE_UNITS, LISTING_CONDITIONS
from hopaba.models.marketplace import SELLER_ROLES
from hopaba.models.message import PRICING_TYPES
from hopaba.utils.sanitize import sanitize_string_list

EMAIL_REGEX = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
POSTAL_CODE_REGEX = re.compile(r'^\d{6}$')
BUSINESS_HOURS_REGEX = re.compile(r'(\d+:\d+ [AP]M)\s*-\s*(\d+:\d+ [AP]M)')
YEAR_REGEX = re.compile(r'^(19|20)\d{2}$')
PASSWORD_SPECIAL_REGEX = re.compile(r'[!@#$%^&*(),.?":{}|<>]')

DEFAULT_HOURS = ('9:00 AM', '5:00 PM')
MIN_TAGS = 3
MAX_QUOTATION_PRICE = 10_000_000
MAX_MESSAGE_LENGTH = 5000


# ---------------------------------------------------------------------------
# Field validators
# ---------------------------------------------------------------------------

def validate_email(email):
    if not email or not isinstance(email, str):
        return 'Email is required'
    if len(email) > 254:
        return 'Email is too long'
    if not EMAIL_REGEX.match(email):
        return 'Invalid email format'
    return None


def validate_password(password):
    """Return every rule the password breaks (empty list when it is strong)."""
    if not isinstance(password, str):
        return ['Password is required']
    errors = []
    if len(password) < 8:
        errors.append('Password must be at least 8 characters long')
    if not re.search(r'[A-Z]', password):
        errors.append('Password must contain at least one uppercase letter')
    if not re.search(r'[a-z]', password):
        errors.append('Password must contain at least one lowercase letter')
    if not re.search(r'\d', password):
        errors.append('Password must contain at least one number')
    if not PASSWORD_SPECIAL_REGEX.search(password):
        errors.append('Password must contain at least one special character')
    return errors


def is_valid_phone_number(phone):
    """Indian mobile number: '+91' followed by exactly 10 digits."""
    if not phone or not isinstance(phone, str) or not phone.startswith('+91'):
        return False
    return len(re.sub(r'\D', '', phone[3:])) == 10


def normalize_phone(phone):
    """Canonical '+91XXXXXXXXXX' form of a valid number."""
    return '+91' + re.sub(r'\D', '', phone[3:])


def is_valid_postal_code(postal_code):
    return bool(postal_code) and bool(POSTAL_CODE_REGEX.match(str(postal_code)))


def is_valid_url(url):
    try:
        parsed = urlparse(url)
    except (TypeError, ValueError):
        return False
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def tags_error(tags):
    """Tags must be text, and at least MIN_TAGS must survive sanitizing and de-duplication."""
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        return 'tags must be a list of text values'
    if len(sanitize_string_list(tags)) < MIN_TAGS:
        return f'Please add at least {MIN_TAGS} different tags'
    return None


def is_record_id(value):
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def text_fields_error(data, fields):
    """First present field that holds something other than text (None is allowed)."""
    for field in fields:
        value = data.get(field)
        if value is not None and not isinstance(value, str):
            return f'{field} must be text'
    return None


def parse_business_hours(hours=None):
    """Split 'H:MM AM - H:MM PM' into (from, to), defaulting to 9 to 5."""
    if hours:
        match = BUSINESS_HOURS_REGEX.search(hours)
        if match:
            return match.group(1), match.group(2)
    return DEFAULT_HOURS


def format_business_hours(start, end):
    return f'{start} - {end}'


def is_year_term(term):
    return bool(YEAR_REGEX.match(term))


def parse_date(value):
    """Parse an ISO date (or datetime) string. Returns None if it is not one."""
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        try:
            return datetime.fromisoformat(value).date()
        except ValueError:
            return None


def _to_number(value):
    """Finite float from a number or numeric string; None otherwise (nan and inf included)."""
    if isinstance(value, bool) or value is None or value == '':
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _min_length(data, field, label, minimum, partial):
    """Shared 'required text of at least N characters' rule."""
    if field not in data:
        return None if partial else f'{label} is required'
    value = data.get(field)
    if not isinstance(value, str) or len(value.strip()) < minimum:
        return f'{label} must be at least {minimum} characters'
    return None


def _check_all(checks):
    for error in checks:
        if error:
            return error
    return None


def validate_coordinates(latitude, longitude):
    if latitude is None and longitude is None:
        return None
    lat = _to_number(latitude)
    lng = _to_number(longitude)
    if lat is None or lng is None:
        return 'latitude and longitude must both be numbers'
    if lat < -90 or lat > 90:
        return 'latitude must be between -90 and 90'
    if lng < -180 or lng > 180:
        return 'longitude must be between -180 and 180'
    return None


# ---------------------------------------------------------------------------
# Form validators
# ---------------------------------------------------------------------------

def validate_provider_data(data, partial=False):
    """Business listing form."""
    error = _check_all(
        _min_length(data, field, label, minimum, partial)
        for field, label, minimum in (
            ('name', 'Name', 2),
            ('description', 'Description', 10),
            ('area', 'Area', 2),
            ('city', 'City', 2),
            ('address', 'Address', 5),
        )
    )
    if error:
        return error

    error = text_fields_error(data, (
        'category', 'experience', 'price_unit', 'availability', 'availability_start_time',
        'availability_end_time', 'hours', 'instagram', 'contact_email', 'website', 'map_link',
    ))
    if error:
        return error

    if not partial or 'category' in data:
        if not data.get('category'):
            return 'Category is required'

    if not partial or 'postal_code' in data:
        if not is_valid_postal_code(data.get('postal_code')):
            return 'Postal code must be 6 digits'

    for field, label in (('contact_phone', 'Contact phone'), ('whatsapp', 'WhatsApp number')):
        if not partial or field in data:
            if not is_valid_phone_number(data.get(field)):
                return f'{label} must be +91 followed by 10 digits'

    if not partial or 'tags' in data:
        error = tags_error(data.get('tags'))
        if error:
            return error

    if data.get('contact_email') and validate_email(data['contact_email']):
        return 'Invalid contact email'

    if data.get('website') and not is_valid_url(data['website']):
        return 'Website must be a valid http(s) URL'

    if data.get('price_unit') and data['price_unit'] not in PRICE_UNITS:
        return f"price_unit must be one of: {', '.join(PRICE_UNITS)}"

    low = _to_number(data.get('price_range_min'))
    high = _to_number(data.get('price_range_max'))
    if data.get('price_range_min') not in (None, '') and (low is None or low < 0):
        return 'price_range_min must be a non-negative number'
    if data.get('price_range_max') not in (None, '') and (high is None or high < 0):
        return 'price_range_max must be a non-negative number'
    if low is not None and high is not None and low > high:
        return 'price_range_min cannot exceed price_range_max'

    for list_field in ('subcategory', 'languages', 'availability_days', 'images', 'tags'):
        if list_field in data and data[list_field] is not None and not isinstance(data[list_field], list):
            return f'{list_field} must be a list'

    return validate_coordinates(data.get('latitude'), data.get('longitude'))


def validate_request_data(data, partial=False):
    """Service request form."""
    error = _check_all([
        _min_length(data, 'title', 'Title', 5, partial),
        _min_length(data, 'description', 'Description', 10, partial),
        _min_length(data, 'city', 'City', 2, partial),
        _min_length(data, 'area', 'Area', 2, partial),
    ])
    if error:
        return error

    error = text_fields_error(data, ('category', 'subcategory'))
    if error:
        return error

    if not partial or 'category' in data:
        if not data.get('category'):
            return 'Category is required'

    if not partial or 'postal_code' in data:
        if not is_valid_postal_code(data.get('postal_code')):
            return 'Postal code must be 6 digits'

    if data.get('budget') not in (None, ''):
        budget = _to_number(data['budget'])
        if budget is None or budget < 1:
            return 'Budget must be at least 1'

    start = data.get('date_range_start')
    end = data.get('date_range_end')
    if start and parse_date(start) is None:
        return 'date_range_start must be a date (YYYY-MM-DD)'
    if end and parse_date(end) is None:
        return 'date_range_end must be a date (YYYY-MM-DD)'
    if start and end and parse_date(start) > parse_date(end):
        return 'date_range_start must be before date_range_end'

    if data.get('contact_phone') and not is_valid_phone_number(data['contact_phone']):
        return 'Contact phone must be +91 followed by 10 digits'

    if 'images' in data and data['images'] is not None and not isinstance(data['images'], list):
        return 'images must be a list'

    return None


def validate_quotation(data):
    """Quotation attached to a provider's message."""
    price = _to_number(data.get('quotation_price'))
    if price is None:
        return 'quotation_price is required'
    if price <= 0:
        return 'Quotation price must be greater than 0'
    if price > MAX_QUOTATION_PRICE:
        return 'Quotation price is too high'

    pricing_type = data.get('pricing_type', 'fixed')
    if pricing_type not in PRICING_TYPES:
        return f"pricing_type must be one of: {', '.join(PRICING_TYPES)}"

    if pricing_type == 'wholesale':
        wholesale = _to_number(data.get('wholesale_price'))
        if wholesale is None or wholesale <= 0:
            return 'Wholesale price is required for wholesale pricing'

    if pricing_type == 'negotiable' and data.get('negotiable_price') not in (None, ''):
        negotiable = _to_number(data.get('negotiable_price'))
        if negotiable is None or negotiable <= 0:
            return 'Negotiable price must be greater than 0'

    if 'quotation_images' in data and not isinstance(data['quotation_images'] or [], list):
        return 'quotation_images must be a list'

    return None


def validate_listing_data(data, partial=False):
    """Marketplace listing form."""
    error = _check_all([
        _min_length(data, 'title', 'Title', 5, partial),
        _min_length(data, 'description', 'Description', 20, partial),
        _min_length(data, 'seller_name', 'Seller name', 2, partial),
    ])
    if error:
        return error

    error = text_fields_error(data, (
        'category', 'condition', 'location', 'area', 'city', 'seller_instagram', 'map_link',
    ))
    if error:
        return error

    if not partial or 'price' in data:
        price = _to_number(data.get('price'))
        if price is None or price < 1:
            return 'Price must be at least 1'

    for field, label in (('category', 'Category'), ('condition', 'Condition')):
        if (not partial or field in data) and not data.get(field):
            return f'{label} is required'

    if data.get('condition') and data['condition'].strip().lower() not in LISTING_CONDITIONS:
        return f"Condition must be one of: {', '.join(LISTING_CONDITIONS)}"

    if not partial or 'seller_role' in data:
        if data.get('seller_role') not in SELLER_ROLES:
            return 'Seller role must be owner or dealer'

    if not partial or 'seller_phone' in data:
        if not is_valid_phone_number(data.get('seller_phone')):
            return 'Seller phone must be +91 followed by 10 digits'

    if data.get('seller_whatsapp') and not is_valid_phone_number(data['seller_whatsapp']):
        return 'Seller WhatsApp must be +91 followed by 10 digits'

    if not partial or 'images' in data:
        images = data.get('images')
        if not isinstance(images, list) or not images:
            return 'At least one image is required'

    if data.get('model_year') not in (None, ''):
        if not is_year_term(str(data['model_year'])):
            return 'model_year must be a year between 1900 and 2099'

    if data.get('ownership_number') not in (None, ''):
        owners = _to_number(data['ownership_number'])
        if owners is None or owners < 1 or owners != int(owners):
            return 'ownership_number must be a whole number of at least 1'

    for list_field in ('shop_images', 'damage_images', 'inspection_certificates', 'bill_images'):
        if list_field in data and data[list_field] is not None and not isinstance(data[list_field], list):
            return f'{list_field} must be a list'

    return validate_coordinates(data.get('latitude'), data.get('longitude'))


def validate_event_data(data, partial=False):
    """Event listing form."""
    error = _check_all([
        _min_length(data, 'title', 'Title', 5, partial),
        _min_length(data, 'description', 'Description', 20, partial),
        _min_length(data, 'location', 'Location', 5, partial),
    ])
    if error:
        return error

    error = text_fields_error(data, ('time', 'image'))
    if error:
        return error

    if not partial or 'date' in data:
        if parse_date(data.get('date')) is None:
            return 'Date is required (YYYY-MM-DD)'

    for field, label in (('time', 'Time'), ('image', 'Image')):
        if (not partial or field in data) and not data.get(field):
            return f'{label} is required'

    if data.get('image') and not is_valid_url(data['image']):
        return 'Image must be a valid http(s) URL'

    if data.get('price_per_person') not in (None, ''):
        price = _to_number(data['price_per_person'])
        if price is None or price < 0:
            return 'price_per_person must be a non-negative number'

    if data.get('attendees') not in (None, ''):
        attendees = _to_number(data['attendees'])
        if attendees is None or attendees < 0 or attendees != int(attendees):
            return 'attendees must be a non-negative whole number'

    return None
