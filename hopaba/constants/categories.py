"""Business category constants used when the categories table is empty.

Admins can add categories at runtime (see models.category); these built-in
values seed the form options the client shows.
"""

CATEGORIES = sorted([
    'Actor/Actress',
    'Auto Services',
    'Bakery & Chats',
    'Beauty & Wellness',
    'Choreographer',
    'Education',
    'Electrician',
    'Entertainment',
    'Event Planning',
    'Fashion Designer',
    'Financial Services',
    'Fitness',
    'Food & Dining',
    'Graphic Designer',
    'Hair Salons',
    'Healthcare',
    'Home Services',
    'Ice Cream Shop',
    'Laser Hair Removal',
    'Massage Therapy',
    'Medical Spas',
    'Model',
    'Musician',
    'Nail Technicians',
    'Painter',
    'Photographer',
    'Plumber',
    'Professional Services',
    'Real Estate',
    'Retail',
    'Skin Care',
    'Technology',
    'Travel Agents',
    'Vacation Rentals',
    'Videographers',
    'Weight Loss Centers',
    'Writer',
    'Other',
])

PRICE_UNITS = [
    'per hour',
    'per day',
    'per session',
    'per month',
    'per person',
    'fixed price',
]

DAYS_OF_WEEK = [
    'Monday',
    'Tuesday',
    'Wednesday',
    'Thursday',
    'Friday',
    'Saturday',
    'Sunday',
]

EXPERIENCE_OPTIONS = [
    'Less than 1 year',
    '1-3 years',
    '3-5 years',
    '5-10 years',
    'More than 10 years',
]

AVAILABILITY_OPTIONS = [
    'Weekdays Only',
    'Weekends Only',
    'All Days',
    'Monday to Friday',
    'Weekends and Evenings',
    'By Appointment Only',
    'Seasonal',
]

LISTING_CONDITIONS = ['new', 'like new', 'good', 'fair', 'poor']


def normalize_category(category: str) -> str:
    """Collapse whitespace and trim a category name, keeping its casing."""
    return ' '.join((category or '').split())


def same_category(a: str, b: str) -> bool:
    """Case-insensitive category equality."""
    return normalize_category(a).lower() == normalize_category(b).lower()


def is_all_categories(category) -> bool:
    """'all' (any casing) or an empty value means no category filter."""
    return not category or normalize_category(category).lower() == 'all'


def validate_category(category: str, known: list[str] | None = None) -> tuple[str, str | None]:
    """Validate and normalize a category.

    Returns:
        (normalized_name, error_message)
        error_message is None when valid.
    """
    normalized = normalize_category(category)
    if not normalized:
        return normalized, 'Category is required'
    options = known or CATEGORIES
    for option in options:
        if same_category(option, normalized):
            return option, None
    return normalized, (
        f"Invalid category '{category}'. "
        f"Valid categories: {', '.join(options)}"
    )
