"""Input sanitization helpers applied to user-supplied text before storage.

Every sanitizer maps a non-string value to an empty string; validators are
where a wrongly typed field becomes a 400.
"""

import re

SCRIPT_TAG_RE = re.compile(r'<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>', re.IGNORECASE)
IFRAME_TAG_RE = re.compile(r'<iframe\b[^<]*(?:(?!</iframe>)<[^<]*)*</iframe>', re.IGNORECASE)
JS_PROTOCOL_RE = re.compile(r'javascript:', re.IGNORECASE)
EVENT_HANDLER_RE = re.compile(r'on\w+\s*=', re.IGNORECASE)
SEARCH_STRIP_RE = re.compile(r'[<>\'"%;()&+]')
URL_RE = re.compile(r'^https?://.+', re.IGNORECASE)

MAX_SEARCH_QUERY_LENGTH = 100


def sanitize_text(value):
    """Strip script/iframe tags, javascript: URLs and inline event handlers."""
    if not value or not isinstance(value, str):
        return ''
    value = SCRIPT_TAG_RE.sub('', value)
    value = IFRAME_TAG_RE.sub('', value)
    value = JS_PROTOCOL_RE.sub('', value)
    value = EVENT_HANDLER_RE.sub('', value)
    return value.strip()


def sanitize_email(email):
    if not email or not isinstance(email, str):
        return ''
    return email.strip().lower().replace('<', '').replace('>', '')


def sanitize_url(url):
    """Return the URL if it is http(s), otherwise an empty string."""
    if not url or not isinstance(url, str) or not URL_RE.match(url):
        return ''
    return url.strip()


def sanitize_search_query(query):
    """Remove injection-prone characters, normalise whitespace, cap length."""
    if not query or not isinstance(query, str):
        return ''
    query = SEARCH_STRIP_RE.sub('', query)
    query = ' '.join(query.split())
    return query[:MAX_SEARCH_QUERY_LENGTH]


def sanitize_file_name(file_name):
    """Drop path separators, reserved characters and traversal sequences."""
    if not file_name or not isinstance(file_name, str):
        return ''
    file_name = re.sub(r'[<>:"/\\|?*]', '', file_name)
    file_name = file_name.replace('..', '')
    file_name = re.sub(r'^\.', '', file_name)
    return file_name.strip()


def sanitize_string_list(values, max_items=50, max_length=100):
    """Sanitize a list of short strings (tags, languages), dropping blanks."""
    if not values:
        return []
    cleaned = []
    for value in values[:max_items]:
        if not isinstance(value, str):
            continue
        value = sanitize_text(value)[:max_length]
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned
