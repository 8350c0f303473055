"""
Unit tests for input validation and sanitization helpers.
"""

from datetime import date

import pytest

from hopaba.utils.sanitize import (
    sanitize_text,
    sanitize_email,
    sanitize_url,
    sanitize_search_query,
    sanitize_file_name,
    sanitize_string_list,
)
from hopaba.utils.validation import (
    validate_password,
    is_valid_phone_number,
    normalize_phone,
    is_valid_postal_code,
    parse_business_hours,
    parse_date,
    validate_quotation,
    validate_request_data,
    validate_coordinates,
    validate_listing_data,
    validate_event_data,
    tags_error,
    text_fields_error,
    is_record_id,
)


class TestSanitize:

    def test_strips_script_and_handlers(self):
        dirty = 'Hello <script>alert(1)</script><a onclick=steal() href="javascript:x">hi</a>'
        clean = sanitize_text(dirty)
        assert '<script>' not in clean
        assert 'onclick=' not in clean
        assert 'javascript:' not in clean
        assert clean.startswith('Hello')

    def test_strips_iframe(self):
        assert sanitize_text('<iframe src="x"></iframe>ok') == 'ok'

    def test_empty(self):
        assert sanitize_text(None) == ''

    def test_email(self):
        assert sanitize_email('  Ravi@Example.COM ') == 'ravi@example.com'

    def test_url(self):
        assert sanitize_url('https://example.com/a') == 'https://example.com/a'
        assert sanitize_url('ftp://example.com') == ''
        assert sanitize_url('javascript:alert(1)') == ''

    def test_search_query(self):
        assert sanitize_search_query('  cafe   <b>"jp nagar"</b>; ') == 'cafe bjp nagar/b'
        assert len(sanitize_search_query('x' * 300)) == 100

    def test_file_name(self):
        assert sanitize_file_name('../../etc/passwd') == 'etcpasswd'
        assert sanitize_file_name('.hidden.png') == 'hidden.png'
        assert sanitize_file_name('my:photo?.jpg') == 'myphoto.jpg'

    def test_string_list(self):
        values = ['plumbing', '', 'plumbing', 42, '<script>x</script>', 'drains']
        assert sanitize_string_list(values) == ['plumbing', 'drains']


class TestPassword:

    def test_strong_password(self):
        assert validate_password('Passw0rd!') == []

    def test_reports_every_broken_rule(self):
        errors = validate_password('abc')
        assert len(errors) == 4
        assert 'Password must be at least 8 characters long' in errors

    def test_not_a_string(self):
        assert validate_password(None) == ['Password is required']


class TestPhoneAndPostalCode:

    @pytest.mark.parametrize('phone', ['+919876543210', '+91 98765 43210', '+91-9876-543210'])
    def test_valid_phones(self, phone):
        assert is_valid_phone_number(phone)
        assert normalize_phone(phone) == '+919876543210'

    @pytest.mark.parametrize('phone', [None, '', '9876543210', '+91987654321', '+9198765432100', '+449876543210'])
    def test_invalid_phones(self, phone):
        assert not is_valid_phone_number(phone)

    @pytest.mark.parametrize('code,valid', [('560041', True), (560041, True), ('56004', False), ('56004a', False)])
    def test_postal_codes(self, code, valid):
        assert is_valid_postal_code(code) is valid


class TestDatesAndHours:

    def test_parse_date(self):
        assert parse_date('2026-03-01') == date(2026, 3, 1)
        assert parse_date('2026-03-01T10:30:00Z') == date(2026, 3, 1)
        assert parse_date(date(2026, 3, 1)) == date(2026, 3, 1)
        assert parse_date('next tuesday') is None
        assert parse_date(None) is None

    def test_business_hours(self):
        assert parse_business_hours('10:00 AM - 8:30 PM') == ('10:00 AM', '8:30 PM')
        assert parse_business_hours('open late') == ('9:00 AM', '5:00 PM')
        assert parse_business_hours() == ('9:00 AM', '5:00 PM')


class TestQuotationValidation:

    def test_fixed_price(self):
        assert validate_quotation({'quotation_price': 1500}) is None

    @pytest.mark.parametrize('price', [None, 'abc', 0, -5, 20_000_000, 'nan', 'inf', float('inf')])
    def test_bad_prices(self, price):
        assert validate_quotation({'quotation_price': price}) is not None

    def test_wholesale_needs_wholesale_price(self):
        error = validate_quotation({'quotation_price': 100, 'pricing_type': 'wholesale'})
        assert error == 'Wholesale price is required for wholesale pricing'
        assert validate_quotation({
            'quotation_price': 100, 'pricing_type': 'wholesale', 'wholesale_price': 80,
        }) is None

    def test_unknown_pricing_type(self):
        assert 'pricing_type' in validate_quotation({'quotation_price': 100, 'pricing_type': 'barter'})


class TestFormValidation:

    def test_partial_update_checks_only_present_fields(self):
        assert validate_request_data({'budget': 250}, partial=True) is None
        assert validate_request_data({'title': 'Hi'}, partial=True) == 'Title must be at least 5 characters'

    def test_date_range_order(self):
        error = validate_request_data({
            'date_range_start': '2026-05-10', 'date_range_end': '2026-05-01',
        }, partial=True)
        assert error == 'date_range_start must be before date_range_end'

    def test_coordinates(self):
        assert validate_coordinates(None, None) is None
        assert validate_coordinates(12.9, 77.5) is None
        assert validate_coordinates(12.9, None) is not None
        assert validate_coordinates(95, 77.5) == 'latitude must be between -90 and 90'

    def test_text_fields(self):
        assert text_fields_error({'hours': '9 AM - 5 PM', 'website': None}, ('hours', 'website')) is None
        assert text_fields_error({'hours': ['9 AM']}, ('hours', 'website')) == 'hours must be text'

    def test_record_ids(self):
        assert is_record_id(7)
        assert not is_record_id('7')
        assert not is_record_id(True)
        assert not is_record_id(0)


class TestTags:

    def test_enough_distinct_tags(self):
        assert tags_error(['plumbing', 'repairs', 'pipes']) is None

    def test_duplicates_count_once(self):
        assert tags_error(['plumbing', 'plumbing', 'pipes']) == 'Please add at least 3 different tags'

    def test_blank_tags_ignored(self):
        assert tags_error(['plumbing', '   ', 'pipes']) == 'Please add at least 3 different tags'

    @pytest.mark.parametrize('tags', ['plumbing,pipes,repairs', ['plumbing', 'pipes', 3], None])
    def test_tags_must_be_text_list(self, tags):
        assert tags_error(tags) == 'tags must be a list of text values'


class TestListingAndEventValidation:

    LISTING = {
        'title': 'Royal Enfield Classic 350',
        'description': 'Well maintained bike, single owner, all service records.',
        'price': 120000,
        'category': 'Vehicles',
        'condition': 'good',
        'seller_name': 'Ravi Kumar',
        'seller_role': 'owner',
        'seller_phone': '+919812345678',
        'images': ['https://cdn.example.com/bike.jpg'],
    }

    def test_listing_condition(self):
        assert validate_listing_data({**self.LISTING, 'condition': 'Like New'}) is None
        assert validate_listing_data({**self.LISTING, 'condition': 'broken'}).startswith('Condition must be one of')

    @pytest.mark.parametrize('owners', ['abc', 0, 1.5, 'inf'])
    def test_bad_ownership_number(self, owners):
        error = validate_listing_data({**self.LISTING, 'ownership_number': owners})
        assert error == 'ownership_number must be a whole number of at least 1'

    def test_ownership_number(self):
        assert validate_listing_data({**self.LISTING, 'ownership_number': '2'}) is None

    def test_event_image_must_be_url(self):
        assert validate_event_data({'image': 'poster.png'}, partial=True) == 'Image must be a valid http(s) URL'
        assert validate_event_data({'image': 'https://cdn.example.com/poster.png'}, partial=True) is None

    @pytest.mark.parametrize('attendees', ['inf', 'nan', -1, 2.5])
    def test_bad_attendees(self, attendees):
        error = validate_event_data({'attendees': attendees}, partial=True)
        assert error == 'attendees must be a non-negative whole number'
