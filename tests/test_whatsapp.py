"""
Tests for the WhatsApp gateway and provider notification messages.
"""

import json
from types import SimpleNamespace
from unittest.mock import patch, MagicMock

import pytest
import requests

from hopaba.services.provider_notifications import (
    build_request_message,
    find_matching_providers,
    notify_matching_providers,
    NO_MATCHES_MESSAGE,
)
from hopaba.services.whatsapp import send_whatsapp_message, is_whatsapp_configured
from hopaba.models import ServiceRequest


def _request(**overrides):
    fields = dict(
        id=1, title='Fix leaking tap', category='Plumber', subcategory=None,
        area='Jayanagar', city='Bangalore', budget=500.0,
        description='Kitchen tap has been dripping for a week.',
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.fixture
def gupshup_key(app, monkeypatch):
    monkeypatch.setitem(app.config, 'GUPSHUP_API_KEY', 'test-gupshup-key')


class TestBuildRequestMessage:

    def test_whole_rupee_budget(self):
        text = build_request_message(_request(budget=500.0))
        assert '💰 *Budget:* ₹500\n' in text

    def test_fractional_budget(self):
        assert '₹499.5' in build_request_message(_request(budget=499.5))

    def test_no_budget(self):
        assert 'Budget:* Not specified' in build_request_message(_request(budget=None))

    def test_subcategory_in_category_line(self):
        text = build_request_message(_request(subcategory='Pipe Repair'))
        assert '🏷️ *Category:* Plumber > Pipe Repair' in text

    def test_long_description_truncated(self):
        text = build_request_message(_request(description='a' * 250))
        assert 'a' * 200 + '...' in text
        assert 'a' * 201 not in text

    def test_location_line(self):
        assert '📍 *Location:* Jayanagar, Bangalore' in build_request_message(_request())


class TestSendWhatsappMessage:

    def test_not_configured(self, app):
        with app.app_context():
            assert is_whatsapp_configured() is False
            with patch('hopaba.services.whatsapp.requests.post') as mock_post:
                ok, error = send_whatsapp_message('+919876543210', 'hi')
        assert ok is False
        assert 'not configured' in error
        mock_post.assert_not_called()

    def test_sends_bare_digits(self, app, gupshup_key):
        with app.app_context(), \
                patch('hopaba.services.whatsapp.requests.post',
                      return_value=MagicMock(ok=True, status_code=200)) as mock_post:
            assert send_whatsapp_message('+919876543210', 'hello') == (True, None)

        sent = mock_post.call_args.kwargs
        assert sent['headers']['apikey'] == 'test-gupshup-key'
        assert sent['data']['destination'] == '919876543210'
        assert sent['data']['channel'] == 'whatsapp'
        assert json.loads(sent['data']['message']) == {'type': 'text', 'text': 'hello'}

    def test_gateway_error(self, app, gupshup_key):
        response = MagicMock(ok=False, status_code=401, text='bad key')
        with app.app_context(), patch('hopaba.services.whatsapp.requests.post', return_value=response):
            ok, error = send_whatsapp_message('+919876543210', 'hello')
        assert ok is False
        assert '401' in error

    def test_network_error(self, app, gupshup_key):
        with app.app_context(), patch('hopaba.services.whatsapp.requests.post',
                                      side_effect=requests.ConnectionError('down')):
            ok, error = send_whatsapp_message('+919876543210', 'hello')
        assert ok is False
        assert 'down' in error


class TestNotifyMatchingProviders:

    def test_matches_category_subcategory_and_city(self, app, test_user, second_user,
                                                   make_provider, make_request):
        match = make_provider(second_user['id'], category='plumber', city='bangalore',
                              subcategory=['Pipe Repair'])
        make_provider(second_user['id'], category='Electrician')
        make_provider(second_user['id'], city='Mysore', subcategory=['Pipe Repair'])
        make_provider(second_user['id'], subcategory=['Drain Cleaning'])
        make_provider(second_user['id'], subcategory=['Pipe Repair'], approval_status='pending')
        request_id = make_request(test_user['id'], subcategory='pipe repair')

        service_request = ServiceRequest.query.get(request_id)
        assert [p.id for p in find_matching_providers(service_request)] == [match]

    def test_counts_failures(self, app, test_user, second_user, make_provider, make_request):
        make_provider(second_user['id'], whatsapp='+919000000001')
        make_provider(second_user['id'], whatsapp='+919000000002')
        service_request = ServiceRequest.query.get(make_request(test_user['id']))

        with patch('hopaba.services.provider_notifications.send_whatsapp_message',
                   side_effect=[(True, None), (False, 'boom')]):
            result = notify_matching_providers(service_request)

        assert result == {'message': 'Notified 1 of 2 matching providers.', 'notified': 1, 'failed': 1}

    def test_no_matches(self, app, test_user, make_request):
        service_request = ServiceRequest.query.get(make_request(test_user['id']))
        result = notify_matching_providers(service_request)
        assert result == {'message': NO_MATCHES_MESSAGE, 'notified': 0, 'failed': 0}
