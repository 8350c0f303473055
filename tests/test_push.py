"""
Tests for push subscriptions and Web Push delivery.
"""

import json
from unittest.mock import patch, MagicMock

import pytest
from pywebpush import WebPushException

from hopaba.models import PushSubscription
from hopaba.services.push_notifications import (
    build_payload,
    send_push_notification,
    notify_new_message,
    notify_request_match,
)

SUBSCRIPTION = {
    'endpoint': 'https://fcm.googleapis.com/fcm/send/abc123',
    'keys': {'p256dh': 'BNcRdreALRFXTkOOUHK1EtK2wtaz5Ry4YfYCA', 'auth': 'tBHItJI5svbpez7KI4CCXg'},
    'device_name': 'Pixel 8',
}


@pytest.fixture
def vapid_keys(app, monkeypatch):
    monkeypatch.setitem(app.config, 'VAPID_PUBLIC_KEY', 'test-public-key')
    monkeypatch.setitem(app.config, 'VAPID_PRIVATE_KEY', 'test-private-key')


@pytest.fixture
def subscribed(client, auth_headers):
    resp = client.post('/api/push/subscribe', headers=auth_headers, json=SUBSCRIPTION)
    assert resp.status_code == 201
    return resp.get_json()['subscription_id']


class TestSubscriptionRoutes:
    """Tests for /api/push"""

    def test_vapid_key_not_configured(self, client, db_session):
        assert client.get('/api/push/vapid-public-key').status_code == 503

    def test_vapid_key(self, client, vapid_keys):
        resp = client.get('/api/push/vapid-public-key')
        assert resp.get_json() == {'publicKey': 'test-public-key'}

    def test_subscribe_then_update(self, client, auth_headers, subscribed):
        resp = client.post('/api/push/subscribe', headers=auth_headers,
                           json={**SUBSCRIPTION, 'notify_requests': False})
        assert resp.status_code == 200
        assert resp.get_json()['subscription_id'] == subscribed
        assert PushSubscription.query.count() == 1
        assert PushSubscription.query.get(subscribed).notify_requests is False

    def test_endpoint_moves_to_new_account(self, client, second_auth_headers, second_user, subscribed):
        client.post('/api/push/subscribe', headers=second_auth_headers, json=SUBSCRIPTION)
        assert PushSubscription.query.get(subscribed).user_id == second_user['id']

    def test_missing_keys(self, client, auth_headers):
        resp = client.post('/api/push/subscribe', headers=auth_headers,
                           json={'endpoint': SUBSCRIPTION['endpoint']})
        assert resp.status_code == 400

    @pytest.mark.parametrize('body', [
        {'endpoint': SUBSCRIPTION['endpoint'], 'keys': ['p256dh', 'auth']},
        {'endpoint': ['https://fcm.googleapis.com/x'], 'keys': SUBSCRIPTION['keys']},
        {**SUBSCRIPTION, 'device_name': 8},
    ])
    def test_malformed_subscription(self, client, auth_headers, body):
        resp = client.post('/api/push/subscribe', headers=auth_headers, json=body)
        assert resp.status_code == 400

    def test_unsubscribe_endpoint_must_be_text(self, client, auth_headers):
        resp = client.post('/api/push/unsubscribe', headers=auth_headers, json={'endpoint': 5})
        assert resp.status_code == 400

    def test_list_and_unsubscribe(self, client, auth_headers, subscribed):
        resp = client.get('/api/push/subscriptions', headers=auth_headers)
        assert resp.get_json()['count'] == 1
        assert resp.get_json()['subscriptions'][0]['device_name'] == 'Pixel 8'

        resp = client.post('/api/push/unsubscribe', headers=auth_headers,
                           json={'endpoint': SUBSCRIPTION['endpoint']})
        assert resp.status_code == 200
        assert client.get('/api/push/subscriptions', headers=auth_headers).get_json()['count'] == 0

    def test_unsubscribe_unknown(self, client, auth_headers):
        resp = client.post('/api/push/unsubscribe', headers=auth_headers,
                           json={'endpoint': 'https://push.example.com/nope'})
        assert resp.status_code == 404

    def test_send_test_notification(self, client, auth_headers, subscribed, vapid_keys):
        with patch('hopaba.services.push_notifications.webpush') as mock_webpush:
            resp = client.post('/api/push/test', headers=auth_headers)
        assert resp.get_json() == {'sent': 1, 'failed': 0}
        assert mock_webpush.call_count == 1


class TestSendPushNotification:

    def test_payload_shape(self):
        payload = build_payload('Hi', 'There', url='/messages/3', data={'conversationId': 3})
        assert payload['data'] == {'url': '/messages/3', 'conversationId': 3}
        assert payload['icon'] == '/icons/icon-192x192.png'
        assert payload['tag'] == 'notification'

    def test_not_configured(self, app, db_session, test_user):
        result = send_push_notification(test_user['id'], 'Hi', 'There')
        assert result['sent'] == 0
        assert 'VAPID' in result['error']

    def test_no_subscriptions(self, vapid_keys, test_user):
        result = send_push_notification(test_user['id'], 'Hi', 'There')
        assert result['error'] == 'No active subscriptions'

    def test_gone_subscription_is_deactivated(self, vapid_keys, test_user, subscribed):
        error = WebPushException('Push failed: 410 Gone', response=MagicMock(status_code=410))
        with patch('hopaba.services.push_notifications.webpush', side_effect=error):
            result = send_push_notification(test_user['id'], 'Hi', 'There')

        assert result == {'sent': 0, 'failed': 1}
        assert PushSubscription.query.get(subscribed).is_active is False

    def test_other_failures_keep_subscription(self, vapid_keys, test_user, subscribed):
        error = WebPushException('Push failed: 500', response=MagicMock(status_code=500))
        with patch('hopaba.services.push_notifications.webpush', side_effect=error):
            send_push_notification(test_user['id'], 'Hi', 'There')
        assert PushSubscription.query.get(subscribed).is_active is True

    def test_message_notification(self, vapid_keys, test_user, subscribed):
        with patch('hopaba.services.push_notifications.webpush') as mock_webpush:
            notify_new_message(test_user['id'], 'Ravi', 'x' * 150, conversation_id=8)

        sent = mock_webpush.call_args.kwargs
        payload = json.loads(sent['data'])
        assert payload['title'] == '💬 Ravi'
        assert payload['body'] == 'x' * 100 + '...'
        assert payload['tag'] == 'message-8'
        assert payload['requireInteraction'] is True
        assert sent['subscription_info']['endpoint'] == SUBSCRIPTION['endpoint']
        assert sent['vapid_private_key'] == 'test-private-key'
        assert PushSubscription.query.get(subscribed).last_used_at is not None

    def test_request_preference_filters_devices(self, client, auth_headers, vapid_keys, test_user, subscribed):
        client.post('/api/push/subscribe', headers=auth_headers,
                    json={**SUBSCRIPTION, 'notify_requests': False})

        with patch('hopaba.services.push_notifications.webpush') as mock_webpush:
            result = notify_request_match(test_user['id'], 'Fix leaking tap', request_id=4)
            assert result['error'] == 'No active subscriptions'

            notify_new_message(test_user['id'], 'Ravi', 'hello', conversation_id=8)
        assert mock_webpush.call_count == 1
