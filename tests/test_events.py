"""
Tests for event endpoints.
"""

from datetime import date, timedelta
from types import SimpleNamespace

from hopaba.routes.events import order_upcoming_first


class TestEventOrdering:

    def test_upcoming_soonest_first_then_past_most_recent_first(self):
        today = date(2026, 3, 10)
        events = [
            SimpleNamespace(id=1, date=date(2026, 3, 1)),
            SimpleNamespace(id=2, date=date(2026, 3, 20)),
            SimpleNamespace(id=3, date=date(2026, 3, 10)),
            SimpleNamespace(id=4, date=date(2026, 2, 1)),
            SimpleNamespace(id=5, date=date(2026, 3, 12)),
        ]
        ordered = [e.id for e in order_upcoming_first(events, today)]
        assert ordered == [3, 5, 2, 1, 4]


class TestBrowseEvents:
    """Tests for GET /api/events"""

    def test_lists_approved_upcoming_first(self, client, test_user, make_event):
        make_event(test_user['id'], days_from_today=-3, title='Last week gig')
        make_event(test_user['id'], days_from_today=10, title='Later concert')
        make_event(test_user['id'], days_from_today=2, title='Soon concert')
        make_event(test_user['id'], days_from_today=5, title='Unapproved party', approval_status='pending')

        resp = client.get('/api/events')
        assert resp.status_code == 200
        titles = [e['title'] for e in resp.get_json()['events']]
        assert titles == ['Soon concert', 'Later concert', 'Last week gig']

    def test_exclude_past(self, client, test_user, make_event):
        make_event(test_user['id'], days_from_today=-3)
        make_event(test_user['id'], days_from_today=3)

        resp = client.get('/api/events?include_past=false')
        assert resp.get_json()['total'] == 1

    def test_pending_event_detail(self, client, auth_headers, second_auth_headers, test_user, make_event):
        event_id = make_event(test_user['id'], approval_status='pending')
        assert client.get(f'/api/events/{event_id}').status_code == 404
        assert client.get(f'/api/events/{event_id}', headers=second_auth_headers).status_code == 404
        assert client.get(f'/api/events/{event_id}', headers=auth_headers).status_code == 200


class TestManageEvents:

    def test_create_event_pending(self, client, auth_headers, test_user, event_payload):
        resp = client.post('/api/events', headers=auth_headers, json=event_payload())
        assert resp.status_code == 201
        event = resp.get_json()['event']
        assert event['approval_status'] == 'pending'
        assert event['user_id'] == test_user['id']
        assert event['price_per_person'] == 250

    def test_create_event_requires_image(self, client, auth_headers, event_payload):
        resp = client.post('/api/events', headers=auth_headers, json=event_payload(image=''))
        assert resp.status_code == 400

    def test_create_event_image_must_be_url(self, client, auth_headers, event_payload):
        resp = client.post('/api/events', headers=auth_headers, json=event_payload(image='poster.png'))
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Image must be a valid http(s) URL'

    def test_create_event_infinite_attendees(self, client, auth_headers, event_payload):
        resp = client.post('/api/events', headers=auth_headers, json=event_payload(attendees='inf'))
        assert resp.status_code == 400

    def test_create_event_invalid_date(self, client, auth_headers, event_payload):
        resp = client.post('/api/events', headers=auth_headers, json=event_payload(date='next friday'))
        assert resp.status_code == 400

    def test_update_only_by_organizer(self, client, auth_headers, second_auth_headers, test_user, make_event):
        event_id = make_event(test_user['id'])

        resp = client.put(f'/api/events/{event_id}', headers=second_auth_headers,
                          json={'time': '7:00 PM'})
        assert resp.status_code == 403

        resp = client.put(f'/api/events/{event_id}', headers=auth_headers, json={'time': '7:00 PM'})
        assert resp.status_code == 200
        assert resp.get_json()['event']['time'] == '7:00 PM'

    def test_delete_by_admin(self, client, admin_headers, test_user, make_event):
        event_id = make_event(test_user['id'])
        assert client.delete(f'/api/events/{event_id}', headers=admin_headers).status_code == 200
        assert client.get(f'/api/events/{event_id}').status_code == 404

    def test_mine(self, client, auth_headers, test_user, make_event):
        make_event(test_user['id'])
        make_event(test_user['id'], approval_status='pending', days_from_today=20)
        resp = client.get('/api/events/mine', headers=auth_headers)
        assert resp.get_json()['total'] == 2
