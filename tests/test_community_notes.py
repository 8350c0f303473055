"""
Tests for community notes, thumbs-up and comments.
"""

import pytest


@pytest.fixture
def location_id(test_user, make_provider):
    return make_provider(test_user['id'])


@pytest.fixture
def note_id(client, auth_headers, location_id):
    resp = client.post('/api/notes', headers=auth_headers, json={
        'location_id': location_id,
        'title': 'Best time to visit',
        'content': [{'type': 'paragraph', 'text': 'Go before 10 AM <script>x</script>'}],
        'social_links': [{'platform': 'instagram', 'url': 'https://instagram.com/pipepros'}],
    })
    assert resp.status_code == 201
    return resp.get_json()['note']['id']


class TestNotes:
    """Tests for /api/notes"""

    def test_create_note_sanitizes_blocks(self, client, location_id, note_id):
        resp = client.get(f'/api/notes?location_id={location_id}')
        note = resp.get_json()['notes'][0]
        assert note['content'] == [{'type': 'paragraph', 'text': 'Go before 10 AM'}]
        assert note['social_links'][0]['url'] == 'https://instagram.com/pipepros'
        assert note['thumbs_up'] == 0

    def test_location_required(self, client, db_session):
        assert client.get('/api/notes').status_code == 400

    def test_unknown_location(self, client, auth_headers):
        resp = client.post('/api/notes', headers=auth_headers, json={'location_id': 9999, 'title': 'Hello'})
        assert resp.status_code == 404

    def test_short_title(self, client, auth_headers, location_id):
        resp = client.post('/api/notes', headers=auth_headers, json={'location_id': location_id, 'title': 'Hi'})
        assert resp.status_code == 400

    def test_content_must_be_list(self, client, auth_headers, location_id):
        resp = client.post('/api/notes', headers=auth_headers, json={
            'location_id': location_id, 'title': 'Valid title', 'content': 'plain text',
        })
        assert resp.status_code == 400

    @pytest.mark.parametrize('bad_location', ['1', [1], None])
    def test_location_id_must_be_an_id(self, client, auth_headers, location_id, bad_location):
        resp = client.post('/api/notes', headers=auth_headers, json={
            'location_id': bad_location, 'title': 'Valid title',
        })
        assert resp.status_code == 404

    def test_title_must_be_text(self, client, auth_headers, location_id):
        resp = client.post('/api/notes', headers=auth_headers, json={
            'location_id': location_id, 'title': ['Valid title'],
        })
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'title must be text'

    def test_images_must_be_list(self, client, auth_headers, location_id):
        resp = client.post('/api/notes', headers=auth_headers, json={
            'location_id': location_id, 'title': 'Valid title', 'images': 'https://cdn.example.com/a.jpg',
        })
        assert resp.status_code == 400

    def test_only_author_deletes(self, client, auth_headers, second_auth_headers, note_id):
        assert client.delete(f'/api/notes/{note_id}', headers=second_auth_headers).status_code == 403
        assert client.delete(f'/api/notes/{note_id}', headers=auth_headers).status_code == 200

    def test_delete_note_with_comments(self, client, auth_headers, second_auth_headers, location_id, note_id):
        client.post(f'/api/notes/{note_id}/comments', headers=second_auth_headers, json={'content': 'Agreed'})
        assert client.delete(f'/api/notes/{note_id}', headers=auth_headers).status_code == 200
        assert client.get(f'/api/notes?location_id={location_id}').get_json()['total'] == 0


class TestThumbsUp:

    def test_toggle_thumbs_up(self, client, auth_headers, second_auth_headers, location_id, note_id):
        url = f'/api/notes/{note_id}/thumbs-up'

        resp = client.post(url, headers=second_auth_headers)
        assert resp.get_json() == {'liked': True, 'thumbs_up': 1}

        resp = client.post(url, headers=auth_headers)
        assert resp.get_json() == {'liked': True, 'thumbs_up': 2}

        resp = client.post(url, headers=second_auth_headers)
        assert resp.get_json() == {'liked': False, 'thumbs_up': 1}

        resp = client.get(f'/api/notes?location_id={location_id}', headers=auth_headers)
        assert resp.get_json()['notes'][0]['user_has_liked'] is True

    def test_thumbs_up_unknown_note(self, client, auth_headers):
        assert client.post('/api/notes/9999/thumbs-up', headers=auth_headers).status_code == 404


class TestComments:

    def test_add_and_list_comments(self, client, second_auth_headers, second_user, note_id):
        resp = client.post(f'/api/notes/{note_id}/comments', headers=second_auth_headers,
                           json={'content': 'Thanks for the tip'})
        assert resp.status_code == 201
        assert resp.get_json()['comment']['user_id'] == second_user['id']

        resp = client.get(f'/api/notes/{note_id}/comments')
        assert resp.get_json()['total'] == 1

    def test_empty_comment(self, client, second_auth_headers, note_id):
        resp = client.post(f'/api/notes/{note_id}/comments', headers=second_auth_headers, json={'content': ''})
        assert resp.status_code == 400

    def test_comment_length(self, client, second_auth_headers, note_id):
        resp = client.post(f'/api/notes/{note_id}/comments', headers=second_auth_headers,
                           json={'content': 'x' * 1001})
        assert resp.status_code == 400

    def test_comment_must_be_text(self, client, second_auth_headers, note_id):
        resp = client.post(f'/api/notes/{note_id}/comments', headers=second_auth_headers, json={'content': 42})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'content must be text'

    def test_only_author_deletes_comment(self, client, auth_headers, second_auth_headers, note_id):
        resp = client.post(f'/api/notes/{note_id}/comments', headers=second_auth_headers,
                           json={'content': 'Nice'})
        comment_id = resp.get_json()['comment']['id']

        assert client.delete(f'/api/notes/comments/{comment_id}', headers=auth_headers).status_code == 403
        assert client.delete(f'/api/notes/comments/{comment_id}', headers=second_auth_headers).status_code == 200
