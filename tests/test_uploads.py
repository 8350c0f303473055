"""
Tests for image upload endpoints.
"""

import io
from unittest.mock import patch

import pytest

from hopaba.models import User
from hopaba.routes.uploads import detect_image_type, path_owner
from hopaba.services.storage import storage_path_from_url

PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 24
JPEG_BYTES = b'\xff\xd8\xff\xe0' + b'\x00' * 24
WEBP_BYTES = b'RIFF\x00\x00\x00\x00WEBPVP8 ' + b'\x00' * 16

STORAGE_BASE = 'https://project.supabase.co/storage/v1/object/public'


def _upload(client, headers, kind, data, filename):
    return client.post(
        f'/api/uploads/{kind}',
        headers=headers,
        data={'file': (io.BytesIO(data), filename)},
        content_type='multipart/form-data',
    )


@pytest.fixture
def storage():
    def fake_upload(bucket, file_data, file_name, content_type='image/jpeg', folder=None):
        return f'{STORAGE_BASE}/{bucket}/{folder}/generated.{file_name.rsplit(".", 1)[-1]}', None

    with patch('hopaba.routes.uploads.upload_file', side_effect=fake_upload) as mock_upload, \
            patch('hopaba.routes.uploads.delete_file', return_value=(True, None)) as mock_delete:
        yield mock_upload, mock_delete


class TestImageDetection:

    def test_known_signatures(self):
        assert detect_image_type(PNG_BYTES) == ({'png'}, 'image/png')
        assert detect_image_type(JPEG_BYTES) == ({'jpg', 'jpeg'}, 'image/jpeg')
        assert detect_image_type(WEBP_BYTES) == ({'webp'}, 'image/webp')

    def test_riff_that_is_not_webp(self):
        assert detect_image_type(b'RIFF\x00\x00\x00\x00WAVEfmt ' + b'\x00' * 8) == (None, None)

    def test_too_short(self):
        assert detect_image_type(b'\x89PNG') == (None, None)

    def test_storage_path_from_url(self):
        url = f'{STORAGE_BASE}/avatars/7/abc.png?t=1'
        assert storage_path_from_url('avatars', url) == '7/abc.png'
        assert storage_path_from_url('avatars', 'abc.png') == 'abc.png'

    @pytest.mark.parametrize('path, owner', [
        ('7/abc.png', '7'),
        ('abc.png', ''),
        ('7/../8/abc.png', None),
        ('7/%2e%2e/8/abc.png', None),
        ('/7/abc.png', None),
        ('7//abc.png', None),
        ('./7/abc.png', None),
    ])
    def test_path_owner(self, path, owner):
        assert path_owner(path) == owner


class TestUploadImage:
    """Tests for POST /api/uploads/<kind>"""

    def test_upload_into_user_folder(self, client, auth_headers, test_user, storage):
        mock_upload, _ = storage
        resp = _upload(client, auth_headers, 'provider', PNG_BYTES, 'shop.png')

        assert resp.status_code == 201
        data = resp.get_json()
        assert data['bucket'] == 'provider-images'
        assert data['size'] == len(PNG_BYTES)
        kwargs = mock_upload.call_args
        assert kwargs.args[0] == 'provider-images'
        assert kwargs.args[3] == 'image/png'
        assert kwargs.kwargs['folder'] == str(test_user['id'])

    def test_avatar_updates_profile(self, client, auth_headers, test_user, storage):
        resp = _upload(client, auth_headers, 'avatar', JPEG_BYTES, 'me.jpg')
        assert resp.status_code == 201
        assert User.query.get(test_user['id']).avatar_url == resp.get_json()['url']

    def test_unknown_kind(self, client, auth_headers, storage):
        assert _upload(client, auth_headers, 'resume', PNG_BYTES, 'a.png').status_code == 404

    def test_requires_auth(self, client, db_session, storage):
        assert _upload(client, {}, 'provider', PNG_BYTES, 'a.png').status_code == 401

    def test_disallowed_extension(self, client, auth_headers, storage):
        resp = _upload(client, auth_headers, 'provider', PNG_BYTES, 'a.exe')
        assert resp.status_code == 400
        assert 'not allowed' in resp.get_json()['error']

    def test_extension_must_match_content(self, client, auth_headers, storage):
        resp = _upload(client, auth_headers, 'provider', PNG_BYTES, 'photo.jpg')
        assert resp.status_code == 400
        assert 'does not match' in resp.get_json()['error']

    def test_not_an_image(self, client, auth_headers, storage):
        resp = _upload(client, auth_headers, 'provider', b'just some text, honestly', 'a.png')
        assert resp.status_code == 400

    def test_missing_file(self, client, auth_headers, storage):
        resp = client.post('/api/uploads/provider', headers=auth_headers, data={},
                           content_type='multipart/form-data')
        assert resp.status_code == 400

    def test_storage_failure(self, client, auth_headers):
        with patch('hopaba.routes.uploads.upload_file', return_value=(None, 'Storage service not configured')):
            resp = _upload(client, auth_headers, 'event', PNG_BYTES, 'poster.png')
        assert resp.status_code == 500


class TestDeleteImage:
    """Tests for DELETE /api/uploads"""

    def test_delete_own_file(self, client, auth_headers, test_user, storage):
        _, mock_delete = storage
        url = f"{STORAGE_BASE}/provider-images/{test_user['id']}/shop.png"
        resp = client.delete('/api/uploads', headers=auth_headers, json={'kind': 'provider', 'url': url})
        assert resp.status_code == 200
        mock_delete.assert_called_once_with('provider-images', url)

    def test_cannot_delete_others_file(self, client, second_auth_headers, test_user, storage):
        _, mock_delete = storage
        url = f"{STORAGE_BASE}/provider-images/{test_user['id']}/shop.png"
        resp = client.delete('/api/uploads', headers=second_auth_headers, json={'kind': 'provider', 'url': url})
        assert resp.status_code == 403
        mock_delete.assert_not_called()

    def test_admin_can_delete_any_file(self, client, admin_headers, test_user, storage):
        url = f"{STORAGE_BASE}/event-images/{test_user['id']}/poster.png"
        resp = client.delete('/api/uploads', headers=admin_headers, json={'kind': 'event', 'url': url})
        assert resp.status_code == 200

    def test_kind_and_url_required(self, client, auth_headers, storage):
        assert client.delete('/api/uploads', headers=auth_headers, json={'kind': 'provider'}).status_code == 400

    @pytest.mark.parametrize('tail', ['{me}/../{other}/shop.png', '{me}/%2E%2E/{other}/shop.png'])
    def test_traversal_out_of_own_folder(self, client, auth_headers, test_user, second_user, storage, tail):
        _, mock_delete = storage
        path = tail.format(me=test_user['id'], other=second_user['id'])
        resp = client.delete('/api/uploads', headers=auth_headers,
                             json={'kind': 'provider', 'url': f'{STORAGE_BASE}/provider-images/{path}'})
        assert resp.status_code == 400
        mock_delete.assert_not_called()

    def test_bare_file_name_needs_admin(self, client, auth_headers, storage):
        _, mock_delete = storage
        resp = client.delete('/api/uploads', headers=auth_headers, json={'kind': 'provider', 'url': 'shop.png'})
        assert resp.status_code == 403
        mock_delete.assert_not_called()

    def test_kind_must_be_text(self, client, auth_headers, storage):
        resp = client.delete('/api/uploads', headers=auth_headers, json={'kind': ['provider'], 'url': 'x.png'})
        assert resp.status_code == 400


class TestStorageStatus:

    def test_status(self, client, db_session):
        with patch('hopaba.routes.uploads.is_storage_configured', return_value=False):
            resp = client.get('/api/uploads/status')
        data = resp.get_json()
        assert data['configured'] is False
        assert 'avatars' in data['buckets']
