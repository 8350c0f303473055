"""Image upload routes backed by Supabase Storage.

One endpoint per bucket kind (see services.storage.BUCKETS). Files are
stored under the uploader's user id so they can later be deleted only by
that user.
"""

from flask import Blueprint, request, jsonify
import logging
import posixpath
from urllib.parse import unquote

from hopaba import db
from hopaba.models import User
from hopaba.services.storage import (
    BUCKETS,
    upload_file,
    delete_file,
    storage_path_from_url,
    is_storage_configured,
)
from hopaba.utils.auth import token_required, is_admin_user
from hopaba.utils.sanitize import sanitize_file_name

uploads_bp = Blueprint('uploads', __name__)
logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}
MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB

# (signature, extensions, mime type)
IMAGE_SIGNATURES = [
    (b'\x89PNG\r\n\x1a\n', {'png'}, 'image/png'),
    (b'\xff\xd8\xff', {'jpg', 'jpeg'}, 'image/jpeg'),
    (b'GIF87a', {'gif'}, 'image/gif'),
    (b'GIF89a', {'gif'}, 'image/gif'),
    (b'RIFF', {'webp'}, 'image/webp'),
]


def detect_image_type(file_data: bytes):
    """Return (extensions, mime_type) from magic bytes, or (None, None)."""
    if len(file_data) < 12:
        return None, None

    for signature, exts, mime in IMAGE_SIGNATURES:
        if file_data.startswith(signature):
            # RIFF is only WebP with 'WEBP' at bytes 8-12
            if 'webp' in exts and file_data[8:12] != b'WEBP':
                continue
            return exts, mime
    return None, None


def file_extension(filename):
    return filename.rsplit('.', 1)[1].lower() if '.' in filename else ''


def get_file_from_request(max_size=MAX_IMAGE_SIZE):
    """Validate the uploaded image: extension, size, then real content.

    Returns:
        (file_data, filename, content_type, error_response)
    """
    if 'file' not in request.files:
        return None, None, None, (jsonify({'error': 'No file provided'}), 400)

    file = request.files['file']
    filename = sanitize_file_name(file.filename or '')
    if not filename:
        return None, None, None, (jsonify({'error': 'No file selected'}), 400)

    ext = file_extension(filename)
    if ext not in IMAGE_EXTENSIONS:
        allowed_types = ', '.join(sorted(IMAGE_EXTENSIONS))
        return None, None, None, (jsonify({'error': f'File type not allowed. Allowed: {allowed_types}'}), 400)

    file_data = file.read()
    if len(file_data) > max_size:
        max_mb = max_size // (1024 * 1024)
        return None, None, None, (jsonify({'error': f'File too large. Maximum size: {max_mb}MB'}), 400)

    detected_exts, detected_mime = detect_image_type(file_data)
    if detected_exts is None:
        return None, None, None, (jsonify({'error': 'File does not appear to be a valid image'}), 400)
    if ext not in detected_exts:
        return None, None, None, (jsonify({
            'error': f'File extension .{ext} does not match actual image format'
        }), 400)

    # Trust the bytes, not the client's content type
    return file_data, filename, detected_mime, None


@uploads_bp.route('/status', methods=['GET'])
def storage_status():
    configured = is_storage_configured()
    return jsonify({
        'configured': configured,
        'provider': 'supabase' if configured else None,
        'buckets': sorted(BUCKETS.values()),
    }), 200


@uploads_bp.route('/<kind>', methods=['POST'])
@token_required
def upload_image(current_user_id, kind):
    """Upload an image to the bucket for `kind`; avatars also update the profile."""
    bucket = BUCKETS.get(kind)
    if not bucket:
        return jsonify({'error': f"Unknown upload type. Allowed: {', '.join(sorted(BUCKETS))}"}), 404

    file_data, filename, content_type, error = get_file_from_request()
    if error:
        return error

    url, error_msg = upload_file(bucket, file_data, filename, content_type, folder=str(current_user_id))
    if error_msg:
        logger.error(f'[UPLOAD] {kind} upload failed for user {current_user_id}: {error_msg}')
        return jsonify({'error': f'Upload failed: {error_msg}'}), 500

    if kind == 'avatar':
        try:
            user = User.query.get(current_user_id)
            user.avatar_url = url
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error(f'[UPLOAD] Failed to update avatar_url for user {current_user_id}: {e}')

    logger.info(f'[UPLOAD] user {current_user_id} uploaded {len(file_data)} bytes to {bucket}')
    return jsonify({
        'message': 'Image uploaded successfully',
        'url': url,
        'bucket': bucket,
        'size': len(file_data)
    }), 201


def path_owner(path):
    """Owning folder of an object path ('' if none), or None when it has traversal segments."""
    path = unquote(path)
    segments = path.split('/')
    if path.startswith('/') or any(s in ('', '.', '..') for s in segments):
        return None
    if posixpath.normpath(path) != path:
        return None
    return segments[0] if len(segments) > 1 else ''


@uploads_bp.route('', methods=['DELETE'])
@token_required
def delete_image(current_user_id):
    """Delete an uploaded image by URL. Users may delete only their own files."""
    data = request.get_json(silent=True) or {}
    kind = data.get('kind')
    url = data.get('url')
    bucket = BUCKETS.get(kind) if isinstance(kind, str) else None
    if not bucket or not url or not isinstance(url, str):
        return jsonify({'error': 'kind and url are required'}), 400

    path = storage_path_from_url(bucket, url)
    folder = path_owner(path)
    if folder is None:
        return jsonify({'error': 'Invalid file path'}), 400
    if folder != str(current_user_id) and not is_admin_user(current_user_id):
        return jsonify({'error': 'You can only delete your own files'}), 403

    ok, error_msg = delete_file(bucket, url)
    if not ok:
        return jsonify({'error': f'Delete failed: {error_msg}'}), 500
    return jsonify({'message': 'File deleted'}), 200
