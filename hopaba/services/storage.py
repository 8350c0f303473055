"""Supabase Storage access for uploaded images.

Buckets (all public-read):
- provider-images: business photos
- marketplace-images: listing, shop, damage, inspection and bill photos
- event-images: event posters
- message-attachments: chat and quotation images
- community-notes: images embedded in community notes
- avatars: profile pictures
"""

import os
import logging
from uuid import uuid4
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

BUCKETS = {
    'provider': 'provider-images',
    'marketplace': 'marketplace-images',
    'event': 'event-images',
    'message': 'message-attachments',
    'note': 'community-notes',
    'avatar': 'avatars',
}

_supabase_client = None


def get_supabase_client():
    """Get or create Supabase client (lazy initialization)."""
    global _supabase_client

    if _supabase_client is None:
        url = os.getenv('SUPABASE_URL')
        key = os.getenv('SUPABASE_SERVICE_KEY')

        if not url or not key:
            logger.warning('Supabase credentials not configured. Storage will not work.')
            return None

        try:
            from supabase import create_client
            _supabase_client = create_client(url, key)
            logger.info('Supabase client initialized successfully')
        except Exception as e:
            logger.error(f'Failed to initialize Supabase client: {e}')
            return None

    return _supabase_client


def is_storage_configured() -> bool:
    return get_supabase_client() is not None


def upload_file(
    bucket: str,
    file_data: bytes,
    file_name: str,
    content_type: str = 'image/jpeg',
    folder: Optional[str] = None,
) -> Tuple[Optional[str], Optional[str]]:
    """Upload a file under a random name and return its public URL.

    Returns:
        (url, None) on success, (None, error_message) on failure.
    """
    client = get_supabase_client()

    if client is None:
        return None, 'Storage service not configured'

    ext = file_name.rsplit('.', 1)[-1].lower() if '.' in file_name else 'jpg'
    path = f'{uuid4().hex}.{ext}'
    if folder:
        path = f'{folder}/{path}'

    try:
        logger.info(f'Uploading file to {bucket}/{path} ({content_type})')
        client.storage.from_(bucket).upload(
            path=path,
            file=file_data,
            file_options={'content-type': content_type}
        )
        public_url = client.storage.from_(bucket).get_public_url(path)
    except Exception as e:
        logger.error(f'Upload to {bucket} failed: {e}')
        return None, str(e)

    return public_url, None


def storage_path_from_url(bucket: str, file_url: str) -> str:
    """Object path inside the bucket for a public URL (or a bare path)."""
    marker = f'/{bucket}/'
    if marker in file_url:
        path = file_url.split(marker, 1)[1]
    else:
        path = file_url.rsplit('/', 1)[-1]
    return path.split('?', 1)[0]


def delete_file(bucket: str, file_url: str) -> Tuple[bool, Optional[str]]:
    """Delete a file given its public URL or object path."""
    client = get_supabase_client()

    if client is None:
        return False, 'Storage service not configured'

    path = storage_path_from_url(bucket, file_url)
    try:
        logger.info(f'Deleting file {bucket}/{path}')
        client.storage.from_(bucket).remove([path])
    except Exception as e:
        logger.error(f'Delete from {bucket} failed: {e}')
        return False, str(e)

    return True, None
