"""Bootstrap of the file storage used for uploaded profile images."""

import json
import logging
from pathlib import Path

from telemed.core import config

logger = logging.getLogger(__name__)

PUBLIC_BUCKET = 'public'
PROFILE_IMAGES_FOLDER = 'profile-images'
BUCKET_SETTINGS = {
    'public': True,
    'file_size_limit': 5 * 1024 * 1024,
    'allowed_mime_types': ['image/jpeg', 'image/png', 'image/gif', 'image/webp'],
}
SETTINGS_FILENAME = '.bucket.json'
KEEP_FILENAME = '.keep'


def ensure_storage_buckets(storage_root: str | Path | None = None) -> dict:
    """Create the public bucket and its profile image folder if missing.

    Safe to call repeatedly. Bucket settings are rewritten on every call so
    changes to ``BUCKET_SETTINGS`` reach existing deployments.
    """
    root = Path(storage_root or config.STORAGE_ROOT)
    bucket_path = root / PUBLIC_BUCKET
    folder_path = bucket_path / PROFILE_IMAGES_FOLDER

    bucket_created = not bucket_path.exists()
    if bucket_created:
        logger.info('Creating public storage bucket at %s', bucket_path)
    else:
        logger.info('Public bucket already exists, updating settings')
    bucket_path.mkdir(parents=True, exist_ok=True)
    (bucket_path / SETTINGS_FILENAME).write_text(json.dumps(BUCKET_SETTINGS, indent=2))

    folder_created = not folder_path.exists()
    folder_path.mkdir(exist_ok=True)
    (folder_path / KEEP_FILENAME).touch(exist_ok=True)

    return {
        'bucket': PUBLIC_BUCKET,
        'bucket_created': bucket_created,
        'folder_created': folder_created,
        'path': str(bucket_path),
    }
