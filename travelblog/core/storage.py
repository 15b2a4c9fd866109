"""
Storage Utility
===============

Featured-image upload with cloud (S3-compatible Spaces) / local branching.
Uploaded files are never deleted: replacing or deleting a post leaves the old
object in place.
"""

import logging
import os
import uuid

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError, ConnectTimeoutError, ReadTimeoutError
from flask import current_app

from .errors import UpstreamTimeoutError, UpstreamUnavailableError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'jpg', 'jpeg', 'png'}
CONTENT_TYPES = {'jpg': 'image/jpeg', 'jpeg': 'image/jpeg', 'png': 'image/png'}


class ImageStorage:
    """Resolve an uploaded image into a public URL."""

    def __init__(self, backend='local', folder='blog-featured-images', max_bytes=5 * 1024 * 1024,
                 region=None, bucket=None, access_key=None, secret_key=None, endpoint_url=None, timeout=15):
        self.backend = backend
        self.folder = folder
        self.max_bytes = max_bytes
        self.region = region
        self.bucket = bucket
        self.access_key = access_key
        self.secret_key = secret_key
        self.endpoint_url = endpoint_url or (f"https://{region}.digitaloceanspaces.com" if region else None)
        self.timeout = timeout
        self._client = None

    @classmethod
    def from_config(cls, config):
        return cls(
            backend=config.get('STORAGE_BACKEND', 'local'),
            folder=config.get('SPACES_FOLDER', 'blog-featured-images'),
            max_bytes=config.get('MAX_IMAGE_BYTES', 5 * 1024 * 1024),
            region=config.get('SPACES_REGION'),
            bucket=config.get('SPACES_BUCKET'),
            access_key=config.get('SPACES_KEY'),
            secret_key=config.get('SPACES_SECRET'),
            endpoint_url=config.get('SPACES_ENDPOINT'),
            timeout=config.get('OUTBOUND_TIMEOUT', 15),
        )

    @property
    def is_cloud(self):
        return self.backend == 'spaces'

    def upload_image(self, file_storage):
        """Validate and store an uploaded werkzeug FileStorage; return its URL."""
        filename = file_storage.filename or ''
        ext = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError('Invalid image type',
                                  errors={'featuredImage': 'Only jpg, jpeg and png images are allowed'})

        file_bytes = file_storage.read()
        if len(file_bytes) > self.max_bytes:
            raise ValidationError('Image too large',
                                  errors={'featuredImage': f'Image must be at most {self.max_bytes} bytes'})

        object_name = f"{uuid.uuid4().hex}.{ext}"
        if self.is_cloud:
            return self._upload_to_spaces(file_bytes, object_name, CONTENT_TYPES[ext])
        return self._save_locally(file_bytes, object_name)

    def _get_client(self):
        if self._client is None:
            self._client = boto3.client(
                's3',
                region_name=self.region,
                endpoint_url=self.endpoint_url,
                aws_access_key_id=self.access_key,
                aws_secret_access_key=self.secret_key,
                config=BotoConfig(
                    connect_timeout=self.timeout,
                    read_timeout=self.timeout,
                    retries={'max_attempts': 2},
                ),
            )
        return self._client

    def _upload_to_spaces(self, file_bytes, object_name, content_type):
        """Upload to an S3-compatible bucket via boto3."""
        object_key = f"{self.folder}/{object_name}"
        try:
            self._get_client().put_object(
                Bucket=self.bucket,
                Key=object_key,
                Body=file_bytes,
                ACL='public-read',
                ContentType=content_type,
            )
        except (ConnectTimeoutError, ReadTimeoutError) as e:
            logger.error(f"Image upload timed out for {object_key}: {e}")
            raise UpstreamTimeoutError('Image storage did not respond in time')
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Image upload failed for {object_key}: {e}")
            raise UpstreamUnavailableError('Image storage is currently unavailable')

        logger.info(f"Uploaded featured image: {object_key}")
        return f"https://{self.bucket}.{self.region}.digitaloceanspaces.com/{object_key}"

    def _save_locally(self, file_bytes, object_name):
        """Save to the app's static folder."""
        upload_dir = os.path.join(current_app.static_folder, self.folder)
        os.makedirs(upload_dir, exist_ok=True)
        with open(os.path.join(upload_dir, object_name), 'wb') as f:
            f.write(file_bytes)
        return f"/static/{self.folder}/{object_name}"
