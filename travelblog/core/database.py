"""
Document Store
==============

Thin adapter over a MongoDB database. The store is built once per process and
handed to handlers through the TravelBlog extension, so tests can inject any
pymongo-compatible client.
"""

import logging
from datetime import datetime, timezone

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import PyMongoError

from .config import Config
from .errors import ValidationError

logger = logging.getLogger(__name__)


def utcnow():
    """Naive UTC timestamp, matching what the store hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_object_id(value):
    """Convert a path parameter into an ObjectId or raise a 400."""
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(str(value)):
        raise ValidationError('Invalid id format', field='id')
    return ObjectId(str(value))


def serialize_document(value):
    """Make a stored document JSON safe: _id becomes id, datetimes become ISO strings."""
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if key == '_id':
                result['id'] = str(item)
            else:
                result[key] = serialize_document(item)
        return result
    if isinstance(value, (list, tuple)):
        return [serialize_document(item) for item in value]
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class DocumentStore:
    """Process-wide handle on the blog's collections."""

    POSTS = 'posts'
    SUBSCRIBERS = 'subscribers'
    SUBMISSIONS = 'submissions'
    APP_LOGS = 'app_logs'

    def __init__(self, client=None, uri=None, db_name=None, timeout_ms=None):
        self.db_name = db_name or Config.MONGO_DB_NAME
        self.timeout_ms = timeout_ms or Config.MONGO_TIMEOUT_MS
        if client is None:
            client = MongoClient(
                uri or Config.MONGO_URI,
                serverSelectionTimeoutMS=self.timeout_ms,
                connectTimeoutMS=self.timeout_ms,
                socketTimeoutMS=self.timeout_ms,
            )
        self.client = client
        self.db = client[self.db_name]

    @property
    def posts(self):
        return self.db[self.POSTS]

    @property
    def subscribers(self):
        return self.db[self.SUBSCRIBERS]

    @property
    def submissions(self):
        return self.db[self.SUBMISSIONS]

    @property
    def app_logs(self):
        return self.db[self.APP_LOGS]

    def ensure_indexes(self):
        """Create the indexes the handlers rely on (idempotent)."""
        self.posts.create_index([('isPublished', ASCENDING), ('createdAt', DESCENDING)])
        self.posts.create_index([('category', ASCENDING)])
        self.posts.create_index([('title', ASCENDING)], unique=True)

        self.subscribers.create_index([('email', ASCENDING)], unique=True)
        self.subscribers.create_index([('subscribedAt', DESCENDING)])
        self.subscribers.create_index([('isActive', ASCENDING)])

        self.submissions.create_index([('email', ASCENDING), ('createdAt', DESCENDING)])
        self.submissions.create_index([('status', ASCENDING)])
        self.submissions.create_index([('isReadByAdmin', ASCENDING)])
        self.submissions.create_index([('isReadByUser', ASCENDING)])
        self.submissions.create_index([('createdAt', DESCENDING)])

        self.app_logs.create_index([('timestamp', DESCENDING)])
        logger.info("Document store indexes created/verified")

    def ping(self):
        try:
            self.client.admin.command('ping')
            return True
        except PyMongoError as e:
            logger.warning(f"Document store ping failed: {e}")
            return False

    def status(self):
        connected = self.ping()
        return {
            'connected': connected,
            'state': 'connected' if connected else 'disconnected',
            'database': self.db_name,
        }
