"""
Shared fixtures: an app built by create_app() on an in-memory mongomock
store, with fake image storage and a recording email service.

NOTE: test dependencies are listed under extras_require["dev"] in setup.py.
Install with: pip install -e ".[dev]"
"""

import mongomock
import pytest

from travelblog import create_app
from travelblog.core.database import DocumentStore


class FakeStorage:
    """Records uploads and hands back a predictable URL."""

    def __init__(self):
        self.uploads = []

    def upload_image(self, file_storage):
        self.uploads.append(file_storage.filename)
        return f"https://cdn.test/blog-featured-images/{file_storage.filename}"


class FakeEmailService:
    """Records dispatched submission emails instead of sending them."""

    def __init__(self):
        self.dispatched = []

    def dispatch_submission_emails(self, form):
        self.dispatched.append(form)
        return {'admin': True, 'user': True}


@pytest.fixture
def store():
    return DocumentStore(client=mongomock.MongoClient(), db_name='travelblog_test')


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def email():
    return FakeEmailService()


@pytest.fixture
def app(store, storage, email):
    """Fully initialised app with every module registered."""
    app = create_app(
        {
            'TESTING': True,
            'ENVIRONMENT': 'testing',
            'BACKGROUND_TASKS_INLINE': True,
            'CONTENTFUL_SPACE_ID': None,
            'CMA_ACCESS_TOKEN': None,
            'NEWS_API_KEY': None,
        },
        store=store,
        storage=storage,
        email=email,
    )
    yield app
    app.extensions['travelblog'].shutdown()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def bridge(app):
    return app.extensions['travelblog'].bridge


@pytest.fixture
def make_post(client):
    """Create a post through the admin API and return its JSON."""

    def _make_post(**overrides):
        payload = {
            'title': 'Best Beaches',
            'category': 'Travels',
            'content': 'Sun, sand and a few hidden coves worth the hike.',
            'isPublished': 'true',
        }
        payload.update(overrides)
        response = client.post('/admin/blog/posts', json=payload)
        assert response.status_code == 201, response.get_json()
        return response.get_json()['post']

    return _make_post
