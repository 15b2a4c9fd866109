"""
Core wiring: health, error envelope, request normalization, logging, storage,
background dispatch.
"""

import importlib
import io
from datetime import datetime

import pytest
from botocore.exceptions import ReadTimeoutError
from bson import ObjectId
from werkzeug.datastructures import FileStorage

from travelblog.core import config
from travelblog.core.database import parse_object_id, serialize_document
from travelblog.core.errors import UpstreamTimeoutError, ValidationError
from travelblog.core.forms import clean_str, normalize_email, parse_bool, parse_list
from travelblog.core.logging_service import LoggingService, db_log
from travelblog.core.storage import ImageStorage
from travelblog.core.tasks import run_in_background


# ---------------------------------------------------------------------------
# Health and service description
# ---------------------------------------------------------------------------

def test_index_lists_endpoints(client):
    body = client.get('/').get_json()
    assert body['success'] is True
    assert body['endpoints']['health'] == '/health'


def test_health_ok(client, store, monkeypatch):
    monkeypatch.setattr(store, 'ping', lambda: True)
    response = client.get('/health')
    assert response.status_code == 200
    body = response.get_json()
    assert body['status'] == 'ok'
    assert body['database']['state'] == 'connected'
    assert body['environment']['ingestionScheduled'] is False
    assert body['environment']['cmsConfigured'] is False


def test_health_degraded_when_store_down(client, store, monkeypatch):
    monkeypatch.setattr(store, 'ping', lambda: False)
    response = client.get('/health')
    assert response.status_code == 503
    assert response.get_json()['database']['state'] == 'disconnected'


def test_registered_modules(app):
    assert app.extensions['travelblog'].get_registered_modules() == [
        'health', 'blog_admin', 'blog_public', 'contact', 'submissions', 'newsletter', 'ingestion',
    ]


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------

def test_unknown_route_is_json_404(client):
    response = client.get('/nowhere')
    assert response.status_code == 404
    assert response.get_json()['success'] is False


def test_unexpected_error_hides_detail(app, client):
    @app.route('/boom')
    def boom():
        raise RuntimeError('secret detail')

    body = client.get('/boom').get_json()
    assert body == {'success': False, 'message': 'Something went wrong'}

    app.config['ENVIRONMENT'] = 'development'
    assert client.get('/boom').get_json()['error'] == 'secret detail'


def test_environment_defaults_to_production(monkeypatch):
    monkeypatch.delenv('ENVIRONMENT', raising=False)
    monkeypatch.delenv('FLASK_ENV', raising=False)
    try:
        importlib.reload(config)
        assert config.Config.ENVIRONMENT == 'production'
    finally:
        monkeypatch.undo()
        importlib.reload(config)


# ---------------------------------------------------------------------------
# Request normalization and serialization
# ---------------------------------------------------------------------------

@pytest.mark.parametrize('value,expected', [
    (True, True), ('true', True), ('TRUE', True), ('1', True), (1, True),
    (False, False), ('false', False), ('0', False), ('', False),
])
def test_parse_bool(value, expected):
    assert parse_bool(value) is expected


def test_parse_bool_default():
    assert parse_bool(None, default=True) is True
    assert parse_bool('maybe', default=True) is True


def test_parse_list():
    assert parse_list('rome, paris ,,lisbon') == ['rome', 'paris', 'lisbon']
    assert parse_list(['rome', 'paris,lisbon']) == ['rome', 'paris', 'lisbon']
    assert parse_list(None) == []


def test_text_fields_must_be_strings():
    assert clean_str('  Rome ') == 'Rome'
    assert clean_str('  keep  ', strip=False) == '  keep  '
    assert clean_str(None) is None
    assert normalize_email(' Ada@Example.COM ') == 'ada@example.com'
    with pytest.raises(ValidationError) as exc:
        clean_str(42, 'content')
    assert exc.value.errors == {'content': 'Must be a string'}
    with pytest.raises(ValidationError):
        normalize_email(['a@b.co'])


def test_parse_object_id():
    oid = ObjectId()
    assert parse_object_id(str(oid)) == oid
    with pytest.raises(ValidationError):
        parse_object_id('not-an-id')
    with pytest.raises(ValidationError):
        parse_object_id(None)


def test_serialize_document():
    oid = ObjectId()
    doc = {'_id': oid, 'when': datetime(2024, 1, 2, 3, 4, 5), 'refs': [oid], 'nested': {'_id': oid}}
    assert serialize_document(doc) == {
        'id': str(oid),
        'when': '2024-01-02T03:04:05',
        'refs': [str(oid)],
        'nested': {'id': str(oid)},
    }


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def test_db_log_persists_entries(app, store):
    with app.app_context():
        db_log('warning', 'blog', 'Something odd', {'postId': 'x'})
        db_log('error', 'email', 'Delivery failed')

    assert store.app_logs.count_documents({}) == 2
    entry = store.app_logs.find_one({'source': 'blog'})
    assert entry['level'] == 'WARNING'
    assert entry['details'] == {'postId': 'x'}


def test_traceback_logging(app, store):
    with app.app_context():
        try:
            raise KeyError('missing')
        except KeyError as e:
            LoggingService.log_error_with_traceback('ingestion', e)

    entry = store.app_logs.find_one({'source': 'ingestion'})
    assert entry['level'] == 'ERROR'
    assert entry['details']['error_type'] == 'KeyError'
    assert 'Traceback' in entry['details']['traceback']


def test_db_log_without_app_context_does_not_raise(store):
    db_log('info', 'blog', 'no app around')
    assert store.app_logs.count_documents({}) == 0


# ---------------------------------------------------------------------------
# Image storage
# ---------------------------------------------------------------------------

def _upload(name, data=b'\x89PNG fake image'):
    return FileStorage(stream=io.BytesIO(data), filename=name)


def test_storage_rejects_bad_extension():
    with pytest.raises(ValidationError) as exc:
        ImageStorage().upload_image(_upload('notes.gif'))
    assert 'featuredImage' in exc.value.errors


def test_storage_rejects_oversize():
    with pytest.raises(ValidationError):
        ImageStorage(max_bytes=4).upload_image(_upload('photo.png'))


def test_storage_saves_locally(app, tmp_path):
    app.static_folder = str(tmp_path)
    with app.app_context():
        url = ImageStorage().upload_image(_upload('Photo.JPG'))

    assert url.startswith('/static/blog-featured-images/')
    assert url.endswith('.jpg')
    saved = list((tmp_path / 'blog-featured-images').iterdir())
    assert len(saved) == 1


def test_storage_uploads_to_spaces(monkeypatch):
    calls = []

    class FakeS3:
        def put_object(self, **kwargs):
            calls.append(kwargs)

    storage = ImageStorage(backend='spaces', region='nyc3', bucket='travel')
    monkeypatch.setattr(storage, '_get_client', lambda: FakeS3())
    url = storage.upload_image(_upload('beach.png'))

    assert url.startswith('https://travel.nyc3.digitaloceanspaces.com/blog-featured-images/')
    assert calls[0]['ContentType'] == 'image/png'
    assert calls[0]['ACL'] == 'public-read'


def test_storage_timeout_is_504(monkeypatch):
    class SlowS3:
        def put_object(self, **kwargs):
            raise ReadTimeoutError(endpoint_url='https://nyc3.digitaloceanspaces.com')

    storage = ImageStorage(backend='spaces', region='nyc3', bucket='travel')
    monkeypatch.setattr(storage, '_get_client', lambda: SlowS3())
    with pytest.raises(UpstreamTimeoutError) as exc:
        storage.upload_image(_upload('beach.png'))
    assert exc.value.status_code == 504


def test_storage_client_uses_outbound_timeout():
    storage = ImageStorage.from_config({
        'STORAGE_BACKEND': 'spaces', 'SPACES_REGION': 'nyc3', 'SPACES_BUCKET': 'travel',
        'SPACES_KEY': 'key', 'SPACES_SECRET': 'secret', 'OUTBOUND_TIMEOUT': 7,
    })
    client_config = storage._get_client().meta.config
    assert client_config.connect_timeout == 7
    assert client_config.read_timeout == 7


def test_create_post_maps_storage_timeout(client, app):
    class SlowStorage:
        def upload_image(self, file_storage):
            raise UpstreamTimeoutError('Image storage did not respond in time')

    app.extensions['travelblog'].storage = SlowStorage()
    response = client.post('/admin/blog/posts', data={
        'title': 'Slow Upload', 'category': 'Travels', 'content': 'Body text',
        'featuredImage': (io.BytesIO(b'img'), 'slow.png'),
    }, content_type='multipart/form-data')
    assert response.status_code == 504
    assert response.get_json()['success'] is False


# ---------------------------------------------------------------------------
# Background dispatch
# ---------------------------------------------------------------------------

def test_background_errors_are_swallowed(app):
    def explode():
        raise RuntimeError('side channel down')

    with app.app_context():
        assert run_in_background(explode) is None


def test_background_runs_on_thread(app):
    seen = []
    app.config['BACKGROUND_TASKS_INLINE'] = False
    with app.app_context():
        thread = run_in_background(seen.append, 'done')
    thread.join(timeout=2)
    assert seen == ['done']
