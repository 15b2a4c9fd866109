"""
Newsletter: subscribe/reactivate, unsubscribe, listing, stats and CSV export.
"""

import csv
import io
from datetime import timedelta

from travelblog.core.database import utcnow
from travelblog.modules.newsletter.models import validate_email


def _subscribe(client, email='reader@example.com', **extra):
    return client.post('/newsletter/subscribe', json=dict(email=email, **extra))


def test_validate_email():
    assert validate_email('reader@example.com')
    assert not validate_email('reader@')
    assert not validate_email('first..last@example.com')
    assert not validate_email('')


def test_subscribe_creates_active_subscriber(client, store):
    response = _subscribe(client, email=' Reader@Example.com ', name='Reader')
    assert response.status_code == 201
    subscriber = response.get_json()['subscriber']
    assert subscriber['email'] == 'reader@example.com'
    assert subscriber['isActive'] is True
    assert subscriber['source'] == 'blog'
    assert subscriber['subscriptionCount'] == 1
    assert store.subscribers.count_documents({}) == 1


def test_name_defaults_to_mailbox(client):
    subscriber = _subscribe(client).get_json()['subscriber']
    assert subscriber['name'] == 'reader'


def test_duplicate_active_email_rejected(client):
    _subscribe(client)
    response = _subscribe(client, email='READER@example.com')
    assert response.status_code == 400
    assert response.get_json()['field'] == 'email'


def test_invalid_email_and_source_rejected(client):
    assert _subscribe(client, email='not-an-email').status_code == 400
    assert _subscribe(client, source='billboard').status_code == 400


def test_non_string_email_is_rejected(client, store):
    response = _subscribe(client, email=123)
    assert response.status_code == 400
    assert response.get_json()['errors'] == {'email': 'Must be a string'}
    assert store.subscribers.count_documents({}) == 0


def test_resubscribe_reactivates_same_record(client, store):
    _subscribe(client)
    assert client.post('/newsletter/unsubscribe', json={'email': 'reader@example.com'}).status_code == 200

    response = _subscribe(client)
    assert response.status_code == 200
    subscriber = response.get_json()['subscriber']
    assert subscriber['isActive'] is True
    assert subscriber['subscriptionCount'] == 2
    assert store.subscribers.count_documents({'email': 'reader@example.com'}) == 1


def test_unsubscribe_unknown_email_is_404(client):
    response = client.post('/newsletter/unsubscribe', json={'email': 'ghost@example.com'})
    assert response.status_code == 404


def test_subscribers_list_paginates_and_searches(client):
    for i in range(5):
        _subscribe(client, email=f'reader{i}@example.com', name=f'Reader {i}')
    _subscribe(client, email='quiet@example.com')
    client.post('/newsletter/unsubscribe', json={'email': 'quiet@example.com'})

    body = client.get('/newsletter/subscribers?page=2&limit=2').get_json()
    assert body['pagination']['totalSubscribers'] == 5
    assert body['pagination']['totalPages'] == 3
    assert len(body['subscribers']) == 2

    body = client.get('/newsletter/subscribers?search=reader%203').get_json()
    assert [s['email'] for s in body['subscribers']] == ['reader3@example.com']


def test_huge_page_is_clamped(client):
    _subscribe(client)
    response = client.get('/newsletter/subscribers?page=' + '9' * 25)
    assert response.status_code == 200
    body = response.get_json()
    assert body['pagination']['currentPage'] == 10000
    assert body['subscribers'] == []


def test_stats(client, store):
    _subscribe(client, email='new@example.com')
    _subscribe(client, email='gone@example.com')
    client.post('/newsletter/unsubscribe', json={'email': 'gone@example.com'})
    store.subscribers.insert_one({
        'name': 'Old', 'email': 'old@example.com', 'isActive': True,
        'subscribedAt': utcnow() - timedelta(days=30), 'subscriptionCount': 1,
    })

    stats = client.get('/newsletter/stats').get_json()['stats']
    assert stats['total'] == 3
    assert stats['active'] == 2
    assert stats['inactive'] == 1
    assert stats['newThisWeek'] == 2
    assert stats['newToday'] == 2


def test_export_csv_lists_active_subscribers(client):
    _subscribe(client, email='one@example.com', name='One')
    _subscribe(client, email='two@example.com', name='Two')
    client.post('/newsletter/unsubscribe', json={'email': 'two@example.com'})

    response = client.get('/newsletter/export')
    assert response.status_code == 200
    assert response.mimetype == 'text/csv'
    assert 'attachment' in response.headers['Content-Disposition']

    rows = list(csv.reader(io.StringIO(response.get_data(as_text=True))))
    assert rows[0] == ['Name', 'Email', 'Subscribed Date', 'Status']
    assert rows[1][:2] == ['One', 'one@example.com']
    assert rows[1][3] == 'Active'
    assert len(rows) == 2
