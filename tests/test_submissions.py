"""
Contact submissions: reply workflow, read tracking and unread counts.
"""

import pytest

from travelblog.modules.submissions.models import admin_unread_filter, user_unread_filter

ADA = {'firstName': 'Ada', 'lastName': 'Lovelace', 'email': 'ada@example.com'}


@pytest.fixture
def submit(client):
    def _submit(**overrides):
        payload = dict(ADA, **overrides)
        response = client.post('/contact/submit', json=payload)
        assert response.status_code == 200, response.get_json()
        return response.get_json()['submission']
    return _submit


def _assert_counts_match_store(client, store, email):
    """The endpoints must agree with a direct query of the store."""
    admin = client.get('/submissions/admin/unread-count').get_json()['count']
    user = client.get(f'/submissions/user/{email}/unread-count').get_json()['count']
    assert admin == store.submissions.count_documents(admin_unread_filter())
    assert user == store.submissions.count_documents(user_unread_filter(email))
    return admin, user


# ---------------------------------------------------------------------------
# Scenario: submit -> admin unread -> reply -> user unread
# ---------------------------------------------------------------------------

def test_submission_reply_scenario(client, store, submit):
    submission = submit()
    assert submission['status'] == 'new'
    assert submission['notificationCount'] == {'admin': 1, 'user': 0}

    assert client.get('/submissions/admin/unread-count').get_json()['count'] == 1

    response = client.post(f"/submissions/{submission['id']}/reply", json={'adminReply': 'Thanks!'})
    assert response.status_code == 200
    replied = response.get_json()['submission']
    assert replied['status'] == 'replied'
    assert replied['isReadByUser'] is False
    assert replied['adminReply']['message'] == 'Thanks!'
    assert replied['notificationCount']['user'] == 1

    assert client.get('/submissions/user/ada@example.com/unread-count').get_json()['count'] == 1
    _assert_counts_match_store(client, store, 'ada@example.com')


def test_submission_is_normalized_and_emailed(submit, email):
    submission = submit(email='  Ada@Example.COM ', interests='writing, photography')
    assert submission['email'] == 'ada@example.com'
    assert submission['interests'] == ['writing', 'photography']
    assert [form['email'] for form in email.dispatched] == ['ada@example.com']


def test_submit_requires_names_and_email(client, store):
    response = client.post('/contact/submit', json={'email': 'someone'})
    assert response.status_code == 400
    assert set(response.get_json()['errors']) == {'firstName', 'lastName', 'email'}
    assert store.submissions.count_documents({}) == 0


def test_submit_rejects_non_string_fields(client, store):
    response = client.post('/contact/submit', json=dict(ADA, email=['ada@example.com']))
    assert response.status_code == 400
    assert 'email' in response.get_json()['errors']

    response = client.post('/contact/submit', json=dict(ADA, firstName={'first': 'Ada'}))
    assert response.status_code == 400
    assert store.submissions.count_documents({}) == 0


def test_submit_succeeds_when_side_channels_fail(client, store, app):
    ext = app.extensions['travelblog']

    class ExplodingEmail:
        def dispatch_submission_emails(self, form):
            raise RuntimeError('smtp down')

    ext.email = ExplodingEmail()
    response = client.post('/contact/submit', json=ADA)
    assert response.status_code == 200
    assert store.submissions.count_documents({}) == 1


# ---------------------------------------------------------------------------
# Reply edge cases
# ---------------------------------------------------------------------------

def test_reply_requires_message(client, submit):
    submission = submit()
    response = client.post(f"/submissions/{submission['id']}/reply", json={'adminReply': '   '})
    assert response.status_code == 400


def test_reply_missing_and_malformed_ids(client):
    missing = client.post('/submissions/0123456789abcdef01234567/reply', json={'message': 'Hi'})
    assert missing.status_code == 404
    malformed = client.post('/submissions/nope/reply', json={'message': 'Hi'})
    assert malformed.status_code == 400


def test_reply_resets_user_read_flag(client, submit):
    submission = submit()
    sid = submission['id']
    client.post(f'/submissions/{sid}/reply', json={'adminReply': 'First'})
    client.put(f'/submissions/{sid}/read-user')

    client.post(f'/submissions/{sid}/reply', json={'message': 'Second'})
    thread = client.get('/submissions/user/ada@example.com').get_json()
    assert thread['submissions'][0]['isReadByUser'] is False
    assert thread['submissions'][0]['adminReply']['message'] == 'Second'
    assert thread['unreadCount'] == 1


# ---------------------------------------------------------------------------
# Read tracking
# ---------------------------------------------------------------------------

def test_read_admin_advances_new_to_viewed(client, store, submit):
    submission = submit()
    response = client.put(f"/submissions/{submission['id']}/read-admin")
    body = response.get_json()['submission']
    assert body['isReadByAdmin'] is True
    assert body['status'] == 'viewed'

    # idempotent, and never moves a replied submission backwards
    client.post(f"/submissions/{submission['id']}/reply", json={'adminReply': 'ok'})
    body = client.put(f"/submissions/{submission['id']}/read-admin").get_json()['submission']
    assert body['status'] == 'replied'
    assert _assert_counts_match_store(client, store, 'ada@example.com') == (0, 1)


def test_read_user_clears_counter(client, store, submit):
    submission = submit()
    client.post(f"/submissions/{submission['id']}/reply", json={'adminReply': 'ok'})
    body = client.put(f"/submissions/{submission['id']}/read-user").get_json()['submission']
    assert body['isReadByUser'] is True
    assert body['notificationCount']['user'] == 0
    assert _assert_counts_match_store(client, store, 'ada@example.com') == (0, 0)


def test_counts_track_a_mixed_sequence(client, store, submit):
    first = submit()
    second = submit(firstName='Grace', lastName='Hopper', email='grace@example.com')
    submit(message='Another pitch')

    client.put(f"/submissions/{first['id']}/read-admin")
    client.post(f"/submissions/{second['id']}/reply", json={'adminReply': 'Welcome'})

    assert _assert_counts_match_store(client, store, 'ada@example.com') == (1, 0)
    assert _assert_counts_match_store(client, store, 'grace@example.com') == (1, 1)


def test_status_endpoint_cannot_mark_replied(client, submit):
    submission = submit()
    assert client.put(f"/submissions/{submission['id']}/status", json={'status': 'replied'}).status_code == 400
    response = client.put(f"/submissions/{submission['id']}/status", json={'status': 'closed'})
    assert response.get_json()['submission']['status'] == 'closed'


# ---------------------------------------------------------------------------
# Listing and deletion
# ---------------------------------------------------------------------------

def test_admin_and_user_listings(client, submit):
    submit()
    submit(firstName='Grace', lastName='Hopper', email='grace@example.com')

    admin = client.get('/submissions/admin').get_json()
    assert len(admin['submissions']) == 2
    assert admin['unreadCount'] == 2

    user = client.get('/submissions/user/GRACE@example.com').get_json()
    assert [s['firstName'] for s in user['submissions']] == ['Grace']


def test_delete_submission(client, submit):
    submission = submit()
    assert client.delete(f"/submissions/{submission['id']}").status_code == 200
    assert client.delete(f"/submissions/{submission['id']}").status_code == 404
