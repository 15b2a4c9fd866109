"""
Socket.IO rooms: admin and per-user delivery, drop when nobody listens.
"""

from travelblog.modules.notifications import ADMIN_ROOM, user_room


def _events(socket_client, name):
    return [event['args'][0] for event in socket_client.get_received() if event['name'] == name]


def test_user_room_is_normalized():
    assert user_room(' Ada@Example.com ') == 'user-ada@example.com'


def test_join_admin_receives_new_submission(app, client, bridge):
    admin = bridge.socketio.test_client(app)
    admin.emit('join-admin')
    assert _events(admin, 'joined') == [{'room': ADMIN_ROOM}]

    client.post('/contact/submit', json={
        'firstName': 'Ada', 'lastName': 'Lovelace', 'email': 'ada@example.com',
    })

    events = _events(admin, 'new-submission')
    assert len(events) == 1
    assert events[0]['submission']['email'] == 'ada@example.com'
    admin.disconnect()


def test_reply_reaches_only_the_submitters_room(app, client, bridge):
    ada = bridge.socketio.test_client(app)
    ada.emit('join-user', {'email': 'ADA@example.com'})
    grace = bridge.socketio.test_client(app)
    grace.emit('join-user', {'email': 'grace@example.com'})
    ada.get_received()
    grace.get_received()

    submission = client.post('/contact/submit', json={
        'firstName': 'Ada', 'lastName': 'Lovelace', 'email': 'ada@example.com',
    }).get_json()['submission']
    client.post(f"/submissions/{submission['id']}/reply", json={'adminReply': 'Thanks!'})

    replies = _events(ada, 'admin-reply')
    assert [r['message'] for r in replies] == ['Thanks!']
    assert replies[0]['submissionId'] == submission['id']
    assert _events(grace, 'admin-reply') == []


def test_new_subscriber_event(app, client, bridge):
    admin = bridge.socketio.test_client(app)
    admin.emit('join-admin')
    admin.get_received()

    client.post('/newsletter/subscribe', json={'email': 'reader@example.com'})
    events = _events(admin, 'new-newsletter-subscriber')
    assert events[0]['subscriber']['email'] == 'reader@example.com'


def test_notify_drops_when_room_empty(bridge):
    assert bridge.notify_admin('new-submission', {'message': 'nobody home'}) is False


def test_disconnect_clears_registry(app, bridge):
    sock = bridge.socketio.test_client(app)
    sock.emit('join-user', {'email': 'ada@example.com'})
    assert bridge.room_size(user_room('ada@example.com')) == 1

    sock.disconnect()
    assert bridge.room_size(user_room('ada@example.com')) == 0
    assert bridge.notify_user('ada@example.com', 'admin-reply', {'message': 'late'}) is False


def test_leave_user_and_invalid_join(app, bridge):
    sock = bridge.socketio.test_client(app)
    sock.emit('join-user', {'email': 'no-at-sign'})
    assert _events(sock, 'join-error')
    assert bridge.room_size(user_room('no-at-sign')) == 0

    sock.emit('join-user', {'email': 5})
    assert _events(sock, 'join-error')

    sock.emit('join-user', {'email': 'ada@example.com'})
    sock.emit('leave-user', {'email': 'ada@example.com'})
    assert bridge.room_size(user_room('ada@example.com')) == 0
    sock.disconnect()
