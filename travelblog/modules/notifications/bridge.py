"""
Notification Bridge
===================

Socket.IO events handled:
- join-admin          -- join the shared admin room
- join-user {email}   -- join the caller's user room
- leave-user {email}  -- leave it again

Server-side events emitted: new-submission, admin-reply,
new-newsletter-subscriber.

Room membership is tracked in process memory only; it is lost on restart and
not shared between server instances.
"""

import logging
import threading

from flask import request
from flask_socketio import SocketIO, emit, join_room, leave_room

from travelblog.core.database import serialize_document
from travelblog.core.forms import normalize_email

logger = logging.getLogger(__name__)

ADMIN_ROOM = 'admin-room'

EVENT_NEW_SUBMISSION = 'new-submission'
EVENT_ADMIN_REPLY = 'admin-reply'
EVENT_NEW_SUBSCRIBER = 'new-newsletter-subscriber'


def user_room(email):
    return f"user-{normalize_email(email)}"


def _email_from(data):
    if isinstance(data, dict):
        data = data.get('email')
    return normalize_email(data) if isinstance(data, str) else ''


class NotificationBridge:
    """Process-scoped wrapper around SocketIO with a room registry."""

    def __init__(self, app=None):
        self.socketio = SocketIO()
        self._rooms = {}
        self._lock = threading.Lock()

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        origins = app.config.get('CLIENT_URL') or '*'
        self.socketio.init_app(app, cors_allowed_origins=origins, async_mode='threading')

        self.socketio.on_event('connect', self._handle_connect)
        self.socketio.on_event('disconnect', self._handle_disconnect)
        self.socketio.on_event('join-admin', self._handle_join_admin)
        self.socketio.on_event('join-user', self._handle_join_user)
        self.socketio.on_event('leave-user', self._handle_leave_user)

    # ----- registry -----

    def _add_member(self, room, sid):
        with self._lock:
            self._rooms.setdefault(room, set()).add(sid)

    def _remove_member(self, room, sid):
        with self._lock:
            members = self._rooms.get(room)
            if members is not None:
                members.discard(sid)
                if not members:
                    del self._rooms[room]

    def _remove_sid(self, sid):
        with self._lock:
            for room in list(self._rooms):
                self._rooms[room].discard(sid)
                if not self._rooms[room]:
                    del self._rooms[room]

    def room_size(self, room):
        with self._lock:
            return len(self._rooms.get(room, ()))

    # ----- socket event handlers -----

    def _handle_connect(self, *args):
        logger.info(f"Client connected: {request.sid}")
        emit('connected', {'message': 'Connected to notification stream'})

    def _handle_disconnect(self, *args):
        self._remove_sid(request.sid)
        logger.info(f"Client disconnected: {request.sid}")

    def _handle_join_admin(self, *args):
        join_room(ADMIN_ROOM)
        self._add_member(ADMIN_ROOM, request.sid)
        logger.info(f"Client {request.sid} joined {ADMIN_ROOM}")
        emit('joined', {'room': ADMIN_ROOM})

    def _handle_join_user(self, data=None):
        email = _email_from(data)
        if '@' not in email:
            emit('join-error', {'message': 'A valid email is required to join a user room'})
            return
        room = user_room(email)
        join_room(room)
        self._add_member(room, request.sid)
        logger.info(f"Client {request.sid} joined {room}")
        emit('joined', {'room': room})

    def _handle_leave_user(self, data=None):
        email = _email_from(data)
        if not email:
            return
        room = user_room(email)
        leave_room(room)
        self._remove_member(room, request.sid)
        emit('left', {'room': room})

    # ----- server-initiated events -----

    def notify(self, event, payload, room):
        """
        Emit event to room if anyone is listening.

        Returns True when the event was handed to Socket.IO, False when it was
        dropped (empty room) or emission failed. Never raises.
        """
        if self.room_size(room) == 0:
            logger.debug(f"Dropped {event}: no clients in {room}")
            return False
        try:
            self.socketio.emit(event, serialize_document(payload), to=room)
            return True
        except Exception as e:
            logger.warning(f"Failed to emit {event} to {room}: {e}")
            return False

    def notify_admin(self, event, payload):
        return self.notify(event, payload, ADMIN_ROOM)

    def notify_user(self, email, event, payload):
        return self.notify(event, payload, user_room(email))
