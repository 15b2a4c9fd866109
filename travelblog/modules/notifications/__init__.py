"""
Notifications Module
====================

Best-effort live notifications over Socket.IO. Admin clients join a shared
room; user clients join a room keyed by their email. Events sent to an empty
room are dropped -- nothing is queued or replayed.
"""

from .bridge import ADMIN_ROOM, NotificationBridge, user_room

__all__ = ['ADMIN_ROOM', 'NotificationBridge', 'user_room']
