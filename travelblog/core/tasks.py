"""
Background Dispatch
===================

Fire-and-forget execution for best-effort side channels (live notifications,
emails). The primary request never waits on, or fails because of, this work.
"""

import logging
import threading

from flask import current_app

logger = logging.getLogger(__name__)


def _run_safely(app, func, args, kwargs):
    with app.app_context():
        try:
            func(*args, **kwargs)
        except Exception as e:
            logger.error(f"Background task {getattr(func, '__name__', func)} failed: {e}")


def run_in_background(func, *args, **kwargs):
    """
    Run func outside the request path.

    Runs on a daemon thread with its own app context. With
    BACKGROUND_TASKS_INLINE set the call happens inline, errors still swallowed.
    Returns the started thread, or None when run inline.
    """
    app = current_app._get_current_object()
    if app.config.get('BACKGROUND_TASKS_INLINE'):
        _run_safely(app, func, args, kwargs)
        return None

    thread = threading.Thread(
        target=_run_safely,
        args=(app, func, args, kwargs),
        name=f"bg-{getattr(func, '__name__', 'task')}",
        daemon=True,
    )
    thread.start()
    return thread
