"""
Submissions Module
==================

"Write for us" contact submissions with an admin-reply thread.

Provides:
- POST /contact/submit -- public contact form
- /submissions/* -- admin inbox, per-user thread, replies, read tracking
"""

from flask import Blueprint

contact_bp = Blueprint('contact', __name__, url_prefix='/contact')
submissions_bp = Blueprint('submissions', __name__, url_prefix='/submissions')

from . import routes

__all__ = ['contact_bp', 'submissions_bp']
