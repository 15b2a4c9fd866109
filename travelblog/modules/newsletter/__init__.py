"""
Newsletter Module
=================

Newsletter subscriptions stored in the ``subscribers`` collection.

Provides:
- POST /newsletter/subscribe -- subscribe or reactivate
- POST /newsletter/unsubscribe -- deactivate
- GET /newsletter/subscribers -- paginated active subscribers (admin)
- GET /newsletter/stats -- subscriber counts (admin)
- GET /newsletter/export -- CSV download of active subscribers (admin)
"""

from flask import Blueprint

newsletter_bp = Blueprint('newsletter', __name__, url_prefix='/newsletter')

from . import routes

__all__ = ['newsletter_bp']
