"""
Blog Admin Module
=================

Unrestricted post management for the admin dashboard.

Provides:
- Listing of every post (drafts included) with optional search/filter/projection
- Post creation and editing with optional featured-image upload
- Post deletion
"""

from flask import Blueprint

blog_admin_bp = Blueprint('blog_admin', __name__, url_prefix='/admin/blog')

from . import routes

__all__ = ['blog_admin_bp']
