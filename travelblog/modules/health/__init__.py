"""
Health Module
=============

Service description at ``/`` and a ``/health`` check reporting the document
store connection.
"""

from flask import Blueprint

health_bp = Blueprint('health', __name__)

from . import routes

__all__ = ['health_bp']
