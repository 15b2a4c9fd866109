"""
Ingestion Module
================

Scheduled mirroring of news articles into the headless CMS, plus admin
endpoints to trigger a run and inspect the last one.
"""

from flask import Blueprint

ingestion_bp = Blueprint('ingestion', __name__, url_prefix='/admin/ingestion')

from . import routes
from .job import IngestionJob, create_rich_text, create_slug, make_entry_id

__all__ = ['ingestion_bp', 'IngestionJob', 'create_rich_text', 'create_slug', 'make_entry_id']
