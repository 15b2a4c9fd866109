"""
Process-scoped providers (store, storage, email, notification bridge) live on
the TravelBlog extension; handlers reach them through these accessors so tests
can substitute fakes at construction time.
"""

from flask import current_app


def get_extension():
    return current_app.extensions['travelblog']


def get_store():
    return get_extension().store


def get_storage():
    return get_extension().storage


def get_email_service():
    return get_extension().email


def get_bridge():
    return get_extension().bridge


def get_ingestion_job():
    return get_extension().ingestion
