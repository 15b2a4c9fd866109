"""
Travel Blog Core
================

Core utilities and shared functionality for the travel blog modules.
"""

from .config import Config
from .database import DocumentStore, parse_object_id, serialize_document, utcnow
from .errors import (
    APIError,
    ConflictError,
    NotFoundError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
    ValidationError,
)
from .logging_service import LoggingService, db_log

__all__ = [
    'Config', 'DocumentStore', 'parse_object_id', 'serialize_document', 'utcnow',
    'APIError', 'ConflictError', 'NotFoundError', 'UpstreamTimeoutError',
    'UpstreamUnavailableError', 'ValidationError',
    'LoggingService', 'db_log',
]
