"""
Centralized logging service for the travel blog server.
Provides structured logging into the document store's app_logs collection,
falling back to the standard logger when the store is unreachable.
"""

import logging
import traceback

from flask import current_app, has_app_context, has_request_context, request

from .database import utcnow

_fallback = logging.getLogger('travelblog')


def _get_store():
    if not has_app_context():
        return None
    ext = current_app.extensions.get('travelblog')
    return ext.store if ext else None


class LoggingService:
    """Centralized logging service for application-wide logging"""

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None, None

        ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
        if ip_address and ',' in ip_address:
            ip_address = ip_address.split(',')[0].strip()
        return ip_address, request.headers.get('User-Agent', ''), request.path

    @staticmethod
    def log(level, source, message, details=None):
        """
        Persist a log entry.

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (blog, newsletter, ingestion, ...)
            message (str): Main log message
            details (dict): Additional structured details
        """
        level = level.upper()
        _fallback.log(getattr(logging, level, logging.INFO), f"[{source}] {message}")

        store = _get_store()
        if store is None:
            return

        ip_address, user_agent, request_path = LoggingService._get_request_context()
        try:
            store.app_logs.insert_one({
                'timestamp': utcnow(),
                'level': level,
                'source': source,
                'message': message,
                'details': details,
                'ipAddress': ip_address,
                'userAgent': user_agent,
                'requestPath': request_path,
            })
        except Exception as e:
            _fallback.warning(f"Logging service error: {e}")

    @staticmethod
    def error(source, message, details=None):
        LoggingService.log('ERROR', source, message, details)

    @staticmethod
    def log_error_with_traceback(source, error, details=None):
        """Log error with full traceback"""
        error_details = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc(),
        }
        if details:
            error_details['additional_details'] = details

        LoggingService.error(source, f"Exception occurred: {type(error).__name__}", error_details)


def db_log(level, source, message, details=None):
    """Shortcut used by modules to write a persistent log entry."""
    LoggingService.log(level, source, message, details)

