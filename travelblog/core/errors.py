"""
API Errors
==========

Error taxonomy shared by every module and the Flask handlers that render it
as the JSON envelope ``{success: false, message, ...}``.
"""

import logging

from bson.errors import InvalidId
from flask import current_app, jsonify
from pymongo.errors import (
    ConnectionFailure,
    DuplicateKeyError,
    ExecutionTimeout,
    NetworkTimeout,
    ServerSelectionTimeoutError,
)
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base class for errors that map onto an HTTP response."""
    status_code = 500

    def __init__(self, message, status_code=None, errors=None, field=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors
        self.field = field

    def to_dict(self):
        body = {'success': False, 'message': self.message}
        if self.errors:
            body['errors'] = self.errors
        if self.field:
            body['field'] = self.field
        return body


class ValidationError(APIError):
    status_code = 400


class NotFoundError(APIError):
    status_code = 404


class ConflictError(APIError):
    status_code = 409


class UpstreamTimeoutError(APIError):
    status_code = 504


class UpstreamUnavailableError(APIError):
    status_code = 503


def _is_development():
    return str(current_app.config.get('ENVIRONMENT', '')).lower() == 'development'


def _duplicate_field(error):
    details = getattr(error, 'details', None) or {}
    key_pattern = details.get('keyPattern') or details.get('keyValue') or {}
    if key_pattern:
        return next(iter(key_pattern))
    return None


def register_error_handlers(app):
    """Translate raised errors into the JSON envelope."""

    @app.errorhandler(APIError)
    def handle_api_error(error):
        if error.status_code >= 500:
            logger.error(f"{type(error).__name__}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(DuplicateKeyError)
    def handle_duplicate_key(error):
        field = _duplicate_field(error)
        logger.warning(f"Duplicate key rejected (field: {field})")
        return jsonify(ConflictError('Duplicate entry', field=field).to_dict()), 409

    @app.errorhandler(InvalidId)
    def handle_invalid_id(error):
        return jsonify({'success': False, 'message': 'Invalid id format'}), 400

    @app.errorhandler(ExecutionTimeout)
    @app.errorhandler(NetworkTimeout)
    def handle_store_timeout(error):
        logger.error(f"Document store timed out: {error}")
        return jsonify({'success': False, 'message': 'The database did not respond in time'}), 504

    @app.errorhandler(ServerSelectionTimeoutError)
    @app.errorhandler(ConnectionFailure)
    def handle_store_unavailable(error):
        logger.error(f"Document store unavailable: {error}")
        return jsonify({'success': False, 'message': 'The database is currently unavailable'}), 503

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({
            'success': False,
            'message': error.description or error.name,
            'error': error.name,
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        logger.exception(f"Unhandled error: {error}")
        body = {'success': False, 'message': 'Something went wrong'}
        if _is_development():
            body['error'] = str(error)
        return jsonify(body), 500
