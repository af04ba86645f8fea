"""Shared API utilities — request parsing and error responses for JSON routes."""
import logging

from flask import jsonify, request

logger = logging.getLogger('hrsuite.api')


def get_json_or_error():
    """Get JSON from request body with null check.

    Returns (data, error_response) tuple. Caller pattern:
        data, error = get_json_or_error()
        if error:
            return error
    """
    data = request.get_json(silent=True)
    if data is None or not isinstance(data, dict):
        return None, (jsonify({
            'success': False,
            'error': 'Invalid or missing JSON body',
        }), 400)
    return data, None


def error_response(message, status_code):
    return jsonify({'success': False, 'error': message}), status_code


def safe_error_response(e, status_code=500):
    """Return error response without leaking DB internals.

    - ValueError/KeyError: returns str(e) as 400 (business validation, safe to expose)
    - Everything else: logs full exception, returns generic message
    """
    if isinstance(e, (ValueError, KeyError)):
        return error_response(str(e), 400)

    logger.exception('Unhandled error in API route')
    return error_response('An internal error occurred', status_code)

