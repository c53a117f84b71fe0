"""Error taxonomy and the JSON error responses the routes return for it"""
import logging
from flask import jsonify

logger = logging.getLogger(__name__)

SIGN_IN_REDIRECT = '/auth?mode=signup'


class AppError(Exception):
    status_code = 500
    title = 'Error'

    def __init__(self, message, title=None):
        super().__init__(message)
        self.message = message
        if title is not None:
            self.title = title

    def to_dict(self):
        return {'title': self.title, 'error': self.message}


class ValidationError(AppError):
    """Field-level input errors, caught before anything reaches the store"""
    status_code = 400
    title = 'Validation failed'

    def __init__(self, errors, title=None):
        self.errors = dict(errors)
        super().__init__('; '.join(self.errors.values()), title)

    def to_dict(self):
        data = super().to_dict()
        data['errors'] = self.errors
        return data


class AuthError(AppError):
    """Rejected credentials or missing session"""
    status_code = 401
    title = 'Authentication required'

    def to_dict(self):
        data = super().to_dict()
        data['redirect'] = SIGN_IN_REDIRECT
        return data


class AccountExistsError(AuthError):
    status_code = 409
    title = 'Account exists'


class NotFoundError(AppError):
    status_code = 404
    title = 'Not found'


class RemoteError(AppError):
    """Store failure; carries the store's message, never retried"""
    status_code = 500


def error_response(title, message, status_code, **extra):
    body = {'title': title, 'error': message}
    body.update(extra)
    return jsonify(body), status_code


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(err):
        if isinstance(err, RemoteError):
            logger.error("Store failure: %s", err.message)
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(404)
    def handle_not_found(err):
        return error_response('Not found', 'Resource not found', 404)

    @app.errorhandler(405)
    def handle_method_not_allowed(err):
        return error_response('Error', 'Method not allowed', 405)

    @app.errorhandler(500)
    def handle_internal_error(err):
        return error_response('Error', 'Internal server error', 500)
