"""Domain errors and the JSON error envelope.

Every failure a caller can act on is a ``GameError``. Handlers registered in
``register_error_handlers`` turn them into ``{"ok": false, "erro": ...}``
responses carrying the error's HTTP status.
"""
from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException


class GameError(Exception):
    status_code = 400
    message = 'Request failed'

    def __init__(self, message=None, status_code=None):
        super().__init__(message or self.message)
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code

    def to_response(self):
        return jsonify({'ok': False, 'erro': self.message}), self.status_code


class InvalidInput(GameError):
    status_code = 400
    message = 'Invalid input'


class InvalidCredentials(GameError):
    status_code = 401
    message = 'Invalid email or password'


class ExpiredOrInvalidToken(GameError):
    status_code = 401
    message = 'Token expired or invalid'


class NotFound(GameError):
    status_code = 404
    message = 'Not found'


class DuplicateEmail(GameError):
    status_code = 409
    message = 'Email already registered'


class InsufficientFunds(GameError):
    status_code = 409
    message = 'Insufficient funds'


class InvalidStateTransition(GameError):
    status_code = 409
    message = 'Match is not in progress'


class ConfigExhausted(GameError):
    status_code = 409
    message = 'No more hits available for this match'


class WalletLimitExceeded(GameError):
    status_code = 409
    message = 'Payout would exceed the wallet limit'


def register_error_handlers(flask_app, db):

    @flask_app.errorhandler(GameError)
    def handle_game_error(exc):
        return exc.to_response()

    @flask_app.errorhandler(HTTPException)
    def handle_http_error(exc):
        return jsonify({'ok': False, 'erro': exc.description or exc.name}), exc.code

    @flask_app.errorhandler(Exception)
    def handle_unexpected(exc):
        db.session.rollback()
        current_app.logger.exception(f"[error] unhandled {type(exc).__name__}")
        return jsonify({'ok': False, 'erro': 'Internal error'}), 500
