"""
Domain errors for the ASMIN platform.

Each error carries the HTTP status it is surfaced with. Handlers in main.py
turn them into ``{"error": message}`` responses.
"""


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid input"


class InsufficientFunds(AppError):
    status_code = 400
    default_message = "Insufficient balance"


class DuplicateEmail(AppError):
    status_code = 400
    default_message = "Email already exists"


class InvalidToken(AppError):
    status_code = 400
    default_message = "Invalid or used token"


class TokenExpired(AppError):
    status_code = 400
    default_message = "Token expired"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Invalid credentials"


class Forbidden(AppError):
    status_code = 403
    default_message = "Access denied"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class InvalidTransition(AppError):
    status_code = 409
    default_message = "Status change not allowed"
