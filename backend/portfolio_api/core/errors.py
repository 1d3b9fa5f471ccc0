"""
Application error taxonomy.

Every failure a route can report maps to one of these classes. Each carries
the HTTP status it renders as and a short human-readable message; the
exception handlers in main.py turn them into {"message": ...} JSON bodies.
"""


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class MissingCredentialError(AppError):
    """No bearer token on a protected request"""
    status_code = 401
    default_message = "No token provided"


class InvalidCredentialError(AppError):
    """Token present but signature is bad or it has expired"""
    status_code = 403
    default_message = "Invalid or expired token"


class AccessDeniedError(AppError):
    status_code = 403
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class BadCredentialsError(AppError):
    """Login password does not match the stored hash"""
    status_code = 401
    default_message = "Invalid credentials"


class DuplicateEmailError(AppError):
    status_code = 409
    default_message = "Email already registered"


class ValidationFailureError(AppError):
    status_code = 400
    default_message = "Invalid request"


class UploadFailureError(AppError):
    """Image host unreachable, misconfigured or answered with an error"""
    status_code = 500
    default_message = "Upload to image host failed"


class UnexpectedError(AppError):
    status_code = 500
