"""Custom exceptions for the field sales order application."""

class AppError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        return rv

class ValidationError(AppError):
    """Raised for malformed or missing order fields."""
    def __init__(self, message, field=None, payload=None):
        payload = dict(payload or ())
        if field:
            payload['field'] = field
        super().__init__(message, 400, payload)
        self.field = field

class AuthenticationError(AppError):
    """Raised when the request carries no valid session."""
    def __init__(self, message="Authentication required"):
        super().__init__(message, 401)

class UnauthorizedError(AppError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="Forbidden"):
        super().__init__(message, 403)

class NotFoundError(AppError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class InvalidStatusTransitionError(AppError):
    """Raised when a status change would move backwards or skip a step."""
    def __init__(self, current, target):
        message = f"Cannot move from '{current}' to '{target}'"
        super().__init__(message, 409, {'currentStatus': current, 'requestedStatus': target})
        self.current = current
        self.target = target

class TotalsMismatchError(ValidationError):
    """Raised when client totals disagree with the server recomputation."""
    def __init__(self, field, submitted, computed):
        message = f"{field} does not match the order items (expected {computed})"
        super().__init__(message, field=field, payload={'submitted': str(submitted), 'expected': str(computed)})
