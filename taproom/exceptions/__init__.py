"""Custom exceptions for the Taproom POS application."""


class TaproomError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class InvalidArgumentError(TaproomError):
    """Raised when caller-supplied values fail validation."""
    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)


class BusinessLogicError(TaproomError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class NotFoundError(TaproomError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class ConflictError(TaproomError):
    """A concurrent mutation won; the caller may retry a bounded number of times."""
    def __init__(self, message="Concurrent modification, please retry", payload=None):
        super().__init__(message, 409, payload)


class InsufficientStockError(BusinessLogicError):
    """Raised when an operation would drive a ledger below zero."""
    def __init__(self, name, required, available):
        req_fmt = f"{int(required)}" if required % 1 == 0 else f"{required:.3f}".rstrip('0').rstrip('.')
        avail_fmt = f"{int(available)}" if available % 1 == 0 else f"{available:.3f}".rstrip('0').rstrip('.')
        message = f"Insufficient stock for {name}: {req_fmt} required, {avail_fmt} available"
        super().__init__(message, status_code=409, payload={'required': req_fmt, 'available': avail_fmt})


class InternalError(TaproomError):
    """Storage failure or unexpected error; nothing was persisted."""
    def __init__(self, message="Internal error", payload=None):
        super().__init__(message, 500, payload)
