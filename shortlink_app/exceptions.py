"""
Domain exceptions.

Services raise these; ``main.py`` renders them as JSON error bodies.
Each class carries the HTTP status it maps to.
"""


class ShortlinkError(Exception):
    """Base exception for all application-specific errors."""

    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}


class ValidationError(ShortlinkError):
    """Raised for a malformed URL or alias."""

    status_code = 400
    error = "Bad Request"


class ConflictError(ShortlinkError):
    """Raised when a custom alias is already taken."""

    status_code = 409
    error = "Conflict"


class NotFoundError(ShortlinkError):
    """Raised when a short code does not exist."""

    status_code = 404
    error = "Short URL not found"

    def __init__(self, short_code: str):
        super().__init__(f"Short code '{short_code}' does not exist")
        self.short_code = short_code

    def to_dict(self) -> dict:
        return {"error": self.error, "code": self.short_code}


class RateLimitError(ShortlinkError):
    """Raised when a client exceeds the request budget for the window."""

    status_code = 429
    error = "Too Many Requests"


class ShortCodeExhaustedError(ShortlinkError):
    """Raised when no unique random code was found within the retry budget."""

    status_code = 500
    error = "Internal Server Error"
