"""
Exception hierarchy for the reviews API.

Every error carries an HTTP status and a machine-readable code; the handlers in
main.py turn them into structured JSON bodies. Anything that is not a
ReviewsError is treated as unexpected and reported as a 500.
"""

from typing import Any, Optional


class ReviewsError(Exception):
    """Base exception for recoverable, caller-facing errors."""

    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(ReviewsError):
    """Raised when a resource looked up by id does not exist."""

    status_code = 404
    code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource: str, identifier: Optional[Any] = None):
        if identifier is not None:
            message = f"{resource} with identifier '{identifier}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(message, {"resource": resource, "identifier": identifier})


class ValidationError(ReviewsError):
    """Raised when query parameters are malformed or out of range.

    Examples:
        - minRating greater than maxRating
        - unparseable from/to dates
        - page below 1
    """

    status_code = 400
    code = "VALIDATION_ERROR"


class InvalidOperationError(ReviewsError):
    """Raised when a request breaks a business rule."""

    status_code = 400
    code = "INVALID_OPERATION"
