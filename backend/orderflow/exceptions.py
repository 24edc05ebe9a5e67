"""Error taxonomy shared by services, consumers and the HTTP layer.

Each error carries the HTTP status and the machine-readable code used in the
``{"error": ..., "message": ...}`` response body.
"""


class OrderflowError(Exception):
    status_code = 500
    error = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(OrderflowError):
    """Bad input or an illegal state transition. Not retried."""

    status_code = 400
    error = "VALIDATION_ERROR"


class UnauthorizedError(OrderflowError):
    status_code = 401
    error = "UNAUTHORIZED"


class ForbiddenError(OrderflowError):
    status_code = 403
    error = "FORBIDDEN"


class NotFoundError(OrderflowError):
    status_code = 404
    error = "NOT_FOUND"


class ExternalServiceError(OrderflowError):
    """A collaborator was unreachable or answered with a failure. Safe for the caller to retry."""

    status_code = 502
    error = "EXTERNAL_SERVICE_ERROR"


class TransientInfraError(OrderflowError):
    """Bus or connection trouble. Consumers retry these with backoff."""

    status_code = 503
    error = "SERVICE_UNAVAILABLE"


class MalformedEvent(OrderflowError):
    """Undecodable payload or missing type tag. The message is dropped."""

    status_code = 400
    error = "MALFORMED_EVENT"
