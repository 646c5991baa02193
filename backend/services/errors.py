"""
Service-layer exceptions.

Views translate these into JSON responses using `code` as the HTTP status.
"""


class ServiceError(Exception):
    code = 500

    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(ServiceError):
    """Malformed or missing input."""
    code = 400


class NotFoundError(ServiceError):
    code = 404


class UnauthorizedError(ServiceError):
    """Requester does not own the resource (403) or has no valid session (401)."""
    code = 403


class UpstreamFailure(ServiceError):
    """The database or the storage collaborator failed."""
    code = 502
