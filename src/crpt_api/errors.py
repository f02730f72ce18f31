# ABOUTME: Exception taxonomy for the CRPT document submission client.
# ABOUTME: Every failure a caller can observe is a CrptApiError subclass.


class CrptApiError(Exception):
    """Base class for all errors raised by crpt_api."""
    pass


class InvalidConfiguration(CrptApiError, ValueError):
    """Raised when a limiter or client is constructed with invalid settings."""
    pass


class Interrupted(CrptApiError):
    """Raised when a caller is cancelled while waiting for admission.

    No admission slot or capacity token is held when this is raised.
    """
    pass


class SerializationFailure(CrptApiError):
    """Raised when a document cannot be encoded as JSON."""
    pass


class IOFailure(CrptApiError):
    """Raised on transport errors (connection refused, timeouts, ...)."""
    pass


class ApiRequestFailed(CrptApiError):
    """Raised when the endpoint answers with an error status (>= 400)."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        message = f"API request failed with status code: {status_code}"
        if body:
            message = f"{message} ({body})"
        super().__init__(message)
