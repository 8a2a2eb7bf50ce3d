"""
Error taxonomy.

Request failures come in two kinds so callers can tell "server rejected"
(HttpStatusFailure, carries the status code) from "could not reach server"
(TransportFailure, no status). Everything the clock/session layer raises
derives from TimeClockError.
"""


class TimeClockError(Exception):
    """Base exception for the client core."""


# ─── Transport ───────────────────────────────────────────────────

class RequestFailure(TimeClockError):
    """A request to the backend did not succeed."""

    status_code = None

    def __init__(self, message, method=None, path=None):
        super().__init__(message)
        self.message = message
        self.method = method
        self.path = path


class TransportFailure(RequestFailure):
    """Network-level failure: timeout, DNS, refused connection, broken TLS."""

    def __init__(self, message, method=None, path=None, timed_out=False):
        super().__init__(message, method, path)
        self.timed_out = timed_out


class HttpStatusFailure(RequestFailure):
    """The server answered with a status >= 400."""

    def __init__(self, status_code, message, method=None, path=None):
        super().__init__(f"HTTP {status_code}: {message}", method, path)
        self.status_code = status_code
        self.server_message = message


class ResponseFormatError(RequestFailure):
    """A 2xx response whose body is missing something we need."""


# ─── Session / clock ─────────────────────────────────────────────

class AuthenticationError(TimeClockError):
    """Raised when the login exchange fails."""


class NotAuthenticatedError(TimeClockError):
    """Raised when an action needs a session and there is none."""


class AuthorizationError(TimeClockError):
    """Raised when the signed-in user lacks the role for an action."""


class OperationInProgressError(TimeClockError):
    """Raised when a clock action is attempted while another is in flight."""


class ClockActionFailedError(TimeClockError):
    """A clock action failed remotely and was rolled back locally."""

    def __init__(self, cause):
        super().__init__(f"Clock action failed: {cause}")
        self.cause = cause
