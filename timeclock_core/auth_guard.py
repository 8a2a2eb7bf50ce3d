"""
AuthGuard — turns an unauthorized response into a signed-out client.

Registered as a TransportClient observer, so it sees every response once,
whichever call produced it. The originating call still raises its own
HttpStatusFailure; the guard only adds the side effect.
"""

from .config import log
from .constants import UNAUTHORIZED_STATUSES


class AuthGuard:
    def __init__(self, session, navigator=None):
        self._session = session
        self._navigator = navigator
        self.interceptions = 0

    def attach(self, transport):
        transport.add_observer(self)
        return self

    def __call__(self, response):
        # A login attempt with bad credentials carries no bearer token; that
        # is the caller's AuthenticationError, not an expired session.
        if response.status_code not in UNAUTHORIZED_STATUSES or not response.authenticated:
            return

        self.interceptions += 1
        log.warning("HTTP %d on %s %s — session rejected by server",
                    response.status_code, response.method, response.path)
        if self._session.invalidate() and self._navigator is not None:
            self._navigator.route_to_login()
