"""
Session — authentication token, user identity and role.

Authenticated means: token present, user present, not invalidated since.
Invalidation cascades into the RecordStore so that a signed-out client
never shows the previous user's records.
"""

from .config import log
from .constants import EP_LOGIN, EP_VERIFY, KEY_AUTH_TOKEN, KEY_USER_INFO, VERIFY_TIMEOUT_SEC
from .errors import AuthenticationError, RequestFailure
from .models import Role, User


class Session:
    def __init__(self, store, transport, records):
        self._store = store
        self._transport = transport
        self._records = records
        self.token = None
        self.user = None

    # ─── State ───────────────────────────────────────────────

    @property
    def is_authenticated(self):
        return bool(self.token) and self.user is not None

    @property
    def role(self):
        return self.user.role if self.user else Role.EMPLOYEE

    @property
    def is_empty(self):
        return self.token is None and self.user is None

    def current_token(self):
        """Token for the bearer header; None once the session is gone."""
        return self.token if self.is_authenticated else None

    def has_role(self, *roles):
        return self.is_authenticated and self.role in roles

    def _adopt(self, token, user):
        self.token = token
        self.user = user

    # ─── Restore / login ─────────────────────────────────────

    def restore(self):
        """Pick up the persisted token/user. Freshness is checked separately by verify()."""
        token = self._store.get(KEY_AUTH_TOKEN)
        user_info = self._store.get(KEY_USER_INFO)
        if not token or not user_info:
            return self

        try:
            user = User.from_dict(user_info)
        except ValueError as e:
            log.warning("Stored user info is unusable (%s); staying signed out", e)
            return self

        self._adopt(token, user)
        log.info("Restored session for user %s (%s)", user.id, user.role.value)
        return self

    async def login(self, code):
        """
        Exchange an external-provider authorization code for {token, user}.
        Nothing changes unless the whole exchange succeeds.
        """
        try:
            response = await self._transport.post(EP_LOGIN, json={"code": code}, auth=False)
        except RequestFailure as e:
            log.error("Login failed: %s", e)
            raise AuthenticationError("Authentication failed") from e

        data = response.data if isinstance(response.data, dict) else {}
        token = data.get("token")
        try:
            user = User.from_dict(data.get("user"))
        except ValueError as e:
            log.error("Login response unusable: %s", e)
            raise AuthenticationError("Authentication failed: malformed login response") from e
        if not token:
            log.error("Login response carried no token")
            raise AuthenticationError("Authentication failed: no token issued")

        if self.user is None or self.user.id != user.id:
            # Cached records belong to whoever was signed in before
            self._records.clear()
        self._store.set(KEY_AUTH_TOKEN, token)
        self._store.set(KEY_USER_INFO, user.to_dict())
        self._adopt(token, user)
        log.info("Logged in as %s (%s)", user.id, user.role.value)
        return user

    async def verify(self, token=None):
        """Best-effort freshness check. Never raises."""
        token = token or self.token
        if not token:
            return False
        try:
            response = await self._transport.get(
                EP_VERIFY,
                headers={"Authorization": f"Bearer {token}"},
                timeout=VERIFY_TIMEOUT_SEC,
            )
        except RequestFailure as e:
            log.info("Token verification failed: %s", e)
            return False
        return response.ok

    # ─── Teardown ────────────────────────────────────────────

    def invalidate(self):
        """
        Forget token and user, persisted copies included, and clear the
        record cache. A no-op (returns False) when already empty.
        """
        if self.is_empty:
            return False

        self.token = None
        self.user = None
        self._store.delete(KEY_AUTH_TOKEN)
        self._store.delete(KEY_USER_INFO)
        self._records.clear()
        log.info("Session invalidated")
        return True

    def logout(self):
        log.info("User logout")
        return self.invalidate()
