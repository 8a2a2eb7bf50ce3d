"""
Name: Session Tests

Responsibilities:
  - Restore from storage, login exchange, token verification
  - Record cache reset when a different user signs in
  - Invalidation cascade into the RecordStore
"""

import pytest

from timeclock_core.constants import (
    EP_LOGIN, EP_VERIFY, KEY_AUTH_TOKEN, KEY_CLOCK_RECORDS, KEY_CURRENT_STATUS, KEY_USER_INFO,
)
from timeclock_core.errors import AuthenticationError, TransportFailure
from timeclock_core.models import ClockAction, ClockStatus, Role
from timeclock_core.storage import MemoryStore


@pytest.mark.unit
class TestRestore:
    def test_restore_from_storage(self, app):
        assert app.session.is_authenticated
        assert app.session.token == "tok-123"
        assert app.session.user.id == "u-1"
        assert app.session.role is Role.EMPLOYEE

    def test_restore_with_nothing_stored(self, app_factory):
        app = app_factory(MemoryStore())
        app.session.restore()
        assert not app.session.is_authenticated

    def test_restore_ignores_broken_user_info(self, app_factory):
        app = app_factory(MemoryStore({KEY_AUTH_TOKEN: "t", KEY_USER_INFO: {"name": "nobody"}}))
        app.session.restore()
        assert not app.session.is_authenticated

    def test_unknown_role_falls_back_to_employee(self, app_factory):
        app = app_factory(MemoryStore({KEY_AUTH_TOKEN: "t", KEY_USER_INFO: {"id": 7, "role": "ceo"}}))
        app.session.restore()
        assert app.session.user.id == "7"
        assert app.session.role is Role.EMPLOYEE


@pytest.mark.unit
class TestLogin:
    @pytest.mark.asyncio
    async def test_login_persists_token_and_user(self, app_factory, transport, store):
        app = app_factory(store)
        transport.queue("POST", EP_LOGIN, {"token": "new-tok", "user": {"id": "m-9", "role": "manager"}})

        user = await app.session.login("wx-code")

        assert user.id == "m-9"
        assert user.role is Role.MANAGER
        assert app.session.is_authenticated
        assert store.get(KEY_AUTH_TOKEN) == "new-tok"
        assert store.get(KEY_USER_INFO)["id"] == "m-9"
        call = transport.calls_to("POST", EP_LOGIN)[0]
        assert call["json"] == {"code": "wx-code"}
        assert call["authenticated"] is False

    @pytest.mark.asyncio
    async def test_failed_login_leaves_prior_state(self, app, transport, signed_in_store):
        transport.queue("POST", EP_LOGIN, {"message": "invalid code"}, status=401)

        with pytest.raises(AuthenticationError):
            await app.session.login("bad")

        assert app.session.is_authenticated
        assert app.session.token == "tok-123"
        assert signed_in_store.get(KEY_AUTH_TOKEN) == "tok-123"

    @pytest.mark.asyncio
    async def test_network_failure_is_authentication_error(self, app_factory, transport, store):
        app = app_factory(store)
        transport.fail("POST", EP_LOGIN, TransportFailure("Network error: refused"))

        with pytest.raises(AuthenticationError) as exc_info:
            await app.session.login("code")

        assert isinstance(exc_info.value.__cause__, TransportFailure)
        assert not app.session.is_authenticated
        assert KEY_AUTH_TOKEN not in store

    @pytest.mark.asyncio
    async def test_response_without_token_is_rejected(self, app_factory, transport, store):
        app = app_factory(store)
        transport.queue("POST", EP_LOGIN, {"user": {"id": "u-1"}})

        with pytest.raises(AuthenticationError):
            await app.session.login("code")
        assert not app.session.is_authenticated

    @pytest.mark.asyncio
    async def test_login_as_other_user_drops_previous_records(self, app, transport, signed_in_store):
        app.records.reconcile([{"id": "1", "action": "clock_in", "timestamp": 1000, "userId": "u-1"}])
        app.records.persist()
        assert app.records.status is ClockStatus.IN
        transport.queue("POST", EP_LOGIN, {"token": "tok-456", "user": {"id": "u-2"}})

        await app.session.login("code")

        assert app.session.user.id == "u-2"
        assert app.records.records == []
        assert app.records.status is ClockStatus.OUT
        assert KEY_CLOCK_RECORDS not in signed_in_store
        assert KEY_CURRENT_STATUS not in signed_in_store

    @pytest.mark.asyncio
    async def test_login_as_same_user_keeps_records(self, app, transport):
        app.records.reconcile([{"id": "1", "action": "clock_in", "timestamp": 1000, "userId": "u-1"}])
        transport.queue("POST", EP_LOGIN, {"token": "tok-789", "user": {"id": "u-1"}})

        await app.session.login("code")

        assert [r.id for r in app.records.records] == ["1"]
        assert app.records.status is ClockStatus.IN


@pytest.mark.unit
class TestVerify:
    @pytest.mark.asyncio
    async def test_valid_token(self, app, transport):
        transport.queue("GET", EP_VERIFY, {"valid": True})
        assert await app.session.verify() is True
        assert transport.calls[0]["headers"] == {"Authorization": "Bearer tok-123"}

    @pytest.mark.asyncio
    async def test_server_error_is_false(self, app, transport):
        transport.queue("GET", EP_VERIFY, {"message": "boom"}, status=500)
        assert await app.session.verify() is False

    @pytest.mark.asyncio
    async def test_transport_failure_is_false(self, app, transport):
        transport.fail("GET", EP_VERIFY, TransportFailure("timed out", timed_out=True))
        assert await app.session.verify() is False

    @pytest.mark.asyncio
    async def test_no_token_skips_request(self, app_factory, transport):
        app = app_factory(MemoryStore())
        assert await app.session.verify() is False
        assert transport.calls == []


@pytest.mark.unit
class TestInvalidate:
    def test_invalidate_clears_session_and_records(self, app, signed_in_store):
        app.records.reconcile([{"id": "1", "action": "clock_in", "timestamp": 1000, "userId": "u-1"}])
        assert app.records.status is ClockStatus.IN

        assert app.session.invalidate() is True

        assert not app.session.is_authenticated
        assert app.session.token is None and app.session.user is None
        assert app.records.records == []
        assert app.records.status is ClockStatus.OUT
        for key in (KEY_AUTH_TOKEN, KEY_USER_INFO, KEY_CLOCK_RECORDS):
            assert key not in signed_in_store

    def test_second_invalidate_is_noop(self, app):
        app.records.begin_optimistic_write(ClockAction.CLOCK_IN, None, "u-1")
        assert app.session.invalidate() is True
        assert app.session.invalidate() is False
        assert app.records.records == []

    def test_current_token_gone_after_invalidate(self, app):
        assert app.session.current_token() == "tok-123"
        app.session.logout()
        assert app.session.current_token() is None
