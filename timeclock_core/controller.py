"""
ClockController — the in/out state machine.

    Out --clock_in--> In --clock_out--> Out

The status itself lives in the RecordStore (head of the sequence); the
controller decides the next action, runs the optimistic write / request /
confirm-or-rollback cycle, and makes sure only one of those cycles runs at
a time. The in-flight flag is set before the first await, so on a single
event loop a second tap always sees it.
"""

from .config import log
from .constants import EP_RECORDS, LOCATION_TIMEOUT_SEC
from .errors import (
    ClockActionFailedError, NotAuthenticatedError, OperationInProgressError,
    RequestFailure, ResponseFormatError,
)
from .location import capture_location


class ClockController:
    def __init__(self, session, records, transport, location_provider=None,
                 location_timeout=LOCATION_TIMEOUT_SEC):
        self._session = session
        self._records = records
        self._transport = transport
        self._location_provider = location_provider
        self._location_timeout = location_timeout
        self._in_flight = False

    @property
    def status(self):
        return self._records.status

    @property
    def in_flight(self):
        return self._in_flight

    def _acquire(self):
        if not self._session.is_authenticated:
            raise NotAuthenticatedError("User not authenticated")
        if self._in_flight:
            raise OperationInProgressError("A clock action is already in progress")
        self._in_flight = True

    async def toggle(self):
        """Clock in if out, out if in. Returns the confirmed record."""
        self._acquire()
        try:
            return await self._clock(self._records.status.next_action)
        finally:
            self._in_flight = False

    async def _clock(self, action):
        user_id = self._session.user.id
        location = await capture_location(self._location_provider, self._location_timeout)
        if not self._session.is_authenticated:
            raise NotAuthenticatedError("Session ended while waiting for a location fix")

        record = self._records.begin_optimistic_write(action, location, user_id)
        try:
            response = await self._transport.post(EP_RECORDS, json=record.create_payload())
            data = response.data if isinstance(response.data, dict) else {}
            server_id = data.get("id")
            if server_id is None or server_id == "":
                raise ResponseFormatError("Create-record response carried no id", "POST", EP_RECORDS)
        except RequestFailure as e:
            self._records.rollback(record)
            log.error("%s failed, rolled back: %s", action.value, e)
            raise ClockActionFailedError(e) from e
        except BaseException:
            # Cancelled or crashed mid-request: the optimistic record must not outlive it
            self._records.rollback(record)
            log.warning("%s interrupted, rolled back", action.value)
            raise

        if not self._records.confirm(record, server_id):
            # Session ended while the request was out; nothing left to persist into
            log.warning("%s accepted by server (id=%s) after the session ended", action.value, server_id)
            return record

        self._records.persist()
        log.info("%s confirmed (id=%s, status=%s)", action.value, server_id, self._records.status.value)
        return record

    async def refresh(self, **filters):
        """
        Pull the user's records from the server and reconcile the cache.
        Shares the in-flight guard with toggle so it cannot land on top of
        an optimistic write.
        """
        self._acquire()
        try:
            params = dict(filters)
            params["userId"] = self._session.user.id
            response = await self._transport.get(EP_RECORDS, params=params)
            data = response.data
            if not isinstance(data, dict):
                raise ResponseFormatError("Record list response was not an object", "GET", EP_RECORDS)
            server_records = data.get("records")
            if server_records is None:
                server_records = []
            if not isinstance(server_records, list):
                raise ResponseFormatError("Record list response carried no records list", "GET", EP_RECORDS)
            return self._records.reconcile(server_records)
        finally:
            self._in_flight = False
