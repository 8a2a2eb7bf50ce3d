"""
Server API calls — record maintenance, timesheets, profile, reports, admin.

Clock in/out and login go through ClockController and Session; this is
everything else the backend offers. All calls carry the bearer token and
return the decoded response body. Failures propagate as RequestFailure.
"""

from .config import log
from .constants import (
    EP_APPROVE_TIMESHEET, EP_PROFILE, EP_RECORD, EP_RECORDS, EP_REPORT,
    EP_TEAM_RECORDS, EP_TIMESHEET_EXPORT, EP_TIMESHEET_SUMMARY,
)
from .errors import AuthorizationError, NotAuthenticatedError
from .models import ClockRecord, Role


class TimeClockAPI:
    def __init__(self, transport, session):
        self._transport = transport
        self._session = session

    def _require_session(self):
        if not self._session.is_authenticated:
            raise NotAuthenticatedError("User not authenticated")

    def _require_role(self, *roles):
        self._require_session()
        if not self._session.has_role(*roles):
            raise AuthorizationError(
                f"Role {self._session.role.value} may not perform this action"
            )

    async def _call(self, method, path, **kwargs):
        self._require_session()
        response = await self._transport.send(method, path, **kwargs)
        return response.data

    # ─── Clock records ───────────────────────────────────────

    async def list_records(self, **filters):
        """Records for the signed-in user, newest first. Filters go in the query string."""
        params = dict(filters)
        params["userId"] = self._session.user.id if self._session.user else None
        data = await self._call("GET", EP_RECORDS, params=params)
        records = []
        for raw in (data or {}).get("records") or []:
            try:
                records.append(ClockRecord.from_dict(raw))
            except (KeyError, ValueError, TypeError) as e:
                log.warning("Skipping malformed server record %r: %s", raw, e)
        records.sort(key=lambda r: r.timestamp, reverse=True)
        return records

    async def update_record(self, record_id, updates):
        data = await self._call("PATCH", EP_RECORD.format(record_id=record_id), json=updates)
        log.info("Record %s updated", record_id)
        return data

    async def delete_record(self, record_id):
        data = await self._call("DELETE", EP_RECORD.format(record_id=record_id))
        log.info("Record %s deleted", record_id)
        return data

    # ─── Timesheets / reports ────────────────────────────────

    async def timesheet_summary(self, **date_range):
        return await self._call("GET", EP_TIMESHEET_SUMMARY, params=date_range)

    async def export_timesheet(self, fmt="csv", **date_range):
        params = dict(date_range)
        params["format"] = fmt
        return await self._call("GET", EP_TIMESHEET_EXPORT, params=params)

    async def generate_report(self, report_type, **params):
        return await self._call("GET", EP_REPORT.format(report_type=report_type), params=params)

    # ─── Profile ─────────────────────────────────────────────

    async def get_profile(self):
        return await self._call("GET", EP_PROFILE)

    async def update_profile(self, updates):
        return await self._call("PATCH", EP_PROFILE, json=updates)

    # ─── Admin (manager/admin only) ──────────────────────────

    async def team_records(self, team_id, **date_range):
        self._require_role(Role.MANAGER, Role.ADMIN)
        return await self._call("GET", EP_TEAM_RECORDS.format(team_id=team_id), params=date_range)

    async def approve_timesheet(self, timesheet_id):
        self._require_role(Role.MANAGER, Role.ADMIN)
        data = await self._call("POST", EP_APPROVE_TIMESHEET.format(timesheet_id=timesheet_id))
        log.info("Timesheet %s approved", timesheet_id)
        return data
