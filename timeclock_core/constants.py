"""
Constants: version, network timeouts, storage keys, endpoint paths.
"""

APP_VERSION = "1.0.0"

# ─── Network ─────────────────────────────────────────────────────
DEFAULT_API_URL = "https://your-api.com/api/v1"
DEFAULT_TIMEOUT_SEC = 10       # Every request unless overridden
VERIFY_TIMEOUT_SEC = 10
LOCATION_TIMEOUT_SEC = 10      # Give up on a location fix after this

# Only a bare 401 means "your token is no good"; 403 is a permission problem
UNAUTHORIZED_STATUSES = frozenset({401})

# ─── Persisted keys (KeyValueStore schema) ───────────────────────
KEY_AUTH_TOKEN = "authToken"
KEY_USER_INFO = "userInfo"
KEY_CLOCK_RECORDS = "clockRecords"
KEY_CURRENT_STATUS = "currentStatus"

# ─── Endpoints ───────────────────────────────────────────────────
EP_LOGIN = "/auth/wechat-login"
EP_VERIFY = "/auth/verify"
EP_RECORDS = "/clock/records"
EP_RECORD = "/clock/records/{record_id}"
EP_TIMESHEET_SUMMARY = "/timesheet/summary"
EP_TIMESHEET_EXPORT = "/timesheet/export"
EP_PROFILE = "/user/profile"
EP_REPORT = "/reports/{report_type}"
EP_TEAM_RECORDS = "/admin/team/{team_id}/records"
EP_APPROVE_TIMESHEET = "/admin/timesheets/{timesheet_id}/approve"

# ─── Presentation routes ─────────────────────────────────────────
PAGE_INDEX = "/pages/index/index"
PAGE_LOGIN = "/pages/login/login"
PAGE_TIMESHEET = "/pages/timesheet/timesheet"

PUSH_CLOCK_REMINDER = "clock_reminder"
