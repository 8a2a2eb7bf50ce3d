"""
timeclock_core — Attendance clock client v1.0
=============================================
Architecture: one asyncio event loop, optimistic local writes reconciled
against the backend.

  constants.py   → Version, timeouts, storage keys, endpoint paths
  config.py      → Paths, logging, config load/save, helpers
  errors.py      → Exception taxonomy (transport vs HTTP vs session)
  models.py      → User, ClockRecord, Location, enums
  storage.py     → KeyValueStore: JSON file / in-memory
  http_client.py → requests session with retry/pooling + async TransportClient
  session.py     → Session (token, user, role; login/verify/invalidate)
  records.py     → RecordStore (record cache, derived status, worked hours)
  controller.py  → ClockController (single-flight in/out state machine)
  auth_guard.py  → AuthGuard (401 → sign out + route to login)
  location.py    → Best-effort location capture
  api.py         → Remaining server API calls (timesheets, profile, admin)
  app.py         → TimeClockApp (application context, startup order)
  runner.py      → main() console entry point
"""
