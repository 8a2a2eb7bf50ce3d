"""
Console entry point.

    timeclock login CODE      exchange a provider login code for a session
    timeclock status          current in/out status (cached if offline)
    timeclock clock           toggle in/out
    timeclock hours [--date]  worked hours from the local records
    timeclock records         list cached records
    timeclock logout
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone

from .app import TimeClockApp
from .config import log, safe_print, setup_logging
from .constants import APP_VERSION
from .errors import TimeClockError


def _build_parser():
    parser = argparse.ArgumentParser(prog="timeclock", description="Attendance clock client")
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="log to the console too")
    parser.add_argument("--offline", action="store_true",
                        help="use cached state only, skip token check and sync")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="sign in with a provider login code")
    login.add_argument("code")
    sub.add_parser("logout", help="sign out and drop the local cache")
    sub.add_parser("status", help="show clock status")
    sub.add_parser("clock", help="clock in or out")
    hours = sub.add_parser("hours", help="worked hours")
    hours.add_argument("--date", help="only this ISO date (YYYY-MM-DD)")
    sub.add_parser("records", help="list cached records")
    return parser


def _format_record(record):
    when = datetime.fromtimestamp(record.timestamp / 1000, tz=timezone.utc)
    return f"{when:%Y-%m-%d %H:%M} UTC  {record.action.value:<9}  {record.sync_state.value:<9}  {record.id or '-'}"


async def _start(app, offline):
    if offline:
        app.session.restore()
        app.records.load()
        return app.session.is_authenticated
    return await app.start()


async def _run(app, args):
    if args.command == "login":
        app.session.restore()
        app.records.load()
        user = await app.login(args.code)
        safe_print(f"Logged in as {user.name or user.id} ({user.role.value})")
        return 0

    signed_in = await _start(app, args.offline)

    if args.command == "logout":
        app.logout()
        safe_print("Logged out.")
        return 0

    if not signed_in:
        safe_print("Not logged in. Run: timeclock login CODE")
        return 1

    if args.command == "status":
        safe_print(f"Status: {app.status.value}")
        head = app.records.head
        if head is not None:
            safe_print("Last:   " + _format_record(head))
    elif args.command == "clock":
        record = await app.clock()
        safe_print(f"{record.action.value} at {_format_record(record)}")
    elif args.command == "hours":
        safe_print(f"{app.worked_hours(args.date):.2f} h")
    elif args.command == "records":
        for record in app.records.records:
            safe_print(_format_record(record))
    return 0


def main(argv=None):
    args = _build_parser().parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO, console=args.verbose)

    app = TimeClockApp()
    try:
        return asyncio.run(_run(app, args))
    except TimeClockError as e:
        log.error("%s failed: %s", args.command, e)
        safe_print(f"Error: {e}")
        return 1
    except KeyboardInterrupt:
        safe_print("\nInterrupted.")
        return 130
    finally:
        app.close()


if __name__ == "__main__":
    sys.exit(main())
