"""
TimeClockApp — the application context.

Owns one of each component and wires them together explicitly; nothing is
reached through module globals. The entry point creates it, calls start(),
and drives it from there. Everything here runs on one asyncio event loop.

Startup order matters: the cached session and records are restored first
(no network), so the last known state is available even offline; only
then is the token verified and the cache refreshed from the server.
"""

from .api import TimeClockAPI
from .auth_guard import AuthGuard
from .config import load_config, log, store_file
from .constants import (
    DEFAULT_TIMEOUT_SEC, PAGE_INDEX, PAGE_LOGIN, PAGE_TIMESHEET, PUSH_CLOCK_REMINDER,
)
from .controller import ClockController
from .errors import ClockActionFailedError, OperationInProgressError, RequestFailure, TransportFailure
from .http_client import TransportClient
from .location import StaticLocationProvider
from .models import ClockAction
from .records import RecordStore
from .session import Session
from .storage import JsonFileStore


class LogNavigator:
    """
    Presentation stand-in: records where the app wanted to go and what it
    wanted to say, and logs it. A real front end supplies its own object
    with the same four methods.
    """

    def __init__(self, auto_confirm=True):
        self.auto_confirm = auto_confirm
        self.current_page = PAGE_INDEX
        self.history = []
        self.toasts = []

    def route_to(self, page):
        log.info("Navigate → %s", page)
        self.current_page = page
        self.history.append(page)

    def route_to_login(self):
        self.route_to(PAGE_LOGIN)

    def show_toast(self, title, icon="none"):
        log.info("Toast [%s] %s", icon, title)
        self.toasts.append((title, icon))

    def prompt(self, title, content, confirm_text):
        log.info("Prompt %r: %s [%s]", title, content, confirm_text)
        return self.auto_confirm


class TimeClockApp:
    def __init__(self, config=None, store=None, transport=None, navigator=None,
                 location_provider=None):
        self.config = config if config is not None else load_config()
        self.store = store if store is not None else JsonFileStore(store_file())
        self.transport = transport or TransportClient(
            self.config["apiUrl"], timeout=self.config.get("timeoutSec") or DEFAULT_TIMEOUT_SEC,
        )
        self.navigator = navigator or LogNavigator()

        self.records = RecordStore(self.store)
        self.session = Session(self.store, self.transport, self.records)
        self.transport.token_source = self.session.current_token
        self.guard = AuthGuard(self.session, self.navigator).attach(self.transport)
        self.api = TimeClockAPI(self.transport, self.session)

        if location_provider is None:
            location_provider = StaticLocationProvider.from_config(self.config.get("location"))
        self.controller = ClockController(
            self.session, self.records, self.transport, location_provider,
        )

    # ─── Lifecycle ───────────────────────────────────────────

    async def start(self):
        """Restore, render from cache, then check the token and sync."""
        self.session.restore()
        self.records.load()

        if not self.session.is_authenticated:
            log.info("No stored session — login required")
            return False

        if not await self.session.verify():
            log.warning("Stored token rejected — signing out")
            self.logout()
            return False

        await self.sync()
        return True

    async def sync(self, **filters):
        """Best-effort refresh of the record cache. Failures keep the cache as is."""
        try:
            await self.controller.refresh(**filters)
            return True
        except OperationInProgressError:
            log.info("Sync skipped — clock action in progress")
        except RequestFailure as e:
            log.warning("Failed to load records from server: %s", e)
        return False

    async def login(self, code):
        user = await self.session.login(code)
        await self.sync()
        return user

    def logout(self):
        self.session.logout()
        self.navigator.route_to(PAGE_INDEX)

    # ─── Clock ───────────────────────────────────────────────

    @property
    def status(self):
        return self.controller.status

    async def clock(self):
        """Toggle with user feedback. Errors still propagate to the caller."""
        try:
            record = await self.controller.toggle()
        except ClockActionFailedError as e:
            self.navigator.show_toast("Operation failed", icon="error")
            if isinstance(e.cause, TransportFailure):
                self.transport.reset()
            raise

        if record.action == ClockAction.CLOCK_IN:
            self.navigator.show_toast("Clocked In Successfully", icon="success")
        else:
            self.navigator.show_toast("Clocked Out Successfully", icon="success")
        return record

    def worked_hours(self, day=None):
        return self.records.worked_hours(day)

    # ─── Inbound events ──────────────────────────────────────

    def handle_push_message(self, message):
        """A clock reminder offers to jump to the clock page. Other types are ignored."""
        if (message or {}).get("type") != PUSH_CLOCK_REMINDER:
            return False
        if self.navigator.prompt("Clock Reminder", "Time to clock in/out!", "Clock Now"):
            self.navigator.route_to(PAGE_INDEX)
        return True

    def handle_deep_link(self, query):
        action = (query or {}).get("action")
        if action == "clock":
            self.navigator.route_to(PAGE_INDEX)
        elif action == "timesheet":
            self.navigator.route_to(PAGE_TIMESHEET)
        else:
            return False
        return True

    def close(self):
        self.transport.close()
