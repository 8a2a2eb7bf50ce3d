"""
Paths, logging setup, config load/save, safe_print.
"""

import os
import json
import sys
import logging
from pathlib import Path

from .constants import DEFAULT_API_URL, DEFAULT_TIMEOUT_SEC


# ─── Paths ───────────────────────────────────────────────────────
# One config/state folder per user. TIMECLOCK_HOME overrides it (tests, kiosks).
_FOLDER_NAME = ".timeclock"


def base_dir():
    override = os.environ.get("TIMECLOCK_HOME")
    if override:
        return Path(override)
    return Path.home() / _FOLDER_NAME


def config_file():
    return base_dir() / "config.json"


def log_file():
    return base_dir() / "timeclock.log"


def store_file():
    return base_dir() / "storage.json"


# ─── Safe print (no crash when stdout is gone) ───────────────────

def safe_print(*args, **kwargs):
    try:
        print(*args, **kwargs)
    except Exception:
        pass


# ─── Logging ─────────────────────────────────────────────────────

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

log = logging.getLogger("timeclock")


def setup_logging(level=logging.INFO, console=True):
    """Attach the file (+ optional stdout) handlers. Called once by the entry point."""
    path = log_file()
    path.parent.mkdir(parents=True, exist_ok=True)

    # Keep the log small; start over past 1 MB
    try:
        if path.exists() and path.stat().st_size > 1_000_000:
            path.write_text("")
    except OSError:
        pass

    log.setLevel(level)
    file_handler = logging.FileHandler(str(path), encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    log.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(console_handler)
    return log


# ─── Config Management ──────────────────────────────────────────

DEFAULT_CONFIG = {
    "apiUrl": DEFAULT_API_URL,
    "timeoutSec": DEFAULT_TIMEOUT_SEC,
    "location": None,
}


def load_config():
    """Load config from disk merged over the defaults. Env vars win."""
    config = dict(DEFAULT_CONFIG)
    path = config_file()
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                config.update(json.load(f))
        except (json.JSONDecodeError, IOError) as e:
            log.warning("Ignoring unreadable config %s: %s", path, e)

    env_url = os.environ.get("TIMECLOCK_API_URL")
    if env_url:
        config["apiUrl"] = env_url
    return config
