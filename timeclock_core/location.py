"""
Best-effort location capture.

A provider is any coroutine function returning a Location or None. A clock
action never waits longer than the timeout for it and never fails because
of it: errors and timeouts just mean "no location".
"""

import asyncio

from .config import log
from .constants import LOCATION_TIMEOUT_SEC
from .models import Location


async def no_location():
    return None


class StaticLocationProvider:
    """Fixed position from config, e.g. a kiosk bolted to the wall."""

    def __init__(self, latitude, longitude, accuracy=None):
        self._location = Location(float(latitude), float(longitude),
                                  None if accuracy is None else float(accuracy))

    @classmethod
    def from_config(cls, data):
        if not data:
            return None
        return cls(data["latitude"], data["longitude"], data.get("accuracy"))

    async def __call__(self):
        return self._location


async def capture_location(provider, timeout=LOCATION_TIMEOUT_SEC):
    if provider is None:
        return None
    try:
        return await asyncio.wait_for(provider(), timeout=timeout)
    except asyncio.TimeoutError:
        log.info("Location fix timed out after %ss — continuing without it", timeout)
    except Exception as e:
        log.info("Location unavailable (%s) — continuing without it", e)
    return None
