"""
HTTP session with connection pooling, automatic retry, and the async
TransportClient every backend call goes through.

The blocking requests call runs in a worker thread (asyncio.to_thread), so
a request suspends only the awaiting coroutine, never the event loop.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import log
from .constants import DEFAULT_TIMEOUT_SEC
from .errors import HttpStatusFailure, TransportFailure

# POST is left out on purpose: a retried create would clock the user twice.
_retry_strategy = Retry(
    total=3,
    backoff_factor=1,                           # Wait 1s, 2s, 4s between retries
    status_forcelist=[502, 503, 504],
    allowed_methods=["HEAD", "GET", "PATCH", "DELETE"],
    raise_on_status=False,                      # Hand the last response back
)


def _get_ca_bundle():
    """certifi's bundle when available, otherwise the system default."""
    try:
        import certifi
        return certifi.where()
    except ImportError:
        return True


def create_session():
    """Create a new requests.Session with connection pooling, retry, and SSL."""
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=1,
        pool_maxsize=4,
        max_retries=_retry_strategy,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.verify = _get_ca_bundle()
    return session


def reset_session(session):
    """Close and recreate the HTTP session (fixes stale connections)."""
    try:
        session.close()
    except Exception as e:
        log.debug("Ignoring error while closing HTTP session: %s", e)
    return create_session()


@dataclass
class ApiResponse:
    method: str
    path: str
    status_code: int
    data: Any
    authenticated: bool = False     # True if the request carried a bearer token

    @property
    def ok(self):
        return 200 <= self.status_code < 300


def _parse_body(resp):
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


def _server_message(data, fallback="Request failed"):
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return fallback


class TransportClient:
    """
    Composes URLs against the base endpoint, injects the JSON content type
    and the bearer token, applies the default timeout and classifies the
    outcome:

      2xx            → ApiResponse
      status >= 400  → HttpStatusFailure(status_code, server message)
      no response    → TransportFailure (timed_out=True for timeouts)

    Every received response (success or not) is handed to each registered
    observer exactly once, before classification.
    """

    def __init__(self, base_url, timeout=DEFAULT_TIMEOUT_SEC, token_source=None, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token_source: Optional[Callable[[], Optional[str]]] = token_source
        self._http = session or create_session()
        self._observers = []

    def add_observer(self, observer):
        self._observers.append(observer)

    def url_for(self, path):
        return f"{self.base_url}/{path.lstrip('/')}"

    def reset(self):
        self._http = reset_session(self._http)

    def close(self):
        self._http.close()

    def _headers(self, extra, auth):
        headers = {"Content-Type": "application/json"}
        token = self.token_source() if (auth and self.token_source) else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if extra:
            headers.update(extra)
        return headers

    async def send(self, method, path, *, params=None, json=None, headers=None,
                   timeout=None, auth=True):
        method = method.upper()
        merged = self._headers(headers, auth)
        try:
            resp = await asyncio.to_thread(
                self._http.request,
                method,
                self.url_for(path),
                params=params,
                json=json,
                headers=merged,
                timeout=timeout or self.timeout,
            )
        except requests.Timeout as e:
            log.warning("%s %s timed out: %s", method, path, e)
            raise TransportFailure(f"Request timed out: {e}", method, path, timed_out=True) from e
        except requests.RequestException as e:
            log.warning("%s %s network error: %s", method, path, e)
            raise TransportFailure(f"Network error: {e}", method, path) from e

        response = ApiResponse(
            method=method,
            path=path,
            status_code=resp.status_code,
            data=_parse_body(resp),
            authenticated="Authorization" in merged,
        )
        for observer in self._observers:
            observer(response)

        if resp.status_code >= 400:
            message = _server_message(response.data)
            log.warning("%s %s failed: HTTP %d — %s", method, path, resp.status_code, message)
            raise HttpStatusFailure(resp.status_code, message, method, path)
        return response

    async def get(self, path, **kwargs):
        return await self.send("GET", path, **kwargs)

    async def post(self, path, **kwargs):
        return await self.send("POST", path, **kwargs)

    async def patch(self, path, **kwargs):
        return await self.send("PATCH", path, **kwargs)

    async def delete(self, path, **kwargs):
        return await self.send("DELETE", path, **kwargs)
