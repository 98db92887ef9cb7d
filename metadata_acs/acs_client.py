"""Post extracted items to the ACS external data API."""

from __future__ import annotations

import enum
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Dict, Optional

import requests
import urllib3
from requests.auth import AuthBase, HTTPBasicAuth, HTTPDigestAuth

from .config import Settings
from .envelope import EnvelopeBuilder
from .models import ItemList, SendResult

log = logging.getLogger(__name__)

MISSING_CONFIG = "Missing config"
BAD_ADDRESS = "Bad IP:Port"
UNAUTHORIZED = "Unauthorized"
BAD_SOURCE_ID = "Bad source ID"
UNKNOWN_ERROR = "Unknown Error"

_STATUS_ERRORS = {
    401: UNAUTHORIZED,
    400: BAD_SOURCE_ID,
}


class SendMode(enum.Enum):
    ASYNC = "async"
    SYNC = "sync"


@dataclass(frozen=True)
class ACSCredentials:
    host: str = ""
    source_id: str = ""
    username: str = ""
    password: str = ""
    enabled: str = ""

    @property
    def ready(self) -> bool:
        return self.enabled == "yes" and all(
            (self.host, self.username, self.password, self.source_id)
        )


def result_for_status(status_code: Optional[int]) -> SendResult:
    """Map an HTTP status (None when no response arrived) to a send result."""
    if status_code == 200:
        return SendResult(ok=True)
    if status_code is None or status_code == 0:
        return SendResult(ok=False, error=BAD_ADDRESS)
    return SendResult(ok=False, error=_STATUS_ERRORS.get(status_code, UNKNOWN_ERROR))


class ACSClient:
    """Compose and dispatch ACS envelopes.

    Async sends are handed to a bounded worker pool and never report back. Sync
    sends run on their own pool and the caller waits at most ``timeout`` seconds.
    """

    def __init__(
        self,
        settings: Settings,
        session: Optional[requests.Session] = None,
        envelope_builder: Optional[EnvelopeBuilder] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self.settings = settings
        self.session = session or requests.Session()
        self.envelope_builder = envelope_builder or EnvelopeBuilder()
        self.timeout = settings.acs_timeout_seconds
        self.verify_tls = settings.acs_verify_tls
        self._executor = executor or ThreadPoolExecutor(
            max_workers=settings.acs_send_workers,
            thread_name_prefix="acs-send",
        )
        self._sync_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="acs-test")
        self.max_pending = settings.acs_max_pending
        self._pending = 0
        self._pending_lock = threading.Lock()
        self._credentials = ACSCredentials()
        if not self.verify_tls:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    @property
    def credentials(self) -> ACSCredentials:
        return self._credentials

    def configure(
        self,
        host: str,
        source_id: str,
        username: str,
        password: str,
        enabled: str,
    ) -> None:
        # Replaced as a whole so worker threads never see a half-updated set.
        self._credentials = ACSCredentials(
            host=host or "",
            source_id=source_id or "",
            username=username or "",
            password=password or "",
            enabled=enabled or "",
        )

    def ready(self) -> bool:
        return self._credentials.ready

    def url_for(self, host: str) -> str:
        return f"https://{host}{self.settings.acs_api_path}"

    def send(self, items: ItemList, mode: SendMode = SendMode.ASYNC) -> SendResult:
        credentials = self._credentials
        if not credentials.ready:
            return SendResult(ok=False, error=MISSING_CONFIG)

        document = self.envelope_builder.build(credentials.source_id, items)
        if mode is SendMode.SYNC:
            return self._send_sync(credentials, document)

        with self._pending_lock:
            if self._pending >= self.max_pending:
                log.debug("%d ACS sends pending, dropping event", self._pending)
                return SendResult(ok=False, error=UNKNOWN_ERROR)
            self._pending += 1

        log.debug("Pushing %d items to ACS at %s", len(items), credentials.host)
        try:
            future = self._executor.submit(self._post, credentials, document)
        except RuntimeError:
            self._release_pending()
            log.debug("ACS client closed, dropping send")
            return SendResult(ok=False, error=UNKNOWN_ERROR)
        future.add_done_callback(self._finish_async)
        return SendResult(ok=True)

    def close(self, wait: bool = False) -> None:
        # Queued sends are cancelled; only those already on the wire finish.
        self._executor.shutdown(wait=wait, cancel_futures=True)
        self._sync_executor.shutdown(wait=wait, cancel_futures=True)
        self.session.close()

    @property
    def pending(self) -> int:
        with self._pending_lock:
            return self._pending

    def _send_sync(self, credentials: ACSCredentials, document: Dict[str, object]) -> SendResult:
        try:
            future = self._sync_executor.submit(self._post, credentials, document)
        except RuntimeError:
            log.debug("ACS client closed, cannot send")
            return SendResult(ok=False, error=UNKNOWN_ERROR)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError:
            future.cancel()
            log.debug("ACS did not answer within %.1fs", self.timeout)
            return result_for_status(None)

    def _post(self, credentials: ACSCredentials, document: Dict[str, object]) -> SendResult:
        url = self.url_for(credentials.host)
        deadline = time.monotonic() + self.timeout
        auth: AuthBase = HTTPBasicAuth(credentials.username, credentials.password)
        try:
            response = self._request(url, document, auth, deadline)
            if response.status_code == 401 and _offers_digest(response):
                log.debug("ACS asked for digest authentication, retrying")
                response.close()
                auth = HTTPDigestAuth(credentials.username, credentials.password)
                response = self._request(url, document, auth, deadline)
        except requests.RequestException as exc:
            log.debug("ACS request to %s failed: %s", url, exc)
            return result_for_status(None)

        status_code = response.status_code
        # Only the status matters; the body is never read.
        response.close()
        log.debug("ACS answered %s", status_code)
        return result_for_status(status_code)

    def _request(
        self,
        url: str,
        document: Dict[str, object],
        auth: AuthBase,
        deadline: float,
    ) -> requests.Response:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise requests.Timeout(f"deadline of {self.timeout}s exceeded")
        return self.session.post(
            url,
            json=document,
            headers={"Content-Type": "application/json"},
            auth=auth,
            verify=self.verify_tls,
            timeout=remaining,
            stream=True,
        )

    def _release_pending(self) -> None:
        with self._pending_lock:
            self._pending -= 1

    def _finish_async(self, future: Future) -> None:
        self._release_pending()
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            log.debug("Async ACS send raised: %s", exc)
            return
        result = future.result()
        if not result.ok:
            log.debug("Async ACS send failed: %s", result.error)


def _offers_digest(response: requests.Response) -> bool:
    challenge = response.headers.get("WWW-Authenticate", "")
    return "digest" in challenge.lower()
