"""
Keep-Alive Task
===============
Background ping that keeps a platform session from expiring.

The task is armed after a successful login and pings the middleware service
with the cookie captured at login time, every ``interval`` seconds, on a
daemon thread. It only ever reads the headers frozen at construction; it
never writes to the session's ``RequestContext`` and never re-authenticates.

Failures are logged, not raised.

Lifecycle: ``start()`` once, ``cancel()`` any number of times. A cancelled
task never fires again and cannot be restarted.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from ..errors import PlatformError
from ..transport import RequestContext, Transport

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 120.0
PING_PATH = "/api/middleware/service/ping"


def ping_url(host: str) -> str:
    return f"https://{host}{PING_PATH}"


class KeepAliveTask:
    """Periodic session ping on a daemon thread."""

    def __init__(
        self,
        transport: Transport,
        context: RequestContext,
        *,
        interval: float = DEFAULT_INTERVAL_SECONDS,
    ):
        self.transport = transport
        self.interval = interval
        self.url = ping_url(context.host)
        headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }
        if context.headers.get('Cookie'):
            headers['Cookie'] = context.headers['Cookie']
        # Frozen copy: later changes to the session context do not reach the task.
        self._context = RequestContext(
            host=context.host,
            headers=headers,
            timeout_seconds=context.timeout_seconds,
            proxy=context.proxy,
            verify_tls=context.verify_tls,
        )
        self._stopped = threading.Event()
        # Held while a ping is in flight; cancel() takes it too.
        self._lock = threading.RLock()
        self._thread: Optional[threading.Thread] = None
        self.pings_sent = 0

    @property
    def cookie(self) -> str:
        return self._context.headers.get('Cookie', '')

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._context.headers)

    @property
    def is_active(self) -> bool:
        return self._thread is not None and not self._stopped.is_set()

    @property
    def is_cancelled(self) -> bool:
        return self._stopped.is_set()

    def start(self) -> None:
        """Arm the task.

        Raises:
            RuntimeError: The task was already started or has been cancelled.
        """
        if self._thread is not None or self._stopped.is_set():
            raise RuntimeError("Keep-alive task can only be started once")
        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name="SessionKeepAlive",
        )
        self._thread.start()
        logger.info(f"[KEEPALIVE] Armed, pinging every {self.interval:g}s")

    def cancel(self, timeout: Optional[float] = None) -> bool:
        """Stop the task. Safe to call repeatedly and before ``start``.

        Waits for a ping already on the wire; once this returns no further
        ping is sent.

        Args:
            timeout: If given, wait up to this many seconds for the thread
                to exit.

        Returns:
            True if this call stopped an active task, False otherwise.
        """
        with self._lock:
            if self._stopped.is_set():
                return False
            was_active = self._thread is not None
            self._stopped.set()
        thread = self._thread
        if timeout is not None and thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        if was_active:
            logger.info(f"[KEEPALIVE] Cancelled after {self.pings_sent} ping(s)")
        return was_active

    def _run(self) -> None:
        while not self._stopped.wait(self.interval):
            self.ping()

    def ping(self) -> None:
        """Send one ping unless cancelled. Errors are logged and swallowed."""
        with self._lock:
            if self._stopped.is_set():
                return
            try:
                result = self.transport.send(self._context, 'GET', self.url)
            except PlatformError as exc:
                logger.warning(f"[KEEPALIVE] Ping failed: {exc}")
                return
            self.pings_sent += 1
        if not 200 <= result.status_code < 400:
            logger.warning(f"[KEEPALIVE] Ping answered with {result.status_code} {result.reason}")
        else:
            logger.debug(f"[KEEPALIVE] Ping ok ({result.status_code})")
