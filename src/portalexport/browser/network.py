"""Network quiescence tracking for a single page."""

import asyncio
import logging
import time

from portalexport.agents.base import SelectorTimeout

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TIME_MS = 800
DEFAULT_IDLE_TIMEOUT_MS = 60000


class NetworkIdleWatcher:
    """
    Counts in-flight requests on a page.

    ``wait_for_idle`` returns once no request has been in flight for a full
    idle window. It only listens to page events and never touches the page.
    """

    def __init__(self, poll_interval: int = 50):
        self.poll_interval = poll_interval
        self._inflight = set()
        self._last_activity = time.monotonic()

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def attach(self, page):
        page.on("request", self._on_request)
        page.on("requestfinished", self._on_request_done)
        page.on("requestfailed", self._on_request_done)

    def detach(self, page):
        page.remove_listener("request", self._on_request)
        page.remove_listener("requestfinished", self._on_request_done)
        page.remove_listener("requestfailed", self._on_request_done)

    def _on_request(self, request):
        self._inflight.add(request)
        self._last_activity = time.monotonic()

    def _on_request_done(self, request):
        self._inflight.discard(request)
        self._last_activity = time.monotonic()

    async def wait_for_idle(
        self,
        idle_time: int = DEFAULT_IDLE_TIME_MS,
        timeout: int = DEFAULT_IDLE_TIMEOUT_MS,
    ):
        """
        Suspend until the page has been quiet for ``idle_time`` ms.

        Raises:
            SelectorTimeout: the page never went quiet within ``timeout`` ms.
        """
        start = time.monotonic()
        # Activity before the call still counts; the window restarts here.
        self._last_activity = max(self._last_activity, start)
        deadline = start + timeout / 1000

        while True:
            now = time.monotonic()
            if not self._inflight and (now - self._last_activity) * 1000 >= idle_time:
                logger.debug(f"Network idle after {now - start:.1f}s")
                return
            if now >= deadline:
                raise SelectorTimeout(
                    f"Timed out after {timeout}ms waiting for network idle "
                    f"({self.inflight} request(s) in flight)"
                )
            await asyncio.sleep(self.poll_interval / 1000)
