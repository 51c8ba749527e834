"""
Download capture for a single page.

The portal's export button answers with an attachment response that has no
stable URL, so the capture listens to every response on the page and takes
the first one with an attachment disposition after it has been armed.

Usage:
    interceptor = DownloadInterceptor(url_markers=["invoice"])
    interceptor.attach(page)
    pending = interceptor.arm()          # before the click
    await export_button.click()
    artifact = await pending.wait(60000) # None when nothing arrived
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from portalexport.agents.base import ExportStatus, PipelineError
from portalexport.download.filename import filename_from_disposition, is_attachment

logger = logging.getLogger(__name__)

DIAGNOSTIC_RESOURCE_TYPES = ("xhr", "fetch")


@dataclass
class DownloadArtifact:
    """A captured attachment response."""
    body: bytes
    filename: Optional[str]
    url: str = ""
    disposition: str = ""

    @property
    def size(self) -> int:
        return len(self.body)


class PendingDownload:
    """Handle returned by ``DownloadInterceptor.arm()``; await it after the trigger."""

    def __init__(self, interceptor: "DownloadInterceptor", future: asyncio.Future):
        self._interceptor = interceptor
        self._future = future

    @property
    def done(self) -> bool:
        return self._future.done()

    async def wait(self, timeout: int = 60000) -> Optional[DownloadArtifact]:
        """
        Wait up to ``timeout`` ms for the capture.

        Returns:
            The artifact, or None when no attachment response arrived in time.

        Raises:
            PipelineError: an attachment arrived but its body could not be read.
        """
        try:
            return await asyncio.wait_for(self._future, timeout / 1000)
        except asyncio.TimeoutError:
            logger.warning(f"No attachment response within {timeout}ms")
            return None
        finally:
            self._interceptor.disarm(self._future)

    def cancel(self):
        self._interceptor.disarm(self._future)
        self._future.cancel()


class DownloadInterceptor:
    """
    Passive response observer for one page.

    Args:
        url_markers: Substrings that make a request/response URL worth logging.
    """

    def __init__(self, url_markers: Sequence[str] = ("invoice",)):
        self.url_markers = [m for m in url_markers if m]
        self._armed: Optional[asyncio.Future] = None
        self._tasks: set = set()

    def attach(self, page):
        page.on("request", self._on_request)
        page.on("response", self._on_response)

    def detach(self, page):
        page.remove_listener("request", self._on_request)
        page.remove_listener("response", self._on_response)

    @property
    def armed(self) -> bool:
        return self._armed is not None and not self._armed.done()

    def arm(self) -> PendingDownload:
        """Start listening for the next attachment response. Call before the trigger."""
        if self.armed:
            raise RuntimeError("Download capture is already armed")
        self._armed = asyncio.get_running_loop().create_future()
        logger.debug("Download capture armed")
        return PendingDownload(self, self._armed)

    def disarm(self, future: asyncio.Future):
        if self._armed is future:
            self._armed = None

    def _matches_marker(self, url: str) -> bool:
        return any(marker in url for marker in self.url_markers)

    def _on_request(self, request):
        try:
            if request.resource_type in DIAGNOSTIC_RESOURCE_TYPES and self._matches_marker(request.url):
                logger.info(f"XHR/FETCH -> {request.method} {request.url}")
        except Exception as e:
            logger.debug(f"Request logging failed: {e}")

    def _on_response(self, response):
        disposition = response.headers.get("content-disposition")

        if is_attachment(disposition):
            logger.info(f"Download response: {response.url} {disposition}")
        elif self._matches_marker(response.url):
            logger.info(f"Response: {response.status} {response.url}")

        if not self.armed or not is_attachment(disposition):
            return

        # Only the first attachment after arming is captured.
        future, self._armed = self._armed, None
        task = asyncio.ensure_future(self._capture(response, disposition, future))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _capture(self, response, disposition: str, future: asyncio.Future):
        try:
            body = await response.body()
        except Exception as e:
            if not future.done():
                future.set_exception(
                    PipelineError(
                        ExportStatus.DOWNLOAD_FAILED,
                        f"Could not read download body from {response.url}: {e}",
                    )
                )
            return

        artifact = DownloadArtifact(
            body=body,
            filename=filename_from_disposition(disposition),
            url=response.url,
            disposition=disposition,
        )
        logger.info(f"Captured {artifact.size} bytes (filename: {artifact.filename})")
        if not future.done():
            future.set_result(artifact)
