"""
Invoice Portal Agent — log in, find an account's invoice and capture its export.

Every selector set and button text comes from the configuration, so markup
changes on the portal are handled by editing YAML rather than code.
"""

import logging
from pathlib import Path

from portalexport.agents.base import (
    ConfigError,
    ExportStatus,
    NoDownloadError,
    PipelineError,
    PortalAgent,
    PortalSession,
)
from portalexport.browser.actions import (
    click_exact_link,
    click_first_selector,
    click_first_text,
    resolve_element,
)
from portalexport.browser.network import NetworkIdleWatcher
from portalexport.download.interceptor import DownloadInterceptor, PendingDownload
from portalexport.extraction.records import (
    extract_link_texts,
    extract_record_rows,
    first_identifier_link,
    select_target_record,
)
from portalexport.storage.writer import fallback_filename, write_artifact

logger = logging.getLogger(__name__)


class InvoicePortalAgent(PortalAgent):
    """Agent for the invoice export workflow."""

    def __init__(
        self,
        session: PortalSession,
        interceptor: DownloadInterceptor,
        idle_watcher: NetworkIdleWatcher,
        run_log=None,
    ):
        super().__init__(session, run_log)
        self.interceptor = interceptor
        self.idle_watcher = idle_watcher

        self.portal_config = self.config.get("portal", {})
        self.timeouts = self.config.get("timeouts", {})
        self.typing = self.config.get("typing", {})
        self.selectors = self.config.get("selectors", {})
        self.texts = self.config.get("texts", {})
        self.records_config = self.config.get("records", {})
        self.output_config = self.config.get("output", {})

        self.selector_timeout = self.timeouts.get("selector", 30000)
        self.poll_interval = self.timeouts.get("poll_interval", 200)
        self.clickable = self.selectors.get("clickable", "button, a")

    async def wait_for_quiescence(self):
        await self.idle_watcher.wait_for_idle(
            idle_time=self.timeouts.get("idle_time", 800),
            timeout=self.timeouts.get("idle_timeout", 60000),
        )

    async def _resolve(self, key: str, timeout: int = None):
        selectors = self.selectors.get(key) or []
        if not selectors:
            raise ConfigError(f"selectors.{key} is empty")
        return await resolve_element(
            self.page,
            selectors,
            timeout=timeout or self.selector_timeout,
            poll_interval=self.poll_interval,
        )

    async def open_portal(self) -> None:
        url = self.portal_config.get("url")
        if not url:
            raise PipelineError(ExportStatus.NAVIGATION_FAILED, "portal.url is not configured")

        logger.info(f"Opening portal... {url}")
        try:
            await self.page.goto(url, wait_until="networkidle")
        except Exception as e:
            raise PipelineError(ExportStatus.NAVIGATION_FAILED, f"Failed to open {url}: {e}") from e

    async def enter_credentials(self) -> None:
        credentials = self.session.credentials
        delay = self.typing.get("credentials_delay", 20)

        email_input = await self._resolve("email")
        await email_input.type(credentials.email, delay=delay)

        password_input = await self._resolve("password")
        await password_input.type(credentials.password, delay=delay)
        logger.info("Credentials entered")

    async def submit_login(self) -> None:
        clicked = await click_first_text(self.page, self.texts.get("login", []), self.clickable)
        if clicked:
            logger.info(f"Clicked login control {clicked!r}")
            return

        selector = await click_first_selector(self.page, self.selectors.get("submit", []))
        if selector:
            logger.info(f"Clicked submit control {selector}")
            return

        raise PipelineError(ExportStatus.AUTH_FAILED, "Could not locate Login button.")

    async def search_account(self) -> None:
        account_id = self.session.account_id

        await self.wait_for_quiescence()
        search_input = await self._resolve(
            "search_input", timeout=self.timeouts.get("search_input", 60000)
        )

        logger.info(f"Searching for account {account_id}")
        await search_input.click(click_count=3)
        await search_input.type(account_id, delay=self.typing.get("search_delay", 25))
        await self.page.keyboard.press("Enter")

        await self.wait_for_quiescence()

    async def select_target_record(self) -> str:
        markers = self.records_config.get("currency_markers", ["$"])

        target = None
        try:
            rows = await extract_record_rows(
                self.page, self.selectors.get("result_rows", "table tbody tr")
            )
            logger.info(f"Found {len(rows)} result row(s)")
            row = select_target_record(rows, markers)
            if row:
                target = row.link_label
        except Exception as e:
            logger.warning(f"Results table extraction failed, falling back to links: {e}")

        if not target:
            labels = await extract_link_texts(self.page, self.selectors.get("links", "a"))
            target = first_identifier_link(
                labels, self.records_config.get("link_pattern", r"^\d{5,}$")
            )
            if target:
                logger.info(f"No qualifying table row; using first identifier link {target}")

        if not target:
            raise PipelineError(
                ExportStatus.RECORD_NOT_FOUND, "Could not find a target invoice link."
            )
        return target

    async def open_record(self, record_id: str) -> None:
        logger.info(f"Opening invoice: {record_id}")
        if not await click_exact_link(self.page, record_id, self.selectors.get("links", "a")):
            raise PipelineError(
                ExportStatus.ELEMENT_NOT_FOUND, f"Invoice link element not found: {record_id}"
            )
        await self.wait_for_quiescence()

    async def trigger_export(self) -> PendingDownload:
        # Armed before the click: the attachment can arrive before click() returns.
        pending = self.interceptor.arm()

        clicked = await click_first_text(self.page, self.texts.get("export", []), self.clickable)
        if not clicked:
            pending.cancel()
            raise PipelineError(
                ExportStatus.ELEMENT_NOT_FOUND, "Could not find Export Invoice Details button."
            )

        logger.info(f"Clicked export control {clicked!r}")
        return pending

    async def complete(self, pending: PendingDownload, record_id: str) -> Path:
        artifact = await pending.wait(self.timeouts.get("download", 60000))
        if artifact is None:
            raise NoDownloadError()

        return write_artifact(
            artifact,
            self.output_config.get("directory", "tmp/portal-export"),
            fallback_filename(
                record_id,
                self.output_config.get("fallback_filename", "invoice-{record_id}.bin"),
            ),
        )
