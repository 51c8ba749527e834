"""
Browser management for portalexport.

Launches one Playwright browser (or attaches to a running Chrome over CDP)
and opens the single context the portal session runs in.
"""

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

CHROME_PATH_ENV = "CHROME_PATH"

# System Chrome/Chromium installs, used when browser.type is "chrome"
CHROME_PATHS = [
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",  # macOS
    os.path.expanduser("~/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"),
    "/usr/bin/google-chrome",  # Linux
    "/usr/bin/google-chrome-stable",
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",  # Windows
    "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe",
]


def find_chrome() -> str | None:
    """Find a system Chrome installation path."""
    for path in CHROME_PATHS:
        if os.path.exists(path):
            return path
    return None


class BrowserManager:
    """
    Owns the browser and context for a single run.

    Args:
        config: Full configuration dictionary; reads the 'browser' section.
    """

    def __init__(self, config: dict):
        self.config = config
        browser_config = config.get("browser", {}) or {}

        self.browser_type = (browser_config.get("type") or "chromium").lower()
        self.headless = browser_config.get("headless", True)
        self.executable_path = browser_config.get("executable_path")
        self.cdp_url = browser_config.get("cdp_url")
        self.args = list(browser_config.get("args") or [])
        self.user_agent = browser_config.get("user_agent")
        self.navigation_timeout = browser_config.get("navigation_timeout", 60000)

    def is_cdp_mode(self) -> bool:
        """True when attaching to an already running Chrome."""
        return bool(self.cdp_url)

    def resolve_executable_path(self) -> Optional[str]:
        """CHROME_PATH wins, then browser.executable_path, then a system Chrome for type 'chrome'."""
        path = os.environ.get(CHROME_PATH_ENV) or self.executable_path
        if path:
            return path
        if self.browser_type == "chrome":
            return find_chrome()
        return None

    async def launch_browser(self, playwright):
        """
        Launch or attach to the browser.

        Args:
            playwright: Playwright instance

        Returns:
            tuple: (browser, context) instances
        """
        if self.is_cdp_mode():
            return await self._connect_cdp(playwright)
        return await self._launch_classic(playwright)

    async def _connect_cdp(self, playwright):
        logger.info(f"Connecting to Chrome via CDP ({self.cdp_url})")
        try:
            browser = await playwright.chromium.connect_over_cdp(self.cdp_url)
        except Exception as e:
            logger.error(f"Failed to connect to Chrome: {e}")
            raise

        context = await browser.new_context(
            user_agent=self.user_agent,
            ignore_https_errors=True,
        )
        return browser, context

    async def _launch_classic(self, playwright):
        if self.browser_type == "firefox":
            browser_instance = playwright.firefox
        elif self.browser_type == "webkit":
            browser_instance = playwright.webkit
        else:
            browser_instance = playwright.chromium

        launch_kwargs = {"headless": self.headless}
        if browser_instance is playwright.chromium:
            launch_kwargs["args"] = self.args
            executable_path = self.resolve_executable_path()
            if executable_path:
                launch_kwargs["executable_path"] = executable_path
                logger.info(f"Using browser executable: {executable_path}")

        logger.info(f"Launching {self.browser_type} (headless={self.headless})")
        browser = await browser_instance.launch(**launch_kwargs)
        context = await browser.new_context(
            user_agent=self.user_agent,
            ignore_https_errors=True,
        )
        return browser, context

    async def new_page(self, context):
        """Open the session's page with the configured navigation timeout."""
        page = await context.new_page()
        page.set_default_navigation_timeout(self.navigation_timeout)
        return page

    async def close_browser(self, context, browser=None):
        """Close browser resources, best effort."""
        if context:
            try:
                await context.close()
                logger.info("Browser context closed")
            except Exception as e:
                logger.warning(f"Error closing context: {e}")

        if browser and not self.is_cdp_mode():
            try:
                await browser.close()
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")
