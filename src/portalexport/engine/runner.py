"""
portalexport Engine Runner - one export run against the portal.

Workflow:
1. Launch the browser and open the session page
2. Attach the download capture and network idle watcher to the page
3. Walk the portal agent's states (login, search, select, open, export)
4. Write the captured artifact and the JSON run log

Every failure is fatal for the run; nothing is retried.
"""

import logging
from datetime import datetime
from pathlib import Path

from playwright.async_api import async_playwright

from portalexport.agents.base import (
    Credentials,
    ExportStatus,
    PipelineError,
    PortalSession,
)
from portalexport.agents.portal import InvoicePortalAgent
from portalexport.browser.manager import BrowserManager
from portalexport.browser.network import NetworkIdleWatcher
from portalexport.download.interceptor import DownloadInterceptor
from portalexport.engine.run_log import RunLog

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logging(config: dict, level: str | None = None, account_id: str | None = None):
    """Configure the root logger from the 'logging' config section; returns the log file path."""
    log_config = config.get("logging", {})
    log_level = getattr(logging, (level or log_config.get("level", "INFO")).upper(), logging.INFO)
    save_to_file = log_config.get("save_to_file", False)
    log_directory = log_config.get("log_directory", "logs")

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)

    log_file_path = None
    if save_to_file:
        log_dir = Path(log_directory)
        log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        safe_account = (account_id or "unknown").replace("/", "_").replace("\\", "_")
        log_file_path = log_dir / f"portalexport_{timestamp}_{safe_account}.log"

        file_handler = logging.FileHandler(log_file_path)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(file_handler)
        logger.info(f"Logging to file: {log_file_path}")

    return log_file_path


def create_run_log(config: dict, account_id: str) -> RunLog | None:
    run_log_config = config.get("run_log", {})
    if not run_log_config.get("enabled", True):
        return None
    return RunLog(run_log_config.get("directory", "logs/runs"), account_id=account_id)


def create_agent(
    page,
    config: dict,
    credentials: Credentials,
    account_id: str,
    run_log: RunLog | None = None,
) -> InvoicePortalAgent:
    """Build the session context and attach the page observers for one run."""
    url_markers = list(config.get("diagnostics", {}).get("url_markers", ["invoice"]))

    session = PortalSession(
        page=page,
        account_id=account_id,
        credentials=credentials,
        config=config,
    )
    interceptor = DownloadInterceptor(url_markers=[*url_markers, account_id])
    interceptor.attach(page)
    idle_watcher = NetworkIdleWatcher()
    idle_watcher.attach(page)

    return InvoicePortalAgent(session, interceptor, idle_watcher, run_log=run_log)


async def run_export(
    config: dict,
    credentials: Credentials,
    account_id: str,
    run_log: RunLog | None = None,
) -> Path:
    """
    Run one export and return the path of the written artifact.

    Raises:
        PipelineError: any fatal condition in the workflow.
    """
    browser_mgr = BrowserManager(config)

    try:
        async with async_playwright() as playwright:
            browser, context = await browser_mgr.launch_browser(playwright)
            page = await browser_mgr.new_page(context)

            agent = create_agent(page, config, credentials, account_id, run_log=run_log)
            artifact_path = await agent.run()

            await browser_mgr.close_browser(context, browser)
    except PipelineError as e:
        if run_log:
            run_log.end_run(e.status, error=str(e))
        raise
    except Exception as e:
        if run_log:
            run_log.end_run(ExportStatus.UNKNOWN, error=str(e))
        raise

    if run_log:
        run_log.end_run(ExportStatus.SUCCESS, artifact_path=artifact_path)
    return artifact_path
