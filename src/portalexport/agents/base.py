"""
PortalAgent Abstract Base Class — Strategy Pattern for portal export workflows.

Defines the forward-only state machine every portal agent walks through and
the error taxonomy the CLI maps to exit codes. Concrete subclasses (e.g.,
InvoicePortalAgent) implement the per-state steps with portal-specific
selectors and texts taken from configuration.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """States of a portal session, in the only order they may be entered."""
    UNAUTHENTICATED = "unauthenticated"
    CREDENTIALS_ENTRY = "credentials_entry"
    SUBMITTING = "submitting"
    SEARCH = "search"
    RECORD_SELECTION = "record_selection"
    RECORD_OPEN = "record_open"
    EXPORT = "export"
    COMPLETION = "completion"

    @property
    def position(self) -> int:
        return list(SessionState).index(self)


class ExportStatus(str, Enum):
    """Outcome of a run; classifies every fatal condition."""
    SUCCESS = "success"
    CONFIG_ERROR = "config_error"
    NAVIGATION_FAILED = "navigation_failed"
    AUTH_FAILED = "auth_failed"
    ELEMENT_NOT_FOUND = "element_not_found"
    TIMEOUT = "timeout"
    RECORD_NOT_FOUND = "record_not_found"
    NO_DOWNLOAD = "no_download"
    DOWNLOAD_FAILED = "download_failed"
    UNKNOWN = "unknown"


class PipelineError(Exception):
    """Raised for any fatal condition; aborts the run."""

    def __init__(self, status: ExportStatus, message: str = ""):
        self.status = status
        super().__init__(message or status.value)


class ConfigError(PipelineError):
    """Missing credentials or unusable configuration, raised before launch."""

    def __init__(self, message: str = ""):
        super().__init__(ExportStatus.CONFIG_ERROR, message)


class SelectorTimeout(PipelineError):
    """No candidate selector (or idle window) appeared before the deadline."""

    def __init__(self, message: str = ""):
        super().__init__(ExportStatus.TIMEOUT, message)


class NoDownloadError(PipelineError):
    """Export was triggered but no attachment response arrived in time."""

    def __init__(self, message: str = "no downloadable response observed"):
        super().__init__(ExportStatus.NO_DOWNLOAD, message)


@dataclass
class Credentials:
    """Portal login pair. The secret never appears in repr()."""
    email: str
    password: str = field(repr=False)


@dataclass
class PortalSession:
    """Explicit session context handed to every component."""
    page: object
    account_id: str
    credentials: Credentials
    config: dict = field(default_factory=dict)


class PortalAgent(ABC):
    """
    Abstract base class for portal export automation.

    ``run()`` walks the states in order, calling one step per state. Steps
    raise PipelineError on failure; nothing is retried.

    Args:
        session: The session context (page, account id, credentials, config).
        run_log: Optional RunLog receiving state start/end notifications.
    """

    def __init__(self, session: PortalSession, run_log=None):
        self.session = session
        self.page = session.page
        self.config = session.config
        self.run_log = run_log
        self.state: Optional[SessionState] = None

    def enter_state(self, state: SessionState):
        """Advance to ``state``; moving backwards or repeating a state is a bug."""
        if self.state is not None and state.position <= self.state.position:
            raise RuntimeError(
                f"Illegal transition {self.state.value} -> {state.value}"
            )
        if self.run_log and self.state is not None:
            self.run_log.end_state(success=True)
        self.state = state
        logger.info(f"[{state.value}] entering")
        if self.run_log:
            self.run_log.start_state(state.value)

    async def run(self) -> Path:
        """Run every state in order and return the path of the written artifact."""
        self.enter_state(SessionState.UNAUTHENTICATED)
        await self.open_portal()

        self.enter_state(SessionState.CREDENTIALS_ENTRY)
        await self.enter_credentials()

        self.enter_state(SessionState.SUBMITTING)
        await self.submit_login()

        self.enter_state(SessionState.SEARCH)
        await self.search_account()

        self.enter_state(SessionState.RECORD_SELECTION)
        record_id = await self.select_target_record()

        self.enter_state(SessionState.RECORD_OPEN)
        await self.open_record(record_id)

        self.enter_state(SessionState.EXPORT)
        pending = await self.trigger_export()

        self.enter_state(SessionState.COMPLETION)
        path = await self.complete(pending, record_id)
        if self.run_log:
            self.run_log.end_state(success=True)
        return path

    @abstractmethod
    async def open_portal(self) -> None:
        """Open the portal root and wait for the page to settle."""
        ...

    @abstractmethod
    async def enter_credentials(self) -> None:
        """Fill in the login identifier and secret."""
        ...

    @abstractmethod
    async def submit_login(self) -> None:
        """Activate the login control."""
        ...

    @abstractmethod
    async def search_account(self) -> None:
        """Search for the session's account identifier."""
        ...

    @abstractmethod
    async def select_target_record(self) -> str:
        """Pick the target record from the results and return its link label."""
        ...

    @abstractmethod
    async def open_record(self, record_id: str) -> None:
        """Open the target record's detail view."""
        ...

    @abstractmethod
    async def trigger_export(self):
        """Arm the download capture, click export, return the pending capture."""
        ...

    @abstractmethod
    async def complete(self, pending, record_id: str) -> Path:
        """Await the captured download and persist it."""
        ...
