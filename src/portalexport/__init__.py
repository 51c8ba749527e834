"""portalexport - Log into a web portal, find a record and capture its export with Playwright."""

__version__ = "0.1.0"

from .agents.base import (
    PortalAgent,
    PortalSession,
    Credentials,
    SessionState,
    ExportStatus,
    PipelineError,
)

__all__ = [
    "PortalAgent",
    "PortalSession",
    "Credentials",
    "SessionState",
    "ExportStatus",
    "PipelineError",
    "__version__",
]
