"""Agent implementations for portal export automation."""

from .base import (
    PortalAgent,
    PortalSession,
    Credentials,
    SessionState,
    ExportStatus,
    PipelineError,
    ConfigError,
    SelectorTimeout,
    NoDownloadError,
)

__all__ = [
    "PortalAgent",
    "PortalSession",
    "Credentials",
    "SessionState",
    "ExportStatus",
    "PipelineError",
    "ConfigError",
    "SelectorTimeout",
    "NoDownloadError",
]
