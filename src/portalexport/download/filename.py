"""Content-Disposition parsing."""

import re
from pathlib import PurePosixPath, PureWindowsPath
from typing import Optional
from urllib.parse import unquote

# filename*=UTF-8''r%C3%A9sum%C3%A9.csv  (charset and language are optional)
_EXTENDED_FILENAME = re.compile(
    r"filename\*\s*=\s*([\w!#$%&+^`{}~-]*)'[^']*'\"?([^\";]+)\"?", re.IGNORECASE
)
# filename="report.csv" or filename=report.csv
_PLAIN_FILENAME = re.compile(r'filename\s*=\s*"?([^";]+)"?', re.IGNORECASE)

_ATTACHMENT = re.compile(r"attachment", re.IGNORECASE)


def is_attachment(disposition: Optional[str]) -> bool:
    """True when a Content-Disposition value marks the body as a download."""
    return bool(disposition) and bool(_ATTACHMENT.search(disposition))


def filename_from_disposition(disposition: Optional[str]) -> Optional[str]:
    """
    Extract the file name from a Content-Disposition header value.

    Examples:
        attachment; filename="report.csv"               -> report.csv
        attachment; filename*=UTF-8''r%C3%A9sum%C3%A9.csv -> résumé.csv

    The extended ``filename*`` form wins when both are present. Returns None
    when the header is missing or carries no usable file name.
    """
    if not disposition:
        return None

    match = _EXTENDED_FILENAME.search(disposition)
    if match:
        charset = match.group(1) or "utf-8"
        try:
            name = unquote(match.group(2), encoding=charset, errors="strict")
        except (LookupError, UnicodeDecodeError):
            name = unquote(match.group(2))
    else:
        match = _PLAIN_FILENAME.search(disposition)
        if not match:
            return None
        name = unquote(match.group(1))

    name = name.strip()
    return name or None


def safe_filename(name: str) -> str:
    """Reduce a server-supplied name to its last path component."""
    name = PureWindowsPath(PurePosixPath(name).name).name
    if name in ("", ".", ".."):
        return ""
    return name
