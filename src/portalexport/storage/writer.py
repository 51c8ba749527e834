"""Persist captured downloads to the output directory."""

import logging
from pathlib import Path

from portalexport.download.filename import safe_filename
from portalexport.download.interceptor import DownloadArtifact

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_PATTERN = "invoice-{record_id}.bin"


def fallback_filename(record_id: str, pattern: str = DEFAULT_FALLBACK_PATTERN) -> str:
    """Deterministic name for a download whose response carried none."""
    return safe_filename(pattern.format(record_id=record_id)) or f"{record_id}.bin"


def write_artifact(
    artifact: DownloadArtifact,
    output_dir: str | Path,
    fallback_name: str,
) -> Path:
    """
    Write ``artifact`` to ``output_dir``, overwriting any file of the same name.

    The name comes from the response's Content-Disposition header, else
    ``fallback_name``. Missing directories are created.

    Returns:
        Path of the written file.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    name = safe_filename(artifact.filename or "") or fallback_name
    out_path = output_dir / name
    out_path.write_bytes(artifact.body)

    logger.info(f"Saved export: {out_path} ({artifact.size} bytes)")
    return out_path
