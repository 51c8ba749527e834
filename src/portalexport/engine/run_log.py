"""
Run log: records state timings and the outcome of one export run as JSON.

Writes to disk on every state change so a crashed run still leaves a record
of how far it got.
"""

import json
import logging
import re
from datetime import datetime
from pathlib import Path

from portalexport.agents.base import ExportStatus

logger = logging.getLogger(__name__)


class RunLog:
    """
    Usage:
        run_log = RunLog("logs/runs", account_id="7125150")
        run_log.start_state("search")
        run_log.end_state(success=True)
        run_log.end_run(ExportStatus.SUCCESS, artifact_path="tmp/x.pdf")
    """

    def __init__(self, log_dir: str | Path = "logs/runs", account_id: str | None = None):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.account_id = account_id
        self.run_start = datetime.now()
        self.data = {
            "run_start": self.run_start.isoformat(),
            "account_id": account_id,
            "run_end": None,
            "status": None,
            "error": None,
            "artifact_path": None,
            "duration_seconds": None,
            "states": [],
        }
        self.current_state = None

        timestamp = self.run_start.strftime("%Y%m%d_%H%M%S")
        self.run_file = self.log_dir / f"run_{timestamp}_{self._clean_name(account_id or 'unknown')}.json"

        self._write_to_disk()

    @staticmethod
    def _clean_name(name: str) -> str:
        name = name.replace("/", "-").replace("\\", "-").replace(" ", "_")
        return re.sub(r"[^a-zA-Z0-9._-]", "", name)

    def _write_to_disk(self):
        try:
            with open(self.run_file, "w") as f:
                json.dump(self.data, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to write run log: {e}")

    def start_state(self, state: str):
        self.current_state = {
            "state": state,
            "start_time": datetime.now().isoformat(),
            "end_time": None,
            "success": None,
            "error": None,
            "duration_seconds": None,
        }
        self._write_to_disk()

    def end_state(self, success: bool, error: str | None = None):
        if not self.current_state:
            logger.warning("end_state called with no active state")
            return

        now = datetime.now()
        start = datetime.fromisoformat(self.current_state["start_time"])

        self.current_state["end_time"] = now.isoformat()
        self.current_state["success"] = success
        self.current_state["error"] = error
        self.current_state["duration_seconds"] = round((now - start).total_seconds(), 2)

        self.data["states"].append(self.current_state)
        self.current_state = None
        self._write_to_disk()

    def end_run(self, status: ExportStatus, error: str | None = None, artifact_path=None):
        """Close the active state (failed unless the run succeeded) and record the outcome."""
        if self.current_state:
            self.end_state(success=status == ExportStatus.SUCCESS, error=error)

        now = datetime.now()
        self.data["run_end"] = now.isoformat()
        self.data["status"] = status.value
        self.data["error"] = error
        self.data["artifact_path"] = str(artifact_path) if artifact_path else None
        self.data["duration_seconds"] = round((now - self.run_start).total_seconds(), 2)
        self._write_to_disk()
        logger.info(f"Run log written: {self.run_file}")
