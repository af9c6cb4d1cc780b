"""
This module provides classes for writing run logs to disk.

It mirrors the split between human-readable and machine-readable output:
- `ErrorLog` appends plain-text diagnostics for failed jobs (the command that was
  run and the tail of the encoder's stderr), for reading in an editor.
- `RunReport` writes the summary of a finished run as a YAML document, for
  scripts that post-process batch results.

Console logging itself is done with loguru throughout the application; these
classes only add persistent files next to it.
"""

import threading
from datetime import datetime
from pathlib import Path

import yaml
from loguru import logger

from ..config.common import DEFAULT_ERROR_LOG_FILENAME
from ..domain.models import OverallResult


class Log:
    """
    Base class for file logs.

    Handles the log directory: given a directory it is used as is, given a file
    path its parent is used. The directory is created if missing.
    """

    # A separator line between entries in text logs.
    linesep_marker: str = "=" * 50

    def __init__(self, log_base_path: Path):
        self.log_file_path: Path
        log_base_path = Path(log_base_path)
        if log_base_path.suffix and not log_base_path.is_dir():
            self.log_dir: Path = log_base_path.parent.resolve()
        else:
            self.log_dir: Path = log_base_path.resolve()
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def write(self, *args, **kwargs):
        raise NotImplementedError("Subclasses must implement the write() method.")


class ErrorLog(Log):
    """
    Appends error entries to a plain-text file.

    Jobs run on several threads, so writes are serialized with a class-level lock.
    """

    _write_lock = threading.Lock()

    def __init__(self, error_log_dir: Path, filename: str = DEFAULT_ERROR_LOG_FILENAME):
        super().__init__(error_log_dir)
        self.log_file_path = self.log_dir / filename

    def write(self, *error_messages: str):
        """
        Writes one entry made of the given lines, followed by a separator.

        If the file cannot be written, the messages go to the console logger instead
        so they are not lost.
        """
        if not error_messages:
            return

        stamp = datetime.now().isoformat(timespec="seconds")
        content_to_write = f"[{stamp}]\n" + "\n".join(error_messages) + "\n" + self.linesep_marker + "\n"

        try:
            with self._write_lock, self.log_file_path.open("a", encoding="utf-8") as f:
                f.write(content_to_write)
        except OSError as e:
            logger.error(f"Failed to write to error log {self.log_file_path}: {e}")
            for msg in error_messages:
                logger.error(f"  - {msg}")


class RunReport(Log):
    """Writes an `OverallResult` to a YAML file."""

    def __init__(self, report_path: Path):
        report_path = Path(report_path)
        super().__init__(report_path.parent if report_path.suffix else report_path)
        self.log_file_path = (
            self.log_dir / report_path.name
            if report_path.suffix
            else self.log_dir / f"report_{datetime.now():%Y%m%d_%H%M%S}.yaml"
        )

    def write(self, result: OverallResult, elapsed_seconds: float = 0.0) -> Path:
        document = {
            "finished_at": datetime.now().isoformat(timespec="seconds"),
            "elapsed_seconds": round(elapsed_seconds, 3),
            **result.to_dict(),
        }
        with self.log_file_path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(document, f, allow_unicode=True, sort_keys=False)
        logger.info(f"Run report written to {self.log_file_path}")
        return self.log_file_path

    @staticmethod
    def load(report_path: Path) -> dict:
        with Path(report_path).open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
