"""Export audit trail for incident reports.

Every PDF export and analysis upload is recorded as one JSON line (for
querying) and one human-readable line, both in rotating log files. The
trail answers "which reports left this machine for which incident, and
when".
"""

import csv
import json
import logging
import logging.handlers
import os
import platform
import socket
import threading
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import List, Optional


class AuditLevel(str, Enum):
    """Audit event severity levels."""
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class AuditAction(str, Enum):
    """Recorded export actions."""
    PDF_EXPORT = "PDF_EXPORT"
    ANALYSIS_UPLOAD = "ANALYSIS_UPLOAD"


class AuditLogger:
    """Audit logger for report exports."""

    def __init__(
        self,
        log_dir: Path,
        log_name: str = "tenant_evidence_audit",
        max_bytes: int = 5 * 1024 * 1024,  # 5MB
        backup_count: int = 5,
    ):
        """Initialize audit logger with rotating file handlers."""
        self.log_dir = Path(log_dir)
        self.log_name = log_name
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self._lock = threading.Lock()

        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.json_logger = self._setup_logger("json", f"{self.log_name}.jsonl")
        self.text_logger = self._setup_logger("text", f"{self.log_name}.log")

    @property
    def json_path(self) -> Path:
        return self.log_dir / f"{self.log_name}.jsonl"

    def _setup_logger(self, suffix: str, filename: str) -> logging.Logger:
        """Setup a non-propagating logger writing to a rotating file."""
        # Keyed on the directory so two audit loggers never share handlers
        logger = logging.getLogger(f"{self.log_name}_{suffix}.{abs(hash(str(self.log_dir)))}")
        logger.setLevel(logging.INFO)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

        handler = logging.handlers.RotatingFileHandler(
            self.log_dir / filename,
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
            encoding="utf-8",
        )
        handler.setLevel(logging.INFO)
        logger.addHandler(handler)
        logger.propagate = False

        return logger

    def close(self) -> None:
        """Flush and close the file handlers."""
        for logger in (self.json_logger, self.text_logger):
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

    def _get_system_info(self) -> dict:
        """Get current system information for audit entry."""
        try:
            hostname = socket.gethostname()
        except OSError:
            hostname = "unknown"

        return {
            "workstation": hostname,
            "user": os.environ.get("USERNAME") or os.environ.get("USER", "unknown"),
            "pid": os.getpid(),
            "platform": platform.system(),
        }

    def _format_text_entry(self, entry: dict) -> str:
        """Format audit entry as human-readable text."""
        status = "[OK]" if entry.get("success", True) else "[FAIL]"

        parts = [
            entry["timestamp"],
            entry["level"],
            status,
            f"User: {entry['system_info']['user']}",
            f"Action: {entry['action']}",
        ]

        if entry.get("incident_id") is not None:
            parts.append(f"Incident: {entry['incident_id']}")
        if entry.get("filename"):
            parts.append(f"File: {entry['filename']}")

        return " | ".join(parts)

    def log(
        self,
        level: AuditLevel,
        action: str,
        details: dict = None,
        incident_id: int = None,
        filename: str = None,
        success: bool = True,
    ) -> None:
        """Log an audit event."""
        with self._lock:
            entry = {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "level": level.value,
                "action": action,
                "success": success,
                "system_info": self._get_system_info(),
            }

            if details:
                entry["details"] = details
            if incident_id is not None:
                entry["incident_id"] = incident_id
            if filename:
                entry["filename"] = filename

            self.json_logger.info(json.dumps(entry, ensure_ascii=False, default=str))
            self.text_logger.info(self._format_text_entry(entry))

    def track_pdf_export(self, incident_id: int, filename: str, page_count: int = None) -> None:
        """Record a saved case report."""
        details = {"page_count": page_count} if page_count is not None else None
        self.log(
            level=AuditLevel.INFO,
            action=AuditAction.PDF_EXPORT.value,
            details=details,
            incident_id=incident_id,
            filename=filename,
        )

    def log_analysis_upload(self, incident_id: int, filename: str, file_url: str = None) -> None:
        """Record an analysis PDF saved to an incident."""
        self.log(
            level=AuditLevel.INFO,
            action=AuditAction.ANALYSIS_UPLOAD.value,
            details={"file_url": file_url} if file_url else None,
            incident_id=incident_id,
            filename=filename,
        )

    def log_error(self, action: str, error: Exception, incident_id: int = None, filename: str = None) -> None:
        """Log a failed export with exception details."""
        self.log(
            level=AuditLevel.ERROR,
            action=action,
            details={"error_type": type(error).__name__, "error_message": str(error)},
            incident_id=incident_id,
            filename=filename,
            success=False,
        )

    def get_export_history(
        self,
        incident_id: int = None,
        action: str = None,
        start_date: datetime = None,
        end_date: datetime = None,
    ) -> List[dict]:
        """Query the audit trail, oldest first."""
        if not self.json_path.exists():
            return []

        entries = []

        with open(self.json_path, "r", encoding="utf-8") as f:
            for line in f:
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    continue

                if incident_id is not None and entry.get("incident_id") != incident_id:
                    continue
                if action and entry.get("action") != action:
                    continue

                entry_time = datetime.fromisoformat(entry["timestamp"])
                if start_date and entry_time < start_date:
                    continue
                if end_date and entry_time > end_date:
                    continue

                entries.append(entry)

        return entries

    def export_history(
        self,
        output_path: Path,
        incident_id: int = None,
        format: str = "json",
    ) -> int:
        """
        Export the filtered audit trail to a file.

        Returns:
            Number of entries written
        """
        if format not in ("json", "csv", "txt"):
            raise ValueError(f"Unsupported format: {format}. Use json, csv, or txt.")

        entries = self.get_export_history(incident_id=incident_id)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if format == "json":
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(entries, f, indent=2, ensure_ascii=False, default=str)

        elif format == "csv":
            fieldnames = ["timestamp", "level", "action", "success", "user", "incident_id", "filename", "details"]
            with open(output_path, "w", encoding="utf-8", newline="") as f:
                writer = csv.DictWriter(f, fieldnames=fieldnames)
                writer.writeheader()
                for entry in entries:
                    writer.writerow({
                        "timestamp": entry["timestamp"],
                        "level": entry["level"],
                        "action": entry["action"],
                        "success": entry["success"],
                        "user": entry["system_info"]["user"],
                        "incident_id": entry.get("incident_id", ""),
                        "filename": entry.get("filename", ""),
                        "details": json.dumps(entry.get("details", {})),
                    })

        else:
            with open(output_path, "w", encoding="utf-8") as f:
                for entry in entries:
                    f.write(self._format_text_entry(entry))
                    f.write("\n")

        return len(entries)


_global_audit_logger: Optional[AuditLogger] = None
_logger_lock = threading.Lock()


def get_audit_logger(log_dir: Path = None) -> AuditLogger:
    """Get or create the global audit logger instance."""
    global _global_audit_logger

    with _logger_lock:
        if _global_audit_logger is None:
            if log_dir is None:
                log_dir = Path.cwd() / "logs"

            _global_audit_logger = AuditLogger(log_dir)

        return _global_audit_logger


def reset_audit_logger() -> None:
    """Drop the global instance (closing its files)."""
    global _global_audit_logger

    with _logger_lock:
        if _global_audit_logger is not None:
            _global_audit_logger.close()
        _global_audit_logger = None
