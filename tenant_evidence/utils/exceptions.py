"""
Custom exception classes for the tenant evidence toolkit.

This module defines the exception hierarchy for error conditions that can
occur while organizing incident logs, rendering PDF reports and talking to
the incident API.
"""


class TenantEvidenceError(Exception):
    """
    Base exception class for all tenant evidence errors.

    All custom exceptions in this module inherit from this base class,
    allowing for broad exception handling when needed.

    Attributes:
        message: Human-readable error description
        details: Optional dictionary containing additional error context
    """

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the base exception.

        Args:
            message: Error message describing what went wrong
            details: Optional dictionary with additional context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return a string representation of the exception."""
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class UnsortedLogsError(TenantEvidenceError, ValueError):
    """
    Raised when the timeline builder receives logs out of chronological order.

    The timeline builder does not sort its input. Callers pass the result of
    ``sort_logs`` or a sequence that is already ascending by ``created_at``.

    Attributes:
        position: Index of the first log that is earlier than its predecessor
        log_id: Id of that log
    """

    def __init__(self, position: int, log_id: int = None):
        self.position = position
        self.log_id = log_id

        message = (
            f"Incident logs are not sorted by creation time "
            f"(first out-of-order entry at index {position})"
        )
        details = {"position": position}
        if log_id is not None:
            details["log_id"] = log_id

        super().__init__(message, details)


class AssetFetchError(TenantEvidenceError):
    """
    Raised when an evidence asset (usually a photo) cannot be downloaded.

    The report generator recovers from this per item by drawing a
    placeholder, so it never aborts an export on its own.

    Attributes:
        url: The asset URL that failed
        reason: Short description of the failure
        cause: Optional underlying exception
    """

    def __init__(self, url: str, reason: str = None, cause: Exception = None):
        self.url = url
        self.reason = reason or "Asset could not be fetched"
        self.cause = cause

        details = {"url": url}
        if cause:
            details["cause"] = str(cause)

        super().__init__(f"Failed to fetch asset: {self.reason}", details)


class ReportGenerationError(TenantEvidenceError):
    """
    Raised when a PDF document cannot be laid out or written.

    Attributes:
        report: Which report was being generated (e.g. 'case_report')
        cause: Optional underlying exception
    """

    def __init__(self, report: str, reason: str = None, cause: Exception = None):
        self.report = report
        self.reason = reason or "PDF generation failed"
        self.cause = cause

        details = {"report": report}
        if cause:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__

        super().__init__(self.reason, details)


class ApiError(TenantEvidenceError):
    """
    Raised when the incident API returns an error or cannot be reached.

    Attributes:
        url: Request URL
        status: HTTP status code, if a response was received
        reason: Reason phrase or connection error text
    """

    def __init__(self, url: str, status: int = None, reason: str = None):
        self.url = url
        self.status = status
        self.reason = reason or "Request failed"

        if status is not None:
            message = f"API request failed with HTTP {status}: {self.reason}"
        else:
            message = f"API request failed: {self.reason}"

        details = {"url": url}
        if status is not None:
            details["status"] = status

        super().__init__(message, details)


class UploadError(TenantEvidenceError):
    """
    Raised when a generated file cannot be uploaded to an incident.

    Attributes:
        incident_id: Target incident
        filename: Name of the uploaded file
        cause: Optional underlying exception
    """

    def __init__(self, incident_id: int, filename: str, cause: Exception = None):
        self.incident_id = incident_id
        self.filename = filename
        self.cause = cause

        details = {"incident_id": incident_id, "filename": filename}
        if cause:
            details["cause"] = str(cause)

        super().__init__("Failed to save analysis PDF", details)
