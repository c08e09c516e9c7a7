"""
Utility modules for the tenant evidence toolkit.

This package contains the custom exceptions and the export audit trail.
"""

from tenant_evidence.utils.audit import AuditAction, AuditLevel, AuditLogger, get_audit_logger
from tenant_evidence.utils.exceptions import (
    ApiError,
    AssetFetchError,
    ReportGenerationError,
    TenantEvidenceError,
    UnsortedLogsError,
    UploadError,
)

__all__ = [
    # Exceptions
    "TenantEvidenceError",
    "UnsortedLogsError",
    "AssetFetchError",
    "ReportGenerationError",
    "ApiError",
    "UploadError",
    # Audit Logging
    "AuditAction",
    "AuditLevel",
    "AuditLogger",
    "get_audit_logger",
]
