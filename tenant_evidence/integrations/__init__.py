"""External collaborators: the incident API client and export hooks."""

from tenant_evidence.integrations.api_client import IncidentApiClient, UploadResult
from tenant_evidence.integrations.hooks import (
    ConsoleNotifier,
    ExportHooks,
    Notification,
    RecordingNotifier,
)

__all__ = [
    "IncidentApiClient",
    "UploadResult",
    "ExportHooks",
    "Notification",
    "RecordingNotifier",
    "ConsoleNotifier",
]
