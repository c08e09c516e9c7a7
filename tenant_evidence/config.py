"""
Tenant Evidence - Configuration

Runtime settings read from environment variables. Explicit arguments always
win over the environment; invalid environment values fall back to the
defaults with a warning.
"""

import logging
import os
from pathlib import Path
from typing import ClassVar, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """Settings shared by the report generators, API client and CLI."""

    ENV_VAR_API_URL: ClassVar[str] = "TENANT_EVIDENCE_API_URL"
    ENV_VAR_BRAND: ClassVar[str] = "TENANT_EVIDENCE_BRAND"
    ENV_VAR_FETCH_TIMEOUT: ClassVar[str] = "TENANT_EVIDENCE_FETCH_TIMEOUT"
    ENV_VAR_PHOTO_WINDOW: ClassVar[str] = "TENANT_EVIDENCE_PHOTO_WINDOW"
    ENV_VAR_AUDIT_DIR: ClassVar[str] = "TENANT_EVIDENCE_AUDIT_DIR"

    api_url: str = Field("http://127.0.0.1:5000", description="Base URL of the incident API")
    brand: str = Field("YourRentalRights.com", description="Brand shown in report footers")
    fetch_timeout: float = Field(15.0, gt=0, description="Timeout in seconds for asset downloads")
    legacy_photo_window: float = Field(
        60.0,
        ge=0,
        description="Seconds after a log in which unlinked '<type>_photo' photos count as attached (0 disables)",
    )
    audit_dir: Path = Field(Path("logs"), description="Directory for the export audit trail")

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """
        Build settings from the environment.

        Args:
            **overrides: Explicit values that take precedence over env vars

        Returns:
            Settings instance
        """
        values = {}

        api_url = os.environ.get(cls.ENV_VAR_API_URL)
        if api_url:
            values["api_url"] = api_url.rstrip("/")

        brand = os.environ.get(cls.ENV_VAR_BRAND)
        if brand:
            values["brand"] = brand

        timeout = _read_float(cls.ENV_VAR_FETCH_TIMEOUT, minimum=0.001)
        if timeout is not None:
            values["fetch_timeout"] = timeout

        window = _read_float(cls.ENV_VAR_PHOTO_WINDOW, minimum=0.0)
        if window is not None:
            values["legacy_photo_window"] = window

        audit_dir = os.environ.get(cls.ENV_VAR_AUDIT_DIR)
        if audit_dir:
            values["audit_dir"] = Path(audit_dir)

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _read_float(name: str, minimum: float) -> Optional[float]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not a number")
        return None
    if value < minimum:
        logger.warning(f"Ignoring {name}={raw!r}: must be at least {minimum}")
        return None
    return value
