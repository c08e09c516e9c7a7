"""
Tenant Evidence - Incident API Client

HTTP client for the incident API: reads incidents and their logs, downloads
evidence assets for the PDF report, uploads generated files and records
report exports.

No external dependencies required - uses urllib.
"""

import json
import logging
import threading
import uuid
from dataclasses import dataclass
from http.client import HTTPException
from typing import Dict, List, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urljoin
from urllib.request import Request, urlopen

from pydantic import ValidationError

from tenant_evidence.models import Incident, IncidentLog
from tenant_evidence.utils.exceptions import ApiError, AssetFetchError

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    """Outcome of a file upload: where the file lives and the log created for it."""
    file_url: Optional[str]
    log: Optional[IncidentLog] = None


class IncidentApiClient:
    """
    HTTP client for the incident API.

    Log lists are cached per incident until ``invalidate_logs`` is called,
    so the timeline and gallery views can share one fetch.
    """

    DEFAULT_BASE_URL = "http://127.0.0.1:5000"
    TIMEOUT_SECONDS = 15

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = TIMEOUT_SECONDS,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API base URL (default: http://127.0.0.1:5000)
            timeout: Request timeout in seconds, also used for asset downloads
            headers: Extra headers sent with every request (e.g. a session cookie)
        """
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.headers = dict(headers or {})
        self._log_cache: Dict[int, List[IncidentLog]] = {}
        self._cache_lock = threading.Lock()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _request_json(self, path: str, method: str = "GET", data: bytes = None, headers: dict = None):
        url = self._url(path)
        req = Request(url, data=data, headers={**self.headers, **(headers or {})}, method=method)
        try:
            with urlopen(req, timeout=self.timeout) as response:
                body = response.read().decode("utf-8")
        except HTTPError as e:
            logger.error(f"{method} {url} failed: HTTP {e.code}")
            raise ApiError(url, status=e.code, reason=str(e.reason)) from e
        except URLError as e:
            logger.error(f"{method} {url} failed: {e.reason}")
            raise ApiError(url, reason=f"Connection error: {e.reason}") from e
        except TimeoutError as e:
            raise ApiError(url, reason=f"Request timed out after {self.timeout}s") from e

        if not body.strip():
            return None
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise ApiError(url, reason=f"Invalid JSON response: {e}") from e

    def get_incident(self, incident_id: int) -> Incident:
        """Fetch one incident."""
        path = f"/api/incidents/{incident_id}"
        data = self._request_json(path)
        try:
            return Incident.model_validate(data)
        except ValidationError as e:
            raise ApiError(self._url(path), reason=f"Unexpected incident payload: {e.error_count()} errors") from e

    def get_logs(self, incident_id: int, refresh: bool = False) -> List[IncidentLog]:
        """
        Fetch all logs of an incident, in server order.

        Args:
            incident_id: Incident id
            refresh: Bypass the cache

        Returns:
            Incident logs
        """
        with self._cache_lock:
            if not refresh and incident_id in self._log_cache:
                return list(self._log_cache[incident_id])

        path = f"/api/incidents/{incident_id}/logs"
        data = self._request_json(path) or []
        try:
            logs = [IncidentLog.model_validate(item) for item in data]
        except ValidationError as e:
            raise ApiError(self._url(path), reason=f"Unexpected log payload: {e.error_count()} errors") from e

        with self._cache_lock:
            self._log_cache[incident_id] = logs
        logger.debug(f"Fetched {len(logs)} logs for incident {incident_id}")
        return list(logs)

    def invalidate_logs(self, incident_id: int) -> None:
        """Forget the cached log list of an incident."""
        with self._cache_lock:
            self._log_cache.pop(incident_id, None)

    def fetch_bytes(self, url: str) -> bytes:
        """
        Download an asset (relative URLs resolve against the API base).

        Raises:
            AssetFetchError: On a malformed URL or response and on any HTTP,
                connection or timeout failure
        """
        try:
            req = Request(urljoin(f"{self.base_url}/", url), headers=self.headers)
            with urlopen(req, timeout=self.timeout) as response:
                return response.read()
        except HTTPError as e:
            raise AssetFetchError(url, reason=f"HTTP error {e.code}: {e.reason}", cause=e) from e
        except URLError as e:
            raise AssetFetchError(url, reason=f"Connection error: {e.reason}", cause=e) from e
        except TimeoutError as e:
            raise AssetFetchError(url, reason=f"Timed out after {self.timeout}s", cause=e) from e
        except (ValueError, HTTPException) as e:
            raise AssetFetchError(url, reason=f"Invalid URL or response: {e}", cause=e) from e

    def upload_file(
        self,
        incident_id: int,
        filename: str,
        data: bytes,
        content_type: str = "application/pdf",
        category: Optional[str] = None,
    ) -> UploadResult:
        """
        Upload a file to an incident as multipart field ``file``.

        The server stores it and creates a photo or document log for it.

        Raises:
            ApiError: If the upload is rejected or the server is unreachable
        """
        boundary = f"----TenantEvidence{uuid.uuid4().hex}"
        body = b"".join([
            f"--{boundary}\r\n".encode(),
            f'Content-Disposition: form-data; name="file"; filename="{filename}"\r\n'.encode(),
            f"Content-Type: {content_type}\r\n\r\n".encode(),
            data,
            f"\r\n--{boundary}--\r\n".encode(),
        ])

        path = f"/api/incidents/{incident_id}/upload"
        if category:
            path += f"?category={quote(category)}"

        payload = self._request_json(
            path,
            method="POST",
            data=body,
            headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
        )

        log = None
        file_url = None
        if isinstance(payload, dict):
            file_url = payload.get("fileUrl")
            try:
                log = IncidentLog.model_validate(payload)
            except ValidationError:
                logger.warning(f"Upload response for {filename} is not a log record")

        logger.info(f"Uploaded {filename} to incident {incident_id}")
        return UploadResult(file_url=file_url, log=log)

    def record_pdf_export(self, incident_id: int) -> None:
        """Tell the server a case report was exported (unlocks AI analysis)."""
        self._request_json(f"/api/incidents/{incident_id}/pdf-export", method="POST")
