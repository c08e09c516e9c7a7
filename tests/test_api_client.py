"""
Tests for the incident API client.

urlopen is patched in every test; no request leaves the process.
"""

import json
from http.client import BadStatusLine, IncompleteRead, InvalidURL, RemoteDisconnected
from unittest.mock import Mock, patch
from urllib.error import HTTPError, URLError

import pytest

from tenant_evidence.integrations.api_client import IncidentApiClient, UploadResult
from tenant_evidence.utils.exceptions import ApiError, AssetFetchError


def _response(body):
    """A context-manager response whose read() returns ``body``."""
    if not isinstance(body, bytes):
        body = json.dumps(body).encode()
    mock_response = Mock()
    mock_response.read.return_value = body
    mock_response.__enter__ = Mock(return_value=mock_response)
    mock_response.__exit__ = Mock(return_value=False)
    return mock_response


LOG_PAYLOAD = [
    {"id": 1, "incidentId": 7, "type": "call", "content": "Called", "createdAt": "2024-03-05T14:30:00"},
    {"id": 2, "incidentId": 7, "type": "photo", "fileUrl": "/f/1.jpg", "createdAt": "2024-03-05T14:31:00",
     "metadata": {"parentLogId": 1}},
]


class TestClientInit:
    """Tests for client construction."""

    def test_defaults(self):
        """Test the default base URL and timeout."""
        client = IncidentApiClient()
        assert client.base_url == "http://127.0.0.1:5000"
        assert client.timeout == 15

    def test_trailing_slash_removed(self):
        """Test the base URL is normalized."""
        assert IncidentApiClient(base_url="http://api.test/").base_url == "http://api.test"


class TestGetIncident:
    """Tests for get_incident."""

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_success(self, mock_urlopen):
        """Test the incident is parsed from camelCase JSON."""
        mock_urlopen.return_value = _response({
            "id": 7, "title": "Leak", "status": "open", "createdAt": "2024-03-01T09:00:00",
        })
        incident = IncidentApiClient(base_url="http://api.test").get_incident(7)

        assert incident.id == 7
        assert incident.title == "Leak"
        request = mock_urlopen.call_args[0][0]
        assert request.full_url == "http://api.test/api/incidents/7"
        assert request.get_method() == "GET"

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_http_error(self, mock_urlopen):
        """Test an HTTP error becomes ApiError with the status."""
        mock_urlopen.side_effect = HTTPError(url="http://api.test", code=404, msg="Not Found", hdrs={}, fp=None)

        with pytest.raises(ApiError) as exc_info:
            IncidentApiClient().get_incident(7)
        assert exc_info.value.status == 404

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_connection_error(self, mock_urlopen):
        """Test a connection failure becomes ApiError without a status."""
        mock_urlopen.side_effect = URLError("Connection refused")

        with pytest.raises(ApiError) as exc_info:
            IncidentApiClient().get_incident(7)
        assert exc_info.value.status is None
        assert "Connection refused" in exc_info.value.reason

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_timeout(self, mock_urlopen):
        """Test a timeout becomes ApiError."""
        mock_urlopen.side_effect = TimeoutError()

        with pytest.raises(ApiError, match="timed out"):
            IncidentApiClient().get_incident(7)

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_invalid_json(self, mock_urlopen):
        """Test a non-JSON body becomes ApiError."""
        mock_urlopen.return_value = _response(b"<html>oops</html>")

        with pytest.raises(ApiError, match="Invalid JSON"):
            IncidentApiClient().get_incident(7)

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_unexpected_payload(self, mock_urlopen):
        """Test a payload missing required fields becomes ApiError."""
        mock_urlopen.return_value = _response({"id": 7})

        with pytest.raises(ApiError, match="Unexpected incident payload"):
            IncidentApiClient().get_incident(7)


class TestGetLogs:
    """Tests for get_logs and its cache."""

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_parses_logs(self, mock_urlopen):
        """Test logs are parsed with their metadata."""
        mock_urlopen.return_value = _response(LOG_PAYLOAD)
        logs = IncidentApiClient().get_logs(7)

        assert [log.id for log in logs] == [1, 2]
        assert logs[1].parent_log_id == 1

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_cached(self, mock_urlopen):
        """Test a second call is served from the cache."""
        mock_urlopen.return_value = _response(LOG_PAYLOAD)
        client = IncidentApiClient()

        client.get_logs(7)
        client.get_logs(7)
        assert mock_urlopen.call_count == 1

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_invalidate_refetches(self, mock_urlopen):
        """Test invalidation forces a new request."""
        mock_urlopen.side_effect = lambda *a, **kw: _response(LOG_PAYLOAD)
        client = IncidentApiClient()

        client.get_logs(7)
        client.invalidate_logs(7)
        client.get_logs(7)
        assert mock_urlopen.call_count == 2

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_refresh_bypasses_cache(self, mock_urlopen):
        """Test refresh=True always requests."""
        mock_urlopen.side_effect = lambda *a, **kw: _response(LOG_PAYLOAD)
        client = IncidentApiClient()

        client.get_logs(7)
        client.get_logs(7, refresh=True)
        assert mock_urlopen.call_count == 2

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_empty_body(self, mock_urlopen):
        """Test an empty body is an empty list."""
        mock_urlopen.return_value = _response(b"")
        assert IncidentApiClient().get_logs(7) == []

    def test_invalidate_unknown_incident(self):
        """Test invalidating an uncached incident is harmless."""
        IncidentApiClient().invalidate_logs(99)


class TestFetchBytes:
    """Tests for asset downloads."""

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_relative_url_resolved(self, mock_urlopen):
        """Test relative asset URLs resolve against the base URL."""
        mock_urlopen.return_value = _response(b"\x89PNG")
        data = IncidentApiClient(base_url="http://api.test").fetch_bytes("/uploads/a.png")

        assert data == b"\x89PNG"
        assert mock_urlopen.call_args[0][0].full_url == "http://api.test/uploads/a.png"

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_absolute_url_kept(self, mock_urlopen):
        """Test absolute URLs are used as given."""
        mock_urlopen.return_value = _response(b"data")
        IncidentApiClient(base_url="http://api.test").fetch_bytes("https://cdn.test/a.png")

        assert mock_urlopen.call_args[0][0].full_url == "https://cdn.test/a.png"

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_timeout_passed(self, mock_urlopen):
        """Test the configured timeout is used."""
        mock_urlopen.return_value = _response(b"data")
        IncidentApiClient(timeout=3).fetch_bytes("/a.png")

        assert mock_urlopen.call_args[1]["timeout"] == 3

    @pytest.mark.parametrize("error", [
        HTTPError(url="http://api.test", code=404, msg="Not Found", hdrs={}, fp=None),
        URLError("Connection refused"),
        TimeoutError(),
    ])
    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_failures(self, mock_urlopen, error):
        """Test every download failure becomes AssetFetchError."""
        mock_urlopen.side_effect = error

        with pytest.raises(AssetFetchError) as exc_info:
            IncidentApiClient().fetch_bytes("/a.png")
        assert exc_info.value.url == "/a.png"

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_malformed_url(self, mock_urlopen):
        """Test a URL that cannot be parsed becomes AssetFetchError."""
        with pytest.raises(AssetFetchError) as exc_info:
            IncidentApiClient().fetch_bytes("http://[bad-host/x.jpg")
        assert exc_info.value.url == "http://[bad-host/x.jpg"
        mock_urlopen.assert_not_called()

    @pytest.mark.parametrize("error", [
        BadStatusLine("garbage"),
        InvalidURL("control characters"),
        RemoteDisconnected("closed"),
    ])
    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_protocol_errors(self, mock_urlopen, error):
        """Test http.client failures while connecting become AssetFetchError."""
        mock_urlopen.side_effect = error

        with pytest.raises(AssetFetchError):
            IncidentApiClient().fetch_bytes("/a.png")

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_truncated_body(self, mock_urlopen):
        """Test a body cut short mid-download becomes AssetFetchError."""
        response = _response(b"")
        response.read.side_effect = IncompleteRead(b"\x89PN", 100)
        mock_urlopen.return_value = response

        with pytest.raises(AssetFetchError) as exc_info:
            IncidentApiClient().fetch_bytes("/a.png")
        assert isinstance(exc_info.value.__cause__, IncompleteRead)


class TestUploadFile:
    """Tests for upload_file."""

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_multipart_request(self, mock_urlopen):
        """Test the upload is a multipart POST with the category query."""
        mock_urlopen.return_value = _response({
            "id": 9, "incidentId": 7, "type": "document", "fileUrl": "/uploads/r.pdf",
            "createdAt": "2024-03-05T15:00:00", "metadata": {"category": "analysis_pdf"},
        })
        result = IncidentApiClient(base_url="http://api.test").upload_file(
            7, "r.pdf", b"%PDF-1.4", category="analysis_pdf",
        )

        assert isinstance(result, UploadResult)
        assert result.file_url == "/uploads/r.pdf"
        assert result.log.id == 9

        request = mock_urlopen.call_args[0][0]
        assert request.full_url == "http://api.test/api/incidents/7/upload?category=analysis_pdf"
        assert request.get_method() == "POST"
        content_type = request.get_header("Content-type")
        assert content_type.startswith("multipart/form-data; boundary=")
        assert b'name="file"; filename="r.pdf"' in request.data
        assert b"Content-Type: application/pdf" in request.data
        assert b"%PDF-1.4" in request.data

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_non_log_response(self, mock_urlopen):
        """Test a bare {"fileUrl"} response still yields the URL."""
        mock_urlopen.return_value = _response({"fileUrl": "/uploads/r.pdf"})
        result = IncidentApiClient().upload_file(7, "r.pdf", b"x")

        assert result.file_url == "/uploads/r.pdf"
        assert result.log is None
        assert mock_urlopen.call_args[0][0].full_url.endswith("/api/incidents/7/upload")

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_rejected(self, mock_urlopen):
        """Test a rejected upload raises ApiError."""
        mock_urlopen.side_effect = HTTPError(url="http://api.test", code=413, msg="Too Large", hdrs={}, fp=None)

        with pytest.raises(ApiError):
            IncidentApiClient().upload_file(7, "r.pdf", b"x")


class TestRecordPdfExport:
    """Tests for record_pdf_export."""

    @patch("tenant_evidence.integrations.api_client.urlopen")
    def test_posts(self, mock_urlopen):
        """Test the export is posted to the incident."""
        mock_urlopen.return_value = _response(b"")
        IncidentApiClient(base_url="http://api.test").record_pdf_export(7)

        request = mock_urlopen.call_args[0][0]
        assert request.full_url == "http://api.test/api/incidents/7/pdf-export"
        assert request.get_method() == "POST"
