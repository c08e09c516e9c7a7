"""Tests for custom exception classes."""

import pytest

from tenant_evidence.utils.exceptions import (
    ApiError,
    AssetFetchError,
    ReportGenerationError,
    TenantEvidenceError,
    UnsortedLogsError,
    UploadError,
)


class TestTenantEvidenceError:
    """Tests for base TenantEvidenceError."""

    def test_basic_error(self):
        """Test basic error creation."""
        error = TenantEvidenceError("Test error")
        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.details == {}

    def test_error_with_details(self):
        """Test error with details."""
        error = TenantEvidenceError("Test error", {"key": "value"})
        assert "key=value" in str(error)
        assert error.details == {"key": "value"}


class TestUnsortedLogsError:
    """Tests for UnsortedLogsError."""

    def test_position_and_log_id(self):
        """Test the offending position and log id are recorded."""
        error = UnsortedLogsError(position=3, log_id=17)
        assert error.position == 3
        assert error.log_id == 17
        assert "index 3" in str(error)
        assert "log_id=17" in str(error)

    def test_is_value_error(self):
        """Test it can be caught as a ValueError."""
        with pytest.raises(ValueError):
            raise UnsortedLogsError(position=1)


class TestAssetFetchError:
    """Tests for AssetFetchError."""

    def test_default_reason(self):
        """Test default reason and url detail."""
        error = AssetFetchError("/files/a.jpg")
        assert error.url == "/files/a.jpg"
        assert "Asset could not be fetched" in str(error)
        assert error.details["url"] == "/files/a.jpg"

    def test_with_cause(self):
        """Test the cause is kept."""
        cause = OSError("connection reset")
        error = AssetFetchError("/files/a.jpg", reason="Connection error", cause=cause)
        assert error.cause is cause
        assert "connection reset" in error.details["cause"]


class TestReportGenerationError:
    """Tests for ReportGenerationError."""

    def test_cause_type_recorded(self):
        """Test the cause type lands in details."""
        error = ReportGenerationError("case_report", cause=PermissionError("denied"))
        assert error.report == "case_report"
        assert error.details["cause_type"] == "PermissionError"
        assert str(error).startswith("PDF generation failed")


class TestApiError:
    """Tests for ApiError."""

    def test_with_status(self):
        """Test message with an HTTP status."""
        error = ApiError("http://host/api/incidents/1", status=404, reason="Not Found")
        assert error.message == "API request failed with HTTP 404: Not Found"
        assert error.details["status"] == 404

    def test_without_status(self):
        """Test message for connection failures."""
        error = ApiError("http://host/api", reason="Connection error: refused")
        assert error.status is None
        assert error.message == "API request failed: Connection error: refused"


class TestUploadError:
    """Tests for UploadError."""

    def test_message(self):
        """Test the user-facing message."""
        error = UploadError(7, "ai-analysis-7.pdf", cause=RuntimeError("boom"))
        assert error.message == "Failed to save analysis PDF"
        assert error.details["incident_id"] == 7
        assert error.details["filename"] == "ai-analysis-7.pdf"


class TestExceptionHierarchy:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize("error", [
        UnsortedLogsError(1),
        AssetFetchError("/x"),
        ReportGenerationError("case_report"),
        ApiError("/x"),
        UploadError(1, "x.pdf"),
    ])
    def test_all_inherit_from_base(self, error):
        """Test every error is a TenantEvidenceError."""
        assert isinstance(error, TenantEvidenceError)
