"""Pytest configuration and shared fixtures for tenant evidence tests."""

import io
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from tenant_evidence.models import Incident, IncidentLog

BASE_TIME = datetime(2024, 3, 5, 14, 30, 0)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def base_time():
    """Fixed reference time all sample logs are offset from."""
    return BASE_TIME


@pytest.fixture
def incident():
    """An open incident."""
    return Incident(
        id=1,
        title="Broken Heater",
        description="The heater has not worked since January & the landlord ignores requests.",
        status="open",
        createdAt=BASE_TIME - timedelta(days=1),
    )


@pytest.fixture
def make_log():
    """Factory for incident logs with sensible defaults.

    ``offset`` is seconds after the reference time; ``metadata`` keys use the
    API's camelCase names.
    """
    def _make(log_id, log_type, offset=0, content=None, **kwargs):
        if content is None and log_type not in ("photo", "document"):
            content = f"{log_type} entry {log_id}"
        data = {
            "id": log_id,
            "incidentId": kwargs.pop("incident_id", 1),
            "type": log_type,
            "content": content,
            "createdAt": BASE_TIME + timedelta(seconds=offset),
        }
        data.update(kwargs)
        return IncidentLog.model_validate(data)

    return _make


@pytest.fixture
def scenario_a_logs(make_log):
    """Call with an attached photo followed by a user/AI chat exchange."""
    return [
        make_log(1, "call", 0, content="Called PM"),
        make_log(2, "photo", 60, fileUrl="/files/heater.jpg", metadata={"parentLogId": 1}),
        make_log(3, "chat", 600, content="What are my rights?", isAi=False),
        make_log(4, "chat", 601, content="You may request repairs in writing.", isAi=True),
    ]


@pytest.fixture
def png_bytes():
    """A tiny valid PNG image."""
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", (8, 6), (200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def placements(monkeypatch):
    """Record (text, page, baseline) for every line drawn on any PageLayout."""
    from tenant_evidence.output.layout import PageLayout

    drawn = []
    original = PageLayout.text

    def record(self, text, x, y=None):
        drawn.append((text, self.page_number, self.y if y is None else y))
        return original(self, text, x, y)

    monkeypatch.setattr(PageLayout, "text", record)
    return drawn
