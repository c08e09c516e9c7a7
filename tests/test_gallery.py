"""Tests for the file gallery builder."""

import random

import pytest

from tenant_evidence.core.gallery import (
    CLAIM_STAGES,
    ClaimPool,
    build_file_groups,
    claimed_ids,
    event_label,
)


def _groups_by_id(groups):
    return {group.id: group for group in groups}


class TestClaimPool:
    """Tests for ClaimPool."""

    def test_only_files_enter_pool(self, make_log):
        """Test only photos and documents are claimable."""
        pool = ClaimPool([make_log(1, "call"), make_log(2, "photo"), make_log(3, "document")])
        assert [log.id for log in pool.remaining()] == [2, 3]

    def test_claim_is_exclusive(self, make_log):
        """Test a file can be claimed once."""
        photo = make_log(1, "photo")
        pool = ClaimPool([photo])
        assert pool.claim([photo]) == [photo]
        assert pool.claim([photo]) == []
        assert pool.remaining() == []


class TestEventLabel:
    """Tests for per-event group labels."""

    def test_title_preferred(self, make_log):
        """Test the title is used when present."""
        assert event_label(make_log(1, "call", title="Called PM")) == "Call: Called PM"

    def test_long_content_truncated(self, make_log):
        """Test content over 30 characters gets an ellipsis."""
        log = make_log(1, "email", content="A" * 31)
        assert event_label(log) == "Email: " + "A" * 30 + "..."

    def test_short_content_kept(self, make_log):
        """Test content up to 30 characters is kept whole."""
        assert event_label(make_log(1, "text", content="B" * 30)) == "Text: " + "B" * 30


class TestBuildFileGroups:
    """Tests for build_file_groups."""

    def test_no_files(self, make_log):
        """Test an incident without files has no groups."""
        assert build_file_groups([make_log(1, "call"), make_log(2, "chat")]) == []

    def test_group_order(self, incident, make_log):
        """Test groups come out in claim-stage order."""
        logs = [
            make_log(1, "call", 0),
            make_log(2, "photo", 1, metadata={"category": "incident_photo"}),
            make_log(3, "photo", 2, metadata={"parentLogId": 1}),
            make_log(4, "photo", 3, metadata={"category": "chat_photo"}),
            make_log(5, "photo", 4),
            make_log(6, "document", 5, metadata={"category": "analysis_pdf"}),
            make_log(7, "document", 6),
        ]
        groups = build_file_groups(logs, incident)
        assert [g.id for g in groups] == [
            "incident", "log-1", "chat-files", "standalone-photos", "analysis-pdfs", "documents",
        ]
        assert [g.file_ids for g in groups] == [[2], [3], [4], [5], [6], [7]]

    def test_incident_group_needs_incident(self, make_log):
        """Test cover photos fall through to leftovers without incident context."""
        logs = [make_log(1, "photo", metadata={"category": "incident_photo"})]
        groups = build_file_groups(logs)
        assert [g.id for g in groups] == ["standalone-photos"]
        assert groups[0].file_ids == [1]

    def test_incident_group_label(self, incident, make_log):
        """Test the cover group is labeled with the incident title."""
        logs = [make_log(1, "photo", metadata={"category": "incident_photo"})]
        group = build_file_groups(logs, incident)[0]
        assert (group.label, group.icon, group.color, group.type) == ("Broken Heater", "folder", "slate", "incident")

    def test_event_group_style(self, make_log):
        """Test per-event groups take icon and color from the log type."""
        logs = [
            make_log(1, "email", 0, title="Repair request"),
            make_log(2, "document", 1, metadata={"parentLogId": 1}),
        ]
        group = build_file_groups(logs)[0]
        assert group.id == "log-1"
        assert group.label == "Email: Repair request"
        assert (group.icon, group.color, group.type) == ("mail", "purple", "email")

    def test_note_can_own_files(self, make_log):
        """Test notes collect files attached to them."""
        logs = [make_log(1, "note", 0), make_log(2, "photo", 1, metadata={"parentLogId": 1})]
        group = build_file_groups(logs)[0]
        assert group.id == "log-1"
        assert (group.icon, group.color) == ("file", "slate")

    def test_titled_photo_is_own_event(self, make_log):
        """Test a titled photo with a file forms its own group with its children."""
        logs = [
            make_log(1, "photo", 0, title="Water damage", fileUrl="/files/1.jpg"),
            make_log(2, "photo", 1, metadata={"parentLogId": 1}),
        ]
        group = build_file_groups(logs)[0]
        assert group.id == "log-1"
        assert group.label == "Photo: Water damage"
        assert group.file_ids == [1, 2]
        assert (group.icon, group.color) == ("image", "blue")

    def test_event_groups_sorted_by_time(self, make_log):
        """Test per-event groups follow parent creation time."""
        logs = [
            make_log(1, "call", 50),
            make_log(2, "text", 10),
            make_log(3, "photo", 60, metadata={"parentLogId": 1}),
            make_log(4, "photo", 20, metadata={"parentLogId": 2}),
        ]
        assert [g.id for g in build_file_groups(logs)] == ["log-2", "log-1"]

    def test_chat_files_sorted_by_time(self, make_log):
        """Test chat photos and documents are merged in time order."""
        logs = [
            make_log(1, "photo", 30, metadata={"category": "chat_photo"}),
            make_log(2, "document", 10, metadata={"category": "chat_document"}),
            make_log(3, "photo", 20, metadata={"category": "chat_photo"}),
        ]
        group = build_file_groups(logs)[0]
        assert group.id == "chat-files"
        assert group.label == "Chat Files"
        assert group.file_ids == [2, 3, 1]

    def test_standalone_photos_keep_input_order(self, make_log):
        """Test leftover photos keep their relative order."""
        logs = [make_log(1, "photo", 30), make_log(2, "photo", 10), make_log(3, "photo", 20)]
        group = build_file_groups(logs)[0]
        assert group.label == "Other Photos"
        assert group.file_ids == [1, 2, 3]

    def test_gallery_priority(self, make_log):
        """Test an event link beats the chat category."""
        logs = [
            make_log(1, "call", 0),
            make_log(2, "photo", 1, metadata={"parentLogId": 1, "category": "chat_photo"}),
        ]
        groups = _groups_by_id(build_file_groups(logs))
        assert groups["log-1"].file_ids == [2]
        assert "chat-files" not in groups

    def test_incident_cover_beats_event_link(self, incident, make_log):
        """Test cover photos are claimed before per-event bundles."""
        logs = [
            make_log(1, "call", 0),
            make_log(2, "photo", 1, metadata={"parentLogId": 1, "category": "incident_photo"}),
        ]
        groups = _groups_by_id(build_file_groups(logs, incident))
        assert groups["incident"].file_ids == [2]
        assert "log-1" not in groups

    def test_orphaned_parent_falls_through(self, make_log):
        """Test files pointing at a missing parent end up as leftovers."""
        logs = [
            make_log(1, "photo", 0, metadata={"parentLogId": 99}),
            make_log(2, "document", 1, metadata={"parentLogId": 99}),
        ]
        groups = _groups_by_id(build_file_groups(logs))
        assert groups["standalone-photos"].file_ids == [1]
        assert groups["documents"].file_ids == [2]

    def test_scenario_a(self, incident, scenario_a_logs):
        """Test a call with an attached photo and a plain chat exchange."""
        groups = build_file_groups(scenario_a_logs, incident)
        assert [g.id for g in groups] == ["log-1"]
        assert groups[0].file_ids == [2]
        assert groups[0].label == "Call: Called PM"

    def test_scenario_b(self, make_log):
        """Test an unattached analysis PDF lands in its own group."""
        logs = [make_log(1, "document", metadata={"category": "analysis_pdf"})]
        groups = _groups_by_id(build_file_groups(logs))
        assert groups["analysis-pdfs"].label == "AI Analysis PDFs"
        assert groups["analysis-pdfs"].file_ids == [1]
        assert (groups["analysis-pdfs"].icon, groups["analysis-pdfs"].color) == ("bot", "violet")
        assert "documents" not in groups

    def test_idempotent(self, incident, scenario_a_logs):
        """Test repeated calls give equal output."""
        assert build_file_groups(scenario_a_logs, incident) == build_file_groups(scenario_a_logs, incident)

    def test_stage_pipeline(self):
        """Test the stage order is fixed."""
        assert [stage.__name__ for stage in CLAIM_STAGES] == [
            "claim_incident_photos",
            "claim_event_attachments",
            "claim_chat_files",
            "claim_standalone_photos",
            "claim_standalone_documents",
        ]


class TestPartitionProperty:
    """Every photo/document lands in exactly one group."""

    TYPES = ["call", "text", "email", "service", "note", "photo", "photo", "document", "document", "chat"]
    CATEGORIES = [
        None, None, "chat_photo", "chat_document", "incident_photo",
        "analysis_pdf", "call_photo", "mystery",
    ]

    @pytest.mark.parametrize("seed", range(30))
    def test_partition(self, incident, make_log, seed):
        """Test the union of groups is exactly the file set, without repeats."""
        rng = random.Random(seed)
        logs = []
        for log_id in range(1, rng.randint(0, 50) + 1):
            metadata = {}
            category = rng.choice(self.CATEGORIES)
            if category:
                metadata["category"] = category
            if rng.random() < 0.4:
                metadata["parentLogId"] = rng.randint(1, 50)
            title = "Titled" if rng.random() < 0.3 else None
            logs.append(make_log(
                log_id,
                rng.choice(self.TYPES),
                rng.randint(0, 1000),
                metadata=metadata,
                title=title,
                fileUrl=f"/files/{log_id}" if rng.random() < 0.8 else None,
            ))

        groups = build_file_groups(logs, incident)
        ids = claimed_ids(groups)
        expected = {log.id for log in logs if log.type.value in ("photo", "document")}

        assert len(ids) == len(set(ids))
        assert set(ids) == expected
        assert all(group.files for group in groups)
