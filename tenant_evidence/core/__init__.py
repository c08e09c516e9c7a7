"""
Core evidence organization.

Pure functions over an incident's log list: classification, the timeline
builder and the file gallery partition.
"""

from tenant_evidence.core.classifier import (
    SortedLogs,
    find_time_window_photos,
    get_attached_documents,
    get_attached_photos,
    get_meta_category,
    is_analysis_pdf,
    is_attachment_photo,
    sort_logs,
)
from tenant_evidence.core.gallery import FileGroup, build_file_groups, claimed_ids
from tenant_evidence.core.timeline import (
    ChatGroupItem,
    SingleItem,
    TimelineItem,
    build_timeline_items,
    timeline_log_ids,
)

__all__ = [
    # Classifier
    "SortedLogs",
    "sort_logs",
    "get_meta_category",
    "is_analysis_pdf",
    "is_attachment_photo",
    "get_attached_photos",
    "get_attached_documents",
    "find_time_window_photos",
    # Timeline
    "SingleItem",
    "ChatGroupItem",
    "TimelineItem",
    "build_timeline_items",
    "timeline_log_ids",
    # Gallery
    "FileGroup",
    "build_file_groups",
    "claimed_ids",
]
