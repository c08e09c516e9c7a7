"""
Log classification for incident evidence.

Pure functions that answer "what role does this log play" by inspecting its
type and metadata bag. Nothing here mutates its inputs, so the timeline and
gallery builders can call these freely on the same snapshot.
"""

from datetime import timedelta
from typing import Iterable, Iterator, List, Optional, Sequence

from tenant_evidence.models import IncidentLog, LogCategory, LogType

# Log types a photo can be attached to
PHOTO_PARENT_TYPES = frozenset({
    LogType.CALL,
    LogType.TEXT,
    LogType.EMAIL,
    LogType.PHOTO,
    LogType.SERVICE,
})

# Log types a document can be attached to
DOCUMENT_PARENT_TYPES = frozenset({
    LogType.CALL,
    LogType.TEXT,
    LogType.EMAIL,
    LogType.SERVICE,
})


class SortedLogs(Sequence[IncidentLog]):
    """
    Immutable sequence of logs in ascending ``created_at`` order.

    Only ``sort_logs`` builds one, so holding a SortedLogs is proof that the
    chronological precondition of the timeline builder holds.
    """

    __slots__ = ("_logs",)

    def __init__(self, logs: Iterable[IncidentLog], *, _presorted: bool = False):
        if not _presorted:
            raise TypeError("Use sort_logs() to build a SortedLogs sequence")
        self._logs = tuple(logs)

    def __getitem__(self, index):
        return self._logs[index]

    def __len__(self) -> int:
        return len(self._logs)

    def __iter__(self) -> Iterator[IncidentLog]:
        return iter(self._logs)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SortedLogs):
            return self._logs == other._logs
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(log.id for log in self._logs))

    def __repr__(self) -> str:
        return f"SortedLogs({[log.id for log in self._logs]})"


def sort_logs(logs: Iterable[IncidentLog]) -> SortedLogs:
    """
    Sort logs ascending by creation time.

    The sort is stable: logs sharing a timestamp keep their fetch order.

    Args:
        logs: Logs in any order

    Returns:
        SortedLogs sequence
    """
    return SortedLogs(sorted(logs, key=lambda log: log.created_at), _presorted=True)


def get_meta_category(log: IncidentLog) -> Optional[str]:
    """Return the raw ``metadata.category`` tag, or None when absent."""
    return log.metadata.category


def get_category_kind(log: IncidentLog) -> Optional[LogCategory]:
    """Return the category as an enum (OTHER when unrecognized)."""
    return log.metadata.category_kind


def is_analysis_pdf(log: IncidentLog) -> bool:
    """True if the log is an AI case-analysis PDF."""
    return get_meta_category(log) == LogCategory.ANALYSIS_PDF.value


def is_attachment_photo(log: IncidentLog) -> bool:
    """
    True for photos that belong to something else.

    A photo with a category (chat attachment, incident cover, call photo...)
    or a parent log is shown with its owner, never as its own timeline entry.
    """
    if log.type != LogType.PHOTO:
        return False
    return bool(get_meta_category(log)) or log.parent_log_id is not None


def get_attached_photos(log: IncidentLog, all_logs: Iterable[IncidentLog]) -> List[IncidentLog]:
    """
    Photos attached to a log through ``metadata.parentLogId``.

    Args:
        log: Candidate parent log
        all_logs: All logs of the same incident

    Returns:
        Attached photos in input order; empty for types that cannot carry photos
    """
    if log.type not in PHOTO_PARENT_TYPES:
        return []
    return [
        other for other in all_logs
        if other.type == LogType.PHOTO and other.parent_log_id == log.id
    ]


def get_attached_documents(log: IncidentLog, all_logs: Iterable[IncidentLog]) -> List[IncidentLog]:
    """
    Documents attached to a log through ``metadata.parentLogId``.

    Args:
        log: Candidate parent log
        all_logs: All logs of the same incident

    Returns:
        Attached documents in input order; empty for types that cannot carry documents
    """
    if log.type not in DOCUMENT_PARENT_TYPES:
        return []
    return [
        other for other in all_logs
        if other.type == LogType.DOCUMENT and other.parent_log_id == log.id
    ]


def find_time_window_photos(
    log: IncidentLog,
    all_logs: Iterable[IncidentLog],
    window: timedelta,
) -> List[IncidentLog]:
    """
    Legacy photo association by upload time.

    Older clients uploaded call/text/email photos without a ``parentLogId``
    and tagged them ``<type>_photo`` instead. Such a photo is taken to belong
    to a log when it was created within ``[0, window)`` after it. Photos that
    do carry a ``parentLogId`` are never matched here.

    Args:
        log: Candidate parent log (photos are never parents here)
        all_logs: All logs of the same incident
        window: Association window; zero disables matching

    Returns:
        Matching photos in input order
    """
    if log.type == LogType.PHOTO or window <= timedelta(0):
        return []

    category = f"{log.type.value}_photo"
    matches = []
    for other in all_logs:
        if other.type != LogType.PHOTO or other.parent_log_id is not None:
            continue
        if get_meta_category(other) != category:
            continue
        delta = other.created_at - log.created_at
        if timedelta(0) <= delta < window:
            matches.append(other)
    return matches
