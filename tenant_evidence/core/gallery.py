"""
Tenant Evidence - File Gallery Builder

Partitions an incident's photos and documents into named gallery groups.

Groups are produced by an ordered pipeline of claim stages that share one
pool of unclaimed file ids. A stage can only take files still in the pool,
so every photo/document lands in at most one group and the first stage to
want a file wins:

1. Incident cover photos
2. Per-event bundles (files attached to calls, texts, emails, ...)
3. Chat attachments
4. Remaining photos
5. Remaining documents, with AI analysis PDFs split out
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from tenant_evidence.core.classifier import get_meta_category, is_analysis_pdf, sort_logs
from tenant_evidence.models import Incident, IncidentLog, LogCategory, LogType


@dataclass(frozen=True)
class FileGroup:
    """A named bucket of evidence files shown in the files view."""
    id: str
    label: str
    icon: str
    color: str
    files: Tuple[IncidentLog, ...]
    type: str

    @property
    def file_ids(self) -> List[int]:
        return [f.id for f in self.files]


# Log type -> (icon, color) for per-event groups
EVENT_STYLES: Dict[LogType, Tuple[str, str]] = {
    LogType.CALL: ("phone", "blue"),
    LogType.TEXT: ("message", "green"),
    LogType.EMAIL: ("mail", "purple"),
    LogType.SERVICE: ("wrench", "orange"),
    LogType.PHOTO: ("image", "blue"),
    LogType.NOTE: ("file", "slate"),
}
DEFAULT_EVENT_STYLE = ("file", "slate")

# Log types that can own a per-event bundle (titled photos also qualify)
EVENT_PARENT_TYPES = frozenset({
    LogType.CALL,
    LogType.TEXT,
    LogType.EMAIL,
    LogType.SERVICE,
    LogType.NOTE,
})

FILE_TYPES = frozenset({LogType.PHOTO, LogType.DOCUMENT})

LABEL_CONTENT_CHARS = 30


class ClaimPool:
    """Unclaimed file logs, in input order."""

    def __init__(self, logs: Iterable[IncidentLog]):
        self._files = [log for log in logs if log.type in FILE_TYPES]
        self._remaining: Set[int] = {log.id for log in self._files}

    def remaining(self, log_type: Optional[LogType] = None) -> List[IncidentLog]:
        """Unclaimed files (optionally of one type) in input order."""
        return [
            log for log in self._files
            if log.id in self._remaining and (log_type is None or log.type == log_type)
        ]

    def claim(self, candidates: Iterable[IncidentLog]) -> List[IncidentLog]:
        """Take every still-unclaimed candidate out of the pool."""
        claimed = []
        for log in candidates:
            if log.id in self._remaining:
                self._remaining.discard(log.id)
                claimed.append(log)
        return claimed


ClaimStage = Callable[[Sequence[IncidentLog], ClaimPool, Optional[Incident]], List[FileGroup]]


def event_label(log: IncidentLog) -> str:
    """Label for a per-event group, e.g. 'Call: Called property manager'."""
    type_label = log.type.value.capitalize()
    if log.title:
        return f"{type_label}: {log.title}"
    content = log.content or ""
    suffix = "..." if len(content) > LABEL_CONTENT_CHARS else ""
    return f"{type_label}: {content[:LABEL_CONTENT_CHARS]}{suffix}"


def claim_incident_photos(
    logs: Sequence[IncidentLog],
    pool: ClaimPool,
    incident: Optional[Incident],
) -> List[FileGroup]:
    """
    Stage 1: incident cover photos, labeled with the incident title.

    Without incident context the covers stay in the pool and fall through
    to the standalone photos.
    """
    if incident is None:
        return []
    covers = pool.claim(
        p for p in pool.remaining(LogType.PHOTO)
        if get_meta_category(p) == LogCategory.INCIDENT_PHOTO.value
    )
    if not covers:
        return []
    return [FileGroup(
        id="incident",
        label=incident.title,
        icon="folder",
        color="slate",
        files=tuple(covers),
        type="incident",
    )]


def claim_event_attachments(
    logs: Sequence[IncidentLog],
    pool: ClaimPool,
    incident: Optional[Incident],
) -> List[FileGroup]:
    """Stage 2: one group per event log holding the files attached to it."""
    parents = sort_logs(
        log for log in logs
        if log.type in EVENT_PARENT_TYPES or (log.type == LogType.PHOTO and log.title)
    )

    groups = []
    for parent in parents:
        candidates = []
        if parent.type == LogType.PHOTO and parent.file_url:
            candidates.append(parent)
        candidates.extend(
            p for p in pool.remaining(LogType.PHOTO) if p.parent_log_id == parent.id
        )
        candidates.extend(
            d for d in pool.remaining(LogType.DOCUMENT) if d.parent_log_id == parent.id
        )

        files = pool.claim(candidates)
        if not files:
            continue

        icon, color = EVENT_STYLES.get(parent.type, DEFAULT_EVENT_STYLE)
        groups.append(FileGroup(
            id=f"log-{parent.id}",
            label=event_label(parent),
            icon=icon,
            color=color,
            files=tuple(files),
            type=parent.type.value,
        ))
    return groups


def claim_chat_files(
    logs: Sequence[IncidentLog],
    pool: ClaimPool,
    incident: Optional[Incident],
) -> List[FileGroup]:
    """Stage 3: photos and documents shared in the AI chat."""
    photos = pool.claim(
        p for p in pool.remaining(LogType.PHOTO)
        if get_meta_category(p) == LogCategory.CHAT_PHOTO.value
    )
    documents = pool.claim(
        d for d in pool.remaining(LogType.DOCUMENT)
        if get_meta_category(d) == LogCategory.CHAT_DOCUMENT.value
    )
    files = sort_logs(photos + documents)
    if not files:
        return []
    return [FileGroup(
        id="chat-files",
        label="Chat Files",
        icon="bot",
        color="slate",
        files=tuple(files),
        type="chat",
    )]


def claim_standalone_photos(
    logs: Sequence[IncidentLog],
    pool: ClaimPool,
    incident: Optional[Incident],
) -> List[FileGroup]:
    """Stage 4: every photo nobody claimed."""
    photos = pool.claim(pool.remaining(LogType.PHOTO))
    if not photos:
        return []
    return [FileGroup(
        id="standalone-photos",
        label="Other Photos",
        icon="image",
        color="slate",
        files=tuple(photos),
        type="standalone",
    )]


def claim_standalone_documents(
    logs: Sequence[IncidentLog],
    pool: ClaimPool,
    incident: Optional[Incident],
) -> List[FileGroup]:
    """Stage 5: remaining documents, AI analysis PDFs first."""
    groups = []

    analysis_pdfs = pool.claim(d for d in pool.remaining(LogType.DOCUMENT) if is_analysis_pdf(d))
    if analysis_pdfs:
        groups.append(FileGroup(
            id="analysis-pdfs",
            label="AI Analysis PDFs",
            icon="bot",
            color="violet",
            files=tuple(analysis_pdfs),
            type="analysis_pdf",
        ))

    documents = pool.claim(pool.remaining(LogType.DOCUMENT))
    if documents:
        groups.append(FileGroup(
            id="documents",
            label="Documents",
            icon="paperclip",
            color="slate",
            files=tuple(documents),
            type="document",
        ))
    return groups


CLAIM_STAGES: Tuple[ClaimStage, ...] = (
    claim_incident_photos,
    claim_event_attachments,
    claim_chat_files,
    claim_standalone_photos,
    claim_standalone_documents,
)


def build_file_groups(
    logs: Sequence[IncidentLog],
    incident: Optional[Incident] = None,
) -> List[FileGroup]:
    """
    Partition an incident's photos and documents into gallery groups.

    Args:
        logs: All logs of one incident, in fetch order
        incident: Incident context; without it cover photos count as standalone

    Returns:
        File groups in display order
    """
    logs = list(logs)
    pool = ClaimPool(logs)
    groups: List[FileGroup] = []
    for stage in CLAIM_STAGES:
        groups.extend(stage(logs, pool, incident))
    return groups


def claimed_ids(groups: Iterable[FileGroup]) -> List[int]:
    """All file ids across groups, in display order."""
    return [file_id for group in groups for file_id in group.file_ids]
