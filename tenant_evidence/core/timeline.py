"""
Tenant Evidence - Timeline Builder

Turns an incident's chronologically sorted log list into display-ready
timeline items. Consecutive AI/user chat turns collapse into one
conversation block; photos that belong to another log are left out.
"""

from dataclasses import dataclass
from typing import List, Literal, Sequence, Tuple, Union

from tenant_evidence.core.classifier import SortedLogs, is_attachment_photo
from tenant_evidence.models import IncidentLog, LogType
from tenant_evidence.utils.exceptions import UnsortedLogsError


@dataclass(frozen=True)
class SingleItem:
    """A log rendered as its own timeline entry."""
    log: IncidentLog
    kind: Literal["single"] = "single"


@dataclass(frozen=True)
class ChatGroupItem:
    """A run of consecutive chat turns rendered as one conversation block."""
    id: str
    chats: Tuple[IncidentLog, ...]
    kind: Literal["chat_group"] = "chat_group"


TimelineItem = Union[SingleItem, ChatGroupItem]


def _ensure_sorted(logs: Sequence[IncidentLog]) -> None:
    for position in range(1, len(logs)):
        if logs[position].created_at < logs[position - 1].created_at:
            raise UnsortedLogsError(position, logs[position].id)


def build_timeline_items(logs: Sequence[IncidentLog]) -> List[TimelineItem]:
    """
    Build timeline items from logs sorted ascending by ``created_at``.

    This function does not sort. Pass the result of ``sort_logs``; any other
    sequence is checked and rejected when out of order.

    Args:
        logs: Chronologically sorted incident logs

    Returns:
        Timeline items in input order

    Raises:
        UnsortedLogsError: If a plain sequence is not in chronological order
    """
    if not isinstance(logs, SortedLogs):
        _ensure_sorted(logs)

    items: List[TimelineItem] = []
    chat_run: List[IncidentLog] = []
    group_index = 0

    def flush() -> None:
        nonlocal chat_run, group_index
        if chat_run:
            items.append(ChatGroupItem(id=f"chat-group-{group_index}", chats=tuple(chat_run)))
            group_index += 1
            chat_run = []

    for log in logs:
        if is_attachment_photo(log):
            continue

        if log.type == LogType.CHAT:
            chat_run.append(log)
            continue

        flush()
        items.append(SingleItem(log=log))

    flush()
    return items


def timeline_log_ids(items: Sequence[TimelineItem]) -> List[int]:
    """Flatten timeline items back to log ids, in display order."""
    ids = []
    for item in items:
        if isinstance(item, ChatGroupItem):
            ids.extend(chat.id for chat in item.chats)
        else:
            ids.append(item.log.id)
    return ids
