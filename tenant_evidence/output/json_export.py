"""JSON export of organized incident evidence.

Serializes timeline items and gallery file groups, handling Pydantic
models, datetime objects, paths, enums and the frozen dataclasses the
builders return.
"""

import dataclasses
import json
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from tenant_evidence.core.gallery import FileGroup
from tenant_evidence.core.timeline import ChatGroupItem, TimelineItem


class EvidenceJSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for evidence data types.

    Handles serialization of:
    - datetime objects (ISO 8601 format)
    - Path objects (string representation)
    - Enum values (value extraction)
    - Pydantic models (camelCase API keys)
    - Dataclasses (field dict)
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Path):
            return str(obj)
        if isinstance(obj, Enum):
            return obj.value
        if hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json", by_alias=True)
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
        return super().default(obj)


def timeline_item_to_dict(item: TimelineItem) -> dict:
    """Plain dict for one timeline item."""
    if isinstance(item, ChatGroupItem):
        return {"kind": item.kind, "id": item.id, "chats": list(item.chats)}
    return {"kind": item.kind, "log": item.log}


def file_group_to_dict(group: FileGroup) -> dict:
    """Plain dict for one file group."""
    return {
        "id": group.id,
        "label": group.label,
        "icon": group.icon,
        "color": group.color,
        "type": group.type,
        "files": list(group.files),
    }


class JSONExporter:
    """Exporter for timeline items and file groups."""

    def __init__(self, indent: int = 2, sort_keys: bool = False):
        """Initialize the JSON exporter.

        Args:
            indent: Number of spaces for indentation (default: 2)
            sort_keys: Whether to sort keys alphabetically (default: False)
        """
        self.indent = indent
        self.sort_keys = sort_keys

    def dumps(self, data: Any) -> str:
        return json.dumps(
            data,
            cls=EvidenceJSONEncoder,
            indent=self.indent,
            sort_keys=self.sort_keys,
            ensure_ascii=False,
        )

    def timeline_to_json(self, items: Sequence[TimelineItem]) -> str:
        """Timeline items as a JSON array."""
        return self.dumps([timeline_item_to_dict(item) for item in items])

    def groups_to_json(self, groups: Sequence[FileGroup]) -> str:
        """File groups as a JSON array."""
        return self.dumps([file_group_to_dict(group) for group in groups])

    def to_file(
        self,
        json_str: str,
        file_path: Union[str, Path],
        encoding: str = "utf-8",
    ) -> Path:
        """Save a JSON string, creating parent directories."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", encoding=encoding) as f:
            f.write(json_str)
        return file_path


def export_timeline_to_json(
    items: Sequence[TimelineItem],
    output_path: Optional[Union[str, Path]] = None,
    indent: int = 2,
) -> str:
    """Convenience function to export timeline items to JSON."""
    exporter = JSONExporter(indent=indent)
    json_str = exporter.timeline_to_json(items)
    if output_path:
        exporter.to_file(json_str, output_path)
    return json_str


def export_groups_to_json(
    groups: List[FileGroup],
    output_path: Optional[Union[str, Path]] = None,
    indent: int = 2,
) -> str:
    """Convenience function to export file groups to JSON."""
    exporter = JSONExporter(indent=indent)
    json_str = exporter.groups_to_json(groups)
    if output_path:
        exporter.to_file(json_str, output_path)
    return json_str
