"""
Pydantic data models for tenant incident evidence.

This module defines the records an incident view is built from: incidents,
their evidence logs (calls, texts, emails, photos, documents, AI chat turns)
and the structured AI case analysis that can be exported as a PDF.

Incoming JSON uses the API's camelCase keys (``incidentId``, ``fileUrl``,
``createdAt``); every model also accepts the snake_case field names.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class LogType(str, Enum):
    """Closed set of incident log types."""
    CALL = "call"
    TEXT = "text"
    EMAIL = "email"
    SERVICE = "service"
    NOTE = "note"
    PHOTO = "photo"
    DOCUMENT = "document"
    CHAT = "chat"


class LogCategory(str, Enum):
    """Recognized values of ``metadata.category``."""
    CHAT_PHOTO = "chat_photo"
    CHAT_DOCUMENT = "chat_document"
    INCIDENT_PHOTO = "incident_photo"
    INCIDENT_DOCUMENT = "incident_document"
    ANALYSIS_PDF = "analysis_pdf"
    CALL_PHOTO = "call_photo"
    TEXT_PHOTO = "text_photo"
    EMAIL_PHOTO = "email_photo"
    SERVICE_PHOTO = "service_photo"
    CALL_DOCUMENT = "call_document"
    TEXT_DOCUMENT = "text_document"
    EMAIL_DOCUMENT = "email_document"
    SERVICE_DOCUMENT = "service_document"
    OTHER = "other"  # Anything outside the vocabulary

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["LogCategory"]:
        """
        Map a raw category tag to the enum.

        Returns None for a missing tag and OTHER for an unrecognized one.
        Never raises.
        """
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class Recommendation(str, Enum):
    """Overall strength of a case as judged by the AI analysis."""
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"


class Severity(str, Enum):
    """Severity of a potential violation."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class LogMetadata(BaseModel):
    """Open key/value bag attached to a log.

    Only ``category`` and ``parentLogId`` are interpreted; every other key is
    preserved untouched. Values of the wrong shape read as absent.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    category: Optional[str] = Field(None, description="Special-role tag, e.g. 'chat_photo'")
    parent_log_id: Optional[int] = Field(
        None,
        alias="parentLogId",
        description="Id of the log this file is attached to",
    )

    @field_validator("category", mode="before")
    @classmethod
    def _tolerate_category(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None

    @field_validator("parent_log_id", mode="before")
    @classmethod
    def _tolerate_parent_id(cls, v: Any) -> Optional[int]:
        # bool is an int subclass; never treat it as an id
        if isinstance(v, bool):
            return None
        if isinstance(v, int):
            return v
        if isinstance(v, str) and v.strip().isdigit():
            return int(v.strip())
        return None

    @property
    def category_kind(self) -> Optional[LogCategory]:
        """Category as a closed enum (OTHER for unknown tags)."""
        return LogCategory.parse(self.category)


class IncidentLog(BaseModel):
    """One evidence, communication or chat entry belonging to an incident."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int = Field(..., description="Storage-assigned log id")
    incident_id: int = Field(..., alias="incidentId", description="Owning incident id")
    type: LogType = Field(..., description="Log type; decides rendering and classification")
    title: Optional[str] = Field(None, description="Optional short label")
    content: Optional[str] = Field(None, description="Free text body")
    file_url: Optional[str] = Field(None, alias="fileUrl", description="URL of an attached asset")
    metadata: LogMetadata = Field(default_factory=LogMetadata, description="Open metadata bag")
    is_ai: bool = Field(False, alias="isAi", description="Assistant-authored chat turn")
    created_at: datetime = Field(..., alias="createdAt", description="Creation time; the ordering key")

    @field_validator("metadata", mode="before")
    @classmethod
    def _tolerate_metadata(cls, v: Any) -> Any:
        if v is None or not isinstance(v, (dict, LogMetadata)):
            return {}
        return v

    @field_validator("is_ai", mode="before")
    @classmethod
    def _null_is_ai(cls, v: Any) -> Any:
        return False if v is None else v

    @model_validator(mode="after")
    def _require_content(self) -> "IncidentLog":
        if self.content is None and self.type not in (LogType.PHOTO, LogType.DOCUMENT):
            raise ValueError(f"content is required for '{self.type.value}' logs")
        return self

    @property
    def category(self) -> Optional[str]:
        """Raw ``metadata.category`` tag."""
        return self.metadata.category

    @property
    def parent_log_id(self) -> Optional[int]:
        """Id of the log this file rides on, if any."""
        return self.metadata.parent_log_id


class Incident(BaseModel):
    """A tenant's case record grouping all evidence about one dispute."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int = Field(..., description="Incident id")
    title: str = Field(..., description="Case title")
    description: Optional[str] = Field(None, description="Case description")
    status: str = Field("open", description="Case status ('open' or other)")
    created_at: datetime = Field(..., alias="createdAt", description="Creation time")


class Violation(BaseModel):
    """A potential legal violation identified by the AI analysis."""
    code: str = Field(..., description="Statute or rule reference")
    description: str = Field(..., description="What was violated")
    severity: Severity = Field(..., description="Severity of the violation")


class AnalysisResult(BaseModel):
    """Structured AI case analysis."""
    model_config = ConfigDict(populate_by_name=True)

    summary: str = Field("", description="Narrative case summary")
    evidence_score: float = Field(..., alias="evidenceScore", ge=0, le=10, description="Evidence score out of 10")
    recommendation: Recommendation = Field(..., description="Overall case strength")
    violations: List[Violation] = Field(default_factory=list, description="Potential violations")
    timeline_analysis: str = Field("", alias="timelineAnalysis", description="Prose analysis of the timeline")
    next_steps: List[str] = Field(default_factory=list, alias="nextSteps", description="Recommended actions")
    strength_factors: Optional[List[str]] = Field(None, alias="strengthFactors")
    weakness_factors: Optional[List[str]] = Field(None, alias="weaknessFactors")

    @property
    def score_label(self) -> str:
        """Evidence score as displayed, e.g. '7/10' or '6.5/10'."""
        score = self.evidence_score
        text = str(int(score)) if float(score).is_integer() else f"{score:g}"
        return f"{text}/10"


class CaseBundle(BaseModel):
    """An incident together with its full log list, as fetched for one view."""
    incident: Incident
    logs: List[IncidentLog] = Field(default_factory=list)

    @model_validator(mode="after")
    def _same_incident(self) -> "CaseBundle":
        foreign = [log.id for log in self.logs if log.incident_id != self.incident.id]
        if foreign:
            raise ValueError(
                f"Logs {foreign} do not belong to incident {self.incident.id}"
            )
        return self

    def logs_by_id(self) -> Dict[int, IncidentLog]:
        """Index logs by id."""
        return {log.id: log for log in self.logs}
