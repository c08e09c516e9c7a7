"""
Tenant Evidence - AI Analysis PDF

Renders a structured AI case analysis as a short text-only PDF and saves it
to the incident's files, where it shows up in the "AI Analysis PDFs" group.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from reportlab.lib import colors

from tenant_evidence.integrations.api_client import UploadResult
from tenant_evidence.integrations.hooks import VARIANT_DESTRUCTIVE, ExportHooks
from tenant_evidence.models import AnalysisResult, Incident, LogCategory
from tenant_evidence.output.layout import PageLayout
from tenant_evidence.output.text_utils import collapse_whitespace, format_long_datetime
from tenant_evidence.utils.audit import AuditAction, AuditLogger
from tenant_evidence.utils.exceptions import UploadError

logger = logging.getLogger(__name__)

DISCLAIMER = "This analysis is for informational purposes only and does not constitute legal advice."

# (incident_id, filename, data, content_type, category) -> UploadResult
Uploader = Callable[..., UploadResult]


def analysis_filename(incident: Incident, now: Optional[datetime] = None) -> str:
    """File name for an analysis PDF, e.g. 'ai-analysis-42-2024-03-05-14-30-00.pdf'."""
    now = now or datetime.now()
    return f"ai-analysis-{incident.id}-{now:%Y-%m-%d-%H-%M-%S}.pdf"


class AnalysisPDFGenerator:
    """Lays out an AnalysisResult as headings and wrapped paragraphs."""

    MARGIN = 16

    HEADING_COLOR = colors.HexColor("#0f172a")
    BODY_COLOR = colors.HexColor("#334155")
    META_COLOR = colors.HexColor("#475569")
    MUTED_COLOR = colors.HexColor("#64748b")

    def __init__(self, now: Optional[Callable[[], datetime]] = None):
        self.clock = now or datetime.now

    def render(self, incident: Incident, analysis: AnalysisResult) -> bytes:
        """
        Render the analysis PDF.

        Args:
            incident: Incident the analysis belongs to
            analysis: Structured analysis result

        Returns:
            PDF document bytes
        """
        layout = PageLayout(margin=self.MARGIN, title=f"AI Case Analysis - {incident.title}")

        layout.set_font("Helvetica-Bold", 16)
        layout.set_text_color(self.HEADING_COLOR)
        layout.text("AI Case Analysis", layout.margin)
        layout.y += 8

        layout.set_font("Helvetica", 10)
        layout.set_text_color(self.META_COLOR)
        layout.text(f"Incident: {incident.title}", layout.margin)
        layout.y += 5
        layout.text(f"Generated: {format_long_datetime(self.clock(), separator=' ')}", layout.margin)
        layout.y += 8

        self._heading(layout, "Summary")
        self._body(layout, analysis.summary or "N/A")

        self._heading(layout, "Assessment")
        self._body(layout, f"Evidence Score: {analysis.score_label}")
        self._body(layout, f"Recommendation: {analysis.recommendation.value}")

        if analysis.violations:
            self._heading(layout, "Potential Violations")
            self._numbered(layout, [
                f"{v.code}: {v.description} ({v.severity.value})" for v in analysis.violations
            ])

        if analysis.timeline_analysis:
            self._heading(layout, "Timeline Analysis")
            self._body(layout, analysis.timeline_analysis)

        if analysis.strength_factors:
            self._heading(layout, "Strength Factors")
            self._numbered(layout, analysis.strength_factors)

        if analysis.weakness_factors:
            self._heading(layout, "Weakness Factors")
            self._numbered(layout, analysis.weakness_factors)

        if analysis.next_steps:
            self._heading(layout, "Next Steps")
            self._numbered(layout, analysis.next_steps)

        layout.check_page_break(14)
        self._body(layout, DISCLAIMER, font=("Helvetica-Oblique", 9), color=self.MUTED_COLOR)

        return layout.finish()

    def _heading(self, layout: PageLayout, text: str) -> None:
        layout.check_page_break(10)
        layout.set_font("Helvetica-Bold", 12)
        layout.set_text_color(self.HEADING_COLOR)
        layout.text(text, layout.margin)
        layout.y += 6

    def _body(self, layout: PageLayout, text: str, font=("Helvetica", 10), color=None) -> None:
        text = collapse_whitespace(text)
        if not text:
            return
        layout.set_font(*font)
        layout.set_text_color(color or self.BODY_COLOR)
        layout.text_block(layout.wrap(text), layout.margin, leading=5, gap=2)

    def _numbered(self, layout: PageLayout, items: List[str]) -> None:
        for index, item in enumerate(items, start=1):
            self._body(layout, f"{index}. {item}")


def save_analysis_pdf_to_incident(
    incident: Incident,
    analysis: AnalysisResult,
    uploader: Uploader,
    hooks: Optional[ExportHooks] = None,
    generator: Optional[AnalysisPDFGenerator] = None,
    audit: Optional[AuditLogger] = None,
) -> Optional[UploadResult]:
    """
    Render an analysis PDF and upload it to the incident's files.

    On success the incident's log cache is invalidated so the new file shows
    up, and "Analysis PDF Saved" is notified. Any failure notifies
    "Save Failed" with the error message and leaves the cache alone. The
    busy flag is always cleared.

    Args:
        incident: Incident to save under
        analysis: Structured analysis result
        uploader: Upload callable, e.g. ``IncidentApiClient.upload_file``
        hooks: Notifier, busy flag and cache invalidation callbacks
        generator: PDF generator (default: AnalysisPDFGenerator())
        audit: Audit trail to record the upload in

    Returns:
        The upload result, or None if saving failed
    """
    hooks = hooks or ExportHooks()
    generator = generator or AnalysisPDFGenerator()
    filename = analysis_filename(incident, generator.clock())

    hooks.busy(True)
    try:
        pdf_bytes = generator.render(incident, analysis)
        try:
            result = uploader(
                incident.id,
                filename,
                pdf_bytes,
                content_type="application/pdf",
                category=LogCategory.ANALYSIS_PDF.value,
            )
        except Exception as e:
            raise UploadError(incident.id, filename, cause=e) from e

        hooks.invalidate()
        if audit:
            audit.log_analysis_upload(incident.id, filename, file_url=result.file_url if result else None)
        hooks.emit("Analysis PDF Saved", "Saved under this incident’s Files section.")
        logger.info(f"Saved analysis PDF {filename} to incident {incident.id}")
        return result

    except Exception as e:
        logger.error(f"Analysis PDF save failed: {e}")
        if audit:
            audit.log_error(AuditAction.ANALYSIS_UPLOAD.value, e, incident_id=incident.id, filename=filename)
        message = getattr(e, "message", None) or str(e) or "Could not save analysis PDF."
        hooks.emit("Save Failed", message, VARIANT_DESTRUCTIVE)
        return None

    finally:
        hooks.busy(False)
