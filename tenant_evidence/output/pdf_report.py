"""
Tenant Evidence - PDF Case Report Generator

Generates the downloadable case report for one incident using ReportLab.

Report sections:
1. Header (title, status pill, creation date)
2. Description (optional)
3. Evidence Timeline (calls, texts, emails, photos, service requests)
4. AI Consultation History (chat turns, markdown rendered)
5. "Page X of N" footer on every page
"""

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from reportlab.lib import colors

from tenant_evidence.config import Settings
from tenant_evidence.core.classifier import find_time_window_photos, get_attached_photos, sort_logs
from tenant_evidence.integrations.api_client import IncidentApiClient
from tenant_evidence.integrations.hooks import VARIANT_DESTRUCTIVE, ExportHooks
from tenant_evidence.models import Incident, IncidentLog, LogType
from tenant_evidence.output.layout import PageLayout
from tenant_evidence.output.markdown_renderer import MarkdownRenderer
from tenant_evidence.output.text_utils import (
    clean_text,
    format_long_date,
    format_long_datetime,
    format_short_datetime,
    slugify_filename,
)
from tenant_evidence.utils.audit import AuditAction, AuditLogger
from tenant_evidence.utils.exceptions import AssetFetchError, ReportGenerationError

logger = logging.getLogger(__name__)

ImageFetcher = Callable[[str], bytes]

IMAGE_PLACEHOLDER = "[Image could not be embedded]"


def format_footer(page: int, page_count: int, brand: str, generated_at: datetime) -> str:
    """Footer line stamped on every page."""
    return f"Page {page} of {page_count}  |  Generated by {brand}  |  {format_long_date(generated_at)}"


def report_filename(incident: Incident, today: Optional[datetime] = None) -> str:
    """File name for a case report, e.g. 'case-report-broken-heater-2024-03-05.pdf'."""
    today = today or datetime.now()
    return f"case-report-{slugify_filename(incident.title)}-{today:%Y-%m-%d}.pdf"


class IncidentReportGenerator:
    """
    Generates the PDF case report for an incident.

    Photos are downloaded one at a time, in timeline order, through the
    ``fetch_image`` callable. A photo that cannot be fetched or decoded is
    replaced by a placeholder line; it never aborts the report.
    """

    MARGIN = 20

    TIMELINE_TYPES = frozenset({
        LogType.CALL,
        LogType.TEXT,
        LogType.EMAIL,
        LogType.PHOTO,
        LogType.SERVICE,
    })

    TYPE_TAGS = {
        LogType.CALL: "[CALL]",
        LogType.TEXT: "[TEXT]",
        LogType.EMAIL: "[EMAIL]",
        LogType.SERVICE: "[SERVICE]",
        LogType.PHOTO: "[PHOTO]",
    }

    SLATE_900 = colors.HexColor("#1e293b")
    SLATE_500 = colors.HexColor("#64748b")
    BLUE = colors.HexColor("#3b82f6")
    GREEN = colors.HexColor("#22c55e")
    GREY = colors.HexColor("#969696")
    RULE = colors.HexColor("#c8c8c8")

    def __init__(
        self,
        brand: Optional[str] = None,
        fetch_image: Optional[ImageFetcher] = None,
        photo_window: Optional[float] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the report generator.

        Unset arguments fall back to ``Settings.from_env()``.

        Args:
            brand: Name shown in the footer (default: YourRentalRights.com)
            fetch_image: Callable url -> image bytes (default: HTTP download
                against the configured API URL and fetch timeout)
            photo_window: Seconds for legacy unlinked photo association (0 disables)
            now: Clock used for the footer date and file name
        """
        settings = Settings.from_env()
        self.brand = brand or settings.brand
        if fetch_image is None:
            client = IncidentApiClient(base_url=settings.api_url, timeout=settings.fetch_timeout)
            fetch_image = client.fetch_bytes
        self.fetch_image = fetch_image
        if photo_window is None:
            photo_window = settings.legacy_photo_window
        self.photo_window = timedelta(seconds=photo_window)
        self._now = now or datetime.now
        self.page_count = 0

    # -- public API ----------------------------------------------------------

    def render(self, incident: Incident, logs: Sequence[IncidentLog]) -> bytes:
        """
        Render the case report.

        Args:
            incident: The incident being reported
            logs: All logs of the incident, in any order

        Returns:
            PDF document bytes
        """
        generated_at = self._now()
        layout = PageLayout(
            margin=self.MARGIN,
            footer_text=lambda page, count: format_footer(page, count, self.brand, generated_at),
            title=f"Case Report - {incident.title}",
        )

        self._draw_header(layout, incident)
        self._draw_description(layout, incident)

        layout.set_draw_color(self.RULE)
        layout.line(layout.margin, layout.y, layout.page_width - layout.margin, layout.y)
        layout.y += 10

        self._draw_timeline(layout, logs)
        self._draw_chat_history(layout, logs)

        pdf_bytes = layout.finish()
        self.page_count = layout.page_number
        logger.info(f"Rendered case report for incident {incident.id}: {self.page_count} pages")
        return pdf_bytes

    def generate(
        self,
        incident: Incident,
        logs: Sequence[IncidentLog],
        output_dir: Union[str, Path] = ".",
    ) -> Path:
        """
        Render the report and save it under its standard file name.

        Returns:
            Path to the generated PDF file
        """
        pdf_bytes = self.render(incident, logs)
        output_path = Path(output_dir) / report_filename(incident, self._now())
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(pdf_bytes)
        except OSError as e:
            raise ReportGenerationError("case_report", reason=f"Could not write {output_path}", cause=e) from e
        return output_path

    def attached_photos(self, log: IncidentLog, all_logs: Sequence[IncidentLog]) -> List[IncidentLog]:
        """
        Photos listed under a non-photo timeline entry.

        Linked photos (``parentLogId``) come first; unlinked photos found by
        the legacy upload-time window follow.
        """
        if log.type == LogType.PHOTO:
            return []
        linked = get_attached_photos(log, all_logs)
        seen = {p.id for p in linked}
        legacy = [
            p for p in find_time_window_photos(log, all_logs, self.photo_window)
            if p.id not in seen
        ]
        return linked + legacy

    def timeline_entries(self, logs: Sequence[IncidentLog]) -> List[Tuple[IncidentLog, List[IncidentLog]]]:
        """
        Timeline entries with the photos shown under each.

        A photo listed under an entry is not repeated as its own entry, and
        no photo is listed under two entries.
        """
        entries = sort_logs(log for log in logs if log.type in self.TIMELINE_TYPES)

        shown: set = set()
        attachments: Dict[int, List[IncidentLog]] = {}
        for log in entries:
            photos = [p for p in self.attached_photos(log, logs) if p.id not in shown]
            shown.update(p.id for p in photos)
            attachments[log.id] = photos

        return [(log, attachments[log.id]) for log in entries if log.id not in shown]

    # -- sections ------------------------------------------------------------

    def _draw_header(self, layout: PageLayout, incident: Incident) -> None:
        layout.set_font("Helvetica-Bold", 22)
        layout.set_text_color(self.SLATE_900)
        layout.text("CASE REPORT", layout.margin)
        layout.y += 12

        layout.set_font("Helvetica-Bold", 16)
        layout.set_text_color(colors.black)
        title_lines = layout.wrap(incident.title)
        layout.text_lines(title_lines, layout.margin, leading=6)
        layout.y += len(title_lines) * 6 + 5

        layout.set_fill_color(self.GREEN if incident.status == "open" else self.SLATE_500)
        layout.rounded_rect(layout.margin, layout.y - 4, 25, 7, radius=1)
        layout.set_font("Helvetica-Bold", 10)
        layout.set_text_color(colors.white)
        layout.text(incident.status.upper(), layout.margin + 3)

        layout.set_font("Helvetica", 10)
        layout.set_text_color(self.SLATE_500)
        layout.text(f"Created: {format_long_datetime(incident.created_at)}", layout.margin + 30)
        layout.y += 10

    def _draw_description(self, layout: PageLayout, incident: Incident) -> None:
        if not incident.description:
            return

        layout.check_page_break(20)
        layout.set_text_color(colors.black)
        layout.set_font("Helvetica-Bold", 12)
        layout.text("Description", layout.margin)
        layout.y += 6

        layout.set_font("Helvetica", 10)
        lines = layout.wrap(clean_text(incident.description))
        layout.text_block(lines, layout.margin, leading=4, gap=8)

    def _draw_timeline(self, layout: PageLayout, logs: Sequence[IncidentLog]) -> None:
        entries = self.timeline_entries(logs)
        if not entries:
            return

        layout.check_page_break(15)
        layout.set_font("Helvetica-Bold", 14)
        layout.set_text_color(self.SLATE_900)
        layout.text("EVIDENCE TIMELINE", layout.margin)
        layout.y += 10

        for log, photos in entries:
            self._draw_timeline_entry(layout, log, photos)

    def _draw_timeline_entry(self, layout: PageLayout, log: IncidentLog, photos: List[IncidentLog]) -> None:
        layout.check_page_break(30)

        tag = self.TYPE_TAGS[log.type]
        layout.set_font("Helvetica-Bold", 11)
        layout.set_text_color(self.BLUE)
        layout.text(tag, layout.margin)
        if log.title:
            layout.set_text_color(colors.black)
            layout.text(f" {log.title}", layout.margin + layout.text_width(tag) + 2)
        layout.y += 5

        layout.set_font("Helvetica-Oblique", 9)
        layout.set_text_color(self.SLATE_500)
        layout.text(format_long_datetime(log.created_at), layout.margin)
        layout.y += 5

        if log.content and log.type != LogType.PHOTO:
            layout.set_font("Helvetica", 10)
            layout.set_text_color(colors.black)
            lines = layout.wrap(clean_text(log.content))
            layout.text_block(lines, layout.margin, leading=4, gap=3)

        if log.type == LogType.PHOTO and log.file_url:
            layout.check_page_break(60)
            self._draw_photo(layout, log.file_url, layout.margin, 60, 45, gap=5)

        if photos:
            layout.set_font("Helvetica-Oblique", 9)
            layout.set_text_color(self.SLATE_500)
            layout.text("Attached Photos:", layout.margin)
            layout.y += 4

            for photo in photos:
                layout.check_page_break(55)
                if photo.file_url:
                    self._draw_photo(layout, photo.file_url, layout.margin + 5, 50, 37.5, gap=3)

        layout.y += 8

    def _draw_photo(self, layout: PageLayout, url: str, x: float, width: float, height: float, gap: float) -> None:
        try:
            data = self.fetch_image(url)
            layout.image(data, x, layout.y, width, height)
        except (AssetFetchError, OSError) as e:
            logger.warning(f"Could not embed {url}: {e}")
            layout.set_font("Helvetica", 9)
            layout.set_text_color(self.GREY)
            layout.text(IMAGE_PLACEHOLDER, x)
            layout.y += 5
            return
        layout.y += height + gap

    def _draw_chat_history(self, layout: PageLayout, logs: Sequence[IncidentLog]) -> None:
        chats = [log for log in logs if log.type == LogType.CHAT]
        if not chats:
            return

        layout.check_page_break(20)
        layout.set_draw_color(self.RULE)
        layout.line(layout.margin, layout.y, layout.page_width - layout.margin, layout.y)
        layout.y += 10

        layout.set_font("Helvetica-Bold", 14)
        layout.set_text_color(self.SLATE_900)
        layout.text("AI CONSULTATION HISTORY", layout.margin)
        layout.y += 10

        renderer = MarkdownRenderer(layout)
        for chat in chats:
            layout.check_page_break(25)

            if chat.is_ai:
                pill_color, pill_width, label, stamp_offset = self.BLUE, 30, "AI ASSISTANT", 35
            else:
                pill_color, pill_width, label, stamp_offset = self.SLATE_500, 15, "YOU", 20

            layout.set_fill_color(pill_color)
            layout.rounded_rect(layout.margin, layout.y - 4, pill_width, 6, radius=1)
            layout.set_font("Helvetica-Bold", 8)
            layout.set_text_color(colors.white)
            layout.text(label, layout.margin + 2)

            layout.set_font("Helvetica", 7)
            layout.set_text_color(self.GREY)
            layout.text(format_short_datetime(chat.created_at), layout.margin + stamp_offset)
            layout.y += 6

            layout.set_text_color(colors.black)
            if chat.content:
                renderer.render(chat.content)
            layout.y += 8


def export_to_pdf(
    incident: Incident,
    logs: Sequence[IncidentLog],
    output_dir: Union[str, Path] = ".",
    hooks: Optional[ExportHooks] = None,
    generator: Optional[IncidentReportGenerator] = None,
    audit: Optional[AuditLogger] = None,
) -> Optional[Path]:
    """
    Export an incident's case report and report the outcome through hooks.

    The busy flag is raised for the whole export and always cleared. Any
    error while rendering or saving leaves nothing written and sends a
    generic "Export Failed" notification. A failing analytics hook is
    logged and does not undo a saved export.

    Args:
        incident: Incident to export
        logs: All logs of the incident
        output_dir: Directory the PDF is saved in
        hooks: Notifier, analytics and state callbacks
        generator: Report generator (default: one built from env settings)
        audit: Audit trail to record the export in

    Returns:
        Path to the saved PDF, or None if the export failed
    """
    hooks = hooks or ExportHooks()
    hooks.busy(True)
    try:
        if generator is None:
            generator = IncidentReportGenerator()
        output_path = generator.generate(incident, logs, output_dir)

        try:
            hooks.track()
        except Exception as e:
            logger.warning(f"PDF export analytics failed for incident {incident.id}: {e}")

        if audit:
            audit.track_pdf_export(incident.id, output_path.name, page_count=generator.page_count)
        hooks.exported()
        hooks.emit(
            "PDF Exported",
            "Your case report has been downloaded. You can now run AI analysis.",
        )
        logger.info(f"Exported case report to {output_path}")
        return output_path

    except Exception as e:
        logger.error(f"PDF export error: {e}", exc_info=True)
        if audit:
            audit.log_error(AuditAction.PDF_EXPORT.value, e, incident_id=incident.id)
        hooks.emit(
            "Export Failed",
            "There was an error generating the PDF. Please try again.",
            VARIANT_DESTRUCTIVE,
        )
        return None

    finally:
        hooks.busy(False)
