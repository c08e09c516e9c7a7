"""Output generation modules for incident evidence.

This package provides the PDF case report, the AI analysis PDF and JSON
exporters.
"""

from tenant_evidence.output.analysis_pdf import (
    AnalysisPDFGenerator,
    analysis_filename,
    save_analysis_pdf_to_incident,
)
from tenant_evidence.output.json_export import (
    JSONExporter,
    export_groups_to_json,
    export_timeline_to_json,
)
from tenant_evidence.output.layout import PageLayout
from tenant_evidence.output.markdown_renderer import MarkdownRenderer, render_markdown
from tenant_evidence.output.pdf_report import (
    IncidentReportGenerator,
    export_to_pdf,
    report_filename,
)

__all__ = [
    # JSON Export
    "JSONExporter",
    "export_timeline_to_json",
    "export_groups_to_json",
    # Layout
    "PageLayout",
    "MarkdownRenderer",
    "render_markdown",
    # PDF Report
    "IncidentReportGenerator",
    "export_to_pdf",
    "report_filename",
    # Analysis PDF
    "AnalysisPDFGenerator",
    "analysis_filename",
    "save_analysis_pdf_to_incident",
]
