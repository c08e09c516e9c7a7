"""Command-line interface for the tenant evidence toolkit."""

import json
import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tenant_evidence import __version__
from tenant_evidence.config import Settings
from tenant_evidence.core.classifier import sort_logs
from tenant_evidence.core.gallery import build_file_groups
from tenant_evidence.core.timeline import ChatGroupItem, build_timeline_items
from tenant_evidence.integrations.api_client import IncidentApiClient
from tenant_evidence.integrations.hooks import ConsoleNotifier, ExportHooks
from tenant_evidence.models import AnalysisResult, CaseBundle
from tenant_evidence.output.analysis_pdf import (
    AnalysisPDFGenerator,
    analysis_filename,
    save_analysis_pdf_to_incident,
)
from tenant_evidence.output.json_export import JSONExporter
from tenant_evidence.output.pdf_report import IncidentReportGenerator, export_to_pdf
from tenant_evidence.utils.audit import AuditLogger
from tenant_evidence.utils.exceptions import TenantEvidenceError

console = Console()


def print_status(status: str, message: str) -> None:
    """Print a status message with consistent formatting.

    Args:
        status: Status indicator ([OK], [FAIL], [WARN], [INFO], [ERROR])
        message: Message to display
    """
    color_map = {
        "[OK]": "green",
        "[FAIL]": "red",
        "[WARN]": "yellow",
        "[INFO]": "blue",
        "[ERROR]": "red bold",
    }
    color = color_map.get(status, "white")
    console.print(f"[{color}]{status}[/{color}] {escape(message)}")


def _load_json(path: str):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        print_status("[ERROR]", f"{path} is not valid JSON: {e}")
        sys.exit(1)


def _load_case(path: str) -> CaseBundle:
    """Read a case file: {"incident": {...}, "logs": [...]}."""
    try:
        return CaseBundle.model_validate(_load_json(path))
    except ValidationError as e:
        print_status("[ERROR]", f"Invalid case file {path}: {e.error_count()} validation errors")
        for error in e.errors()[:5]:
            location = ".".join(str(part) for part in error["loc"])
            console.print(f"  [dim]{escape(location)}: {escape(error['msg'])}[/dim]")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="tenant-evidence")
@click.option("--debug", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def main(ctx: click.Context, debug: bool):
    """Tenant Evidence - organize and export rental dispute evidence.

    Builds the timeline and file gallery of an incident and renders its
    PDF case report and AI analysis PDF.
    """
    ctx.ensure_object(dict)
    ctx.obj["settings"] = Settings.from_env()
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("case_file", type=click.Path(exists=True, dir_okay=False))
@click.option("-f", "--format", "output_format", type=click.Choice(["table", "json"]), default="table")
def timeline(case_file: str, output_format: str):
    """Show the incident timeline with chat turns grouped.

    CASE_FILE is a JSON document with "incident" and "logs".
    """
    case = _load_case(case_file)
    items = build_timeline_items(sort_logs(case.logs))

    if output_format == "json":
        console.print_json(JSONExporter().timeline_to_json(items))
        return

    table = Table(title=f"Timeline: {escape(case.incident.title)}", show_header=True, header_style="bold")
    table.add_column("When", style="cyan")
    table.add_column("Type")
    table.add_column("Entry")
    for item in items:
        if isinstance(item, ChatGroupItem):
            first = item.chats[0]
            table.add_row(
                first.created_at.strftime("%Y-%m-%d %H:%M"),
                "chat",
                f"[dim]{len(item.chats)} messages ({item.id})[/dim]",
            )
        else:
            log = item.log
            text = escape(log.title or (log.content or "")[:60])
            table.add_row(log.created_at.strftime("%Y-%m-%d %H:%M"), log.type.value, text)
    console.print(table)


@main.command()
@click.argument("case_file", type=click.Path(exists=True, dir_okay=False))
@click.option("-f", "--format", "output_format", type=click.Choice(["table", "json"]), default="table")
def files(case_file: str, output_format: str):
    """Show the incident's photos and documents grouped for the gallery.

    CASE_FILE is a JSON document with "incident" and "logs".
    """
    case = _load_case(case_file)
    groups = build_file_groups(case.logs, case.incident)

    if output_format == "json":
        console.print_json(JSONExporter().groups_to_json(groups))
        return

    if not groups:
        print_status("[INFO]", "No photos or documents in this incident")
        return

    table = Table(title=f"Files: {escape(case.incident.title)}", show_header=True, header_style="bold")
    table.add_column("Group", style="cyan")
    table.add_column("Label")
    table.add_column("Files", justify="right")
    for group in groups:
        table.add_row(group.id, escape(group.label), str(len(group.files)))
    console.print(table)


@main.command()
@click.argument("case_file", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output-dir", type=click.Path(file_okay=False), default=".", help="Directory for the PDF")
@click.option("--brand", help="Brand shown in the page footer")
@click.option("--api-url", help="Incident API base URL used to download photos")
@click.option("--record-export", is_flag=True, help="Record the export with the incident API")
@click.pass_context
def report(ctx: click.Context, case_file: str, output_dir: str, brand: str, api_url: str, record_export: bool):
    """Export the PDF case report for an incident.

    CASE_FILE is a JSON document with "incident" and "logs".
    """
    settings: Settings = ctx.obj["settings"]
    case = _load_case(case_file)
    client = IncidentApiClient(base_url=api_url or settings.api_url, timeout=settings.fetch_timeout)

    generator = IncidentReportGenerator(
        brand=brand or settings.brand,
        fetch_image=client.fetch_bytes,
        photo_window=settings.legacy_photo_window,
    )
    hooks = ExportHooks(
        notify=ConsoleNotifier(console),
        track_pdf_export=(lambda: client.record_pdf_export(case.incident.id)) if record_export else None,
    )

    output_path = export_to_pdf(
        case.incident,
        case.logs,
        output_dir=output_dir,
        hooks=hooks,
        generator=generator,
        audit=AuditLogger(settings.audit_dir),
    )
    if output_path is None:
        sys.exit(1)
    print_status("[OK]", f"Report saved to: {output_path} ({generator.page_count} pages)")


@main.command(name="analysis-pdf")
@click.argument("case_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("analysis_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--api-url", help="Incident API base URL to upload to")
@click.option("-o", "--output-dir", type=click.Path(file_okay=False), help="Save locally instead of uploading")
@click.pass_context
def analysis_pdf(ctx: click.Context, case_file: str, analysis_file: str, api_url: str, output_dir: str):
    """Render the AI case analysis PDF and save it to the incident.

    CASE_FILE is a JSON document with "incident" and "logs"; ANALYSIS_FILE
    holds the structured analysis result.
    """
    settings: Settings = ctx.obj["settings"]
    case = _load_case(case_file)
    try:
        analysis = AnalysisResult.model_validate(_load_json(analysis_file))
    except ValidationError as e:
        print_status("[ERROR]", f"Invalid analysis file {analysis_file}: {e.error_count()} validation errors")
        sys.exit(1)

    generator = AnalysisPDFGenerator()

    if output_dir:
        output_path = Path(output_dir) / analysis_filename(case.incident, generator.clock())
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(generator.render(case.incident, analysis))
        except (OSError, TenantEvidenceError) as e:
            print_status("[ERROR]", f"Could not save analysis PDF: {e}")
            sys.exit(1)
        print_status("[OK]", f"Analysis PDF saved to: {output_path}")
        return

    client = IncidentApiClient(base_url=api_url or settings.api_url, timeout=settings.fetch_timeout)
    hooks = ExportHooks(
        notify=ConsoleNotifier(console),
        invalidate_logs=lambda: client.invalidate_logs(case.incident.id),
    )
    result = save_analysis_pdf_to_incident(
        case.incident,
        analysis,
        uploader=client.upload_file,
        hooks=hooks,
        generator=generator,
        audit=AuditLogger(settings.audit_dir),
    )
    if result is None:
        sys.exit(1)
    if result.file_url:
        print_status("[INFO]", f"Stored at: {result.file_url}")


@main.command()
@click.option("--incident-id", type=int, help="Only show exports of this incident")
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Write the history to a file")
@click.option("-f", "--format", "output_format", type=click.Choice(["json", "csv", "txt"]), default="json")
@click.pass_context
def history(ctx: click.Context, incident_id: int, output: str, output_format: str):
    """Show the export audit trail."""
    settings: Settings = ctx.obj["settings"]
    audit = AuditLogger(settings.audit_dir)

    if output:
        count = audit.export_history(Path(output), incident_id=incident_id, format=output_format)
        print_status("[OK]", f"Exported {count} entries to: {output}")
        return

    entries = audit.get_export_history(incident_id=incident_id)
    if not entries:
        print_status("[INFO]", "No exports recorded")
        return

    table = Table(title="Export History", show_header=True, header_style="bold")
    table.add_column("Timestamp", style="cyan")
    table.add_column("Action")
    table.add_column("Incident", justify="right")
    table.add_column("File")
    table.add_column("Status")
    for entry in entries:
        status = "[green][OK][/green]" if entry.get("success", True) else "[red][FAIL][/red]"
        table.add_row(
            entry["timestamp"][:19].replace("T", " "),
            entry["action"],
            str(entry.get("incident_id", "")),
            escape(entry.get("filename") or ""),
            status,
        )
    console.print(table)


if __name__ == "__main__":
    main()
