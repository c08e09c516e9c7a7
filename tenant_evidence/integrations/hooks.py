"""
Tenant Evidence - Export Hooks

The collaborators an export talks to while it runs: a notifier for
user-facing messages, an analytics callback, busy/exported flags and the
log-cache invalidation. Every hook is optional; missing hooks are no-ops.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape

logger = logging.getLogger(__name__)

# Notification variants
VARIANT_DEFAULT = None
VARIANT_DESTRUCTIVE = "destructive"

Notifier = Callable[..., None]


@dataclass
class Notification:
    """A user-facing message produced by an export."""
    title: str
    description: Optional[str] = None
    variant: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.variant == VARIANT_DESTRUCTIVE


class RecordingNotifier:
    """Notifier that keeps every notification, newest last."""

    def __init__(self):
        self.notifications = []

    def __call__(self, title: str, description: str = None, variant: str = None) -> None:
        self.notifications.append(Notification(title, description, variant))

    @property
    def last(self) -> Optional[Notification]:
        return self.notifications[-1] if self.notifications else None


class ConsoleNotifier:
    """Notifier that prints to a rich console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def __call__(self, title: str, description: str = None, variant: str = None) -> None:
        if variant == VARIANT_DESTRUCTIVE:
            self.console.print(f"[red][FAIL][/red] [bold]{escape(title)}[/bold]")
        else:
            self.console.print(f"[green][OK][/green] [bold]{escape(title)}[/bold]")
        if description:
            self.console.print(f"       {escape(description)}")


@dataclass
class ExportHooks:
    """Optional callbacks invoked by the PDF exporters."""
    notify: Optional[Notifier] = None
    track_pdf_export: Optional[Callable[[], None]] = None
    set_busy: Optional[Callable[[bool], None]] = None
    set_has_exported_pdf: Optional[Callable[[bool], None]] = None
    invalidate_logs: Optional[Callable[[], None]] = None

    def emit(self, title: str, description: str = None, variant: str = None) -> None:
        """Send a notification if a notifier is attached."""
        logger.debug(f"Notification: {title}")
        if self.notify:
            self.notify(title=title, description=description, variant=variant)

    def busy(self, value: bool) -> None:
        if self.set_busy:
            self.set_busy(value)

    def exported(self) -> None:
        if self.set_has_exported_pdf:
            self.set_has_exported_pdf(True)

    def track(self) -> None:
        if self.track_pdf_export:
            self.track_pdf_export()

    def invalidate(self) -> None:
        if self.invalidate_logs:
            self.invalidate_logs()
