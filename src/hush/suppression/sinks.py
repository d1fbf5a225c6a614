"""
Diagnostic sinks.

The suppression engine sits in front of a sink and only forwards what it
does not suppress. Hosts implement DiagnosticSink for their own reporter.
"""

from abc import ABC, abstractmethod

from rich.console import Console
from rich.markup import escape

from hush.suppression.models import Diagnostic, Severity


class DiagnosticSink(ABC):
    """Receiver of forwarded diagnostics (the host's reporter)."""

    @abstractmethod
    def report(self, diagnostic: Diagnostic) -> None:
        """Deliver one diagnostic, unchanged in content."""
        pass


class CollectingSink(DiagnosticSink):
    """Sink that keeps every diagnostic in memory."""

    def __init__(self) -> None:
        self.diagnostics: list[Diagnostic] = []

    def report(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def messages(self) -> list[str]:
        return [d.message for d in self.diagnostics]

    def count(self, severity: Severity) -> int:
        return sum(1 for d in self.diagnostics if d.severity is severity)

    def clear(self) -> None:
        self.diagnostics.clear()


_SEVERITY_STYLES = {
    Severity.INFO: "dim",
    Severity.WARNING: "yellow",
    Severity.ERROR: "red bold",
}


class ConsoleSink(DiagnosticSink):
    """Sink that prints diagnostics to a rich console."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)

    def report(self, diagnostic: Diagnostic) -> None:
        style = _SEVERITY_STYLES[diagnostic.severity]
        where = str(diagnostic.unit)
        if diagnostic.position is not None:
            where = f"{where}:{diagnostic.position}"
        self.console.print(
            f"[cyan]{escape(where)}[/cyan]: [{style}]{diagnostic.severity.name.lower()}[/{style}]: {escape(diagnostic.message)}",
            highlight=False,
            markup=True,
        )
