"""Console output formatting for pyshoptheme."""

from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.markup import escape

from .models import AssetOpResult

TIMEFORMAT = "%H:%M:%S"
PADDING = 15

VERB_STYLES: dict[str, tuple[str, str]] = {
    "uploaded": ("▶", "bold green"),
    "uploading": ("▶", "bold green"),
    "downloaded": ("◀", "bold cyan"),
    "downloading": ("◀", "bold cyan"),
    "removed": ("✗", "bold magenta"),
    "removing": ("✗", "bold magenta"),
    "error": ("!", "bold red"),
    "warning": ("⚠", "bold yellow"),
    "saving": ("→", "bold blue"),
    "creating": ("→", "bold blue"),
}


class OutputFormatter:
    """Formats status lines and messages for the terminal.

    Status lines look like ``12:00:01  development  ▶ Uploaded | key``.
    Errors are always printed; everything else is suppressed in quiet mode.
    """

    def __init__(
        self,
        quiet: bool = False,
        environment: str = "",
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        self.quiet = quiet
        self.environment = environment
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)

    def print(self, message: str = "") -> None:
        if not self.quiet:
            self.console.print(message)

    def info(self, message: str) -> None:
        if not self.quiet:
            self.console.print(escape(message))

    def success(self, message: str) -> None:
        if not self.quiet:
            self.console.print(f"[green]{escape(message)}[/green]")

    def warning(self, message: str) -> None:
        if not self.quiet:
            self.console.print(f"[yellow]{escape(message)}[/yellow]")

    def error(self, message: str) -> None:
        self.err_console.print(f"[red]{escape(message)}[/red]")

    def status_line(
        self, verb: str, message: str, time: Optional[datetime] = None
    ) -> str:
        """Render a status line as rich markup."""
        icon, style = VERB_STYLES.get(verb.lower(), (" ", "bold"))
        verb_str = verb.capitalize().rjust(PADDING)
        time_str = (time or datetime.now()).strftime(TIMEFORMAT)
        return (
            f"[dim]{time_str}[/dim] [dim]{escape(self.environment).center(12)}[/dim] "
            f"[{style}]{icon}{verb_str}[/{style}][dim] | [/dim]{escape(message)}"
        )

    def status(self, verb: str, message: str) -> None:
        """Print a status line unless quiet."""
        if not self.quiet:
            self.console.print(self.status_line(verb, message))

    def report_warning(self, *lines: str) -> None:
        """Print a warning status line followed by indented detail lines."""
        if self.quiet or not lines:
            return
        first, *rest = lines
        self.status("warning", first)
        indent = " " * (PADDING + 23)
        for line in rest:
            self.console.print(f"{indent}[dim] | [/dim]{escape(line)}")

    def report_error(
        self, message: str, result: Optional[AssetOpResult] = None
    ) -> None:
        """Print an error status line with the diagnostics of a failed call."""
        self.err_console.print(self.status_line("error", message))
        if result is None:
            return
        details = [f"status: {result.status_code}"]
        if result.request_id:
            details.append(f"request_id: {result.request_id}")
        if result.error_detail:
            details.append(f"errors: {result.error_detail}")
        label = "Response:".rjust(PADDING)
        self.err_console.print(
            f"{' ' * 23}[yellow]{label}[/yellow][dim] | [/dim]"
            + escape(", ".join(details))
        )
