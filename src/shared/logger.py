"""
Rich Logging Module for FlowWatch.

Provides colorful, formatted logging with tables and panels.
"""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from src.shared.config import settings

FLOWWATCH_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "data": "dim cyan",
        "highlight": "bold yellow",
        "muted": "dim white",
        "header": "bold cyan",
        "border": "bright_black",
    }
)

# Logs go to stderr so that --json output on stdout stays clean
console = Console(theme=FLOWWATCH_THEME, stderr=True)


class FlowWatchLogger:
    """Custom logger with Rich formatting for FlowWatch."""

    def __init__(self, name: str = "flowwatch", level: str | None = None):
        """Initialize the logger with Rich handler."""
        self.console = console
        self.name = name

        log_level = level or settings.log_level
        logging.basicConfig(
            level=getattr(logging, log_level.upper(), logging.INFO),
            format="%(message)s",
            datefmt="[%X]",
            handlers=[
                RichHandler(
                    console=self.console,
                    show_time=True,
                    show_path=False,
                    rich_tracebacks=True,
                    markup=True,
                )
            ],
        )
        self._logger = logging.getLogger(name)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message with cyan color."""
        self._logger.info(f"[info]{message}[/info]", **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message with yellow color."""
        self._logger.warning(f"[warning]⚠️  {message}[/warning]", **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message with red color."""
        self._logger.error(f"[error]❌ {message}[/error]", **kwargs)

    def success(self, message: str) -> None:
        """Log success message with green color."""
        self.console.print(f"[success]✅ {message}[/success]")

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._logger.debug(f"[muted]{message}[/muted]", **kwargs)

    def panel(
        self,
        content: str,
        title: str = "",
        style: str = "border",
        subtitle: str | None = None,
    ) -> None:
        """Display content in a styled panel."""
        self.console.print(
            Panel(
                content,
                title=f"[header]{title}[/header]" if title else None,
                subtitle=f"[muted]{subtitle}[/muted]" if subtitle else None,
                border_style=style,
                padding=(1, 2),
            )
        )

    def table(
        self,
        title: str,
        columns: list[str],
        rows: list[list[Any]],
        show_lines: bool = False,
    ) -> None:
        """Display data in a formatted table."""
        table = Table(
            title=f"[header]{title}[/header]",
            show_header=True,
            header_style="bold cyan",
            border_style="border",
            show_lines=show_lines,
        )

        for col in columns:
            table.add_column(col)

        for row in rows:
            table.add_row(*[str(cell) for cell in row])

        self.console.print(table)


# Global logger instance
_logger: FlowWatchLogger | None = None


def get_logger() -> FlowWatchLogger:
    """Get or create the global logger instance."""
    global _logger
    if _logger is None:
        _logger = FlowWatchLogger()
    return _logger


def log_result_table(
    title: str,
    columns: list[str],
    rows: list[list[Any]],
) -> None:
    """Display results in a table."""
    get_logger().table(title, columns, rows)


def log_startup_banner() -> None:
    """Display the startup banner."""
    logger = get_logger()

    banner = """
╔═══════════════════════════════════════════════════════════════╗
║                                                               ║
║                     F L O W W A T C H                         ║
║                                                               ║
║         🛡️  Flow Anomaly Correlation & Risk Scoring 📈          ║
║                                                               ║
╚═══════════════════════════════════════════════════════════════╝
    """

    logger.console.print(f"[bold cyan]{banner}[/bold cyan]")


def log_config_status(configs: dict[str, tuple[Any, str]]) -> None:
    """Display the effective configuration.

    Args:
        configs: Dict of config_name -> (value, description)
    """
    logger = get_logger()

    table = Table(
        title="[header]⚙️ Configuration[/header]",
        show_header=True,
        header_style="bold cyan",
        border_style="border",
    )

    table.add_column("Config", style="bold")
    table.add_column("Value")
    table.add_column("Description", style="dim")

    for name, (value, description) in configs.items():
        shown = "[muted]not set[/muted]" if value is None else f"[data]{value}[/data]"
        table.add_row(name, shown, description)

    logger.console.print(table)
