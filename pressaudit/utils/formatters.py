"""
Output formatters for PressAudit audit records.

Rich console rendering (overview panel, per-publication results table,
strategy panel, progress bar) and JSON serialization of audits.
"""

import json
from enum import Enum
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table
from rich.text import Text

from ..core.models import Audit, AuditResult, AuditStatus, AuditStrategy


class ThresholdLevel(Enum):
    """Threshold levels for color coding."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class MetricThreshold:
    """Defines thresholds for metric evaluation."""

    def __init__(self, excellent: float, good: float, fair: float):
        self.excellent = excellent
        self.good = good
        self.fair = fair

    def evaluate(self, value: float) -> ThresholdLevel:
        if value >= self.excellent:
            return ThresholdLevel.EXCELLENT
        elif value >= self.good:
            return ThresholdLevel.GOOD
        elif value >= self.fair:
            return ThresholdLevel.FAIR
        return ThresholdLevel.POOR


class ColorScheme:
    """Centralized color scheme management."""

    COLORS = {
        ThresholdLevel.EXCELLENT: "green",
        ThresholdLevel.GOOD: "blue",
        ThresholdLevel.FAIR: "yellow",
        ThresholdLevel.POOR: "red"
    }

    STATUS_COLORS = {
        AuditStatus.PENDING: "yellow",
        AuditStatus.PROCESSING: "blue",
        AuditStatus.COMPLETED: "green",
        AuditStatus.FAILED: "red",
    }

    @classmethod
    def get_color(cls, level: ThresholdLevel) -> str:
        return cls.COLORS[level]

    @classmethod
    def status_color(cls, status: AuditStatus) -> str:
        return cls.STATUS_COLORS[status]


# Coverage rate is a 0-100 integer percentage.
COVERAGE_THRESHOLD = MetricThreshold(50, 25, 10)


class FormatterMixin:
    """Mixin providing common formatter functionality."""

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()

    @property
    def console(self) -> Console:
        return self._console


class TableBuilder:
    """Builder pattern for creating Rich tables."""

    def __init__(self, title: str):
        self._table = Table(title=title)

    def add_column(self, header: str, style: str = "white",
                   justify: str = "left", no_wrap: bool = True,
                   max_width: Optional[int] = None) -> "TableBuilder":
        """Add column with fluent interface."""
        self._table.add_column(
            header,
            style=style,
            justify=justify,
            no_wrap=no_wrap,
            max_width=max_width
        )
        return self

    def add_row(self, *values: str) -> "TableBuilder":
        self._table.add_row(*values)
        return self

    def build(self) -> Table:
        return self._table


class JSONFormatter:
    """JSON output formatter for audit records."""

    class Config:
        """Configuration for JSON formatting."""
        DEFAULT_INDENT = 2
        ENSURE_ASCII = False

    @classmethod
    def format_audit(cls, audit: Audit, indent: Optional[int] = None) -> str:
        """Serialize the camelCase public view of an audit."""
        try:
            return json.dumps(
                audit.to_public_dict(),
                indent=indent or cls.Config.DEFAULT_INDENT,
                ensure_ascii=cls.Config.ENSURE_ASCII
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Failed to serialize audit to JSON: {e}") from e

    @classmethod
    def format_summary(cls, audit: Audit) -> str:
        """Format the audit headline numbers as compact JSON."""
        summary: Dict[str, Any] = {
            "id": audit.id,
            "brand": audit.brand_name,
            "status": audit.status.value,
            "mentionsFound": audit.mentions_found,
            "coverageRate": audit.coverage_rate,
            "totalPublications": audit.total_publications,
            "topSource": audit.top_source,
            "error": audit.error,
        }
        return json.dumps(summary, indent=cls.Config.DEFAULT_INDENT)


class RichFormatter(FormatterMixin):
    """Rich terminal formatter for finished (or failed) audits."""

    def format_audit_overview(self, audit: Audit) -> Panel:
        coverage_level = COVERAGE_THRESHOLD.evaluate(audit.coverage_rate)
        status_color = ColorScheme.status_color(audit.status)

        overview_text = Text()
        overview_text.append("Brand: ", style="bold")
        overview_text.append(f"{audit.brand_name}\n", style="cyan")
        overview_text.append("Website: ", style="bold")
        overview_text.append(f"{audit.website_url}\n")
        overview_text.append("Status: ", style="bold")
        overview_text.append(f"{audit.status.value}\n", style=status_color)
        overview_text.append("Mentions: ", style="bold")
        overview_text.append(f"{audit.mentions_found}/{audit.total_publications}\n")
        overview_text.append("Coverage: ", style="bold")
        overview_text.append(f"{audit.coverage_rate}%\n", style=ColorScheme.get_color(coverage_level))
        overview_text.append("Top Source: ", style="bold")
        overview_text.append(audit.top_source or "None")
        if audit.shareable_link:
            overview_text.append("\nShare: ", style="bold")
            overview_text.append(audit.shareable_link, style="blue")
        if audit.error:
            overview_text.append("\nError: ", style="bold")
            overview_text.append(audit.error, style="red")

        return Panel(
            overview_text,
            title="[bold]Audit Overview[/bold]",
            border_style=status_color
        )

    def format_results_table(self, results: List[AuditResult]) -> Table:
        if not results:
            return self._create_empty_table("Publication Results", "No publications checked")

        builder = (TableBuilder("Publication Results")
                   .add_column("Publication", style="cyan")
                   .add_column("Mentioned", justify="center")
                   .add_column("Title", no_wrap=False, max_width=50)
                   .add_column("URL", style="blue", no_wrap=False, max_width=50))

        for result in results:
            mentioned = "[green]yes[/green]" if result.brand_mentioned else "[red]no[/red]"
            builder.add_row(
                result.domain,
                mentioned,
                result.title or "",
                result.url or "",
            )

        return builder.build()

    def format_strategy_panel(self, strategy: AuditStrategy) -> Panel:
        sections = [
            ("Key Insights", strategy.insights),
            ("Priority Targets", strategy.priority_targets),
            ("Recommended Actions", strategy.actions),
        ]
        strategy_text = Text()
        for index, (title, items) in enumerate(sections):
            if index:
                strategy_text.append("\n")
            strategy_text.append(f"{title}\n", style="bold")
            for item in items:
                strategy_text.append(f"  • {item}\n")
        return Panel(strategy_text, title="[green]PR Strategy[/green]", border_style="green")

    def display_audit(self, audit: Audit) -> None:
        self.console.print(self.format_audit_overview(audit))
        self.console.print()
        self.console.print(self.format_results_table(audit.results))
        if audit.strategy is not None:
            self.console.print()
            self.console.print(self.format_strategy_panel(audit.strategy))

    def _create_empty_table(self, title: str, message: str) -> Table:
        table = Table(title=title)
        table.add_column("Message", style="yellow")
        table.add_row(message)
        return table


class ProgressIndicator(FormatterMixin):
    """Progress bar tracking how many publications an audit has checked."""

    def __init__(self, console: Optional[Console] = None):
        super().__init__(console)
        self._progress: Optional[Progress] = None

    def create_audit_progress(self) -> Progress:
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=self.console
        )

    def __enter__(self) -> "ProgressIndicator":
        self._progress = self.create_audit_progress()
        self._progress.__enter__()
        return self

    def __exit__(self, *args) -> None:
        if self._progress:
            try:
                self._progress.__exit__(*args)
            finally:
                self._progress = None

    def add_task(self, description: str, total: Optional[float] = None) -> int:
        if self._progress:
            return self._progress.add_task(description, total=total)
        return 0

    def update_task(self, task_id: int, **kwargs) -> None:
        if self._progress:
            self._progress.update(task_id, **kwargs)


def format_json(audit: Audit, indent: int = 2) -> str:
    """Quick JSON formatting of an audit."""
    return JSONFormatter.format_audit(audit, indent)


def display_rich(audit: Audit, console: Optional[Console] = None) -> None:
    """Quick rich display of an audit."""
    RichFormatter(console).display_audit(audit)


def create_progress(console: Optional[Console] = None) -> ProgressIndicator:
    return ProgressIndicator(console)


__all__ = [
    "COVERAGE_THRESHOLD",
    "ColorScheme",
    "JSONFormatter",
    "MetricThreshold",
    "ProgressIndicator",
    "RichFormatter",
    "TableBuilder",
    "ThresholdLevel",
    "create_progress",
    "display_rich",
    "format_json",
]
