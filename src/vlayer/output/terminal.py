"""Rich terminal reporter: severity pills, summary, compliance score."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from vlayer.findings.models import ScanResult
from vlayer.scoring import ComplianceScore, calculate_score, format_score

_SEVERITY_STYLE = {
    "critical": "bold white on red",
    "high": "bold white on dark_orange",
    "medium": "bold black on yellow",
    "low": "bold black on bright_cyan",
    "info": "bold black on white",
}

_SEVERITY_ICON = {
    "critical": "🔴",
    "high": "🟠",
    "medium": "🟡",
    "low": "🔵",
    "info": "⚪",
}

_GRADE_STYLE = {"A": "bold green", "B": "green", "C": "yellow", "D": "dark_orange", "F": "bold red"}


def _severity_pill(severity: str) -> Text:
    style = _SEVERITY_STYLE.get(severity, "")
    icon = _SEVERITY_ICON.get(severity, "")
    return Text(f" {icon} {severity.upper()} ", style=style)


def _location(file: str, line: Optional[int]) -> str:
    return f"{file}:{line}" if line else file


def render(
    result: ScanResult,
    *,
    score: Optional[ComplianceScore] = None,
    show_summary: bool = True,
    console: Optional[Console] = None,
) -> None:
    """Print scan results to the terminal using Rich."""
    console = console or Console(stderr=True)
    score = score or calculate_score(result.findings)
    active = result.active_findings

    console.print()
    if not active:
        console.print("[bold green]✅ No active HIPAA compliance issues found.[/bold green]")
    else:
        table = Table(
            title="vlayer Findings",
            show_lines=True,
            title_style="bold",
            border_style="dim",
        )
        table.add_column("Severity", justify="center", width=12)
        table.add_column("Rule", style="cyan", min_width=14)
        table.add_column("Issue", min_width=24)
        table.add_column("Location", style="magenta")
        table.add_column("Confidence", justify="center", style="green")

        for finding in active:
            title = Text(finding.title)
            if finding.ack_in_force:
                title.append(" (acknowledged)", style="dim")
            if finding.regulatory_reference:
                title.append(f"\n{finding.regulatory_reference}", style="dim")
            table.add_row(
                _severity_pill(finding.severity),
                finding.id,
                title,
                _location(finding.file, finding.line),
                finding.confidence or "-",
            )
        console.print(table)

    if result.load_errors:
        console.print()
        for err in result.load_errors:
            console.print(f"[yellow]⚠️  Rule load error:[/yellow] {err}")

    if result.fix_report is not None:
        report = result.fix_report
        console.print()
        console.print(
            f"[bold]🔧 Fixed {report.fixed_count} of {report.total_findings} finding(s)[/bold]"
            f" [dim]({report.skipped_count} need manual review)[/dim]"
        )
        if report.audit_trail_path:
            console.print(f"[dim]Audit trail:[/dim]  {report.audit_trail_path}")

    if show_summary:
        _print_summary(console, result)

    console.print()
    style = _GRADE_STYLE.get(score.grade, "bold")
    console.print(f"[{style}]HIPAA Compliance Score: {format_score(score)}[/{style}]")
    for rec in score.recommendations:
        console.print(f"  [dim]•[/dim] {rec}")


def _print_summary(console: Console, result: ScanResult) -> None:
    active = result.active_findings
    console.print()
    console.print(f"[dim]Files scanned:[/dim]  {result.scanned_files}")
    console.print(f"[dim]Findings:[/dim]       {len(active)} active / {result.total_findings} total")
    for sev in ("critical", "high", "medium", "low"):
        count = sum(1 for f in active if f.severity == sev)
        if count:
            console.print(f"  {_SEVERITY_ICON[sev]} {sev.capitalize()}: {count}")
    console.print(f"[dim]Baseline:[/dim]      {len(result.baseline_findings)}")
    console.print(f"[dim]Suppressed:[/dim]    {len(result.suppressed_findings)}")
    if result.ai_stats:
        console.print(
            f"[dim]AI:[/dim]            {result.ai_stats.get('aiCallsMade', 0)} calls, "
            f"~{result.ai_stats.get('costCents', 0)}¢"
        )
    console.print(f"[dim]Duration:[/dim]      {result.scan_duration:.0f}ms")
