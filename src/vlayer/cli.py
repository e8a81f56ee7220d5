"""vlayer CLI: Typer application with scan, init, baseline, rules and audit commands."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from vlayer import __version__

app = typer.Typer(
    name="vlayer",
    help="Scan source code for HIPAA compliance issues.",
    add_completion=False,
    no_args_is_help=True,
)
rules_app = typer.Typer(help="Work with custom rule files.", no_args_is_help=True)
app.add_typer(rules_app, name="rules")

console = Console(stderr=True)

_FORMATS = ("terminal", "json", "sarif")
_CONFIDENCES = ("high", "medium", "low")


def _setup_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


# ── scan ──────────────────────────────────────────────────────────────────────


@app.command()
def scan(
    path: str = typer.Argument(".", help="Project directory or file to scan"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .vlayer.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json | sarif"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write report to file"),
    category: Optional[List[str]] = typer.Option(None, "--category", help="Only scan this category (repeatable)"),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-e", help="Extra exclude glob (repeatable)"),
    baseline: Optional[str] = typer.Option(None, "--baseline", "-b", help="Baseline file; known findings are not counted"),
    min_confidence: Optional[str] = typer.Option(None, "--min-confidence", help="Drop findings below: high | medium | low"),
    fix: bool = typer.Option(False, "--fix", help="Apply automatic fixes and write an audit trail"),
    ai: bool = typer.Option(False, "--ai", help="Run AI detection rules (needs ANTHROPIC_API_KEY)"),
    ai_triage: bool = typer.Option(False, "--ai-triage", help="Triage static findings with AI"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output with timing"),
) -> None:
    """Scan a project for HIPAA compliance issues."""
    from vlayer.ai.scanner import AIUnavailableError
    from vlayer.config.loader import ConfigError, load_config
    from vlayer.config.schema import CATEGORIES
    from vlayer.output import json_report, sarif, terminal
    from vlayer.scanner.engine import ScanError, ScanOptions, scan as run_scan
    from vlayer.scoring import PROFILES, calculate_score

    _setup_logging(verbose, debug)

    # --- Validate flags ---
    if format and format not in _FORMATS:
        console.print(f"[bold red]Invalid format:[/bold red] {format}")
        raise typer.Exit(code=2)
    if min_confidence and min_confidence not in _CONFIDENCES:
        console.print(f"[bold red]Invalid confidence level:[/bold red] {min_confidence}")
        raise typer.Exit(code=2)
    unknown = [c for c in category or [] if c not in CATEGORIES]
    if unknown:
        console.print(f"[bold red]Unknown category:[/bold red] {', '.join(unknown)}")
        raise typer.Exit(code=2)

    target = Path(path)
    root = target.parent if target.is_file() else target

    # --- Load config ---
    try:
        cfg = load_config(root, config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    if format:
        cfg.output.format = format  # type: ignore[assignment]

    # --- Run scan ---
    options = ScanOptions(
        path=path,
        categories=list(category) if category else None,
        exclude=list(exclude or []),
        config=cfg,
        fix=fix,
        baseline_file=baseline,
        min_confidence=min_confidence,
        ai=ai,
        ai_triage=ai_triage,
        ai_required=ai or ai_triage,
    )
    try:
        result = run_scan(options)
    except (ScanError, AIUnavailableError) as exc:
        console.print(f"[bold red]Scan error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    if debug:
        console.print(f"[dim]Scan duration: {result.scan_duration:.0f}ms[/dim]")

    profile = PROFILES.get(cfg.scoring.profile, PROFILES["dashboard"])
    score = calculate_score(result.findings, profile)

    # --- Output ---
    report_text: Optional[str] = None
    if cfg.output.format == "terminal":
        terminal.render(result, score=score, show_summary=cfg.output.show_summary, console=console)
    elif cfg.output.format == "json":
        report_text = json_report.render(result, score)
        print(report_text)
    elif cfg.output.format == "sarif":
        report_text = sarif.render(result)
        print(report_text)

    if output:
        # a terminal run still writes a machine-readable file
        Path(output).write_text(report_text or json_report.render(result, score), encoding="utf-8")
        if verbose:
            console.print(f"[dim]Report written to {output}[/dim]")

    # --- Exit code ---
    if score.score < cfg.scoring.fail_under:
        raise typer.Exit(code=1)
    raise typer.Exit(code=0)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init(
    path: str = typer.Argument(".", help="Project directory"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing .vlayer.toml"),
) -> None:
    """Generate a starter .vlayer.toml in the project root."""
    from vlayer.config.defaults import DEFAULT_TOML
    from vlayer.config.loader import CONFIG_FILENAME

    config_path = Path(path) / CONFIG_FILENAME
    if config_path.exists() and not force:
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── baseline ──────────────────────────────────────────────────────────────────


@app.command()
def baseline(
    path: str = typer.Argument(".", help="Project directory to scan"),
    output: str = typer.Option(".vlayer-baseline.json", "--output", "-o", help="Baseline file to write"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .vlayer.toml"),
) -> None:
    """Record current findings so later scans only report new ones."""
    from vlayer.config.loader import ConfigError
    from vlayer.findings.baseline import save_baseline
    from vlayer.scanner.engine import ScanError, ScanOptions, scan as run_scan

    try:
        result = run_scan(ScanOptions(path=path, config_file=config))
    except (ScanError, ConfigError) as exc:
        console.print(f"[bold red]Scan error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    active = result.active_findings
    save_baseline(active, output)
    console.print(f"[green]✓[/green] Baseline with {len(active)} finding(s) written to {output}")


# ── rules ─────────────────────────────────────────────────────────────────────


@rules_app.command("validate")
def rules_validate(
    file: str = typer.Argument(..., help="Custom rules YAML file"),
) -> None:
    """Validate a custom rules file."""
    from vlayer.rules.registry import validate_rules_file

    rules_path = Path(file)
    if not rules_path.is_file():
        console.print(f"[bold red]File not found:[/bold red] {file}")
        raise typer.Exit(code=2)

    report = validate_rules_file(rules_path)
    if report["valid"]:
        console.print(f"[green]✓[/green] {file}: {report['rule_count']} valid rule(s)")
        raise typer.Exit(code=0)

    console.print(f"[red]✗[/red] {file}: {len(report['errors'])} error(s)")  # type: ignore[arg-type]
    for err in report["errors"]:  # type: ignore[union-attr]
        console.print(f"  [yellow]{err.error}[/yellow]" + (f": {err.details}" if err.details else ""))
    raise typer.Exit(code=1)


# ── audit ─────────────────────────────────────────────────────────────────────


@app.command()
def audit(
    path: str = typer.Argument(".", help="Project directory"),
) -> None:
    """Show the audit trail of the last fix run."""
    from vlayer.audit.trail import (
        get_audit_summary,
        get_audit_trail_path,
        load_audit_trail,
        verify_audit_trail,
    )

    trail = load_audit_trail(path)
    if trail is None:
        console.print(f"[dim]No audit trail at {get_audit_trail_path(path)}. Run 'vlayer scan --fix' first.[/dim]")
        raise typer.Exit(code=0)

    summary = get_audit_summary(trail)
    console.print(f"[bold]Audit trail for {trail.project_name}[/bold]  [dim]{trail.created_at}[/dim]")
    console.print()
    console.print(f"[dim]Findings:[/dim]         {summary['totalFindings']}")
    console.print(f"[dim]Auto-fixed:[/dim]       {summary['autoFixed']}")
    console.print(f"[dim]Manual review:[/dim]    {summary['pendingManualReview']}")
    for status, count in sorted(summary["reviewsByStatus"].items()):
        console.print(f"  {status}: {count}")
    if summary["overdueCount"]:
        console.print(f"[bold red]Overdue reviews:[/bold red]  {summary['overdueCount']}")
    console.print(f"[dim]Report hash:[/dim]      {summary['reportHash']}")

    if not verify_audit_trail(trail):
        console.print("[bold red]❌ Report hash does not match the recorded evidence.[/bold red]")
        raise typer.Exit(code=1)
    console.print("[green]✓[/green] Evidence matches the report hash.")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"vlayer {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """vlayer: static HIPAA compliance scanner."""
