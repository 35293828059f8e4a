"""Typer CLI: env, text, jwt, ci, gitignore commands."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from leakgrade import __version__
from leakgrade.rules import Finding, FindingKind, LeakGradeError, Severity, sort_findings
from leakgrade.scoring import GradeResult

app = typer.Typer(
    name="leakgrade",
    help="Offline secret scanner - grade env files, logs, and tokens.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

_SEVERITY_STYLE = {
    Severity.CRITICAL: "red bold",
    Severity.WARNING: "yellow",
    Severity.INFO: "blue",
}
_GRADE_STYLE = {"A": "green", "B": "green", "C": "yellow", "D": "red", "F": "red"}


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"LeakGrade v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version.", callback=_version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    """LeakGrade - find secrets in static text, without leaving your machine."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )


def _fail(message: str, json_output: bool = False) -> None:
    if json_output:
        typer.echo(json.dumps({"error": message}))
    else:
        err_console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(1)


def _read_input(file: Optional[Path], json_output: bool) -> tuple[str, str]:
    """Return (text, source label) from a file or piped stdin."""
    from leakgrade.utils import read_source

    if file is None and sys.stdin.isatty():
        console.print("Nothing to scan: pass a FILE or pipe text on stdin.")
        raise typer.Exit(0)
    try:
        text = read_source(file)
    except LeakGradeError as exc:
        _fail(str(exc), json_output)
    return text, str(file) if file is not None else "stdin"


def _load_config(project_dir: Path, json_output: bool = False) -> dict:
    from leakgrade.config import load_config, validate_config

    config = load_config(project_dir)
    errors = validate_config(config)
    if errors:
        _fail(f"Config error: {errors[0]}", json_output)
    return config


def _grade_line(result: GradeResult) -> str:
    style = _GRADE_STYLE.get(result.letter, "")
    verdict = "[green]PASS[/green]" if result.passed else "[red]FAIL[/red]"
    return (
        f"[bold]Grade:[/bold] [{style} bold]{result.letter}[/{style} bold] "
        f"({result.label}, {result.score}/100)  {verdict}"
    )


def _print_findings(findings: list[Finding], title: str) -> None:
    if not findings:
        console.print("  [green]No issues found[/green]")
        return

    table = Table(title=title, show_lines=True)
    table.add_column("Severity", width=10)
    table.add_column("Line", justify="right", width=6)
    table.add_column("Issue", width=30)
    table.add_column("Details")

    for f in sort_findings(findings):
        style = _SEVERITY_STYLE[f.severity]
        table.add_row(
            f"[{style}]{f.severity.value}[/{style}]",
            str(f.line),
            escape(f.name),
            f"{escape(f.description)}\n[dim]-> {escape(f.remediation)}[/dim]",
        )
    console.print(table)


def _drop_commented_secrets(file: Path, text: str, findings: list[Finding]) -> tuple[str, int]:
    from leakgrade.fixes import remove_line

    lines = sorted({f.line for f in findings if f.kind is FindingKind.COMMENTED}, reverse=True)
    for line in lines:
        text = remove_line(text, line)
    if lines:
        file.write_text(text, encoding="utf-8")
    return text, len(lines)


@app.command()
def env(
    file: Optional[Path] = typer.Argument(None, help="Env file to scan (default: stdin)"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only show the grade"),
    fix: bool = typer.Option(False, "--fix", help="Delete commented-out secret lines from FILE"),
    project_dir: Path = typer.Option(Path.cwd(), "--dir", help="Project directory"),
) -> None:
    """Scan a dotenv-style key=value file. Exits 1 for grades D-F."""
    from leakgrade.analyzer import scan_key_value
    from leakgrade.config import get_weighting
    from leakgrade.exporters.json_export import findings_to_json
    from leakgrade.scoring import grade

    if fix and file is None:
        _fail("--fix needs a FILE", json_output)
    text, source = _read_input(file, json_output)
    config = _load_config(project_dir, json_output)

    findings = scan_key_value(text, max_findings=config["max_findings"])
    if fix:
        text, removed = _drop_commented_secrets(file, text, findings)
        if removed:
            findings = scan_key_value(text, max_findings=config["max_findings"])
            if not json_output:
                console.print(f"[green]Removed {removed} commented-out secret line(s) from {escape(source)}[/green]")
    result = grade(findings, get_weighting(config))

    if json_output:
        typer.echo(json.dumps(findings_to_json(findings, result, source), indent=2))
    elif quiet:
        console.print(f"[bold]{result.letter}[/bold] {result.label}")
    elif not text.strip():
        console.print("[dim]Empty input - nothing to scan.[/dim]")
    else:
        console.print(Panel(f"[bold]LeakGrade Env Scan[/bold]  [dim]{escape(source)}[/dim]", style="blue"))
        _print_findings(findings, "Env Findings")
        console.print(_grade_line(result))

    raise typer.Exit(0 if result.passed else 1)


@app.command()
def text(
    file: Optional[Path] = typer.Argument(None, help="Text file to scan (default: stdin)"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only show the grade"),
    redact: bool = typer.Option(False, "--redact", help="Print the redacted text"),
    no_entropy: bool = typer.Option(False, "--no-entropy", help="Skip the entropy fallback"),
    project_dir: Path = typer.Option(Path.cwd(), "--dir", help="Project directory"),
) -> None:
    """Scan logs, code, or pasted text for secrets. Exits 1 for grades D-F."""
    from leakgrade.config import get_weighting
    from leakgrade.exporters.json_export import findings_to_json
    from leakgrade.scanner import scan_free_text
    from leakgrade.scoring import grade

    content, source = _read_input(file, json_output)
    config = _load_config(project_dir, json_output)

    weighting = get_weighting(config)
    scan = scan_free_text(
        content,
        max_findings=config["max_findings"],
        entropy=config["entropy"].get("enabled", True) and not no_entropy,
        weighting=weighting,
    )
    if scan is None:
        result = grade([], weighting)
        if json_output:
            typer.echo(json.dumps(findings_to_json([], result, source), indent=2))
        elif not quiet:
            console.print("[dim]Empty input - nothing to scan.[/dim]")
        raise typer.Exit(0)

    result = scan.grade
    if json_output:
        data = findings_to_json(scan.findings, result, source)
        data["capped"] = scan.capped
        data["scan_time_ms"] = scan.scan_time_ms
        if redact:
            data["redacted_text"] = scan.redacted_text
        typer.echo(json.dumps(data, indent=2))
    elif redact:
        typer.echo(scan.redacted_text)
    elif quiet:
        console.print(f"[bold]{result.letter}[/bold] {result.label}")
    else:
        console.print(Panel(f"[bold]LeakGrade Text Scan[/bold]  [dim]{escape(source)}[/dim]", style="blue"))
        _print_findings(scan.findings, "Text Findings")
        if scan.capped:
            console.print(f"[yellow]Stopped after {len(scan.findings)} findings.[/yellow]")
        console.print(
            f"[dim]{scan.lines_scanned} lines scanned in {scan.scan_time_ms} ms[/dim]"
        )
        console.print(_grade_line(result))

    raise typer.Exit(0 if result.passed else 1)


@app.command()
def jwt(
    token: str = typer.Argument(..., help="Encoded JWT to inspect"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
) -> None:
    """Decode a JWT offline and audit its claims. Exits 1 for grades D-F."""
    from leakgrade.tokens import analyze_jwt

    try:
        report = analyze_jwt(token)
    except LeakGradeError as exc:
        _fail(str(exc), json_output)

    if json_output:
        typer.echo(json.dumps(report.to_dict(), indent=2, default=str))
        raise typer.Exit(0 if report.grade.passed else 1)

    console.print(Panel("[bold]LeakGrade Token Inspector[/bold]", style="blue"))
    _, label = report.algorithm
    console.print(f"  Algorithm: [bold]{escape(str(report.token.header.get('alg')))}[/bold] ({escape(label)})")

    if report.standard_claims:
        claims = Table(title="Registered Claims")
        claims.add_column("Claim")
        claims.add_column("Name")
        claims.add_column("Value")
        for c in report.standard_claims:
            shown = c.get("formatted_value") or json.dumps(c["value"], default=str)
            claims.add_row(c["key"], c["name"], escape(str(shown)))
        console.print(claims)
    if report.custom_claims:
        console.print(f"  Custom claims: {escape(', '.join(c['key'] for c in report.custom_claims))}")

    if report.issues:
        console.print("")
        for issue in report.issues:
            style = _SEVERITY_STYLE[issue.severity]
            console.print(f"  [{style}]{issue.severity.value}[/{style}] [bold]{escape(issue.title)}[/bold]")
            console.print(f"    [dim]{escape(issue.detail)}[/dim]")
    else:
        console.print("  [green]No issues found[/green]")

    console.print(_grade_line(report.grade))
    raise typer.Exit(0 if report.grade.passed else 1)


@app.command()
def ci(
    path: Optional[str] = typer.Option(None, "--path", help="Env file to scan (default from config: .env.example)"),
    fail_grade: Optional[str] = typer.Option(None, "--fail-grade", help="Fail when the grade is worse than this"),
    comment: Optional[bool] = typer.Option(None, "--comment/--no-comment", help="Render the PR comment body"),
    comment_file: Optional[Path] = typer.Option(None, "--comment-file", help="Write the PR comment markdown here"),
    output_format: str = typer.Option("json", "--format", "-f", help="Output format: json, sarif"),
    output_file: Optional[Path] = typer.Option(None, "--output", "-o", help="Write results to file"),
    badge_file: Optional[Path] = typer.Option(None, "--badge", help="Write an SVG grade badge"),
    workflow: bool = typer.Option(False, "--workflow", help="Print a GitHub Actions workflow and exit"),
    project_dir: Path = typer.Option(Path.cwd(), "--dir", help="Project directory"),
) -> None:
    """CI gate: scan an env file and fail on a bad grade."""
    from leakgrade.ci import generate_github_workflow, run_ci
    from leakgrade.scoring import GRADE_ORDER

    if output_format not in ("json", "sarif"):
        _fail(f"Unknown format: {output_format} (expected json or sarif)")
    if fail_grade is not None and fail_grade.upper() not in GRADE_ORDER:
        _fail(f"Invalid fail grade: {fail_grade} (expected A, B, C, D or F)")

    if workflow:
        config = _load_config(project_dir)
        ci_config = config["ci"]
        if comment is None:
            comment = bool(ci_config.get("comment_on_pr", True))
        typer.echo(generate_github_workflow(
            path=path or ci_config.get("path", ".env.example"),
            fail_grade=(fail_grade or config["fail_grade"]).upper(),
            comment_on_pr=comment,
        ))
        raise typer.Exit()

    try:
        passed, info = run_ci(
            project_dir,
            path=path,
            fail_grade=fail_grade,
            comment_on_pr=comment,
            output_format=output_format,
            output_file=output_file,
            badge_file=badge_file,
            comment_file=comment_file,
        )
    except LeakGradeError as exc:
        typer.echo(f"::error::{exc}")
        raise typer.Exit(1)

    console.print(
        f"Grade: [bold]{info['grade']}[/bold] | Findings: {info['findings_total']} "
        f"({info['critical']} critical, {info['warning']} warning, {info['info']} info)"
    )
    if output_file:
        console.print(f"  Results: [cyan]{output_file}[/cyan]")
    if badge_file:
        console.print(f"  Badge: [cyan]{badge_file}[/cyan]")
    if comment_file and info["comment"] is not None:
        console.print(f"  Comment: [cyan]{comment_file}[/cyan]")

    if not passed:
        typer.echo(
            f"::error::Grade {info['grade']} is below the minimum passing grade {info['fail_grade']}"
        )
        raise typer.Exit(1)
    console.print(f"[green]Passed with grade {info['grade']}[/green]")


@app.command()
def gitignore(
    project_dir: Path = typer.Option(Path.cwd(), "--dir", help="Project directory"),
) -> None:
    """Make sure .env files are listed in .gitignore."""
    from leakgrade.fixes import ensure_gitignore, find_env_files

    if ensure_gitignore(project_dir):
        console.print("[green]Added .env entries to .gitignore[/green]")
    else:
        console.print(".env is already in .gitignore")

    env_files = [p.name for p in find_env_files(project_dir) if p.name != ".env.example"]
    if env_files:
        console.print(f"  Env files found: {escape(', '.join(env_files))}")
